"""Tests unitaires pour LotService."""

import pytest

from src.core.entities import LotType, UserRole
from src.core.errors import ValidationError


class TestLotService:
    """Tests pour la gestion des lots et de leur locataire."""

    @pytest.mark.asyncio
    async def test_create_with_name_as_reference(self, lot_service, building):
        result = await lot_service.create({"building_id": building.id, "name": "B12", "floor": 1})
        assert result.success
        assert result.data.reference == "B12"
        assert result.data.type is LotType.APARTMENT

    @pytest.mark.asyncio
    async def test_unknown_building(self, lot_service):
        result = await lot_service.create({"building_id": "ghost", "reference": "A1"})
        assert result.error.code == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_reference_unique_per_building(self, lot_service, lot):
        result = await lot_service.create({"building_id": lot.building_id, "reference": lot.reference})
        assert result.error.code == "CONFLICT"

    @pytest.mark.asyncio
    async def test_invalid_type(self, lot_service, building):
        with pytest.raises(ValidationError):
            await lot_service.create({"building_id": building.id, "reference": "X", "type": "castle"})

    @pytest.mark.asyncio
    async def test_cannot_move_lot(self, lot_service, lot):
        with pytest.raises(ValidationError, match="cannot be moved"):
            await lot_service.update(lot.id, {"building_id": "other"})

    @pytest.mark.asyncio
    async def test_update_fields(self, lot_service, lot):
        result = await lot_service.update(lot.id, {"rent_amount": 750.0, "type": "commercial"})
        assert result.data.rent_amount == 750.0
        assert result.data.type is LotType.COMMERCIAL

    @pytest.mark.asyncio
    async def test_assign_tenant(self, lot_service, lot, make_user):
        newcomer = make_user(UserRole.TENANT)
        result = await lot_service.assign_tenant(lot.id, newcomer.id)
        assert result.data.tenant_id == newcomer.id

    @pytest.mark.asyncio
    async def test_assign_non_tenant_raises(self, lot_service, lot, provider):
        with pytest.raises(ValidationError, match="User is not a tenant"):
            await lot_service.assign_tenant(lot.id, provider.id)

    @pytest.mark.asyncio
    async def test_clear_tenant(self, lot_service, lot):
        result = await lot_service.assign_tenant(lot.id, None)
        assert result.data.tenant_id is None

    @pytest.mark.asyncio
    async def test_delete(self, lot_service, lot):
        assert (await lot_service.delete(lot.id)).success
        assert (await lot_service.get_by_building(lot.building_id)).data == []
