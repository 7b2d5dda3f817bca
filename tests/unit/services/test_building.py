"""Tests unitaires pour BuildingService."""

import pytest

from src.core.errors import ValidationError


def _payload(team_id: str, **overrides) -> dict:
    data = {
        "name": "Le Belvedere",
        "address": "3 place Bellecour",
        "city": "Lyon",
        "postal_code": "69002",
        "team_id": team_id,
    }
    data.update(overrides)
    return data


class TestBuildingService:
    """Tests pour la creation et la mise a jour des immeubles."""

    @pytest.mark.asyncio
    async def test_create_defaults_country(self, building_service, team):
        result = await building_service.create(_payload(team.id))
        assert result.success
        assert result.data.country == "France"
        assert result.data.team_id == team.id

    @pytest.mark.asyncio
    async def test_create_missing_field(self, building_service, team):
        with pytest.raises(ValidationError, match="Field 'city' is required"):
            await building_service.create(_payload(team.id, city=""))

    @pytest.mark.asyncio
    async def test_unknown_team(self, building_service):
        result = await building_service.create(_payload("ghost"))
        assert result.error.code == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_name_unique_within_team(self, building_service, building):
        result = await building_service.create(_payload(building.team_id, name=building.name))
        assert result.error.code == "CONFLICT"
        assert result.error.message == "A building with this name already exists in the team"

    @pytest.mark.asyncio
    async def test_rename_to_existing_name(self, building_service, building):
        other = (await building_service.create(_payload(building.team_id))).data
        result = await building_service.update(other.id, {"name": building.name})
        assert result.error.code == "CONFLICT"

    @pytest.mark.asyncio
    async def test_get_by_team_and_delete(self, building_service, building):
        assert [b.id for b in (await building_service.get_by_team(building.team_id)).data] == [building.id]
        assert (await building_service.delete(building.id)).success
        assert (await building_service.get_by_id(building.id)).error.code == "NOT_FOUND"
