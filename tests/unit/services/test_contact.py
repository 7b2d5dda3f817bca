"""
Tests unitaires pour ContactService.

Verifie la creation des contacts d'equipe (avec creation de l'utilisateur),
l'invitation et les affectations groupees immeuble/lot.
"""

import pytest

from src.core.entities import ContactType, UserRole, UserStatus
from src.core.errors import ValidationError


class TestCreate:
    """Tests pour ContactService.create."""

    @pytest.mark.asyncio
    async def test_creates_pending_user_when_unknown(self, contact_service, user_repo, team):
        result = await contact_service.create(
            {"email": "plombier@example.fr", "name": "Plomberie Rhone", "role": "provider", "team_id": team.id}
        )
        assert result.success
        assert result.data.type is ContactType.PROVIDER

        user = user_repo.get_by_email("plombier@example.fr")
        assert user.role is UserRole.PROVIDER
        assert user.status is UserStatus.PENDING
        assert result.data.user_id == user.id

    @pytest.mark.asyncio
    async def test_reuses_existing_user(self, contact_service, tenant, team):
        result = await contact_service.create({"email": tenant.email, "type": "tenant", "team_id": team.id})
        assert result.data.user_id == tenant.id

    @pytest.mark.asyncio
    async def test_email_is_trimmed_before_lookup(self, contact_service, tenant, team):
        result = await contact_service.create(
            {"email": f"  {tenant.email.upper()} ", "type": "tenant", "team_id": team.id}
        )
        assert result.data.user_id == tenant.id

    @pytest.mark.asyncio
    async def test_owner_requires_explicit_role(self, contact_service, team):
        with pytest.raises(ValidationError, match="Field 'role' is required"):
            await contact_service.create({"email": "owner@example.fr", "type": "owner", "team_id": team.id})

    @pytest.mark.asyncio
    async def test_duplicate_contact_is_conflict(self, contact_service, tenant, team):
        await contact_service.create({"email": tenant.email, "role": "tenant", "team_id": team.id})
        result = await contact_service.create({"email": tenant.email, "role": "tenant", "team_id": team.id})
        assert result.error.code == "CONFLICT"

    @pytest.mark.asyncio
    async def test_invite(self, contact_service, tenant, team):
        contact = (await contact_service.create({"email": tenant.email, "role": "tenant", "team_id": team.id})).data
        invited = (await contact_service.invite(contact.id)).data
        assert invited.invited_at is not None
        assert invited.status is UserStatus.PENDING

    @pytest.mark.asyncio
    async def test_team_contacts_filtered_by_type(self, contact_service, tenant, provider, team):
        await contact_service.create({"email": tenant.email, "role": "tenant", "team_id": team.id})
        await contact_service.create({"email": provider.email, "role": "provider", "team_id": team.id})
        providers = (await contact_service.get_team_contacts(team.id, "provider")).data
        assert [c.user_id for c in providers] == [provider.id]


class TestBuildingAndLotAssignments:
    """Tests des affectations groupees."""

    @pytest.mark.asyncio
    async def test_bulk_assign_to_building(self, contact_service, building, manager, provider):
        result = await contact_service.bulk_assign_to_building(
            building.id,
            [
                {"user_id": manager.id, "type": "manager", "is_primary": True},
                {"user_id": provider.id, "type": "provider"},
            ],
        )
        assert result.success
        assert len(result.data) == 2
        managers = (await contact_service.get_building_contacts(building.id, "manager")).data
        assert managers[0].is_primary

    @pytest.mark.asyncio
    async def test_bulk_assign_unknown_user(self, contact_service, building):
        result = await contact_service.bulk_assign_to_building(building.id, [{"user_id": "ghost", "type": "owner"}])
        assert result.error.code == "NOT_FOUND"
        assert (await contact_service.get_building_contacts(building.id)).data == []

    @pytest.mark.asyncio
    async def test_bulk_assign_unknown_lot(self, contact_service, tenant):
        result = await contact_service.bulk_assign_to_lot("ghost", [{"user_id": tenant.id, "type": "tenant"}])
        assert result.error.code == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_remove_lot_contacts_by_user(self, contact_service, lot, tenant, make_user):
        owner = make_user(UserRole.TENANT)
        await contact_service.bulk_assign_to_lot(
            lot.id, [{"user_id": tenant.id, "type": "tenant"}, {"user_id": owner.id, "type": "owner"}]
        )
        assert (await contact_service.remove_lot_contacts(lot.id, [owner.id])).data == 1
        remaining = (await contact_service.get_lot_contacts(lot.id)).data
        assert [c.user_id for c in remaining] == [tenant.id]

    @pytest.mark.asyncio
    async def test_replace_building_contacts(self, contact_service, building, manager, provider):
        await contact_service.bulk_assign_to_building(building.id, [{"user_id": manager.id, "type": "manager"}])
        result = await contact_service.replace_building_contacts(
            building.id, [{"user_id": provider.id, "type": "provider"}]
        )
        assert [c.user_id for c in result.data] == [provider.id]
        current = (await contact_service.get_building_contacts(building.id)).data
        assert [c.user_id for c in current] == [provider.id]

    @pytest.mark.asyncio
    async def test_replace_lot_contacts_with_empty_list(self, contact_service, lot, tenant):
        await contact_service.bulk_assign_to_lot(lot.id, [{"user_id": tenant.id, "type": "tenant"}])
        assert (await contact_service.replace_lot_contacts(lot.id, [])).data == []
        assert (await contact_service.get_lot_contacts(lot.id)).data == []
