"""
Tests unitaires pour UserService.

Verifie la validation des champs, l'unicite de l'email et le CRUD.
"""

import pytest

from src.core.entities import UserRole, UserStatus
from src.core.errors import ValidationError


class TestCreate:
    """Tests pour UserService.create."""

    @pytest.mark.asyncio
    async def test_create_normalizes_email(self, user_service):
        result = await user_service.create({"email": "Jeanne.Martin@Example.FR ", "name": "Jeanne Martin",
                                            "role": "tenant"})
        assert result.success
        assert result.data.email == "jeanne.martin@example.fr"
        assert result.data.role is UserRole.TENANT
        assert result.data.status is UserStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_surrounding_whitespace_is_not_invalid(self, user_service):
        result = await user_service.create({"email": " jeanne@example.fr\t", "name": "Jeanne", "role": "tenant"})
        assert result.data.email == "jeanne@example.fr"

    @pytest.mark.asyncio
    async def test_name_built_from_first_and_last_name(self, user_service):
        result = await user_service.create(
            {"email": "p@example.fr", "first_name": "Paul", "last_name": "Durand", "role": "manager"}
        )
        assert result.data.name == "Paul Durand"

    @pytest.mark.asyncio
    async def test_missing_name_raises(self, user_service):
        with pytest.raises(ValidationError, match="Field 'name' is required"):
            await user_service.create({"email": "p@example.fr", "role": "manager"})

    @pytest.mark.asyncio
    async def test_invalid_email_raises(self, user_service):
        with pytest.raises(ValidationError, match="Invalid email format"):
            await user_service.create({"email": "nope", "name": "X", "role": "tenant"})

    @pytest.mark.asyncio
    async def test_invalid_role_raises(self, user_service):
        with pytest.raises(ValidationError) as exc:
            await user_service.create({"email": "x@example.fr", "name": "X", "role": "janitor"})
        assert exc.value.field == "role"

    @pytest.mark.asyncio
    async def test_duplicate_email_is_conflict(self, user_service, tenant):
        result = await user_service.create({"email": tenant.email.upper(), "name": "Dup", "role": "tenant"})
        assert not result.success
        assert result.error.code == "CONFLICT"
        assert result.error.message == "User with this email already exists"


class TestReadUpdateDelete:
    """Tests pour les lectures, la mise a jour et la suppression."""

    @pytest.mark.asyncio
    async def test_get_by_id_not_found(self, user_service):
        result = await user_service.get_by_id("missing")
        assert not result.success
        assert result.error.code == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_get_by_email(self, user_service, tenant):
        assert (await user_service.get_by_email(tenant.email)).data.id == tenant.id

    @pytest.mark.asyncio
    async def test_update_fields(self, user_service, tenant):
        result = await user_service.update(tenant.id, {"phone": "0601020304", "status": "inactive"})
        assert result.data.phone == "0601020304"
        assert result.data.status is UserStatus.INACTIVE

    @pytest.mark.asyncio
    async def test_update_email_conflict(self, user_service, tenant, manager):
        result = await user_service.update(tenant.id, {"email": manager.email})
        assert result.error.code == "CONFLICT"

    @pytest.mark.asyncio
    async def test_update_id_is_refused(self, user_service, tenant):
        with pytest.raises(ValidationError, match="cannot be modified"):
            await user_service.update(tenant.id, {"id": "other"})

    @pytest.mark.asyncio
    async def test_get_by_team(self, user_service, make_user):
        make_user(team_id="t1")
        make_user(team_id="t2")
        assert len((await user_service.get_by_team("t1")).data) == 1

    @pytest.mark.asyncio
    async def test_delete(self, user_service, tenant):
        assert (await user_service.delete(tenant.id)).success
        assert (await user_service.delete(tenant.id)).error.code == "NOT_FOUND"
