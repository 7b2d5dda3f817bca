"""
Service de gestion des utilisateurs.

CRUD avec validation des champs obligatoires, du format de l'email,
du role et de l'unicite de l'email.
"""

from typing import Any, Mapping

from loguru import logger

from src.core.entities import User, UserRole, UserStatus
from src.core.errors import ConflictError, NotFoundError, validate_email, validate_required
from src.core.ports.repositories import IUserRepository
from src.core.result import ServiceResult
from src.utils.helpers import apply_patch, clean_text, coerce_enum, utcnow


class UserService:
    """
    Service metier des utilisateurs.

    Les conditions attendues (utilisateur absent, email deja utilise) sont
    renvoyees comme ServiceResult en echec ; les entrees invalides levent
    ValidationError.
    """

    def __init__(self, repository: IUserRepository) -> None:
        self._repo = repository

    async def create(self, data: Mapping[str, Any]) -> ServiceResult[User]:
        """
        Cree un utilisateur.

        Le nom peut etre fourni directement (name) ou via first_name/last_name.

        Args:
            data: email, name (ou first_name/last_name), role, phone, status, team_id
        """
        payload = dict(data)
        if not payload.get("name"):
            parts = [payload.get("first_name"), payload.get("last_name")]
            payload["name"] = " ".join(p for p in parts if p) or None
        validate_required(payload, ("email", "name", "role"))
        email = payload["email"].strip().lower()
        validate_email(email)
        role = coerce_enum(UserRole, payload["role"], "role")
        status = coerce_enum(UserStatus, payload.get("status", UserStatus.ACTIVE), "status")

        if self._repo.get_by_email(email) is not None:
            return ServiceResult.fail(ConflictError("User with this email already exists", "email", email))

        now = utcnow()
        user = self._repo.save(
            User(
                email=email,
                name=clean_text(payload["name"]),
                role=role,
                status=status,
                phone=payload.get("phone"),
                team_id=payload.get("team_id"),
                created_at=now,
                updated_at=now,
            )
        )
        logger.debug(f"Utilisateur cree: {user.id} ({user.email})")
        return ServiceResult.ok(user)

    async def get_by_id(self, user_id: str) -> ServiceResult[User]:
        user = self._repo.get_by_id(user_id)
        if user is None:
            return ServiceResult.fail(NotFoundError("User", user_id))
        return ServiceResult.ok(user)

    async def get_by_email(self, email: str) -> ServiceResult[User]:
        user = self._repo.get_by_email(email)
        if user is None:
            return ServiceResult.fail(NotFoundError("User", email))
        return ServiceResult.ok(user)

    async def get_all(self) -> ServiceResult[list[User]]:
        return ServiceResult.ok(self._repo.list_all())

    async def get_by_team(self, team_id: str) -> ServiceResult[list[User]]:
        return ServiceResult.ok(self._repo.list_by_team(team_id))

    async def update(self, user_id: str, patch: Mapping[str, Any]) -> ServiceResult[User]:
        """Met a jour un utilisateur ; l'unicite de l'email est reverifiee."""
        existing = self._repo.get_by_id(user_id)
        if existing is None:
            return ServiceResult.fail(NotFoundError("User", user_id))

        changes = dict(patch)
        if "email" in changes:
            changes["email"] = str(changes["email"]).strip().lower()
            validate_email(changes["email"])
            other = self._repo.get_by_email(changes["email"])
            if other is not None and other.id != user_id:
                return ServiceResult.fail(
                    ConflictError("User with this email already exists", "email", changes["email"])
                )
        if "role" in changes:
            changes["role"] = coerce_enum(UserRole, changes["role"], "role")
        if "status" in changes:
            changes["status"] = coerce_enum(UserStatus, changes["status"], "status")

        updated = apply_patch(existing, changes)
        updated.updated_at = utcnow()
        return ServiceResult.ok(self._repo.save(updated))

    async def delete(self, user_id: str) -> ServiceResult[bool]:
        if not self._repo.delete(user_id):
            return ServiceResult.fail(NotFoundError("User", user_id))
        logger.debug(f"Utilisateur supprime: {user_id}")
        return ServiceResult.ok(True)
