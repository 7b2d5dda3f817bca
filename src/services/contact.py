"""
Service de gestion des contacts.

Un contact est l'affectation typee d'un utilisateur a une equipe, un immeuble
ou un lot. Le service expose aussi les operations groupees sur les jointures
immeuble-contact et lot-contact utilisees par les operations composites.
"""

from typing import Any, Iterable, Mapping, Optional, Sequence

from loguru import logger

from src.core.entities import Contact, ContactType, User, UserRole, UserStatus
from src.core.errors import ConflictError, NotFoundError, ValidationError, validate_email, validate_required
from src.core.ports.repositories import (
    IBuildingRepository,
    IContactRepository,
    ILotRepository,
    IUserRepository,
)
from src.core.result import ServiceResult
from src.utils.helpers import clean_text, coerce_enum, utcnow

# Type de contact deduit du role applicatif (et inversement) quand il manque
_TYPE_FOR_ROLE = {
    UserRole.TENANT: ContactType.TENANT,
    UserRole.PROVIDER: ContactType.PROVIDER,
    UserRole.MANAGER: ContactType.MANAGER,
    UserRole.ADMIN: ContactType.MANAGER,
}
_ROLE_FOR_TYPE = {
    ContactType.TENANT: UserRole.TENANT,
    ContactType.PROVIDER: UserRole.PROVIDER,
    ContactType.MANAGER: UserRole.MANAGER,
}


class ContactService:
    """Service metier des contacts et des affectations immeuble/lot."""

    def __init__(
        self,
        repository: IContactRepository,
        user_repository: IUserRepository,
        building_repository: IBuildingRepository,
        lot_repository: ILotRepository,
    ) -> None:
        self._repo = repository
        self._users = user_repository
        self._buildings = building_repository
        self._lots = lot_repository

    async def create(self, data: Mapping[str, Any]) -> ServiceResult[Contact]:
        """
        Cree un contact d'equipe.

        L'utilisateur est retrouve par son email ou cree a la volee
        (statut pending). Le type de contact et le role applicatif se
        deduisent l'un de l'autre quand un seul est fourni.

        Args:
            data: email, name (ou first_name/last_name), role, type, phone,
                team_id, building_id, lot_id, is_primary
        """
        payload = dict(data)
        validate_required(payload, ("email",))
        payload["email"] = payload["email"].strip().lower()
        validate_email(payload["email"])

        role = coerce_enum(UserRole, payload["role"], "role") if payload.get("role") else None
        contact_type = coerce_enum(ContactType, payload["type"], "type") if payload.get("type") else None
        if contact_type is None and role is not None:
            contact_type = _TYPE_FOR_ROLE[role]
        if role is None and contact_type is not None:
            role = _ROLE_FOR_TYPE.get(contact_type)
        if contact_type is None or role is None:
            raise ValidationError("Field 'role' is required", "role", payload.get("role"))

        user = self._users.get_by_email(payload["email"])
        if user is None:
            user = self._create_user(payload, role)
            logger.debug(f"Utilisateur cree pour le contact: {user.email}")

        existing = self._repo.list_contacts(
            team_id=payload.get("team_id"),
            building_id=payload.get("building_id"),
            lot_id=payload.get("lot_id"),
            contact_type=contact_type,
        )
        if any(c.user_id == user.id for c in existing):
            return ServiceResult.fail(ConflictError("Contact already exists", "email", user.email))

        contact = self._repo.save(
            Contact(
                user_id=user.id,
                type=contact_type,
                team_id=payload.get("team_id"),
                building_id=payload.get("building_id"),
                lot_id=payload.get("lot_id"),
                status=user.status,
                is_primary=bool(payload.get("is_primary", False)),
                created_at=utcnow(),
            )
        )
        return ServiceResult.ok(contact)

    def _create_user(self, payload: Mapping[str, Any], role: UserRole) -> User:
        name = payload.get("name") or " ".join(
            p for p in (payload.get("first_name"), payload.get("last_name")) if p
        )
        now = utcnow()
        return self._users.save(
            User(
                email=payload["email"].strip().lower(),
                name=clean_text(name) or payload["email"],
                role=role,
                status=UserStatus.PENDING,
                phone=payload.get("phone"),
                team_id=payload.get("team_id"),
                created_at=now,
                updated_at=now,
            )
        )

    async def get_by_id(self, contact_id: str) -> ServiceResult[Contact]:
        contact = self._repo.get_by_id(contact_id)
        if contact is None:
            return ServiceResult.fail(NotFoundError("Contact", contact_id))
        return ServiceResult.ok(contact)

    async def get_team_contacts(
        self, team_id: str, contact_type: Optional[ContactType | str] = None
    ) -> ServiceResult[list[Contact]]:
        ctype = coerce_enum(ContactType, contact_type, "type") if contact_type else None
        return ServiceResult.ok(self._repo.list_contacts(team_id=team_id, contact_type=ctype))

    async def delete(self, contact_id: str) -> ServiceResult[bool]:
        if not self._repo.delete(contact_id):
            return ServiceResult.fail(NotFoundError("Contact", contact_id))
        return ServiceResult.ok(True)

    async def invite(self, contact_id: str) -> ServiceResult[Contact]:
        """Marque le contact comme invite (statut pending, horodatage d'invitation)."""
        contact = self._repo.get_by_id(contact_id)
        if contact is None:
            return ServiceResult.fail(NotFoundError("Contact", contact_id))
        contact.invited_at = utcnow()
        contact.status = UserStatus.PENDING
        logger.debug(f"Invitation envoyee au contact {contact_id}")
        return ServiceResult.ok(self._repo.save(contact))

    # ------------------------------------------------------------------
    # Affectations immeuble / lot
    # ------------------------------------------------------------------

    async def get_building_contacts(
        self, building_id: str, contact_type: Optional[ContactType | str] = None
    ) -> ServiceResult[list[Contact]]:
        ctype = coerce_enum(ContactType, contact_type, "type") if contact_type else None
        return ServiceResult.ok(self._repo.list_contacts(building_id=building_id, contact_type=ctype))

    async def get_lot_contacts(
        self, lot_id: str, contact_type: Optional[ContactType | str] = None
    ) -> ServiceResult[list[Contact]]:
        ctype = coerce_enum(ContactType, contact_type, "type") if contact_type else None
        return ServiceResult.ok(self._repo.list_contacts(lot_id=lot_id, contact_type=ctype))

    async def bulk_assign_to_building(
        self, building_id: str, assignments: Sequence[Mapping[str, Any]]
    ) -> ServiceResult[list[Contact]]:
        """
        Affecte plusieurs utilisateurs a un immeuble en une seule insertion.

        Args:
            building_id: Immeuble cible
            assignments: Elements {user_id, type, is_primary}
        """
        if self._buildings.get_by_id(building_id) is None:
            return ServiceResult.fail(NotFoundError("Building", building_id))
        contacts = self._build_assignments(assignments, building_id=building_id)
        if isinstance(contacts, ServiceResult):
            return contacts
        return ServiceResult.ok(self._repo.save_many(contacts) if contacts else [])

    async def bulk_assign_to_lot(
        self, lot_id: str, assignments: Sequence[Mapping[str, Any]]
    ) -> ServiceResult[list[Contact]]:
        """Affecte plusieurs utilisateurs a un lot en une seule insertion."""
        if self._lots.get_by_id(lot_id) is None:
            return ServiceResult.fail(NotFoundError("Lot", lot_id))
        contacts = self._build_assignments(assignments, lot_id=lot_id)
        if isinstance(contacts, ServiceResult):
            return contacts
        return ServiceResult.ok(self._repo.save_many(contacts) if contacts else [])

    async def remove_building_contacts(
        self, building_id: str, user_ids: Optional[Iterable[str]] = None
    ) -> ServiceResult[int]:
        """Retire les affectations d'un immeuble (toutes si user_ids est None)."""
        return ServiceResult.ok(self._repo.delete_for_building(building_id, user_ids))

    async def remove_lot_contacts(
        self, lot_id: str, user_ids: Optional[Iterable[str]] = None
    ) -> ServiceResult[int]:
        return ServiceResult.ok(self._repo.delete_for_lot(lot_id, user_ids))

    async def replace_building_contacts(
        self, building_id: str, assignments: Sequence[Mapping[str, Any]]
    ) -> ServiceResult[list[Contact]]:
        """Remplace l'ensemble des affectations d'un immeuble (suppression puis insertion)."""
        if self._buildings.get_by_id(building_id) is None:
            return ServiceResult.fail(NotFoundError("Building", building_id))
        contacts = self._build_assignments(assignments, building_id=building_id)
        if isinstance(contacts, ServiceResult):
            return contacts
        self._repo.delete_for_building(building_id)
        return ServiceResult.ok(self._repo.save_many(contacts) if contacts else [])

    async def replace_lot_contacts(
        self, lot_id: str, assignments: Sequence[Mapping[str, Any]]
    ) -> ServiceResult[list[Contact]]:
        """Remplace l'ensemble des affectations d'un lot."""
        if self._lots.get_by_id(lot_id) is None:
            return ServiceResult.fail(NotFoundError("Lot", lot_id))
        contacts = self._build_assignments(assignments, lot_id=lot_id)
        if isinstance(contacts, ServiceResult):
            return contacts
        self._repo.delete_for_lot(lot_id)
        return ServiceResult.ok(self._repo.save_many(contacts) if contacts else [])

    def _build_assignments(
        self,
        assignments: Sequence[Mapping[str, Any]],
        building_id: Optional[str] = None,
        lot_id: Optional[str] = None,
    ) -> list[Contact] | ServiceResult:
        """Construit les affectations ; renvoie un echec si un utilisateur est inconnu."""
        now = utcnow()
        contacts = []
        for item in assignments:
            validate_required(item, ("user_id", "type"))
            if self._users.get_by_id(item["user_id"]) is None:
                return ServiceResult.fail(NotFoundError("User", item["user_id"]))
            contacts.append(
                Contact(
                    user_id=item["user_id"],
                    type=coerce_enum(ContactType, item["type"], "type"),
                    building_id=building_id,
                    lot_id=lot_id,
                    is_primary=bool(item.get("is_primary", False)),
                    created_at=now,
                )
            )
        return contacts
