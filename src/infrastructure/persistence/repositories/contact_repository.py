"""
Implementation SQLModel du repository Contact.

Couvre les contacts d'equipe et les jointures immeuble-contact / lot-contact,
avec insertion groupee et suppression ciblee par cle composite
(immeuble ou lot, utilisateurs).
"""

from typing import Iterable, Optional

from sqlalchemy import delete
from sqlmodel import select

from src.core.entities import Contact, ContactType, UserStatus
from src.core.ports.repositories import IContactRepository
from src.infrastructure.persistence.models import ContactModel
from src.infrastructure.persistence.repositories.base import SQLModelRepository, entity_values


class SQLModelContactRepository(SQLModelRepository[ContactModel], IContactRepository):
    """Repository SQLModel pour les affectations de contacts."""

    model_class = ContactModel
    table = "contacts"

    def _to_entity(self, model: ContactModel) -> Contact:
        return Contact(
            id=model.id,
            user_id=model.user_id,
            type=ContactType(model.type),
            team_id=model.team_id,
            building_id=model.building_id,
            lot_id=model.lot_id,
            status=UserStatus(model.status),
            is_primary=model.is_primary,
            invited_at=model.invited_at,
            created_at=model.created_at,
        )

    def get_by_id(self, contact_id: str) -> Optional[Contact]:
        model = self._read(lambda: self._get_model(contact_id), "get_by_id")
        return self._to_entity(model) if model else None

    def save(self, contact: Contact) -> Contact:
        return self._to_entity(self._upsert(contact))

    def save_many(self, contacts: Iterable[Contact]) -> list[Contact]:
        """Insere toutes les affectations en un seul commit."""
        models = [
            ContactModel(**{k: v for k, v in entity_values(c).items() if v is not None})
            for c in contacts
        ]

        def operation() -> list[ContactModel]:
            self._session.add_all(models)
            return models

        self._write(operation, "save_many")
        for model in models:
            self._session.refresh(model)
        return [self._to_entity(m) for m in models]

    def delete(self, contact_id: str) -> bool:
        return self._delete_model(contact_id)

    def list_contacts(
        self,
        team_id: Optional[str] = None,
        building_id: Optional[str] = None,
        lot_id: Optional[str] = None,
        contact_type: Optional[ContactType] = None,
    ) -> list[Contact]:
        statement = select(ContactModel)
        if team_id is not None:
            statement = statement.where(ContactModel.team_id == team_id)
        if building_id is not None:
            statement = statement.where(ContactModel.building_id == building_id)
        if lot_id is not None:
            statement = statement.where(ContactModel.lot_id == lot_id)
        if contact_type is not None:
            statement = statement.where(ContactModel.type == ContactType(contact_type).value)
        statement = statement.order_by(ContactModel.is_primary.desc(), ContactModel.created_at)
        models = self._read(lambda: self._session.exec(statement).all(), "list_contacts")
        return [self._to_entity(m) for m in models]

    def delete_for_building(self, building_id: str, user_ids: Optional[Iterable[str]] = None) -> int:
        statement = delete(ContactModel).where(ContactModel.building_id == building_id)
        if user_ids is not None:
            statement = statement.where(ContactModel.user_id.in_(list(user_ids)))
        result = self._write(lambda: self._session.execute(statement), "delete_for_building")
        return result.rowcount

    def delete_for_lot(self, lot_id: str, user_ids: Optional[Iterable[str]] = None) -> int:
        statement = delete(ContactModel).where(ContactModel.lot_id == lot_id)
        if user_ids is not None:
            statement = statement.where(ContactModel.user_id.in_(list(user_ids)))
        result = self._write(lambda: self._session.execute(statement), "delete_for_lot")
        return result.rowcount
