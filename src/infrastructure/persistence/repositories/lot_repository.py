"""
Implementation SQLModel du repository Lot.
"""

from typing import Optional

from sqlalchemy import delete
from sqlmodel import select

from src.core.entities import Lot, LotType
from src.core.ports.repositories import ILotRepository
from src.infrastructure.persistence.models import ContactModel, LotModel
from src.infrastructure.persistence.repositories.base import SQLModelRepository


class SQLModelLotRepository(SQLModelRepository[LotModel], ILotRepository):
    """Repository SQLModel pour les lots."""

    model_class = LotModel
    table = "lots"

    def _to_entity(self, model: LotModel) -> Lot:
        return Lot(
            id=model.id,
            building_id=model.building_id,
            reference=model.reference,
            type=LotType(model.type),
            floor=model.floor,
            surface_area=model.surface_area,
            rent_amount=model.rent_amount,
            charges_amount=model.charges_amount,
            tenant_id=model.tenant_id,
            description=model.description,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def get_by_id(self, lot_id: str) -> Optional[Lot]:
        model = self._read(lambda: self._get_model(lot_id), "get_by_id")
        return self._to_entity(model) if model else None

    def get_by_reference(self, building_id: str, reference: str) -> Optional[Lot]:
        statement = select(LotModel).where(
            LotModel.building_id == building_id, LotModel.reference == reference
        )
        model = self._read(lambda: self._session.exec(statement).first(), "get_by_reference")
        return self._to_entity(model) if model else None

    def list_by_building(self, building_id: str) -> list[Lot]:
        statement = select(LotModel).where(LotModel.building_id == building_id).order_by(LotModel.reference)
        models = self._read(lambda: self._session.exec(statement).all(), "list_by_building")
        return [self._to_entity(m) for m in models]

    def save(self, lot: Lot) -> Lot:
        return self._to_entity(self._upsert(lot))

    def delete(self, lot_id: str) -> bool:
        """Supprime le lot et ses affectations de contacts."""

        def operation() -> bool:
            model = self._get_model(lot_id)
            if model is None:
                return False
            self._session.execute(delete(ContactModel).where(ContactModel.lot_id == lot_id))
            self._session.delete(model)
            return True

        return self._write(operation, "delete")
