"""
Implementation SQLModel du repository Building.

La suppression d'un immeuble retire aussi ses lots et les affectations
de contacts de l'immeuble et de ses lots.
"""

from typing import Optional

from sqlalchemy import delete
from sqlmodel import select

from src.core.entities import Building
from src.core.ports.repositories import IBuildingRepository
from src.infrastructure.persistence.models import BuildingModel, ContactModel, LotModel
from src.infrastructure.persistence.repositories.base import SQLModelRepository


class SQLModelBuildingRepository(SQLModelRepository[BuildingModel], IBuildingRepository):
    """Repository SQLModel pour les immeubles."""

    model_class = BuildingModel
    table = "buildings"

    def _to_entity(self, model: BuildingModel) -> Building:
        return Building(
            id=model.id,
            name=model.name,
            address=model.address,
            city=model.city,
            postal_code=model.postal_code,
            country=model.country,
            team_id=model.team_id,
            created_by=model.created_by,
            description=model.description,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def get_by_id(self, building_id: str) -> Optional[Building]:
        model = self._read(lambda: self._get_model(building_id), "get_by_id")
        return self._to_entity(model) if model else None

    def get_by_name(self, team_id: str, name: str) -> Optional[Building]:
        statement = select(BuildingModel).where(
            BuildingModel.team_id == team_id, BuildingModel.name == name
        )
        model = self._read(lambda: self._session.exec(statement).first(), "get_by_name")
        return self._to_entity(model) if model else None

    def list_by_team(self, team_id: str) -> list[Building]:
        statement = select(BuildingModel).where(BuildingModel.team_id == team_id).order_by(BuildingModel.name)
        models = self._read(lambda: self._session.exec(statement).all(), "list_by_team")
        return [self._to_entity(m) for m in models]

    def save(self, building: Building) -> Building:
        return self._to_entity(self._upsert(building))

    def delete(self, building_id: str) -> bool:
        def operation() -> bool:
            model = self._get_model(building_id)
            if model is None:
                return False
            lot_ids = select(LotModel.id).where(LotModel.building_id == building_id)
            self._session.execute(delete(ContactModel).where(ContactModel.lot_id.in_(lot_ids)))
            self._session.execute(delete(ContactModel).where(ContactModel.building_id == building_id))
            self._session.execute(delete(LotModel).where(LotModel.building_id == building_id))
            self._session.delete(model)
            return True

        return self._write(operation, "delete")
