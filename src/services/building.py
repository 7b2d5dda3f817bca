"""
Service de gestion des immeubles.

Le nom d'un immeuble est unique au sein de son equipe.
"""

from typing import Any, Mapping

from loguru import logger

from src.core.entities import Building
from src.core.errors import ConflictError, NotFoundError, validate_required
from src.core.ports.repositories import IBuildingRepository, ITeamRepository
from src.core.result import ServiceResult
from src.utils.helpers import apply_patch, clean_text, utcnow

REQUIRED_FIELDS = ("name", "address", "city", "postal_code", "team_id")


class BuildingService:
    """Service metier des immeubles."""

    def __init__(self, repository: IBuildingRepository, team_repository: ITeamRepository) -> None:
        self._repo = repository
        self._teams = team_repository

    async def create(self, data: Mapping[str, Any]) -> ServiceResult[Building]:
        """
        Cree un immeuble.

        Args:
            data: name, address, city, postal_code, team_id, country,
                created_by, description
        """
        validate_required(data, REQUIRED_FIELDS)
        team_id = data["team_id"]
        if self._teams.get_by_id(team_id) is None:
            return ServiceResult.fail(NotFoundError("Team", team_id))

        name = clean_text(data["name"])
        if self._repo.get_by_name(team_id, name) is not None:
            return ServiceResult.fail(
                ConflictError("A building with this name already exists in the team", "name", name)
            )

        now = utcnow()
        building = self._repo.save(
            Building(
                name=name,
                address=clean_text(data["address"]),
                city=clean_text(data["city"]),
                postal_code=str(data["postal_code"]).strip(),
                country=data.get("country") or "France",
                team_id=team_id,
                created_by=data.get("created_by"),
                description=data.get("description"),
                created_at=now,
                updated_at=now,
            )
        )
        logger.debug(f"Immeuble cree: {building.id} ({building.name})")
        return ServiceResult.ok(building)

    async def get_by_id(self, building_id: str) -> ServiceResult[Building]:
        building = self._repo.get_by_id(building_id)
        if building is None:
            return ServiceResult.fail(NotFoundError("Building", building_id))
        return ServiceResult.ok(building)

    async def get_by_team(self, team_id: str) -> ServiceResult[list[Building]]:
        return ServiceResult.ok(self._repo.list_by_team(team_id))

    async def update(self, building_id: str, patch: Mapping[str, Any]) -> ServiceResult[Building]:
        existing = self._repo.get_by_id(building_id)
        if existing is None:
            return ServiceResult.fail(NotFoundError("Building", building_id))

        changes = dict(patch)
        if "name" in changes:
            changes["name"] = clean_text(changes["name"])
            other = self._repo.get_by_name(existing.team_id, changes["name"])
            if other is not None and other.id != building_id:
                return ServiceResult.fail(
                    ConflictError("A building with this name already exists in the team", "name", changes["name"])
                )
        updated = apply_patch(existing, changes)
        updated.updated_at = utcnow()
        return ServiceResult.ok(self._repo.save(updated))

    async def delete(self, building_id: str) -> ServiceResult[bool]:
        """Supprime l'immeuble, ses lots et ses affectations de contacts."""
        if not self._repo.delete(building_id):
            return ServiceResult.fail(NotFoundError("Building", building_id))
        logger.debug(f"Immeuble supprime: {building_id}")
        return ServiceResult.ok(True)
