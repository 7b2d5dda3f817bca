"""
Service de gestion des lots.

La reference d'un lot est unique au sein de son immeuble.
"""

from typing import Any, Mapping, Optional

from loguru import logger

from src.core.entities import Lot, LotType, UserRole
from src.core.errors import ConflictError, NotFoundError, ValidationError, validate_required
from src.core.ports.repositories import IBuildingRepository, ILotRepository, IUserRepository
from src.core.result import ServiceResult
from src.utils.helpers import apply_patch, clean_text, coerce_enum, utcnow


class LotService:
    """Service metier des lots."""

    def __init__(
        self,
        repository: ILotRepository,
        building_repository: IBuildingRepository,
        user_repository: IUserRepository,
    ) -> None:
        self._repo = repository
        self._buildings = building_repository
        self._users = user_repository

    async def create(self, data: Mapping[str, Any]) -> ServiceResult[Lot]:
        """
        Cree un lot dans un immeuble existant.

        Args:
            data: building_id, reference (ou name), type, floor, surface_area,
                rent_amount, charges_amount, tenant_id, description
        """
        payload = dict(data)
        payload.setdefault("reference", payload.get("name"))
        validate_required(payload, ("building_id", "reference"))

        building_id = payload["building_id"]
        if self._buildings.get_by_id(building_id) is None:
            return ServiceResult.fail(NotFoundError("Building", building_id))

        reference = clean_text(str(payload["reference"]))
        if self._repo.get_by_reference(building_id, reference) is not None:
            return ServiceResult.fail(
                ConflictError("A lot with this reference already exists in the building", "reference", reference)
            )

        now = utcnow()
        lot = self._repo.save(
            Lot(
                building_id=building_id,
                reference=reference,
                type=coerce_enum(LotType, payload.get("type") or LotType.APARTMENT, "type"),
                floor=payload.get("floor"),
                surface_area=payload.get("surface_area"),
                rent_amount=payload.get("rent_amount"),
                charges_amount=payload.get("charges_amount"),
                tenant_id=payload.get("tenant_id"),
                description=payload.get("description"),
                created_at=now,
                updated_at=now,
            )
        )
        logger.debug(f"Lot cree: {lot.id} ({lot.reference}) dans l'immeuble {building_id}")
        return ServiceResult.ok(lot)

    async def get_by_id(self, lot_id: str) -> ServiceResult[Lot]:
        lot = self._repo.get_by_id(lot_id)
        if lot is None:
            return ServiceResult.fail(NotFoundError("Lot", lot_id))
        return ServiceResult.ok(lot)

    async def get_by_building(self, building_id: str) -> ServiceResult[list[Lot]]:
        return ServiceResult.ok(self._repo.list_by_building(building_id))

    async def update(self, lot_id: str, patch: Mapping[str, Any]) -> ServiceResult[Lot]:
        existing = self._repo.get_by_id(lot_id)
        if existing is None:
            return ServiceResult.fail(NotFoundError("Lot", lot_id))

        changes = dict(patch)
        if "building_id" in changes and changes["building_id"] != existing.building_id:
            raise ValidationError("A lot cannot be moved to another building", "building_id", changes["building_id"])
        if "type" in changes:
            changes["type"] = coerce_enum(LotType, changes["type"], "type")
        if "reference" in changes:
            changes["reference"] = clean_text(str(changes["reference"]))
            other = self._repo.get_by_reference(existing.building_id, changes["reference"])
            if other is not None and other.id != lot_id:
                return ServiceResult.fail(
                    ConflictError(
                        "A lot with this reference already exists in the building", "reference", changes["reference"]
                    )
                )
        updated = apply_patch(existing, changes)
        updated.updated_at = utcnow()
        return ServiceResult.ok(self._repo.save(updated))

    async def delete(self, lot_id: str) -> ServiceResult[bool]:
        if not self._repo.delete(lot_id):
            return ServiceResult.fail(NotFoundError("Lot", lot_id))
        logger.debug(f"Lot supprime: {lot_id}")
        return ServiceResult.ok(True)

    async def assign_tenant(self, lot_id: str, tenant_id: Optional[str]) -> ServiceResult[Lot]:
        """
        Affecte (ou retire avec None) le locataire d'un lot.

        Le locataire doit exister et avoir le role tenant.
        """
        lot = self._repo.get_by_id(lot_id)
        if lot is None:
            return ServiceResult.fail(NotFoundError("Lot", lot_id))
        if tenant_id is not None:
            tenant = self._users.get_by_id(tenant_id)
            if tenant is None:
                return ServiceResult.fail(NotFoundError("User", tenant_id))
            if tenant.role is not UserRole.TENANT:
                raise ValidationError("User is not a tenant", "tenant_id", tenant_id)
        lot.tenant_id = tenant_id
        lot.updated_at = utcnow()
        return ServiceResult.ok(self._repo.save(lot))
