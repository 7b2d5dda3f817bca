"""
Operations composites sur un bien complet : immeuble, lots et contacts.
"""

import asyncio
from functools import partial
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable

from loguru import logger

from src.core.errors import ValidationError

from .dataclasses import (
    CompletePropertyData,
    CompositeOperationResult,
    CreateCompletePropertyData,
    OperationType,
    UpdateCompletePropertyData,
    UpdatedPropertyData,
)
from .journal import CompositeStepError, OperationJournal

if TYPE_CHECKING:
    from src.services.building import BuildingService
    from src.services.contact import ContactService
    from src.services.lot import LotService


def _user_ids(assignments: Iterable[dict[str, Any]]) -> list[str]:
    return [a["user_id"] for a in assignments]


class PropertyStepMixin:
    """Mixin pour la creation et la synchronisation d'un bien complet."""

    _buildings: "BuildingService"
    _lots: "LotService"
    _contacts: "ContactService"

    async def create_complete_property(
        self, data: CreateCompletePropertyData
    ) -> CompositeOperationResult[CompletePropertyData]:
        """
        Cree un immeuble, ses contacts, ses lots puis les contacts des lots.

        En cas d'echec, la compensation supprime dans l'ordre inverse les
        contacts des lots, les lots, les contacts de l'immeuble et l'immeuble.

        Raises:
            ValidationError: lot_contacts reference une position de lot inexistante
        """
        for index in data.lot_contacts:
            if not 0 <= index < len(data.lots):
                raise ValidationError(f"No lot at position {index}", "lot_contacts", index)

        journal: OperationJournal = self._new_journal()
        out = CompletePropertyData()
        try:
            out.building = await journal.run_step(
                OperationType.CREATE,
                "building",
                "building",
                partial(self._buildings.create, data.building),
                data=data.building,
            )

            if data.building_contacts:
                out.building_contacts = await journal.run_step(
                    OperationType.CREATE,
                    "contact",
                    "building_contact",
                    partial(self._contacts.bulk_assign_to_building, out.building.id, data.building_contacts),
                    data={"building_id": out.building.id, "user_ids": _user_ids(data.building_contacts)},
                    entity_id=out.building.id,
                )

            await self._create_lots(journal, out.building.id, data.lots, out.lots)

            for index, assignments in sorted(data.lot_contacts.items()):
                if not assignments:
                    continue
                lot = out.lots[index]
                out.lot_contacts[lot.id] = await journal.run_step(
                    OperationType.CREATE,
                    "contact",
                    "lot_contact",
                    partial(self._contacts.bulk_assign_to_lot, lot.id, assignments),
                    data={"lot_id": lot.id, "lot_index": index, "user_ids": _user_ids(assignments)},
                    entity_id=lot.id,
                )
        except CompositeStepError as e:
            return await self._abort(journal, out, e)

        logger.info(f"Bien complet cree: {out.building.id} ({len(out.lots)} lot(s))")
        return journal.result(True, out)

    async def update_complete_property(
        self, data: UpdateCompletePropertyData
    ) -> CompositeOperationResult[UpdatedPropertyData]:
        """
        Synchronisation differentielle d'un bien.

        Phases : immeuble, contacts de l'immeuble, puis suppressions, mises a
        jour et creations de lots (chacune en parallele), puis contacts des
        lots. Aucune compensation n'est tentee : au premier echec, les phases
        suivantes sont abandonnees et une reconciliation manuelle est requise.

        Raises:
            ValidationError: new_lot_contacts reference une position inexistante
        """
        for index in data.new_lot_contacts:
            if not 0 <= index < len(data.lots_to_create):
                raise ValidationError(f"No lot to create at position {index}", "new_lot_contacts", index)

        journal: OperationJournal = self._new_journal()
        out = UpdatedPropertyData()
        building_id = data.building_id

        async def run_phase(keys: list[Any], steps: list[Awaitable[Any]], collect: Callable[[Any, Any], None]) -> None:
            # Les succes sont consignes dans out avant de relever le premier echec
            outcomes = await asyncio.gather(*steps, return_exceptions=True)
            failures = [o for o in outcomes if isinstance(o, BaseException)]
            for key, outcome in zip(keys, outcomes):
                if not isinstance(outcome, BaseException):
                    collect(key, outcome)
            if failures:
                raise failures[0]

        try:
            if data.building:
                out.building = await journal.run_step(
                    OperationType.UPDATE,
                    "building",
                    "building",
                    partial(self._buildings.update, building_id, data.building),
                    data=data.building,
                    entity_id=building_id,
                )

            if data.building_contacts is not None:
                out.building_contacts = await journal.run_step(
                    OperationType.UPDATE,
                    "contact",
                    "building_contact",
                    partial(self._contacts.replace_building_contacts, building_id, data.building_contacts),
                    data={"building_id": building_id, "user_ids": _user_ids(data.building_contacts)},
                    entity_id=building_id,
                )

            await run_phase(
                data.lots_to_delete,
                [
                    journal.run_step(
                        OperationType.DELETE, "lot", "lot", partial(self._lots.delete, lot_id), entity_id=lot_id
                    )
                    for lot_id in data.lots_to_delete
                ],
                lambda lot_id, _: out.deleted_lot_ids.append(lot_id),
            )

            await run_phase(
                list(data.lots_to_update),
                [
                    journal.run_step(
                        OperationType.UPDATE,
                        "lot",
                        "lot",
                        partial(self._lots.update, lot_id, patch),
                        data=patch,
                        entity_id=lot_id,
                    )
                    for lot_id, patch in data.lots_to_update.items()
                ],
                lambda _, lot: out.updated_lots.append(lot),
            )

            payloads = [{**lot_data, "building_id": building_id} for lot_data in data.lots_to_create]
            await run_phase(
                payloads,
                [
                    journal.run_step(OperationType.CREATE, "lot", "lot", partial(self._lots.create, p), data=p)
                    for p in payloads
                ],
                lambda _, lot: out.created_lots.append(lot),
            )

            lot_contacts = dict(data.lot_contacts)
            for index, assignments in data.new_lot_contacts.items():
                lot_contacts[out.created_lots[index].id] = assignments

            await run_phase(
                list(lot_contacts),
                [
                    journal.run_step(
                        OperationType.UPDATE,
                        "contact",
                        "lot_contact",
                        partial(self._contacts.replace_lot_contacts, lot_id, assignments),
                        data={"lot_id": lot_id, "user_ids": _user_ids(assignments)},
                        entity_id=lot_id,
                    )
                    for lot_id, assignments in lot_contacts.items()
                ],
                out.lot_contacts.__setitem__,
            )
        except CompositeStepError as e:
            logger.warning(
                f"Mise a jour du bien {building_id} interrompue sans compensation, "
                f"reconciliation manuelle requise: {e.error.message}"
            )
            return journal.result(False, out, error=e.error)

        logger.info(f"Bien {building_id} synchronise")
        return journal.result(True, out)
