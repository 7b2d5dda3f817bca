"""
Service d'orchestration des operations composites.

Ce service enchaine des appels a plusieurs services d'entites comme une
seule unite logique :
- creation complete d'un utilisateur (equipe, immeuble, lots)
- creation complete d'un immeuble et de ses lots
- invitation de contacts d'equipe (en eventail, sans compensation)
- transfert du locataire d'un lot
- operations groupees sur les utilisateurs
- statistiques agregees multi-sources

Chaque etape est journalisee ; en cas d'echec, les creations deja realisees
sont compensees en ordre inverse (best-effort, sans transaction sous-jacente).
"""

import asyncio
from datetime import datetime
from functools import partial
from typing import Callable, Optional

from loguru import logger

from src.core.errors import DomainError, ErrorCode, NotFoundError, ServiceError, ValidationError, to_service_error
from src.services.building import BuildingService
from src.services.contact import ContactService
from src.services.lot import LotService
from src.services.team import TeamService
from src.services.user import UserService

from .dataclasses import (
    STATS_PERIODS,
    BulkItemResult,
    BulkResultsData,
    BulkUserOperationsData,
    CompleteBuildingData,
    CompleteUserData,
    CompositeOperationResult,
    CompositeStats,
    CompositeStatsRequest,
    CreateCompleteBuildingData,
    CreateCompleteUserData,
    Invitation,
    InvitationsData,
    InviteTeamContactsData,
    OperationType,
    TransferData,
    TransferLotTenantData,
)
from .journal import Compensation, CompositeStepError, OperationJournal
from .property_step import PropertyStepMixin


def _partial_failure(message: str, errors: list[ServiceError]) -> ServiceError:
    return ServiceError(
        code=ErrorCode.PARTIAL_FAILURE.value,
        message=message,
        details={"failed": len(errors), "errors": [e.message for e in errors]},
    )


class CompositeService(PropertyStepMixin):
    """
    Orchestrateur des operations multi-services.

    Chaque appel cree son propre OperationJournal ; aucun etat mutable n'est
    partage entre deux appels.

    Utilisation typique:
        composite = CompositeService(users, buildings, lots, teams, contacts)
        result = await composite.create_complete_building(data)
        if not result.success:
            for err in result.rollback_errors:
                ...  # reconciliation manuelle
    """

    def __init__(
        self,
        user_service: UserService,
        building_service: BuildingService,
        lot_service: LotService,
        team_service: TeamService,
        contact_service: ContactService,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """
        Initialise l'orchestrateur.

        Args:
            user_service: Service des utilisateurs
            building_service: Service des immeubles
            lot_service: Service des lots
            team_service: Service des equipes
            contact_service: Service des contacts et affectations
            id_factory: Generateur d'identifiants d'etape (tests)
            clock: Horloge des horodatages du journal (tests)
        """
        self._users = user_service
        self._buildings = building_service
        self._lots = lot_service
        self._teams = team_service
        self._contacts = contact_service
        self._id_factory = id_factory
        self._clock = clock

        # Compensation de chaque creation, indexee par (service, entite)
        self._compensations: dict[tuple[str, str], Compensation] = {
            ("user", "user"): lambda op: self._users.delete(op.entity_id),
            ("team", "team"): lambda op: self._teams.delete(op.entity_id),
            ("building", "building"): lambda op: self._buildings.delete(op.entity_id),
            ("lot", "lot"): lambda op: self._lots.delete(op.entity_id),
            ("contact", "contact"): lambda op: self._contacts.delete(op.entity_id),
            ("contact", "building_contact"): lambda op: self._contacts.remove_building_contacts(
                op.data["building_id"], op.data["user_ids"]
            ),
            ("contact", "lot_contact"): lambda op: self._contacts.remove_lot_contacts(
                op.data["lot_id"], op.data["user_ids"]
            ),
        }

    def _new_journal(self) -> OperationJournal:
        return OperationJournal(self._id_factory, self._clock)

    async def _abort(
        self, journal: OperationJournal, data, error: CompositeStepError
    ) -> CompositeOperationResult:
        """Compense les etapes terminees et construit le resultat en echec."""
        logger.warning(f"Operation composite interrompue: {error.error.message}")
        await journal.rollback(self._compensations)
        if journal.rollback_errors:
            logger.error(
                f"{len(journal.rollback_errors)} compensation(s) en echec, reconciliation manuelle requise"
            )
        return journal.result(False, data, error=error.error)

    async def create_complete_user(self, data: CreateCompleteUserData) -> CompositeOperationResult[CompleteUserData]:
        """
        Cree un utilisateur puis, si demandes, son equipe, un immeuble et des lots.

        Ordre : user -> team -> user.team_id -> building -> lots. L'immeuble
        n'est cree que si une equipe l'est aussi. En cas d'echec, les
        creations sont compensees en ordre inverse (la mise a jour de
        l'utilisateur n'est pas compensee).
        """
        journal = self._new_journal()
        out = CompleteUserData()
        try:
            out.user = await journal.run_step(
                OperationType.CREATE, "user", "user", partial(self._users.create, data.user), data=data.user
            )

            if data.team:
                team_payload = {**data.team, "created_by": out.user.id}
                out.team = await journal.run_step(
                    OperationType.CREATE, "team", "team", partial(self._teams.create, team_payload), data=team_payload
                )
                patch = {"team_id": out.team.id}
                out.user = await journal.run_step(
                    OperationType.UPDATE,
                    "user",
                    "user",
                    partial(self._users.update, out.user.id, patch),
                    data=patch,
                    entity_id=out.user.id,
                )

            if data.building and out.team:
                building_payload = {**data.building, "team_id": out.team.id, "created_by": out.user.id}
                out.building = await journal.run_step(
                    OperationType.CREATE,
                    "building",
                    "building",
                    partial(self._buildings.create, building_payload),
                    data=building_payload,
                )
                await self._create_lots(journal, out.building.id, data.lots, out.lots)
        except CompositeStepError as e:
            return await self._abort(journal, out, e)

        logger.info(f"Utilisateur complet cree: {out.user.id}")
        return journal.result(True, out)

    async def create_complete_building(
        self, data: CreateCompleteBuildingData
    ) -> CompositeOperationResult[CompleteBuildingData]:
        """
        Cree un immeuble et ses lots.

        Les lots sont crees l'un apres l'autre ; le premier echec arrete les
        creations restantes et compense les lots deja crees puis l'immeuble.
        """
        journal = self._new_journal()
        out = CompleteBuildingData()
        try:
            out.building = await journal.run_step(
                OperationType.CREATE,
                "building",
                "building",
                partial(self._buildings.create, data.building),
                data=data.building,
            )
            await self._create_lots(journal, out.building.id, data.lots, out.lots)
        except CompositeStepError as e:
            return await self._abort(journal, out, e)

        logger.info(f"Immeuble complet cree: {out.building.id} ({len(out.lots)} lot(s))")
        return journal.result(True, out)

    async def _create_lots(self, journal: OperationJournal, building_id: str, lots_data, created: list) -> None:
        """Cree les lots en sequence ; chaque lot cree est ajoute a created."""
        for lot_data in lots_data:
            payload = {**lot_data, "building_id": building_id}
            lot = await journal.run_step(
                OperationType.CREATE, "lot", "lot", partial(self._lots.create, payload), data=payload
            )
            created.append(lot)

    async def invite_team_contacts(
        self, data: InviteTeamContactsData
    ) -> CompositeOperationResult[InvitationsData]:
        """
        Cree et invite des contacts d'equipe.

        Chaque contact est traite independamment (en parallele) ; un echec
        n'entraine aucune compensation des autres contacts.
        """
        journal = self._new_journal()

        async def invite_one(contact_data: dict) -> tuple[Invitation, Optional[ServiceError]]:
            payload = {**contact_data, "team_id": data.team_id, "created_by": data.invited_by}
            contact = await journal.run_step(
                OperationType.CREATE, "contact", "contact", partial(self._contacts.create, payload), data=payload
            )
            try:
                await journal.run_step(
                    OperationType.UPDATE,
                    "contact",
                    "invitation",
                    partial(self._contacts.invite, contact.id),
                    entity_id=contact.id,
                )
            except CompositeStepError as e:
                return Invitation(contact=contact, invited=False), e.error
            return Invitation(contact=contact, invited=True), None

        outcomes = await asyncio.gather(
            *(invite_one(c) for c in data.contacts), return_exceptions=True
        )

        invitations: list[Invitation] = []
        errors: list[ServiceError] = []
        for outcome in outcomes:
            if isinstance(outcome, CompositeStepError):
                errors.append(outcome.error)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                invitation, error = outcome
                invitations.append(invitation)
                if error is not None:
                    errors.append(error)

        out = InvitationsData(invitations=invitations)
        if errors:
            return journal.result(
                False,
                out,
                error=_partial_failure("Some contact invitations failed", errors),
                partial_success=bool(invitations),
            )
        return journal.result(True, out)

    async def transfer_lot_tenant(self, data: TransferLotTenantData) -> CompositeOperationResult[TransferData]:
        """
        Transfere un lot d'un locataire a un autre.

        Le locataire actuel doit correspondre a from_tenant_id ; rien n'est
        modifie si une verification echoue.
        """
        journal = self._new_journal()
        try:
            lot_result = await self._lots.get_by_id(data.lot_id)
            if not lot_result.success:
                raise NotFoundError("Lot", data.lot_id)
            lot = lot_result.data

            if lot.tenant_id != data.from_tenant_id:
                raise ValidationError("Current tenant mismatch", "from_tenant_id", data.from_tenant_id)

            if data.from_tenant_id is not None:
                if not (await self._users.get_by_id(data.from_tenant_id)).success:
                    raise NotFoundError("User", data.from_tenant_id)
            if not (await self._users.get_by_id(data.to_tenant_id)).success:
                raise NotFoundError("User", data.to_tenant_id)

            lot = await journal.run_step(
                OperationType.UPDATE,
                "lot",
                "tenant_assignment",
                partial(self._lots.assign_tenant, data.lot_id, data.to_tenant_id),
                data={"tenant_id": data.to_tenant_id},
                entity_id=data.lot_id,
            )
        except CompositeStepError as e:
            return journal.result(False, TransferData(), error=e.error)
        except DomainError as e:
            return journal.result(False, TransferData(), error=to_service_error(e))

        logger.info(
            f"Lot {data.lot_id} transfere de {data.from_tenant_id} a {data.to_tenant_id} par {data.transferred_by}"
        )
        return journal.result(True, TransferData(lot=lot))

    async def bulk_user_operations(
        self, data: BulkUserOperationsData
    ) -> CompositeOperationResult[BulkResultsData]:
        """
        Execute une liste heterogene d'operations sur les utilisateurs.

        Chaque operation est independante et rapportee individuellement.
        """
        journal = self._new_journal()
        results: list[BulkItemResult] = []

        for item in data.operations:
            try:
                op_type = OperationType(item.type)
                if op_type is OperationType.READ:
                    raise ValueError
            except ValueError:
                results.append(BulkItemResult(False, error=to_service_error(
                    ValidationError(f"Invalid operation type: {item.type}", "type", item.type)
                )))
                continue

            if op_type is not OperationType.CREATE and not item.id:
                results.append(BulkItemResult(False, error=to_service_error(
                    ValidationError(f"ID required for {op_type.value} operation", "id", None)
                )))
                continue

            if op_type is OperationType.CREATE:
                call = partial(self._users.create, item.data or {})
            elif op_type is OperationType.UPDATE:
                call = partial(self._users.update, item.id, item.data or {})
            else:
                call = partial(self._users.delete, item.id)

            try:
                produced = await journal.run_step(op_type, "user", "user", call, data=item.data, entity_id=item.id)
            except CompositeStepError as e:
                results.append(BulkItemResult(False, error=e.error))
            else:
                results.append(BulkItemResult(True, data=produced))

        errors = [r.error for r in results if not r.success]
        out = BulkResultsData(results=results)
        if errors:
            return journal.result(
                False,
                out,
                error=_partial_failure("Some operations failed", errors),
                partial_success=any(r.success for r in results),
            )
        logger.info(f"{len(results)} operation(s) utilisateur executee(s) par {data.performed_by}")
        return journal.result(True, out)

    async def get_composite_stats(
        self, request: CompositeStatsRequest
    ) -> CompositeOperationResult[CompositeStats]:
        """
        Agrege equipe, immeubles et utilisateurs d'une equipe.

        Les trois sources sont lues en parallele ; l'echec de l'une n'empeche
        pas les autres d'alimenter le resultat.
        """
        journal = self._new_journal()
        stats = CompositeStats(period=request.period)
        if request.period not in STATS_PERIODS:
            error = ValidationError(
                f"Invalid period '{request.period}': expected one of {', '.join(STATS_PERIODS)}",
                "period",
                request.period,
            )
            return journal.result(False, stats, error=to_service_error(error))

        sources = (
            ("team", partial(self._teams.get_by_id, request.team_id)),
            ("building", partial(self._buildings.get_by_team, request.team_id)),
            ("user", partial(self._users.get_by_team, request.team_id)),
        )
        outcomes = await asyncio.gather(
            *(journal.run_step(OperationType.READ, name, "stats", call) for name, call in sources),
            return_exceptions=True,
        )

        errors: list[ServiceError] = []
        for (name, _), outcome in zip(sources, outcomes):
            if isinstance(outcome, CompositeStepError):
                errors.append(outcome.error)
            elif isinstance(outcome, BaseException):
                raise outcome
            elif name == "team":
                stats.team = outcome
            elif name == "building":
                stats.buildings = outcome
            else:
                stats.users = outcome

        if errors:
            populated = any(v is not None for v in (stats.team, stats.buildings, stats.users))
            return journal.result(
                False,
                stats,
                error=_partial_failure("Some statistics sources failed", errors),
                partial_success=populated,
            )
        return journal.result(True, stats)
