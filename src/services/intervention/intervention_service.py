"""
Service de gestion des interventions.

Ce service couvre le cycle de vie complet d'une intervention :
- creation (lot ou immeuble, demandeur) avec affectation automatique
  du gestionnaire principal de l'immeuble
- mise a jour generique (tout changement de statut passe par la machine a etats)
- suppression (interdite pour une intervention en cours ou terminee)
- affectation des prestataires
- recherches et statistiques

Les actions du workflow (approbation, planification, execution...) sont
definies dans les mixins approval_step et execution_step.
"""

from typing import Any, Mapping, Optional

from loguru import logger

from src.core.entities import (
    AssignmentRole,
    ContactType,
    Intervention,
    InterventionAssignment,
    InterventionPriority,
    InterventionStatus,
    User,
    UserRole,
)
from src.core.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    validate_required,
)
from src.core.permissions import PROVIDER_ASSIGNMENT_REQUIRED, Action, can_perform
from src.core.ports.repositories import (
    IBuildingRepository,
    IContactRepository,
    IInterventionRepository,
    ILotRepository,
    IUserRepository,
)
from src.core.result import ServiceResult
from src.core.workflow import InterventionStateMachine, WorkflowModel, append_note
from src.utils.helpers import apply_patch, clean_text, coerce_enum, utcnow

from .approval_step import ApprovalStepMixin
from .dataclasses import InterventionStats
from .execution_step import ExecutionStepMixin

# Statuts dans lesquels une intervention ne peut plus etre supprimee
UNDELETABLE_STATUSES = frozenset({InterventionStatus.IN_PROGRESS, InterventionStatus.COMPLETED})

_TENANT_ACTIONS = frozenset({Action.VALIDATE_AS_TENANT, Action.CONTEST_AS_TENANT})

# Champs jamais modifiables par la mise a jour generique
_IMMUTABLE_FIELDS = frozenset({"id", "created_at", "requested_by", "proposed_slots"})


class InterventionService(ApprovalStepMixin, ExecutionStepMixin):
    """
    Service metier des interventions.

    Les violations de preconditions levent NotFoundError, ValidationError ou
    PermissionDeniedError ; les echecs du stockage (RepositoryError) sont
    propages sans retry.

    Utilisation typique:
        service = InterventionService(interventions, lots, buildings, users, contacts)
        result = await service.create({"title": "Fuite", "lot_id": lot.id}, tenant)
        await service.approve_intervention(result.data.id, ApprovalData(), manager)
    """

    def __init__(
        self,
        repository: IInterventionRepository,
        lot_repository: ILotRepository,
        building_repository: IBuildingRepository,
        user_repository: IUserRepository,
        contact_repository: Optional[IContactRepository] = None,
        workflow_model: WorkflowModel | str = WorkflowModel.BASE,
        auto_assign_managers: bool = True,
    ) -> None:
        """
        Initialise le service des interventions.

        Args:
            repository: Repository des interventions et de leurs affectations
            lot_repository: Repository des lots (validation a la creation)
            building_repository: Repository des immeubles
            user_repository: Repository des utilisateurs (demandeur, prestataire)
            contact_repository: Repository des contacts (affectation automatique)
            workflow_model: Variante du workflow (base ou extended)
            auto_assign_managers: Active l'affectation automatique du gestionnaire
        """
        self._repo = repository
        self._lots = lot_repository
        self._buildings = building_repository
        self._users = user_repository
        self._contacts = contact_repository
        self._machine = InterventionStateMachine(WorkflowModel(workflow_model))
        self._auto_assign_managers = auto_assign_managers

    @property
    def state_machine(self) -> InterventionStateMachine:
        return self._machine

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def create(self, data: Mapping[str, Any], requested_by: Optional[User] = None) -> ServiceResult[Intervention]:
        """
        Cree une intervention au statut pending.

        Le lot (s'il est fourni) ou l'immeuble doit exister ; l'immeuble est
        deduit du lot. Le demandeur doit exister.

        Args:
            data: title, description, category, priority, lot_id, building_id,
                requested_by, estimated_duration, quote_amount
            requested_by: Utilisateur a l'origine de la demande (prioritaire
                sur data["requested_by"])

        Raises:
            NotFoundError: Lot, immeuble ou demandeur inexistant
            ValidationError: Champ manquant ou statut initial invalide
            PermissionDeniedError: Role non autorise a creer une intervention
        """
        payload = dict(data)
        if requested_by is not None:
            self._require_capability(requested_by, Action.CREATE)
            payload["requested_by"] = requested_by.id
        validate_required(payload, ("title", "requested_by"))

        status = coerce_enum(InterventionStatus, payload.get("status") or InterventionStatus.PENDING, "status")
        if status is not InterventionStatus.PENDING:
            raise ValidationError("A new intervention must start as 'pending'", "status", status.value)

        lot_id = payload.get("lot_id")
        building_id = payload.get("building_id")
        if lot_id:
            lot = self._lots.get_by_id(lot_id)
            if lot is None:
                raise NotFoundError("Lot", lot_id)
            building_id = lot.building_id
        elif building_id:
            if self._buildings.get_by_id(building_id) is None:
                raise NotFoundError("Building", building_id)
        else:
            raise ValidationError("Either 'lot_id' or 'building_id' is required", "lot_id", None)

        requester_id = payload["requested_by"]
        if self._users.get_by_id(requester_id) is None:
            raise NotFoundError("User", requester_id)

        now = utcnow()
        intervention = self._repo.save(
            Intervention(
                title=clean_text(payload["title"]),
                description=payload.get("description") or "",
                category=payload.get("category") or "general",
                requested_by=requester_id,
                lot_id=lot_id,
                building_id=building_id,
                status=InterventionStatus.PENDING,
                priority=coerce_enum(
                    InterventionPriority, payload.get("priority") or InterventionPriority.MEDIUM, "priority"
                ),
                estimated_duration=payload.get("estimated_duration"),
                quote_amount=payload.get("quote_amount"),
                notes=payload.get("notes"),
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(f"Intervention creee: {intervention.id} ({intervention.title})")

        if self._auto_assign_managers:
            self._auto_assign_manager(intervention)

        return ServiceResult.ok(intervention)

    def _auto_assign_manager(self, intervention: Intervention) -> None:
        """
        Affecte le gestionnaire principal de l'immeuble a l'intervention.

        Best-effort : un echec est journalise mais n'interrompt pas la creation.
        """
        if self._contacts is None or not intervention.building_id:
            return
        try:
            managers = self._contacts.list_contacts(
                building_id=intervention.building_id, contact_type=ContactType.MANAGER
            )
            if not managers:
                return
            primary = next((c for c in managers if c.is_primary), managers[0])
            self._repo.add_assignment(
                InterventionAssignment(
                    intervention_id=intervention.id,
                    user_id=primary.user_id,
                    role=AssignmentRole.MANAGER,
                    is_primary=True,
                    assigned_at=utcnow(),
                )
            )
            logger.bind(intervention_id=intervention.id).debug(f"Gestionnaire {primary.user_id} affecte")
        except Exception as e:
            logger.bind(intervention_id=intervention.id).warning(
                f"Affectation automatique du gestionnaire impossible: {e}"
            )

    async def get_by_id(self, intervention_id: str) -> ServiceResult[Intervention]:
        intervention = self._repo.get_by_id(intervention_id)
        if intervention is None:
            return ServiceResult.fail(NotFoundError("Intervention", intervention_id))
        return ServiceResult.ok(intervention)

    async def update(
        self, intervention_id: str, patch: Mapping[str, Any], updated_by: Optional[User] = None
    ) -> ServiceResult[Intervention]:
        """
        Mise a jour generique d'une intervention.

        Un changement de statut suit la meme table de transitions et les memes
        controles de role que les actions dediees. Les notes fournies sont
        ajoutees au journal existant, jamais substituees.

        Raises:
            NotFoundError: Intervention inexistante
            ValidationError: Transition invalide, champ inconnu ou non modifiable
            PermissionDeniedError: Role insuffisant
        """
        intervention = self._load(intervention_id)
        changes = dict(patch)

        new_status = None
        if "status" in changes:
            new_status = coerce_enum(InterventionStatus, changes.pop("status"), "status")
            if new_status is intervention.status:
                new_status = None

        note = changes.pop("notes", None)
        if "priority" in changes:
            changes["priority"] = coerce_enum(InterventionPriority, changes["priority"], "priority")
        if "lot_id" in changes and changes["lot_id"] != intervention.lot_id:
            raise ValidationError("An intervention cannot be moved to another lot", "lot_id", changes["lot_id"])

        if (changes or note) and updated_by is not None:
            self._require_capability(updated_by, Action.UPDATE)

        if new_status is not None:
            if updated_by is None:
                raise ValidationError("A status change requires an identified user", "status", new_status.value)
            self._machine.validate_transition(intervention.status, new_status)
            action = self._machine.action_for(new_status)
            if action is not None:
                self._authorize(intervention, updated_by, action)
            changes["status"] = new_status
            if new_status is self._machine.completion_status and intervention.completed_date is None:
                changes["completed_date"] = utcnow()

        updated = apply_patch(intervention, changes, immutable=_IMMUTABLE_FIELDS)
        if note:
            updated.notes = append_note(updated.notes, "Mise à jour", note)
        return ServiceResult.ok(self._persist(updated, "mise a jour"))

    async def delete(self, intervention_id: str, deleted_by: Optional[User] = None) -> ServiceResult[bool]:
        """
        Supprime une intervention et ses affectations.

        Raises:
            NotFoundError: Intervention inexistante
            ValidationError: Intervention en cours ou terminee
        """
        intervention = self._load(intervention_id)
        if deleted_by is not None:
            self._require_capability(deleted_by, Action.DELETE)
        if intervention.status in UNDELETABLE_STATUSES:
            raise ValidationError(
                f"Cannot delete intervention with status '{intervention.status.value}'",
                "status",
                intervention.status.value,
            )
        self._repo.delete(intervention_id)
        logger.info(f"Intervention supprimee: {intervention_id}")
        return ServiceResult.ok(True)

    # ------------------------------------------------------------------
    # Affectations
    # ------------------------------------------------------------------

    async def assign_provider(
        self, intervention_id: str, provider_id: str, assigned_by: User, is_primary: bool = True
    ) -> ServiceResult[InterventionAssignment]:
        """
        Affecte un prestataire a une intervention.

        Raises:
            PermissionDeniedError: L'appelant n'est pas gestionnaire
            NotFoundError: Intervention ou prestataire inexistant
            ValidationError: L'utilisateur n'est pas prestataire, ou intervention terminee
        """
        self._require_capability(assigned_by, Action.ASSIGN_PROVIDER)
        intervention = self._load(intervention_id)
        if self._machine.is_terminal(intervention.status):
            raise ValidationError(
                f"Cannot assign a provider to a '{intervention.status.value}' intervention",
                "status",
                intervention.status.value,
            )
        provider = self._users.get_by_id(provider_id)
        if provider is None:
            raise NotFoundError("User", provider_id)
        if provider.role is not UserRole.PROVIDER:
            raise ValidationError("User is not a provider", "role", provider.role.value)

        if self._is_assigned(intervention_id, provider_id, AssignmentRole.PROVIDER):
            return ServiceResult.fail(
                ConflictError("Provider is already assigned to this intervention", "user_id", provider_id)
            )
        assignment = self._repo.add_assignment(
            InterventionAssignment(
                intervention_id=intervention_id,
                user_id=provider_id,
                role=AssignmentRole.PROVIDER,
                is_primary=is_primary,
                assigned_at=utcnow(),
            )
        )
        logger.info(f"Prestataire {provider_id} affecte a l'intervention {intervention_id}")
        return ServiceResult.ok(assignment)

    async def remove_provider_assignment(
        self, intervention_id: str, provider_id: str, removed_by: User
    ) -> ServiceResult[bool]:
        self._require_capability(removed_by, Action.ASSIGN_PROVIDER)
        if not self._repo.remove_assignment(intervention_id, provider_id, AssignmentRole.PROVIDER):
            return ServiceResult.fail(NotFoundError("InterventionAssignment", f"{intervention_id}/{provider_id}"))
        logger.info(f"Prestataire {provider_id} retire de l'intervention {intervention_id}")
        return ServiceResult.ok(True)

    async def get_assignments(
        self, intervention_id: str, role: Optional[AssignmentRole | str] = None
    ) -> ServiceResult[list[InterventionAssignment]]:
        arole = coerce_enum(AssignmentRole, role, "role") if role else None
        return ServiceResult.ok(self._repo.list_assignments(intervention_id, arole))

    # ------------------------------------------------------------------
    # Recherches et statistiques
    # ------------------------------------------------------------------

    async def get_all(
        self,
        status: Optional[InterventionStatus | str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> ServiceResult[list[Intervention]]:
        istatus = coerce_enum(InterventionStatus, status, "status") if status else None
        return ServiceResult.ok(self._repo.list_interventions(istatus, limit, offset))

    async def get_by_lot(self, lot_id: str) -> ServiceResult[list[Intervention]]:
        return ServiceResult.ok(self._repo.list_by_lot(lot_id))

    async def get_by_building(self, building_id: str) -> ServiceResult[list[Intervention]]:
        return ServiceResult.ok(self._repo.list_by_building(building_id))

    async def get_by_requester(self, user_id: str) -> ServiceResult[list[Intervention]]:
        return ServiceResult.ok(self._repo.list_by_requester(user_id))

    async def get_by_provider(self, provider_id: str) -> ServiceResult[list[Intervention]]:
        return ServiceResult.ok(self._repo.list_by_assignee(provider_id, AssignmentRole.PROVIDER))

    async def get_by_status(self, status: InterventionStatus | str) -> ServiceResult[list[Intervention]]:
        return await self.get_all(status=status)

    async def count(self) -> ServiceResult[int]:
        return ServiceResult.ok(self._repo.count())

    async def get_stats(self) -> ServiceResult[InterventionStats]:
        """Nombre total d'interventions, par statut et par priorite."""
        return ServiceResult.ok(
            InterventionStats(
                total=self._repo.count(),
                by_status=self._repo.count_by("status"),
                by_priority=self._repo.count_by("priority"),
            )
        )

    # ------------------------------------------------------------------
    # Controles partages avec les mixins du workflow
    # ------------------------------------------------------------------

    def _load(self, intervention_id: str) -> Intervention:
        intervention = self._repo.get_by_id(intervention_id)
        if intervention is None:
            raise NotFoundError("Intervention", intervention_id)
        return intervention

    def _persist(self, intervention: Intervention, event: str) -> Intervention:
        intervention.updated_at = utcnow()
        saved = self._repo.save(intervention)
        logger.bind(intervention_id=saved.id).info(f"Intervention {event} (statut: {saved.status.value})")
        return saved

    def _is_assigned(self, intervention_id: str, user_id: str, role: AssignmentRole) -> bool:
        return any(a.user_id == user_id for a in self._repo.list_assignments(intervention_id, role))

    def _require_capability(self, actor: User, action: Action) -> None:
        if not can_perform(actor.role, action):
            raise PermissionDeniedError(
                f"Role '{UserRole(actor.role).value}' is not allowed to {action.value.replace('_', ' ')} interventions",
                "interventions",
                action.value,
                actor.id,
            )

    def _authorize(self, intervention: Intervention, actor: User, action: Action) -> None:
        """
        Verifie la capacite du role puis le lien de l'appelant avec l'intervention.

        Un prestataire doit etre affecte a l'intervention pour planifier,
        demarrer, terminer ou annuler ; un locataire doit en etre le demandeur
        (ou y etre affecte) pour valider ou contester.
        """
        self._require_capability(actor, action)
        role = UserRole(actor.role)
        if role is UserRole.PROVIDER and action in PROVIDER_ASSIGNMENT_REQUIRED:
            if not self._is_assigned(intervention.id, actor.id, AssignmentRole.PROVIDER):
                raise PermissionDeniedError(
                    "Provider is not assigned to this intervention", "interventions", action.value, actor.id
                )
        if action in _TENANT_ACTIONS and actor.id != intervention.requested_by:
            if not self._is_assigned(intervention.id, actor.id, AssignmentRole.TENANT):
                raise PermissionDeniedError(
                    "Tenant is not linked to this intervention", "interventions", action.value, actor.id
                )

    def _require_status(self, intervention: Intervention, allowed: frozenset[InterventionStatus], message: str) -> None:
        if intervention.status not in allowed:
            raise ValidationError(message, "status", intervention.status.value)
