"""
Actions de gestion du workflow : approbation, rejet, planification et annulation.
"""

import uuid
from typing import TYPE_CHECKING, Optional

from loguru import logger

from src.core.entities import Intervention, InterventionStatus, TimeSlot, User, UserRole
from src.core.errors import ValidationError, validate_uuid
from src.core.permissions import Action
from src.core.result import ServiceResult
from src.core.workflow import append_note
from src.utils.helpers import as_utc

from .dataclasses import ApprovalData, PlanningData, PlanningOption

if TYPE_CHECKING:
    from src.core.workflow import InterventionStateMachine


class ApprovalStepMixin:
    """Mixin pour les decisions du gestionnaire et la planification."""

    _machine: "InterventionStateMachine"

    async def approve_intervention(
        self, intervention_id: str, data: Optional[ApprovalData], approved_by: User
    ) -> ServiceResult[Intervention]:
        """
        Approuve une demande d'intervention (pending -> approved).

        Raises:
            PermissionDeniedError: L'appelant n'est ni gestionnaire ni admin
            ValidationError: Transition invalide depuis le statut courant
        """
        intervention = self._load(intervention_id)
        self._authorize(intervention, approved_by, Action.APPROVE)
        self._machine.validate_transition(intervention.status, InterventionStatus.APPROVED)

        intervention.status = InterventionStatus.APPROVED
        intervention.notes = append_note(intervention.notes, "Approbation", data.comment if data else None)
        return ServiceResult.ok(self._persist(intervention, "approuvee"))

    async def reject_intervention(
        self, intervention_id: str, data: ApprovalData, rejected_by: User
    ) -> ServiceResult[Intervention]:
        """
        Rejette une demande : le statut passe a cancelled et le motif est
        ajoute aux notes.

        Raises:
            ValidationError: Motif absent ou transition invalide
            PermissionDeniedError: L'appelant n'est ni gestionnaire ni admin
        """
        reason = (data.rejection_reason or "").strip() if data else ""
        if not reason:
            raise ValidationError("Rejection reason is required", "rejection_reason", None)

        intervention = self._load(intervention_id)
        self._authorize(intervention, rejected_by, Action.REJECT)
        self._machine.validate_transition(intervention.status, InterventionStatus.CANCELLED)

        intervention.status = InterventionStatus.CANCELLED
        intervention.notes = append_note(
            intervention.notes, f"Rejet par {UserRole(rejected_by.role).value}", reason
        )
        return ServiceResult.ok(self._persist(intervention, "rejetee"))

    async def schedule_intervention(
        self, intervention_id: str, data: PlanningData, scheduled_by: User
    ) -> ServiceResult[Intervention]:
        """
        Planifie une intervention approuvee.

        - DIRECT : la date est fixee ; le modele etendu passe a scheduled,
          le modele de base reste approved.
        - PROPOSE / ORGANIZE : les creneaux fournis sont enregistres (chacun
          recoit un identifiant) en attente de select_time_slot ; le modele
          etendu passe a scheduling, le modele de base reste approved.

        Raises:
            ValidationError: Statut non approuve, date ou creneaux invalides
            PermissionDeniedError: Ni gestionnaire, ni prestataire affecte
        """
        intervention = self._load(intervention_id)
        self._authorize(intervention, scheduled_by, Action.SCHEDULE)

        allowed = {InterventionStatus.APPROVED}
        if self._machine.is_extended:
            allowed.add(InterventionStatus.SCHEDULING)
        self._require_status(
            intervention, frozenset(allowed), "Intervention must be approved before scheduling"
        )

        option = PlanningOption(data.option)
        if option is PlanningOption.DIRECT:
            if data.scheduled_date is None:
                raise ValidationError("A date is required for direct scheduling", "scheduled_date", None)
            intervention.scheduled_date = as_utc(data.scheduled_date)
            target = InterventionStatus.SCHEDULED
        else:
            for slot in data.proposed_slots:
                if slot.end <= slot.start:
                    raise ValidationError("Time slot must end after it starts", "proposed_slots", slot.start)
            if option is PlanningOption.PROPOSE and not data.proposed_slots:
                raise ValidationError("At least one time slot is required", "proposed_slots", None)
            if data.proposed_slots:
                intervention.proposed_slots = [
                    TimeSlot(start=as_utc(s.start), end=as_utc(s.end), id=str(uuid.uuid4()))
                    for s in data.proposed_slots
                ]
            target = InterventionStatus.SCHEDULING

        if self._machine.is_extended and target is not intervention.status:
            self._machine.validate_transition(intervention.status, target)
            intervention.status = target

        text = f"option {option.value}"
        if data.proposed_slots:
            text = f"{text}, {len(data.proposed_slots)} creneau(x)"
        if data.comment:
            text = f"{text} - {data.comment}"
        intervention.notes = append_note(intervention.notes, "Planification", text)
        logger.bind(intervention_id=intervention_id).debug(f"Planification {option.value}")
        return ServiceResult.ok(self._persist(intervention, "planifiee"))

    async def select_time_slot(
        self, intervention_id: str, slot_id: str, selected_by: User
    ) -> ServiceResult[Intervention]:
        """
        Retient l'un des creneaux proposes : sa date de debut devient la date
        planifiee et les autres creneaux sont abandonnes.

        Le modele etendu passe de scheduling a scheduled ; le modele de base
        reste approved.

        Raises:
            ValidationError: Identifiant invalide, creneau inconnu ou statut incompatible
            PermissionDeniedError: Ni gestionnaire, ni prestataire affecte
        """
        validate_uuid(slot_id, "slot_id")
        intervention = self._load(intervention_id)
        self._authorize(intervention, selected_by, Action.SCHEDULE)

        expected = InterventionStatus.SCHEDULING if self._machine.is_extended else InterventionStatus.APPROVED
        self._require_status(
            intervention, frozenset({expected}), "No time slot selection is pending for this intervention"
        )
        slot = next((s for s in intervention.proposed_slots if s.id == slot_id), None)
        if slot is None:
            raise ValidationError("Unknown time slot", "slot_id", slot_id)

        if self._machine.is_extended:
            self._machine.validate_transition(intervention.status, InterventionStatus.SCHEDULED)
            intervention.status = InterventionStatus.SCHEDULED
        intervention.scheduled_date = slot.start
        intervention.proposed_slots = []
        intervention.notes = append_note(
            intervention.notes, "Planification", f"creneau retenu {slot.start:%Y-%m-%d %H:%M}"
        )
        return ServiceResult.ok(self._persist(intervention, "planifiee"))

    async def cancel_intervention(
        self, intervention_id: str, reason: str, cancelled_by: User
    ) -> ServiceResult[Intervention]:
        """
        Annule une intervention non terminee.

        Raises:
            ValidationError: Motif absent, intervention terminee ou annulee
            PermissionDeniedError: Ni gestionnaire, ni prestataire affecte
        """
        if not reason or not reason.strip():
            raise ValidationError("Cancellation reason is required", "reason", reason)

        intervention = self._load(intervention_id)
        if self._machine.is_terminal(intervention.status):
            raise ValidationError(
                f"Cannot cancel an intervention with status '{intervention.status.value}'",
                "status",
                intervention.status.value,
            )
        self._authorize(intervention, cancelled_by, Action.CANCEL)
        self._machine.validate_transition(intervention.status, InterventionStatus.CANCELLED)

        intervention.status = InterventionStatus.CANCELLED
        intervention.notes = append_note(
            intervention.notes, f"Annulation par {UserRole(cancelled_by.role).value}", reason
        )
        return ServiceResult.ok(self._persist(intervention, "annulee"))
