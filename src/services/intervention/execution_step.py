"""
Actions d'execution du workflow : travaux du prestataire, retour du locataire
et cloture par le gestionnaire.
"""

from typing import TYPE_CHECKING, Optional

from loguru import logger

from src.core.entities import Intervention, InterventionStatus, User
from src.core.errors import ValidationError
from src.core.permissions import Action
from src.core.result import ServiceResult
from src.core.workflow import append_note
from src.utils.helpers import utcnow

from .dataclasses import ExecutionData, FinalizationData, TenantValidationData

if TYPE_CHECKING:
    from src.core.workflow import InterventionStateMachine


class ExecutionStepMixin:
    """Mixin pour l'execution des travaux et la cloture."""

    _machine: "InterventionStateMachine"

    async def start_execution(
        self, intervention_id: str, data: Optional[ExecutionData], started_by: User
    ) -> ServiceResult[Intervention]:
        """
        Demarre les travaux (prestataire affecte uniquement).

        Un second appel sur une intervention deja en cours reussit sans
        modification.

        Raises:
            PermissionDeniedError: L'appelant n'est pas le prestataire affecte
            ValidationError: Intervention ni approuvee (ni planifiee), ni en cours
        """
        intervention = self._load(intervention_id)
        self._authorize(intervention, started_by, Action.START)

        if intervention.status is InterventionStatus.IN_PROGRESS:
            logger.debug(f"Intervention {intervention_id} deja en cours")
            return ServiceResult.ok(intervention)

        allowed = {InterventionStatus.APPROVED}
        if self._machine.is_extended:
            allowed.add(InterventionStatus.SCHEDULED)
        self._require_status(intervention, frozenset(allowed), "Intervention must be approved before starting")
        self._machine.validate_transition(intervention.status, InterventionStatus.IN_PROGRESS)

        intervention.status = InterventionStatus.IN_PROGRESS
        intervention.notes = append_note(intervention.notes, "Démarrage", data.comment if data else None)
        return ServiceResult.ok(self._persist(intervention, "demarree"))

    async def complete_execution(
        self, intervention_id: str, data: Optional[ExecutionData], completed_by: User
    ) -> ServiceResult[Intervention]:
        """
        Termine les travaux : date de fin et duree reelle enregistrees.

        Le modele de base passe a completed, le modele etendu a
        provider_completed (en attente du retour du locataire).
        """
        intervention = self._load(intervention_id)
        self._authorize(intervention, completed_by, Action.COMPLETE)
        self._require_status(
            intervention,
            frozenset({InterventionStatus.IN_PROGRESS}),
            "Intervention must be in progress to complete",
        )

        target = self._machine.completion_status
        self._machine.validate_transition(intervention.status, target)

        duration = data.actual_duration if data else None
        if duration is not None and duration < 0:
            raise ValidationError("Actual duration cannot be negative", "actual_duration", duration)

        intervention.status = target
        intervention.completed_date = utcnow()
        if duration is not None:
            intervention.actual_duration = duration
        intervention.notes = append_note(intervention.notes, "Clôture prestataire", data.comment if data else None)
        return ServiceResult.ok(self._persist(intervention, "terminee par le prestataire"))

    async def finalize_intervention(
        self, intervention_id: str, data: Optional[FinalizationData], finalized_by: User
    ) -> ServiceResult[Intervention]:
        """
        Cloture administrative par le gestionnaire (montant final).

        Modele de base : l'intervention doit etre completed et le reste.
        Modele etendu : tenant_validated -> completed.

        Raises:
            PermissionDeniedError: L'appelant n'est ni gestionnaire ni admin
            ValidationError: Statut incompatible ou montant negatif
        """
        intervention = self._load(intervention_id)
        self._authorize(intervention, finalized_by, Action.FINALIZE)

        if self._machine.is_extended:
            self._require_status(
                intervention,
                frozenset({InterventionStatus.TENANT_VALIDATED}),
                "Intervention must be validated by the tenant before finalization",
            )
            self._machine.validate_transition(intervention.status, InterventionStatus.COMPLETED)
            intervention.status = InterventionStatus.COMPLETED
        else:
            self._require_status(
                intervention,
                frozenset({InterventionStatus.COMPLETED}),
                "Intervention must be completed before finalization",
            )

        amount = data.final_amount if data else None
        if amount is not None:
            if amount < 0:
                raise ValidationError("Final amount cannot be negative", "final_amount", amount)
            intervention.final_amount = amount

        comment = None
        if data:
            comment = " - ".join(c for c in (data.manager_comment, data.payment_comment) if c) or None
        intervention.notes = append_note(intervention.notes, "Finalisation", comment)
        return ServiceResult.ok(self._persist(intervention, "finalisee"))

    async def validate_by_tenant(
        self, intervention_id: str, data: Optional[TenantValidationData], tenant: User
    ) -> ServiceResult[Intervention]:
        """Validation des travaux par le locataire (provider_completed -> tenant_validated)."""
        intervention = self._load(intervention_id)
        self._authorize(intervention, tenant, Action.VALIDATE_AS_TENANT)
        self._require_status(
            intervention,
            frozenset({InterventionStatus.PROVIDER_COMPLETED}),
            "Intervention must be completed by the provider before tenant validation",
        )
        self._machine.validate_transition(intervention.status, InterventionStatus.TENANT_VALIDATED)

        text = data.comment if data else None
        if data and data.satisfaction is not None:
            if not 1 <= data.satisfaction <= 5:
                raise ValidationError("Satisfaction must be between 1 and 5", "satisfaction", data.satisfaction)
            text = f"{text} ({data.satisfaction}/5)" if text else f"{data.satisfaction}/5"

        intervention.status = InterventionStatus.TENANT_VALIDATED
        intervention.notes = append_note(intervention.notes, "Validation locataire", text)
        return ServiceResult.ok(self._persist(intervention, "validee par le locataire"))

    async def contest_by_tenant(
        self, intervention_id: str, reason: str, tenant: User
    ) -> ServiceResult[Intervention]:
        """
        Contestation des travaux par le locataire : l'intervention repasse
        en cours et le motif est ajoute aux notes.
        """
        if not reason or not reason.strip():
            raise ValidationError("Contest reason is required", "reason", reason)

        intervention = self._load(intervention_id)
        self._authorize(intervention, tenant, Action.CONTEST_AS_TENANT)
        self._require_status(
            intervention,
            frozenset({InterventionStatus.PROVIDER_COMPLETED}),
            "Intervention must be completed by the provider before tenant contest",
        )
        self._machine.validate_transition(intervention.status, InterventionStatus.IN_PROGRESS)

        intervention.status = InterventionStatus.IN_PROGRESS
        intervention.completed_date = None
        intervention.notes = append_note(intervention.notes, "Contestation locataire", reason)
        return ServiceResult.ok(self._persist(intervention, "contestee par le locataire"))
