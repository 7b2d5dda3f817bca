"""
Machine a etats du cycle de vie des interventions.

Deux modeles sont disponibles :
- BASE : pending -> approved -> in_progress -> completed (+ cancelled)
- EXTENDED : ajoute scheduling/scheduled entre approved et in_progress, puis
  provider_completed/tenant_validated entre in_progress et completed.

Les transitions sont a sens unique (seule la contestation du locataire
rouvre provider_completed -> in_progress) et les etats completed et
cancelled sont terminaux.
"""

from enum import Enum
from typing import Optional

from src.core.entities.intervention import InterventionStatus as S
from src.core.errors import ValidationError
from src.core.permissions import Action


class WorkflowModel(str, Enum):
    """Variante du workflow d'intervention."""

    BASE = "base"
    EXTENDED = "extended"


TERMINAL_STATUSES = frozenset({S.COMPLETED, S.CANCELLED})

BASE_TRANSITIONS: dict[S, tuple[S, ...]] = {
    S.PENDING: (S.APPROVED, S.CANCELLED),
    S.APPROVED: (S.IN_PROGRESS, S.CANCELLED),
    S.IN_PROGRESS: (S.COMPLETED, S.CANCELLED),
    S.COMPLETED: (),
    S.CANCELLED: (),
}

EXTENDED_TRANSITIONS: dict[S, tuple[S, ...]] = {
    S.PENDING: (S.APPROVED, S.CANCELLED),
    S.APPROVED: (S.SCHEDULING, S.SCHEDULED, S.IN_PROGRESS, S.CANCELLED),
    S.SCHEDULING: (S.SCHEDULED, S.CANCELLED),
    S.SCHEDULED: (S.IN_PROGRESS, S.CANCELLED),
    S.IN_PROGRESS: (S.PROVIDER_COMPLETED, S.CANCELLED),
    S.PROVIDER_COMPLETED: (S.TENANT_VALIDATED, S.IN_PROGRESS),
    S.TENANT_VALIDATED: (S.COMPLETED,),
    S.COMPLETED: (),
    S.CANCELLED: (),
}

# Action requise pour atteindre un statut cible (generic update)
BASE_TARGET_ACTIONS: dict[S, Action] = {
    S.APPROVED: Action.APPROVE,
    S.IN_PROGRESS: Action.START,
    S.COMPLETED: Action.COMPLETE,
    S.CANCELLED: Action.CANCEL,
}

EXTENDED_TARGET_ACTIONS: dict[S, Action] = {
    S.APPROVED: Action.APPROVE,
    S.SCHEDULING: Action.SCHEDULE,
    S.SCHEDULED: Action.SCHEDULE,
    S.IN_PROGRESS: Action.START,
    S.PROVIDER_COMPLETED: Action.COMPLETE,
    S.TENANT_VALIDATED: Action.VALIDATE_AS_TENANT,
    S.COMPLETED: Action.FINALIZE,
    S.CANCELLED: Action.CANCEL,
}


class InterventionStateMachine:
    """
    Table de transitions d'un modele de workflow.

    Utilisation:
        machine = InterventionStateMachine(WorkflowModel.BASE)
        machine.validate_transition(S.PENDING, S.APPROVED)  # OK
        machine.validate_transition(S.PENDING, S.COMPLETED)  # ValidationError
    """

    def __init__(self, model: WorkflowModel = WorkflowModel.BASE) -> None:
        self.model = WorkflowModel(model)
        if self.model is WorkflowModel.EXTENDED:
            self._transitions = EXTENDED_TRANSITIONS
            self._target_actions = EXTENDED_TARGET_ACTIONS
        else:
            self._transitions = BASE_TRANSITIONS
            self._target_actions = BASE_TARGET_ACTIONS

    @property
    def is_extended(self) -> bool:
        return self.model is WorkflowModel.EXTENDED

    @property
    def statuses(self) -> list[S]:
        """Statuts utilises par ce modele, dans l'ordre du cycle de vie."""
        return list(self._transitions)

    @property
    def completion_status(self) -> S:
        """Statut atteint quand le prestataire termine les travaux."""
        return S.PROVIDER_COMPLETED if self.is_extended else S.COMPLETED

    def allowed_targets(self, current: S) -> tuple[S, ...]:
        """Statuts atteignables depuis le statut courant."""
        return self._transitions.get(S(current), ())

    def can_transition(self, current: S, target: S) -> bool:
        return S(target) in self.allowed_targets(current)

    def validate_transition(self, current: S, target: S) -> None:
        """
        Verifie qu'une transition figure dans la table.

        Raises:
            ValidationError: Transition absente, le message nomme les deux statuts
        """
        current, target = S(current), S(target)
        if not self.can_transition(current, target):
            raise ValidationError(
                f"Invalid status transition from '{current.value}' to '{target.value}'",
                "status",
                target.value,
            )

    def action_for(self, target: S) -> Optional[Action]:
        """Action (et donc capacite) necessaire pour atteindre un statut."""
        return self._target_actions.get(S(target))

    @staticmethod
    def is_terminal(status: S) -> bool:
        return S(status) in TERMINAL_STATUSES


def append_note(existing: Optional[str], tag: str, text: Optional[str] = None) -> str:
    """
    Ajoute une entree etiquetee au journal de notes d'une intervention.

    Les notes existantes sont conservees ; la nouvelle entree est ajoutee
    sur une nouvelle ligne sous la forme "[tag] texte".

    Args:
        existing: Notes actuelles (None ou vide si aucune)
        tag: Etiquette sans crochets (ex: "Annulation par manager")
        text: Commentaire optionnel

    Returns:
        Les notes completees
    """
    entry = f"[{tag}]"
    if text and text.strip():
        entry = f"{entry} {text.strip()}"
    if existing:
        return f"{existing}\n{entry}"
    return entry
