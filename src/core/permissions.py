"""
Modele de capacites par role.

Un ensemble ferme d'actions et une table role -> actions autorisees.
Les verifications contextuelles (prestataire affecte, locataire demandeur)
sont faites par les services ; ce module ne repond qu'a la question
"ce role peut-il, en principe, effectuer cette action ?".
"""

from enum import Enum

from src.core.entities.property import UserRole


class Action(str, Enum):
    """Actions soumises a permission sur les interventions."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    APPROVE = "approve"
    REJECT = "reject"
    SCHEDULE = "schedule"
    START = "start"
    COMPLETE = "complete"
    FINALIZE = "finalize"
    CANCEL = "cancel"
    VALIDATE_AS_TENANT = "validate_as_tenant"
    CONTEST_AS_TENANT = "contest_as_tenant"
    ASSIGN_PROVIDER = "assign_provider"


_MANAGERS = frozenset({UserRole.MANAGER, UserRole.ADMIN})

CAPABILITIES: dict[Action, frozenset[UserRole]] = {
    Action.CREATE: frozenset({UserRole.TENANT, UserRole.MANAGER, UserRole.ADMIN}),
    Action.UPDATE: _MANAGERS,
    Action.DELETE: _MANAGERS,
    Action.APPROVE: _MANAGERS,
    Action.REJECT: _MANAGERS,
    Action.SCHEDULE: _MANAGERS | {UserRole.PROVIDER},
    Action.START: frozenset({UserRole.PROVIDER}),
    Action.COMPLETE: frozenset({UserRole.PROVIDER}),
    Action.FINALIZE: _MANAGERS,
    Action.CANCEL: _MANAGERS | {UserRole.PROVIDER},
    Action.VALIDATE_AS_TENANT: frozenset({UserRole.TENANT}),
    Action.CONTEST_AS_TENANT: frozenset({UserRole.TENANT}),
    Action.ASSIGN_PROVIDER: _MANAGERS,
}

# Actions qu'un prestataire ne peut realiser que sur une intervention qui lui est affectee
PROVIDER_ASSIGNMENT_REQUIRED = frozenset(
    {Action.SCHEDULE, Action.START, Action.COMPLETE, Action.CANCEL}
)


def can_perform(role: UserRole | str, action: Action) -> bool:
    """
    Indique si un role dispose d'une capacite.

    Args:
        role: Role de l'appelant (enum ou valeur brute)
        action: Action demandee

    Returns:
        True si le role figure dans la table pour cette action.
    """
    try:
        role = UserRole(role)
    except ValueError:
        return False
    return role in CAPABILITIES.get(action, frozenset())
