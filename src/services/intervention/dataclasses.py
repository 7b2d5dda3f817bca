"""
Dataclasses et enums des actions du workflow d'intervention.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from src.core.entities import TimeSlot


class PlanningOption(str, Enum):
    """Mode de planification d'une intervention."""

    DIRECT = "direct"  # date fixee immediatement
    PROPOSE = "propose"  # creneaux proposes, choix ulterieur
    ORGANIZE = "organize"  # organisation differee


@dataclass
class ApprovalData:
    """Donnees d'approbation ou de rejet par un gestionnaire."""

    comment: Optional[str] = None
    rejection_reason: Optional[str] = None
    internal_comment: Optional[str] = None


@dataclass
class PlanningData:
    """Donnees de planification."""

    option: PlanningOption = PlanningOption.DIRECT
    scheduled_date: Optional[datetime] = None
    proposed_slots: list[TimeSlot] = field(default_factory=list)
    comment: Optional[str] = None


@dataclass
class ExecutionData:
    """Donnees de demarrage ou de cloture des travaux par le prestataire."""

    comment: str = ""
    internal_comment: Optional[str] = None
    actual_duration: Optional[int] = None  # minutes


@dataclass
class FinalizationData:
    """Donnees de cloture administrative par le gestionnaire."""

    final_amount: Optional[float] = None
    payment_comment: Optional[str] = None
    manager_comment: Optional[str] = None


@dataclass
class TenantValidationData:
    """Retour du locataire sur les travaux realises."""

    comment: Optional[str] = None
    satisfaction: Optional[int] = None  # 1 a 5


@dataclass
class InterventionStats:
    """Statistiques agregees des interventions."""

    total: int = 0
    by_status: dict[str, int] = field(default_factory=dict)
    by_priority: dict[str, int] = field(default_factory=dict)
