"""
Package du service des interventions.

Reexporte le service et les dataclasses des actions du workflow
(from src.services.intervention import ...).
"""

from .dataclasses import (
    ApprovalData,
    ExecutionData,
    FinalizationData,
    InterventionStats,
    PlanningData,
    PlanningOption,
    TenantValidationData,
    TimeSlot,
)
from .intervention_service import InterventionService

__all__ = [
    "ApprovalData",
    "ExecutionData",
    "FinalizationData",
    "InterventionService",
    "InterventionStats",
    "PlanningData",
    "PlanningOption",
    "TenantValidationData",
    "TimeSlot",
]
