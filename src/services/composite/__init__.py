"""
Package des operations composites.

Reexporte l'orchestrateur, le journal et les dataclasses d'entree/sortie
(from src.services.composite import ...).
"""

from .composite_service import CompositeService
from .dataclasses import (
    BulkItemResult,
    BulkResultsData,
    BulkUserOperation,
    BulkUserOperationsData,
    CompleteBuildingData,
    CompletePropertyData,
    CompleteUserData,
    CompositeOperation,
    CompositeOperationResult,
    CompositeStats,
    CompositeStatsRequest,
    CreateCompleteBuildingData,
    CreateCompletePropertyData,
    CreateCompleteUserData,
    Invitation,
    InvitationsData,
    InviteTeamContactsData,
    OperationStatus,
    OperationType,
    TransferData,
    TransferLotTenantData,
    UpdateCompletePropertyData,
    UpdatedPropertyData,
)
from .journal import CompositeStepError, OperationJournal

__all__ = [
    "BulkItemResult",
    "BulkResultsData",
    "BulkUserOperation",
    "BulkUserOperationsData",
    "CompleteBuildingData",
    "CompletePropertyData",
    "CompleteUserData",
    "CompositeOperation",
    "CompositeOperationResult",
    "CompositeService",
    "CompositeStats",
    "CompositeStatsRequest",
    "CompositeStepError",
    "CreateCompleteBuildingData",
    "CreateCompletePropertyData",
    "CreateCompleteUserData",
    "Invitation",
    "InvitationsData",
    "InviteTeamContactsData",
    "OperationJournal",
    "OperationStatus",
    "OperationType",
    "TransferData",
    "TransferLotTenantData",
    "UpdateCompletePropertyData",
    "UpdatedPropertyData",
]
