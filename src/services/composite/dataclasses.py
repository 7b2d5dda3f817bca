"""
Dataclasses et enums des operations composites.

Le journal (CompositeOperation) et le resultat (CompositeOperationResult)
sont communs a toutes les orchestrations ; les autres dataclasses decrivent
les entrees et les donnees produites par chacune d'elles.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from src.core.entities import Building, Contact, Lot, Team, User
from src.core.errors import ServiceError

T = TypeVar("T")


class OperationType(str, Enum):
    """Nature d'une etape journalisee."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    READ = "read"


class OperationStatus(str, Enum):
    """Etat d'une etape journalisee."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class CompositeOperation:
    """
    Entree du journal : une etape d'une operation composite.

    Attributs :
        id : Identifiant de l'etape
        type : create, update, delete ou read
        service : Service ayant realise l'etape (user, team, lot...)
        entity : Entite logique (user, lot, building_contact...)
        entity_id : Identifiant produit ou vise, une fois connu
        data : Donnees transmises au service
        status : pending, puis completed ou failed
        timestamp : Date de debut de l'etape
        error : Cause de l'echec eventuel
    """

    id: str
    type: OperationType
    service: str
    entity: str
    timestamp: datetime
    entity_id: Optional[str] = None
    data: Any = None
    status: OperationStatus = OperationStatus.PENDING
    error: Optional[ServiceError] = None


@dataclass
class CompositeOperationResult(Generic[T]):
    """
    Resultat d'une operation composite.

    data est renseigne avec ce qui a ete produit, meme en cas d'echec.
    partial_success est reserve aux operations en eventail (invitations,
    operations groupees, statistiques).
    """

    success: bool
    data: T
    error: Optional[ServiceError] = None
    operations: list[CompositeOperation] = field(default_factory=list)
    rollback_operations: list[CompositeOperation] = field(default_factory=list)
    rollback_errors: list[ServiceError] = field(default_factory=list)
    partial_success: bool = False


# ----------------------------------------------------------------------
# Entrees
# ----------------------------------------------------------------------


@dataclass
class CreateCompleteUserData:
    """Utilisateur, et optionnellement equipe, immeuble et lots."""

    user: dict[str, Any]
    team: Optional[dict[str, Any]] = None
    building: Optional[dict[str, Any]] = None
    lots: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class CreateCompleteBuildingData:
    building: dict[str, Any]
    lots: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class CreateCompletePropertyData:
    """
    Immeuble, contacts de l'immeuble, lots et contacts des lots.

    lot_contacts est indexe par la position du lot dans lots (les
    identifiants des lots n'existent pas encore).
    """

    building: dict[str, Any]
    building_contacts: list[dict[str, Any]] = field(default_factory=list)
    lots: list[dict[str, Any]] = field(default_factory=list)
    lot_contacts: dict[int, list[dict[str, Any]]] = field(default_factory=dict)


@dataclass
class UpdateCompletePropertyData:
    """
    Synchronisation differentielle d'un immeuble et de ses lots.

    building_contacts a None laisse les contacts de l'immeuble inchanges.
    lot_contacts est indexe par identifiant de lot existant,
    new_lot_contacts par position dans lots_to_create.
    """

    building_id: str
    building: dict[str, Any] = field(default_factory=dict)
    building_contacts: Optional[list[dict[str, Any]]] = None
    lots_to_delete: list[str] = field(default_factory=list)
    lots_to_update: dict[str, dict[str, Any]] = field(default_factory=dict)
    lots_to_create: list[dict[str, Any]] = field(default_factory=list)
    lot_contacts: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    new_lot_contacts: dict[int, list[dict[str, Any]]] = field(default_factory=dict)


@dataclass
class InviteTeamContactsData:
    team_id: str
    contacts: list[dict[str, Any]]
    invited_by: str


@dataclass
class TransferLotTenantData:
    lot_id: str
    from_tenant_id: Optional[str]
    to_tenant_id: str
    transferred_by: str
    transfer_date: Optional[datetime] = None
    reason: Optional[str] = None


@dataclass
class BulkUserOperation:
    """Operation unitaire : type create, update ou delete."""

    type: str
    id: Optional[str] = None
    data: Optional[dict[str, Any]] = None


@dataclass
class BulkUserOperationsData:
    operations: list[BulkUserOperation]
    performed_by: str


STATS_PERIODS = ("24h", "7d", "30d")


@dataclass
class CompositeStatsRequest:
    team_id: str
    requested_by: str
    period: str = "7d"
    include_details: bool = False


# ----------------------------------------------------------------------
# Donnees produites
# ----------------------------------------------------------------------


@dataclass
class CompleteUserData:
    user: Optional[User] = None
    team: Optional[Team] = None
    building: Optional[Building] = None
    lots: list[Lot] = field(default_factory=list)


@dataclass
class CompleteBuildingData:
    building: Optional[Building] = None
    lots: list[Lot] = field(default_factory=list)


@dataclass
class CompletePropertyData:
    building: Optional[Building] = None
    building_contacts: list[Contact] = field(default_factory=list)
    lots: list[Lot] = field(default_factory=list)
    lot_contacts: dict[str, list[Contact]] = field(default_factory=dict)


@dataclass
class UpdatedPropertyData:
    building: Optional[Building] = None
    building_contacts: list[Contact] = field(default_factory=list)
    deleted_lot_ids: list[str] = field(default_factory=list)
    updated_lots: list[Lot] = field(default_factory=list)
    created_lots: list[Lot] = field(default_factory=list)
    lot_contacts: dict[str, list[Contact]] = field(default_factory=dict)


@dataclass
class Invitation:
    contact: Contact
    invited: bool


@dataclass
class InvitationsData:
    invitations: list[Invitation] = field(default_factory=list)


@dataclass
class TransferData:
    lot: Optional[Lot] = None


@dataclass
class BulkItemResult:
    success: bool
    data: Any = None
    error: Optional[ServiceError] = None


@dataclass
class BulkResultsData:
    results: list[BulkItemResult] = field(default_factory=list)


@dataclass
class CompositeStats:
    """Statistiques agregees d'une equipe ; une source en echec reste a None."""

    period: str
    team: Optional[Team] = None
    buildings: Optional[list[Building]] = None
    users: Optional[list[User]] = None

    @property
    def building_count(self) -> Optional[int]:
        return len(self.buildings) if self.buildings is not None else None

    @property
    def user_count(self) -> Optional[int]:
        return len(self.users) if self.users is not None else None
