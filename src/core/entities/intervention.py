"""
Entites intervention.

Une intervention est un ordre de travaux de maintenance rattache a un lot
ou, pour les interventions communes, directement a un immeuble.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class InterventionStatus(str, Enum):
    """
    Statut d'une intervention.

    Le modele de base n'utilise que PENDING, APPROVED, IN_PROGRESS, COMPLETED
    et CANCELLED. Le modele etendu ajoute les etapes intermediaires de
    planification et de cloture.
    """

    PENDING = "pending"
    APPROVED = "approved"
    SCHEDULING = "scheduling"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    PROVIDER_COMPLETED = "provider_completed"
    TENANT_VALIDATED = "tenant_validated"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class InterventionPriority(str, Enum):
    """Priorite d'une intervention."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class AssignmentRole(str, Enum):
    """Role d'un utilisateur affecte a une intervention."""

    MANAGER = "manager"
    PROVIDER = "provider"
    TENANT = "tenant"


@dataclass
class TimeSlot:
    """Creneau propose pour la realisation des travaux (UTC)."""

    start: datetime
    end: datetime
    id: Optional[str] = None


@dataclass
class Intervention:
    """
    Ordre de travaux de maintenance.

    Attributs :
        id : Identifiant unique
        title, description, category : Description de la demande
        requested_by : Utilisateur demandeur (locataire ou gestionnaire)
        lot_id : Lot concerne (None pour une intervention sur l'immeuble)
        building_id : Immeuble concerne (deduit du lot si fourni)
        status : Statut courant, modifie uniquement via les actions du workflow
        priority : Priorite (low, medium, high, urgent)
        scheduled_date : Date planifiee
        completed_date : Date de fin des travaux par le prestataire
        estimated_duration / actual_duration : Durees en minutes
        notes : Journal textuel, alimente par ajout (jamais ecrase)
        proposed_slots : Creneaux proposes, en attente de selection
        quote_amount / final_amount : Montants du devis et final
    """

    title: str
    requested_by: str
    id: Optional[str] = None
    description: str = ""
    category: str = "general"
    lot_id: Optional[str] = None
    building_id: Optional[str] = None
    status: InterventionStatus = InterventionStatus.PENDING
    priority: InterventionPriority = InterventionPriority.MEDIUM
    scheduled_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    estimated_duration: Optional[int] = None
    actual_duration: Optional[int] = None
    notes: Optional[str] = None
    quote_amount: Optional[float] = None
    final_amount: Optional[float] = None
    proposed_slots: list[TimeSlot] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_building_wide(self) -> bool:
        """Indique si l'intervention concerne l'immeuble entier."""
        return self.lot_id is None


@dataclass
class InterventionAssignment:
    """Affectation d'un utilisateur a une intervention (relation de jointure)."""

    intervention_id: str
    user_id: str
    role: AssignmentRole
    id: Optional[str] = None
    is_primary: bool = False
    assigned_at: Optional[datetime] = None
