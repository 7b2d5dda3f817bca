"""
Modeles SQLModel pour la base de donnees Gestimmo.

Ces modeles representent les tables de la base de donnees.
Ils sont distincts des entites de domaine (dataclass dans core/entities/)
selon l'architecture hexagonale.

Tables:
- users: Utilisateurs (email unique)
- teams / team_members: Equipes et appartenances
- buildings: Immeubles (nom unique par equipe)
- lots: Lots (reference unique par immeuble)
- contacts: Affectations de contacts (equipe, immeuble ou lot)
- interventions: Ordres de travaux
- intervention_assignments: Affectations utilisateur <-> intervention

Les enums sont stockes sous forme de chaines (valeur de l'enum).
Les horodatages sont toujours en UTC avec fuseau (UTCDateTime).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column, DateTime, TypeDecorator, UniqueConstraint
from sqlmodel import Field, SQLModel

_NOW = object()


class UTCDateTime(TypeDecorator):
    """
    Horodatage UTC avec fuseau, quel que soit le moteur.

    SQLite ne conserve pas le fuseau : les valeurs relues sont rattachees a UTC.
    Une valeur naive a l'ecriture est consideree comme deja exprimee en UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None or value.tzinfo is not None:
            return value
        return value.replace(tzinfo=timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _timestamp(default: Any = _NOW) -> Any:
    """Champ horodatage ; maintenant par defaut, ou la valeur fournie."""
    if default is _NOW:
        return Field(default_factory=_utcnow, sa_column=Column(UTCDateTime(), nullable=True))
    return Field(default=default, sa_column=Column(UTCDateTime(), nullable=True))


class UserModel(SQLModel, table=True):
    """Modele representant un utilisateur."""

    __tablename__ = "users"

    id: str = Field(default_factory=_new_id, primary_key=True)
    email: str = Field(index=True, unique=True)
    name: str
    role: str = Field(index=True)
    status: str = Field(default="active")
    phone: str | None = None
    team_id: str | None = Field(default=None, index=True)
    created_at: datetime | None = _timestamp()
    updated_at: datetime | None = _timestamp()


class TeamModel(SQLModel, table=True):
    """Modele representant une equipe."""

    __tablename__ = "teams"

    id: str = Field(default_factory=_new_id, primary_key=True)
    name: str = Field(index=True)
    description: str | None = None
    created_by: str = Field(index=True)
    created_at: datetime | None = _timestamp()
    updated_at: datetime | None = _timestamp()


class TeamMemberModel(SQLModel, table=True):
    """Appartenance d'un utilisateur a une equipe."""

    __tablename__ = "team_members"
    __table_args__ = (UniqueConstraint("team_id", "user_id", name="uq_team_member"),)

    id: str = Field(default_factory=_new_id, primary_key=True)
    team_id: str = Field(foreign_key="teams.id", index=True)
    user_id: str = Field(index=True)
    role: str = Field(default="member")
    joined_at: datetime | None = _timestamp()


class BuildingModel(SQLModel, table=True):
    """Modele representant un immeuble."""

    __tablename__ = "buildings"
    __table_args__ = (UniqueConstraint("team_id", "name", name="uq_building_team_name"),)

    id: str = Field(default_factory=_new_id, primary_key=True)
    name: str
    address: str
    city: str
    postal_code: str
    country: str = Field(default="France")
    team_id: str = Field(index=True)
    created_by: str | None = None
    description: str | None = None
    created_at: datetime | None = _timestamp()
    updated_at: datetime | None = _timestamp()


class LotModel(SQLModel, table=True):
    """Modele representant un lot."""

    __tablename__ = "lots"
    __table_args__ = (UniqueConstraint("building_id", "reference", name="uq_lot_building_reference"),)

    id: str = Field(default_factory=_new_id, primary_key=True)
    building_id: str = Field(foreign_key="buildings.id", index=True)
    reference: str
    type: str = Field(default="apartment")
    floor: int | None = None
    surface_area: float | None = None
    rent_amount: float | None = None
    charges_amount: float | None = None
    tenant_id: str | None = Field(default=None, index=True)
    description: str | None = None
    created_at: datetime | None = _timestamp()
    updated_at: datetime | None = _timestamp()


class ContactModel(SQLModel, table=True):
    """
    Affectation d'un utilisateur.

    building_id et lot_id sont exclusifs ; un contact d'equipe n'a ni l'un ni l'autre.
    """

    __tablename__ = "contacts"

    id: str = Field(default_factory=_new_id, primary_key=True)
    user_id: str = Field(index=True)
    type: str = Field(index=True)
    team_id: str | None = Field(default=None, index=True)
    building_id: str | None = Field(default=None, index=True)
    lot_id: str | None = Field(default=None, index=True)
    status: str = Field(default="active")
    is_primary: bool = Field(default=False)
    invited_at: datetime | None = _timestamp(None)
    created_at: datetime | None = _timestamp()


class InterventionModel(SQLModel, table=True):
    """Modele representant une intervention."""

    __tablename__ = "interventions"

    id: str = Field(default_factory=_new_id, primary_key=True)
    title: str
    description: str = Field(default="")
    category: str = Field(default="general")
    requested_by: str = Field(index=True)
    lot_id: str | None = Field(default=None, index=True)
    building_id: str | None = Field(default=None, index=True)
    status: str = Field(default="pending", index=True)
    priority: str = Field(default="medium", index=True)
    scheduled_date: datetime | None = _timestamp(None)
    completed_date: datetime | None = _timestamp(None)
    # Creneaux proposes : [{"id", "start", "end"}] en ISO 8601
    proposed_slots: list[dict[str, str]] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    estimated_duration: int | None = None
    actual_duration: int | None = None
    notes: str | None = None
    quote_amount: float | None = None
    final_amount: float | None = None
    created_at: datetime | None = _timestamp()
    updated_at: datetime | None = _timestamp()


class InterventionAssignmentModel(SQLModel, table=True):
    """Affectation d'un utilisateur a une intervention."""

    __tablename__ = "intervention_assignments"
    __table_args__ = (
        UniqueConstraint("intervention_id", "user_id", "role", name="uq_intervention_assignment"),
    )

    id: str = Field(default_factory=_new_id, primary_key=True)
    intervention_id: str = Field(foreign_key="interventions.id", index=True)
    user_id: str = Field(index=True)
    role: str
    is_primary: bool = Field(default=False)
    assigned_at: datetime | None = _timestamp()
