"""
Entites du patrimoine immobilier.

Entites representant les utilisateurs, equipes, immeubles, lots et contacts
geres par l'application. Un contact n'est pas une personne distincte : c'est
l'affectation typee (locataire, proprietaire, gestionnaire, prestataire)
d'un utilisateur a un lot ou a un immeuble.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class UserRole(str, Enum):
    """Role applicatif d'un utilisateur."""

    ADMIN = "admin"
    MANAGER = "manager"
    PROVIDER = "provider"
    TENANT = "tenant"


class UserStatus(str, Enum):
    """Statut d'un compte utilisateur."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class TeamMemberRole(str, Enum):
    """Role d'un membre au sein d'une equipe."""

    ADMIN = "admin"
    MEMBER = "member"


class LotType(str, Enum):
    """Categorie d'un lot."""

    APARTMENT = "apartment"
    COMMERCIAL = "commercial"
    PARKING = "parking"
    STORAGE = "storage"


class ContactType(str, Enum):
    """Type d'affectation d'un contact."""

    TENANT = "tenant"
    OWNER = "owner"
    MANAGER = "manager"
    PROVIDER = "provider"


@dataclass
class User:
    """
    Utilisateur de l'application.

    Attributs :
        id : Identifiant unique
        email : Adresse email (unique)
        name : Nom complet affiche
        role : Role applicatif (admin, manager, provider, tenant)
        status : Statut du compte
        phone : Telephone optionnel
        team_id : Equipe principale de l'utilisateur
    """

    email: str
    name: str
    role: UserRole
    id: Optional[str] = None
    status: UserStatus = UserStatus.ACTIVE
    phone: Optional[str] = None
    team_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Team:
    """Equipe de gestion regroupant des utilisateurs et des immeubles."""

    name: str
    created_by: str
    id: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class TeamMember:
    """Appartenance d'un utilisateur a une equipe."""

    team_id: str
    user_id: str
    role: TeamMemberRole = TeamMemberRole.MEMBER
    id: Optional[str] = None
    joined_at: Optional[datetime] = None


@dataclass
class Building:
    """
    Immeuble rattache a une equipe.

    Attributs :
        name : Nom de l'immeuble (unique au sein de l'equipe)
        address, city, postal_code, country : Adresse postale
        team_id : Equipe proprietaire de l'immeuble
        created_by : Utilisateur createur
    """

    name: str
    address: str
    city: str
    postal_code: str
    team_id: str
    id: Optional[str] = None
    country: str = "France"
    created_by: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Lot:
    """
    Lot locatif (appartement, local commercial, parking...) d'un immeuble.

    La reference est unique au sein d'un meme immeuble.
    """

    building_id: str
    reference: str
    id: Optional[str] = None
    type: LotType = LotType.APARTMENT
    floor: Optional[int] = None
    surface_area: Optional[float] = None
    rent_amount: Optional[float] = None
    charges_amount: Optional[float] = None
    tenant_id: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Contact:
    """
    Affectation typee d'un utilisateur a une equipe, un immeuble ou un lot.

    Attributs :
        user_id : Utilisateur affecte
        type : Nature de l'affectation
        team_id : Equipe de rattachement (contacts invites)
        building_id : Immeuble concerne (affectation immeuble)
        lot_id : Lot concerne (affectation lot)
        is_primary : Contact principal pour ce type
        invited_at : Date d'envoi de l'invitation
    """

    user_id: str
    type: ContactType
    id: Optional[str] = None
    team_id: Optional[str] = None
    building_id: Optional[str] = None
    lot_id: Optional[str] = None
    status: UserStatus = UserStatus.ACTIVE
    is_primary: bool = False
    invited_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
