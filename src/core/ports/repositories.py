"""
Interfaces ports pour les repositories.

Interfaces abstraites (ports) definissant les contrats pour la persistance des donnees.
Les implementations (adaptateurs) fournissent les mecanismes de stockage concrets
(SQLite/PostgreSQL via SQLModel, en memoire pour les tests, etc.).

Les echecs du stockage sont leves sous forme de RepositoryError ; l'absence
d'une entite se traduit par None (lecture) ou False (suppression).
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from src.core.entities import (
    AssignmentRole,
    Building,
    Contact,
    ContactType,
    Intervention,
    InterventionAssignment,
    InterventionStatus,
    Lot,
    Team,
    TeamMember,
    User,
)


class IUserRepository(ABC):
    """Interface de stockage des utilisateurs."""

    @abstractmethod
    def get_by_id(self, user_id: str) -> Optional[User]:
        """Recupere un utilisateur par son ID."""
        ...

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        """Recupere un utilisateur par son email (insensible a la casse)."""
        ...

    @abstractmethod
    def list_all(self) -> list[User]:
        """Liste tous les utilisateurs."""
        ...

    @abstractmethod
    def list_by_team(self, team_id: str) -> list[User]:
        """Liste les utilisateurs dont l'equipe principale est team_id."""
        ...

    @abstractmethod
    def save(self, user: User) -> User:
        """Sauvegarde un utilisateur (insertion ou mise a jour)."""
        ...

    @abstractmethod
    def delete(self, user_id: str) -> bool:
        """Supprime un utilisateur. Retourne True si supprime."""
        ...


class ITeamRepository(ABC):
    """Interface de stockage des equipes et de leurs membres."""

    @abstractmethod
    def get_by_id(self, team_id: str) -> Optional[Team]:
        ...

    @abstractmethod
    def save(self, team: Team) -> Team:
        ...

    @abstractmethod
    def delete(self, team_id: str) -> bool:
        """Supprime une equipe et ses appartenances."""
        ...

    @abstractmethod
    def add_member(self, member: TeamMember) -> TeamMember:
        ...

    @abstractmethod
    def remove_member(self, team_id: str, user_id: str) -> bool:
        ...

    @abstractmethod
    def list_members(self, team_id: str) -> list[TeamMember]:
        ...

    @abstractmethod
    def list_teams_for_user(self, user_id: str) -> list[Team]:
        ...


class IBuildingRepository(ABC):
    """Interface de stockage des immeubles."""

    @abstractmethod
    def get_by_id(self, building_id: str) -> Optional[Building]:
        ...

    @abstractmethod
    def get_by_name(self, team_id: str, name: str) -> Optional[Building]:
        """Recupere un immeuble par son nom au sein d'une equipe."""
        ...

    @abstractmethod
    def list_by_team(self, team_id: str) -> list[Building]:
        ...

    @abstractmethod
    def save(self, building: Building) -> Building:
        ...

    @abstractmethod
    def delete(self, building_id: str) -> bool:
        ...


class ILotRepository(ABC):
    """Interface de stockage des lots."""

    @abstractmethod
    def get_by_id(self, lot_id: str) -> Optional[Lot]:
        ...

    @abstractmethod
    def get_by_reference(self, building_id: str, reference: str) -> Optional[Lot]:
        """Recupere un lot par sa reference au sein d'un immeuble."""
        ...

    @abstractmethod
    def list_by_building(self, building_id: str) -> list[Lot]:
        ...

    @abstractmethod
    def save(self, lot: Lot) -> Lot:
        ...

    @abstractmethod
    def delete(self, lot_id: str) -> bool:
        ...


class IContactRepository(ABC):
    """
    Interface de stockage des affectations de contacts.

    Couvre les contacts d'equipe ainsi que les tables de jointure
    immeuble-contact et lot-contact.
    """

    @abstractmethod
    def get_by_id(self, contact_id: str) -> Optional[Contact]:
        ...

    @abstractmethod
    def save(self, contact: Contact) -> Contact:
        ...

    @abstractmethod
    def save_many(self, contacts: Iterable[Contact]) -> list[Contact]:
        """Insere plusieurs affectations dans une meme transaction."""
        ...

    @abstractmethod
    def delete(self, contact_id: str) -> bool:
        ...

    @abstractmethod
    def list_contacts(
        self,
        team_id: Optional[str] = None,
        building_id: Optional[str] = None,
        lot_id: Optional[str] = None,
        contact_type: Optional[ContactType] = None,
    ) -> list[Contact]:
        """Liste les affectations correspondant aux filtres fournis."""
        ...

    @abstractmethod
    def delete_for_building(self, building_id: str, user_ids: Optional[Iterable[str]] = None) -> int:
        """
        Supprime les affectations d'un immeuble.

        Args:
            building_id: Immeuble concerne
            user_ids: Restreint la suppression a ces utilisateurs (None = toutes)

        Retourne:
            Nombre d'affectations supprimees
        """
        ...

    @abstractmethod
    def delete_for_lot(self, lot_id: str, user_ids: Optional[Iterable[str]] = None) -> int:
        """Supprime les affectations d'un lot (toutes ou pour user_ids)."""
        ...


class IInterventionRepository(ABC):
    """Interface de stockage des interventions et de leurs affectations."""

    @abstractmethod
    def get_by_id(self, intervention_id: str) -> Optional[Intervention]:
        ...

    @abstractmethod
    def list_interventions(
        self,
        status: Optional[InterventionStatus] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Intervention]:
        ...

    @abstractmethod
    def list_by_lot(self, lot_id: str) -> list[Intervention]:
        ...

    @abstractmethod
    def list_by_building(self, building_id: str) -> list[Intervention]:
        ...

    @abstractmethod
    def list_by_requester(self, user_id: str) -> list[Intervention]:
        ...

    @abstractmethod
    def list_by_assignee(self, user_id: str, role: AssignmentRole) -> list[Intervention]:
        ...

    @abstractmethod
    def save(self, intervention: Intervention) -> Intervention:
        ...

    @abstractmethod
    def delete(self, intervention_id: str) -> bool:
        """Supprime une intervention et ses affectations."""
        ...

    @abstractmethod
    def count(self) -> int:
        ...

    @abstractmethod
    def count_by(self, column: str) -> dict[str, int]:
        """Compte les interventions groupees par colonne ('status' ou 'priority')."""
        ...

    @abstractmethod
    def add_assignment(self, assignment: InterventionAssignment) -> InterventionAssignment:
        ...

    @abstractmethod
    def remove_assignment(self, intervention_id: str, user_id: str, role: AssignmentRole) -> bool:
        ...

    @abstractmethod
    def list_assignments(
        self, intervention_id: str, role: Optional[AssignmentRole] = None
    ) -> list[InterventionAssignment]:
        ...
