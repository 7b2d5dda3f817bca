"""
Fixtures pytest partagees pour les tests Gestimmo.

Ce module contient les fixtures communes utilisees dans les tests:
- Base SQLite en memoire et session SQLModel
- Repositories et services cables sur cette base
- Builders d'utilisateurs, d'immeubles et de lots
- Settings de test avec chemins temporaires
"""

from pathlib import Path
from typing import Iterator

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from src.config import Settings
from src.core.entities import Building, Contact, ContactType, Lot, Team, User, UserRole
from src.infrastructure.persistence.database import init_db
from src.infrastructure.persistence.repositories import (
    SQLModelBuildingRepository,
    SQLModelContactRepository,
    SQLModelInterventionRepository,
    SQLModelLotRepository,
    SQLModelTeamRepository,
    SQLModelUserRepository,
)
from src.services.building import BuildingService
from src.services.contact import ContactService
from src.services.intervention import InterventionService
from src.services.lot import LotService
from src.services.team import TeamService
from src.services.user import UserService


@pytest.fixture
def engine():
    """Engine SQLite en memoire partage par toutes les connexions du test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine) -> Iterator[Session]:
    with Session(engine) as session:
        yield session


# ====================
# Repositories
# ====================


@pytest.fixture
def user_repo(session) -> SQLModelUserRepository:
    return SQLModelUserRepository(session, retry_base_delay=0)


@pytest.fixture
def team_repo(session) -> SQLModelTeamRepository:
    return SQLModelTeamRepository(session, retry_base_delay=0)


@pytest.fixture
def building_repo(session) -> SQLModelBuildingRepository:
    return SQLModelBuildingRepository(session, retry_base_delay=0)


@pytest.fixture
def lot_repo(session) -> SQLModelLotRepository:
    return SQLModelLotRepository(session, retry_base_delay=0)


@pytest.fixture
def contact_repo(session) -> SQLModelContactRepository:
    return SQLModelContactRepository(session, retry_base_delay=0)


@pytest.fixture
def intervention_repo(session) -> SQLModelInterventionRepository:
    return SQLModelInterventionRepository(session, retry_base_delay=0)


# ====================
# Services
# ====================


@pytest.fixture
def user_service(user_repo) -> UserService:
    return UserService(user_repo)


@pytest.fixture
def team_service(team_repo, user_repo) -> TeamService:
    return TeamService(team_repo, user_repo)


@pytest.fixture
def building_service(building_repo, team_repo) -> BuildingService:
    return BuildingService(building_repo, team_repo)


@pytest.fixture
def lot_service(lot_repo, building_repo, user_repo) -> LotService:
    return LotService(lot_repo, building_repo, user_repo)


@pytest.fixture
def contact_service(contact_repo, user_repo, building_repo, lot_repo) -> ContactService:
    return ContactService(contact_repo, user_repo, building_repo, lot_repo)


@pytest.fixture
def intervention_service(
    intervention_repo, lot_repo, building_repo, user_repo, contact_repo
) -> InterventionService:
    """InterventionService sur le modele de base."""
    return InterventionService(intervention_repo, lot_repo, building_repo, user_repo, contact_repo)


@pytest.fixture
def extended_service(
    intervention_repo, lot_repo, building_repo, user_repo, contact_repo
) -> InterventionService:
    """InterventionService sur le modele etendu."""
    return InterventionService(
        intervention_repo, lot_repo, building_repo, user_repo, contact_repo, workflow_model="extended"
    )


# ====================
# Builders
# ====================


@pytest.fixture
def make_user(user_repo):
    """Cree un utilisateur persiste avec un email unique."""
    counter = iter(range(1, 10_000))

    def _make(role: UserRole = UserRole.TENANT, **kwargs) -> User:
        n = next(counter)
        kwargs.setdefault("email", f"{role.value}{n}@example.com")
        kwargs.setdefault("name", f"{role.value.capitalize()} {n}")
        return user_repo.save(User(role=role, **kwargs))

    return _make


@pytest.fixture
def manager(make_user) -> User:
    return make_user(UserRole.MANAGER)


@pytest.fixture
def tenant(make_user) -> User:
    return make_user(UserRole.TENANT)


@pytest.fixture
def provider(make_user) -> User:
    return make_user(UserRole.PROVIDER)


@pytest.fixture
def team(team_repo, manager) -> Team:
    return team_repo.save(Team(name="Agence Centre", created_by=manager.id))


@pytest.fixture
def building(building_repo, team) -> Building:
    return building_repo.save(
        Building(
            name="Residence Les Tilleuls",
            address="12 rue des Tilleuls",
            city="Lyon",
            postal_code="69003",
            team_id=team.id,
        )
    )


@pytest.fixture
def lot(lot_repo, building, tenant) -> Lot:
    return lot_repo.save(Lot(building_id=building.id, reference="A101", tenant_id=tenant.id))


@pytest.fixture
def building_manager(contact_repo, building, manager) -> Contact:
    """Gestionnaire principal de l'immeuble (cible de l'affectation automatique)."""
    return contact_repo.save(
        Contact(user_id=manager.id, type=ContactType.MANAGER, building_id=building.id, is_primary=True)
    )


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings de test avec base et logs dans un repertoire temporaire."""
    return Settings(
        database_url=f"sqlite:///{tmp_path}/test.db",
        log_file=tmp_path / "test.log",
    )
