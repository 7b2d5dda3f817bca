"""
Container d'injection de dependances via dependency-injector.

Fournit une gestion centralisee des dependances pour la CLI et les
appelants externes : repositories SQLModel, services d'entites, service
des interventions et orchestrateur composite.
"""

from dependency_injector import containers, providers

from .config import Settings
from .infrastructure.persistence.database import get_session, init_db
from .infrastructure.persistence.repositories import (
    SQLModelBuildingRepository,
    SQLModelContactRepository,
    SQLModelInterventionRepository,
    SQLModelLotRepository,
    SQLModelTeamRepository,
    SQLModelUserRepository,
)
from .services.building import BuildingService
from .services.composite import CompositeService
from .services.contact import ContactService
from .services.intervention import InterventionService
from .services.lot import LotService
from .services.team import TeamService
from .services.user import UserService


class Container(containers.DeclarativeContainer):
    """Container DI de l'application.

    Utilisation :
        container = Container()
        container.database.init()  # Initialise la DB une fois
        interventions = container.intervention_service()
        composite = container.composite_service()
    """

    # Configuration - singleton charge une seule fois
    config = providers.Singleton(Settings)

    # Database - Resource pour initialisation unique
    database = providers.Resource(init_db)

    # Session factory - nouvelle session a chaque appel
    session = providers.Factory(lambda: next(get_session()))

    # Repositories - Factory pour nouvelle instance avec session fraiche,
    # politique de retry des lectures issue de la configuration
    user_repository = providers.Factory(
        SQLModelUserRepository,
        session=session,
        retry_attempts=config.provided.store_retry_attempts,
        retry_base_delay=config.provided.store_retry_base_delay,
        retry_max_delay=config.provided.store_retry_max_delay,
    )
    team_repository = providers.Factory(
        SQLModelTeamRepository,
        session=session,
        retry_attempts=config.provided.store_retry_attempts,
        retry_base_delay=config.provided.store_retry_base_delay,
        retry_max_delay=config.provided.store_retry_max_delay,
    )
    building_repository = providers.Factory(
        SQLModelBuildingRepository,
        session=session,
        retry_attempts=config.provided.store_retry_attempts,
        retry_base_delay=config.provided.store_retry_base_delay,
        retry_max_delay=config.provided.store_retry_max_delay,
    )
    lot_repository = providers.Factory(
        SQLModelLotRepository,
        session=session,
        retry_attempts=config.provided.store_retry_attempts,
        retry_base_delay=config.provided.store_retry_base_delay,
        retry_max_delay=config.provided.store_retry_max_delay,
    )
    contact_repository = providers.Factory(
        SQLModelContactRepository,
        session=session,
        retry_attempts=config.provided.store_retry_attempts,
        retry_base_delay=config.provided.store_retry_base_delay,
        retry_max_delay=config.provided.store_retry_max_delay,
    )
    intervention_repository = providers.Factory(
        SQLModelInterventionRepository,
        session=session,
        retry_attempts=config.provided.store_retry_attempts,
        retry_base_delay=config.provided.store_retry_base_delay,
        retry_max_delay=config.provided.store_retry_max_delay,
    )

    # Services d'entites - Factory car dependent de repositories (sessions fraiches)
    user_service = providers.Factory(UserService, repository=user_repository)
    team_service = providers.Factory(
        TeamService,
        repository=team_repository,
        user_repository=user_repository,
    )
    building_service = providers.Factory(
        BuildingService,
        repository=building_repository,
        team_repository=team_repository,
    )
    lot_service = providers.Factory(
        LotService,
        repository=lot_repository,
        building_repository=building_repository,
        user_repository=user_repository,
    )
    contact_service = providers.Factory(
        ContactService,
        repository=contact_repository,
        user_repository=user_repository,
        building_repository=building_repository,
        lot_repository=lot_repository,
    )

    # Service des interventions - modele de workflow issu de la configuration
    intervention_service = providers.Factory(
        InterventionService,
        repository=intervention_repository,
        lot_repository=lot_repository,
        building_repository=building_repository,
        user_repository=user_repository,
        contact_repository=contact_repository,
        workflow_model=config.provided.intervention_workflow,
        auto_assign_managers=config.provided.auto_assign_managers,
    )

    # Orchestrateur composite
    composite_service = providers.Factory(
        CompositeService,
        user_service=user_service,
        building_service=building_service,
        lot_service=lot_service,
        team_service=team_service,
        contact_service=contact_service,
    )
