"""
Implementations SQLModel des repositories.

Ce module contient les implementations concretes des interfaces repository
definies dans src/core/ports/repositories.py, utilisant SQLModel pour
la persistance.

Chaque repository :
- Herite de l'interface ABC correspondante du domaine
- Recoit une session SQLModel via injection de dependances
- Convertit entre entites de domaine (dataclass) et modeles DB (SQLModel)
- Traduit les erreurs SQLAlchemy en RepositoryError
"""

from src.infrastructure.persistence.repositories.building_repository import (
    SQLModelBuildingRepository,
)
from src.infrastructure.persistence.repositories.contact_repository import (
    SQLModelContactRepository,
)
from src.infrastructure.persistence.repositories.intervention_repository import (
    SQLModelInterventionRepository,
)
from src.infrastructure.persistence.repositories.lot_repository import (
    SQLModelLotRepository,
)
from src.infrastructure.persistence.repositories.team_repository import (
    SQLModelTeamRepository,
)
from src.infrastructure.persistence.repositories.user_repository import (
    SQLModelUserRepository,
)

__all__ = [
    "SQLModelBuildingRepository",
    "SQLModelContactRepository",
    "SQLModelInterventionRepository",
    "SQLModelLotRepository",
    "SQLModelTeamRepository",
    "SQLModelUserRepository",
]
