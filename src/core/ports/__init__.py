"""
Ports (interfaces abstraites) définissant les contrats pour les adaptateurs.

Les ports sont les frontières de l'architecture hexagonale. Ils définissent
ce dont le domaine a besoin du monde extérieur sans spécifier
comment ces besoins sont satisfaits.

Ports repository : Contrats de persistance des données
- IUserRepository : Stockage des utilisateurs
- ITeamRepository : Stockage des équipes et de leurs membres
- IBuildingRepository : Stockage des immeubles
- ILotRepository : Stockage des lots
- IContactRepository : Stockage des affectations de contacts
- IInterventionRepository : Stockage des interventions et affectations
"""

from src.core.ports.repositories import (
    IBuildingRepository,
    IContactRepository,
    IInterventionRepository,
    ILotRepository,
    ITeamRepository,
    IUserRepository,
)

__all__ = [
    "IBuildingRepository",
    "IContactRepository",
    "IInterventionRepository",
    "ILotRepository",
    "ITeamRepository",
    "IUserRepository",
]
