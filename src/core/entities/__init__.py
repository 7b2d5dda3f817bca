"""
Business entities representing core domain concepts.

Entities are mutable objects with identity that persist over time.
They encapsulate business rules and behavior.

Exports:
- User, Team, TeamMember: People and the teams they belong to
- Building, Lot: Managed real estate
- Contact: Role-tagged assignment of a user to a team, building or lot
- Intervention, InterventionAssignment: Maintenance work orders
"""

from src.core.entities.intervention import (
    AssignmentRole,
    Intervention,
    InterventionAssignment,
    InterventionPriority,
    InterventionStatus,
    TimeSlot,
)
from src.core.entities.property import (
    Building,
    Contact,
    ContactType,
    Lot,
    LotType,
    Team,
    TeamMember,
    TeamMemberRole,
    User,
    UserRole,
    UserStatus,
)

__all__ = [
    "AssignmentRole",
    "Building",
    "Contact",
    "ContactType",
    "Intervention",
    "InterventionAssignment",
    "InterventionPriority",
    "InterventionStatus",
    "Lot",
    "LotType",
    "Team",
    "TeamMember",
    "TeamMemberRole",
    "TimeSlot",
    "User",
    "UserRole",
    "UserStatus",
]
