"""
Service de gestion des equipes et de leurs membres.
"""

from typing import Any, Mapping

from loguru import logger

from src.core.entities import Team, TeamMember, TeamMemberRole
from src.core.errors import ConflictError, NotFoundError, validate_required
from src.core.ports.repositories import ITeamRepository, IUserRepository
from src.core.result import ServiceResult
from src.utils.helpers import apply_patch, clean_text, coerce_enum, utcnow


class TeamService:
    """
    Service metier des equipes.

    A la creation, le createur est ajoute comme membre administrateur.
    La suppression d'une equipe retire ses appartenances.
    """

    def __init__(self, repository: ITeamRepository, user_repository: IUserRepository) -> None:
        self._repo = repository
        self._users = user_repository

    async def create(self, data: Mapping[str, Any]) -> ServiceResult[Team]:
        """
        Cree une equipe.

        Args:
            data: name, created_by, description
        """
        validate_required(data, ("name", "created_by"))
        creator_id = data["created_by"]
        if self._users.get_by_id(creator_id) is None:
            return ServiceResult.fail(NotFoundError("User", creator_id))

        now = utcnow()
        team = self._repo.save(
            Team(
                name=clean_text(data["name"]),
                description=data.get("description"),
                created_by=creator_id,
                created_at=now,
                updated_at=now,
            )
        )
        self._repo.add_member(TeamMember(team_id=team.id, user_id=creator_id, role=TeamMemberRole.ADMIN))
        logger.debug(f"Equipe creee: {team.id} ({team.name})")
        return ServiceResult.ok(team)

    async def get_by_id(self, team_id: str) -> ServiceResult[Team]:
        team = self._repo.get_by_id(team_id)
        if team is None:
            return ServiceResult.fail(NotFoundError("Team", team_id))
        return ServiceResult.ok(team)

    async def update(self, team_id: str, patch: Mapping[str, Any]) -> ServiceResult[Team]:
        existing = self._repo.get_by_id(team_id)
        if existing is None:
            return ServiceResult.fail(NotFoundError("Team", team_id))
        updated = apply_patch(existing, patch)
        updated.updated_at = utcnow()
        return ServiceResult.ok(self._repo.save(updated))

    async def delete(self, team_id: str) -> ServiceResult[bool]:
        if not self._repo.delete(team_id):
            return ServiceResult.fail(NotFoundError("Team", team_id))
        logger.debug(f"Equipe supprimee: {team_id}")
        return ServiceResult.ok(True)

    async def add_member(
        self, team_id: str, user_id: str, role: TeamMemberRole | str = TeamMemberRole.MEMBER
    ) -> ServiceResult[TeamMember]:
        """Ajoute un utilisateur a l'equipe (refuse s'il en est deja membre)."""
        if self._repo.get_by_id(team_id) is None:
            return ServiceResult.fail(NotFoundError("Team", team_id))
        if self._users.get_by_id(user_id) is None:
            return ServiceResult.fail(NotFoundError("User", user_id))
        if any(m.user_id == user_id for m in self._repo.list_members(team_id)):
            return ServiceResult.fail(ConflictError("User is already a member of this team", "user_id", user_id))
        member = TeamMember(team_id=team_id, user_id=user_id, role=coerce_enum(TeamMemberRole, role, "role"))
        return ServiceResult.ok(self._repo.add_member(member))

    async def remove_member(self, team_id: str, user_id: str) -> ServiceResult[bool]:
        if not self._repo.remove_member(team_id, user_id):
            return ServiceResult.fail(NotFoundError("TeamMember", f"{team_id}/{user_id}"))
        return ServiceResult.ok(True)

    async def get_members(self, team_id: str) -> ServiceResult[list[TeamMember]]:
        return ServiceResult.ok(self._repo.list_members(team_id))

    async def get_user_teams(self, user_id: str) -> ServiceResult[list[Team]]:
        return ServiceResult.ok(self._repo.list_teams_for_user(user_id))
