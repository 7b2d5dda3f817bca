"""
Implementation SQLModel du repository Team.

Gere les equipes et la table d'appartenance team_members.
"""

from typing import Optional

from sqlalchemy import delete
from sqlmodel import select

from src.core.entities import Team, TeamMember, TeamMemberRole
from src.core.ports.repositories import ITeamRepository
from src.infrastructure.persistence.models import TeamMemberModel, TeamModel
from src.infrastructure.persistence.repositories.base import SQLModelRepository


class SQLModelTeamRepository(SQLModelRepository[TeamModel], ITeamRepository):
    """Repository SQLModel pour les equipes et leurs membres."""

    model_class = TeamModel
    table = "teams"

    def _to_entity(self, model: TeamModel) -> Team:
        return Team(
            id=model.id,
            name=model.name,
            description=model.description,
            created_by=model.created_by,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def _to_member(model: TeamMemberModel) -> TeamMember:
        return TeamMember(
            id=model.id,
            team_id=model.team_id,
            user_id=model.user_id,
            role=TeamMemberRole(model.role),
            joined_at=model.joined_at,
        )

    def get_by_id(self, team_id: str) -> Optional[Team]:
        model = self._read(lambda: self._get_model(team_id), "get_by_id")
        return self._to_entity(model) if model else None

    def save(self, team: Team) -> Team:
        return self._to_entity(self._upsert(team))

    def delete(self, team_id: str) -> bool:
        """Supprime l'equipe apres avoir retire toutes ses appartenances."""

        def operation() -> bool:
            model = self._get_model(team_id)
            if model is None:
                return False
            self._session.execute(delete(TeamMemberModel).where(TeamMemberModel.team_id == team_id))
            self._session.delete(model)
            return True

        return self._write(operation, "delete")

    def add_member(self, member: TeamMember) -> TeamMember:
        model = TeamMemberModel(team_id=member.team_id, user_id=member.user_id, role=member.role.value)

        def operation() -> TeamMemberModel:
            self._session.add(model)
            return model

        self._write(operation, "add_member")
        self._session.refresh(model)
        return self._to_member(model)

    def remove_member(self, team_id: str, user_id: str) -> bool:
        statement = delete(TeamMemberModel).where(
            TeamMemberModel.team_id == team_id, TeamMemberModel.user_id == user_id
        )
        result = self._write(lambda: self._session.execute(statement), "remove_member")
        return result.rowcount > 0

    def list_members(self, team_id: str) -> list[TeamMember]:
        statement = select(TeamMemberModel).where(TeamMemberModel.team_id == team_id)
        models = self._read(lambda: self._session.exec(statement).all(), "list_members")
        return [self._to_member(m) for m in models]

    def list_teams_for_user(self, user_id: str) -> list[Team]:
        statement = (
            select(TeamModel)
            .join(TeamMemberModel, TeamMemberModel.team_id == TeamModel.id)
            .where(TeamMemberModel.user_id == user_id)
            .order_by(TeamModel.name)
        )
        models = self._read(lambda: self._session.exec(statement).all(), "list_teams_for_user")
        return [self._to_entity(m) for m in models]
