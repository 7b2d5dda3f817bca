"""
Implementation SQLModel du repository User.

Implemente l'interface IUserRepository pour la persistance des utilisateurs.
"""

from typing import Optional

from sqlalchemy import func
from sqlmodel import select

from src.core.entities import User, UserRole, UserStatus
from src.core.ports.repositories import IUserRepository
from src.infrastructure.persistence.models import UserModel
from src.infrastructure.persistence.repositories.base import SQLModelRepository


class SQLModelUserRepository(SQLModelRepository[UserModel], IUserRepository):
    """
    Repository SQLModel pour les utilisateurs.

    L'email est stocke en minuscules pour garantir l'unicite insensible a la casse.
    """

    model_class = UserModel
    table = "users"

    def _to_entity(self, model: UserModel) -> User:
        return User(
            id=model.id,
            email=model.email,
            name=model.name,
            role=UserRole(model.role),
            status=UserStatus(model.status),
            phone=model.phone,
            team_id=model.team_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def get_by_id(self, user_id: str) -> Optional[User]:
        """Recupere un utilisateur par son ID."""
        model = self._read(lambda: self._get_model(user_id), "get_by_id")
        return self._to_entity(model) if model else None

    def get_by_email(self, email: str) -> Optional[User]:
        """Recupere un utilisateur par son email (insensible a la casse)."""
        statement = select(UserModel).where(func.lower(UserModel.email) == email.strip().lower())
        model = self._read(lambda: self._session.exec(statement).first(), "get_by_email")
        return self._to_entity(model) if model else None

    def list_all(self) -> list[User]:
        """Liste tous les utilisateurs, tries par nom."""
        statement = select(UserModel).order_by(UserModel.name)
        models = self._read(lambda: self._session.exec(statement).all(), "list_all")
        return [self._to_entity(m) for m in models]

    def list_by_team(self, team_id: str) -> list[User]:
        statement = select(UserModel).where(UserModel.team_id == team_id).order_by(UserModel.name)
        models = self._read(lambda: self._session.exec(statement).all(), "list_by_team")
        return [self._to_entity(m) for m in models]

    def save(self, user: User) -> User:
        """Sauvegarde un utilisateur (insertion ou mise a jour)."""
        user.email = user.email.strip().lower()
        return self._to_entity(self._upsert(user))

    def delete(self, user_id: str) -> bool:
        return self._delete_model(user_id)
