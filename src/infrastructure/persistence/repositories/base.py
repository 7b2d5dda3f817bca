"""
Socle commun des repositories SQLModel.

Fournit :
- l'execution des lectures sous politique de retry (erreurs transitoires)
- l'execution des ecritures avec commit, rollback et traduction des erreurs
- l'insertion/mise a jour generique d'un modele a partir d'une entite
"""

from dataclasses import asdict
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel

from src.infrastructure.persistence.errors import transform_store_error
from src.infrastructure.persistence.retry import build_retrying
from src.utils.helpers import as_utc

M = TypeVar("M", bound=SQLModel)
R = TypeVar("R")

# Champs geres par la base, jamais recopies depuis l'entite lors d'une mise a jour
_READ_ONLY_FIELDS = frozenset({"id", "created_at", "joined_at", "assigned_at"})


def _storable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return as_utc(value)
    return value


def entity_values(entity: Any) -> dict[str, Any]:
    """Convertit une entite dataclass en dict de valeurs stockables (enums -> valeur, dates en UTC)."""
    return {k: _storable(v) for k, v in asdict(entity).items()}


class SQLModelRepository(Generic[M]):
    """
    Classe de base des repositories SQLModel.

    Les sous-classes declarent model_class et table, et implementent
    _to_entity pour la conversion modele -> entite.
    """

    model_class: type[M]
    table: str = ""

    def __init__(
        self,
        session: Session,
        retry_attempts: int = 3,
        retry_base_delay: float = 0.2,
        retry_max_delay: float = 5.0,
    ) -> None:
        """
        Initialise le repository avec une session SQLModel.

        Args :
            session : Session SQLModel active pour les operations DB
            retry_attempts : Tentatives maximum pour les lectures
            retry_base_delay : Delai initial du backoff (secondes)
            retry_max_delay : Delai maximum du backoff (secondes)
        """
        self._session = session
        self._retrying = build_retrying(retry_attempts, retry_base_delay, retry_max_delay)

    def _read(self, operation: Callable[[], R], context: str) -> R:
        """Execute une lecture idempotente, relancee sur erreur transitoire."""

        def guarded() -> R:
            try:
                return operation()
            except SQLAlchemyError as e:
                self._session.rollback()
                raise transform_store_error(e, f"{self.table}:{context}") from e

        return self._retrying(guarded)

    def _write(self, operation: Callable[[], R], context: str) -> R:
        """Execute une ecriture puis commit ; rollback et traduction en cas d'erreur."""
        try:
            result = operation()
            self._session.commit()
            return result
        except SQLAlchemyError as e:
            self._session.rollback()
            raise transform_store_error(e, f"{self.table}:{context}") from e

    def _values(self, entity: Any) -> dict[str, Any]:
        """Valeurs a stocker pour l'entite ; surcharge pour les champs composites."""
        return entity_values(entity)

    def _get_model(self, model_id: Optional[str]) -> Optional[M]:
        if not model_id:
            return None
        return self._session.get(self.model_class, model_id)

    def _upsert(self, entity: Any) -> M:
        """
        Insere ou met a jour le modele correspondant a l'entite.

        Retourne le modele rafraichi apres commit.
        """
        values = self._values(entity)

        def operation() -> M:
            existing = self._get_model(values.get("id"))
            if existing is not None:
                for name, value in values.items():
                    if name not in _READ_ONLY_FIELDS and name in self.model_class.model_fields:
                        setattr(existing, name, value)
                model = existing
            else:
                # Les valeurs None laissent s'appliquer les defauts du modele
                data = {
                    k: v for k, v in values.items()
                    if k in self.model_class.model_fields and v is not None
                }
                model = self.model_class(**data)
            self._session.add(model)
            return model

        model = self._write(operation, "save")
        self._session.refresh(model)
        return model

    def _delete_model(self, model_id: str) -> bool:
        def operation() -> bool:
            model = self._get_model(model_id)
            if model is None:
                return False
            self._session.delete(model)
            return True

        return self._write(operation, "delete")
