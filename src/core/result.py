"""
Forme uniforme des resultats de services.

Tous les services renvoient un ServiceResult : success, data et error
(toujours un ServiceError structure, jamais une chaine libre).
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from src.core.errors import ServiceError, raise_for_error, to_service_error

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Resultat d'un appel de service.

    Attributs :
        success : True si l'operation a abouti
        data : Donnees produites (None en cas d'echec)
        error : Erreur structuree (None en cas de succes)
    """

    success: bool
    data: Optional[T] = None
    error: Optional[ServiceError] = None

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "ServiceResult[T]":
        """Construit un resultat de succes."""
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: ServiceError | BaseException) -> "ServiceResult[T]":
        """Construit un resultat d'echec a partir d'un ServiceError ou d'une exception."""
        if isinstance(error, BaseException):
            error = to_service_error(error)
        return cls(success=False, error=error)

    @property
    def error_message(self) -> str:
        """Message d'erreur ou chaine vide."""
        return self.error.message if self.error else ""

    def unwrap(self) -> T:
        """
        Retourne data ou leve l'exception typee correspondant a l'erreur.

        Raises:
            NotFoundError, ValidationError, ConflictError, RepositoryError
        """
        if not self.success:
            raise_for_error(self.error or ServiceError(code="UNKNOWN_ERROR", message="Unknown failure"))
        return self.data
