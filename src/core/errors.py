"""
Erreurs typees du domaine et fonctions de validation associees.

Chaque categorie d'echec est une classe d'exception distincte :
- NotFoundError : entite referencee inexistante
- ValidationError : entree invalide, transition interdite, champ manquant
- PermissionDeniedError : role insuffisant pour l'action demandee
- ConflictError : violation d'unicite
- RepositoryError : echec de la couche de stockage (code/details/hint d'origine)

Toutes les erreurs se convertissent en ServiceError via to_service_error(),
seule forme structuree d'echec exposee aux appelants.
"""

import re
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ErrorCode(str, Enum):
    """Codes d'erreur normalises."""

    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    CONFLICT = "CONFLICT"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    REPOSITORY_ERROR = "REPOSITORY_ERROR"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


# Codes consideres comme transitoires (eligibles au retry de la couche stockage)
TRANSIENT_CODES = frozenset({ErrorCode.NETWORK_ERROR.value, ErrorCode.TIMEOUT.value})


@dataclass(frozen=True)
class ServiceError:
    """
    Echec structure renvoye par les services.

    Attributs :
        code : Code d'erreur (valeur de ErrorCode ou code d'origine du stockage)
        message : Message lisible nommant la ressource et la regle violee
        details : Informations complementaires (champ, valeur, identifiants...)
        hint : Suggestion de correction
    """

    code: str
    message: str
    details: Optional[dict[str, Any]] = None
    hint: Optional[str] = None


class DomainError(Exception):
    """Classe de base des erreurs du domaine."""

    code: str = ErrorCode.UNKNOWN_ERROR.value

    @property
    def message(self) -> str:
        return str(self)

    @property
    def details(self) -> Optional[dict[str, Any]]:
        """Details structures de l'erreur (None par defaut)."""
        return None


class NotFoundError(DomainError):
    """
    Entite referencee inexistante.

    Attributes:
        resource: Nom de la ressource (ex: "Lot", "User")
        identifier: Identifiant recherche
    """

    code = ErrorCode.NOT_FOUND.value

    def __init__(self, resource: str, identifier: Any) -> None:
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} with identifier '{identifier}' not found")

    @property
    def details(self) -> Optional[dict[str, Any]]:
        return {"resource": self.resource, "identifier": self.identifier}


class ValidationError(DomainError):
    """
    Entree invalide ou regle metier violee.

    Attributes:
        field: Champ concerne (optionnel)
        value: Valeur fautive (optionnelle)
    """

    code = ErrorCode.VALIDATION_ERROR.value

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None) -> None:
        self.field = field
        self.value = value
        super().__init__(message)

    @property
    def details(self) -> Optional[dict[str, Any]]:
        if self.field is None and self.value is None:
            return None
        return {"field": self.field, "value": self.value}


class PermissionDeniedError(ValidationError):
    """
    Le role de l'appelant ne permet pas l'action demandee.

    Sous-classe de ValidationError : un refus de role est aussi une regle
    metier violee, les appelants qui ne distinguent pas les deux le traitent
    comme une erreur de validation.

    Attributes:
        resource: Ressource visee (ex: "interventions")
        action: Action refusee (ex: "approve")
        user_id: Identifiant de l'appelant
    """

    code = ErrorCode.PERMISSION_DENIED.value

    def __init__(
        self,
        message: str,
        resource: Optional[str] = None,
        action: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> None:
        self.resource = resource
        self.action = action
        self.user_id = user_id
        super().__init__(message, field="permissions")

    @property
    def details(self) -> Optional[dict[str, Any]]:
        return {"resource": self.resource, "action": self.action, "user_id": self.user_id}


class ConflictError(DomainError):
    """Violation d'unicite (nom, reference ou email deja utilise)."""

    code = ErrorCode.CONFLICT.value

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None) -> None:
        self.field = field
        self.value = value
        super().__init__(message)

    @property
    def details(self) -> Optional[dict[str, Any]]:
        if self.field is None and self.value is None:
            return None
        return {"field": self.field, "value": self.value}


class RepositoryError(DomainError):
    """
    Echec de la couche de stockage, propage tel quel.

    Attributes:
        code: Code d'origine ou normalise
        details: Details d'origine
        hint: Suggestion eventuelle du stockage
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
        hint: Optional[str] = None,
    ) -> None:
        self.code = code
        self._details = details
        self.hint = hint
        super().__init__(message)

    @property
    def details(self) -> Optional[dict[str, Any]]:
        return self._details

    @property
    def is_transient(self) -> bool:
        """Vrai si l'erreur est transitoire (reseau, timeout)."""
        return self.code in TRANSIENT_CODES


def to_service_error(error: BaseException) -> ServiceError:
    """
    Convertit une exception quelconque en ServiceError.

    Les erreurs du domaine conservent leur code et leurs details. Les erreurs
    reseau et timeout sont normalisees, toute autre exception devient
    UNKNOWN_ERROR avec son message.

    Args:
        error: Exception a convertir

    Returns:
        ServiceError correspondant
    """
    if isinstance(error, DomainError):
        return ServiceError(
            code=str(error.code),
            message=error.message,
            details=error.details,
            hint=getattr(error, "hint", None),
        )
    if isinstance(error, TimeoutError):
        return ServiceError(code=ErrorCode.TIMEOUT.value, message="Request timed out")
    if isinstance(error, ConnectionError):
        return ServiceError(code=ErrorCode.NETWORK_ERROR.value, message="Network connection failed")
    return ServiceError(
        code=ErrorCode.UNKNOWN_ERROR.value,
        message=str(error) or "An unknown error occurred",
    )


def raise_for_error(error: ServiceError) -> None:
    """Releve l'exception typee correspondant a un ServiceError."""
    details = error.details or {}
    if error.code == ErrorCode.NOT_FOUND.value:
        raise NotFoundError(details.get("resource", "Resource"), details.get("identifier", ""))
    if error.code == ErrorCode.PERMISSION_DENIED.value:
        raise PermissionDeniedError(
            error.message, details.get("resource"), details.get("action"), details.get("user_id")
        )
    if error.code == ErrorCode.VALIDATION_ERROR.value:
        raise ValidationError(error.message, details.get("field"), details.get("value"))
    if error.code == ErrorCode.CONFLICT.value:
        raise ConflictError(error.message, details.get("field"), details.get("value"))
    raise RepositoryError(error.code, error.message, error.details, error.hint)


def validate_required(data: Mapping[str, Any], fields: Iterable[str]) -> None:
    """
    Verifie la presence des champs obligatoires.

    None et la chaine vide sont refuses ; 0 et False sont des valeurs valides.

    Raises:
        ValidationError: Au premier champ manquant
    """
    for name in fields:
        value = data.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"Field '{name}' is required", name, value)


def validate_email(email: str) -> None:
    """Verifie le format d'une adresse email."""
    if not email or not _EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email format", "email", email)


def validate_uuid(value: str, field: str = "id") -> None:
    """Verifie qu'une valeur est un UUID valide."""
    try:
        uuid.UUID(str(value))
    except ValueError:
        raise ValidationError(f"Invalid UUID format for '{field}'", field, value) from None
