"""
Traduction des erreurs SQLAlchemy en RepositoryError.

Les violations de contraintes sont normalisees vers les codes du domaine
(CONFLICT, VALIDATION_ERROR) ; les erreurs operationnelles (connexion perdue,
base verrouillee) deviennent NETWORK_ERROR, seul cas eligible au retry.
"""

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from src.core.errors import ErrorCode, RepositoryError

# (motif dans le message du pilote, code, message, hint)
_INTEGRITY_RULES = (
    ("unique", ErrorCode.CONFLICT, "A record with this value already exists", "Please use a different value"),
    ("foreign key", ErrorCode.VALIDATION_ERROR, "Referenced record does not exist",
     "Please ensure all referenced records exist"),
    ("not null", ErrorCode.VALIDATION_ERROR, "Required field cannot be empty", None),
    ("check", ErrorCode.VALIDATION_ERROR, "Value does not meet constraints", None),
)


def transform_store_error(error: SQLAlchemyError, context: str = "") -> RepositoryError:
    """
    Convertit une erreur SQLAlchemy en RepositoryError.

    Args:
        error: Erreur levee par SQLAlchemy
        context: Operation en cours (ex: "lots:save"), ajoutee aux details

    Returns:
        RepositoryError portant le code normalise, les details d'origine et un hint
    """
    original = str(getattr(error, "orig", None) or error)
    details = {"context": context, "original": original}

    if isinstance(error, IntegrityError):
        lowered = original.lower().replace("_", " ").replace("-", " ")
        for pattern, code, message, hint in _INTEGRITY_RULES:
            if pattern in lowered:
                return RepositoryError(code.value, message, details, hint)
        return RepositoryError(ErrorCode.VALIDATION_ERROR.value, "Integrity constraint violated", details)

    if isinstance(error, PoolTimeoutError):
        return RepositoryError(ErrorCode.TIMEOUT.value, "Request timed out", details)

    if isinstance(error, OperationalError):
        return RepositoryError(ErrorCode.NETWORK_ERROR.value, "Network connection failed", details)

    return RepositoryError(ErrorCode.REPOSITORY_ERROR.value, original or "Database error", details)
