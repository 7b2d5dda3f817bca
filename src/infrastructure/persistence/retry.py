"""
Politique de retry avec backoff exponentiel pour les lectures en base.

Seules les erreurs transitoires du stockage (RepositoryError NETWORK_ERROR
ou TIMEOUT) sont relancees. Les erreurs de validation, de permission, de
conflit ou d'absence remontent immediatement. Les services metier ne
relancent jamais : le retry est une responsabilite de la couche stockage,
et il n'est applique qu'aux operations idempotentes (lectures).

Usage:
    retrying = build_retrying(max_attempts=3, base_delay=0.2, max_delay=5)
    user = retrying(lambda: session.get(UserModel, user_id))
"""

from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from src.core.errors import RepositoryError


def is_transient_error(error: BaseException) -> bool:
    """Vrai si l'erreur est un echec transitoire du stockage."""
    return isinstance(error, RepositoryError) and error.is_transient


def build_retrying(
    max_attempts: int = 3,
    base_delay: float = 0.2,
    max_delay: float = 5.0,
) -> Retrying:
    """
    Construit un objet Retrying tenacity pour les lectures.

    Args:
        max_attempts: Nombre maximum de tentatives (defaut: 3)
        base_delay: Delai initial en secondes, double a chaque tentative
        max_delay: Delai maximum entre deux tentatives en secondes

    Returns:
        Retrying appelable : retrying(fn, *args, **kwargs)
    """
    return Retrying(
        retry=retry_if_exception(is_transient_error),
        wait=wait_exponential(multiplier=base_delay, max=max_delay),
        stop=stop_after_attempt(max_attempts),
        reraise=True,
    )
