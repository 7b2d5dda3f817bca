"""
Utilitaires pour Gestimmo.

Ce module contient les fonctions utilitaires partagees.
"""

from src.utils.helpers import apply_patch, as_utc, clean_text, coerce_enum, utcnow

__all__ = [
    "apply_patch",
    "as_utc",
    "clean_text",
    "coerce_enum",
    "utcnow",
]
