"""
Fonctions utilitaires partagees dans le projet Gestimmo.

Ce module centralise les fonctions reutilisees a travers le codebase :
- utcnow : horodatage courant
- as_utc : normalisation d'une date saisie en UTC avec fuseau
- clean_text : nettoyage des libelles saisis (caracteres invisibles, espaces)
- coerce_enum : conversion d'une valeur brute en membre d'enum avec erreur typee
- apply_patch : application d'un correctif partiel sur une entite dataclass
"""

import unicodedata
from dataclasses import fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional, TypeVar

from src.core.errors import ValidationError

E = TypeVar("E", bound=Enum)
D = TypeVar("D")

# Champs jamais modifiables via un correctif
IMMUTABLE_FIELDS = frozenset({"id", "created_at"})


def utcnow() -> datetime:
    """Horodatage UTC courant, avec fuseau."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Rattache une date naive a UTC ; convertit une date avec fuseau en UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def strip_invisible_chars(text: str) -> str:
    """
    Retire les caractères Unicode invisibles d'une chaîne.

    Supprime les caractères de contrôle et les marques directionnelles
    qui peuvent provenir d'un copier-coller (LRM, RLM, BOM, etc.).
    """
    return "".join(ch for ch in text if unicodedata.category(ch) not in ("Cf", "Cc"))


def clean_text(text: Optional[str]) -> Optional[str]:
    """Nettoie un libellé : retire les caractères invisibles et les espaces superflus."""
    if not text:
        return text
    return " ".join(strip_invisible_chars(text).split())


def coerce_enum(enum_cls: type[E], value: Any, field: str) -> E:
    """
    Convertit une valeur brute en membre d'enum.

    Raises:
        ValidationError: Si la valeur ne correspond a aucun membre
    """
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(
            f"Invalid value for '{field}': expected one of {allowed}", field, value
        ) from None


def apply_patch(entity: D, patch: Mapping[str, Any], immutable: frozenset[str] = IMMUTABLE_FIELDS) -> D:
    """
    Retourne une copie de l'entite avec les champs du correctif appliques.

    Args:
        entity: Entite dataclass d'origine (non modifiee)
        patch: Champs a modifier
        immutable: Champs refuses dans le correctif

    Raises:
        ValidationError: Champ inconnu ou non modifiable
    """
    known = {f.name for f in fields(entity)}
    for name in patch:
        if name not in known:
            raise ValidationError(f"Unknown field '{name}'", name, patch[name])
        if name in immutable:
            raise ValidationError(f"Field '{name}' cannot be modified", name, patch[name])
    return replace(entity, **patch)
