"""
Configuration du logging Gestimmo via loguru.

Deux sorties :
- console : coloree, avec le contexte metier lie au message
  (intervention, etape d'une operation composite)
- fichier : JSON avec rotation ; le contexte est conserve dans record.extra

Les services lient le contexte avec logger.bind(intervention_id=...) ou
logger.bind(step=...), la console l'affiche en fin de ligne.
"""

import sys
from pathlib import Path
from typing import Any

from loguru import logger

# Cles de contexte affichees en console, dans cet ordre
CONTEXT_KEYS = ("intervention_id", "step")

_CONSOLE_PREFIX = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def console_format(record: dict[str, Any]) -> str:
    """Gabarit console : message suivi des cles de contexte presentes."""
    bound = [key for key in CONTEXT_KEYS if key in record["extra"]]
    context = "".join(f" <magenta>[{key}={{extra[{key}]}}]</magenta>" for key in bound)
    return _CONSOLE_PREFIX + context + "\n{exception}"


def configure_logging(
    log_level: str = "INFO",
    log_file: Path = Path("logs/gestimmo.log"),
    rotation_size: str = "10 MB",
    retention_count: int = 5,
) -> None:
    """
    Remplace les handlers loguru par la console et le fichier JSON.

    Args :
        log_level : Niveau minimum en console
        log_file : Fichier JSON (toujours en DEBUG, compensations comprises)
        rotation_size : Taille declenchant la rotation (ex: "10 MB")
        retention_count : Nombre de fichiers conserves
    """
    logger.remove()
    logger.add(sys.stderr, level=log_level, format=console_format, colorize=True)

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        level="DEBUG",
        format="{message}",
        serialize=True,
        rotation=rotation_size,
        retention=retention_count,
        compression="zip",
        enqueue=True,
    )

    logger.debug(f"Logging configure: {log_level} (fichier {log_file})")
