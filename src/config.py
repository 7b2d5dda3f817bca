"""
Configuration de l'application via pydantic-settings.

La configuration est chargée depuis les variables d'environnement avec le préfixe GESTIMMO_,
et peut optionnellement être fournie via un fichier .env.
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.workflow import WorkflowModel

# Trouver le fichier .env à la racine du projet (parent de src/)
_PROJECT_ROOT = Path(__file__).parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Paramètres de l'application avec support des variables d'environnement.

    Tous les paramètres peuvent être surchargés via des variables d'environnement
    avec le préfixe GESTIMMO_.
    Exemple : GESTIMMO_INTERVENTION_WORKFLOW=extended
    """

    model_config = SettingsConfigDict(
        env_prefix="GESTIMMO_",
        env_file=_ENV_FILE if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Base de données
    database_url: str = Field(default="sqlite:///gestimmo.db")

    # Logging (fichier + stderr, rotation 10MB, 5 fichiers de rétention)
    log_level: str = Field(default="INFO")
    log_file: Path = Field(default=Path("logs/gestimmo.log"))
    log_rotation_size: str = Field(default="10 MB")
    log_retention_count: int = Field(default=5)

    # Workflow des interventions
    intervention_workflow: WorkflowModel = Field(default=WorkflowModel.BASE)
    auto_assign_managers: bool = Field(default=True)

    # Retry des lectures sur erreur transitoire du stockage
    store_retry_attempts: int = Field(default=3, ge=1)
    store_retry_base_delay: float = Field(default=0.2, ge=0)
    store_retry_max_delay: float = Field(default=5.0, ge=0)

    @field_validator("log_file", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        """Étend ~ vers le répertoire home dans les chemins."""
        return Path(v).expanduser()
