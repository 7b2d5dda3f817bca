"""
Point d'entrée CLI d'administration de Gestimmo.

Initialise le container DI, configure le logging et fournit les commandes CLI.
"""

from typing import Annotated, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from .config import Settings
from .container import Container
from .core.entities import UserRole
from .core.permissions import CAPABILITIES, can_perform
from .core.workflow import InterventionStateMachine, WorkflowModel
from .logging_config import configure_logging

app = typer.Typer(
    name="gestimmo",
    help="Administration de la gestion immobiliere",
)
container = Container()
console = Console()


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Logs detailles (DEBUG)"),
    ] = False,
) -> None:
    """Gestimmo - Gestion de patrimoine et d'interventions."""
    settings = get_config()
    configure_logging(
        log_level="DEBUG" if verbose else settings.log_level,
        log_file=settings.log_file,
        rotation_size=settings.log_rotation_size,
        retention_count=settings.log_retention_count,
    )


def get_config() -> Settings:
    """Récupère les paramètres de l'application depuis le container DI."""
    return container.config()


@app.command(name="init-db")
def init_db_command() -> None:
    """Crée les tables de la base de données."""
    container.database.init()
    logger.info("Base de donnees initialisee")
    console.print(f"[green]Base initialisée :[/green] {get_config().database_url}")


@app.command()
def info() -> None:
    """Affiche la configuration actuelle."""
    config = get_config()
    typer.echo(f"Base de données : {config.database_url}")
    typer.echo(f"Workflow des interventions : {config.intervention_workflow.value}")
    typer.echo(f"Affectation automatique des gestionnaires : {'oui' if config.auto_assign_managers else 'non'}")
    typer.echo(f"Tentatives de lecture : {config.store_retry_attempts}")
    typer.echo(f"Niveau de log : {config.log_level}")


@app.command()
def workflow(
    model: Annotated[
        Optional[WorkflowModel],
        typer.Option("--model", "-m", help="Modele a afficher (defaut: configuration)"),
    ] = None,
) -> None:
    """Affiche la table des transitions et la matrice des capacités par rôle."""
    machine = InterventionStateMachine(model or get_config().intervention_workflow)

    transitions = Table(title=f"Transitions ({machine.model.value})")
    transitions.add_column("Statut", style="cyan")
    transitions.add_column("Statuts atteignables")
    transitions.add_column("Action requise", style="dim")
    for status in machine.statuses:
        targets = machine.allowed_targets(status)
        if not targets:
            transitions.add_row(status.value, "[dim]terminal[/dim]", "")
            continue
        actions = sorted({a.value for a in (machine.action_for(t) for t in targets) if a})
        transitions.add_row(status.value, ", ".join(t.value for t in targets), ", ".join(actions))
    console.print(transitions)

    roles = list(UserRole)
    capabilities = Table(title="Capacités par rôle")
    capabilities.add_column("Action", style="cyan")
    for role in roles:
        capabilities.add_column(role.value, justify="center")
    for action in CAPABILITIES:
        capabilities.add_row(
            action.value,
            *("[green]✓[/green]" if can_perform(role, action) else "[red]-[/red]" for role in roles),
        )
    console.print(capabilities)


@app.command()
def version() -> None:
    """Affiche les informations de version."""
    typer.echo("Gestimmo v0.1.0")


def main() -> None:
    """Point d'entrée de l'application."""
    logger.info("Démarrage de Gestimmo", version="0.1.0")
    app()


if __name__ == "__main__":
    main()
