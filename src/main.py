"""
Point d'entrée CLI de SeerBridge.

Initialise le container DI, configure le logging et fournit les commandes CLI.
"""

from typing import Annotated

import typer
from loguru import logger

from .adapters.cli.commands import (
    cleanup,
    daemon,
    networks,
    sort,
    status,
    sync,
    sync_favorites,
    sync_from_remote,
)
from .config import Settings
from .container import Container
from .logging_config import configure_logging, resolve_console_level

__version__ = "0.1.0"

app = typer.Typer(
    name="seerbridge",
    help="Passerelle entre Jellyseerr et Jellyfin",
)
container = Container()

# Etat global pour les options de verbosite
state = {"verbose": 0, "quiet": False}


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Augmenter la verbosite (-v, -vv, -vvv)"
        ),
    ] = 0,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Mode silencieux (erreurs uniquement)"),
    ] = False,
) -> None:
    """SeerBridge - Dossiers de substitution Jellyseerr pour Jellyfin."""
    if quiet:
        state["quiet"] = True
    else:
        state["verbose"] = verbose

    settings = get_config()
    configure_logging(
        log_level=resolve_console_level(settings.log_level, state["verbose"], state["quiet"]),
        log_file=settings.log_file,
        rotation_size=settings.log_rotation_size,
        retention_count=settings.log_retention_count,
    )


# Commandes de synchronisation
app.command()(sync)
app.command(name="sync-from-remote")(sync_from_remote)
app.command(name="sync-favorites")(sync_favorites)
app.command()(sort)
app.command()(daemon)

# Commandes de maintenance
app.command()(status)
app.command()(networks)
app.command()(cleanup)


def get_config() -> Settings:
    """Récupère les paramètres de l'application depuis le container DI."""
    return container.config()


@app.command()
def info() -> None:
    """Affiche la configuration actuelle."""
    config = get_config()
    typer.echo(f"Jellyseerr : {config.seerr_url} ({'clé configurée' if config.seerr_enabled else 'clé absente'})")
    typer.echo(f"Jellyfin : {config.jellyfin_url} ({'clé configurée' if config.jellyfin_enabled else 'clé absente'})")
    typer.echo(f"Racine de substitution : {config.library_dir}")
    typer.echo(f"Cache : {config.cache_dir}")
    typer.echo(f"Région : {config.region}")
    typer.echo(f"Réseaux : {', '.join(f'{n.name} ({n.id})' for n in config.networks)}")
    typer.echo(f"Pages discover max : {config.max_discover_pages or 'illimité'}")
    typer.echo(f"Rétention : {config.retention_days} jours")
    typer.echo(f"Intervalle de synchronisation : {config.sync_interval_hours:g} h")
    typer.echo(f"Niveau de log : {config.log_level}")


@app.command()
def version() -> None:
    """Affiche les informations de version."""
    typer.echo(f"SeerBridge v{__version__}")


def main() -> None:
    """Point d'entrée de l'application."""
    logger.debug("Démarrage de SeerBridge", version=__version__)
    app()


if __name__ == "__main__":
    main()
