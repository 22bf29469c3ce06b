"""
Commandes CLI de maintenance (status, networks, cleanup).
"""

import asyncio
from enum import Enum
from typing import Annotated, Optional

import typer

from src.adapters.cli.display import display_items, display_networks, display_status
from src.adapters.cli.helpers import console, suppress_loguru, with_container
from src.core.exceptions import LockTimeout, TransportError
from src.core.value_objects.media_kind import MediaKind


class KindFilter(str, Enum):
    """Filtre de type de media pour la CLI."""

    MOVIE = "movie"
    TV = "tv"
    ALL = "all"

    def to_media_kind(self) -> Optional[MediaKind]:
        return None if self is KindFilter.ALL else MediaKind(self.value)


def status() -> None:
    """Teste la connexion a Jellyseerr et a Jellyfin."""
    asyncio.run(_status_async())


@with_container()
async def _status_async(container) -> None:
    """Implementation async de la commande status."""
    config = container.config()
    seerr_status = None
    seerr_error = None
    jellyfin_ok: Optional[bool] = None

    with suppress_loguru():
        if config.seerr_enabled:
            try:
                seerr_status = await container.seerr_client().get_status()
            except TransportError as e:
                seerr_error = str(e)
        else:
            seerr_error = "cle API non configuree"
        if config.jellyfin_enabled:
            jellyfin_ok = await container.jellyfin_client().test_connection()

    display_status(seerr_status, seerr_error, jellyfin_ok)
    if seerr_status is None or jellyfin_ok is False:
        raise typer.Exit(1)


def networks(
    kind: Annotated[
        KindFilter,
        typer.Option("--kind", "-k", help="Fournisseurs de films (movie) ou de series (tv)"),
    ] = KindFilter.TV,
    region: Annotated[
        Optional[str],
        typer.Option("--region", "-r", help="Region ISO (defaut: SEERBRIDGE_REGION)"),
    ] = None,
    refresh: Annotated[
        bool,
        typer.Option("--refresh", help="Ignorer le cache des fournisseurs"),
    ] = False,
) -> None:
    """
    Liste les fournisseurs de streaming disponibles pour une region.

    Les IDs affiches sont ceux a utiliser dans SEERBRIDGE_NETWORKS.
    """
    asyncio.run(_networks_async(kind, region, refresh))


@with_container()
async def _networks_async(
    container, kind: KindFilter, region: Optional[str], refresh: bool = False
) -> None:
    """Implementation async de la commande networks."""
    config = container.config()
    if not config.seerr_enabled:
        console.print("[red]SEERBRIDGE_SEERR_API_KEY non configuree[/red]")
        raise typer.Exit(1)

    media_kind = kind.to_media_kind() or MediaKind.SHOW
    wanted_region = (region or config.region).upper()
    if refresh:
        await container.api_cache().clear()
    try:
        with suppress_loguru():
            providers = await container.seerr_client().get_watch_providers(
                media_kind, wanted_region
            )
    except TransportError as e:
        console.print(f"[red]Erreur: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        f"[bold cyan]{len(providers)} fournisseurs[/bold cyan] ({media_kind.label}, {wanted_region})"
    )
    display_networks(providers, configured={n.id for n in config.networks})


def cleanup(
    remove_all: Annotated[
        bool,
        typer.Option("--all", help="Supprimer tous les dossiers de substitution"),
    ] = False,
    kind: Annotated[
        KindFilter,
        typer.Option("--kind", "-k", help="Restreindre --all a un type de media"),
    ] = KindFilter.ALL,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Ne pas demander de confirmation"),
    ] = False,
) -> None:
    """
    Nettoie la racine de substitution.

    Sans option, supprime seulement les dossiers temporaires orphelins
    (preparation, corbeille). Avec --all, supprime aussi tous les dossiers
    de substitution sans consulter Jellyseerr.
    """
    if remove_all and not yes:
        typer.confirm("Supprimer tous les dossiers de substitution ?", abort=True)
    asyncio.run(_cleanup_async(remove_all, kind))


@with_container()
async def _cleanup_async(container, remove_all: bool, kind: KindFilter) -> None:
    """Implementation async de la commande cleanup."""
    materializer = container.materializer()
    engine = container.reconciliation_engine()
    scheduler = container.scheduler()

    async def operation() -> tuple[int, list]:
        purged = materializer.purge_hidden()
        deleted = []
        if remove_all:
            deleted = list(engine.remove_all(kind.to_media_kind()).deleted)
        return purged, deleted

    try:
        with suppress_loguru():
            outcome = await scheduler.run_exclusive("cleanup", operation)
    except LockTimeout as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    if outcome is None:
        return

    purged, deleted = outcome
    console.print(f"[cyan]{purged} dossiers temporaires supprimes[/cyan]")
    if remove_all:
        console.print(f"[cyan]{len(deleted)} dossiers de substitution supprimes[/cyan]")
        display_items("Supprimes", deleted)
