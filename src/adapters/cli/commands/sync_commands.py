"""
Commandes CLI de synchronisation (sync, sync-from-remote, sync-favorites, sort, daemon).
"""

import asyncio
import signal
from typing import Annotated, Optional

import typer
from rich.status import Status

from src.adapters.cli.display import (
    display_favorites,
    display_items,
    display_reconciliation,
    display_refresh,
    display_sort,
)
from src.adapters.cli.helpers import console, suppress_loguru, with_container
from src.config import Settings
from src.core.entities.results import SyncFavoritesResult, SyncFromRemoteResult
from src.core.exceptions import LockTimeout
from src.core.value_objects.sort_order import SortOrder
from src.services.tasks import run_daemon


def require_configuration(config: Settings) -> None:
    """Interrompt la commande si les cles API ne sont pas configurees."""
    missing = []
    if not config.seerr_enabled:
        missing.append("SEERBRIDGE_SEERR_API_KEY")
    if not config.jellyfin_enabled:
        missing.append("SEERBRIDGE_JELLYFIN_API_KEY")
    if missing:
        console.print(f"[red]Configuration incomplete: {', '.join(missing)}[/red]")
        raise typer.Exit(1)


def _show_from_remote(result: SyncFromRemoteResult, show_items: bool) -> None:
    if not result.success:
        console.print(f"[red]Distant -> local en echec: {result.message}[/red]")
    display_reconciliation(result.movies, result.shows)
    if show_items:
        combined = result.combined
        display_items("Ajoutes", combined.added)
        display_items("Mis a jour", combined.updated)
        display_items("Supprimes", combined.deleted)
        display_items("Ignores", combined.ignored)


def _show_favorites(result: SyncFavoritesResult) -> None:
    if not result.success:
        console.print(f"[red]Favoris -> requetes en echec: {result.message}[/red]")
    display_favorites(result.movies, result.shows)


ListOption = Annotated[
    bool,
    typer.Option("--list", "-l", help="Lister les titres ajoutes, modifies et supprimes"),
]


def sync(show_items: ListOption = False) -> None:
    """
    Synchronisation complete : favoris, puis distant -> local, puis rafraichissement.

    Exemples:
      seerbridge sync
      seerbridge sync --list
    """
    asyncio.run(_sync_async(show_items))


@with_container()
async def _sync_async(container, show_items: bool) -> None:
    """Implementation async de la commande sync."""
    require_configuration(container.config())
    task = container.sync_task()

    try:
        with Status("[cyan]Synchronisation en cours...", console=console), suppress_loguru():
            outcome = await task.sync_all()
    except LockTimeout as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if outcome is None:
        console.print("[yellow]Une synchronisation est deja en attente, appel ignore.[/yellow]")
        return

    favorites, from_remote = outcome
    _show_favorites(favorites)
    _show_from_remote(from_remote, show_items)
    display_refresh(favorites.refresh.merge(from_remote.refresh))
    if not (favorites.success and from_remote.success):
        raise typer.Exit(1)


def sync_from_remote(show_items: ListOption = False) -> None:
    """Met a jour les dossiers de substitution depuis le catalogue distant."""
    asyncio.run(_sync_from_remote_async(show_items))


@with_container()
async def _sync_from_remote_async(container, show_items: bool) -> None:
    """Implementation async de la commande sync-from-remote."""
    require_configuration(container.config())
    task = container.sync_task()

    try:
        with Status("[cyan]Lecture du catalogue distant...", console=console), suppress_loguru():
            result = await task.sync_from_remote()
    except LockTimeout as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if result is None:
        console.print("[yellow]Operation deja en attente, appel ignore.[/yellow]")
        return
    _show_from_remote(result, show_items)
    display_refresh(result.refresh)
    if not result.success:
        raise typer.Exit(1)


def sync_favorites() -> None:
    """Transforme les favoris Jellyfin en requetes Jellyseerr."""
    asyncio.run(_sync_favorites_async())


@with_container()
async def _sync_favorites_async(container) -> None:
    """Implementation async de la commande sync-favorites."""
    require_configuration(container.config())
    task = container.sync_task()

    try:
        with Status("[cyan]Traitement des favoris...", console=console), suppress_loguru():
            result = await task.sync_favorites()
    except LockTimeout as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if result is None:
        console.print("[yellow]Operation deja en attente, appel ignore.[/yellow]")
        return
    _show_favorites(result)
    display_refresh(result.refresh)
    if not result.success:
        raise typer.Exit(1)


def sort(
    order: Annotated[
        Optional[SortOrder],
        typer.Option("--order", "-o", help="Algorithme de tri (SEERBRIDGE_SORT_ORDER par defaut)"),
    ] = None,
) -> None:
    """
    Trie la bibliotheque de substitution en fixant le nombre de lectures.

    Dans Jellyfin, trier la bibliotheque par nombre de lectures pour voir
    l'ordre applique. Un dossier contenant un fichier .ignore est laisse tel quel.

    Exemples:
      seerbridge sort
      seerbridge sort --order none
    """
    asyncio.run(_sort_async(order))


@with_container()
async def _sort_async(container, order: Optional[SortOrder]) -> None:
    """Implementation async de la commande sort."""
    require_configuration(container.config())
    task = container.sync_task()

    try:
        with Status("[cyan]Tri de la bibliotheque...", console=console), suppress_loguru():
            result = await task.sort(order)
    except LockTimeout as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if result is None:
        console.print("[yellow]Operation deja en attente, appel ignore.[/yellow]")
        return
    display_sort(result)
    if not result.success:
        raise typer.Exit(1)


def daemon(
    no_startup: Annotated[
        bool,
        typer.Option("--no-startup", help="Ne pas synchroniser au demarrage"),
    ] = False,
) -> None:
    """
    Synchronise periodiquement (intervalle SEERBRIDGE_SYNC_INTERVAL_HOURS).

    Arret propre par Ctrl+C ou SIGTERM.
    """
    asyncio.run(_daemon_async(no_startup))


@with_container()
async def _daemon_async(container, no_startup: bool) -> None:
    """Implementation async de la commande daemon."""
    config = container.config()
    require_configuration(config)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows : Ctrl+C leve KeyboardInterrupt
            pass

    console.print(
        f"[cyan]Daemon demarre, synchronisation toutes les {config.sync_interval_hours:g}h[/cyan]"
    )
    await run_daemon(
        container.sync_task(),
        interval_hours=config.sync_interval_hours,
        enable_startup_sync=config.enable_startup_sync and not no_startup,
        startup_delay_seconds=config.startup_delay_seconds,
        stop_event=stop_event,
        sort_after_sync=config.sort_after_sync,
    )
    console.print("[cyan]Daemon arrete[/cyan]")
