"""
Affichage Rich des bilans de synchronisation.
"""

from typing import Iterable, Optional

from rich.table import Table

from src.adapters.cli.helpers import console
from src.core.entities.catalog import RemoteItem
from src.core.entities.results import (
    FavoriteScanResult,
    ReconciliationResult,
    RefreshPlan,
    SortResult,
)
from src.core.ports.api_clients import Network, ServerStatus


def display_reconciliation(
    movies: ReconciliationResult, shows: ReconciliationResult, title: str = "Distant -> local"
) -> None:
    """Tableau du bilan de reconciliation, une ligne par type de media."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Type")
    for column in ("Traites", "Ajoutes", "Mis a jour", "Supprimes", "Ignores"):
        table.add_column(column, justify="right")

    for label, result in (("Films", movies), ("Series", shows)):
        table.add_row(
            label,
            str(len(result.processed)),
            f"[green]{len(result.added)}[/green]",
            f"[yellow]{len(result.updated)}[/yellow]",
            f"[red]{len(result.deleted)}[/red]",
            f"[dim]{len(result.ignored)}[/dim]",
        )
    console.print(table)


def display_favorites(
    movies: FavoriteScanResult, shows: FavoriteScanResult, title: str = "Favoris -> requetes"
) -> None:
    """Tableau du bilan du pipeline des favoris."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Type")
    for column in ("Deja demandes", "Crees", "Retires", "Bloques"):
        table.add_column(column, justify="right")

    for label, result in (("Films", movies), ("Series", shows)):
        table.add_row(
            label,
            str(len(result.found)),
            f"[green]{len(result.created)}[/green]",
            str(len(result.removed)),
            f"[red]{len(result.blocked)}[/red]",
        )
    console.print(table)


def display_items(title: str, items: Iterable[RemoteItem], limit: int = 20) -> None:
    """Liste triee des titres d'un bilan, tronquee a limit lignes."""
    ordered = sorted(items, key=lambda i: (i.media_kind.value, i.display_name.lower()))
    if not ordered:
        return
    console.print(f"[bold]{title}[/bold] ({len(ordered)})")
    for item in ordered[:limit]:
        console.print(f"  - {item}")
    if len(ordered) > limit:
        console.print(f"  [dim]... et {len(ordered) - limit} autres[/dim]")


def display_refresh(plan: RefreshPlan) -> None:
    if plan.is_empty:
        console.print("[dim]Aucun rafraichissement necessaire[/dim]")
        return
    mode = "complet" if plan.full_refresh else "incremental"
    images = ", images" if plan.refresh_images else ""
    console.print(f"[cyan]Rafraichissement Jellyfin demande ({mode}{images})[/cyan]")


def display_sort(result: SortResult, limit: int = 20) -> None:
    """Bilan du tri ; les dossiers en echec sont listes."""
    if not result.success:
        console.print(f"[red]Tri en echec: {result.message}[/red]")
        return
    console.print(
        f"[cyan]{len(result.sorted_items)} dossiers tries[/cyan] "
        f"(ordre {result.order}, {result.users} utilisateurs)"
    )
    if result.skipped:
        console.print(f"[dim]{len(result.skipped)} dossiers ignores (.ignore)[/dim]")
    if result.failed:
        console.print(f"[yellow]{len(result.failed)} dossiers non indexes par Jellyfin[/yellow]")
        for path in result.failed[:limit]:
            console.print(f"  - {path}")
        if len(result.failed) > limit:
            console.print(f"  [dim]... et {len(result.failed) - limit} autres[/dim]")


def display_networks(networks: list[Network], configured: Optional[set[int]] = None) -> None:
    """Tableau des fournisseurs de streaming d'une region."""
    configured = configured or set()
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", justify="right")
    table.add_column("Nom")
    table.add_column("Priorite", justify="right")
    table.add_column("Configure", justify="center")

    ordered = sorted(networks, key=lambda n: (n.display_priority is None, n.display_priority or 0))
    for network in ordered:
        table.add_row(
            str(network.id),
            network.name,
            "" if network.display_priority is None else str(network.display_priority),
            "[green]oui[/green]" if network.id in configured else "",
        )
    console.print(table)


def display_status(
    seerr_status: Optional[ServerStatus],
    seerr_error: Optional[str],
    jellyfin_ok: Optional[bool],
) -> None:
    """Etat des connexions aux deux services."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Service")
    table.add_column("Etat")
    table.add_column("Detail")

    if seerr_status is not None:
        update = " (mise a jour disponible)" if seerr_status.update_available else ""
        table.add_row("Jellyseerr", "[green]OK[/green]", f"v{seerr_status.version}{update}")
    else:
        table.add_row("Jellyseerr", "[red]ERREUR[/red]", seerr_error or "")

    if jellyfin_ok is None:
        table.add_row("Jellyfin", "[dim]non configure[/dim]", "")
    elif jellyfin_ok:
        table.add_row("Jellyfin", "[green]OK[/green]", "")
    else:
        table.add_row("Jellyfin", "[red]ERREUR[/red]", "")
    console.print(table)
