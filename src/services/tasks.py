"""
Declencheurs des synchronisations.

SyncTask execute chaque synchronisation sous le verrou global de
l'OperationScheduler ; run_daemon() la rejoue au demarrage (apres un
delai) puis a intervalle regulier.
"""

import asyncio
from typing import Optional

from loguru import logger

from src.core.entities.results import SortResult, SyncFavoritesResult, SyncFromRemoteResult
from src.core.exceptions import BridgeError, LockTimeout
from src.core.value_objects.sort_order import SortOrder
from src.services.scheduler import OperationScheduler
from src.services.sorting import LibrarySorter
from src.services.sync import SyncService

SYNC_FROM_REMOTE = "sync-from-remote"
SYNC_FAVORITES = "sync-favorites"
SYNC_ALL = "sync"
SORT = "sort"


class SyncTask:
    """
    Synchronisations executees en exclusion mutuelle.

    Chaque methode retourne None lorsque l'appel a ete abandonne parce
    qu'une execution du meme nom etait deja en attente.

    Raises (toutes les methodes):
        LockTimeout: Si le verrou n'a pas ete obtenu a temps
    """

    def __init__(
        self,
        service: SyncService,
        scheduler: OperationScheduler,
        sorter: Optional[LibrarySorter] = None,
    ) -> None:
        self._service = service
        self._scheduler = scheduler
        self._sorter = sorter

    async def sync_from_remote(self) -> Optional[SyncFromRemoteResult]:
        """Distant -> local, puis rafraichissement."""

        async def operation() -> SyncFromRemoteResult:
            result = await self._service.sync_from_remote()
            await self._service.apply_refresh(result.refresh)
            return result

        return await self._scheduler.run_exclusive(SYNC_FROM_REMOTE, operation)

    async def sync_favorites(self) -> Optional[SyncFavoritesResult]:
        """Favoris -> requetes, puis rafraichissement."""

        async def operation() -> SyncFavoritesResult:
            result = await self._service.sync_favorites_to_remote()
            await self._service.apply_refresh(result.refresh)
            return result

        return await self._scheduler.run_exclusive(SYNC_FAVORITES, operation)

    async def sync_all(
        self,
    ) -> Optional[tuple[SyncFavoritesResult, SyncFromRemoteResult]]:
        """Synchronisation complete dans une seule section critique."""
        return await self._scheduler.run_exclusive(SYNC_ALL, self._service.sync_all)

    async def sort(self, order: Optional[SortOrder] = None) -> Optional[SortResult]:
        """Tri de la bibliotheque de substitution (nombre de lectures)."""
        if self._sorter is None:
            raise BridgeError("Tri non configure")
        sorter = self._sorter

        async def operation() -> SortResult:
            return await sorter.sort(order)

        return await self._scheduler.run_exclusive(SORT, operation)


async def run_daemon(
    task: SyncTask,
    interval_hours: float,
    enable_startup_sync: bool = True,
    startup_delay_seconds: float = 0,
    stop_event: Optional[asyncio.Event] = None,
    sort_after_sync: bool = False,
) -> None:
    """
    Boucle de synchronisation periodique.

    Une erreur d'execution (verrou non obtenu, service injoignable) est
    journalisee et la boucle continue jusqu'au prochain intervalle.

    Args:
        task: Taches de synchronisation
        interval_hours: Intervalle entre deux synchronisations completes
        enable_startup_sync: Lance une synchronisation au demarrage
        startup_delay_seconds: Delai avant la synchronisation de demarrage
        stop_event: Arrete la boucle quand il est positionne
        sort_after_sync: Trie la bibliotheque apres chaque synchronisation
    """
    stop_event = stop_event or asyncio.Event()

    async def wait(seconds: float) -> bool:
        """Attend, retourne True si l'arret a ete demande."""
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def run_once() -> None:
        try:
            outcome = await task.sync_all()
        except LockTimeout as e:
            logger.error(str(e))
            return
        except BridgeError as e:
            logger.error(f"Synchronisation en erreur: {e}")
            return
        if outcome is None:
            return
        favorites, from_remote = outcome
        logger.info(
            f"Synchronisation terminee - favoris: {favorites.message or favorites.success}, "
            f"distant: {from_remote.message or from_remote.success}"
        )
        if sort_after_sync:
            try:
                await task.sort()
            except BridgeError as e:
                logger.error(f"Tri en erreur: {e}")

    if enable_startup_sync:
        logger.info(f"Synchronisation de demarrage dans {startup_delay_seconds}s")
        if await wait(startup_delay_seconds):
            return
        await run_once()

    interval = interval_hours * 3600
    while not stop_event.is_set():
        if await wait(interval):
            return
        await run_once()
