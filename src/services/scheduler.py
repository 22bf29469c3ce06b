"""
Ordonnanceur d'operations exclusives.

Une seule operation de synchronisation s'execute a la fois dans le
processus. Les autres attendent leur tour par scrutation periodique,
sans jamais annuler l'operation en cours :

- verrou libre : l'appelant le prend immediatement
- verrou pris : l'appelant s'inscrit dans la file et scrute le verrou
  toutes les poll_interval secondes
- une operation deja en file sous le meme nom : le nouvel appelant est
  abandonne (retourne None), l'execution en attente le couvre
- attente au-dela du delai : LockTimeout, l'inscription est retiree
"""

import asyncio
import threading
import time
from typing import Awaitable, Callable, Optional, TypeVar

from loguru import logger

from src.core.exceptions import LockTimeout

T = TypeVar("T")


class OperationScheduler:
    """
    Verrou global des operations de synchronisation.

    L'etat (running, queued) est protege par un threading.Lock qui n'est
    jamais conserve pendant un await.

    Exemple d'utilisation:
        scheduler = OperationScheduler(default_timeout=3600)
        result = await scheduler.run_exclusive("sync-from-remote", service.sync_from_remote)
    """

    def __init__(self, default_timeout: float = 3600.0, poll_interval: float = 10.0) -> None:
        """
        Args:
            default_timeout: Attente maximale du verrou en secondes
            poll_interval: Intervalle de scrutation en secondes
        """
        self._state_lock = threading.Lock()
        self._running = False
        self._running_name: Optional[str] = None
        self._queued: dict[str, bool] = {}
        self._default_timeout = default_timeout
        self._poll_interval = poll_interval

    @property
    def is_running(self) -> bool:
        with self._state_lock:
            return self._running

    @property
    def running_operation(self) -> Optional[str]:
        """Nom de l'operation en cours, None si le verrou est libre."""
        with self._state_lock:
            return self._running_name

    def is_queued(self, name: str) -> bool:
        with self._state_lock:
            return self._queued.get(name, False)

    def _try_claim(self, name: str) -> bool:
        with self._state_lock:
            if self._running:
                return False
            self._running = True
            self._running_name = name
            self._queued.pop(name, None)
            return True

    def _enqueue(self, name: str) -> bool:
        """Inscrit name dans la file ; False si deja inscrit."""
        with self._state_lock:
            if self._queued.get(name):
                return False
            self._queued[name] = True
            return True

    def _dequeue(self, name: str) -> None:
        with self._state_lock:
            self._queued.pop(name, None)

    def _release(self) -> None:
        with self._state_lock:
            self._running = False
            self._running_name = None

    async def _wait_for_turn(self, name: str, timeout: float) -> bool:
        """
        Attend la liberation du verrou.

        Returns:
            True si le verrou est obtenu, False si l'appelant est abandonne

        Raises:
            LockTimeout: Si le delai est depasse
        """
        if not self._enqueue(name):
            logger.info(f"Operation '{name}' deja en attente, appel abandonne")
            return False

        logger.info(f"Operation '{name}' en attente du verrou")
        deadline = time.monotonic() + timeout
        while True:
            try:
                await asyncio.sleep(self._poll_interval)
            except asyncio.CancelledError:
                self._dequeue(name)
                raise
            if self._try_claim(name):
                return True
            if time.monotonic() >= deadline:
                self._dequeue(name)
                raise LockTimeout(name, timeout)

    async def run_exclusive(
        self,
        name: str,
        operation: Callable[[], Awaitable[T]],
        timeout: Optional[float] = None,
    ) -> Optional[T]:
        """
        Execute une operation sous le verrou global.

        Args:
            name: Nom de l'operation (sert a dedoublonner la file)
            operation: Coroutine a executer
            timeout: Attente maximale du verrou (defaut de l'ordonnanceur si None)

        Returns:
            Le resultat de l'operation, ou None si l'appel a ete abandonne

        Raises:
            LockTimeout: Si le verrou n'a pas ete obtenu a temps
        """
        if not self._try_claim(name):
            claimed = await self._wait_for_turn(
                name, self._default_timeout if timeout is None else timeout
            )
            if not claimed:
                return None

        try:
            with logger.contextualize(operation=name):
                logger.debug(f"Operation '{name}' demarree")
                return await operation()
        finally:
            self._release()
            logger.debug(f"Operation '{name}' terminee")
