"""
Orchestration des deux sens de synchronisation.

- sync_favorites_to_remote : favoris locaux -> requetes distantes
- sync_from_remote : catalogue distant -> dossiers de substitution
- sync_all : les deux sens puis un unique rafraichissement du catalogue local

Chaque sens commence par un test de connexion au service distant ; en
cas d'echec il retourne un bilan vide marque en echec.
"""

from datetime import datetime
from typing import Optional

from loguru import logger

from src.core.entities.results import (
    RefreshPlan,
    SyncFavoritesResult,
    SyncFromRemoteResult,
)
from src.core.exceptions import TransportError
from src.core.ports.api_clients import IRemoteCatalog
from src.core.ports.local_catalog import ILocalCatalog
from src.services.favorites import FavoritesPipeline
from src.services.materializer import Materializer
from src.services.placeholder_video import PlaceholderVideoGenerator
from src.services.reconciliation import ReconciliationEngine


def _failure_message(*errors: Optional[str]) -> Optional[str]:
    """Erreurs distinctes des passes interrompues, None si toutes ont abouti."""
    distinct = list(dict.fromkeys(e for e in errors if e))
    return "; ".join(distinct) or None


class SyncService:
    """
    Point d'entree des synchronisations.

    Les methodes ne prennent aucun verrou : l'exclusion mutuelle est
    assuree par l'appelant (SyncTask via OperationScheduler).
    """

    def __init__(
        self,
        remote: IRemoteCatalog,
        local: ILocalCatalog,
        engine: ReconciliationEngine,
        pipeline: FavoritesPipeline,
        materializer: Materializer,
        video_generator: Optional[PlaceholderVideoGenerator] = None,
    ) -> None:
        self._remote = remote
        self._local = local
        self._engine = engine
        self._pipeline = pipeline
        self._materializer = materializer
        self._video = video_generator

    async def _check_connection(self) -> Optional[str]:
        """Retourne un message d'erreur si le service distant est injoignable."""
        if await self._remote.test_connection():
            return None
        message = f"Service distant injoignable ({self._remote.source})"
        logger.error(message)
        return message

    async def sync_from_remote(self, now: Optional[datetime] = None) -> SyncFromRemoteResult:
        """
        Reconcilie les dossiers de substitution avec le catalogue distant.

        Le plan de rafraichissement demande les images des qu'un type de
        media a abouti, et un rafraichissement complet des qu'un dossier a
        ete supprime. Un type interrompu marque le bilan en echec sans
        perdre les changements de l'autre.
        """
        error = await self._check_connection()
        if error:
            return SyncFromRemoteResult(success=False, message=error)

        if self._video is not None:
            await self._video.ensure()
        purged = self._materializer.purge_hidden()
        if purged:
            logger.info(f"{purged} dossiers temporaires orphelins supprimes")

        movies, shows = await self._engine.reconcile_all(now)
        refresh = RefreshPlan(
            full_refresh=bool(movies.deleted or shows.deleted),
            refresh_images=movies.error is None or shows.error is None,
        )
        result = SyncFromRemoteResult(movies=movies, shows=shows, refresh=refresh)
        error = _failure_message(movies.error, shows.error)
        if error:
            result.success = False
            result.message = error
        else:
            result.message = str(result.combined)
        return result

    async def sync_favorites_to_remote(self) -> SyncFavoritesResult:
        """
        Transforme les favoris locaux en requetes distantes.

        Un rafraichissement complet est demande des qu'un favori a ete retire.
        """
        error = await self._check_connection()
        if error:
            return SyncFavoritesResult(success=False, message=error)

        movies, shows = await self._pipeline.run_all()
        refresh = RefreshPlan(full_refresh=bool(movies.removed or shows.removed))
        result = SyncFavoritesResult(movies=movies, shows=shows, refresh=refresh)
        error = _failure_message(movies.error, shows.error)
        if error:
            result.success = False
            result.message = error
        else:
            result.message = str(result.combined)
        return result

    async def apply_refresh(self, plan: RefreshPlan) -> bool:
        """
        Transmet le plan de rafraichissement au catalogue local.

        Returns:
            False si le catalogue local n'a pas accepte la demande
        """
        if plan.is_empty:
            return True
        try:
            await self._local.request_library_refresh(plan)
        except TransportError as e:
            logger.error(f"Rafraichissement de la bibliotheque impossible: {e}")
            return False
        logger.info(
            f"Rafraichissement demande (complet={plan.full_refresh}, images={plan.refresh_images})"
        )
        return True

    async def sync_all(
        self, now: Optional[datetime] = None
    ) -> tuple[SyncFavoritesResult, SyncFromRemoteResult]:
        """
        Synchronisation complete : favoris, puis distant -> local, puis
        un seul rafraichissement combinant les deux plans.
        """
        favorites = await self.sync_favorites_to_remote()
        from_remote = await self.sync_from_remote(now)
        await self.apply_refresh(favorites.refresh.merge(from_remote.refresh))
        return favorites, from_remote
