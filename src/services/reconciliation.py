"""
Reconciliation catalogue distant -> dossiers de substitution.

Pour un type de media, une passe :
1. Parcourt le discover distant reseau par reseau (tag du reseau,
   dedoublonnage par identite, premier vu gagnant)
2. Ecarte les titres deja presents dans la bibliotheque principale
3. Compare avec les dossiers presents sur le disque
4. Cree, met a jour, et supprime les dossiers expires

La suppression d'un dossier disparu du distant n'intervient qu'apres
retention_days jours depuis sa creation. La passe ne declenche jamais
elle-meme le rafraichissement du catalogue local.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Optional

from loguru import logger

from src.config import SyncOptions
from src.core.entities.catalog import PlaceholderEntry, RemoteItem
from src.core.entities.results import ReconciliationResult
from src.core.exceptions import MaterializationError, TransportError
from src.core.ports.api_clients import IRemoteCatalog, Network
from src.core.ports.local_catalog import ILocalCatalog
from src.core.value_objects.media_kind import MediaKind
from src.services.identity import IdentityResolver
from src.services.materializer import Materializer


def is_expired(entry: PlaceholderEntry, now: datetime, retention_days: int) -> bool:
    """
    True si la retention d'un dossier est ecoulee.

    Un dossier sans date de creation connue est considere comme expire.
    """
    if entry.created_date is None:
        return True
    created = entry.created_date
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created < now - timedelta(days=retention_days)


class ReconciliationEngine:
    """
    Moteur de reconciliation distant -> local.

    Exemple d'utilisation:
        engine = ReconciliationEngine(remote, local, materializer, IdentityResolver(), options)
        movies, shows = await engine.reconcile_all()
    """

    def __init__(
        self,
        remote: IRemoteCatalog,
        local: ILocalCatalog,
        materializer: Materializer,
        identity: IdentityResolver,
        options: SyncOptions,
    ) -> None:
        self._remote = remote
        self._local = local
        self._materializer = materializer
        self._identity = identity
        self._options = options

    async def fetch_remote(self, media_kind: MediaKind) -> list[RemoteItem]:
        """
        Instantane distant d'un type de media, tous reseaux confondus.

        Chaque titre porte le nom et l'ID du premier reseau qui l'a
        fait remonter. Une erreur de transport interrompt la passe :
        un instantane partiel ne doit pas servir de base aux suppressions.

        Raises:
            TransportError: Si le service distant ne repond pas
        """
        seen: dict[tuple[MediaKind, int], RemoteItem] = {}
        for network in self._options.networks:
            count = 0
            async for page in self._remote.iter_discover(
                media_kind,
                self._network_filters(network),
                self._options.max_discover_pages,
            ):
                for item in page.items:
                    count += 1
                    if item.identity in seen:
                        continue
                    seen[item.identity] = replace(
                        item, network_tag=network.name, network_id=network.id
                    )
            logger.debug(f"{network.name}: {count} {media_kind.label} recuperes")
        logger.info(f"Catalogue distant: {len(seen)} {media_kind.label} uniques")
        return list(seen.values())

    @staticmethod
    def _network_filters(network: Network) -> dict[str, object]:
        return {"watchRegion": network.country, "watchProviders": network.id}

    async def _split_ignored(
        self, media_kind: MediaKind, items: list[RemoteItem]
    ) -> tuple[list[RemoteItem], set[RemoteItem]]:
        """Separe les titres deja presents hors de la racine de substitution."""
        if not self._options.exclude_from_main_libraries:
            return items, set()

        existing = await self._local.get_existing_items(
            media_kind, exclude_prefix=str(self._options.library_dir)
        )
        kept: list[RemoteItem] = []
        ignored: set[RemoteItem] = set()
        for item in items:
            match = self._identity.find_match(item, existing)
            if match is not None:
                logger.debug(f"Ignore (deja en bibliotheque): {item} -> {match.filesystem_path}")
                ignored.add(item)
            else:
                kept.append(item)
        return kept, ignored

    async def reconcile(
        self, media_kind: MediaKind, now: Optional[datetime] = None
    ) -> ReconciliationResult:
        """
        Reconcilie un type de media.

        Args:
            media_kind: Films ou series
            now: Instant de reference pour la retention (maintenant par defaut)

        Returns:
            ReconciliationResult de la passe

        Raises:
            TransportError: Si l'instantane distant ou local est inaccessible
        """
        now = now or datetime.now(timezone.utc)
        remote_items = await self.fetch_remote(media_kind)
        remote_items, ignored = await self._split_ignored(media_kind, remote_items)
        return self.apply(media_kind, remote_items, ignored, now)

    def apply(
        self,
        media_kind: MediaKind,
        remote_items: list[RemoteItem],
        ignored: set[RemoteItem],
        now: datetime,
    ) -> ReconciliationResult:
        """
        Applique la difference entre l'instantane distant et le disque.

        Chaque titre est traite isolement : un echec est journalise et
        le titre reste dans processed sans apparaitre dans added,
        updated ou deleted.
        """
        result = ReconciliationResult(ignored=set(ignored))
        local_entries = self._materializer.snapshot(media_kind)
        remote_ids = {item.identity for item in remote_items}

        for item in remote_items:
            result.processed.add(item)
            entry = local_entries.get(item.identity)
            try:
                if entry is None:
                    self._materializer.create(item, now)
                    result.added.add(item)
                elif self._materializer.update(entry, item):
                    result.updated.add(item)
            except MaterializationError as e:
                logger.error(f"Echec de materialisation pour {item}: {e}")

        retained = 0
        for identity, entry in local_entries.items():
            if identity in remote_ids:
                continue
            if not is_expired(entry, now, self._options.retention_days):
                retained += 1
                continue
            result.processed.add(entry.item)
            try:
                self._materializer.delete(entry)
                result.deleted.add(entry.item)
            except MaterializationError as e:
                logger.error(f"Echec de suppression pour {entry.item}: {e}")

        if retained:
            logger.debug(f"{retained} {media_kind.label} conserves (retention)")
        logger.info(f"Reconciliation {media_kind.label}: {result}")
        return result

    async def reconcile_all(
        self, now: Optional[datetime] = None
    ) -> tuple[ReconciliationResult, ReconciliationResult]:
        """
        Reconcilie les films puis les series.

        Chaque type est traite independamment : une erreur de transport sur
        l'un est consignee dans son bilan (champ error) sans effacer le
        bilan de l'autre.
        """
        now = now or datetime.now(timezone.utc)
        results = []
        for media_kind in (MediaKind.MOVIE, MediaKind.SHOW):
            try:
                results.append(await self.reconcile(media_kind, now))
            except TransportError as e:
                logger.error(f"Reconciliation {media_kind.label} interrompue: {e}")
                results.append(ReconciliationResult(error=str(e)))
        movies, shows = results
        return movies, shows

    def remove_all(self, media_kind: Optional[MediaKind] = None) -> ReconciliationResult:
        """
        Supprime tous les dossiers de substitution, sans consulter le distant.

        Args:
            media_kind: Restreint a un type de media (tous si None)
        """
        result = ReconciliationResult()
        for entry in self._materializer.snapshot(media_kind).values():
            result.processed.add(entry.item)
            try:
                self._materializer.delete(entry)
                result.deleted.add(entry.item)
            except MaterializationError as e:
                logger.error(f"Echec de suppression pour {entry.item}: {e}")
        return result
