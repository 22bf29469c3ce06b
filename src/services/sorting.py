"""
Tri de la bibliotheque de substitution par nombre de lectures.

Jellyfin ne propose pas d'ordre aleatoire persistant. Chaque dossier de
substitution recoit, pour chaque utilisateur, un nombre de lectures
choisi ; la bibliotheque triee par nombre de lectures suit alors l'ordre
voulu :

- none : tous les compteurs a 0
- random : compteurs 1000, 1100, 1200... melanges. Le pas de 100 garde
  l'ordre quand un utilisateur lit un titre (compteur + 1).

Un dossier contenant un fichier .ignore n'est pas modifie.
"""

import random
from pathlib import Path, PurePath
from typing import Optional

from loguru import logger

from src.config import SyncOptions
from src.core.entities.catalog import LocalItem, PlaceholderEntry
from src.core.entities.results import SortResult
from src.core.exceptions import TransportError
from src.core.ports.file_system import IFileSystem
from src.core.ports.local_catalog import ILocalCatalog
from src.core.value_objects.media_kind import MediaKind
from src.core.value_objects.sort_order import SortOrder
from src.services.materializer import Materializer

IGNORE_MARKER = ".ignore"

RANDOM_BASE = 1000
RANDOM_STEP = 100


def assign_play_counts(
    entries: list[PlaceholderEntry], order: SortOrder, rng: random.Random
) -> dict[Path, int]:
    """Nombre de lectures attribue a chaque dossier selon l'algorithme."""
    if order is SortOrder.RANDOM:
        counts = [RANDOM_BASE + i * RANDOM_STEP for i in range(len(entries))]
        rng.shuffle(counts)
    else:
        counts = [0] * len(entries)
    return {entry.path: count for entry, count in zip(entries, counts)}


class LibrarySorter:
    """
    Impose l'ordre d'affichage des dossiers de substitution.

    Exemple d'utilisation:
        sorter = LibrarySorter(local, materializer, file_system, options)
        result = await sorter.sort(SortOrder.RANDOM)
    """

    def __init__(
        self,
        local: ILocalCatalog,
        materializer: Materializer,
        file_system: IFileSystem,
        options: SyncOptions,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._local = local
        self._materializer = materializer
        self._fs = file_system
        self._options = options
        self._rng = rng or random.Random()

    async def _index_local_items(self) -> dict[PurePath, LocalItem]:
        """Elements locaux situes sous la racine, indexes par dossier."""
        index: dict[PurePath, LocalItem] = {}
        library_dir = str(self._options.library_dir)
        for media_kind in MediaKind:
            for item in await self._local.get_existing_items(media_kind, path_prefix=library_dir):
                if not item.filesystem_path:
                    continue
                path = PurePath(item.filesystem_path)
                # Un film est indexe par son fichier video, une serie par son dossier
                folder = path.parent if media_kind is MediaKind.MOVIE else path
                index.setdefault(folder, item)
        return index

    async def sort(self, order: Optional[SortOrder] = None) -> SortResult:
        """
        Attribue les nombres de lectures a tous les dossiers de substitution.

        Args:
            order: Algorithme (celui de la configuration si None)

        Returns:
            SortResult ; success est False si le catalogue local est
            injoignable ou sans utilisateur
        """
        order = order or self._options.sort_order
        result = SortResult(order=order.value)

        try:
            users = await self._local.get_users()
            local_items = await self._index_local_items()
        except TransportError as e:
            logger.error(f"Tri impossible: {e}")
            result.success = False
            result.message = str(e)
            return result

        if not users:
            logger.warning("Aucun utilisateur local, tri impossible")
            result.success = False
            result.message = "Aucun utilisateur local"
            return result
        result.users = len(users)

        entries = list(self._materializer.snapshot().values())
        counts = assign_play_counts(entries, order, self._rng)

        for entry in sorted(entries, key=lambda e: counts[e.path]):
            if self._fs.exists(entry.path / IGNORE_MARKER):
                logger.debug(f"Dossier ignore (.ignore): {entry.path.name}")
                result.skipped.append(str(entry.path))
                continue

            item = local_items.get(PurePath(entry.path))
            if item is None:
                logger.debug(f"Dossier pas encore indexe: {entry.path.name}")
                result.failed.append(str(entry.path))
                continue

            play_count = counts[entry.path]
            applied = [await self._local.set_play_count(user, item, play_count) for user in users]
            if any(applied):
                result.sorted_items.append((item, play_count))
            else:
                result.failed.append(str(entry.path))

        result.message = str(result)
        logger.info(f"Tri de la bibliotheque: {result}")
        return result
