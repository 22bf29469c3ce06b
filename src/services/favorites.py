"""
Pipeline favoris locaux -> requetes distantes.

Un utilisateur qui met en favori un dossier de substitution exprime une
demande : le pipeline la transforme en requete sur le service distant,
au nom de l'utilisateur distant lie, puis retire le favori une fois la
requete acceptee.
"""

from typing import Optional

from loguru import logger

from src.config import SyncOptions
from src.core.entities.catalog import LocalItem, LocalUser
from src.core.entities.results import FavoriteScanResult
from src.core.exceptions import RejectionReason, RequestRejected, TransportError
from src.core.ports.api_clients import IRemoteCatalog, RemoteUser
from src.core.ports.local_catalog import ILocalCatalog
from src.core.value_objects.media_kind import MediaKind
from src.services.identity import IdentityResolver, normalize_secondary_id
from src.services.materializer import Materializer
from src.utils.helpers import is_under, normalize_user_id


class FavoritesPipeline:
    """
    Transforme les favoris du catalogue local en requetes distantes.

    Issues par couple (utilisateur, favori) :
    - deja demande ou doublon -> found
    - requete creee -> created, puis removed si le favori a ete retire
    - refus definitif (quota, permission, liste noire, saisons) -> blocked
    - erreur de transport -> rien, le favori sera retente a la prochaine passe
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

    async def _remote_users(self) -> dict[str, RemoteUser]:
        """Utilisateurs distants indexes par ID utilisateur local."""
        try:
            users = await self._remote.list_users()
        except TransportError as e:
            logger.warning(f"Utilisateurs distants indisponibles, requetes au nom de la cle API: {e}")
            return {}
        return {u.local_user_id: u for u in users if u.local_user_id}

    def _secondary_index(self, media_kind: MediaKind) -> dict[str, int]:
        """ID secondaire normalise -> ID distant, depuis les dossiers presents."""
        kind = media_kind.secondary_id_kind
        index: dict[str, int] = {}
        for entry in self._materializer.snapshot(media_kind).values():
            secondary = normalize_secondary_id(kind, entry.item.secondary_id)
            if secondary:
                index.setdefault(secondary, entry.primary_id)
        return index

    def _resolve_remote_id(
        self, item: LocalItem, secondary_index: dict[str, int]
    ) -> Optional[int]:
        remote_id = self._identity.expected_remote_id(item)
        if remote_id is not None:
            return remote_id
        kind = item.media_kind.secondary_id_kind
        secondary = normalize_secondary_id(kind, item.get_external_id(kind.provider_key))
        return secondary_index.get(secondary) if secondary else None

    async def run(self, media_kind: MediaKind) -> FavoriteScanResult:
        """
        Traite les favoris d'un type de media.

        Returns:
            FavoriteScanResult de la passe

        Raises:
            TransportError: Si la liste des requetes ou des favoris est inaccessible
        """
        result = FavoriteScanResult()
        requested = await self._remote.list_requests()
        favorites = await self._local.get_user_favorites(media_kind)
        if not favorites:
            logger.debug(f"Aucun favori ({media_kind.label})")
            return result

        remote_users = await self._remote_users()
        secondary_index = self._secondary_index(media_kind)
        library_dir = str(self._options.library_dir)

        for user, items in favorites.items():
            remote_user = remote_users.get(normalize_user_id(user.user_id))
            for item in items:
                if self._options.favorites_bridge_only and not is_under(
                    item.filesystem_path, library_dir
                ):
                    continue
                remote_id = self._resolve_remote_id(item, secondary_index)
                if remote_id is None:
                    logger.debug(f"Favori sans ID distant: {item.display_name}")
                    continue
                await self._process(
                    result, requested, user, remote_user, item, remote_id
                )

        logger.info(f"Favoris {media_kind.label}: {result}")
        return result

    async def _process(
        self,
        result: FavoriteScanResult,
        requested: set[tuple[MediaKind, int]],
        user: LocalUser,
        remote_user: Optional[RemoteUser],
        item: LocalItem,
        remote_id: int,
    ) -> None:
        entry = (user, item)
        key = (item.media_kind, remote_id)
        if key in requested:
            result.found.append(entry)
            return

        extra = {"userId": remote_user.id} if remote_user else None
        try:
            await self._remote.create_request(remote_id, item.media_kind, extra)
        except RequestRejected as e:
            if e.reason is RejectionReason.DUPLICATE:
                requested.add(key)
                result.found.append(entry)
            else:
                logger.warning(f"Requete bloquee pour {item.display_name} ({user.name}): {e}")
                result.blocked.append(entry)
            return
        except TransportError as e:
            logger.error(f"Requete non envoyee pour {item.display_name} ({user.name}): {e}")
            return

        requested.add(key)
        result.created.append(entry)
        logger.info(f"Requete creee: {item.display_name} pour {user.name or user.user_id}")

        if self._options.remove_requested_from_favorites:
            if await self._local.set_favorite(user, item, False):
                result.removed.append(entry)

    async def run_all(self) -> tuple[FavoriteScanResult, FavoriteScanResult]:
        """
        Traite les favoris films puis series.

        Une erreur de transport n'interrompt que le type concerne ; elle
        est consignee dans le champ error de son bilan.
        """
        results = []
        for media_kind in (MediaKind.MOVIE, MediaKind.SHOW):
            try:
                results.append(await self.run(media_kind))
            except TransportError as e:
                logger.error(f"Favoris {media_kind.label} non traites: {e}")
                results.append(FavoriteScanResult(error=str(e)))
        movies, shows = results
        return movies, shows
