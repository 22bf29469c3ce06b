"""
Client Jellyfin implementant le port ILocalCatalog.

Le catalogue local est lu via l'API REST de Jellyfin (authentification par
header X-Emby-Token). Le moteur n'y ecrit que le drapeau favori, le nombre de
lectures (tri) et les demandes de rafraichissement des bibliotheques de substitution.
"""

from pathlib import PurePath
from typing import Any, Optional

import httpx
from loguru import logger

from src.adapters.api.retry import request_with_retry
from src.core.entities.catalog import LocalItem, LocalUser
from src.core.entities.results import RefreshPlan
from src.core.exceptions import TransportError
from src.core.ports.local_catalog import ILocalCatalog
from src.core.value_objects.media_kind import MediaKind
from src.utils.helpers import is_under, normalize_user_id

_ITEM_TYPES = {
    MediaKind.MOVIE: "Movie",
    MediaKind.SHOW: "Series",
}

_ITEM_FIELDS = "ProviderIds,Path"


class JellyfinClient(ILocalCatalog):
    """
    Client API Jellyfin.

    Attributes:
        library_dir: Racine des dossiers de substitution, utilisee pour
            retrouver les bibliotheques a rafraichir
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        library_dir: Optional[str] = None,
        timeout: float = 60.0,
        retry_attempts: int = 3,
        retry_max_wait: int = 30,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key or ""
        self.library_dir = library_dir
        self._timeout = timeout
        self._retry_attempts = retry_attempts
        self._retry_max_wait = retry_max_wait
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """Retourne le client HTTP, le cree si necessaire (lazy init)."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={"X-Emby-Token": self._api_key, "Accept": "application/json"},
                timeout=self._timeout,
            )
        return self._client

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        return await request_with_retry(
            self._get_client(),
            method,
            url,
            max_attempts=self._retry_attempts,
            max_wait=self._retry_max_wait,
            **kwargs,
        )

    def _parse_item(self, raw: dict[str, Any], media_kind: MediaKind) -> LocalItem:
        return LocalItem(
            local_id=raw["Id"],
            display_name=raw.get("Name", ""),
            filesystem_path=raw.get("Path") or "",
            media_kind=media_kind,
            external_ids=dict(raw.get("ProviderIds") or {}),
        )

    async def _query_items(
        self, media_kind: MediaKind, url: str, extra: Optional[dict[str, Any]] = None
    ) -> list[LocalItem]:
        params: dict[str, Any] = {
            "Recursive": "true",
            "IncludeItemTypes": _ITEM_TYPES[media_kind],
            "Fields": _ITEM_FIELDS,
        }
        params.update(extra or {})
        response = await self._request("GET", url, params=params)
        return [
            self._parse_item(raw, media_kind)
            for raw in response.json().get("Items", [])
            if raw.get("Id")
        ]

    async def test_connection(self) -> bool:
        """Verifie que Jellyfin repond et accepte le jeton."""
        try:
            await self._request("GET", "/System/Info")
        except TransportError:
            return False
        return True

    async def get_users(self) -> list[LocalUser]:
        """Liste les utilisateurs Jellyfin."""
        response = await self._request("GET", "/Users")
        return [
            LocalUser(user_id=normalize_user_id(raw["Id"]), name=raw.get("Name", ""))
            for raw in response.json()
            if raw.get("Id")
        ]

    async def find_item_by_path(self, path: str) -> Optional[LocalItem]:
        """
        Recherche l'element indexe a un chemin donne.

        Args:
            path: Chemin du dossier (film ou serie)

        Returns:
            L'element, ou None si Jellyfin ne l'a pas encore indexe
        """
        wanted = PurePath(path)
        for media_kind in MediaKind:
            for item in await self._query_items(media_kind, "/Items"):
                if item.filesystem_path and PurePath(item.filesystem_path) == wanted:
                    return item
                # Les films sont indexes par fichier, le dossier suffit
                if item.filesystem_path and PurePath(item.filesystem_path).parent == wanted:
                    return item
        return None

    async def get_existing_items(
        self,
        media_kind: MediaKind,
        path_prefix: Optional[str] = None,
        exclude_prefix: Optional[str] = None,
    ) -> list[LocalItem]:
        """Liste les elements d'un type, filtres par prefixe de chemin."""
        items = await self._query_items(media_kind, "/Items")
        if path_prefix:
            items = [i for i in items if is_under(i.filesystem_path, path_prefix)]
        if exclude_prefix:
            items = [i for i in items if not is_under(i.filesystem_path, exclude_prefix)]
        return items

    async def get_user_favorites(self, media_kind: MediaKind) -> dict[LocalUser, list[LocalItem]]:
        """Retourne les favoris de chaque utilisateur."""
        favorites: dict[LocalUser, list[LocalItem]] = {}
        for user in await self.get_users():
            items = await self._query_items(
                media_kind,
                f"/Users/{user.user_id}/Items",
                {"Filters": "IsFavorite"},
            )
            if items:
                favorites[user] = items
        return favorites

    async def set_favorite(self, user: LocalUser, item: LocalItem, value: bool) -> bool:
        """
        Ajoute ou retire un favori.

        Returns:
            True si Jellyfin a accepte le changement
        """
        url = f"/Users/{user.user_id}/FavoriteItems/{item.local_id}"
        try:
            await self._request("POST" if value else "DELETE", url)
        except TransportError as e:
            logger.warning(f"Favori non modifie pour {item.display_name} ({user.name}): {e}")
            return False
        return True

    async def set_play_count(self, user: LocalUser, item: LocalItem, play_count: int) -> bool:
        """
        Fixe le nombre de lectures d'un element pour un utilisateur.

        L'endpoint /UserItems (Jellyfin 10.9+) est essaye en premier, puis
        l'ancien /Users/{id}/Items/{id}/UserData s'il repond 404.

        Returns:
            True si Jellyfin a accepte le changement
        """
        payload = {"PlayCount": play_count}
        try:
            try:
                await self._request(
                    "POST",
                    f"/UserItems/{item.local_id}/UserData",
                    params={"userId": user.user_id},
                    json=payload,
                )
            except TransportError as e:
                if e.status_code != 404:
                    raise
                await self._request(
                    "POST", f"/Users/{user.user_id}/Items/{item.local_id}/UserData", json=payload
                )
        except TransportError as e:
            logger.warning(f"Lectures non modifiees pour {item.display_name} ({user.name}): {e}")
            return False
        return True

    async def _library_folder_ids(self) -> list[str]:
        """IDs des bibliotheques dont un emplacement est sous library_dir."""
        if not self.library_dir:
            return []
        response = await self._request("GET", "/Library/VirtualFolders")
        ids = []
        for folder in response.json():
            locations = folder.get("Locations") or []
            if any(is_under(loc, self.library_dir) for loc in locations) and folder.get("ItemId"):
                ids.append(folder["ItemId"])
        return ids

    async def request_library_refresh(self, plan: RefreshPlan) -> None:
        """
        Rafraichit les bibliotheques de substitution selon le plan.

        Chaque bibliotheque situee sous library_dir est rafraichie
        recursivement. Sans bibliotheque identifiable, un scan global
        (/Library/Refresh) est demande.
        """
        if plan.is_empty:
            logger.debug("Plan de rafraichissement vide, rien a faire")
            return

        folder_ids = await self._library_folder_ids()
        if not folder_ids:
            logger.warning("Aucune bibliotheque sous la racine, scan global demande")
            await self._request("POST", "/Library/Refresh")
            return

        mode = "FullRefresh" if plan.full_refresh else "Default"
        params = {
            "Recursive": "true",
            "MetadataRefreshMode": mode,
            "ImageRefreshMode": mode,
            "ReplaceAllMetadata": str(plan.full_refresh).lower(),
            "ReplaceAllImages": str(plan.refresh_images).lower(),
        }
        for folder_id in folder_ids:
            logger.debug(f"Rafraichissement de la bibliotheque {folder_id} ({mode})")
            await self._request("POST", f"/Items/{folder_id}/Refresh", params=params)

    async def close(self) -> None:
        """Ferme le client HTTP."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
