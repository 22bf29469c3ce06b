"""
Client Jellyseerr / Overseerr pour la decouverte et la creation de requetes.

Implemente IRemoteCatalog. Les endpoints sont decrits par un registre
(SeerrEndpoint -> EndpointConfig) afin de centraliser chemins, methodes
et pagination. Les GET passent par request_with_retry, la creation de
requete par send_once (jamais relancee).

Usage:
    cache = APICache()
    client = SeerrClient(base_url="http://seerr:5055", api_key="xxx", cache=cache)
    async for page in client.iter_discover(MediaKind.MOVIE, {"watchProviders": 8}):
        ...
    await client.close()
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

import httpx
from loguru import logger

from src.adapters.api.cache import APICache
from src.adapters.api.retry import request_with_retry, send_once
from src.core.entities.catalog import RemoteItem
from src.core.exceptions import RejectionReason, RequestRejected, TransportError
from src.core.ports.api_clients import (
    DiscoverPage,
    IRemoteCatalog,
    Network,
    RemoteUser,
    RequestHandle,
    ServerStatus,
)
from src.core.value_objects.media_kind import MediaKind
from src.utils.helpers import normalize_user_id

# Valeur "take" utilisee pour recuperer toutes les entrees d'une liste paginee
MAX_TAKE = 9007199254740991


class SeerrEndpoint(Enum):
    """Endpoints de l'API utilises par la passerelle."""

    STATUS = "status"
    AUTH_ME = "auth_me"
    READ_REQUESTS = "read_requests"
    CREATE_REQUEST = "create_request"
    DISCOVER_MOVIES = "discover_movies"
    DISCOVER_TV = "discover_tv"
    USER_LIST = "user_list"
    WATCH_PROVIDER_REGIONS = "watch_provider_regions"
    WATCH_PROVIDERS_MOVIES = "watch_providers_movies"
    WATCH_PROVIDERS_TV = "watch_providers_tv"


@dataclass(frozen=True)
class EndpointConfig:
    """Description d'un endpoint : chemin, methode HTTP, pagination."""

    path: str
    method: str = "GET"
    paginated: bool = False


ENDPOINTS: dict[SeerrEndpoint, EndpointConfig] = {
    SeerrEndpoint.STATUS: EndpointConfig("/api/v1/status"),
    SeerrEndpoint.AUTH_ME: EndpointConfig("/api/v1/auth/me"),
    SeerrEndpoint.READ_REQUESTS: EndpointConfig("/api/v1/request", paginated=True),
    SeerrEndpoint.CREATE_REQUEST: EndpointConfig("/api/v1/request", method="POST"),
    SeerrEndpoint.DISCOVER_MOVIES: EndpointConfig("/api/v1/discover/movies", paginated=True),
    SeerrEndpoint.DISCOVER_TV: EndpointConfig("/api/v1/discover/tv", paginated=True),
    SeerrEndpoint.USER_LIST: EndpointConfig("/api/v1/user", paginated=True),
    SeerrEndpoint.WATCH_PROVIDER_REGIONS: EndpointConfig("/api/v1/watchproviders/regions"),
    SeerrEndpoint.WATCH_PROVIDERS_MOVIES: EndpointConfig("/api/v1/watchproviders/movies"),
    SeerrEndpoint.WATCH_PROVIDERS_TV: EndpointConfig("/api/v1/watchproviders/tv"),
}

_DISCOVER_ENDPOINTS = {
    MediaKind.MOVIE: SeerrEndpoint.DISCOVER_MOVIES,
    MediaKind.SHOW: SeerrEndpoint.DISCOVER_TV,
}

_PROVIDER_ENDPOINTS = {
    MediaKind.MOVIE: SeerrEndpoint.WATCH_PROVIDERS_MOVIES,
    MediaKind.SHOW: SeerrEndpoint.WATCH_PROVIDERS_TV,
}


def _extract_year(date_value: Optional[str]) -> Optional[str]:
    """Extrait l'annee d'une date ISO (YYYY-MM-DD), None si invalide."""
    if date_value and len(date_value) >= 4 and date_value[:4].isdigit():
        return date_value[:4]
    return None


def _error_message(response: httpx.Response) -> str:
    """Message d'erreur renvoye par le serveur (champ 'message' ou texte brut)."""
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict):
        return str(data.get("message") or data.get("error") or "")
    return ""


def classify_rejection(status_code: int, message: str) -> Optional[RejectionReason]:
    """
    Classe la reponse d'une creation de requete.

    Args:
        status_code: Code HTTP recu
        message: Message d'erreur du serveur

    Returns:
        Le motif de refus, ou None si la reponse n'est pas un refus connu
        (succes ou erreur de transport)
    """
    lowered = message.lower()
    if status_code == 409:
        return RejectionReason.DUPLICATE
    if status_code == 202 and "no seasons" in lowered:
        return RejectionReason.NO_SEASONS_AVAILABLE
    if status_code == 403:
        if "quota" in lowered:
            return RejectionReason.QUOTA_RESTRICTED
        if "blacklist" in lowered:
            return RejectionReason.BLACKLISTED
        return RejectionReason.PERMISSION_DENIED
    if status_code == 401:
        return RejectionReason.PERMISSION_DENIED
    return None


class SeerrClient(IRemoteCatalog):
    """
    Client API Jellyseerr/Overseerr.

    Implemente IRemoteCatalog avec:
    - Pagination discover (page / totalPages) et listes (pageInfo)
    - Retry automatique des GET (erreurs reseau, 429, 5xx)
    - Classification des refus de creation de requete
    - Cache persistant des fournisseurs et regions (rarement modifies)
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        cache: Optional[APICache] = None,
        timeout: float = 60.0,
        retry_attempts: int = 3,
        retry_max_wait: int = 30,
    ) -> None:
        """
        Initialise le client.

        Args:
            base_url: URL du serveur (ex: http://localhost:5055)
            api_key: Cle API (header X-Api-Key)
            cache: Cache optionnel pour les metadonnees de fournisseurs
            timeout: Timeout par requete en secondes
            retry_attempts: Nombre de tentatives pour les GET
            retry_max_wait: Delai maximum entre deux tentatives
        """
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key or ""
        self._cache = cache
        self._timeout = timeout
        self._retry_attempts = retry_attempts
        self._retry_max_wait = retry_max_wait
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """Retourne le client HTTP, le cree si necessaire (lazy init)."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={"X-Api-Key": self._api_key, "Accept": "application/json"},
                timeout=self._timeout,
            )
        return self._client

    @property
    def source(self) -> str:
        """Retourne l'identifiant de la source API."""
        return "seerr"

    async def _get(
        self,
        endpoint: SeerrEndpoint,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        config = ENDPOINTS[endpoint]
        response = await request_with_retry(
            self._get_client(),
            config.method,
            config.path,
            max_attempts=self._retry_attempts,
            max_wait=self._retry_max_wait,
            params=dict(params or {}),
        )
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"Reponse invalide sur {config.path}", status_code=response.status_code
            ) from e

    def _parse_item(
        self, data: Mapping[str, Any], media_kind: MediaKind
    ) -> Optional[RemoteItem]:
        """Convertit un resultat discover en RemoteItem (None si inexploitable)."""
        remote_id = data.get("id")
        if not isinstance(remote_id, int):
            return None

        media_info = data.get("mediaInfo") or {}
        if media_kind == MediaKind.MOVIE:
            name = data.get("title") or data.get("originalTitle") or ""
            year = _extract_year(data.get("releaseDate"))
            secondary = media_info.get("imdbId")
        else:
            name = data.get("name") or data.get("originalName") or ""
            year = _extract_year(data.get("firstAirDate"))
            secondary = media_info.get("tvdbId")

        if not name:
            return None

        return RemoteItem(
            primary_id=remote_id,
            media_kind=media_kind,
            display_name=name,
            secondary_id=str(secondary) if secondary not in (None, "") else None,
            release_year=year,
        )

    async def fetch_discover_page(
        self,
        media_kind: MediaKind,
        page: int,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> DiscoverPage:
        """
        Recupere une page discover.

        Args:
            media_kind: Films ou series
            page: Numero de page (1-indexe)
            filters: watchRegion, watchProviders, ...

        Returns:
            DiscoverPage avec has_more calcule depuis totalPages
        """
        params: dict[str, Any] = {"page": page, "sortBy": "popularity.desc"}
        params.update(filters or {})

        data = await self._get(_DISCOVER_ENDPOINTS[media_kind], params)

        items = []
        for raw in data.get("results", []):
            item = self._parse_item(raw, media_kind)
            if item is None:
                logger.debug(f"Resultat discover ignore: {raw.get('id')}")
                continue
            items.append(item)

        current = data.get("page", page)
        total_pages = data.get("totalPages", current)
        return DiscoverPage(items=items, page=current, has_more=current < total_pages)

    async def create_request(
        self,
        remote_id: int,
        media_kind: MediaKind,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> RequestHandle:
        """
        Cree une requete (une seule tentative).

        Raises:
            RequestRejected: Refus classe (doublon, quota, permission, ...)
            TransportError: Erreur reseau, 5xx, 429 ou reponse inattendue
        """
        body: dict[str, Any] = {"mediaType": media_kind.value, "mediaId": remote_id}
        if media_kind == MediaKind.SHOW:
            body["seasons"] = "all"
        body.update(extra or {})

        config = ENDPOINTS[SeerrEndpoint.CREATE_REQUEST]
        response = await send_once(self._get_client(), config.method, config.path, json=body)
        message = _error_message(response) if response.status_code != 201 else ""

        reason = classify_rejection(response.status_code, message)
        if reason is not None:
            logger.info(f"Requete {media_kind.value}:{remote_id} refusee ({reason.value}): {message}")
            raise RequestRejected(reason, message)

        if not response.is_success:
            raise TransportError(
                f"Creation de requete {media_kind.value}:{remote_id} en echec: "
                f"{response.status_code} {message}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError("Reponse de creation invalide", response.status_code) from e

        return RequestHandle(
            request_id=int(data.get("id", 0)),
            media_kind=media_kind,
            remote_id=remote_id,
            status=data.get("status"),
        )

    async def list_requests(self) -> set[tuple[MediaKind, int]]:
        """Retourne les couples (type, ID TMDB) deja demandes."""
        data = await self._get(
            SeerrEndpoint.READ_REQUESTS, {"take": MAX_TAKE, "filter": "all"}
        )
        requested: set[tuple[MediaKind, int]] = set()
        for raw in data.get("results", []):
            media = raw.get("media") or {}
            tmdb_id = media.get("tmdbId")
            media_type = media.get("mediaType") or raw.get("type")
            if not isinstance(tmdb_id, int) or media_type not in ("movie", "tv"):
                continue
            requested.add((MediaKind(media_type), tmdb_id))
        return requested

    async def list_users(self) -> list[RemoteUser]:
        """Retourne les utilisateurs, avec leur ID Jellyfin quand il est connu."""
        data = await self._get(SeerrEndpoint.USER_LIST, {"take": MAX_TAKE})
        return [self._parse_user(raw) for raw in data.get("results", [])]

    @staticmethod
    def _parse_user(raw: Mapping[str, Any]) -> RemoteUser:
        local_id = raw.get("jellyfinUserId")
        return RemoteUser(
            id=int(raw.get("id", 0)),
            display_name=raw.get("displayName") or raw.get("username") or "",
            local_user_id=normalize_user_id(str(local_id)) if local_id else None,
        )

    async def get_status(self) -> ServerStatus:
        """Retourne la version du serveur."""
        data = await self._get(SeerrEndpoint.STATUS)
        version = data.get("version") if isinstance(data, dict) else None
        if not version:
            raise TransportError("Statut invalide : version absente", status_code=502)
        return ServerStatus(
            version=version,
            commit_tag=data.get("commitTag"),
            update_available=bool(data.get("updateAvailable", False)),
        )

    async def get_current_user(self) -> RemoteUser:
        """Retourne l'utilisateur associe a la cle API."""
        return self._parse_user(await self._get(SeerrEndpoint.AUTH_ME))

    async def get_watch_regions(self) -> list[dict[str, str]]:
        """Retourne les regions de disponibilite (cache 7 jours)."""
        cache_key = "seerr:regions"
        if self._cache is not None:
            cached = await self._cache.get(cache_key)
            if cached is not None:
                return cached

        data = await self._get(SeerrEndpoint.WATCH_PROVIDER_REGIONS)
        regions = [
            {"iso_3166_1": r.get("iso_3166_1", ""), "english_name": r.get("english_name", "")}
            for r in data
        ]
        if self._cache is not None:
            await self._cache.set_regions(cache_key, regions)
        return regions

    async def get_watch_providers(self, media_kind: MediaKind, region: str) -> list[Network]:
        """Retourne les fournisseurs d'une region (cache 24h)."""
        cache_key = f"seerr:providers:{media_kind.value}:{region}"
        if self._cache is not None:
            cached = await self._cache.get(cache_key)
            if cached is not None:
                return cached

        data = await self._get(_PROVIDER_ENDPOINTS[media_kind], {"watchRegion": region})
        networks = [
            Network(
                id=int(raw["id"]),
                name=raw.get("name", ""),
                country=region,
                display_priority=raw.get("displayPriority"),
            )
            for raw in data
            if "id" in raw
        ]
        if self._cache is not None:
            await self._cache.set_providers(cache_key, networks)
        return networks

    async def close(self) -> None:
        """Ferme le client HTTP."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
