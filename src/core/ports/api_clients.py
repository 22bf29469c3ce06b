"""
Interfaces ports pour le service de découverte/requêtes distant.

Interface abstraite (port) définissant le contrat de la passerelle vers le
catalogue distant (Jellyseerr / Overseerr). L'implémentation concrète
(adaptateur httpx) se trouve dans adapters/api/seerr_client.py.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Mapping, Optional

from src.core.entities.catalog import RemoteItem
from src.core.exceptions import TransportError
from src.core.value_objects.media_kind import MediaKind


@dataclass
class DiscoverPage:
    """
    Une page de résultats discover.

    Attributs :
        items : Titres de la page
        page : Numéro de la page (commence à 1)
        has_more : True si le serveur annonce des pages suivantes
    """

    items: list[RemoteItem]
    page: int = 1
    has_more: bool = False


@dataclass
class RequestHandle:
    """
    Requête créée sur le service distant.

    Attributs :
        request_id : ID de la requête
        media_kind : Type de media demandé
        remote_id : ID TMDB demandé
        status : Statut brut renvoyé par le serveur
    """

    request_id: int
    media_kind: MediaKind
    remote_id: int
    status: Optional[int] = None


@dataclass
class RemoteUser:
    """
    Utilisateur du service distant.

    Attributs :
        id : ID côté service distant
        display_name : Nom affiché
        local_user_id : ID de l'utilisateur correspondant dans le catalogue local
    """

    id: int
    display_name: str = ""
    local_user_id: Optional[str] = None


@dataclass
class Network:
    """
    Réseau / fournisseur de streaming utilisé comme filtre discover.

    Attributs :
        id : ID du fournisseur (watchProviders)
        name : Nom affiché, repris comme tag réseau
        country : Région de disponibilité (watchRegion)
        display_priority : Priorité d'affichage renvoyée par l'API
    """

    id: int
    name: str
    country: str = "US"
    display_priority: Optional[int] = None


@dataclass
class ServerStatus:
    """Statut du service distant."""

    version: str
    commit_tag: Optional[str] = None
    update_available: bool = False
    extra: dict[str, Any] = field(default_factory=dict)


class IRemoteCatalog(ABC):
    """
    Passerelle vers le catalogue distant.

    Les appels en lecture sont bornés par un timeout et relancés selon la
    configuration. La création de requête n'est jamais relancée : un échec
    remonte sous forme de RequestRejected ou TransportError.
    """

    @abstractmethod
    async def fetch_discover_page(
        self,
        media_kind: MediaKind,
        page: int,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> DiscoverPage:
        """
        Récupère une page discover.

        Args :
            media_kind : Films ou séries
            page : Numéro de page (1-indexé)
            filters : Paramètres de requête supplémentaires (watchRegion, watchProviders...)

        Retourne :
            La page de titres et l'indicateur de pages suivantes
        """
        ...

    async def iter_discover(
        self,
        media_kind: MediaKind,
        filters: Optional[Mapping[str, Any]] = None,
        max_pages: int = 0,
    ) -> AsyncIterator[DiscoverPage]:
        """
        Parcourt les pages discover jusqu'à épuisement ou plafond.

        La pagination s'arrête quand le serveur n'annonce plus de page,
        quand une page est vide, ou après max_pages pages (0 = illimité).
        """
        page = 1
        while True:
            result = await self.fetch_discover_page(media_kind, page, filters)
            if not result.items:
                return
            yield result
            if not result.has_more:
                return
            if max_pages and page >= max_pages:
                return
            page += 1

    @abstractmethod
    async def create_request(
        self,
        remote_id: int,
        media_kind: MediaKind,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> RequestHandle:
        """
        Crée une requête pour un titre.

        Args :
            remote_id : ID TMDB du titre
            media_kind : Films ou séries
            extra : Champs additionnels du corps (userId, seasons, is4k...)

        Retourne :
            La requête créée

        Lève :
            RequestRejected : refus classifié par le serveur
            TransportError : erreur réseau ou serveur
        """
        ...

    @abstractmethod
    async def list_requests(self) -> set[tuple[MediaKind, int]]:
        """Retourne les couples (type, ID TMDB) déjà demandés."""
        ...

    @abstractmethod
    async def list_users(self) -> list[RemoteUser]:
        """Retourne les utilisateurs du service distant."""
        ...

    @abstractmethod
    async def get_status(self) -> ServerStatus:
        """Retourne le statut du service distant."""
        ...

    @abstractmethod
    async def get_current_user(self) -> RemoteUser:
        """Retourne l'utilisateur associé à la clé API."""
        ...

    @abstractmethod
    async def get_watch_regions(self) -> list[dict[str, str]]:
        """Retourne les régions de disponibilité ({iso_3166_1, english_name})."""
        ...

    @abstractmethod
    async def get_watch_providers(self, media_kind: MediaKind, region: str) -> list[Network]:
        """Retourne les fournisseurs de streaming d'une région."""
        ...

    async def test_connection(self) -> bool:
        """
        Vérifie que le service répond et que la clé API est acceptée.

        Retourne :
            True si l'appel de statut aboutit, False sinon
        """
        try:
            await self.get_status()
        except TransportError:
            return False
        return True

    @property
    @abstractmethod
    def source(self) -> str:
        """Identifiant de la source (ex: 'seerr')."""
        ...
