"""
Interface port pour le catalogue média local.

Le catalogue local (Jellyfin) est un collaborateur externe : le moteur lit
ses éléments et favoris, peut retirer un favori ou fixer un nombre de
lectures (tri), et lui transmet un plan de rafraîchissement en fin de
synchronisation.
"""

from abc import ABC, abstractmethod
from typing import Optional

from src.core.entities.catalog import LocalItem, LocalUser
from src.core.entities.results import RefreshPlan
from src.core.value_objects.media_kind import MediaKind


class ILocalCatalog(ABC):
    """Contrat du catalogue local consommé par le moteur."""

    @abstractmethod
    async def find_item_by_path(self, path: str) -> Optional[LocalItem]:
        """
        Recherche l'élément indexé à un chemin donné.

        Args :
            path : Chemin du dossier ou du fichier

        Retourne :
            L'élément, ou None si le chemin n'est pas (encore) indexé
        """
        ...

    @abstractmethod
    async def get_existing_items(
        self,
        media_kind: MediaKind,
        path_prefix: Optional[str] = None,
        exclude_prefix: Optional[str] = None,
    ) -> list[LocalItem]:
        """
        Liste les éléments d'un type, éventuellement restreints à un préfixe de chemin.

        Args :
            media_kind : Films ou séries
            path_prefix : Ne garder que les éléments situés sous ce chemin
            exclude_prefix : Écarter les éléments situés sous ce chemin
        """
        ...

    @abstractmethod
    async def get_user_favorites(self, media_kind: MediaKind) -> dict[LocalUser, list[LocalItem]]:
        """Retourne les favoris de chaque utilisateur pour un type de media."""
        ...

    @abstractmethod
    async def set_favorite(self, user: LocalUser, item: LocalItem, value: bool) -> bool:
        """
        Positionne le drapeau favori d'un élément pour un utilisateur.

        Retourne :
            True si le changement a été appliqué
        """
        ...

    @abstractmethod
    async def request_library_refresh(self, plan: RefreshPlan) -> None:
        """Déclenche le rafraîchissement décrit par le plan."""
        ...

    @abstractmethod
    async def get_users(self) -> list[LocalUser]:
        """Liste les utilisateurs du catalogue local."""
        ...

    @abstractmethod
    async def set_play_count(self, user: LocalUser, item: LocalItem, play_count: int) -> bool:
        """
        Positionne le nombre de lectures d'un élément pour un utilisateur.

        Retourne :
            True si le changement a été appliqué
        """
        ...
