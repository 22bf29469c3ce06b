"""
Résultats des opérations de synchronisation.

Les résultats partiels (films / séries) se combinent avec un opérateur
associatif afin d'obtenir un bilan unique par exécution.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from src.core.entities.catalog import LocalItem, LocalUser, RemoteItem


def _union_first_seen(left: Iterable[RemoteItem], right: Iterable[RemoteItem]) -> set[RemoteItem]:
    """Union par identité : en cas de doublon, l'instance de gauche est conservée."""
    merged: dict[tuple, RemoteItem] = {}
    for item in left:
        merged.setdefault(item.identity, item)
    for item in right:
        merged.setdefault(item.identity, item)
    return set(merged.values())


@dataclass
class ReconciliationResult:
    """
    Bilan d'une réconciliation catalogue distant -> dossiers locaux.

    Attributes:
        processed: Tous les éléments tentés (succès ou échec)
        added: Dossiers créés
        updated: Dossiers mis à jour
        deleted: Dossiers supprimés (expirés)
        ignored: Titres déjà présents dans la bibliothèque principale
        error: Erreur de transport ayant interrompu la passe (None si complète)
    """

    processed: set[RemoteItem] = field(default_factory=set)
    added: set[RemoteItem] = field(default_factory=set)
    updated: set[RemoteItem] = field(default_factory=set)
    deleted: set[RemoteItem] = field(default_factory=set)
    ignored: set[RemoteItem] = field(default_factory=set)
    error: Optional[str] = None

    def combine(self, other: "ReconciliationResult") -> "ReconciliationResult":
        """Fusionne deux résultats (union par identité, premier vu gagnant)."""
        return ReconciliationResult(
            processed=_union_first_seen(self.processed, other.processed),
            added=_union_first_seen(self.added, other.added),
            updated=_union_first_seen(self.updated, other.updated),
            deleted=_union_first_seen(self.deleted, other.deleted),
            ignored=_union_first_seen(self.ignored, other.ignored),
            error=self.error or other.error,
        )

    __add__ = combine

    @property
    def has_changes(self) -> bool:
        """True si au moins un dossier a été créé, modifié ou supprimé."""
        return bool(self.added or self.updated or self.deleted)

    def __str__(self) -> str:
        return (
            f"{len(self.processed)} traites, {len(self.added)} ajoutes, "
            f"{len(self.updated)} mis a jour, {len(self.deleted)} supprimes, "
            f"{len(self.ignored)} ignores"
        )


FavoriteEntry = tuple[LocalUser, LocalItem]


@dataclass
class FavoriteScanResult:
    """
    Bilan du pipeline favoris -> requêtes, par couple (utilisateur, élément).

    Attributes:
        found: Déjà demandés/connus du service distant
        created: Nouvelle requête créée
        removed: Drapeau favori retiré après succès confirmé
        blocked: Requête refusée (quota, permission, liste noire, saisons)
        error: Erreur de transport ayant interrompu la passe (None si complète)
    """

    found: list[FavoriteEntry] = field(default_factory=list)
    created: list[FavoriteEntry] = field(default_factory=list)
    removed: list[FavoriteEntry] = field(default_factory=list)
    blocked: list[FavoriteEntry] = field(default_factory=list)
    error: Optional[str] = None

    def combine(self, other: "FavoriteScanResult") -> "FavoriteScanResult":
        """Concatène deux bilans."""
        return FavoriteScanResult(
            found=self.found + other.found,
            created=self.created + other.created,
            removed=self.removed + other.removed,
            blocked=self.blocked + other.blocked,
            error=self.error or other.error,
        )

    __add__ = combine

    def __str__(self) -> str:
        return (
            f"{len(self.found)} deja demandes, {len(self.created)} crees, "
            f"{len(self.removed)} retires des favoris, {len(self.blocked)} bloques"
        )


@dataclass(frozen=True)
class RefreshPlan:
    """
    Instruction déclarative de rafraîchissement du catalogue local.

    Consommée par ILocalCatalog.request_library_refresh après les deux
    sens de synchronisation ; jamais exécutée par le moteur lui-même.
    """

    full_refresh: bool = False
    refresh_images: bool = False

    def merge(self, other: "RefreshPlan") -> "RefreshPlan":
        """Combine deux plans (OU logique champ par champ)."""
        return RefreshPlan(
            full_refresh=self.full_refresh or other.full_refresh,
            refresh_images=self.refresh_images or other.refresh_images,
        )

    @property
    def is_empty(self) -> bool:
        """True si aucun rafraîchissement n'est nécessaire."""
        return not (self.full_refresh or self.refresh_images)


@dataclass
class SyncFromRemoteResult:
    """Bilan du sens distant -> local (films et séries)."""

    movies: ReconciliationResult = field(default_factory=ReconciliationResult)
    shows: ReconciliationResult = field(default_factory=ReconciliationResult)
    refresh: RefreshPlan = field(default_factory=RefreshPlan)
    success: bool = True
    message: str = ""

    @property
    def combined(self) -> ReconciliationResult:
        """Films et séries fusionnés."""
        return self.movies.combine(self.shows)


@dataclass
class SyncFavoritesResult:
    """Bilan du sens local -> distant (favoris films et séries)."""

    movies: FavoriteScanResult = field(default_factory=FavoriteScanResult)
    shows: FavoriteScanResult = field(default_factory=FavoriteScanResult)
    refresh: RefreshPlan = field(default_factory=RefreshPlan)
    success: bool = True
    message: str = ""

    @property
    def combined(self) -> FavoriteScanResult:
        """Films et séries fusionnés."""
        return self.movies.combine(self.shows)


@dataclass
class SortResult:
    """
    Bilan du tri de la bibliothèque de substitution.

    Attributes:
        order: Algorithme appliqué ("none" ou "random")
        users: Nombre d'utilisateurs mis à jour
        sorted_items: Éléments et nombre de lectures attribué
        failed: Dossiers non indexés ou refusés par le catalogue local
        skipped: Dossiers exclus par un marqueur .ignore
    """

    order: str = "none"
    users: int = 0
    sorted_items: list[tuple[LocalItem, int]] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    success: bool = True
    message: str = ""

    def __str__(self) -> str:
        return (
            f"{len(self.sorted_items)} tries ({self.order}, {self.users} utilisateurs), "
            f"{len(self.failed)} en echec, {len(self.skipped)} ignores"
        )
