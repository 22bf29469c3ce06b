"""
Entites metier du domaine.

Exports :
- RemoteItem : Titre du catalogue de decouverte distant
- LocalItem : Titre du catalogue media local
- LocalUser : Utilisateur du catalogue local (proprietaire des favoris)
- PlaceholderEntry : Dossier de substitution sur disque
- ReconciliationResult, FavoriteScanResult, RefreshPlan : bilans d'execution
- SortResult : bilan du tri de la bibliotheque de substitution
"""

from src.core.entities.catalog import LocalItem, LocalUser, PlaceholderEntry, RemoteItem
from src.core.entities.results import (
    FavoriteScanResult,
    ReconciliationResult,
    RefreshPlan,
    SortResult,
    SyncFavoritesResult,
    SyncFromRemoteResult,
)

__all__ = [
    "RemoteItem",
    "LocalItem",
    "LocalUser",
    "PlaceholderEntry",
    "ReconciliationResult",
    "FavoriteScanResult",
    "RefreshPlan",
    "SyncFromRemoteResult",
    "SyncFavoritesResult",
    "SortResult",
]
