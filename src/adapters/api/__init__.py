"""
Clients API externes.

Ce module fournit les adaptateurs pour communiquer avec les API externes:
- Jellyseerr / Overseerr : catalogue de decouverte et requetes (SeerrClient)
- Jellyfin : catalogue local, favoris et rafraichissement (JellyfinClient)

Infrastructure partagee:
- APICache: Cache persistant avec TTL differencies (fournisseurs 24h, regions 7j)
- RateLimitError: Exception pour les erreurs 429
- request_with_retry: Requete avec backoff exponentiel
"""

from src.adapters.api.cache import APICache
from src.adapters.api.jellyfin_client import JellyfinClient
from src.adapters.api.retry import RateLimitError, request_with_retry, with_retry
from src.adapters.api.seerr_client import SeerrClient

__all__ = [
    "APICache",
    "JellyfinClient",
    "SeerrClient",
    "RateLimitError",
    "request_with_retry",
    "with_retry",
]
