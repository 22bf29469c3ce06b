"""
Cache persistant des metadonnees du service distant.

Le cache utilise diskcache pour la persistence sur disque : la liste des
fournisseurs et des regions change rarement, inutile de la redemander a
chaque commande `networks` ou a chaque demarrage du daemon.

TTL par defaut:
- Fournisseurs (PROVIDERS_TTL): 24 heures
- Regions (REGIONS_TTL): 7 jours
"""

import asyncio
from functools import partial
from typing import Any, Optional

from diskcache import Cache


class APICache:
    """
    Cache asynchrone avec TTL pour les appels API.

    Utilise diskcache pour la persistence et run_in_executor pour
    les operations asynchrones non-bloquantes.

    Example:
        cache = APICache(cache_dir=".cache/api")
        await cache.set_providers("seerr:providers:movie:US", networks)
        data = await cache.get("seerr:providers:movie:US")
    """

    PROVIDERS_TTL = 24 * 60 * 60
    REGIONS_TTL = 7 * 24 * 60 * 60

    def __init__(self, cache_dir: str = ".cache/api") -> None:
        """
        Args:
            cache_dir: Chemin vers le repertoire du cache (cree si inexistant)
        """
        self._cache = Cache(cache_dir)

    async def get(self, key: str) -> Optional[Any]:
        """Recupere une valeur, None si absente ou expiree."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._cache.get, key)

    async def set(self, key: str, value: Any, ttl: int) -> None:
        """Stocke une valeur avec un TTL en secondes."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None, partial(self._cache.set, key, value, expire=ttl)
        )

    async def set_providers(self, key: str, value: Any) -> None:
        """Stocke une liste de fournisseurs (TTL de 24h)."""
        await self.set(key, value, self.PROVIDERS_TTL)

    async def set_regions(self, key: str, value: Any) -> None:
        """Stocke la liste des regions (TTL de 7 jours)."""
        await self.set(key, value, self.REGIONS_TTL)

    async def clear(self) -> None:
        """Supprime toutes les entrees du cache."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._cache.clear)

    def close(self) -> None:
        """Ferme la connexion au cache (a appeler a la fin)."""
        self._cache.close()
