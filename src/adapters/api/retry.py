"""
Mecanisme de retry avec backoff exponentiel pour les API externes.

Les requetes idempotentes (GET) sont relancees sur erreur reseau, timeout,
429 (rate limiting) et 5xx, avec un delai croissant et du jitter aleatoire.
Les requetes non idempotentes passent par send_once() : une seule tentative,
les erreurs de transport sont converties en TransportError.

Usage:
    response = await request_with_retry(client, "GET", "/api/v1/status", max_attempts=3)
    response = await send_once(client, "POST", "/api/v1/request", json=body)
"""

from typing import Optional

import httpx
from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from src.core.exceptions import TransportError


class RateLimitError(TransportError):
    """
    Exception levee quand l'API retourne 429 Too Many Requests.

    Attributes:
        retry_after: Nombre de secondes a attendre (depuis le header Retry-After),
                     ou None si non specifie.
    """

    def __init__(self, retry_after: Optional[int] = None) -> None:
        self.retry_after = retry_after
        super().__init__(f"Rate limited. Retry after: {retry_after}s", status_code=429)


def _is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


def _parse_retry_after(response: httpx.Response) -> Optional[int]:
    header = response.headers.get("Retry-After")
    if header and header.isdigit():
        return int(header)
    return None


def with_retry(max_attempts: int = 3, max_wait: int = 30):
    """
    Decorateur pour relancer sur TransportError avec backoff exponentiel.

    Utilise wait_random_exponential pour ajouter du jitter et eviter
    le "thundering herd" quand plusieurs clients relancent en meme temps.

    Args:
        max_attempts: Nombre maximum de tentatives (defaut: 3)
        max_wait: Delai maximum entre les tentatives en secondes (defaut: 30)

    Returns:
        Decorateur a appliquer sur une fonction async
    """
    return retry(
        retry=retry_if_exception_type(TransportError),
        wait=wait_random_exponential(multiplier=1, max=max_wait),
        stop=stop_after_attempt(max(1, max_attempts)),
        reraise=True,
    )


async def send_once(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    **kwargs,
) -> httpx.Response:
    """
    Execute une requete HTTP sans retry.

    Les erreurs reseau et timeouts deviennent des TransportError. La reponse
    est retournee telle quelle quel que soit son code : la classification
    des refus appartient a l'appelant.

    Args:
        client: Client httpx async a utiliser
        method: Methode HTTP
        url: URL (relative a base_url du client)
        **kwargs: Arguments supplementaires passes a client.request()

    Returns:
        httpx.Response

    Raises:
        TransportError: Erreur reseau ou timeout
    """
    try:
        return await client.request(method, url, **kwargs)
    except httpx.TimeoutException as e:
        raise TransportError(f"Timeout sur {method} {url}") from e
    except httpx.TransportError as e:
        raise TransportError(f"Erreur reseau sur {method} {url}: {e}") from e


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    max_attempts: int = 3,
    max_wait: int = 30,
    **kwargs,
) -> httpx.Response:
    """
    Execute une requete HTTP idempotente avec retry automatique.

    Relance sur erreur reseau, timeout, 429 et 5xx. Les autres erreurs HTTP
    (4xx) sont propagees immediatement sans retry, sous forme de
    TransportError portant le code HTTP.

    Args:
        client: Client httpx async a utiliser
        method: Methode HTTP (GET en pratique)
        url: URL a appeler
        max_attempts: Nombre maximum de tentatives (defaut: 3)
        max_wait: Delai maximum entre deux tentatives
        **kwargs: Arguments supplementaires passes a client.request()

    Returns:
        httpx.Response en cas de succes (2xx)

    Raises:
        RateLimitError: Si 429 apres epuisement des tentatives
        TransportError: Pour les autres echecs
    """

    @with_retry(max_attempts=max_attempts, max_wait=max_wait)
    async def _do_request() -> httpx.Response:
        response = await send_once(client, method, url, **kwargs)
        if response.status_code == 429:
            raise RateLimitError(_parse_retry_after(response))
        if _is_retryable_status(response.status_code):
            logger.debug(f"{method} {url} -> {response.status_code}, nouvelle tentative")
            raise TransportError(
                f"Erreur serveur {response.status_code} sur {method} {url}",
                status_code=response.status_code,
            )
        return response

    response = await _do_request()
    if response.is_error:
        raise TransportError(
            f"Erreur HTTP {response.status_code} sur {method} {url}",
            status_code=response.status_code,
        )
    return response
