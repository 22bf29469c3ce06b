"""
Utilitaires partages pour les commandes CLI de SeerBridge.

Ce module fournit :
- console : instance Rich Console partagee
- suppress_loguru : context manager pour desactiver/reactiver les logs loguru
- with_container : decorateur injectant un container initialise
- close_clients : fermeture des clients HTTP du container
"""

from contextlib import contextmanager
from functools import wraps

from loguru import logger as loguru_logger
from rich.console import Console

from src.container import Container

# Console globale pour tous les affichages
console = Console()


@contextmanager
def suppress_loguru():
    """
    Context manager pour desactiver les logs loguru pendant l'affichage Rich.

    Usage:
        with suppress_loguru():
            console.print(...)
    """
    loguru_logger.disable("src")
    try:
        yield
    finally:
        loguru_logger.enable("src")


async def close_clients(container: Container) -> None:
    """Ferme les clients HTTP et le cache ouverts par le container."""
    await container.seerr_client().close()
    await container.jellyfin_client().close()
    container.api_cache().close()


def with_container():
    """
    Decorateur qui injecte un container en premier argument.

    Les clients HTTP sont fermes a la sortie de la commande.

    Usage:
        @with_container()
        async def my_command(container, ...):
            config = container.config()
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            container = Container()
            try:
                return await func(container, *args, **kwargs)
            finally:
                await close_clients(container)
        return wrapper
    return decorator

