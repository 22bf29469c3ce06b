"""
Ports (interfaces abstraites) définissant les contrats pour les adaptateurs.

Les ports sont les frontières de l'architecture hexagonale. Ils définissent
ce dont le domaine a besoin du monde extérieur sans spécifier
comment ces besoins sont satisfaits.

Ports client API :
- IRemoteCatalog : Service de découverte/requêtes distant
- ILocalCatalog : Catalogue média local

Ports système de fichiers :
- IFileSystem : Opérations sur les dossiers de substitution
"""

from src.core.ports.api_clients import (
    DiscoverPage,
    IRemoteCatalog,
    Network,
    RemoteUser,
    RequestHandle,
    ServerStatus,
)
from src.core.ports.file_system import IFileSystem
from src.core.ports.local_catalog import ILocalCatalog

__all__ = [
    # Catalogue distant
    "IRemoteCatalog",
    "DiscoverPage",
    "RequestHandle",
    "RemoteUser",
    "Network",
    "ServerStatus",
    # Catalogue local
    "ILocalCatalog",
    # Système de fichiers
    "IFileSystem",
]
