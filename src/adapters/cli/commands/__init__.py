"""Sous-package CLI commands - re-exporte les commandes publiques."""

from src.adapters.cli.commands.maintenance_commands import (
    cleanup,
    networks,
    status,
)
from src.adapters.cli.commands.sync_commands import (
    daemon,
    sort,
    sync,
    sync_favorites,
    sync_from_remote,
)

__all__ = [
    # synchronisation
    "sync",
    "sync_from_remote",
    "sync_favorites",
    "sort",
    "daemon",
    # maintenance
    "status",
    "networks",
    "cleanup",
]
