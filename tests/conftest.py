"""
Fixtures pytest partagees pour les tests SeerBridge.

Ce module contient les fixtures communes utilisees dans les tests:
- Faux catalogues distant et local (tests/fixtures/fakes.py)
- Materialiseur sur une racine temporaire
- Options de synchronisation de test
"""

from pathlib import Path

import pytest

from src.adapters.file_system import FileSystemAdapter
from src.config import SyncOptions
from src.services.identity import IdentityResolver
from src.services.materializer import Materializer
from tests.fixtures.fakes import NETFLIX, FakeLocalCatalog, FakeRemoteCatalog


@pytest.fixture
def library_dir(tmp_path: Path) -> Path:
    """Racine de substitution temporaire."""
    root = tmp_path / "bridge"
    root.mkdir()
    return root


@pytest.fixture
def sync_options(library_dir: Path) -> SyncOptions:
    """Options de synchronisation de test (un reseau, retention 30 jours)."""
    return SyncOptions(
        library_dir=library_dir,
        networks=(NETFLIX,),
        max_discover_pages=0,
        retention_days=30,
        lock_timeout_seconds=1.0,
        poll_seconds=0.01,
    )


@pytest.fixture
def materializer(library_dir: Path) -> Materializer:
    """Materialiseur sur le vrai systeme de fichiers (racine temporaire)."""
    return Materializer(FileSystemAdapter(), library_dir)


@pytest.fixture
def remote() -> FakeRemoteCatalog:
    return FakeRemoteCatalog()


@pytest.fixture
def local() -> FakeLocalCatalog:
    return FakeLocalCatalog()


@pytest.fixture
def identity() -> IdentityResolver:
    return IdentityResolver()
