"""
Tests unitaires pour le moteur de reconciliation distant -> dossiers.

Le catalogue distant et le catalogue local sont des faux en memoire ;
le materialiseur ecrit sous tmp_path.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from src.config import SyncOptions
from src.core.entities.catalog import LocalItem
from src.core.exceptions import MaterializationError, TransportError
from src.core.value_objects.media_kind import MediaKind
from src.services.identity import IdentityResolver
from src.services.materializer import Materializer
from src.services.reconciliation import ReconciliationEngine, is_expired
from tests.fixtures.fakes import (
    HULU,
    NETFLIX,
    FakeLocalCatalog,
    FakeRemoteCatalog,
    make_movie,
    make_show,
)

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine(
    remote: FakeRemoteCatalog,
    local: FakeLocalCatalog,
    materializer: Materializer,
    identity: IdentityResolver,
    sync_options: SyncOptions,
) -> ReconciliationEngine:
    return ReconciliationEngine(remote, local, materializer, identity, sync_options)


def publish(remote: FakeRemoteCatalog, kind: MediaKind, network_id: int, *pages) -> None:
    remote.pages[(kind, network_id)] = [list(page) for page in pages]


class TestIsExpired:
    """Tests pour is_expired()."""

    def test_retention_boundary(self, materializer: Materializer):
        entry = materializer.create(make_movie(1), NOW)

        assert not is_expired(entry, NOW + timedelta(days=29), 30)
        assert not is_expired(entry, NOW + timedelta(days=30), 30)
        assert is_expired(entry, NOW + timedelta(days=31), 30)

    def test_unknown_date_is_expired(self, materializer: Materializer):
        entry = replace(materializer.create(make_movie(1), NOW), created_date=None)
        assert is_expired(entry, NOW, 30)

    def test_naive_date_treated_as_utc(self, materializer: Materializer):
        entry = replace(materializer.create(make_movie(1), NOW), created_date=datetime(2024, 6, 1))
        assert not is_expired(entry, NOW, 1)


class TestFetchRemote:
    """Tests pour fetch_remote()."""

    @pytest.mark.asyncio
    async def test_tags_and_dedup_first_network_wins(
        self, remote: FakeRemoteCatalog, local, materializer, identity, sync_options
    ):
        options = replace(sync_options, networks=(NETFLIX, HULU))
        engine = ReconciliationEngine(remote, local, materializer, identity, options)
        publish(remote, MediaKind.MOVIE, NETFLIX.id, [make_movie(1), make_movie(2)])
        publish(remote, MediaKind.MOVIE, HULU.id, [make_movie(2), make_movie(3)])

        items = {item.primary_id: item for item in await engine.fetch_remote(MediaKind.MOVIE)}

        assert sorted(items) == [1, 2, 3]
        assert items[2].network_tag == "Netflix"
        assert items[2].network_id == NETFLIX.id
        assert items[3].network_tag == "Hulu"

    @pytest.mark.asyncio
    async def test_transport_error_propagates(
        self, engine: ReconciliationEngine, remote: FakeRemoteCatalog
    ):
        remote.discover_error = TransportError("timeout")
        with pytest.raises(TransportError):
            await engine.fetch_remote(MediaKind.MOVIE)


class TestReconcile:
    """Tests pour reconcile()."""

    @pytest.mark.asyncio
    async def test_creates_missing_entries(
        self, engine: ReconciliationEngine, remote: FakeRemoteCatalog, materializer: Materializer
    ):
        publish(remote, MediaKind.MOVIE, NETFLIX.id, [make_movie(1, "A"), make_movie(2, "B")])

        result = await engine.reconcile(MediaKind.MOVIE, NOW)

        assert {i.primary_id for i in result.added} == {1, 2}
        assert result.processed == result.added
        assert set(materializer.snapshot()) == {(MediaKind.MOVIE, 1), (MediaKind.MOVIE, 2)}

    @pytest.mark.asyncio
    async def test_second_run_is_idempotent(
        self, engine: ReconciliationEngine, remote: FakeRemoteCatalog, library_dir: Path
    ):
        publish(remote, MediaKind.MOVIE, NETFLIX.id, [make_movie(1, "A"), make_movie(2, "B")])
        await engine.reconcile(MediaKind.MOVIE, NOW)
        before = sorted(p.name for p in library_dir.iterdir())

        result = await engine.reconcile(MediaKind.MOVIE, NOW + timedelta(hours=1))

        assert not result.has_changes
        assert len(result.processed) == 2
        assert sorted(p.name for p in library_dir.iterdir()) == before

    @pytest.mark.asyncio
    async def test_control_character_in_title_is_idempotent(
        self, engine: ReconciliationEngine, remote: FakeRemoteCatalog, materializer: Materializer
    ):
        publish(remote, MediaKind.MOVIE, NETFLIX.id, [make_movie(1, "Bad\u0001Title")])
        first = await engine.reconcile(MediaKind.MOVIE, NOW)

        second = await engine.reconcile(MediaKind.MOVIE, NOW + timedelta(hours=1))

        assert len(first.added) == 1
        assert len(second.updated) == 0
        assert materializer.snapshot()[(MediaKind.MOVIE, 1)].created_date == NOW

    @pytest.mark.asyncio
    async def test_only_requested_kind(
        self, engine: ReconciliationEngine, remote: FakeRemoteCatalog, materializer: Materializer
    ):
        publish(remote, MediaKind.MOVIE, NETFLIX.id, [make_movie(1)])
        materializer.create(make_show(9, "Dark"), NOW - timedelta(days=90))

        result = await engine.reconcile(MediaKind.MOVIE, NOW)

        assert not result.deleted
        assert (MediaKind.SHOW, 9) in materializer.snapshot()

    @pytest.mark.asyncio
    async def test_update_on_network_change(
        self, remote: FakeRemoteCatalog, local, materializer, identity, sync_options
    ):
        materializer.create(make_movie(1, "A", network_tag="Hulu", network_id=HULU.id), NOW)
        engine = ReconciliationEngine(remote, local, materializer, identity, sync_options)
        publish(remote, MediaKind.MOVIE, NETFLIX.id, [make_movie(1, "A")])

        result = await engine.reconcile(MediaKind.MOVIE, NOW)

        assert [i.primary_id for i in result.updated] == [1]
        assert materializer.snapshot()[(MediaKind.MOVIE, 1)].item.network_tag == "Netflix"


class TestRetention:
    """Suppression des dossiers disparus du distant."""

    @pytest.mark.asyncio
    async def test_recent_entry_retained(
        self, engine: ReconciliationEngine, materializer: Materializer
    ):
        materializer.create(make_movie(1), NOW - timedelta(days=29))

        result = await engine.reconcile(MediaKind.MOVIE, NOW)

        assert not result.deleted
        assert not result.processed
        assert (MediaKind.MOVIE, 1) in materializer.snapshot()

    @pytest.mark.asyncio
    async def test_expired_entry_deleted(
        self, engine: ReconciliationEngine, materializer: Materializer
    ):
        materializer.create(make_movie(1), NOW - timedelta(days=31))

        result = await engine.reconcile(MediaKind.MOVIE, NOW)

        assert [i.primary_id for i in result.deleted] == [1]
        assert result.deleted <= result.processed
        assert materializer.snapshot() == {}

    @pytest.mark.asyncio
    async def test_entry_without_metadata_deleted(
        self, engine: ReconciliationEngine, materializer: Materializer, library_dir: Path
    ):
        (library_dir / "Foo (2020) [tmdbid-5] [imdbid]").mkdir()

        result = await engine.reconcile(MediaKind.MOVIE, NOW)

        assert [i.primary_id for i in result.deleted] == [5]

    @pytest.mark.asyncio
    async def test_still_published_never_deleted(
        self, engine: ReconciliationEngine, remote: FakeRemoteCatalog, materializer: Materializer
    ):
        materializer.create(make_movie(1), NOW - timedelta(days=365))
        publish(remote, MediaKind.MOVIE, NETFLIX.id, [make_movie(1)])

        result = await engine.reconcile(MediaKind.MOVIE, NOW)

        assert not result.deleted
        assert materializer.snapshot()[(MediaKind.MOVIE, 1)].created_date == NOW - timedelta(days=365)


class TestIgnored:
    """Titres deja presents dans la bibliotheque principale."""

    @pytest.mark.asyncio
    async def test_existing_library_item_ignored(
        self, engine: ReconciliationEngine, remote: FakeRemoteCatalog,
        local: FakeLocalCatalog, materializer: Materializer,
    ):
        publish(remote, MediaKind.MOVIE, NETFLIX.id, [make_movie(1), make_movie(2)])
        local.items[MediaKind.MOVIE].append(
            LocalItem("x", "A", "/media/movies/A", MediaKind.MOVIE, {"Tmdb": "1"})
        )

        result = await engine.reconcile(MediaKind.MOVIE, NOW)

        assert [i.primary_id for i in result.ignored] == [1]
        assert [i.primary_id for i in result.added] == [2]
        assert set(materializer.snapshot()) == {(MediaKind.MOVIE, 2)}

    @pytest.mark.asyncio
    async def test_placeholders_are_not_main_library(
        self, engine: ReconciliationEngine, remote: FakeRemoteCatalog,
        local: FakeLocalCatalog, library_dir: Path,
    ):
        publish(remote, MediaKind.MOVIE, NETFLIX.id, [make_movie(1)])
        local.items[MediaKind.MOVIE].append(
            LocalItem("x", "A", str(library_dir / "A [tmdbid-1] [imdbid]"), MediaKind.MOVIE, {"Tmdb": "1"})
        )

        result = await engine.reconcile(MediaKind.MOVIE, NOW)

        assert not result.ignored
        assert [i.primary_id for i in result.added] == [1]


class TestPartialFailure:
    """Un echec disque n'interrompt pas la passe."""

    @pytest.mark.asyncio
    async def test_failed_item_processed_not_added(
        self, remote: FakeRemoteCatalog, local, materializer: Materializer, identity, sync_options
    ):
        original_create = materializer.create

        def flaky_create(item, now=None):
            if item.primary_id == 2:
                raise MaterializationError(Path("/x"), "disque plein")
            return original_create(item, now)

        materializer.create = MagicMock(side_effect=flaky_create)
        engine = ReconciliationEngine(remote, local, materializer, identity, sync_options)
        publish(remote, MediaKind.MOVIE, NETFLIX.id, [make_movie(1), make_movie(2), make_movie(3)])

        result = await engine.reconcile(MediaKind.MOVIE, NOW)

        assert {i.primary_id for i in result.processed} == {1, 2, 3}
        assert {i.primary_id for i in result.added} == {1, 3}


class TestReconcileAllAndRemoveAll:
    """Tests pour reconcile_all() et remove_all()."""

    @pytest.mark.asyncio
    async def test_reconcile_all(self, engine: ReconciliationEngine, remote: FakeRemoteCatalog):
        publish(remote, MediaKind.MOVIE, NETFLIX.id, [make_movie(1)])
        publish(remote, MediaKind.SHOW, NETFLIX.id, [make_show(1)])

        movies, shows = await engine.reconcile_all(NOW)

        assert [i.identity for i in movies.added] == [(MediaKind.MOVIE, 1)]
        assert [i.identity for i in shows.added] == [(MediaKind.SHOW, 1)]
        assert len(movies.combine(shows).added) == 2

    def test_remove_all(self, engine: ReconciliationEngine, materializer: Materializer):
        materializer.create(make_movie(1), NOW)
        materializer.create(make_show(2), NOW)

        result = engine.remove_all(MediaKind.SHOW)

        assert [i.primary_id for i in result.deleted] == [2]
        assert set(materializer.snapshot()) == {(MediaKind.MOVIE, 1)}
        assert len(engine.remove_all().deleted) == 1

    @pytest.mark.asyncio
    async def test_show_failure_keeps_movie_result(
        self, engine: ReconciliationEngine, remote: FakeRemoteCatalog, materializer: Materializer
    ):
        materializer.create(make_movie(1), NOW - timedelta(days=60))
        publish(remote, MediaKind.MOVIE, NETFLIX.id, [make_movie(2)])
        remote.discover_errors[MediaKind.SHOW] = TransportError("HTTP 502", status_code=502)

        movies, shows = await engine.reconcile_all(NOW)

        assert movies.error is None
        assert [i.primary_id for i in movies.added] == [2]
        assert [i.primary_id for i in movies.deleted] == [1]
        assert shows.error == "HTTP 502"
        assert not shows.processed
        assert movies.combine(shows).error == "HTTP 502"
