"""
Tests unitaires pour le tri de la bibliotheque par nombre de lectures.
"""

import random
from dataclasses import replace
from pathlib import Path

import pytest

from src.adapters.file_system import FileSystemAdapter
from src.config import SyncOptions
from src.core.entities.catalog import LocalItem, LocalUser, PlaceholderEntry
from src.core.exceptions import TransportError
from src.core.value_objects.media_kind import MediaKind
from src.core.value_objects.sort_order import SortOrder
from src.services.materializer import Materializer
from src.services.placeholder_video import PLACEHOLDER_FILENAME
from src.services.sorting import (
    IGNORE_MARKER,
    RANDOM_BASE,
    RANDOM_STEP,
    LibrarySorter,
    assign_play_counts,
)
from tests.fixtures.fakes import FakeLocalCatalog, make_movie, make_show

ALICE = LocalUser(user_id="a1b2c3d4e5f6", name="alice")
BOB = LocalUser(user_id="ffff0000", name="bob")


def index_entry(local: FakeLocalCatalog, entry: PlaceholderEntry) -> LocalItem:
    """Declare le dossier comme indexe par le catalogue local."""
    # Un film est indexe par son fichier video, une serie par son dossier
    path = entry.path / PLACEHOLDER_FILENAME if entry.media_kind is MediaKind.MOVIE else entry.path
    item = LocalItem(
        local_id=f"item-{entry.primary_id}",
        display_name=entry.path.name,
        filesystem_path=str(path),
        media_kind=entry.media_kind,
    )
    local.items[entry.media_kind].append(item)
    return item


@pytest.fixture
def sorter(
    local: FakeLocalCatalog, materializer: Materializer, sync_options: SyncOptions
) -> LibrarySorter:
    return LibrarySorter(
        local, materializer, FileSystemAdapter(), sync_options, rng=random.Random(7)
    )


class TestAssignPlayCounts:
    """Calcul des nombres de lectures."""

    def test_random_is_a_permutation_of_steps(self, materializer: Materializer):
        entries = [materializer.create(make_movie(i, f"Movie {i}")) for i in range(1, 6)]

        counts = assign_play_counts(entries, SortOrder.RANDOM, random.Random(1))

        expected = [RANDOM_BASE + i * RANDOM_STEP for i in range(5)]
        assert sorted(counts.values()) == expected
        assert set(counts) == {entry.path for entry in entries}

    def test_same_seed_gives_same_order(self, materializer: Materializer):
        entries = [materializer.create(make_movie(i, f"Movie {i}")) for i in range(1, 8)]

        first = assign_play_counts(entries, SortOrder.RANDOM, random.Random(3))
        second = assign_play_counts(entries, SortOrder.RANDOM, random.Random(3))

        assert first == second

    def test_none_resets_to_zero(self, materializer: Materializer):
        entries = [materializer.create(make_movie(i, f"Movie {i}")) for i in range(1, 4)]

        counts = assign_play_counts(entries, SortOrder.NONE, random.Random(1))

        assert set(counts.values()) == {0}

    def test_empty_library(self):
        assert assign_play_counts([], SortOrder.RANDOM, random.Random(1)) == {}


class TestLibrarySorter:
    """Application des nombres de lectures au catalogue local."""

    @pytest.mark.asyncio
    async def test_sets_play_count_for_each_user(
        self, sorter, local: FakeLocalCatalog, materializer: Materializer
    ):
        local.users = [ALICE, BOB]
        movie = index_entry(local, materializer.create(make_movie(1, "Movie One")))
        show = index_entry(local, materializer.create(make_show(2, "Show Two")))

        result = await sorter.sort(SortOrder.RANDOM)

        assert result.success
        assert result.order == "random"
        assert result.users == 2
        assert {item for item, _ in result.sorted_items} == {movie, show}
        counts = sorted(count for _, count in result.sorted_items)
        assert counts == [RANDOM_BASE, RANDOM_BASE + RANDOM_STEP]
        assert len(local.play_counts) == 4
        assert {user for user, _, _ in local.play_counts} == {ALICE, BOB}

    @pytest.mark.asyncio
    async def test_items_are_applied_in_play_count_order(
        self, sorter, local: FakeLocalCatalog, materializer: Materializer
    ):
        local.users = [ALICE]
        for i in range(1, 6):
            index_entry(local, materializer.create(make_movie(i, f"Movie {i}")))

        result = await sorter.sort(SortOrder.RANDOM)

        applied = [count for _, _, count in local.play_counts]
        assert applied == sorted(applied)
        assert len(result.sorted_items) == 5

    @pytest.mark.asyncio
    async def test_none_order_resets_counts(
        self, sorter, local: FakeLocalCatalog, materializer: Materializer
    ):
        local.users = [ALICE]
        index_entry(local, materializer.create(make_movie(1, "Movie One")))

        result = await sorter.sort(SortOrder.NONE)

        assert result.order == "none"
        assert [count for _, _, count in local.play_counts] == [0]

    @pytest.mark.asyncio
    async def test_default_order_comes_from_options(
        self, local: FakeLocalCatalog, materializer: Materializer, sync_options: SyncOptions
    ):
        local.users = [ALICE]
        index_entry(local, materializer.create(make_movie(1, "Movie One")))
        options = replace(sync_options, sort_order=SortOrder.NONE)
        sorter = LibrarySorter(local, materializer, FileSystemAdapter(), options)

        result = await sorter.sort()

        assert result.order == "none"
        assert local.play_counts[0][2] == 0

    @pytest.mark.asyncio
    async def test_ignore_marker_skips_folder(
        self, sorter, local: FakeLocalCatalog, materializer: Materializer
    ):
        local.users = [ALICE]
        kept = index_entry(local, materializer.create(make_movie(1, "Movie One")))
        ignored = materializer.create(make_movie(2, "Movie Two"))
        index_entry(local, ignored)
        (ignored.path / IGNORE_MARKER).write_text("")

        result = await sorter.sort(SortOrder.RANDOM)

        assert result.skipped == [str(ignored.path)]
        assert [item for _, item, _ in local.play_counts] == [kept]

    @pytest.mark.asyncio
    async def test_unindexed_folder_is_failed(
        self, sorter, local: FakeLocalCatalog, materializer: Materializer
    ):
        local.users = [ALICE]
        entry = materializer.create(make_movie(1, "Movie One"))

        result = await sorter.sort(SortOrder.RANDOM)

        assert result.success
        assert result.failed == [str(entry.path)]
        assert local.play_counts == []

    @pytest.mark.asyncio
    async def test_items_outside_library_are_not_matched(
        self, sorter, local: FakeLocalCatalog, materializer: Materializer, tmp_path: Path
    ):
        local.users = [ALICE]
        entry = materializer.create(make_movie(1, "Movie One"))
        local.items[MediaKind.MOVIE].append(
            LocalItem(
                local_id="real-1",
                display_name="Movie One",
                filesystem_path=str(tmp_path / "movies" / entry.path.name / "movie.mkv"),
                media_kind=MediaKind.MOVIE,
            )
        )

        result = await sorter.sort(SortOrder.RANDOM)

        assert result.failed == [str(entry.path)]

    @pytest.mark.asyncio
    async def test_rejected_for_every_user_is_failed(
        self, sorter, local: FakeLocalCatalog, materializer: Materializer
    ):
        local.users = [ALICE, BOB]
        local.set_play_count_result = False
        entry = materializer.create(make_movie(1, "Movie One"))
        index_entry(local, entry)

        result = await sorter.sort(SortOrder.RANDOM)

        assert result.sorted_items == []
        assert result.failed == [str(entry.path)]
        assert len(local.play_counts) == 2

    @pytest.mark.asyncio
    async def test_no_user_fails(self, sorter, local: FakeLocalCatalog, materializer: Materializer):
        index_entry(local, materializer.create(make_movie(1, "Movie One")))

        result = await sorter.sort(SortOrder.RANDOM)

        assert not result.success
        assert result.message == "Aucun utilisateur local"
        assert local.play_counts == []

    @pytest.mark.asyncio
    async def test_unreachable_catalog_fails(self, sorter, local: FakeLocalCatalog):
        local.users_error = TransportError("connexion refusee")

        result = await sorter.sort(SortOrder.RANDOM)

        assert not result.success
        assert "connexion refusee" in result.message

    @pytest.mark.asyncio
    async def test_empty_library_succeeds(self, sorter, local: FakeLocalCatalog):
        local.users = [ALICE]

        result = await sorter.sort(SortOrder.RANDOM)

        assert result.success
        assert result.sorted_items == []
        assert str(result) == "0 tries (random, 1 utilisateurs), 0 en echec, 0 ignores"
