"""
Tests unitaires pour le materialiseur des dossiers de substitution.

Les tests utilisent le vrai systeme de fichiers sous tmp_path ; les
pannes disque sont simulees en remplacant une methode de l'adaptateur.
"""

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from src.adapters.file_system import FileSystemAdapter
from src.core.exceptions import MaterializationError
from src.core.value_objects.media_kind import MediaKind
from src.services.materializer import Materializer
from src.services.metadata import METADATA_FILENAME
from src.services.placeholder_video import PLACEHOLDER_FILENAME, PlaceholderVideoGenerator
from tests.fixtures.fakes import make_movie, make_show

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def visible(root: Path) -> list[str]:
    return sorted(p.name for p in root.iterdir() if not p.name.startswith("."))


class TestCreate:
    """Tests pour create()."""

    def test_movie_entry_layout(self, materializer: Materializer, library_dir: Path):
        item = make_movie(27205, "Inception", release_year="2010", secondary_id="tt1375666")

        entry = materializer.create(item, NOW)

        assert entry.path == library_dir / "Inception (2010) [tmdbid-27205] [imdbid-tt1375666]"
        assert (entry.path / METADATA_FILENAME).is_file()
        assert (entry.path / PLACEHOLDER_FILENAME).is_file()
        assert entry.created_date == NOW
        assert entry.item.created_date == NOW
        assert list(library_dir.iterdir()) == [entry.path]

    def test_show_has_no_media_file(self, materializer: Materializer):
        entry = materializer.create(make_show(1399, "Game of Thrones"), NOW)
        assert [p.name for p in entry.path.iterdir()] == [METADATA_FILENAME]

    def test_copies_cached_video(self, library_dir: Path, tmp_path: Path):
        video = tmp_path / "cache" / "placeholder_10s.mp4"
        video.parent.mkdir()
        video.write_bytes(b"mp4")
        generator = MagicMock(spec=PlaceholderVideoGenerator)
        generator.video_path.return_value = video
        materializer = Materializer(FileSystemAdapter(), library_dir, video_generator=generator)

        entry = materializer.create(make_movie(1, "Dune"), NOW)

        assert (entry.path / PLACEHOLDER_FILENAME).read_bytes() == b"mp4"

    def test_existing_folder_rejected(self, materializer: Materializer):
        item = make_movie(1, "Dune")
        materializer.create(item, NOW)

        with pytest.raises(MaterializationError):
            materializer.create(item, NOW)

    def test_failure_leaves_no_partial_entry(self, library_dir: Path):
        fs = FileSystemAdapter()
        fs.rename = MagicMock(side_effect=OSError("disque plein"))
        materializer = Materializer(fs, library_dir)

        with pytest.raises(MaterializationError):
            materializer.create(make_movie(1, "Dune"), NOW)

        assert list(library_dir.iterdir()) == []

    def test_network_sub_folders(self, library_dir: Path):
        materializer = Materializer(
            FileSystemAdapter(), library_dir, separate_network_folders=True, library_prefix="Stream - "
        )

        entry = materializer.create(make_movie(1, "Dune", network_tag="Netflix"), NOW)

        assert entry.path.parent == library_dir / "Stream - Netflix"
        assert set(materializer.snapshot()) == {(MediaKind.MOVIE, 1)}


class TestSnapshot:
    """Tests pour snapshot() et exists()."""

    def test_reads_back_entries(self, materializer: Materializer):
        movie = make_movie(1, "Dune", secondary_id="tt1160419")
        show = make_show(2, "Dark", secondary_id="334824")
        materializer.create(movie, NOW)
        materializer.create(show, NOW)

        entries = materializer.snapshot()

        assert set(entries) == {movie.identity, show.identity}
        assert entries[movie.identity].created_date == NOW
        assert entries[movie.identity].item.secondary_id == "tt1160419"
        assert set(materializer.snapshot(MediaKind.SHOW)) == {show.identity}

    def test_ignores_hidden_and_foreign_folders(self, materializer: Materializer, library_dir: Path):
        (library_dir / ".staging-abc" / "Foo [tmdbid-9] [imdbid]").mkdir(parents=True)
        (library_dir / ".trash-abc").mkdir()
        (library_dir / "random folder").mkdir()

        assert materializer.snapshot() == {}

    def test_missing_metadata_has_unknown_date(self, materializer: Materializer, library_dir: Path):
        (library_dir / "Foo (2001) [tmdbid-9] [imdbid-tt9]").mkdir()

        entry = materializer.snapshot()[(MediaKind.MOVIE, 9)]

        assert entry.created_date is None
        assert entry.item.display_name == "Foo"
        assert entry.item.secondary_id == "tt9"

    def test_exists(self, materializer: Materializer):
        item = make_movie(1, "Dune")
        assert materializer.exists(item) is None

        materializer.create(item, NOW)

        assert materializer.exists(item).primary_id == 1

    def test_exists_after_rename_on_remote(self, materializer: Materializer):
        materializer.create(make_movie(1, "Dune"), NOW)
        assert materializer.exists(make_movie(1, "Dune: Part One")) is not None


class TestUpdate:
    """Tests pour update()."""

    def test_unchanged_returns_false(self, materializer: Materializer):
        item = make_movie(1, "Dune", network_tag="Netflix", network_id=8)
        materializer.create(item, NOW)
        entry = materializer.snapshot()[item.identity]

        assert materializer.update(entry, item) is False

    def test_metadata_change_keeps_created_date(self, materializer: Materializer):
        materializer.create(make_movie(1, "Dune", network_tag="Netflix"), NOW)
        entry = materializer.snapshot()[(MediaKind.MOVIE, 1)]

        assert materializer.update(entry, make_movie(1, "Dune", network_tag="Hulu")) is True

        refreshed = materializer.snapshot()[(MediaKind.MOVIE, 1)]
        assert refreshed.item.network_tag == "Hulu"
        assert refreshed.created_date == NOW

    def test_title_change_renames_folder(self, materializer: Materializer, library_dir: Path):
        materializer.create(make_movie(1, "Dune", release_year="2021"), NOW)
        entry = materializer.snapshot()[(MediaKind.MOVIE, 1)]

        assert materializer.update(entry, make_movie(1, "Dune Part One", release_year="2021")) is True

        assert visible(library_dir) == ["Dune Part One (2021) [tmdbid-1] [imdbid]"]

    def test_identity_mismatch_rejected(self, materializer: Materializer):
        entry = materializer.create(make_movie(1, "Dune"), NOW)
        with pytest.raises(MaterializationError):
            materializer.update(entry, make_movie(2, "Dune"))

    def test_write_failure_raises(self, library_dir: Path):
        fs = FileSystemAdapter()
        materializer = Materializer(fs, library_dir)
        entry = materializer.create(make_movie(1, "Dune", network_tag="Netflix"), NOW)
        fs.write_text_atomic = MagicMock(side_effect=OSError("lecture seule"))

        with pytest.raises(MaterializationError):
            materializer.update(entry, make_movie(1, "Dune", network_tag="Hulu"))

        assert materializer.snapshot()[(MediaKind.MOVIE, 1)].item.network_tag == "Netflix"


class TestDelete:
    """Tests pour delete() et purge_hidden()."""

    def test_delete_removes_folder(self, materializer: Materializer, library_dir: Path):
        entry = materializer.create(make_movie(1, "Dune"), NOW)

        materializer.delete(entry)

        assert list(library_dir.iterdir()) == []

    def test_delete_failure_raises(self, library_dir: Path):
        fs = FileSystemAdapter()
        materializer = Materializer(fs, library_dir)
        entry = materializer.create(make_movie(1, "Dune"), NOW)
        fs.rename = MagicMock(side_effect=OSError("occupe"))

        with pytest.raises(MaterializationError):
            materializer.delete(entry)

        assert entry.path.is_dir()

    def test_purge_hidden(self, materializer: Materializer, library_dir: Path):
        (library_dir / ".staging-abc").mkdir()
        (library_dir / ".trash-def" / "x").mkdir(parents=True)
        (library_dir / ".other").mkdir()

        assert materializer.purge_hidden() == 2
        assert sorted(p.name for p in library_dir.iterdir()) == [".other"]
