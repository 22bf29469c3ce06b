"""
Tests unitaires pour la generation de la video de substitution.

ffmpeg n'est jamais lance : create_subprocess_exec est remplace.
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.services.placeholder_video import PlaceholderVideoGenerator


def fake_process(returncode: int, output: Path = None, stderr: bytes = b""):
    process = MagicMock()
    process.returncode = returncode

    async def communicate():
        if output is not None:
            output.write_bytes(b"mp4")
        return b"", stderr

    process.communicate = communicate
    return process


class TestPlaceholderVideoGenerator:
    """Tests pour PlaceholderVideoGenerator."""

    @pytest.mark.asyncio
    async def test_without_ffmpeg(self, tmp_path: Path):
        with patch("src.services.placeholder_video.shutil.which", return_value=None):
            generator = PlaceholderVideoGenerator(tmp_path)

        assert not generator.is_available()
        assert await generator.ensure() is None

    @pytest.mark.asyncio
    async def test_generates_once(self, tmp_path: Path):
        generator = PlaceholderVideoGenerator(tmp_path / "cache", duration_seconds=5, ffmpeg_path="ffmpeg")
        partial = tmp_path / "cache" / ".placeholder_5s.mp4.part.mp4"
        create = AsyncMock(return_value=fake_process(0, output=partial))

        with patch("src.services.placeholder_video.asyncio.create_subprocess_exec", create):
            first = await generator.ensure()
            second = await generator.ensure()

        assert first == second == tmp_path / "cache" / "placeholder_5s.mp4"
        assert first.read_bytes() == b"mp4"
        assert create.await_count == 1
        assert "color=c=black:s=640x360:d=5" in create.await_args.args

    @pytest.mark.asyncio
    async def test_ffmpeg_failure(self, tmp_path: Path):
        generator = PlaceholderVideoGenerator(tmp_path, ffmpeg_path="ffmpeg")
        create = AsyncMock(return_value=fake_process(1, stderr=b"Unknown encoder 'libx264'"))

        with patch("src.services.placeholder_video.asyncio.create_subprocess_exec", create):
            assert await generator.ensure() is None

        assert generator.video_path() is None

    @pytest.mark.asyncio
    async def test_ffmpeg_not_executable(self, tmp_path: Path):
        generator = PlaceholderVideoGenerator(tmp_path, ffmpeg_path="/nonexistent/ffmpeg")
        create = AsyncMock(side_effect=FileNotFoundError("ffmpeg"))

        with patch("src.services.placeholder_video.asyncio.create_subprocess_exec", create):
            assert await generator.ensure() is None

    def test_empty_cache_file_ignored(self, tmp_path: Path):
        generator = PlaceholderVideoGenerator(tmp_path, duration_seconds=10)
        (tmp_path / "placeholder_10s.mp4").write_bytes(b"")
        assert generator.video_path() is None
