"""
Generation de la video de substitution des films.

Jellyfin n'indexe un film que si son dossier contient un fichier video.
Une courte video noire est produite une seule fois par ffmpeg dans le
repertoire de cache, puis copiee dans chaque dossier de film. Sans
ffmpeg, le materialiseur ecrit un fichier marqueur vide a la place.
"""

import asyncio
import shutil
from pathlib import Path
from typing import Optional

from loguru import logger

PLACEHOLDER_FILENAME = "placeholder.mp4"


class PlaceholderVideoGenerator:
    """
    Produit et met en cache la video de substitution.

    Exemple d'utilisation:
        generator = PlaceholderVideoGenerator(cache_dir, duration_seconds=10)
        await generator.ensure()
        source = generator.video_path()
    """

    def __init__(
        self,
        cache_dir: Path,
        duration_seconds: int = 10,
        ffmpeg_path: Optional[str] = None,
    ) -> None:
        """
        Args:
            cache_dir: Repertoire ou conserver la video generee
            duration_seconds: Duree de la video
            ffmpeg_path: Executable ffmpeg (detecte dans le PATH si absent)
        """
        self._cache_dir = Path(cache_dir)
        self._duration = max(1, duration_seconds)
        self._ffmpeg = ffmpeg_path or shutil.which("ffmpeg")

    @property
    def target(self) -> Path:
        """Chemin de la video en cache (depend de la duree)."""
        return self._cache_dir / f"placeholder_{self._duration}s.mp4"

    def is_available(self) -> bool:
        """Verifie si ffmpeg est installe."""
        return self._ffmpeg is not None

    def video_path(self) -> Optional[Path]:
        """Retourne la video en cache si elle existe et n'est pas vide."""
        target = self.target
        if target.is_file() and target.stat().st_size > 0:
            return target
        return None

    def _build_command(self, output: Path) -> list[str]:
        return [
            self._ffmpeg,
            "-y",
            "-f", "lavfi",
            "-i", f"color=c=black:s=640x360:d={self._duration}",
            "-c:v", "libx264",
            "-pix_fmt", "yuv420p",
            "-movflags", "+faststart",
            str(output),
        ]

    async def ensure(self) -> Optional[Path]:
        """
        Genere la video si elle n'est pas encore en cache.

        Returns:
            Chemin de la video, ou None si ffmpeg est absent ou echoue
        """
        existing = self.video_path()
        if existing is not None:
            return existing

        if not self.is_available():
            logger.warning("ffmpeg non installe, les films recevront un fichier marqueur vide")
            return None

        self._cache_dir.mkdir(parents=True, exist_ok=True)
        partial = self.target.with_name(f".{self.target.name}.part.mp4")
        try:
            process = await asyncio.create_subprocess_exec(
                *self._build_command(partial),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=120)
        except (OSError, asyncio.TimeoutError) as e:
            logger.warning(f"ffmpeg n'a pas pu generer la video: {e}")
            partial.unlink(missing_ok=True)
            return None

        if process.returncode != 0:
            logger.warning(f"ffmpeg erreur: {stderr.decode(errors='replace')[-500:]}")
            partial.unlink(missing_ok=True)
            return None

        partial.replace(self.target)
        logger.info(f"Video de substitution generee: {self.target}")
        return self.target
