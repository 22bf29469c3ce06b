"""
Adaptateur pour les operations sur le systeme de fichiers.

Implementation concrete de IFileSystem utilisee par le materialiseur.
Les ecritures passent par un fichier temporaire et os.replace pour qu'un
fichier de metadonnees ne soit jamais visible a moitie ecrit.
"""

import os
import shutil
import uuid
from pathlib import Path
from typing import Optional

from src.core.ports.file_system import IFileSystem


class FileSystemAdapter(IFileSystem):
    """
    Implementation de IFileSystem pour le systeme de fichiers reel.
    """

    def exists(self, path: Path) -> bool:
        """Verifie si un chemin existe."""
        return path.exists()

    def read_text(self, path: Path) -> Optional[str]:
        """Lit un fichier texte UTF-8, None si absent ou illisible."""
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None

    def write_text_atomic(self, path: Path, content: str) -> None:
        """
        Ecrit un fichier de maniere atomique.

        Le contenu est ecrit dans un fichier temporaire cache du meme
        dossier, puis os.replace le substitue a la cible.

        Raises:
            OSError: Si l'ecriture ou le remplacement echoue
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        temp = path.with_name(f".tmp_{uuid.uuid4().hex}_{path.name}")
        try:
            with open(temp, "w", encoding="utf-8", newline="\n") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp, path)
        except OSError:
            # Nettoyer le fichier temporaire en cas d'erreur
            if temp.exists():
                temp.unlink()
            raise

    def make_dir(self, path: Path) -> None:
        """Cree un dossier et ses parents."""
        path.mkdir(parents=True, exist_ok=True)

    def rename(self, source: Path, destination: Path) -> None:
        """
        Renomme un fichier ou un dossier.

        Raises:
            FileExistsError: Si la destination existe deja
            OSError: Pour toute autre erreur
        """
        if destination.exists():
            raise FileExistsError(f"La destination existe deja: {destination}")
        destination.parent.mkdir(parents=True, exist_ok=True)
        os.rename(source, destination)

    def remove_tree(self, path: Path) -> None:
        """Supprime un dossier et son contenu."""
        shutil.rmtree(path)

    def list_dirs(self, path: Path) -> list[Path]:
        """Liste les sous-dossiers directs, tries par nom."""
        if not path.is_dir():
            return []
        return sorted((p for p in path.iterdir() if p.is_dir()), key=lambda p: p.name)

    def copy(self, source: Path, destination: Path) -> bool:
        """
        Copie un fichier de la source vers la destination.

        Cree les repertoires parents si necessaire.
        """
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(str(source), str(destination))
            return True
        except (OSError, shutil.Error):
            return False

    def delete(self, path: Path) -> bool:
        """Supprime un fichier."""
        try:
            path.unlink()
            return True
        except OSError:
            return False
