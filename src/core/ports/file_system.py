"""
Interface port pour le système de fichiers.

Contrat des opérations disque dont a besoin le matérialiseur de dossiers
de substitution. L'implémentation concrète se trouve dans
adapters/file_system.py.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional


class IFileSystem(ABC):
    """
    Interface pour les opérations sur les fichiers et dossiers.

    Les opérations structurelles (write_text_atomic, make_dir, rename,
    remove_tree) lèvent OSError en cas d'échec ; copy et delete retournent
    un booléen.
    """

    @abstractmethod
    def exists(self, path: Path) -> bool:
        """Vérifie si un chemin existe."""
        ...

    @abstractmethod
    def read_text(self, path: Path) -> Optional[str]:
        """
        Lit un fichier texte UTF-8.

        Retourne :
            Le contenu, ou None si le fichier est absent ou illisible
        """
        ...

    @abstractmethod
    def write_text_atomic(self, path: Path, content: str) -> None:
        """
        Écrit un fichier via un fichier temporaire puis os.replace.

        Un lecteur concurrent voit soit l'ancien contenu, soit le nouveau.

        Args :
            path : Fichier cible
            content : Contenu UTF-8
        """
        ...

    @abstractmethod
    def make_dir(self, path: Path) -> None:
        """Crée un dossier et ses parents."""
        ...

    @abstractmethod
    def rename(self, source: Path, destination: Path) -> None:
        """
        Renomme un fichier ou un dossier (atomique sur le même filesystem).

        Args :
            source : Chemin actuel
            destination : Nouveau chemin (ne doit pas exister)
        """
        ...

    @abstractmethod
    def remove_tree(self, path: Path) -> None:
        """Supprime un dossier et son contenu."""
        ...

    @abstractmethod
    def list_dirs(self, path: Path) -> list[Path]:
        """
        Liste les sous-dossiers directs d'un dossier, triés par nom.

        Retourne une liste vide si le dossier n'existe pas.
        """
        ...

    @abstractmethod
    def copy(self, source: Path, destination: Path) -> bool:
        """
        Copie un fichier, crée les répertoires parents si nécessaire.

        Retourne :
            True si réussi, False sinon
        """
        ...

    @abstractmethod
    def delete(self, path: Path) -> bool:
        """
        Supprime un fichier.

        Retourne :
            True si supprimé, False sinon
        """
        ...
