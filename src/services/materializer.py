"""
Materialisation des titres distants sous forme de dossiers de substitution.

Chaque titre distant devient un dossier sous la racine de la bibliotheque :

    <racine>/[<prefixe><reseau>/]<Titre (Annee) [tmdbid-N] [imdbid-ttX]>/
        metadata.xml
        placeholder.mp4      (films uniquement)

Aucune entree n'est jamais visible a moitie construite :
- creation dans un dossier cache de preparation, puis renommage
- mise a jour du fichier de metadonnees par fichier temporaire + os.replace
- suppression par renommage en dossier cache avant effacement
"""

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from loguru import logger

from src.core.entities.catalog import PlaceholderEntry, RemoteItem
from src.core.exceptions import MaterializationError
from src.core.ports.file_system import IFileSystem
from src.core.value_objects.media_kind import MediaKind
from src.services.metadata import (
    METADATA_FILENAME,
    parse_metadata,
    render_metadata,
    with_created_date,
)
from src.services.naming import build_folder_name, parse_folder_name, sanitize_file_name
from src.services.placeholder_video import PLACEHOLDER_FILENAME, PlaceholderVideoGenerator

STAGING_PREFIX = ".staging-"
TRASH_PREFIX = ".trash-"


def _is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


class Materializer:
    """
    Gestionnaire des dossiers de substitution.

    Seul composant qui ecrit sous la racine de la bibliotheque. Toute
    erreur disque est convertie en MaterializationError pour que
    l'appelant puisse isoler l'echec a un seul titre.

    Exemple d'utilisation:
        materializer = Materializer(FileSystemAdapter(), Path("/bridge"))
        entry = materializer.create(item)
        materializer.update(entry, newer_item)
        materializer.delete(entry)
    """

    def __init__(
        self,
        file_system: IFileSystem,
        library_dir: Path,
        video_generator: Optional[PlaceholderVideoGenerator] = None,
        separate_network_folders: bool = False,
        library_prefix: str = "",
    ) -> None:
        """
        Args:
            file_system: Adaptateur systeme de fichiers
            library_dir: Racine des dossiers de substitution
            video_generator: Source de la video de substitution des films
            separate_network_folders: Range les titres dans un sous-dossier par reseau
            library_prefix: Prefixe des sous-dossiers reseau
        """
        self._fs = file_system
        self._root = Path(library_dir)
        self._video = video_generator
        self._separate_network_folders = separate_network_folders
        self._library_prefix = library_prefix

    @property
    def root(self) -> Path:
        return self._root

    def target_path(self, item: RemoteItem) -> Path:
        """Chemin attendu du dossier d'un titre."""
        parent = self._root
        if self._separate_network_folders and item.network_tag:
            network_folder = sanitize_file_name(f"{self._library_prefix}{item.network_tag}")
            if network_folder:
                parent = parent / network_folder
        return parent / build_folder_name(item)

    # ------------------------------------------------------------------
    # Lecture
    # ------------------------------------------------------------------

    def _read_entry(self, path: Path) -> Optional[PlaceholderEntry]:
        """
        Reconstruit une entree depuis un dossier.

        Le nom de dossier fait foi pour l'identite. Si le fichier de
        metadonnees est absent ou illisible, l'instantane est reconstruit
        depuis le nom et la date de creation reste inconnue.
        """
        parsed = parse_folder_name(path.name)
        if parsed is None:
            return None

        content = self._fs.read_text(path / METADATA_FILENAME)
        item = parse_metadata(content) if content else None
        if item is None or item.identity != parsed.identity:
            if content:
                logger.warning(f"Metadonnees incoherentes ou illisibles: {path}")
            item = RemoteItem(
                primary_id=parsed.primary_id,
                media_kind=parsed.media_kind,
                display_name=parsed.display_name,
                secondary_id=parsed.secondary_id,
                release_year=parsed.release_year,
            )

        return PlaceholderEntry(
            path=path,
            media_kind=parsed.media_kind,
            primary_id=parsed.primary_id,
            created_date=item.created_date,
            item=item,
        )

    def snapshot(
        self, media_kind: Optional[MediaKind] = None
    ) -> dict[tuple[MediaKind, int], PlaceholderEntry]:
        """
        Liste les dossiers de substitution presents sur le disque.

        Les dossiers caches (preparation, corbeille) sont ignores. Un
        dossier dont le nom ne suit pas le format est traite comme un
        sous-dossier reseau et parcouru sur un niveau.

        Args:
            media_kind: Restreint a un type de media (tous si None)

        Returns:
            Dictionnaire identite -> entree (le premier dossier trouve l'emporte)
        """
        entries: dict[tuple[MediaKind, int], PlaceholderEntry] = {}

        def collect(path: Path) -> None:
            entry = self._read_entry(path)
            if entry is None:
                return
            if media_kind is not None and entry.media_kind is not media_kind:
                return
            if entry.identity in entries:
                logger.warning(f"Dossier en double ignore: {path}")
                return
            entries[entry.identity] = entry

        for path in self._fs.list_dirs(self._root):
            if _is_hidden(path):
                continue
            if parse_folder_name(path.name) is not None:
                collect(path)
                continue
            for child in self._fs.list_dirs(path):
                if not _is_hidden(child):
                    collect(child)

        return entries

    def exists(self, item: RemoteItem) -> Optional[PlaceholderEntry]:
        """Retourne l'entree d'un titre s'il est deja materialise."""
        expected = self.target_path(item)
        if self._fs.exists(expected):
            entry = self._read_entry(expected)
            if entry is not None and entry.identity == item.identity:
                return entry
        return self.snapshot(item.media_kind).get(item.identity)

    # ------------------------------------------------------------------
    # Ecriture
    # ------------------------------------------------------------------

    def _write_media_file(self, folder: Path) -> None:
        """Copie la video de substitution, ou un marqueur vide a defaut."""
        target = folder / PLACEHOLDER_FILENAME
        source = self._video.video_path() if self._video is not None else None
        if source is not None and self._fs.copy(source, target):
            return
        self._fs.write_text_atomic(target, "")

    def create(self, item: RemoteItem, now: Optional[datetime] = None) -> PlaceholderEntry:
        """
        Materialise un nouveau titre.

        Args:
            item: Titre distant
            now: Date de creation a enregistrer (maintenant par defaut)

        Returns:
            L'entree creee

        Raises:
            MaterializationError: Si le dossier existe deja ou si l'ecriture echoue
        """
        created_date = (now or datetime.now(timezone.utc)).replace(microsecond=0)
        target = self.target_path(item)
        if self._fs.exists(target):
            raise MaterializationError(target, "le dossier existe deja")

        staging = self._root / f"{STAGING_PREFIX}{uuid.uuid4().hex}"
        try:
            self._fs.make_dir(staging)
            self._fs.write_text_atomic(
                staging / METADATA_FILENAME, render_metadata(item, created_date)
            )
            if item.media_kind is MediaKind.MOVIE:
                self._write_media_file(staging)
            self._fs.rename(staging, target)
        except OSError as e:
            self._discard(staging)
            raise MaterializationError(target, str(e)) from e

        logger.debug(f"Dossier cree: {target}")
        return PlaceholderEntry(
            path=target,
            media_kind=item.media_kind,
            primary_id=item.primary_id,
            created_date=created_date,
            item=with_created_date(item, created_date),
        )

    def update(self, entry: PlaceholderEntry, item: RemoteItem) -> bool:
        """
        Met a jour un titre deja materialise.

        La date de creation de l'entree est conservee. Le dossier est
        renomme si le nom attendu a change (titre, annee, reseau).

        Returns:
            True si quelque chose a change sur le disque

        Raises:
            MaterializationError: Si l'ecriture ou le renommage echoue
        """
        if entry.identity != item.identity:
            raise MaterializationError(entry.path, f"identite differente: {item}")

        created_date = entry.created_date or datetime.now(timezone.utc).replace(microsecond=0)
        content = render_metadata(item, created_date)
        target = self.target_path(item)
        changed = False

        try:
            path = entry.path
            if path != target:
                self._fs.rename(path, target)
                logger.debug(f"Dossier renomme: {path.name} -> {target}")
                path = target
                changed = True

            metadata_file = path / METADATA_FILENAME
            if self._fs.read_text(metadata_file) != content:
                self._fs.write_text_atomic(metadata_file, content)
                changed = True

            if item.media_kind is MediaKind.MOVIE and not self._fs.exists(
                path / PLACEHOLDER_FILENAME
            ):
                self._write_media_file(path)
                changed = True
        except OSError as e:
            raise MaterializationError(entry.path, str(e)) from e

        return changed

    def delete(self, entry: PlaceholderEntry) -> None:
        """
        Supprime un dossier de substitution.

        Raises:
            MaterializationError: Si le dossier ne peut pas etre supprime
        """
        trash = entry.path.with_name(f"{TRASH_PREFIX}{uuid.uuid4().hex}")
        try:
            self._fs.rename(entry.path, trash)
        except OSError as e:
            raise MaterializationError(entry.path, str(e)) from e

        try:
            self._fs.remove_tree(trash)
        except OSError as e:
            # L'entree n'est plus visible, seul un dossier cache subsiste
            logger.warning(f"Corbeille non videe {trash}: {e}")
        logger.debug(f"Dossier supprime: {entry.path}")

    def purge_hidden(self) -> int:
        """
        Supprime les dossiers de preparation et de corbeille orphelins.

        Returns:
            Nombre de dossiers supprimes
        """
        removed = 0
        for path in self._fs.list_dirs(self._root):
            if path.name.startswith((STAGING_PREFIX, TRASH_PREFIX)):
                if self._discard(path):
                    removed += 1
        return removed

    def _discard(self, path: Path) -> bool:
        try:
            if self._fs.exists(path):
                self._fs.remove_tree(path)
            return True
        except OSError as e:
            logger.warning(f"Impossible de supprimer {path}: {e}")
            return False

