"""
Nommage des dossiers de substitution.

Ce module fournit la fonction de nettoyage des noms de fichiers et la
construction / l'analyse des noms de dossiers.

Format : Titre (Année) [tmdbid-ID] [imdbid-ttXXXX]   (films)
         Titre (Année) [tmdbid-ID] [tvdbid-XXXX]     (séries)

L'année est omise si inconnue ; l'ID secondaire inconnu réduit le dernier
bloc à [imdbid] / [tvdbid], qui marque encore le type de media. Le bloc
[tmdbid-ID] n'est jamais omis.
"""

import re
import unicodedata
from dataclasses import dataclass
from typing import Optional

from pathvalidate import sanitize_filename

from src.core.entities.catalog import RemoteItem
from src.core.value_objects.media_kind import MediaKind, SecondaryIdKind

# Sosies typographiques non couverts par NFKC
_LOOKALIKES = str.maketrans({
    "\ua789": ":",
    "\ufe55": ":",
    "\u2215": "/",
    "\u2018": "'",
    "\u2019": "'",
    "\u02bc": "'",
})

# Entités d'apostrophe HTML laissées par certaines sources
_APOSTROPHE_ENTITIES = ("\\u0027", "&#39;", "&apos;")

# Espaces de largeur nulle (ZWSP, ZWNJ, ZWJ, BOM)
_ZERO_WIDTH = frozenset({"\u200b", "\u200c", "\u200d", "\ufeff"})

_MULTI_SPACE = re.compile(r"\s{2,}")
_MULTI_UNDERSCORE = re.compile(r"_+")

_FOLDER_PATTERN = re.compile(
    r"^(?P<name>.*?)"
    r"(?: \((?P<year>\d{4})\))?"
    r" \[tmdbid-(?P<id>\d+)\]"
    r" \[(?P<kind>imdbid|tvdbid)(?:-(?P<secondary>[^\]]+))?\]$"
)


def _is_invisible(char: str) -> bool:
    """True pour les caractères de contrôle, d'usage privé ou de largeur nulle."""
    return char in _ZERO_WIDTH or unicodedata.category(char) in ("Cc", "Co")


def sanitize_file_name(text: str) -> str:
    """
    Nettoie une chaîne pour l'utiliser comme nom de dossier.

    Le catalogue local peut tourner sur un système de fichiers aux règles
    Windows quel que soit l'hôte : le résultat doit être valide partout.

    Transformations appliquées :
    - Normalisation Unicode NFKC (pleine chasse -> ASCII)
    - Sosies typographiques -> ASCII, entités d'apostrophe -> '
    - Deux-points -> " -"
    - Suppression des caractères de contrôle, d'usage privé, de largeur nulle
    - Caractères interdits restants -> _ (pathvalidate, plateforme universelle)
    - Espaces et _ répétés réduits, espaces de début, espaces et points de fin retirés

    Args:
        text: Texte à nettoyer.

    Returns:
        Texte valide pour un nom de dossier.
    """
    if not text:
        return ""

    text = unicodedata.normalize("NFKC", text).translate(_LOOKALIKES)
    for entity in _APOSTROPHE_ENTITIES:
        text = text.replace(entity, "'")
    text = text.replace(":", " -")

    text = "".join(c for c in text if not _is_invisible(c))
    text = sanitize_filename(text, platform="universal", replacement_text="_")

    text = _MULTI_SPACE.sub(" ", text)
    text = _MULTI_UNDERSCORE.sub("_", text)
    return text.lstrip().rstrip(" \t\r\n.")


def build_folder_name(item: RemoteItem) -> str:
    """
    Construit le nom de dossier d'un titre distant.

    Args:
        item: Titre distant

    Returns:
        Nom de dossier nettoyé, injectif sur (type, ID TMDB)
    """
    parts = [sanitize_file_name(item.display_name) or "Untitled"]
    if item.release_year:
        parts.append(f"({item.release_year})")
    parts.append(f"[tmdbid-{item.primary_id}]")

    kind = item.secondary_id_kind.value
    secondary = sanitize_file_name(item.secondary_id or "").replace("]", "").replace("[", "")
    parts.append(f"[{kind}-{secondary}]" if secondary else f"[{kind}]")
    return " ".join(parts)


@dataclass(frozen=True)
class ParsedFolderName:
    """Informations extraites d'un nom de dossier de substitution."""

    display_name: str
    media_kind: MediaKind
    primary_id: int
    release_year: Optional[str] = None
    secondary_id: Optional[str] = None

    @property
    def identity(self) -> tuple[MediaKind, int]:
        return (self.media_kind, self.primary_id)


def parse_folder_name(folder_name: str) -> Optional[ParsedFolderName]:
    """
    Analyse un nom de dossier produit par build_folder_name().

    Returns:
        ParsedFolderName, ou None si le nom ne suit pas le format
    """
    match = _FOLDER_PATTERN.match(folder_name)
    if not match:
        return None
    return ParsedFolderName(
        display_name=match.group("name"),
        media_kind=SecondaryIdKind(match.group("kind")).media_kind,
        primary_id=int(match.group("id")),
        release_year=match.group("year"),
        secondary_id=match.group("secondary"),
    )


_TMDB_TAG = re.compile(r"\[tmdbid-(\d+)\]")


def extract_tmdb_id(path: str) -> Optional[int]:
    """
    Extrait l'ID TMDB d'un chemin contenant un bloc [tmdbid-N].

    Le dernier bloc trouvé l'emporte (dossier le plus profond).
    """
    found = _TMDB_TAG.findall(path or "")
    return int(found[-1]) if found else None
