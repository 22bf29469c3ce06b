"""
Fichier de metadonnees des dossiers de substitution (style NFO).

Le document est minimal et d'ordre stable : pour un meme titre et une
meme date de creation, render_metadata() produit exactement les memes
octets, ce qui permet au materialiseur de sauter les mises a jour inutiles.

Exemple (film) :

    <?xml version="1.0" encoding="utf-8" standalone="yes"?>
    <movie>
      <title>Inception</title>
      <year>2010</year>
      <uniqueid type="tmdb" default="true">27205</uniqueid>
      <tmdbid>27205</tmdbid>
      <uniqueid type="imdb">tt1375666</uniqueid>
      <imdbid>tt1375666</imdbid>
      <tag>Netflix</tag>
      <networkid>8</networkid>
      <dateadded>2024-05-01T12:00:00Z</dateadded>
    </movie>
"""

import re
import xml.etree.ElementTree as ET
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from loguru import logger

from src.core.entities.catalog import RemoteItem
from src.core.value_objects.media_kind import MediaKind

METADATA_FILENAME = "metadata.xml"

XML_DECLARATION = '<?xml version="1.0" encoding="utf-8" standalone="yes"?>\n'

DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_ROOTS = {kind.nfo_root: kind for kind in MediaKind}

# Hors plage XML 1.0 : controles C0 sauf tab/LF/CR, surrogates isoles, U+FFFE/U+FFFF
_XML_INVALID = re.compile(r"[^\t\n\r\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]")

# Type "uniqueid" de l'ID secondaire (imdb / tvdb)
_UNIQUEID_TYPES = {
    MediaKind.MOVIE: "imdb",
    MediaKind.SHOW: "tvdb",
}


def format_date(value: datetime) -> str:
    """Formate une date en ISO-8601 UTC a la seconde."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(DATE_FORMAT)


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Analyse une date ecrite par format_date(), None si invalide."""
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        pass
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def xml_safe(text: str) -> str:
    """Retire les caracteres interdits en XML 1.0."""
    return _XML_INVALID.sub("", text)


def _child(parent: ET.Element, tag: str, text: str, **attrib: str) -> None:
    element = ET.SubElement(parent, tag, attrib)
    element.text = xml_safe(text)


def render_metadata(item: RemoteItem, created_date: datetime) -> str:
    """
    Genere le document de metadonnees d'un titre.

    Args:
        item: Titre distant
        created_date: Date de premiere materialisation

    Returns:
        Document XML complet (declaration incluse, fin de ligne finale)
    """
    root = ET.Element(item.media_kind.nfo_root)
    _child(root, "title", item.display_name)
    if item.release_year:
        _child(root, "year", item.release_year)
    _child(root, "uniqueid", str(item.primary_id), type="tmdb", default="true")
    _child(root, "tmdbid", str(item.primary_id))
    if item.secondary_id:
        _child(root, "uniqueid", item.secondary_id, type=_UNIQUEID_TYPES[item.media_kind])
        _child(root, item.secondary_id_kind.value, item.secondary_id)
    if item.network_tag:
        _child(root, "tag", item.network_tag)
    if item.network_id is not None:
        _child(root, "networkid", str(item.network_id))
    _child(root, "dateadded", format_date(created_date))

    ET.indent(root, space="  ")
    return XML_DECLARATION + ET.tostring(root, encoding="unicode") + "\n"


def parse_metadata(content: str) -> Optional[RemoteItem]:
    """
    Reconstruit un RemoteItem depuis un document de metadonnees.

    Returns:
        Le titre (created_date renseignee depuis dateadded), ou None si
        le document est illisible ou incomplet
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        logger.debug(f"Metadonnees illisibles: {e}")
        return None

    media_kind = _ROOTS.get(root.tag)
    tmdb_text = root.findtext("tmdbid")
    if media_kind is None or not tmdb_text or not tmdb_text.strip().isdigit():
        return None

    network_id = root.findtext("networkid")
    return RemoteItem(
        primary_id=int(tmdb_text),
        media_kind=media_kind,
        display_name=root.findtext("title") or "",
        secondary_id=root.findtext(media_kind.secondary_id_kind.value) or None,
        release_year=root.findtext("year") or None,
        network_tag=root.findtext("tag") or None,
        network_id=int(network_id) if network_id and network_id.isdigit() else None,
        created_date=parse_date(root.findtext("dateadded")),
    )


def with_created_date(item: RemoteItem, created_date: Optional[datetime]) -> RemoteItem:
    """Copie d'un titre portant la date de creation donnee."""
    return replace(item, created_date=created_date)
