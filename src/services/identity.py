"""
Resolution d'identite entre titres distants et titres locaux.

Regle de correspondance :
1. Le type de media doit etre identique
2. L'ID TMDB local (ProviderIds.Tmdb) egal a l'ID distant suffit
3. Sinon, repli sur l'ID secondaire (IMDb pour les films, TVDB pour
   les series), compare apres normalisation
4. Aucun ID exploitable des deux cotes : pas de correspondance

Aucune heuristique par titre + annee n'est appliquee.
"""

import re
from typing import Iterable, Optional

from src.core.entities.catalog import LocalItem, RemoteItem
from src.core.value_objects.media_kind import SecondaryIdKind
from src.services.naming import extract_tmdb_id

_IMDB_PATTERN = re.compile(r"^(?:tt)?0*(\d+)$")


def normalize_imdb_id(value: Optional[str]) -> Optional[str]:
    """
    Normalise un ID IMDb : ses chiffres, sans zeros de tete.

    "tt0133093", "TT133093" et "133093" donnent tous "133093".
    """
    if not value:
        return None
    match = _IMDB_PATTERN.match(value.strip().lower())
    return match.group(1) if match else None


def normalize_tvdb_id(value: Optional[str]) -> Optional[str]:
    """Normalise un ID TVDB : ses chiffres, sans zeros de tete."""
    if not value:
        return None
    digits = value.strip()
    if not digits.isdigit():
        return None
    return digits.lstrip("0") or "0"


def normalize_secondary_id(kind: SecondaryIdKind, value: Optional[str]) -> Optional[str]:
    """Normalise un ID secondaire selon son espace de noms."""
    if kind is SecondaryIdKind.IMDB:
        return normalize_imdb_id(value)
    return normalize_tvdb_id(value)


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value and value.strip().isdigit():
        return int(value.strip())
    return None


class IdentityResolver:
    """
    Decide si un titre distant et un titre local designent la meme oeuvre.

    Sans etat : une instance peut etre partagee par tous les services.
    """

    def matches(self, remote: RemoteItem, local: LocalItem) -> bool:
        """
        Teste la correspondance entre un titre distant et un titre local.

        Args:
            remote: Titre distant
            local: Titre local

        Returns:
            True si les deux designent la meme oeuvre
        """
        if remote.media_kind is not local.media_kind:
            return False

        local_tmdb = _parse_int(local.get_external_id("Tmdb"))
        if local_tmdb is not None and local_tmdb == remote.primary_id:
            return True

        kind = remote.secondary_id_kind
        remote_secondary = normalize_secondary_id(kind, remote.secondary_id)
        local_secondary = normalize_secondary_id(kind, local.get_external_id(kind.provider_key))
        if remote_secondary is None or local_secondary is None:
            return False
        return remote_secondary == local_secondary

    def expected_remote_id(self, local: LocalItem) -> Optional[int]:
        """
        Deduit l'ID distant d'un titre local.

        L'ID TMDB du catalogue local est prioritaire ; a defaut, le bloc
        [tmdbid-N] du chemin (dossiers de substitution) est utilise.
        """
        local_tmdb = _parse_int(local.get_external_id("Tmdb"))
        if local_tmdb is not None:
            return local_tmdb
        return extract_tmdb_id(local.filesystem_path)

    def find_match(
        self, remote: RemoteItem, candidates: Iterable[LocalItem]
    ) -> Optional[LocalItem]:
        """Retourne le premier titre local correspondant, None sinon."""
        for local in candidates:
            if self.matches(remote, local):
                return local
        return None
