"""
Objets valeur pour la classification des medias.

Le type de media est le discriminant de toutes les entites du domaine :
il determine l'endpoint discover a interroger, l'identifiant secondaire
(IMDb pour les films, TVDB pour les series) et le format du fichier NFO.
"""

from enum import Enum


class MediaKind(str, Enum):
    """Type de media cote catalogue distant.

    Les valeurs correspondent au champ ``mediaType`` de l'API distante.

    Valeurs:
        MOVIE: Film
        SHOW: Serie TV
    """

    MOVIE = "movie"
    SHOW = "tv"

    @property
    def secondary_id_kind(self) -> "SecondaryIdKind":
        """Espace de noms de l'identifiant secondaire associe a ce type."""
        return SecondaryIdKind.IMDB if self is MediaKind.MOVIE else SecondaryIdKind.TVDB

    @property
    def nfo_root(self) -> str:
        """Element racine du document NFO (movie / tvshow)."""
        return "movie" if self is MediaKind.MOVIE else "tvshow"

    @property
    def label(self) -> str:
        """Libelle lisible pour les logs et la CLI."""
        return "films" if self is MediaKind.MOVIE else "series"


class SecondaryIdKind(str, Enum):
    """Espace de noms de l'identifiant secondaire.

    La valeur est celle utilisee dans les noms de dossiers
    (ex: ``[imdbid-tt0133093]``, ``[tvdbid-81189]``).
    """

    IMDB = "imdbid"
    TVDB = "tvdbid"

    @property
    def media_kind(self) -> MediaKind:
        """Type de media identifie par cet espace de noms."""
        return MediaKind.MOVIE if self is SecondaryIdKind.IMDB else MediaKind.SHOW

    @property
    def provider_key(self) -> str:
        """Cle du fournisseur dans les ProviderIds du catalogue local."""
        return "Imdb" if self is SecondaryIdKind.IMDB else "Tvdb"
