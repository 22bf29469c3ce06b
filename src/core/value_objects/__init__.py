"""
Objets valeur immutables representant des concepts du domaine sans identite.

Exports :
- MediaKind : Type de media (MOVIE, SHOW)
- SecondaryIdKind : Espace de noms de l'identifiant secondaire (IMDB, TVDB)
- SortOrder : Algorithme de tri de la bibliotheque de substitution
"""

from src.core.value_objects.media_kind import MediaKind, SecondaryIdKind
from src.core.value_objects.sort_order import SortOrder

__all__ = [
    "MediaKind",
    "SecondaryIdKind",
    "SortOrder",
]
