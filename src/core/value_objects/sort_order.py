"""
Ordre d'affichage de la bibliotheque de substitution.
"""

from enum import Enum


class SortOrder(str, Enum):
    """Algorithme de tri applique via le nombre de lectures.

    Jellyfin sait trier par nombre de lectures : en attribuant a chaque
    dossier de substitution un compteur choisi, on impose l'ordre
    d'affichage de la bibliotheque.

    Valeurs:
        NONE: Compteurs remis a zero (ordre par defaut de Jellyfin)
        RANDOM: Compteurs melanges (ordre aleatoire renouvele a chaque tri)
    """

    NONE = "none"
    RANDOM = "random"
