"""
Fonctions utilitaires partagees dans le projet SeerBridge.

Ce module centralise les fonctions reutilisees par les adaptateurs et
les services :
- normalize_user_id : forme canonique d'un ID utilisateur Jellyfin
- is_under : test d'appartenance d'un chemin a une racine
"""

from pathlib import PurePath
from typing import Optional


def normalize_user_id(user_id: str) -> str:
    """
    Forme canonique d'un ID utilisateur Jellyfin (hex sans tirets, minuscules).

    Jellyfin renvoie les GUID sans tirets, Jellyseerr les stocke parfois
    avec : la comparaison se fait toujours sur cette forme.
    """
    return user_id.replace("-", "").lower()


def is_under(path: Optional[str], prefix: Optional[str]) -> bool:
    """
    True si path est prefix ou se trouve sous prefix.

    La comparaison se fait composant par composant : /bridge2 n'est pas
    sous /bridge.
    """
    if not path or not prefix:
        return False
    parts = PurePath(path).parts
    prefix_parts = PurePath(prefix).parts
    return parts[: len(prefix_parts)] == prefix_parts
