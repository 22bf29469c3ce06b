"""
Utilitaires pour SeerBridge.

Ce module contient les fonctions utilitaires partagees.
"""

from src.utils.helpers import is_under, normalize_user_id

__all__ = [
    "is_under",
    "normalize_user_id",
]
