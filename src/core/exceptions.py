"""
Taxonomie des erreurs du moteur de synchronisation.

- TransportError : erreur réseau / timeout / réponse serveur inexploitable,
  relançable pour les appels idempotents
- RequestRejected : refus définitif d'une création de requête pour l'exécution courante
- MaterializationError : échec disque sur un seul dossier de substitution
- LockTimeout : l'ordonnanceur n'a pas pu admettre l'appelant à temps
"""

from enum import Enum
from pathlib import Path
from typing import Optional


class BridgeError(Exception):
    """Classe de base des erreurs SeerBridge."""


class TransportError(BridgeError):
    """
    Erreur de transport vers une API externe.

    Attributes:
        status_code: Code HTTP si une réponse a été reçue, None sinon
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class RejectionReason(str, Enum):
    """Motifs de refus d'une création de requête."""

    DUPLICATE = "duplicate"
    QUOTA_RESTRICTED = "quota_restricted"
    PERMISSION_DENIED = "permission_denied"
    NO_SEASONS_AVAILABLE = "no_seasons_available"
    BLACKLISTED = "blacklisted"


class RequestRejected(BridgeError):
    """
    Le service distant a refusé la création d'une requête.

    Attributes:
        reason: Motif classifié du refus
        detail: Message renvoyé par le serveur
    """

    def __init__(self, reason: RejectionReason, detail: str = "") -> None:
        self.reason = reason
        self.detail = detail
        super().__init__(f"Requete refusee ({reason.value}): {detail}" if detail else f"Requete refusee ({reason.value})")


class MaterializationError(BridgeError):
    """Échec d'écriture/suppression d'un dossier de substitution."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class LockTimeout(BridgeError):
    """L'opération n'a pas obtenu le verrou global dans le délai imparti."""

    def __init__(self, operation_name: str, timeout_seconds: float) -> None:
        self.operation_name = operation_name
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Operation '{operation_name}' : verrou non obtenu apres {timeout_seconds / 60:g} minutes"
        )
