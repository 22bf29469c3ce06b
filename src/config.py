"""
Configuration de l'application via pydantic-settings.

La configuration est chargée depuis les variables d'environnement avec le préfixe SEERBRIDGE_,
et peut optionnellement être fournie via un fichier .env.

Les services n'utilisent pas Settings directement : resolve_sync_options()
en extrait un SyncOptions immuable, résolu une fois par exécution.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.ports.api_clients import Network
from src.core.value_objects.sort_order import SortOrder

# Trouver le fichier .env à la racine du projet (parent de src/)
_PROJECT_ROOT = Path(__file__).parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class NetworkConfig(BaseModel):
    """Réseau de streaming parcouru lors de la découverte."""

    id: int = Field(ge=1)
    name: str
    country: str = "US"


def _default_networks() -> list[NetworkConfig]:
    return [
        NetworkConfig(id=8, name="Netflix"),
        NetworkConfig(id=337, name="Disney Plus"),
        NetworkConfig(id=9, name="Amazon Prime Video"),
        NetworkConfig(id=350, name="Apple TV+"),
        NetworkConfig(id=15, name="Hulu"),
    ]


class Settings(BaseSettings):
    """Paramètres de l'application avec support des variables d'environnement.

    Tous les paramètres peuvent être surchargés via des variables d'environnement
    avec le préfixe SEERBRIDGE_.
    Exemple : SEERBRIDGE_RETENTION_DAYS=14
    Les listes se passent en JSON :
    SEERBRIDGE_NETWORKS='[{"id": 8, "name": "Netflix"}]'

    Les chemins sont automatiquement étendus (~ -> répertoire home).
    """

    model_config = SettingsConfigDict(
        env_prefix="SEERBRIDGE_",
        env_file=_ENV_FILE if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Service distant (Jellyseerr / Overseerr)
    seerr_url: str = Field(default="http://localhost:5055")
    seerr_api_key: Optional[str] = Field(default=None)

    # Catalogue local (Jellyfin)
    jellyfin_url: str = Field(default="http://localhost:8096")
    jellyfin_api_key: Optional[str] = Field(default=None)

    # Bibliothèque de substitution
    library_dir: Path = Field(default=Path("~/SeerBridge"))
    cache_dir: Path = Field(default=Path("~/.cache/seerbridge"))
    exclude_from_main_libraries: bool = Field(default=True)
    favorites_bridge_only: bool = Field(default=True)
    remove_requested_from_favorites: bool = Field(default=True)
    separate_network_folders: bool = Field(default=False)
    library_prefix: str = Field(default="")
    placeholder_duration_seconds: int = Field(default=10, ge=1, le=600)

    # Tri de la bibliothèque de substitution
    sort_order: SortOrder = Field(default=SortOrder.RANDOM)
    sort_after_sync: bool = Field(default=False)

    # Découverte
    region: str = Field(default="US")
    networks: list[NetworkConfig] = Field(default_factory=_default_networks)
    max_discover_pages: int = Field(default=1, ge=0)

    # Réseau
    request_timeout: int = Field(default=60, ge=1)
    retry_attempts: int = Field(default=3, ge=1)
    retry_max_wait: int = Field(default=30, ge=0)

    # Rétention et ordonnancement
    retention_days: int = Field(default=30, ge=0)
    operation_lock_timeout_minutes: int = Field(default=60, ge=1)
    operation_poll_seconds: float = Field(default=10.0, gt=0)
    sync_interval_hours: float = Field(default=24.0, gt=0)
    enable_startup_sync: bool = Field(default=True)
    startup_delay_seconds: int = Field(default=30, ge=0)

    # Logging (fichier + stderr, rotation 10MB, 5 fichiers de rétention)
    log_level: str = Field(default="INFO")
    log_file: Path = Field(default=Path("logs/seerbridge.log"))
    log_rotation_size: str = Field(default="10 MB")
    log_retention_count: int = Field(default=5)

    @field_validator("library_dir", "cache_dir", "log_file", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        """Étend ~ vers le répertoire home dans les chemins."""
        return Path(v).expanduser()

    @field_validator("region")
    @classmethod
    def upper_region(cls, v: str) -> str:
        """Code pays ISO 3166-1 en majuscules."""
        v = v.strip().upper()
        if len(v) != 2 or not v.isalpha():
            raise ValueError(f"Region invalide: {v!r} (code ISO a deux lettres attendu)")
        return v

    @field_validator("seerr_url", "jellyfin_url")
    @classmethod
    def strip_url(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @property
    def seerr_enabled(self) -> bool:
        """Vérifie si le service distant est configuré."""
        return bool(self.seerr_api_key)

    @property
    def jellyfin_enabled(self) -> bool:
        """Vérifie si Jellyfin est configuré."""
        return bool(self.jellyfin_api_key)


@dataclass(frozen=True)
class SyncOptions:
    """
    Options de synchronisation résolues pour une exécution.

    Attributs:
        library_dir: Racine des dossiers de substitution
        networks: Réseaux parcourus, dans l'ordre de priorité
        max_discover_pages: Plafond de pages par réseau (0 = illimité)
        retention_days: Durée de conservation d'un dossier disparu du distant
        exclude_from_main_libraries: Ignore les titres déjà en bibliothèque principale
        favorites_bridge_only: Ne traite que les favoris sous library_dir
        remove_requested_from_favorites: Retire le favori après requête réussie
        sort_order: Algorithme de tri par défaut de la bibliothèque
        lock_timeout_seconds: Attente maximale du verrou global
        poll_seconds: Intervalle de scrutation du verrou
    """

    library_dir: Path
    networks: tuple[Network, ...] = ()
    max_discover_pages: int = 1
    retention_days: int = 30
    exclude_from_main_libraries: bool = True
    favorites_bridge_only: bool = True
    remove_requested_from_favorites: bool = True
    sort_order: SortOrder = SortOrder.RANDOM
    lock_timeout_seconds: float = 3600.0
    poll_seconds: float = 10.0


def resolve_sync_options(settings: Settings) -> SyncOptions:
    """Construit les options de synchronisation depuis les paramètres."""
    return SyncOptions(
        library_dir=settings.library_dir,
        networks=tuple(
            Network(id=n.id, name=n.name, country=n.country) for n in settings.networks
        ),
        max_discover_pages=settings.max_discover_pages,
        retention_days=settings.retention_days,
        exclude_from_main_libraries=settings.exclude_from_main_libraries,
        favorites_bridge_only=settings.favorites_bridge_only,
        remove_requested_from_favorites=settings.remove_requested_from_favorites,
        sort_order=settings.sort_order,
        lock_timeout_seconds=settings.operation_lock_timeout_minutes * 60.0,
        poll_seconds=settings.operation_poll_seconds,
    )
