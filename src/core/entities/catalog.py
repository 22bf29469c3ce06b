"""
Entités des deux catalogues synchronisés.

- RemoteItem : un titre tel que connu du service de découverte/requêtes distant
- LocalItem : un titre tel que connu du catalogue média local
- LocalUser : un utilisateur du catalogue local (porteur des favoris)
- PlaceholderEntry : un dossier de substitution matérialisé sur le disque
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Mapping, Optional

from src.core.value_objects.media_kind import MediaKind, SecondaryIdKind


@dataclass(frozen=True, eq=False)
class RemoteItem:
    """
    Instantané immuable d'un titre du catalogue distant.

    L'identité d'un RemoteItem est le couple (media_kind, primary_id) :
    deux instantanés du même titre sont égaux même si leur nom, leur
    réseau ou leur date de création diffèrent.

    Attributs :
        primary_id : ID TMDB (espace de noms de l'ID numérique distant)
        media_kind : Film ou série
        display_name : Titre affiché
        secondary_id : ID IMDb (films) ou TVDB (séries), optionnel
        release_year : Année de sortie/première diffusion, optionnelle
        network_tag : Nom du réseau/fournisseur qui a fait remonter le titre
        network_id : ID du fournisseur correspondant
        created_date : Date de première matérialisation (lue depuis le disque)
    """

    primary_id: int
    media_kind: MediaKind
    display_name: str
    secondary_id: Optional[str] = None
    release_year: Optional[str] = None
    network_tag: Optional[str] = None
    network_id: Optional[int] = None
    created_date: Optional[datetime] = None

    @property
    def secondary_id_kind(self) -> SecondaryIdKind:
        """Espace de noms de l'ID secondaire (imdbid / tvdbid)."""
        return self.media_kind.secondary_id_kind

    @property
    def identity(self) -> tuple[MediaKind, int]:
        """Clé d'identité (media_kind, primary_id)."""
        return (self.media_kind, self.primary_id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RemoteItem):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self) -> int:
        return hash(self.identity)

    def __str__(self) -> str:
        year = f" ({self.release_year})" if self.release_year else ""
        return f"{self.display_name}{year} [{self.media_kind.value}:{self.primary_id}]"


@dataclass(frozen=True)
class LocalItem:
    """
    Titre du catalogue local.

    Le moteur ne modifie jamais un LocalItem ; il peut seulement retirer
    le drapeau favori d'un utilisateur ou fixer son nombre de lectures
    (tri) via le port ILocalCatalog.

    Attributs :
        local_id : Identifiant opaque côté catalogue local
        display_name : Titre affiché
        filesystem_path : Chemin du dossier/fichier sur le disque
        media_kind : Film ou série
        external_ids : IDs fournisseurs (Tmdb, Imdb, Tvdb)
    """

    local_id: str
    display_name: str
    filesystem_path: str
    media_kind: MediaKind
    external_ids: Mapping[str, str] = field(default_factory=dict, hash=False)

    def get_external_id(self, provider: str) -> Optional[str]:
        """
        Retourne l'ID d'un fournisseur, insensible à la casse de la clé.

        Les valeurs vides sont traitées comme absentes.
        """
        wanted = provider.lower()
        for key, value in self.external_ids.items():
            if key.lower() == wanted and value and str(value).strip():
                return str(value).strip()
        return None


@dataclass(frozen=True)
class LocalUser:
    """Utilisateur du catalogue local."""

    user_id: str
    name: str = ""


@dataclass(frozen=True)
class PlaceholderEntry:
    """
    Dossier de substitution présent sous la racine de la bibliothèque.

    Attributs :
        path : Chemin du dossier
        media_kind : Type déduit du nom de dossier
        primary_id : ID TMDB extrait du nom de dossier
        created_date : Date de création enregistrée dans le fichier de métadonnées
        item : Instantané reconstruit depuis le fichier de métadonnées
    """

    path: Path
    media_kind: MediaKind
    primary_id: int
    created_date: Optional[datetime]
    item: RemoteItem

    @property
    def identity(self) -> tuple[MediaKind, int]:
        """Clé d'identité (media_kind, primary_id)."""
        return (self.media_kind, self.primary_id)
