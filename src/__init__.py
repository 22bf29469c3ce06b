"""
SeerBridge - Passerelle entre un service de requetes (Jellyseerr) et Jellyfin.

Ce package materialise le catalogue de decouverte distant sous forme de
dossiers de substitution indexes par Jellyfin, et transforme les favoris
des utilisateurs Jellyfin en requetes distantes.

Architecture : Hexagonale (Ports et Adaptateurs)
- core/ : Couche domaine (entités, ports, objets valeur)
- services/ : Couche application (réconciliation, favoris, ordonnancement)
- adapters/ : Couche infrastructure (CLI, clients API, système de fichiers)
"""
