"""
Couche services applicatifs (cas d'utilisation).

Les services orchestrent la logique du domaine :
- identity : rapprochement des identites distantes et locales
- naming, metadata, placeholder_video, materializer : dossiers de substitution sur disque
- reconciliation : catalogue distant -> dossiers de substitution
- favorites : favoris locaux -> requetes distantes
- scheduler, sync, tasks : orchestration exclusive des deux sens

Les services dependent des ports (interfaces) de core/, jamais des
implementations concretes de adapters/.
"""
