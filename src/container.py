"""
Container d'injection de dependances via dependency-injector.

Fournit une gestion centralisee des dependances pour la CLI et le daemon.
"""

from dependency_injector import containers, providers

from .adapters.api.cache import APICache
from .adapters.api.jellyfin_client import JellyfinClient
from .adapters.api.seerr_client import SeerrClient
from .adapters.file_system import FileSystemAdapter
from .config import Settings, resolve_sync_options
from .services.favorites import FavoritesPipeline
from .services.identity import IdentityResolver
from .services.materializer import Materializer
from .services.placeholder_video import PlaceholderVideoGenerator
from .services.reconciliation import ReconciliationEngine
from .services.scheduler import OperationScheduler
from .services.sorting import LibrarySorter
from .services.sync import SyncService
from .services.tasks import SyncTask


class Container(containers.DeclarativeContainer):
    """Container DI de l'application.

    Utilisation :
        container = Container()
        task = container.sync_task()
        await task.sync_all()

    En test, les clients peuvent etre remplaces :
        container.seerr_client.override(providers.Object(fake_remote))
    """

    # Configuration - singleton charge une seule fois
    config = providers.Singleton(Settings)

    # Options resolues a partir de la configuration
    sync_options = providers.Singleton(resolve_sync_options, settings=config)

    # Cache API - Singleton pour partage entre clients
    api_cache = providers.Singleton(
        APICache,
        cache_dir=providers.Callable(lambda d: str(d / "api"), config.provided.cache_dir),
    )

    # Clients API - Singleton avec url et cle depuis config
    seerr_client = providers.Singleton(
        SeerrClient,
        base_url=config.provided.seerr_url,
        api_key=config.provided.seerr_api_key,
        cache=api_cache,
        timeout=config.provided.request_timeout,
        retry_attempts=config.provided.retry_attempts,
        retry_max_wait=config.provided.retry_max_wait,
    )

    jellyfin_client = providers.Singleton(
        JellyfinClient,
        base_url=config.provided.jellyfin_url,
        api_key=config.provided.jellyfin_api_key,
        library_dir=providers.Callable(str, config.provided.library_dir),
        timeout=config.provided.request_timeout,
        retry_attempts=config.provided.retry_attempts,
        retry_max_wait=config.provided.retry_max_wait,
    )

    # Adapters - implementations concretes des ports
    file_system = providers.Singleton(FileSystemAdapter)

    placeholder_video = providers.Singleton(
        PlaceholderVideoGenerator,
        cache_dir=config.provided.cache_dir,
        duration_seconds=config.provided.placeholder_duration_seconds,
    )

    materializer = providers.Singleton(
        Materializer,
        file_system=file_system,
        library_dir=config.provided.library_dir,
        video_generator=placeholder_video,
        separate_network_folders=config.provided.separate_network_folders,
        library_prefix=config.provided.library_prefix,
    )

    # Services (stateless - Singletons)
    identity_resolver = providers.Singleton(IdentityResolver)

    reconciliation_engine = providers.Singleton(
        ReconciliationEngine,
        remote=seerr_client,
        local=jellyfin_client,
        materializer=materializer,
        identity=identity_resolver,
        options=sync_options,
    )

    favorites_pipeline = providers.Singleton(
        FavoritesPipeline,
        remote=seerr_client,
        local=jellyfin_client,
        materializer=materializer,
        identity=identity_resolver,
        options=sync_options,
    )

    sync_service = providers.Singleton(
        SyncService,
        remote=seerr_client,
        local=jellyfin_client,
        engine=reconciliation_engine,
        pipeline=favorites_pipeline,
        materializer=materializer,
        video_generator=placeholder_video,
    )

    library_sorter = providers.Singleton(
        LibrarySorter,
        local=jellyfin_client,
        materializer=materializer,
        file_system=file_system,
        options=sync_options,
    )

    # Ordonnanceur - un seul verrou global par processus
    scheduler = providers.Singleton(
        OperationScheduler,
        default_timeout=sync_options.provided.lock_timeout_seconds,
        poll_interval=sync_options.provided.poll_seconds,
    )

    sync_task = providers.Singleton(
        SyncTask,
        service=sync_service,
        scheduler=scheduler,
        sorter=library_sorter,
    )
