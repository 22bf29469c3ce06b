"""
Tests unitaires pour les commandes CLI.

Tests couvrant:
- sync / sync-from-remote / sync-favorites : affichage et codes de sortie
- sort : tri de la bibliotheque
- cleanup : purge sous le verrou global
- status : connexions
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import typer
from typer.testing import CliRunner

from src.adapters.cli.commands.maintenance_commands import (
    KindFilter,
    _cleanup_async,
    _networks_async,
    _status_async,
)
from src.adapters.cli.commands.sync_commands import (
    _sort_async,
    _sync_async,
    _sync_favorites_async,
    _sync_from_remote_async,
)
from src.core.entities.results import (
    ReconciliationResult,
    RefreshPlan,
    SortResult,
    SyncFavoritesResult,
    SyncFromRemoteResult,
)
from src.core.exceptions import LockTimeout, TransportError
from src.core.ports.api_clients import ServerStatus
from src.core.value_objects.media_kind import MediaKind
from src.core.value_objects.sort_order import SortOrder
from src.services.scheduler import OperationScheduler
from tests.fixtures.fakes import make_movie

runner = CliRunner()


@pytest.fixture
def mock_container():
    """Mock le Container instancie par le decorateur @with_container()."""
    with patch("src.adapters.cli.helpers.Container") as mock_cls:
        container_instance = MagicMock()
        mock_cls.return_value = container_instance
        container_instance.config.return_value = MagicMock(
            seerr_enabled=True,
            jellyfin_enabled=True,
        )
        container_instance.seerr_client.return_value.close = AsyncMock()
        container_instance.jellyfin_client.return_value.close = AsyncMock()
        yield container_instance


class TestSyncCommands:
    """Tests des commandes de synchronisation."""

    @pytest.mark.asyncio
    async def test_missing_configuration(self, mock_container):
        mock_container.config.return_value.jellyfin_enabled = False

        with pytest.raises(typer.Exit) as exc_info:
            await _sync_from_remote_async(False)

        assert exc_info.value.exit_code == 1
        mock_container.sync_task.assert_not_called()

    @pytest.mark.asyncio
    async def test_sync_from_remote_success(self, mock_container):
        result = SyncFromRemoteResult(movies=ReconciliationResult(added={make_movie(1, "Dune")}))
        mock_container.sync_task.return_value.sync_from_remote = AsyncMock(return_value=result)

        await _sync_from_remote_async(True)

        mock_container.seerr_client.return_value.close.assert_awaited_once()
        mock_container.api_cache.return_value.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_sync_from_remote_failure_exits(self, mock_container):
        result = SyncFromRemoteResult(success=False, message="Service distant injoignable")
        mock_container.sync_task.return_value.sync_from_remote = AsyncMock(return_value=result)

        with pytest.raises(typer.Exit):
            await _sync_from_remote_async(False)

    @pytest.mark.asyncio
    async def test_partial_failure_shows_results_and_refresh(self, mock_container):
        result = SyncFromRemoteResult(
            success=False,
            message="HTTP 502",
            movies=ReconciliationResult(added={make_movie(1, "Dune")}),
            shows=ReconciliationResult(error="HTTP 502"),
            refresh=RefreshPlan(refresh_images=True),
        )
        mock_container.sync_task.return_value.sync_from_remote = AsyncMock(return_value=result)

        module = "src.adapters.cli.commands.sync_commands"
        with patch(f"{module}.display_reconciliation") as tables:
            with patch(f"{module}.display_refresh") as refresh:
                with pytest.raises(typer.Exit):
                    await _sync_from_remote_async(False)

        tables.assert_called_once_with(result.movies, result.shows)
        refresh.assert_called_once_with(RefreshPlan(refresh_images=True))

    @pytest.mark.asyncio
    async def test_lock_timeout_exits(self, mock_container):
        mock_container.sync_task.return_value.sync_favorites = AsyncMock(
            side_effect=LockTimeout("sync-favorites", 3600)
        )

        with pytest.raises(typer.Exit) as exc_info:
            await _sync_favorites_async()

        assert exc_info.value.exit_code == 1

    @pytest.mark.asyncio
    async def test_dropped_call_is_not_an_error(self, mock_container):
        mock_container.sync_task.return_value.sync_all = AsyncMock(return_value=None)
        await _sync_async(False)

    @pytest.mark.asyncio
    async def test_sync_all_partial_failure_exits(self, mock_container):
        mock_container.sync_task.return_value.sync_all = AsyncMock(
            return_value=(SyncFavoritesResult(success=False, message="timeout"), SyncFromRemoteResult())
        )

        with pytest.raises(typer.Exit):
            await _sync_async(False)


class TestSortCommand:
    """Tests de la commande sort."""

    @pytest.mark.asyncio
    async def test_sort_with_order(self, mock_container):
        sort = AsyncMock(return_value=SortResult(order="none", users=2))
        mock_container.sync_task.return_value.sort = sort

        await _sort_async(SortOrder.NONE)

        sort.assert_awaited_once_with(SortOrder.NONE)

    @pytest.mark.asyncio
    async def test_sort_failure_exits(self, mock_container):
        mock_container.sync_task.return_value.sort = AsyncMock(
            return_value=SortResult(success=False, message="Aucun utilisateur local")
        )

        with pytest.raises(typer.Exit) as exc_info:
            await _sort_async(None)

        assert exc_info.value.exit_code == 1

    @pytest.mark.asyncio
    async def test_sort_lock_timeout_exits(self, mock_container):
        mock_container.sync_task.return_value.sort = AsyncMock(
            side_effect=LockTimeout("sort", 3600)
        )

        with pytest.raises(typer.Exit):
            await _sort_async(None)


class TestCleanupCommand:
    """Tests de la commande cleanup."""

    @pytest.mark.asyncio
    async def test_purge_only(self, mock_container):
        materializer = mock_container.materializer.return_value
        materializer.purge_hidden.return_value = 2
        mock_container.scheduler.return_value = OperationScheduler()

        await _cleanup_async(False, KindFilter.ALL)

        materializer.purge_hidden.assert_called_once()
        mock_container.reconciliation_engine.return_value.remove_all.assert_not_called()

    @pytest.mark.asyncio
    async def test_remove_all_by_kind(self, mock_container):
        mock_container.materializer.return_value.purge_hidden.return_value = 0
        engine = mock_container.reconciliation_engine.return_value
        engine.remove_all.return_value = ReconciliationResult(deleted={make_movie(1)})
        mock_container.scheduler.return_value = OperationScheduler()

        await _cleanup_async(True, KindFilter.MOVIE)

        engine.remove_all.assert_called_once_with(MediaKind.MOVIE)


class TestStatusCommand:
    """Tests de la commande status."""

    @pytest.mark.asyncio
    async def test_all_reachable(self, mock_container):
        mock_container.seerr_client.return_value.get_status = AsyncMock(
            return_value=ServerStatus(version="2.1.0")
        )
        mock_container.jellyfin_client.return_value.test_connection = AsyncMock(return_value=True)

        await _status_async()

    @pytest.mark.asyncio
    async def test_seerr_unreachable(self, mock_container):
        mock_container.seerr_client.return_value.get_status = AsyncMock(
            side_effect=TransportError("connexion refusee")
        )
        mock_container.jellyfin_client.return_value.test_connection = AsyncMock(return_value=True)

        with pytest.raises(typer.Exit):
            await _status_async()


def test_kind_filter():
    assert KindFilter.ALL.to_media_kind() is None
    assert KindFilter.TV.to_media_kind() is MediaKind.SHOW


def test_help_lists_commands():
    from src.main import app

    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    for command in (
        "sync",
        "sync-from-remote",
        "sync-favorites",
        "sort",
        "daemon",
        "cleanup",
        "networks",
    ):
        assert command in result.output


class TestNetworksCommand:
    """Tests de la commande networks."""

    @pytest.mark.asyncio
    async def test_refresh_clears_cache(self, mock_container):
        mock_container.config.return_value.region = "FR"
        mock_container.config.return_value.networks = []
        mock_container.api_cache.return_value.clear = AsyncMock()
        get_providers = AsyncMock(return_value=[])
        mock_container.seerr_client.return_value.get_watch_providers = get_providers

        await _networks_async(KindFilter.MOVIE, None, True)

        mock_container.api_cache.return_value.clear.assert_awaited_once()
        get_providers.assert_awaited_once_with(MediaKind.MOVIE, "FR")
