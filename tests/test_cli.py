from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

from gymdesk import __version__
from gymdesk.cli import app
from gymdesk.core.settings import StoreSettings
from gymdesk.core.types import ConnectionState, ConnectionTestResult, StoreResult

runner = CliRunner()


def _online_monitor(state, result):
    monitor = MagicMock()
    monitor.is_online = True
    monitor.test_connection = AsyncMock(return_value=result)
    monitor.get_status.return_value = state
    return monitor


class TestCLI:
    @patch("gymdesk.cli._init_core")
    def test_version(self, mock_init):
        """Test version command."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert f"gymdesk CLI v{__version__}" in result.output

    @patch("gymdesk.cli._init_core")
    def test_status_connected(self, mock_init):
        """Test status command against a reachable store."""
        outcome = ConnectionTestResult(
            success=True, response_time_ms=42, timestamp=datetime(2025, 1, 1, tzinfo=timezone.utc)
        )
        monitor = _online_monitor(ConnectionState.CONNECTED, outcome)
        mock_init.return_value = (MagicMock(), monitor)

        result = runner.invoke(app, ["status", "--attempts", "2"])

        assert result.exit_code == 0
        assert "Status: connected" in result.output
        assert "Response time: 42ms" in result.output
        monitor.test_connection.assert_awaited_once_with(2)

    @patch("gymdesk.cli._init_core")
    def test_status_error(self, mock_init):
        """Test status command when every attempt failed."""
        outcome = ConnectionTestResult(success=False, error="connection refused")
        mock_init.return_value = (MagicMock(), _online_monitor(ConnectionState.ERROR, outcome))

        result = runner.invoke(app, ["status"])

        assert result.exit_code == 1
        assert "Status: error" in result.output
        assert "Error: connection refused" in result.output
        assert "Response time: N/A" in result.output

    @patch("gymdesk.cli._init_core")
    def test_status_offline(self, mock_init):
        """Test status command without store configuration."""
        monitor = MagicMock()
        monitor.is_online = False
        mock_init.return_value = (MagicMock(), monitor)

        result = runner.invoke(app, ["status"])

        assert result.exit_code == 1
        assert "offline mode" in result.output
        monitor.test_connection.assert_not_called()

    @patch("gymdesk.cli._init_core")
    def test_env(self, mock_init):
        """Test env command hides the key but shows the URL."""
        container = MagicMock()
        container.settings.return_value = StoreSettings(url="https://x.test", key="secret")
        mock_init.return_value = (container, MagicMock())

        result = runner.invoke(app, ["env"])

        assert result.exit_code == 0
        assert "✅ SUPABASE_URL: set" in result.output
        assert "✅ SUPABASE_ANON_KEY: set" in result.output
        assert "https://x.test" in result.output
        assert "secret" not in result.output

    @patch("gymdesk.cli._init_core")
    def test_env_missing(self, mock_init):
        container = MagicMock()
        container.settings.return_value = StoreSettings()
        mock_init.return_value = (container, MagicMock())

        result = runner.invoke(app, ["env"])

        assert result.exit_code == 0
        assert "❌ SUPABASE_URL: missing" in result.output

    @patch("gymdesk.cli._init_core")
    def test_tables(self, mock_init):
        """Test tables command reports unavailable tables."""
        container = MagicMock()
        container.table_diagnostics.return_value.check.return_value = {
            "members": StoreResult(data=[]),
            "payments": StoreResult(error="relation does not exist"),
        }
        monitor = MagicMock()
        monitor.is_online = True
        mock_init.return_value = (container, monitor)

        result = runner.invoke(app, ["tables"])

        assert result.exit_code == 1
        assert "✅ members: available" in result.output
        assert "payments: relation does not exist" in result.output

    @patch("gymdesk.cli._init_core")
    def test_watch_offline(self, mock_init):
        monitor = MagicMock()
        monitor.is_online = False
        mock_init.return_value = (MagicMock(), monitor)

        result = runner.invoke(app, ["watch"])

        assert result.exit_code == 1
        monitor.subscribe.assert_not_called()

    @patch("gymdesk.cli._init_core")
    def test_status_rejects_zero_attempts(self, mock_init):
        result = runner.invoke(app, ["status", "--attempts", "0"])

        assert result.exit_code == 2
        mock_init.assert_not_called()
