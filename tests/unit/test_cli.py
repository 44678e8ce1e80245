"""Tests for the click-based CLI."""

import logging
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from mattermost_migrator.cli.commands import cli
from mattermost_migrator.cli.common import handle_exception
from mattermost_migrator.core.checkpoint import CheckpointStore, ImportCheckpoint
from mattermost_migrator.core.context import AdminTokenAuth, CredentialsAuth
from mattermost_migrator.exceptions import AuthFailedError, ConfigError

from .conftest import make_http_error

CHANNEL_URL = "https://mm.example.org/eng/channels/town-square"


@pytest.fixture(autouse=True)
def _clean_logger():
    """Drop handlers that commands attached to CliRunner's streams."""
    yield
    logger = logging.getLogger("mattermost_migrator")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)


def _write_config(tmp_path, **values):
    config_path = tmp_path / "config.yaml"
    values.setdefault("checkpoint_file", str(tmp_path / "checkpoints.json"))
    config_path.write_text(yaml.safe_dump(values))
    return config_path


class TestCLIGroup:
    """Tests for the CLI group structure."""

    def test_cli_has_all_subcommands(self):
        expected = {"migrate", "status", "reset", "init-config"}
        assert set(cli.commands.keys()) == expected

    def test_version_flag(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "mattermost-migrator" in result.output

    def test_short_help_flag(self):
        result = CliRunner().invoke(cli, ["-h"])
        assert result.exit_code == 0
        assert "migrate" in result.output
        assert "init-config" in result.output


# ---------------------------------------------------------------------------
# migrate
# ---------------------------------------------------------------------------


@patch("mattermost_migrator.cli.migrate_cmd.setup_logger")
@patch("mattermost_migrator.cli.migrate_cmd.create_migration_output_directory")
@patch("mattermost_migrator.cli.migrate_cmd.MattermostToChatMigrator")
class TestMigrateCommand:
    """Tests for the migrate subcommand."""

    def _invoke(self, tmp_path, *extra, creds=True, **config_values):
        creds_path = tmp_path / "creds.json"
        if creds:
            creds_path.write_text("{}")
        config_path = _write_config(tmp_path, **config_values)
        return CliRunner().invoke(
            cli,
            [
                "migrate",
                CHANNEL_URL,
                "--space",
                "AAAA",
                "--creds_path",
                str(creds_path),
                "--workspace_admin",
                "admin@example.com",
                "--config",
                str(config_path),
                *extra,
            ],
        )

    def test_builds_context_and_runs(self, mock_migrator, mock_output_dir, _setup, tmp_path):
        mock_output_dir.return_value = str(tmp_path / "logs")

        result = self._invoke(tmp_path, "--username", "importer", "--password", "pw")

        assert result.exit_code == 0, result.output
        ctx = mock_migrator.call_args.args[0]
        assert ctx.space == "spaces/AAAA"
        assert ctx.channel.team_name == "eng"
        assert ctx.channel.channel_name == "town-square"
        assert ctx.auth == CredentialsAuth(username="importer", password="pw")
        mock_migrator.return_value.run.assert_called_once()

    def test_prompts_for_credentials(self, mock_migrator, mock_output_dir, _setup, tmp_path):
        mock_output_dir.return_value = str(tmp_path / "logs")
        creds_path = tmp_path / "creds.json"
        creds_path.write_text("{}")
        config_path = _write_config(tmp_path)

        result = CliRunner().invoke(
            cli,
            [
                "migrate",
                CHANNEL_URL,
                "--space",
                "spaces/AAAA",
                "--creds_path",
                str(creds_path),
                "--workspace_admin",
                "admin@example.com",
                "--config",
                str(config_path),
            ],
            input="importer\nhunter2\n",
        )

        assert result.exit_code == 0, result.output
        ctx = mock_migrator.call_args.args[0]
        assert ctx.auth == CredentialsAuth(username="importer", password="hunter2")
        assert ctx.space == "spaces/AAAA"

    def test_admin_token_mode(self, mock_migrator, mock_output_dir, _setup, tmp_path):
        mock_output_dir.return_value = str(tmp_path / "logs")

        result = self._invoke(tmp_path, auth_mode="admin_token", admin_token="tok")

        assert result.exit_code == 0, result.output
        assert mock_migrator.call_args.args[0].auth == AdminTokenAuth(token="tok")

    def test_invalid_channel_url_is_usage_error(
        self, mock_migrator, mock_output_dir, _setup, tmp_path
    ):
        result = CliRunner().invoke(
            cli,
            [
                "migrate",
                "https://mm.example.org/eng/town-square",
                "--space",
                "AAAA",
                "--creds_path",
                "creds.json",
                "--workspace_admin",
                "admin@example.com",
            ],
        )

        assert result.exit_code == 2
        assert "Invalid Mattermost URL format" in result.output
        mock_migrator.assert_not_called()

    def test_missing_credentials_file(self, mock_migrator, mock_output_dir, _setup, tmp_path):
        mock_output_dir.return_value = str(tmp_path / "logs")

        result = self._invoke(tmp_path, "--username", "u", "--password", "p", creds=False)

        assert result.exit_code == 1
        mock_migrator.assert_not_called()

    def test_run_failure_exits_nonzero(self, mock_migrator, mock_output_dir, _setup, tmp_path):
        mock_output_dir.return_value = str(tmp_path / "logs")
        mock_migrator.return_value.run.side_effect = AuthFailedError("bad login")

        result = self._invoke(tmp_path, "--username", "u", "--password", "p")

        assert result.exit_code == 1

    def test_unexpected_error_exits_nonzero(
        self, mock_migrator, mock_output_dir, _setup, tmp_path
    ):
        mock_output_dir.return_value = str(tmp_path / "logs")
        mock_migrator.return_value.run.side_effect = RuntimeError("boom")

        with patch("mattermost_migrator.cli.migrate_cmd.handle_exception") as mock_handle:
            result = self._invoke(tmp_path, "--username", "u", "--password", "p")

        assert result.exit_code == 1
        assert isinstance(mock_handle.call_args.args[0], RuntimeError)

    def test_invalid_config_exits_nonzero(
        self, mock_migrator, mock_output_dir, _setup, tmp_path
    ):
        mock_output_dir.return_value = str(tmp_path / "logs")

        result = self._invoke(
            tmp_path, "--username", "u", "--password", "p", cache_scope="forever"
        )

        assert result.exit_code == 1
        mock_migrator.assert_not_called()


# ---------------------------------------------------------------------------
# status / reset / init-config
# ---------------------------------------------------------------------------


def _seed_checkpoint(tmp_path):
    CheckpointStore(tmp_path / "checkpoints.json").save(
        ImportCheckpoint(
            space="spaces/AAAA",
            channel_id="ch1",
            team_name="eng",
            channel_name="town-square",
            last_imported_timestamp=30,
            last_imported_post_id="p3",
            total_imported=3,
        )
    )


class TestStatusCommand:
    def test_no_imports(self, tmp_path):
        config_path = _write_config(tmp_path)

        result = CliRunner().invoke(cli, ["status", "--config", str(config_path)])

        assert result.exit_code == 0
        assert "No previous imports found." in result.output

    def test_lists_imports(self, tmp_path):
        config_path = _write_config(tmp_path)
        _seed_checkpoint(tmp_path)

        result = CliRunner().invoke(cli, ["status", "--config", str(config_path)])

        assert result.exit_code == 0
        assert "eng/town-square (ch1): 3 messages" in result.output
        assert "last post p3 at 30" in result.output

    def test_space_filter(self, tmp_path):
        config_path = _write_config(tmp_path)
        _seed_checkpoint(tmp_path)

        result = CliRunner().invoke(
            cli, ["status", "--config", str(config_path), "--space", "spaces/OTHER"]
        )

        assert "No previous imports found." in result.output

    def test_corrupt_checkpoint_file(self, tmp_path):
        config_path = _write_config(tmp_path)
        (tmp_path / "checkpoints.json").write_text("{not json")

        result = CliRunner().invoke(cli, ["status", "--config", str(config_path)])

        assert result.exit_code == 1


class TestResetCommand:
    def test_removes_checkpoint(self, tmp_path):
        config_path = _write_config(tmp_path)
        _seed_checkpoint(tmp_path)

        result = CliRunner().invoke(
            cli,
            ["reset", "ch1", "--space", "spaces/AAAA", "--config", str(config_path), "--yes"],
        )

        assert result.exit_code == 0
        assert "Checkpoint for ch1 in spaces/AAAA removed." in result.output
        assert CheckpointStore(tmp_path / "checkpoints.json").load("spaces/AAAA", "ch1") is None

    def test_unknown_checkpoint(self, tmp_path):
        config_path = _write_config(tmp_path)

        result = CliRunner().invoke(
            cli,
            ["reset", "ch9", "--space", "spaces/AAAA", "--config", str(config_path), "-y"],
        )

        assert result.exit_code == 0
        assert "No checkpoint found for ch9" in result.output

    def test_declined_confirmation_keeps_checkpoint(self, tmp_path):
        config_path = _write_config(tmp_path)
        _seed_checkpoint(tmp_path)

        result = CliRunner().invoke(
            cli,
            ["reset", "ch1", "--space", "spaces/AAAA", "--config", str(config_path)],
            input="n\n",
        )

        assert result.exit_code == 0
        assert "Reset cancelled." in result.output
        assert CheckpointStore(tmp_path / "checkpoints.json").load("spaces/AAAA", "ch1")


class TestInitConfigCommand:
    def test_writes_default_config(self, tmp_path):
        output = tmp_path / "config.yaml"

        result = CliRunner().invoke(cli, ["init-config", "--output", str(output)])

        assert result.exit_code == 0
        data = yaml.safe_load(output.read_text())
        assert data["auth_mode"] == "user_credentials"
        assert data["cache_scope"] == "run"

    def test_refuses_to_overwrite(self, tmp_path):
        output = tmp_path / "config.yaml"
        output.write_text("auth_mode: admin_token\n")

        result = CliRunner().invoke(cli, ["init-config", "--output", str(output)])

        assert result.exit_code == 1
        assert output.read_text() == "auth_mode: admin_token\n"


# ---------------------------------------------------------------------------
# handle_exception
# ---------------------------------------------------------------------------


@patch("mattermost_migrator.cli.common.log_with_context")
class TestHandleException:
    def _messages(self, mock_log):
        return [c.args[1] for c in mock_log.call_args_list]

    def test_migrator_error(self, mock_log):
        handle_exception(ConfigError("bad value"))
        mock_log.assert_called_once_with(logging.ERROR, "bad value")

    def test_rate_limit_hint(self, mock_log):
        handle_exception(make_http_error(429))
        messages = self._messages(mock_log)
        assert messages[0].startswith("Rate limit exceeded")
        assert "resume" in messages[1]

    def test_server_error_hint(self, mock_log):
        handle_exception(make_http_error(503))
        assert self._messages(mock_log)[0].startswith("Server error from Google API")

    def test_permission_denied_hint(self, mock_log):
        handle_exception(
            make_http_error(403, b'{"error": {"message": "PERMISSION_DENIED: no access"}}')
        )
        messages = self._messages(mock_log)
        assert messages[0].startswith("Permission denied error")
        assert any("Domain-wide delegation" in m for m in messages)

    def test_keyboard_interrupt(self, mock_log):
        handle_exception(KeyboardInterrupt())
        messages = self._messages(mock_log)
        assert messages[0] == "Import interrupted by user."
        assert "not checkpointed" in messages[1]

    def test_file_not_found(self, mock_log):
        handle_exception(FileNotFoundError("creds.json"))
        assert self._messages(mock_log)[0].startswith("File not found")

    def test_unexpected_error_logs_traceback(self, mock_log):
        handle_exception(RuntimeError("boom"))
        mock_log.assert_called_once_with(logging.ERROR, "Import failed: boom", exc_info=True)
