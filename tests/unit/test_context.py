"""Unit tests for MigrationContext, channel URL parsing and auth selection."""

from __future__ import annotations

import dataclasses

import pytest

from mattermost_migrator.core.config import MigrationConfig
from mattermost_migrator.core.context import (
    AdminTokenAuth,
    CredentialsAuth,
    parse_channel_url,
    select_auth,
)
from mattermost_migrator.exceptions import ConfigError


class TestParseChannelUrl:
    """Tests for parse_channel_url()."""

    def test_parses_components(self):
        locator = parse_channel_url("https://mm.example.org/eng/channels/town-square")

        assert locator.base_url == "https://mm.example.org"
        assert locator.team_name == "eng"
        assert locator.channel_name == "town-square"
        assert locator.label == "eng/town-square"

    def test_trailing_slash_and_http(self):
        locator = parse_channel_url("http://localhost:8065/team/channels/dev/")
        assert locator.base_url == "http://localhost:8065"
        assert locator.channel_name == "dev"

    @pytest.mark.parametrize(
        "url",
        [
            "mm.example.org/eng/channels/dev",
            "https://mm.example.org/eng/dev",
            "https://mm.example.org/eng/channels/dev/extra",
            "ftp://mm.example.org/eng/channels/dev",
        ],
    )
    def test_rejects_malformed(self, url):
        with pytest.raises(ConfigError, match="Invalid Mattermost URL format"):
            parse_channel_url(url)


class TestSelectAuth:
    """Tests for select_auth()."""

    def test_admin_token_mode(self):
        auth = select_auth(MigrationConfig(auth_mode="admin_token", admin_token="tok"))
        assert auth == AdminTokenAuth(token="tok")

    def test_admin_token_mode_ignores_credentials(self):
        auth = select_auth(
            MigrationConfig(auth_mode="admin_token", admin_token="tok"), "alice", "pw"
        )
        assert isinstance(auth, AdminTokenAuth)

    def test_credentials_mode(self):
        auth = select_auth(MigrationConfig(), "alice", "pw")
        assert auth == CredentialsAuth(username="alice", password="pw")

    def test_credentials_mode_requires_username(self):
        with pytest.raises(ConfigError):
            select_auth(MigrationConfig(), None, "pw")

    def test_secrets_are_masked_in_repr(self):
        assert "s3cr3t-token" not in repr(AdminTokenAuth(token="s3cr3t-token"))
        assert "s3cr3t-pass" not in repr(
            CredentialsAuth(username="alice", password="s3cr3t-pass")
        )


class TestMigrationContext:
    """Tests for MigrationContext properties."""

    def test_is_frozen(self, make_ctx):
        ctx = make_ctx()
        with pytest.raises(dataclasses.FrozenInstanceError):
            ctx.space = "spaces/OTHER"  # type: ignore[misc]

    def test_source_url_defaults_to_channel_base(self, make_ctx):
        assert make_ctx().source_url == "https://mm.example.org"

    def test_source_url_override(self, make_ctx):
        ctx = make_ctx(source_url="https://internal.example.org")
        assert ctx.source_url == "https://internal.example.org"

    def test_workspace_domain_from_admin(self, make_ctx):
        assert make_ctx().workspace_domain == "example.com"

    def test_workspace_domain_override(self, make_ctx):
        assert make_ctx(workspace_domain="corp.example").workspace_domain == "corp.example"

    def test_checkpoint_path(self, make_ctx, tmp_path):
        assert make_ctx(tmp_path).checkpoint_path == tmp_path / "checkpoints.json"
