"""Shared test fixtures for the mattermost_migrator test suite."""

import pytest


@pytest.fixture()
def sample_users():
    """Return a list of sample Mattermost user dicts."""
    return [
        {
            "id": "u1",
            "username": "alice",
            "first_name": "Alice",
            "last_name": "Smith",
            "nickname": "",
            "email": "alice@mm.example.org",
        },
        {
            "id": "u2",
            "username": "bob",
            "first_name": "",
            "last_name": "",
            "nickname": "Bobby",
            "email": "bob@mm.example.org",
        },
        {
            "id": "u3",
            "username": "carol",
            "first_name": "Carol",
            "last_name": "",
            "nickname": "",
        },
    ]


@pytest.fixture()
def mock_config():
    """Return a config dict with all defaults populated."""
    return {
        "auth_mode": "user_credentials",
        "admin_token": "",
        "source_url": "",
        "identity_match": "username",
        "user_mapping": {},
        "auto_match": True,
        "email_domain_override": "",
        "workspace_domain": "",
        "cache_scope": "run",
        "page_size": 200,
        "request_timeout": 60,
        "strict_pagination": False,
        "message_delay": 0.1,
        "progress_interval": 50,
        "checkpoint_file": ".mattermost_import_checkpoints.json",
    }
