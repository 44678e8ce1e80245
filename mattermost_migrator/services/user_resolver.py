"""
User resolution logic for the Mattermost to Google Chat migration tool.

Maps Mattermost authors to Google Workspace accounts through a chain of
strategies (manual mapping, then directory lookup), verifies that the
account can be impersonated inside the target space, and caches every
outcome, misses included.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from google.auth.exceptions import RefreshError, TransportError
from googleapiclient.errors import HttpError

from mattermost_migrator.exceptions import MigratorError
from mattermost_migrator.types import IdentitySource, SourceUser, TargetIdentity
from mattermost_migrator.utils.api import get_gcp_service
from mattermost_migrator.utils.logging import log_with_context

if TYPE_CHECKING:
    from mattermost_migrator.core.config import MigrationConfig
    from mattermost_migrator.core.state import MigrationState
    from mattermost_migrator.services.directory_adapter import DirectoryAdapter
    from mattermost_migrator.services.mattermost_client import MattermostClient


class UserResolver:
    """Resolves Mattermost users to Google Workspace identities."""

    def __init__(
        self,
        *,
        config: MigrationConfig,
        state: MigrationState,
        client: MattermostClient,
        chat: Any,
        directory: DirectoryAdapter | None,
        creds_path: str,
        workspace_admin: str,
        workspace_domain: str,
        space: str,
    ) -> None:
        """Initialize with explicit dependencies.

        Args:
            config: Migration configuration.
            state: Shared mutable migration state (holds the caches).
            client: Mattermost client used for profile lookups.
            chat: Admin Google Chat API service.
            directory: Directory adapter for automatic matching, or None.
            creds_path: Path to service account credentials file.
            workspace_admin: Admin email used for unresolved authors.
            workspace_domain: Google Workspace domain for username matching.
            space: Target space a delegate must be able to read.
        """
        self.config = config
        self.state = state
        self.client = client
        self.chat = chat
        self.directory = directory
        self.creds_path = creds_path
        self.workspace_admin = workspace_admin
        self.workspace_domain = workspace_domain
        self.space = space

    # -- Source profiles ------------------------------------------------------

    def get_source_user(self, user_id: str) -> SourceUser | None:
        """Fetch a Mattermost profile once per user id.

        Failed lookups are logged and not cached, so a later message by the
        same author tries again.
        """
        if not user_id:
            return None
        cache = self.state.identities.users
        if user_id in cache:
            return cache[user_id]
        try:
            user = self.client.get_user(user_id)
        except MigratorError as e:
            log_with_context(
                logging.WARNING,
                f"Could not fetch Mattermost user {user_id}: {e}",
                user_id=user_id,
            )
            return None
        cache[user_id] = user
        return user

    # -- Strategy chain -------------------------------------------------------

    def _match_key(self, user: SourceUser) -> str | None:
        if self.config.identity_match == "email":
            return user.email
        return user.username

    def _normalize_email(self, value: str) -> str:
        """Turn a mapping value into an email, appending the domain to bare names."""
        value = value.strip()
        if "@" in value or not self.workspace_domain:
            return value
        return f"{value}@{self.workspace_domain}"

    def _from_manual_mapping(self, user: SourceUser) -> TargetIdentity | None:
        key = self._match_key(user)
        if not key:
            return None
        mapped = self.config.user_mapping.get(key)
        if not mapped:
            return None
        email = self._normalize_email(mapped)
        log_with_context(
            logging.DEBUG,
            f"Manual mapping {key} -> {email}",
            user=user.username,
        )
        return TargetIdentity(email=email, source=IdentitySource.MANUAL)

    def _candidate_email(self, user: SourceUser) -> str | None:
        if self.config.identity_match == "email":
            if not user.email:
                return None
            if self.config.email_domain_override:
                local_part = user.email.split("@")[0]
                return f"{local_part}@{self.config.email_domain_override}"
            return user.email
        if not self.workspace_domain or not user.username:
            return None
        return f"{user.username}@{self.workspace_domain}"

    def _from_directory(self, user: SourceUser) -> TargetIdentity | None:
        if not self.config.auto_match or self.directory is None:
            return None
        candidate = self._candidate_email(user)
        if not candidate:
            return None
        try:
            account = self.directory.get_user(candidate)
        except (HttpError, RefreshError, TransportError) as e:
            log_with_context(
                logging.WARNING,
                f"Directory lookup failed for {candidate}: {e}",
                user=user.username,
            )
            return None
        if not account or account.get("suspended"):
            log_with_context(
                logging.DEBUG,
                f"No active Workspace account for {candidate}",
                user=user.username,
            )
            return None
        email = account.get("primaryEmail") or candidate
        return TargetIdentity(email=email, source=IdentitySource.DIRECTORY)

    def resolve(self, user: SourceUser) -> TargetIdentity | None:
        """Resolve a Mattermost author, or return None when unresolved.

        Results are cached by Mattermost username for the cache lifetime;
        None is cached too.
        """
        cache = self.state.identities.identities
        if user.username in cache:
            return cache[user.username]

        identity = self._from_manual_mapping(user) or self._from_directory(user)
        if identity is not None and not self.can_impersonate(identity.email):
            log_with_context(
                logging.WARNING,
                f"Cannot post as {identity.email}; messages by {user.username} "
                "will be posted by the workspace admin",
                user=user.username,
            )
            identity = None

        if identity is None:
            log_with_context(
                logging.DEBUG,
                f"No Google Workspace account found for Mattermost user {user.username}",
                user=user.username,
            )

        cache[user.username] = identity
        return identity

    # -- Impersonation --------------------------------------------------------

    def can_impersonate(self, email: str) -> bool:
        self.get_delegate(email)
        return self.state.identities.valid_users.get(email, False)

    def mark_unresolved(self, user: SourceUser | None, email: str) -> None:
        """Demote an author whose delegate was refused by the Chat API."""
        identities = self.state.identities
        identities.valid_users[email] = False
        identities.chat_delegates.pop(email, None)
        if user is not None:
            identities.identities[user.username] = None

    def get_delegate(self, email: str | None) -> Any:
        """Get a Google Chat API service with user impersonation.

        Args:
            email: The Google Workspace email to impersonate.

        Returns:
            An impersonated Chat API service, or the admin service on failure.
        """
        if not email:
            return self.chat
        if email == self.workspace_admin:
            self.state.identities.valid_users[email] = True
            return self.chat

        identities = self.state.identities
        if email not in identities.valid_users:
            try:
                test_service = get_gcp_service(str(self.creds_path), email, "chat", "v1")
                test_service.spaces().get(name=self.space).execute()
                identities.valid_users[email] = True
                identities.chat_delegates[email] = test_service
            except (HttpError, RefreshError, TransportError) as e:
                error_code = e.resp.status if isinstance(e, HttpError) else "N/A"
                log_with_context(
                    logging.WARNING,
                    f"Impersonation failed for {email}, falling back to admin user. Error: {e}",
                    user=email,
                    error_code=error_code,
                )
                identities.valid_users[email] = False
                return self.chat

        return identities.chat_delegates.get(email, self.chat)
