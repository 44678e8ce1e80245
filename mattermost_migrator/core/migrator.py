"""
Main migrator class for the Mattermost to Google Chat migration tool.

One run imports one Mattermost channel into one Google Chat space. A run
authenticates against Mattermost, resolves the channel, reads the stored
checkpoint, fetches everything newer than it, replays the posts oldest
first and finally stores the new checkpoint.
"""

from __future__ import annotations

import datetime
import logging
import time
from enum import Enum
from typing import Any

from googleapiclient.errors import HttpError
from tqdm import tqdm

from mattermost_migrator.constants import HTTP_FORBIDDEN, HTTP_NOT_FOUND
from mattermost_migrator.core.checkpoint import CheckpointStore, ImportCheckpoint
from mattermost_migrator.core.context import AdminTokenAuth, CredentialsAuth, MigrationContext
from mattermost_migrator.core.state import MigrationState
from mattermost_migrator.exceptions import AuthFailedError, MigratorError, NotFoundError
from mattermost_migrator.services.attachments import AttachmentTransfer
from mattermost_migrator.services.chat_adapter import ChatAdapter
from mattermost_migrator.services.directory_adapter import DirectoryAdapter
from mattermost_migrator.services.mattermost_client import MattermostClient
from mattermost_migrator.services.message_builder import compose_text
from mattermost_migrator.services.message_sender import send_message
from mattermost_migrator.services.notifier import ConsoleNotifier
from mattermost_migrator.services.user_resolver import UserResolver
from mattermost_migrator.types import (
    AttachmentOutcome,
    RunSummary,
    SendResult,
    SourceMessage,
    SourceUser,
    TargetIdentity,
)
from mattermost_migrator.utils.api import get_gcp_service
from mattermost_migrator.utils.logging import log_with_context


class RunPhase(str, Enum):
    """Where a run currently is. FAILED can follow any other phase."""

    IDLE = "idle"
    AUTHENTICATING = "authenticating"
    RESOLVING_CHANNEL = "resolving_channel"
    LOADING_CHECKPOINT = "loading_checkpoint"
    FETCHING = "fetching"
    SORTING = "sorting"
    EMITTING = "emitting"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


def _format_import_date(value: str | None) -> str:
    if not value:
        return "an unknown date"
    try:
        parsed = datetime.datetime.fromisoformat(value)
    except ValueError:
        return value
    return parsed.strftime("%Y-%m-%d %H:%M:%S")


class MattermostToChatMigrator:
    """Imports one Mattermost channel into one Google Chat space."""

    def __init__(
        self,
        ctx: MigrationContext,
        *,
        client: MattermostClient | None = None,
        chat: Any = None,
        directory: DirectoryAdapter | None = None,
        notifier: ConsoleNotifier | None = None,
        checkpoints: CheckpointStore | None = None,
    ) -> None:
        """Initialize the migrator.

        Collaborators that are not passed in are built from the context:
        the Mattermost client from the source URL, the Chat and Directory
        services by impersonating the workspace admin.
        """
        self.ctx = ctx
        self.config = ctx.config
        self.phase = RunPhase.IDLE
        self.state = MigrationState()

        self.client = client or MattermostClient(
            ctx.source_url,
            timeout=self.config.request_timeout,
            page_size=self.config.page_size,
        )
        creds_path = str(ctx.creds_path)
        self.chat = chat or get_gcp_service(creds_path, ctx.workspace_admin, "chat", "v1")
        if directory is None and self.config.auto_match:
            directory = DirectoryAdapter(
                get_gcp_service(creds_path, ctx.workspace_admin, "admin", "directory_v1")
            )
        self.directory = directory
        self.notifier = notifier or ConsoleNotifier()
        self.checkpoints = checkpoints or CheckpointStore(ctx.checkpoint_path)

        self.user_resolver = UserResolver(
            config=self.config,
            state=self.state,
            client=self.client,
            chat=self.chat,
            directory=self.directory,
            creds_path=creds_path,
            workspace_admin=ctx.workspace_admin,
            workspace_domain=ctx.workspace_domain,
            space=ctx.space,
        )
        self.attachments = AttachmentTransfer(self.client, ChatAdapter(self.chat), ctx.space)

    # -- Phases ---------------------------------------------------------------

    def _enter(self, phase: RunPhase) -> None:
        log_with_context(
            logging.DEBUG,
            f"Run phase: {self.phase.value} -> {phase.value}",
            channel=self.ctx.channel.label,
        )
        self.phase = phase

    def _authenticate(self) -> None:
        auth = self.ctx.auth
        if isinstance(auth, AdminTokenAuth):
            if not auth.token:
                raise AuthFailedError(
                    "Admin token not configured. Set admin_token in the config file "
                    "or use auth_mode: user_credentials."
                )
            self.client.token = auth.token
        elif isinstance(auth, CredentialsAuth):
            self.client.login(auth.username, auth.password)
        else:
            raise AuthFailedError(f"Unsupported authentication: {type(auth).__name__}")

    def _resolve_channel(self) -> str:
        team_name = self.ctx.channel.team_name
        channel_name = self.ctx.channel.channel_name
        try:
            team_id = self.client.get_team_id(team_name)
        except NotFoundError as e:
            raise NotFoundError(f'Team "{team_name}" not found.') from e
        try:
            return self.client.get_channel_id(team_id, channel_name)
        except NotFoundError as e:
            raise NotFoundError(
                f'Channel "{channel_name}" not found in team "{team_name}".'
            ) from e

    # -- Run ------------------------------------------------------------------

    def run(self) -> RunSummary:
        """Run one import and return its summary.

        Raises:
            MigratorError: On any fatal error, after notifying the operator.
        """
        self.state.reset_for_run(keep_identity_cache=self.config.cache_scope == "process")
        self.phase = RunPhase.IDLE
        try:
            return self._run()
        except MigratorError as e:
            self._enter(RunPhase.FAILED)
            self.notifier.error(f"**Error:** {e}")
            raise

    def _run(self) -> RunSummary:
        summary = self.state.progress.summary
        channel = self.ctx.channel

        self._enter(RunPhase.AUTHENTICATING)
        self.notifier.notify(
            f"Starting import from Mattermost channel **{channel.label}**..."
        )
        self._authenticate()
        self.notifier.notify("Authenticated with Mattermost.")

        self._enter(RunPhase.RESOLVING_CHANNEL)
        channel_id = self._resolve_channel()
        self.notifier.notify("Found channel. Checking for previous imports...")

        self._enter(RunPhase.LOADING_CHECKPOINT)
        previous = self.checkpoints.load(self.ctx.space, channel_id)
        since = previous.last_imported_timestamp if previous else None
        summary.incremental = previous is not None
        previous_total = previous.total_imported if previous else 0
        summary.total_imported = previous_total
        if previous:
            self.notifier.notify(
                f"Found previous import ({previous.total_imported} messages imported on "
                f"{_format_import_date(previous.last_import_date)}).\n"
                "Fetching only new messages since then..."
            )
        else:
            self.notifier.notify("No previous import found. Fetching all messages...")

        self._enter(RunPhase.FETCHING)
        fetched = self.client.get_posts(
            channel_id, since=since, strict=self.config.strict_pagination
        )
        summary.fetched = len(fetched.posts)
        summary.partial_fetch = fetched.partial
        if fetched.partial:
            self.notifier.warn(
                "**Warning:** Not every page of channel history could be fetched. "
                f"Importing the {len(fetched.posts)} messages that were retrieved."
            )

        if not fetched.posts:
            self.notifier.notify(
                "No new messages found since last import."
                if summary.incremental
                else "No messages found in the channel."
            )
            self._enter(RunPhase.DONE)
            return summary

        new_or_all = "new " if summary.incremental else ""
        self.notifier.notify(
            f"Found **{len(fetched.posts)}** {new_or_all}messages. Starting import..."
        )

        self._enter(RunPhase.SORTING)
        posts = sorted(fetched.posts, key=lambda p: p.create_at)

        self._enter(RunPhase.EMITTING)
        self._emit_all(posts)

        summary.total_imported = previous_total + summary.imported
        summary.last_imported_timestamp = self.state.progress.last_imported_timestamp
        summary.last_imported_post_id = self.state.progress.last_imported_post_id

        if summary.imported > 0:
            self._enter(RunPhase.PERSISTING)
            self._persist(channel_id, previous_total)

        self._enter(RunPhase.DONE)
        self.notifier.notify(
            "**Import complete!**\n"
            f"- Imported: {summary.imported} {new_or_all}messages\n"
            f"- Threaded replies: {summary.threaded}\n"
            f"- Errors: {summary.errors}\n"
            f"- Skipped (system messages): {summary.skipped}\n"
            f"- Total imported to this room: {summary.total_imported} messages"
        )
        log_with_context(
            logging.INFO,
            f"Import of {channel.label} finished",
            channel=channel.label,
            **summary.as_dict(),
        )
        return summary

    def _emit_all(self, posts: list[SourceMessage]) -> None:
        summary = self.state.progress.summary
        interval = self.config.progress_interval

        pbar = tqdm(
            posts,
            desc=f"Importing {self.ctx.channel.label}",
            disable=not self.ctx.show_progress,
        )
        for post in pbar:
            if post.is_system:
                summary.skipped += 1
                log_with_context(
                    logging.DEBUG,
                    f"Skipping system message {post.id} (type {post.type})",
                    post_id=post.id,
                )
                continue

            try:
                self._import_post(post)
            except Exception as e:
                summary.errors += 1
                log_with_context(
                    logging.ERROR,
                    f"Failed to import post {post.id}: {e}",
                    post_id=post.id,
                    exc_info=self.ctx.verbose,
                )
                continue

            if summary.imported % interval == 0:
                self.notifier.notify(
                    f"Progress: {summary.imported}/{len(posts)} messages imported..."
                )
            if self.config.message_delay:
                time.sleep(self.config.message_delay)

    def _import_post(self, post: SourceMessage) -> None:
        """Import a single post. Any exception means it was not imported."""
        summary = self.state.progress.summary
        thread_name = self.state.thread_for(post.root_id)
        if post.is_reply and thread_name is None:
            log_with_context(
                logging.DEBUG,
                f"Root {post.root_id} of reply {post.id} not imported in this run, "
                "posting at top level",
                post_id=post.id,
            )

        user = self.user_resolver.get_source_user(post.user_id)
        identity = self.user_resolver.resolve(user) if user is not None else None

        outcome = None
        if post.file_ids:
            outcome = self.attachments.transfer(
                post.file_ids, post_id=post.id, thread_name=thread_name
            )

        result = self._send(post, user, identity, outcome, thread_name)

        self.state.record_emitted(
            post.id,
            post.create_at,
            result.thread_name if result.message_name else None,
        )
        if thread_name is not None:
            summary.threaded += 1
        if outcome is not None:
            summary.attachments_uploaded += len(outcome.uploaded)
            summary.attachments_linked += len(outcome.fallback_links)

    def _send(
        self,
        post: SourceMessage,
        user: SourceUser | None,
        identity: TargetIdentity | None,
        outcome: AttachmentOutcome | None,
        thread_name: str | None,
    ) -> SendResult:
        """Send a composed post, reposting as the admin if the delegate is refused."""
        try:
            return send_message(
                self.user_resolver,
                self.ctx.space,
                compose_text(post, user, identity, outcome),
                identity=identity,
                thread_name=thread_name,
                post_id=post.id,
            )
        except HttpError as e:
            if identity is None or e.resp.status not in (HTTP_FORBIDDEN, HTTP_NOT_FOUND):
                raise
            log_with_context(
                logging.WARNING,
                f"Chat refused post {post.id} from {identity.email}, "
                "posting it as the workspace admin",
                post_id=post.id,
                user=identity.email,
                error_code=e.resp.status,
            )
            self.user_resolver.mark_unresolved(user, identity.email)

        return send_message(
            self.user_resolver,
            self.ctx.space,
            compose_text(post, user, None, outcome),
            thread_name=thread_name,
            post_id=post.id,
        )

    def _persist(self, channel_id: str, previous_total: int) -> None:
        progress = self.state.progress
        checkpoint = ImportCheckpoint(
            space=self.ctx.space,
            channel_id=channel_id,
            source_url=self.ctx.source_url,
            team_name=self.ctx.channel.team_name,
            channel_name=self.ctx.channel.channel_name,
            last_imported_timestamp=progress.last_imported_timestamp or 0,
            last_imported_post_id=progress.last_imported_post_id or "",
            total_imported=previous_total + progress.summary.imported,
        )
        self.checkpoints.save(checkpoint)
