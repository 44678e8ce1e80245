"""Read-only client for the Mattermost REST API (v4).

Every call is a single request: failures are mapped onto the migrator's
exception taxonomy and never retried. The client keeps no state beyond the
base URL and the bearer token.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import requests

from mattermost_migrator.constants import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_REQUEST_TIMEOUT,
    HTTP_NOT_FOUND,
    HTTP_OK,
    MATTERMOST_API_PREFIX,
    MATTERMOST_TOKEN_HEADER,
)
from mattermost_migrator.exceptions import (
    AuthFailedError,
    NotFoundError,
    SourceTransportError,
)
from mattermost_migrator.types import (
    AttachmentRef,
    FetchResult,
    MattermostPostList,
    SourceMessage,
    SourceUser,
)
from mattermost_migrator.utils.logging import (
    log_api_request,
    log_api_response,
    log_with_context,
)


def coerce_binary(content: bytes | str) -> bytes:
    """Return attachment content as raw bytes.

    Some transports hand binary bodies back as text. Encoding that text as
    latin-1 maps every character back to exactly one byte, so nothing is lost.
    """
    if isinstance(content, str):
        return content.encode("latin-1")
    return bytes(content)


class MattermostClient:
    """Thin typed wrapper around the Mattermost REST API."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: int = DEFAULT_REQUEST_TIMEOUT,
        page_size: int = DEFAULT_PAGE_SIZE,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.page_size = page_size
        self._session = session or requests.Session()

    # -- Plumbing -------------------------------------------------------------

    @property
    def api_url(self) -> str:
        return f"{self.base_url}{MATTERMOST_API_PREFIX}"

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _get(self, path: str, **params: Any) -> requests.Response:
        """Issue one GET and return the response, whatever its status."""
        url = f"{self.api_url}{path}"
        log_api_request("GET", url, params or None)
        try:
            response = self._session.get(
                url,
                headers=self._headers(),
                params=params or None,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise SourceTransportError(f"GET {path} failed: {e}") from e
        log_api_response(response.status_code, url)
        return response

    def _get_json(self, path: str, what: str, **params: Any) -> Any:
        """GET a JSON document, mapping 404 to NotFoundError."""
        response = self._get(path, **params)
        if response.status_code == HTTP_NOT_FOUND:
            raise NotFoundError(f"{what} not found")
        if response.status_code != HTTP_OK:
            raise SourceTransportError(
                f"GET {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise SourceTransportError(f"GET {path} returned invalid JSON: {e}") from e

    # -- Authentication -------------------------------------------------------

    def login(self, username: str, password: str) -> str:
        """Log in and remember the session token.

        Raises:
            AuthFailedError: On rejected credentials, transport errors, or a
                response without a token.
        """
        url = f"{self.api_url}/users/login"
        log_api_request("POST", url, {"login_id": username, "password": password})
        try:
            response = self._session.post(
                url,
                json={"login_id": username, "password": password},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            log_with_context(logging.ERROR, f"Authentication error: {e}")
            raise AuthFailedError(
                "Failed to authenticate with Mattermost. Check your credentials."
            ) from e
        log_api_response(response.status_code, url)

        token = (
            response.headers.get(MATTERMOST_TOKEN_HEADER)
            if response.status_code == HTTP_OK
            else None
        )
        if not token:
            log_with_context(
                logging.WARNING,
                f"Mattermost login for {username} failed with HTTP {response.status_code}",
            )
            raise AuthFailedError(
                "Failed to authenticate with Mattermost. Check your credentials."
            )
        self.token = token
        return token

    # -- Teams and channels ---------------------------------------------------

    def get_team_id(self, team_name: str) -> str:
        data = self._get_json(
            f"/teams/name/{quote(team_name, safe='')}", f'Team "{team_name}"'
        )
        team_id = data.get("id") if isinstance(data, dict) else None
        if not team_id:
            raise NotFoundError(f'Team "{team_name}" not found')
        return team_id

    def get_channel_id(self, team_id: str, channel_name: str) -> str:
        data = self._get_json(
            f"/teams/{team_id}/channels/name/{quote(channel_name, safe='')}",
            f'Channel "{channel_name}"',
        )
        channel_id = data.get("id") if isinstance(data, dict) else None
        if not channel_id:
            raise NotFoundError(f'Channel "{channel_name}" not found')
        return channel_id

    # -- Posts ----------------------------------------------------------------

    @staticmethod
    def _posts_in_order(data: MattermostPostList) -> list[SourceMessage]:
        posts = data.get("posts") or {}
        return [
            SourceMessage.from_api(posts[post_id])
            for post_id in data.get("order") or []
            if post_id in posts
        ]

    def get_posts(
        self,
        channel_id: str,
        since: int | None = None,
        strict: bool = False,
    ) -> FetchResult:
        """Fetch a channel's posts, in API order (callers must sort).

        Without *since*, pages through the whole channel until a short page.
        With *since*, issues a single request and drops posts created at or
        before the watermark.

        A failed page after at least one good page stops paging and marks
        the result partial, unless *strict* is set. A failure before any page
        was read always raises.
        """
        path = f"/channels/{channel_id}/posts"

        if since:
            data = self._get_json(path, "Channel", since=since)
            posts = [p for p in self._posts_in_order(data) if p.create_at > since]
            log_with_context(
                logging.DEBUG,
                f"Fetched {len(posts)} posts since {since}",
                channel=channel_id,
            )
            return FetchResult(posts=posts)

        result = FetchResult()
        page = 0
        while True:
            try:
                data = self._get_json(path, "Channel", page=page, per_page=self.page_size)
            except (SourceTransportError, NotFoundError) as e:
                if page == 0 or strict:
                    raise
                log_with_context(
                    logging.WARNING,
                    f"Stopped paging after {page} page(s), history may be incomplete: {e}",
                    channel=channel_id,
                    page=page,
                )
                result.partial = True
                break

            order = data.get("order") or []
            result.posts.extend(self._posts_in_order(data))
            log_with_context(
                logging.DEBUG,
                f"Fetched page {page} with {len(order)} posts",
                channel=channel_id,
                page=page,
            )

            if len(order) < self.page_size:
                break
            page += 1

        return result

    # -- Users ----------------------------------------------------------------

    def get_user(self, user_id: str) -> SourceUser:
        data = self._get_json(f"/users/{user_id}", f"User {user_id}")
        return SourceUser.from_api(data)

    # -- Files ----------------------------------------------------------------

    def get_file_info(self, file_id: str) -> AttachmentRef:
        data = self._get_json(f"/files/{file_id}/info", f"File {file_id}")
        return AttachmentRef.from_api(data)

    def get_file_content(self, file_id: str) -> bytes:
        path = f"/files/{file_id}"
        response = self._get(path)
        if response.status_code == HTTP_NOT_FOUND:
            raise NotFoundError(f"File {file_id} not found")
        if response.status_code != HTTP_OK:
            raise SourceTransportError(
                f"GET {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return coerce_binary(response.content)

    def file_url(self, file_id: str) -> str:
        """Link to a file on the Mattermost server, used when transfer fails."""
        return f"{self.api_url}/files/{file_id}"
