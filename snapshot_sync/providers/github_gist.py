"""
GitHub Gist API client for snapshot storage.

A snapshot is one private Gist holding a single file. The client is
stateless with respect to credentials: every call takes the token.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"
DEFAULT_TIMEOUT = 30.0
DEFAULT_UPDATE_DESCRIPTION = "Updated by Linkora"


class GistError(Exception):
    """Base exception for Gist API operations."""

    pass


class NetworkError(GistError):
    """Raised when the request could not be completed (DNS, timeout, reset)."""

    pass


class RemoteApiError(GistError):
    """Raised when the API answers with a non-2xx status or an unusable body."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class SnapshotFile:
    """A single file inside a Gist."""

    content: str
    truncated: bool = False
    raw_url: str = ""

    @classmethod
    def from_api_response(cls, data: dict) -> "SnapshotFile":
        # The API cuts content off at about 1 MB and flags the file as truncated
        return cls(
            content=data.get("content") or "",
            truncated=bool(data.get("truncated", False)),
            raw_url=data.get("raw_url") or "",
        )


@dataclass
class RemoteSnapshot:
    """Represents a Gist as returned by the API."""

    id: str
    html_url: str = ""
    description: str = ""
    files: dict[str, SnapshotFile] = field(default_factory=dict)

    @classmethod
    def from_api_response(cls, data: dict) -> "RemoteSnapshot":
        """Create RemoteSnapshot from a Gist API response."""
        if not isinstance(data, dict) or not data.get("id"):
            raise RemoteApiError("Gist response is missing an id")

        files = data.get("files") or {}
        return cls(
            id=str(data["id"]),
            html_url=data.get("html_url") or "",
            description=data.get("description") or "",
            files={
                name: SnapshotFile.from_api_response(file_data or {})
                for name, file_data in files.items()
            },
        )

    @property
    def first_file(self) -> tuple[str, SnapshotFile] | None:
        """The (filename, file) pair holding the payload, or None if empty."""
        for name, snapshot_file in self.files.items():
            return name, snapshot_file
        return None


class GistClient:
    """
    Client for the three Gist operations the sync engine needs.

    Handles headers, JSON bodies, and maps transport failures to
    NetworkError and non-2xx answers to RemoteApiError.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
    ):
        self.session = session or requests.Session()
        self.api_url = (api_url or getattr(settings, "GITHUB_API_URL", DEFAULT_API_URL)).rstrip("/")
        self.timeout = float(
            timeout if timeout is not None else getattr(settings, "SNAPSHOT_HTTP_TIMEOUT", DEFAULT_TIMEOUT)
        )

    def _headers(self, token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, token: str, body: dict | None = None) -> RemoteSnapshot:
        url = f"{self.api_url}{path}"
        response = self._send(method, url, token, body)

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteApiError(f"{method} {url} returned invalid JSON: {e}") from e

        return RemoteSnapshot.from_api_response(data)

    def _send(self, method: str, url: str, token: str, body: dict | None = None) -> requests.Response:
        try:
            response = self.session.request(
                method,
                url,
                headers=self._headers(token),
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"Gist {method} {url} failed: {e}")
            raise NetworkError(f"{method} {url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.warning(f"Gist {method} {url} failed: HTTP {response.status_code}")
            raise RemoteApiError(
                f"{method} {url} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _body(description: str, filename: str, content: str, public: bool = False) -> dict:
        return {
            "description": description,
            "public": public,
            "files": {filename: {"content": content}},
        }

    def get_snapshot(self, token: str, snapshot_id: str) -> RemoteSnapshot:
        """
        Fetch a snapshot by id.

        Raises:
            NetworkError: If the request could not be sent
            RemoteApiError: On non-2xx responses, or a truncated file
                without a raw_url
        """
        snapshot = self._request("GET", f"/gists/{snapshot_id}", token)

        for name, snapshot_file in snapshot.files.items():
            if snapshot_file.truncated:
                snapshot.files[name] = self._fetch_full_file(token, name, snapshot_file)

        return snapshot

    def _fetch_full_file(self, token: str, name: str, snapshot_file: SnapshotFile) -> SnapshotFile:
        if not snapshot_file.raw_url:
            raise RemoteApiError(f"File {name} is truncated and has no raw_url")

        logger.info(f"File {name} is truncated, fetching full content from raw_url")
        response = self._send("GET", snapshot_file.raw_url, token)
        return SnapshotFile(content=response.text, raw_url=snapshot_file.raw_url)

    def create_snapshot(
        self,
        token: str,
        description: str,
        filename: str,
        content: str,
        public: bool = False,
    ) -> RemoteSnapshot:
        """Create a new snapshot; the server assigns the id."""
        snapshot = self._request(
            "POST", "/gists", token, self._body(description, filename, content, public)
        )
        logger.info(f"Created snapshot {snapshot.id}")
        return snapshot

    def update_snapshot(
        self,
        token: str,
        snapshot_id: str,
        filename: str,
        content: str,
        description: str | None = None,
    ) -> RemoteSnapshot:
        """Replace the content of an existing snapshot."""
        # "public" is ignored by the API on update but kept for a uniform body
        snapshot = self._request(
            "PATCH",
            f"/gists/{snapshot_id}",
            token,
            self._body(description or DEFAULT_UPDATE_DESCRIPTION, filename, content),
        )
        logger.info(f"Updated snapshot {snapshot.id}")
        return snapshot
