"""Exception types raised while resolving, fetching and caching archives."""

from __future__ import annotations


class LoadGitError(Exception):
    """Base class for all loadgit errors."""


class UnsupportedRemote(LoadGitError, ValueError):
    """The remote URL is neither an HTTPS nor an SSH git address."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Git url not supported: {url}")
        self.url = url


class NotFound(LoadGitError):
    """The requested branch does not exist on the host."""

    def __init__(self, url: str, branch: str) -> None:
        super().__init__(f"Branch not found: {branch} ({url})")
        self.url = url
        self.branch = branch


class AuthFailure(LoadGitError):
    """The host rejected the access token (or its absence)."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(f"Access denied ({status_code}): {url}")
        self.url = url
        self.status_code = status_code


class RemoteError(LoadGitError):
    """The host answered with an unexpected status or payload."""

    def __init__(self, url: str, status_code: int | None = None, detail: str | None = None) -> None:
        message = f"Remote error ({status_code}): {url}" if status_code else f"Remote error: {url}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class RemoteNotFound(RemoteError):
    """An archive download returned 404."""


class NetworkFailure(LoadGitError):
    """The request failed at the transport level."""

    def __init__(self, url: str, detail: str = "") -> None:
        super().__init__(f"Network failure for {url}: {detail}" if detail else f"Network failure for {url}")
        self.url = url


class Timeout(NetworkFailure):
    """No answer from the host within the configured timeout."""


class ExtractionFailure(LoadGitError):
    """The downloaded archive is corrupt, truncated or unsafe."""

    def __init__(self, archive: str, detail: str) -> None:
        super().__init__(f"Cannot extract {archive}: {detail}")
        self.archive = archive
