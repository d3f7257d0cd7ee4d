"""Base remote host interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from loadgit.models.git import ArchiveTarget


class RemoteHost(ABC):
    """Abstract base class for hosts that serve branches and archives."""

    @abstractmethod
    async def resolve_commit(self, url: str, branch: str, access_token: str | None = None) -> str:
        """Return the commit id the branch currently points to.

        Raises ``NotFound`` when the branch does not exist.
        """
        ...

    @abstractmethod
    async def branch_exists(self, url: str, branch: str, access_token: str | None = None) -> bool:
        """Check whether the branch is listed by the host. Never raises ``NotFound``."""
        ...

    @abstractmethod
    def archive_target(self, url: str, ref: str) -> ArchiveTarget:
        """Describe where to download an archive of ``ref``. No network access."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        pass
