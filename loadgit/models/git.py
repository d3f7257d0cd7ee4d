"""Request and result models for repository loads."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class GitConfig(BaseModel):
    """A requested repository branch."""

    url: str = Field(..., description="Remote address, HTTPS or SSH form")
    branch: str | None = Field(
        default=None, description="Branch name (None = configured default branch)"
    )
    access_token: str | None = Field(default=None, description="Host API token", repr=False)

    def key(self, default_branch: str) -> tuple[str, str]:
        """Identity used for caching and deduplication.

        The access token is deliberately not part of it.
        """
        return (self.url, self.branch or default_branch)


class RemoteInfo(BaseModel):
    """Host and project path extracted from a remote URL."""

    host: str
    repo_id: str

    @property
    def tree_name(self) -> str:
        """Directory name of the extracted tree inside a cache entry."""
        return f"{self.host}_{self.repo_id}".replace("/", "_")


class ArchiveTarget(BaseModel):
    """Everything the fetcher needs to download one archive."""

    url: str = Field(..., description="Archive endpoint")
    ref: str = Field(..., description="Commit id or branch to archive")
    name: str = Field(..., description="Directory name for the extracted tree")
    archive_format: str = "zip"

    @property
    def filename(self) -> str:
        return f"{self.name}.{self.archive_format}"

    @property
    def params(self) -> dict[str, str]:
        return {"sha": self.ref}


class LoadState(str, Enum):
    """Stage of an in-flight load."""

    RESOLVING = "resolving"
    FALLBACK_RESOLVING = "fallback_resolving"
    CACHE_CHECK = "cache_check"
    FETCHING = "fetching"
    MATERIALIZING = "materializing"
    DONE = "done"


class LoadResult(BaseModel):
    """Location of a cached repository tree."""

    parent_dir: Path = Field(..., description="Cache entry root, named by commit id")
    path: Path = Field(..., description="Extracted repository tree")
    cached: bool = Field(default=False, description="Entry existed before this load")

    @property
    def commit_id(self) -> str:
        return self.parent_dir.name
