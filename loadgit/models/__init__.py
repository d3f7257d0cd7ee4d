"""Data models for loadgit."""

from loadgit.models.config import AuthType, LoadGitSettings
from loadgit.models.git import (
    ArchiveTarget,
    GitConfig,
    LoadResult,
    LoadState,
    RemoteInfo,
)

__all__ = [
    # Request / result
    "GitConfig",
    "LoadResult",
    "LoadState",
    # Remote
    "RemoteInfo",
    "ArchiveTarget",
    # Settings
    "AuthType",
    "LoadGitSettings",
]
