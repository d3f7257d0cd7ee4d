"""loadgit - Fetch GitLab branch archives into a commit-addressed local cache."""

from loadgit.cache import GitCache, get_default_cache, load, reset_default_cache
from loadgit.errors import (
    AuthFailure,
    ExtractionFailure,
    LoadGitError,
    NetworkFailure,
    NotFound,
    RemoteError,
    RemoteNotFound,
    Timeout,
    UnsupportedRemote,
)
from loadgit.models import GitConfig, LoadGitSettings, LoadResult

__version__ = "0.1.0"
__all__ = [
    "GitCache",
    "GitConfig",
    "LoadGitSettings",
    "LoadResult",
    "load",
    "get_default_cache",
    "reset_default_cache",
    # Errors
    "LoadGitError",
    "UnsupportedRemote",
    "NotFound",
    "AuthFailure",
    "RemoteError",
    "RemoteNotFound",
    "NetworkFailure",
    "Timeout",
    "ExtractionFailure",
]
