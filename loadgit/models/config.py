"""Process-level configuration."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Literal, Mapping

import yaml
from pydantic import BaseModel, Field

CACHE_DIR_NAME = ".load-git-cache"
DEFAULT_BRANCH = "master"

ENV_CACHE_DIR = "LOAD_GIT_CACHE_DIR"
ENV_DEFAULT_BRANCH = "LOAD_GIT_DEFAULT_BRANCH"
ENV_TIMEOUT = "LOAD_GIT_TIMEOUT"
ENV_AUTH_TYPE = "LOAD_GIT_AUTH_TYPE"


class AuthType(str, Enum):
    """How the access token is sent to the host."""

    HEADER = "header"  # PRIVATE-TOKEN header
    QUERY_PARAM = "query_param"  # private_token query parameter


def _default_cache_dir() -> Path:
    return Path.cwd() / CACHE_DIR_NAME


class LoadGitSettings(BaseModel):
    """Settings shared by every load performed through one cache."""

    cache_dir: Path = Field(
        default_factory=_default_cache_dir,
        description="Root directory holding one entry per commit id",
    )
    default_branch: str = Field(
        default=DEFAULT_BRANCH, description="Branch used when none is given or as fallback"
    )
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    auth_type: AuthType = AuthType.HEADER
    archive_format: Literal["zip", "tar.gz"] = "zip"
    api_prefix: str = "/api/v4"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> "LoadGitSettings":
        """Build settings from ``LOAD_GIT_*`` environment variables.

        Explicit keyword overrides win over the environment.
        """
        env = os.environ if environ is None else environ
        data: dict = {}
        if env.get(ENV_CACHE_DIR):
            data["cache_dir"] = Path(env[ENV_CACHE_DIR])
        if env.get(ENV_DEFAULT_BRANCH):
            data["default_branch"] = env[ENV_DEFAULT_BRANCH]
        if env.get(ENV_TIMEOUT):
            data["timeout"] = float(env[ENV_TIMEOUT])
        if env.get(ENV_AUTH_TYPE):
            data["auth_type"] = env[ENV_AUTH_TYPE]
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(data)

    @classmethod
    def from_yaml(cls, path: Path) -> "LoadGitSettings":
        """Load settings from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls.model_validate(data)

    @property
    def resolved_cache_dir(self) -> Path:
        """Absolute cache root."""
        return self.cache_dir.expanduser().resolve()
