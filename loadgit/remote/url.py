"""Parsing of git remote addresses."""

from __future__ import annotations

import re

from loadgit.errors import UnsupportedRemote
from loadgit.models.git import RemoteInfo

HTTP_PATTERN = re.compile(r"https?://([^/]+)/(.+)\.git")
SSH_PATTERN = re.compile(r"git@([^:]+):(.+)\.git")


def parse_remote_url(url: str) -> RemoteInfo:
    """Split an HTTPS or SSH remote into host and project path.

    >>> parse_remote_url("git@gitlab.com:group/project.git").repo_id
    'group/project'
    """
    for pattern in (HTTP_PATTERN, SSH_PATTERN):
        match = pattern.fullmatch(url.strip())
        if match:
            return RemoteInfo(host=match.group(1), repo_id=match.group(2))
    raise UnsupportedRemote(url)
