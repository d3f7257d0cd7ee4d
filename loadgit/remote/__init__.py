"""Remote hosts that resolve branches and serve archives."""

from loadgit.remote.base import RemoteHost
from loadgit.remote.gitlab import GitLabRemote
from loadgit.remote.url import parse_remote_url

__all__ = ["RemoteHost", "GitLabRemote", "parse_remote_url"]
