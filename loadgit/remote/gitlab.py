"""GitLab remote host.

API Documentation: https://docs.gitlab.com/ee/api/branches.html

Endpoints used:
- GET /projects/:id/repository/branches/:branch  (resolve)
- GET /projects/:id/repository/branches?search=  (existence check)
- GET /projects/:id/repository/archive.:format?sha=  (download)

Authentication: PRIVATE-TOKEN header or private_token query parameter
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from loadgit.errors import NotFound, RemoteError
from loadgit.http import (
    auth_headers,
    auth_params,
    check_status,
    client_session,
    send,
    transport_errors,
)
from loadgit.models.config import LoadGitSettings
from loadgit.models.git import ArchiveTarget, RemoteInfo
from loadgit.remote.base import RemoteHost
from loadgit.remote.url import parse_remote_url

logger = logging.getLogger(__name__)

PER_PAGE = 100


class GitLabRemote(RemoteHost):
    """Resolver for hosts exposing the GitLab v4 REST API.

    Without an explicit ``client`` every call opens and closes its own, so
    one instance can be used across separate ``asyncio.run`` calls.
    """

    def __init__(
        self,
        settings: LoadGitSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or LoadGitSettings()
        self._client = client

    async def close(self) -> None:
        """Close an explicitly passed HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def project_url(self, remote: RemoteInfo) -> str:
        """API base URL of a project."""
        project_id = quote(remote.repo_id, safe="")
        return f"https://{remote.host}{self.settings.api_prefix}/projects/{project_id}"

    async def _get(
        self,
        url: str,
        access_token: str | None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        query = {**(params or {}), **auth_params(access_token, self.settings.auth_type)}
        with transport_errors(url):
            async with client_session(self._client, self.settings.timeout) as client:
                request = client.build_request(
                    "GET",
                    url,
                    params=query,
                    headers=auth_headers(access_token, self.settings.auth_type),
                )
                return await send(client, request)

    async def resolve_commit(self, url: str, branch: str, access_token: str | None = None) -> str:
        remote = parse_remote_url(url)
        endpoint = f"{self.project_url(remote)}/repository/branches/{quote(branch, safe='')}"

        response = await self._get(endpoint, access_token)
        if response.status_code == 404:
            raise NotFound(url, branch)
        check_status(response, endpoint)

        commit_id = _commit_id(response)
        if not commit_id:
            raise RemoteError(endpoint, response.status_code, "branch payload has no commit id")

        logger.debug(f"Resolved {url}@{branch} to {commit_id}")
        return commit_id

    async def branch_exists(self, url: str, branch: str, access_token: str | None = None) -> bool:
        remote = parse_remote_url(url)
        endpoint = f"{self.project_url(remote)}/repository/branches"

        # Search matches substrings, so walk every page of candidates.
        page = "1"
        while page:
            response = await self._get(
                endpoint,
                access_token,
                params={"search": branch, "per_page": str(PER_PAGE), "page": page},
            )
            if response.status_code == 404:
                return False
            check_status(response, endpoint)

            try:
                items = response.json()
            except ValueError as e:
                raise RemoteError(endpoint, response.status_code, "invalid JSON") from e
            if not isinstance(items, list):
                return False
            if any(isinstance(item, dict) and item.get("name") == branch for item in items):
                return True
            page = response.headers.get("X-Next-Page", "")
        return False

    def archive_target(self, url: str, ref: str) -> ArchiveTarget:
        remote = parse_remote_url(url)
        fmt = self.settings.archive_format
        return ArchiveTarget(
            url=f"{self.project_url(remote)}/repository/archive.{fmt}",
            ref=ref,
            name=remote.tree_name,
            archive_format=fmt,
        )


def _commit_id(response: httpx.Response) -> str | None:
    try:
        data: Any = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    commit = data.get("commit")
    if not isinstance(commit, dict):
        return None
    commit_id = commit.get("id")
    return str(commit_id) if commit_id else None
