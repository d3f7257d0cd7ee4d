"""Streaming archive downloads."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import httpx

from loadgit.errors import RemoteNotFound
from loadgit.fs import remove_tree_async
from loadgit.http import (
    auth_headers,
    auth_params,
    check_status,
    client_session,
    send,
    transport_errors,
)
from loadgit.models.config import LoadGitSettings
from loadgit.models.git import ArchiveTarget

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class ArchiveFetcher:
    """Downloads archives to disk without buffering them in memory."""

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

    async def fetch(
        self,
        target: ArchiveTarget,
        destination_dir: Path,
        access_token: str | None = None,
    ) -> Path:
        """Download ``target`` into ``destination_dir`` and return the file path.

        The destination directory is created first and removed again if the
        download fails for any reason.
        """
        await asyncio.to_thread(destination_dir.mkdir, parents=True, exist_ok=True)
        archive_path = destination_dir / target.filename

        params = {**target.params, **auth_params(access_token, self.settings.auth_type)}
        headers = auth_headers(access_token, self.settings.auth_type)

        try:
            with transport_errors(target.url):
                async with client_session(self._client, self.settings.timeout) as client:
                    request = client.build_request(
                        "GET", target.url, params=params, headers=headers
                    )
                    response = await send(client, request, stream=True)
                    try:
                        if response.status_code == 404:
                            raise RemoteNotFound(target.url, 404)
                        check_status(response, target.url)

                        size = 0
                        with open(archive_path, "wb") as f:
                            async for chunk in response.aiter_bytes(CHUNK_SIZE):
                                f.write(chunk)
                                size += len(chunk)
                    finally:
                        await response.aclose()
        except BaseException:
            await remove_tree_async(destination_dir)
            raise

        logger.info(f"Downloaded {target.name}@{target.ref} ({size} bytes)")
        return archive_path
