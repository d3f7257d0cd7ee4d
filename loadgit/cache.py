"""Commit-addressed cache of extracted repository trees.

A load resolves the branch to a commit id, returns the existing
``<cache_dir>/<commit_id>/<tree>`` when there is one, and otherwise downloads
and extracts the archive into a private work directory that is renamed into
place in one step. Concurrent loads of the same ``(url, branch)`` share a
single task.
"""

from __future__ import annotations

import asyncio
import errno
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from loadgit.archive.extract import extract_archive_async
from loadgit.archive.fetcher import ArchiveFetcher
from loadgit.errors import NotFound
from loadgit.fs import remove_tree, remove_tree_async
from loadgit.models.config import LoadGitSettings
from loadgit.models.git import GitConfig, LoadResult, LoadState
from loadgit.remote.base import RemoteHost
from loadgit.remote.gitlab import GitLabRemote

logger = logging.getLogger(__name__)

TEMP_PREFIX = "temp-"

RequestKey = tuple[str, str]


@dataclass
class InFlightRequest:
    """A running load that later callers for the same key attach to."""

    key: RequestKey
    task: asyncio.Task[LoadResult]
    state: LoadState = LoadState.RESOLVING


class GitCache:
    """Loads branches into the on-disk cache, one task per key at a time."""

    def __init__(
        self,
        settings: LoadGitSettings | None = None,
        remote: RemoteHost | None = None,
        fetcher: ArchiveFetcher | None = None,
    ) -> None:
        self.settings = settings or LoadGitSettings.from_env()
        self.cache_dir = self.settings.resolved_cache_dir
        self.remote = remote or GitLabRemote(self.settings)
        self.fetcher = fetcher or ArchiveFetcher(self.settings)
        self._in_flight: dict[RequestKey, InFlightRequest] = {}

    @property
    def in_flight(self) -> dict[RequestKey, LoadState]:
        """Current stage of every running load."""
        return {key: request.state for key, request in self._in_flight.items()}

    async def load(self, config: GitConfig) -> LoadResult:
        """Return the cached tree for ``config``, fetching it if needed.

        Callers arriving while a load for the same key is running get that
        load's result or exception. Cancelling a caller does not cancel the
        shared load.
        """
        key = config.key(self.settings.default_branch)
        request = self._in_flight.get(key)
        if request is None:
            task = asyncio.get_running_loop().create_task(self._run(key, config))
            request = InFlightRequest(key=key, task=task)
            self._in_flight[key] = request
        else:
            logger.debug(f"Joining in-flight load of {key[0]}@{key[1]}")
        return await asyncio.shield(request.task)

    async def resolve(self, config: GitConfig) -> str:
        """Resolve the branch to a commit id, falling back to the default branch."""
        _, branch = config.key(self.settings.default_branch)
        return await self._resolve(config.url, branch, config.access_token, None)

    async def close(self) -> None:
        await self.remote.close()
        await self.fetcher.close()

    def entry_path(self, commit_id: str) -> Path:
        return self.cache_dir / commit_id

    def _set_state(self, key: RequestKey, state: LoadState) -> None:
        request = self._in_flight.get(key)
        if request is not None:
            request.state = state
        logger.debug(f"{key[0]}@{key[1]}: {state.value}")

    async def _run(self, key: RequestKey, config: GitConfig) -> LoadResult:
        try:
            return await self._load(key, config)
        finally:
            self._set_state(key, LoadState.DONE)
            request = self._in_flight.get(key)
            if request is not None and request.task is asyncio.current_task():
                del self._in_flight[key]

    async def _load(self, key: RequestKey, config: GitConfig) -> LoadResult:
        url, branch = key
        token = config.access_token

        commit_id = await self._resolve(url, branch, token, key)
        target = self.remote.archive_target(url, commit_id)
        parent_dir = self.entry_path(commit_id)
        path = parent_dir / target.name

        self._set_state(key, LoadState.CACHE_CHECK)
        if await asyncio.to_thread(path.exists):
            logger.debug(f"Cache hit for {url}@{branch}: {path}")
            return LoadResult(parent_dir=parent_dir, path=path, cached=True)

        work_dir = self.cache_dir / f"{TEMP_PREFIX}{uuid4().hex}"
        try:
            self._set_state(key, LoadState.FETCHING)
            archive_path = await self.fetcher.fetch(target, work_dir, token)

            self._set_state(key, LoadState.MATERIALIZING)
            await extract_archive_async(archive_path, work_dir / target.name)
            await asyncio.to_thread(archive_path.unlink)
            await asyncio.to_thread(self._promote, work_dir, parent_dir, target.name)
        except BaseException:
            if not await remove_tree_async(work_dir):
                logger.warning(f"Work directory left behind after failed load: {work_dir}")
            raise

        return LoadResult(parent_dir=parent_dir, path=path)

    async def _resolve(
        self,
        url: str,
        branch: str,
        token: str | None,
        key: RequestKey | None,
    ) -> str:
        try:
            return await self.remote.resolve_commit(url, branch, token)
        except NotFound:
            default_branch = self.settings.default_branch
            if branch == default_branch:
                raise
            if await self.remote.branch_exists(url, branch, token):
                # Host lists the branch but cannot resolve it.
                raise
            if key is not None:
                self._set_state(key, LoadState.FALLBACK_RESOLVING)
            logger.info(f"Branch {branch} not found on {url}, falling back to {default_branch}")
            return await self.remote.resolve_commit(url, default_branch, token)

    def _promote(self, work_dir: Path, parent_dir: Path, name: str) -> None:
        """Rename the finished work directory to its commit-id path.

        When the commit entry already exists (another repository at the same
        commit, or another process) only the tree is renamed into it. A tree
        that is already in place is kept and ours is dropped.
        """
        if not parent_dir.exists() and _rename(work_dir, parent_dir):
            logger.info(f"Cached {parent_dir.name} at {parent_dir}")
            return

        path = parent_dir / name
        if path.exists():
            logger.warning(f"Cache entry {path} appeared during load, discarding copy")
        elif _rename(work_dir / name, path):
            logger.info(f"Cached {name} in existing entry {parent_dir.name}")
        else:
            logger.warning(f"Lost rename race for cache entry {path}, discarding copy")
        remove_tree(work_dir)


def _rename(source: Path, destination: Path) -> bool:
    """Atomic rename. False if ``destination`` was created by someone else."""
    try:
        os.rename(source, destination)
    except OSError as e:
        if e.errno not in (errno.EEXIST, errno.ENOTEMPTY) and not destination.exists():
            raise
        return False
    return True


_default_cache: GitCache | None = None


def get_default_cache() -> GitCache:
    """Process-wide cache configured from the environment."""
    global _default_cache
    if _default_cache is None:
        _default_cache = GitCache(LoadGitSettings.from_env())
    return _default_cache


def reset_default_cache() -> None:
    """Forget the process-wide cache (next call rebuilds it)."""
    global _default_cache
    _default_cache = None


async def load(
    config: GitConfig | str,
    branch: str | None = None,
    access_token: str | None = None,
) -> LoadResult:
    """Load a branch through the process-wide cache.

    Accepts either a ``GitConfig`` or a remote URL plus optional branch and
    token.
    """
    if isinstance(config, str):
        config = GitConfig(url=config, branch=branch, access_token=access_token)
    return await get_default_cache().load(config)
