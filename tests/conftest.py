"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
import io
import tarfile
import tempfile
import zipfile
from pathlib import Path
from typing import Callable, Generator

import httpx
import pytest

from loadgit.archive.fetcher import ArchiveFetcher
from loadgit.cache import GitCache
from loadgit.errors import NotFound
from loadgit.models.config import LoadGitSettings
from loadgit.models.git import ArchiveTarget
from loadgit.remote.base import RemoteHost
from loadgit.remote.url import parse_remote_url

REPO_URL = "https://git.example.com/group/project.git"

SAMPLE_FILES = {
    "README.md": b"# project\n",
    "src/main.py": b"print('hello')\n",
    "src/pkg/__init__.py": b"",
}


def build_zip(files: dict[str, bytes], top: str = "project-abc123") -> bytes:
    """Zip archive shaped like a GitLab download (one top-level dir)."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(f"{top}/", b"")
        for name, data in files.items():
            zf.writestr(f"{top}/{name}", data)
    return buffer.getvalue()


def build_tar_gz(files: dict[str, bytes], top: str = "project-abc123") -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        top_info = tarfile.TarInfo(top)
        top_info.type = tarfile.DIRTYPE
        tar.addfile(top_info)
        for name, data in files.items():
            info = tarfile.TarInfo(f"{top}/{name}")
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


class FakeRemote(RemoteHost):
    """In-memory host with call recording and optional gates per URL."""

    def __init__(
        self,
        commits: dict[tuple[str, str], str],
        listed: set[tuple[str, str]] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.commits = commits
        self.listed = set(commits) if listed is None else listed
        self.error = error
        self.gates: dict[str, asyncio.Event] = {}
        self.resolve_calls: list[tuple[str, str]] = []
        self.exists_calls: list[tuple[str, str]] = []

    def gate(self, url: str = REPO_URL) -> asyncio.Event:
        self.gates[url] = asyncio.Event()
        return self.gates[url]

    async def resolve_commit(self, url: str, branch: str, access_token: str | None = None) -> str:
        self.resolve_calls.append((url, branch))
        gate = self.gates.get(url)
        if gate is not None:
            await gate.wait()
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        try:
            return self.commits[(url, branch)]
        except KeyError:
            raise NotFound(url, branch) from None

    async def branch_exists(self, url: str, branch: str, access_token: str | None = None) -> bool:
        self.exists_calls.append((url, branch))
        await asyncio.sleep(0)
        return (url, branch) in self.listed

    def archive_target(self, url: str, ref: str) -> ArchiveTarget:
        remote = parse_remote_url(url)
        return ArchiveTarget(
            url=f"https://{remote.host}/api/v4/projects/x/repository/archive.zip",
            ref=ref,
            name=remote.tree_name,
        )


class FakeFetcher(ArchiveFetcher):
    """Writes canned archive bytes instead of downloading."""

    def __init__(self, archives: dict[str, bytes] | None = None) -> None:
        super().__init__(LoadGitSettings())
        self.archives = archives or {}
        self.default = build_zip(SAMPLE_FILES)
        self.calls: list[tuple[ArchiveTarget, Path]] = []
        self.error: Exception | None = None
        self.before_write: Callable[[ArchiveTarget, Path], None] | None = None

    async def fetch(
        self,
        target: ArchiveTarget,
        destination_dir: Path,
        access_token: str | None = None,
    ) -> Path:
        self.calls.append((target, destination_dir))
        destination_dir.mkdir(parents=True, exist_ok=True)
        await asyncio.sleep(0)
        if self.before_write is not None:
            self.before_write(target, destination_dir)
        archive_path = destination_dir / target.filename
        archive_path.write_bytes(self.archives.get(target.ref, self.default))
        if self.error is not None:
            raise self.error
        return archive_path


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def settings(temp_dir: Path) -> LoadGitSettings:
    return LoadGitSettings(cache_dir=temp_dir / "cache")


@pytest.fixture
def remote_cls() -> type[FakeRemote]:
    return FakeRemote


@pytest.fixture
def fake_remote() -> FakeRemote:
    return FakeRemote(
        {
            (REPO_URL, "main"): "abc123",
            (REPO_URL, "master"): "def456",
        }
    )


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def git_cache(settings: LoadGitSettings, fake_remote: FakeRemote, fake_fetcher: FakeFetcher) -> GitCache:
    """Cache wired to in-memory host and fetcher doubles."""
    return GitCache(settings, remote=fake_remote, fetcher=fake_fetcher)


@pytest.fixture
def zip_builder() -> Callable[..., bytes]:
    return build_zip


@pytest.fixture
def sample_zip() -> bytes:
    return build_zip(SAMPLE_FILES)


@pytest.fixture
def sample_tar_gz() -> bytes:
    return build_tar_gz(SAMPLE_FILES)


@pytest.fixture
def mock_client_factory() -> Callable[..., httpx.AsyncClient]:
    """Build an AsyncClient whose requests are answered by ``handler``."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


# Markers for test categories
def pytest_configure(config):
    config.addinivalue_line("markers", "mock: tests using mocked HTTP responses")
    config.addinivalue_line("markers", "slow: slow running tests")
