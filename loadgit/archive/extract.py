"""Archive extraction with the top-level directory stripped.

Hosting providers wrap every archive in one directory named after the
project and ref (``project-<sha>/``). Entries are written relative to that
directory so the caller controls the tree name.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import tarfile
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import IO, Callable, Iterator

from loadgit.errors import ExtractionFailure

logger = logging.getLogger(__name__)

TAR_SUFFIXES = (".tar.gz", ".tgz", ".tar")

ArchiveEntry = tuple[str, Callable[[], IO[bytes]]]


def strip_top_level(name: str) -> PurePosixPath | None:
    """Drop the leading path segment. None if nothing remains."""
    parts = [p for p in PurePosixPath(name).parts if p not in ("", "/")]
    if len(parts) < 2:
        return None
    return PurePosixPath(*parts[1:])


def _zip_entries(archive: zipfile.ZipFile) -> Iterator[ArchiveEntry]:
    for info in archive.infolist():
        if info.is_dir():
            continue
        yield info.filename, lambda info=info: archive.open(info)


def _tar_entries(archive: tarfile.TarFile) -> Iterator[ArchiveEntry]:
    for member in archive:
        # Only regular files; links and directories are skipped.
        if not member.isfile():
            continue
        yield member.name, lambda member=member: archive.extractfile(member)


def _write_entries(entries: Iterator[ArchiveEntry], target_dir: Path, archive_path: Path) -> int:
    root = target_dir.resolve()
    count = 0
    for name, opener in entries:
        relative = strip_top_level(name)
        if relative is None:
            continue
        out_path = (root / relative).resolve()
        if not out_path.is_relative_to(root):
            raise ExtractionFailure(str(archive_path), f"entry escapes target: {name}")

        out_path.parent.mkdir(parents=True, exist_ok=True)
        with opener() as src, open(out_path, "wb") as dst:
            shutil.copyfileobj(src, dst)
        count += 1
    return count


def extract_archive(archive_path: Path, target_dir: Path) -> Path:
    """Extract a zip or tar archive into ``target_dir``.

    Returns ``target_dir`` once every file has been written and closed.
    """
    target_dir.mkdir(parents=True, exist_ok=True)
    try:
        if archive_path.name.endswith(TAR_SUFFIXES):
            with tarfile.open(archive_path, "r:*") as tar:
                count = _write_entries(_tar_entries(tar), target_dir, archive_path)
        else:
            with zipfile.ZipFile(archive_path, "r") as zf:
                count = _write_entries(_zip_entries(zf), target_dir, archive_path)
    except ExtractionFailure:
        raise
    except (zipfile.BadZipFile, tarfile.TarError, EOFError, zlib.error, OSError) as e:
        raise ExtractionFailure(str(archive_path), str(e) or type(e).__name__) from e

    logger.debug(f"Extracted {count} files from {archive_path.name} into {target_dir}")
    return target_dir


async def extract_archive_async(archive_path: Path, target_dir: Path) -> Path:
    """Run :func:`extract_archive` in a worker thread."""
    return await asyncio.to_thread(extract_archive, archive_path, target_dir)
