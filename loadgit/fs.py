"""Filesystem helpers for cache entries and work directories."""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def remove_tree(path: Path) -> bool:
    """Best-effort recursive removal. Returns True if nothing is left."""
    if not path.exists():
        return True
    try:
        shutil.rmtree(path)
    except OSError as e:
        logger.warning(f"Failed to remove {path}: {e}")
        return False
    return True


async def remove_tree_async(path: Path) -> bool:
    return await asyncio.to_thread(remove_tree, path)


def dir_size(path: Path) -> int:
    """Total size in bytes of the files below ``path``."""
    return sum(f.stat().st_size for f in path.rglob("*") if f.is_file())
