"""Archive download and extraction."""

from loadgit.archive.extract import extract_archive, extract_archive_async
from loadgit.archive.fetcher import ArchiveFetcher

__all__ = ["ArchiveFetcher", "extract_archive", "extract_archive_async"]
