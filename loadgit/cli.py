"""CLI commands for loadgit."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, TypeVar

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from loadgit.cache import GitCache
from loadgit.errors import LoadGitError
from loadgit.fs import dir_size
from loadgit.models.config import LoadGitSettings
from loadgit.models.git import GitConfig, LoadResult
from loadgit.remote.url import parse_remote_url

console = Console()

T = TypeVar("T")


def get_cache(cache_dir: str | None, config_file: str | None) -> GitCache:
    if config_file:
        settings = LoadGitSettings.from_yaml(Path(config_file))
        if cache_dir:
            settings = settings.model_copy(update={"cache_dir": Path(cache_dir)})
    else:
        settings = LoadGitSettings.from_env(cache_dir=Path(cache_dir) if cache_dir else None)
    return GitCache(settings)


def format_size(size: float) -> str:
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def _run(ctx: click.Context, factory: Callable[[GitCache], Awaitable[T]]) -> T:
    """Run a coroutine against the context's cache, reporting library errors."""
    cache: GitCache = ctx.obj["cache"]

    async def run() -> T:
        try:
            return await factory(cache)
        finally:
            await cache.close()

    try:
        return asyncio.run(run())
    except LoadGitError as e:
        console.print(f"[red]{e}[/red]")
        ctx.exit(1)


@click.group()
@click.option("--cache-dir", default=None, help="Cache directory (default: ./.load-git-cache)")
@click.option("--config", "config_file", default=None, type=click.Path(exists=True, dir_okay=False),
              help="YAML settings file")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def main(ctx: click.Context, cache_dir: str | None, config_file: str | None, verbose: bool) -> None:
    """loadgit - Fetch and cache GitLab branches."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    ctx.ensure_object(dict)
    ctx.obj["cache"] = get_cache(cache_dir, config_file)


@main.command()
@click.argument("url")
@click.option("--branch", "-b", default=None, help="Branch to load (default: configured default)")
@click.option("--token", "-t", default=None, envvar="LOAD_GIT_ACCESS_TOKEN", help="Access token")
@click.pass_context
def load(ctx: click.Context, url: str, branch: str | None, token: str | None) -> None:
    """Download a branch into the cache and print its location."""
    config = GitConfig(url=url, branch=branch, access_token=token)

    with console.status(f"Loading {url}..."):
        result: LoadResult = _run(ctx, lambda cache: cache.load(config))

    table = Table(title="Load Result")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Commit", result.commit_id)
    table.add_row("Parent dir", str(result.parent_dir))
    table.add_row("Path", str(result.path))
    table.add_row("Cached", "yes" if result.cached else "no")
    table.add_row("Size", format_size(dir_size(result.path)))
    console.print(table)


@main.command()
@click.argument("url")
@click.option("--branch", "-b", default=None, help="Branch to resolve")
@click.option("--token", "-t", default=None, envvar="LOAD_GIT_ACCESS_TOKEN", help="Access token")
@click.pass_context
def resolve(ctx: click.Context, url: str, branch: str | None, token: str | None) -> None:
    """Print the commit id a branch points to."""
    config = GitConfig(url=url, branch=branch, access_token=token)
    commit_id = _run(ctx, lambda cache: cache.resolve(config))
    click.echo(commit_id)


@main.command()
@click.argument("url")
@click.pass_context
def parse(ctx: click.Context, url: str) -> None:
    """Show how a remote URL is interpreted."""
    try:
        remote = parse_remote_url(url)
    except LoadGitError as e:
        console.print(f"[red]{e}[/red]")
        ctx.exit(1)

    table = Table(title="Remote")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Host", remote.host)
    table.add_row("Repository", remote.repo_id)
    table.add_row("Tree name", remote.tree_name)
    console.print(table)


if __name__ == "__main__":
    main()
