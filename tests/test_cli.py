"""Tests for the loadgit CLI."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from loadgit import cli
from loadgit.cache import GitCache
from loadgit.errors import AuthFailure

REPO_URL = "https://git.example.com/group/project.git"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def patched_cache(monkeypatch, git_cache: GitCache) -> GitCache:
    monkeypatch.setattr(cli, "get_cache", lambda cache_dir, config_file: git_cache)
    return git_cache


class TestCli:

    def test_parse(self, runner: CliRunner):
        result = runner.invoke(cli.main, ["parse", REPO_URL])

        assert result.exit_code == 0
        assert "git.example.com_group_project" in result.output

    def test_parse_unsupported(self, runner: CliRunner):
        result = runner.invoke(cli.main, ["parse", "example.com/repo"])

        assert result.exit_code == 1
        assert "not supported" in result.output

    def test_resolve(self, runner: CliRunner, patched_cache):
        result = runner.invoke(cli.main, ["resolve", REPO_URL, "--branch", "main"])

        assert result.exit_code == 0
        assert result.output.strip() == "abc123"

    def test_load(self, runner: CliRunner, patched_cache: GitCache):
        result = runner.invoke(cli.main, ["load", REPO_URL, "-b", "main"])

        assert result.exit_code == 0
        assert "abc123" in result.output
        assert (patched_cache.cache_dir / "abc123" / "git.example.com_group_project").is_dir()

    def test_load_error(self, runner: CliRunner, patched_cache: GitCache, fake_remote):
        fake_remote.error = AuthFailure(REPO_URL, 401)

        result = runner.invoke(cli.main, ["load", REPO_URL, "-b", "main", "-t", "bad"])

        assert result.exit_code == 1
        assert "Access denied" in result.output

    def test_get_cache_uses_cache_dir_option(self, temp_dir: Path):
        cache = cli.get_cache(str(temp_dir / "c"), None)
        assert cache.cache_dir == (temp_dir / "c").resolve()

    def test_get_cache_from_yaml(self, temp_dir: Path):
        config_file = temp_dir / "loadgit.yaml"
        config_file.write_text("default_branch: trunk\n")

        cache = cli.get_cache(str(temp_dir / "c"), str(config_file))

        assert cache.settings.default_branch == "trunk"
        assert cache.cache_dir == (temp_dir / "c").resolve()

    def test_format_size(self):
        assert cli.format_size(512) == "512.0 B"
        assert cli.format_size(2048) == "2.0 KB"
