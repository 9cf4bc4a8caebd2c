from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from pkgrel.platform.paths import clear_caches
from pkgrel.test._helpers import DESCRIPTION_TEXT, init_repo


@pytest.fixture(autouse=True)
def _isolated_home(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Iterator[Path]:
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.delenv("APPDATA", raising=False)
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    clear_caches()
    yield home
    clear_caches()


@pytest.fixture
def package_repo(tmp_path: Path) -> Path:
    """A committed package tree with DESCRIPTION and README."""
    return init_repo(
        tmp_path / "pkg",
        {
            "DESCRIPTION": DESCRIPTION_TEXT,
            "README.md": "# pkg\n",
            "inst/hello.m": "function hello ()\n  disp ('hello');\nend\n",
            ".gitignore": "*.o\n",
        },
    )
