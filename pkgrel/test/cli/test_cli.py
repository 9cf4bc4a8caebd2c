from __future__ import annotations

import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

import pkgrel.cli.app as app_mod
from pkgrel import __version__
from pkgrel.core.config import Config
from pkgrel.core.errors import ReleaseError
from pkgrel.core.result import Err, Ok, Result
from pkgrel.output.console import MockConsole
from pkgrel.services.pipeline import ReleaseOptions, ReleaseSummary

runner = CliRunner()


class _FakePipeline:
    outcome: Result[ReleaseSummary, ReleaseError] = Ok(
        ReleaseSummary(
            name="pkg",
            version="1.2.3",
            tag="v1.2.3",
            repository="user/pkg",
            release_id=1,
            assets=("pkg-1.2.3.tar.gz",),
            website_committed=True,
        )
    )
    seen: list[ReleaseOptions] = []

    def __init__(self, *, options: ReleaseOptions, **_: object) -> None:
        _FakePipeline.seen.append(options)

    def run(self) -> Result[ReleaseSummary, ReleaseError]:
        return _FakePipeline.outcome


@pytest.fixture
def fake_pipeline(monkeypatch: pytest.MonkeyPatch) -> type[_FakePipeline]:
    _FakePipeline.seen = []
    monkeypatch.setattr(app_mod, "ReleasePipeline", _FakePipeline)
    return _FakePipeline


def test_help() -> None:
    result = runner.invoke(app_mod.app, ["--help"])
    assert result.exit_code == 0
    assert "--push" in result.output
    assert "--force" in result.output


def test_version() -> None:
    result = runner.invoke(app_mod.app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_success(tmp_path: Path, fake_pipeline: type[_FakePipeline]) -> None:
    result = runner.invoke(app_mod.app, ["--srcdir", str(tmp_path), "--push", "--tag", "v1.2.3"])

    assert result.exit_code == 0, result.output
    assert "released pkg 1.2.3 (v1.2.3) on user/pkg" in result.output
    options = fake_pipeline.seen[0]
    assert options.srcdir == tmp_path.resolve()
    assert options.push is True
    assert options.force is False
    assert options.tag == "v1.2.3"
    assert options.tmpdir == tmp_path.resolve().parent / f"{tmp_path.name}-release"
    assert options.webdir == tmp_path.resolve().parent / f"{tmp_path.name}-web"


def test_pipeline_failure_exits_one(
    tmp_path: Path, fake_pipeline: type[_FakePipeline], monkeypatch: pytest.MonkeyPatch
) -> None:
    failure = ReleaseError(kind="precondition", message="no GitHub token", hint="pass --token")
    monkeypatch.setattr(fake_pipeline, "outcome", Err(failure))

    result = runner.invoke(app_mod.app, ["--srcdir", str(tmp_path)])

    assert result.exit_code == 1


def test_bad_config_exits_one(tmp_path: Path, fake_pipeline: type[_FakePipeline]) -> None:
    (tmp_path / "pkgrel.toml").write_text("[github\n", encoding="utf-8")

    result = runner.invoke(app_mod.app, ["--srcdir", str(tmp_path)])

    assert result.exit_code == 1
    assert fake_pipeline.seen == []


def test_usage_error_exits_one(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "argv", ["pkgrel", "--bogus"])
    with pytest.raises(SystemExit) as exc:
        app_mod.main()
    assert exc.value.code == 1


class TestBuildOptions:
    def test_configured_dirs_relative_to_source(self, tmp_path: Path) -> None:
        config = Config.from_dict(
            {"paths": {"tmpdir": "build/rel", "webdir": "../site"}, "release": {"remote": "up"}}
        )
        options = app_mod.build_options(
            config=config,
            srcdir=tmp_path,
            tmpdir=None,
            webdir=None,
            tag=None,
            repo=None,
            token=None,
            remote=None,
            push=False,
            force=True,
        )
        assert options.tmpdir == (tmp_path / "build" / "rel").resolve()
        assert options.webdir == (tmp_path.parent / "site").resolve()
        assert options.remote == "up"
        assert options.force is True

    def test_flags_win(self, tmp_path: Path) -> None:
        config = Config.from_dict({"paths": {"tmpdir": "ignored"}})
        options = app_mod.build_options(
            config=config,
            srcdir=tmp_path,
            tmpdir=tmp_path / "t",
            webdir=tmp_path / "w",
            tag=None,
            repo="o/r",
            token="x",
            remote="fork",
            push=False,
            force=False,
        )
        assert options.tmpdir == (tmp_path / "t").resolve()
        assert options.webdir == (tmp_path / "w").resolve()
        assert options.repository == "o/r"
        assert options.remote == "fork"


def test_exit_release_prints_hint() -> None:
    import typer

    console = MockConsole()
    with pytest.raises(typer.Exit) as exc:
        app_mod.exit_release(console, ReleaseError(kind="usage", message="bad", hint="try x"))
    assert exc.value.exit_code == 1
    assert console.messages == ["error: bad", "hint: try x"]
