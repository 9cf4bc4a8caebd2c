"""Project configuration (``pkgrel.toml``).

The file is optional and lives at the root of the package being released.
Every value has a default matching the conventional layout:

    DESCRIPTION           package metadata
    inst/                 package functions (added to the load path)
    doc/make_doc.m        documentation entry point
    src/bootstrap         build-file generation script

Command-line flags win over anything set here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, expect_str, expect_table, get_str_tuple

__all__ = [
    "CONFIG_FILENAME",
    "Config",
    "ConfigError",
    "DocsConfig",
    "ExportConfig",
    "GitHubConfig",
    "InterpreterConfig",
    "PackageConfig",
    "PathsConfig",
    "ReleaseConfig",
    "WebsiteConfig",
    "load_config",
    "load_project_config",
]

CONFIG_FILENAME = "pkgrel.toml"

AuthMode = Literal["query", "header"]


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class PathsConfig:
    """Work directories, relative to the source root when not absolute."""

    tmpdir: str | None = None
    webdir: str | None = None


@dataclass(frozen=True, slots=True)
class InterpreterConfig:
    """How to run the package interpreter."""

    command: tuple[str, ...] = ("octave", "--no-gui", "--no-window-system", "--quiet", "--norc")
    eval_flag: str = "--eval"
    error_markers: tuple[str, ...] = ("error:", "parse error")
    load_path: tuple[str, ...] = ("inst",)


@dataclass(frozen=True, slots=True)
class PackageConfig:
    description: str = "DESCRIPTION"


@dataclass(frozen=True, slots=True)
class DocsConfig:
    entry: str = "doc/make_doc.m"
    script: str = "doc/build_doc.sh"
    output: str = "doc/html"
    marker: str = "index.html"


@dataclass(frozen=True, slots=True)
class ExportConfig:
    generate_script: str = "src/bootstrap"
    generate_cache: str = "autom4te.cache"
    strip: tuple[str, ...] = (".gitignore", ".gitattributes", ".gitmodules", ".mailmap")


@dataclass(frozen=True, slots=True)
class GitHubConfig:
    api_url: str = "https://api.github.com"
    upload_url: str = "https://uploads.github.com"
    auth: AuthMode = "query"
    token_git_key: str = "github.token"
    token_file: str = "github-token"


@dataclass(frozen=True, slots=True)
class WebsiteConfig:
    readme: tuple[str, ...] = ("README.md", "README")
    docs_dir: str = "doc"
    assets_dir: str = "assets"
    site_script: str = "update_site.m"
    commit_message: str = "Update {name} to {version}"


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    remote: str = "origin"


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    paths: PathsConfig = field(default_factory=PathsConfig)
    interpreter: InterpreterConfig = field(default_factory=InterpreterConfig)
    package: PackageConfig = field(default_factory=PackageConfig)
    docs: DocsConfig = field(default_factory=DocsConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    website: WebsiteConfig = field(default_factory=WebsiteConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        paths: StrDict = expect_table(data, "paths") or {}
        interp: StrDict = expect_table(data, "interpreter") or {}
        package: StrDict = expect_table(data, "package") or {}
        docs: StrDict = expect_table(data, "docs") or {}
        export: StrDict = expect_table(data, "export") or {}
        github: StrDict = expect_table(data, "github") or {}
        website: StrDict = expect_table(data, "website") or {}
        release: StrDict = expect_table(data, "release") or {}

        d_interp = InterpreterConfig()
        d_docs = DocsConfig()
        d_export = ExportConfig()
        d_github = GitHubConfig()
        d_web = WebsiteConfig()

        auth = expect_str(github, "auth") or d_github.auth
        if auth not in ("query", "header"):
            raise ValueError(f"github.auth must be 'query' or 'header', got {auth!r}")

        command = _str_tuple(interp, "command", d_interp.command)
        if not command:
            raise ValueError("interpreter.command must not be empty")

        return cls(
            paths=PathsConfig(
                tmpdir=expect_str(paths, "tmpdir"),
                webdir=expect_str(paths, "webdir"),
            ),
            interpreter=InterpreterConfig(
                command=command,
                eval_flag=expect_str(interp, "eval_flag") or d_interp.eval_flag,
                error_markers=_str_tuple(interp, "error_markers", d_interp.error_markers),
                load_path=_str_tuple(interp, "load_path", d_interp.load_path),
            ),
            package=PackageConfig(
                description=expect_str(package, "description") or PackageConfig().description,
            ),
            docs=DocsConfig(
                entry=expect_str(docs, "entry") or d_docs.entry,
                script=expect_str(docs, "script") or d_docs.script,
                output=expect_str(docs, "output") or d_docs.output,
                marker=expect_str(docs, "marker") or d_docs.marker,
            ),
            export=ExportConfig(
                generate_script=expect_str(export, "generate_script") or d_export.generate_script,
                generate_cache=expect_str(export, "generate_cache") or d_export.generate_cache,
                strip=_str_tuple(export, "strip", d_export.strip),
            ),
            github=GitHubConfig(
                api_url=(expect_str(github, "api_url") or d_github.api_url).rstrip("/"),
                upload_url=(expect_str(github, "upload_url") or d_github.upload_url).rstrip("/"),
                auth="header" if auth == "header" else "query",
                token_git_key=expect_str(github, "token_git_key") or d_github.token_git_key,
                token_file=expect_str(github, "token_file") or d_github.token_file,
            ),
            website=WebsiteConfig(
                readme=_str_tuple(website, "readme", d_web.readme),
                docs_dir=expect_str(website, "docs_dir") or d_web.docs_dir,
                assets_dir=expect_str(website, "assets_dir") or d_web.assets_dir,
                site_script=expect_str(website, "site_script") or d_web.site_script,
                commit_message=expect_str(website, "commit_message") or d_web.commit_message,
            ),
            release=ReleaseConfig(
                remote=expect_str(release, "remote") or ReleaseConfig().remote,
            ),
        )


def _str_tuple(table: StrDict, key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """An explicit list, even an empty one, replaces the default."""
    value = get_str_tuple(table, key)
    return default if value is None else value


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to the config file

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_project_config(srcdir: Path) -> Result[Config, ConfigError]:
    """Load ``pkgrel.toml`` from the source root; defaults when absent.

    A file that exists but cannot be parsed is an error, not a silent default.
    """
    path = srcdir / CONFIG_FILENAME
    if not path.exists():
        return Ok(Config())
    return load_config(path)
