"""Package metadata extraction.

The description file is read by the package interpreter, which prints the
fields a release needs as ``@pkgrel KEY=value`` lines. Free-text fields are
never echoed, and the prefix keeps the values out of the error-marker scan.
From those fields we take the package name and version, the archive formats
to publish and, when a download URL is declared, the GitHub repository, the
release tag and the archive basename:

    https://github.com/OWNER/REPO/releases/download/TAG/FILENAME
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from pkgrel.core.errors import ReleaseError
from pkgrel.core.result import Err, Ok, Result
from pkgrel.services.archives import SUPPORTED_SUFFIXES
from pkgrel.services.interpreter import DATA_PREFIX, InterpreterRunner, quote_string

__all__ = [
    "DEFAULT_ARCHIVE_FORMATS",
    "RELEASE_FIELDS",
    "DownloadTarget",
    "DownloadUrlError",
    "PackageMetadata",
    "extract_metadata",
    "metadata_from_fields",
    "parse_archive_formats",
    "parse_download_url",
    "parse_fields",
]

DEFAULT_ARCHIVE_FORMATS: tuple[str, ...] = (".tar.gz",)

_FIELD_LINE = re.compile(r"^([A-Z][A-Z0-9_]*)=(.*)$")

RELEASE_FIELDS: tuple[str, ...] = ("NAME", "VERSION", "ARCHIVE_FORMATS", "DOWNLOAD_URL")


def _dump_code(description: str) -> str:
    wanted = ", ".join(quote_string(f) for f in RELEASE_FIELDS)
    line = quote_string(DATA_PREFIX + "%s=%s\\n")
    return (
        f"text = fileread({quote_string(description)}); "
        f"wanted = {{{wanted}}}; "
        r"fields = regexp(text, '^([A-Za-z][\w-]*):[ \t]*([^\r\n]*)', "
        "'tokens', 'lineanchors'); "
        "for i = 1:numel(fields), "
        "key = upper(strrep(fields{i}{1}, '-', '_')); "
        f"if any(strcmp(key, wanted)), printf({line}, key, strtrim(fields{{i}}{{2}})); end, "
        "end"
    )


@dataclass(frozen=True, slots=True)
class DownloadUrlError:
    """The download URL does not have the GitHub release-asset shape."""

    url: str

    @property
    def message(self) -> str:
        return f"unexpected download URL: {self.url}"


@dataclass(frozen=True, slots=True)
class DownloadTarget:
    repository: str
    tag: str
    basename: str


@dataclass(frozen=True, slots=True)
class PackageMetadata:
    """What a release needs to know about the package.

    Attributes:
        name: Package name.
        version: Version string.
        archive_formats: Archive suffixes to publish, in declared order.
        repository: ``owner/name`` from the download URL, if declared.
        tag: Release tag from the download URL, if declared.
        basename: Archive filename prefix (name + version).
    """

    name: str
    version: str
    archive_formats: tuple[str, ...]
    repository: str | None
    tag: str | None
    basename: str


def parse_download_url(
    url: str, *, suffixes: Sequence[str] = SUPPORTED_SUFFIXES
) -> Result[DownloadTarget, DownloadUrlError]:
    """Split a release-asset URL into repository, tag and basename.

    The URL must have exactly 9 ``/``-separated segments:
    ``https:``, ``""``, ``github.com``, OWNER, REPO, ``releases``,
    ``download``, TAG, FILENAME. The basename is FILENAME without a trailing
    archive suffix, provided something is left once it is removed. A
    FILENAME without a known suffix is kept whole, so ``.../v1.2.3/pkg-1.2.3``
    gives ``pkg-1.2.3``; the version is never cut from the basename.
    """
    parts = url.split("/")
    if len(parts) != 9:
        return Err(DownloadUrlError(url))

    scheme, empty, host, owner, repo, releases, download, tag, filename = parts
    fixed = (scheme, empty, host, releases, download)
    if fixed != ("https:", "", "github.com", "releases", "download"):
        return Err(DownloadUrlError(url))
    if not all((owner, repo, tag, filename)):
        return Err(DownloadUrlError(url))

    basename = filename
    for suffix in sorted(set(suffixes), key=len, reverse=True):
        if filename.endswith(suffix) and len(filename) > len(suffix):
            basename = filename[: -len(suffix)]
            break

    return Ok(DownloadTarget(repository=f"{owner}/{repo}", tag=tag, basename=basename))


def parse_archive_formats(value: str | None) -> tuple[str, ...]:
    """Split a comma- or space-separated list; each entry gets a leading dot."""
    if not value:
        return DEFAULT_ARCHIVE_FORMATS
    formats: list[str] = []
    for item in re.split(r"[\s,]+", value.strip()):
        if not item:
            continue
        suffix = item if item.startswith(".") else f".{item}"
        if suffix not in formats:
            formats.append(suffix)
    return tuple(formats) or DEFAULT_ARCHIVE_FORMATS


def parse_fields(output: str) -> dict[str, str]:
    """Collect ``@pkgrel KEY=value`` lines; anything else the interpreter printed is ignored."""
    fields: dict[str, str] = {}
    for line in output.splitlines():
        if not line.startswith(DATA_PREFIX):
            continue
        match = _FIELD_LINE.match(line[len(DATA_PREFIX) :].strip())
        if match and match.group(1) not in fields:
            fields[match.group(1)] = match.group(2).strip()
    return fields


def metadata_from_fields(fields: Mapping[str, str]) -> Result[PackageMetadata, ReleaseError]:
    name = fields.get("NAME", "").strip()
    version = fields.get("VERSION", "").strip()
    if not name or not version:
        missing = "Name" if not name else "Version"
        return Err(
            ReleaseError(kind="precondition", message=f"package description has no {missing}")
        )

    formats = parse_archive_formats(fields.get("ARCHIVE_FORMATS"))

    url = fields.get("DOWNLOAD_URL", "").strip()
    if not url:
        return Ok(
            PackageMetadata(
                name=name,
                version=version,
                archive_formats=formats,
                repository=None,
                tag=None,
                basename=f"{name}-{version}",
            )
        )

    target = parse_download_url(url, suffixes=(*SUPPORTED_SUFFIXES, *formats))
    if isinstance(target, Err):
        return Err(
            ReleaseError(
                kind="precondition",
                message=target.error.message,
                hint="expected https://github.com/OWNER/REPO/releases/download/TAG/FILE",
            )
        )

    return Ok(
        PackageMetadata(
            name=name,
            version=version,
            archive_formats=formats,
            repository=target.value.repository,
            tag=target.value.tag,
            basename=target.value.basename,
        )
    )


def extract_metadata(
    *,
    srcdir: Path,
    description: str,
    interpreter: InterpreterRunner,
) -> Result[PackageMetadata, ReleaseError]:
    if not (srcdir / description).is_file():
        return Err(
            ReleaseError(
                kind="precondition",
                message=f"{description} not found in {srcdir}",
            )
        )

    output = interpreter.eval(
        _dump_code(description), cwd=srcdir, what="reading package metadata"
    )
    if isinstance(output, Err):
        return output

    return metadata_from_fields(parse_fields(output.value))
