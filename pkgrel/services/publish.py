"""Release publication.

absent -> created -> assets-uploaded

The lookup always precedes the create call; an existing release is only
replaced with ``--force``. Archives are built one at a time, after the
release id is known, in the order the formats were declared.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pkgrel.core.errors import ReleaseError
from pkgrel.core.result import Err, Ok, Result
from pkgrel.github.releases import ReleasesApi
from pkgrel.output.console import ConsoleProtocol, Style
from pkgrel.services.archives import build_archive, content_type_for
from pkgrel.services.metadata import PackageMetadata

__all__ = ["UploadedAsset", "create_release", "upload_archives"]


@dataclass(frozen=True, slots=True)
class UploadedAsset:
    name: str
    path: Path
    content_type: str


def create_release(
    *,
    api: ReleasesApi,
    metadata: PackageMetadata,
    tag: str,
    force: bool,
    console: ConsoleProtocol,
) -> Result[int, ReleaseError]:
    """Make sure no release exists for ``tag`` and create one.

    Returns:
        Ok(release id).
    """
    existing = api.find_release(tag)
    if isinstance(existing, Err):
        return existing

    if existing.value is not None:
        if not force:
            return Err(
                ReleaseError(
                    kind="precondition",
                    message=f"release {tag} already exists on {api.repo}",
                    hint="pass --force to delete and recreate it",
                )
            )
        console.warning(f"deleting existing release {tag} (id {existing.value})")
        deleted = api.delete_release(existing.value)
        if isinstance(deleted, Err):
            return deleted

    console.print(f"create release {tag} on {api.repo}", Style.DIM)
    return api.create_release(
        tag=tag,
        name=metadata.version,
        body=f"Release for {metadata.name}",
    )


def upload_archives(
    *,
    api: ReleasesApi,
    release_id: int,
    snapshot: Path,
    out_dir: Path,
    metadata: PackageMetadata,
    console: ConsoleProtocol,
) -> Result[list[UploadedAsset], ReleaseError]:
    uploaded: list[UploadedAsset] = []
    for suffix in metadata.archive_formats:
        built = build_archive(
            snapshot=snapshot,
            out_dir=out_dir,
            basename=metadata.basename,
            suffix=suffix,
        )
        if isinstance(built, Err):
            return built
        if built.value is None:
            console.warning(f"unsupported archive format {suffix}, skipped")
            continue

        path = built.value
        content_type = content_type_for(suffix) or "application/octet-stream"
        name = f"{metadata.basename}{suffix}"
        console.print(f"upload {name} ({content_type})", Style.DIM)
        sent = api.upload_asset(release_id, path, name=name, content_type=content_type)
        if isinstance(sent, Err):
            return sent
        uploaded.append(UploadedAsset(name=name, path=path, content_type=content_type))

    return Ok(uploaded)
