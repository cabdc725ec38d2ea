from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import click

from ..content import guess_mime_type
from .client import RemoteError, ShowcaseBackend

logger = logging.getLogger(__name__)


class UploadError(RemoteError):
    pass


@dataclass(frozen=True)
class UploadResult:
    file: str
    storage_id: str
    url: str
    content_type: str


def upload_content(
    backend: ShowcaseBackend, content: bytes, *, name: str, content_type: str
) -> UploadResult:
    """Upload ``content`` through a one-time write handle and resolve its URL."""
    try:
        upload_url = backend.generate_upload_url()
        storage_id = backend.upload_bytes(upload_url, content, content_type)
        url = backend.get_url(storage_id)
    except UploadError:
        raise
    except RemoteError as exc:
        raise UploadError(str(exc), path=name, status_code=exc.status_code) from exc
    if not url:
        raise UploadError(f"Failed to resolve URL for storageId {storage_id}", path=name)
    return UploadResult(name, storage_id, url, content_type)


def upload_file(
    backend: ShowcaseBackend, path: Path, *, name: str | None = None
) -> UploadResult:
    try:
        content = path.read_bytes()
    except OSError as exc:
        raise UploadError(f"Could not read file: {exc}", path=str(path)) from exc
    return upload_content(
        backend,
        content,
        name=name or path.name,
        content_type=guess_mime_type(path.name),
    )


def upload_files(
    backend: ShowcaseBackend, folder: Path, files: Sequence[str]
) -> list[UploadResult]:
    """
    Upload ``files`` from ``folder`` one at a time.
    A failed file is reported and left out; the rest of the batch continues.
    """
    results: list[UploadResult] = []
    total = len(files)
    for i, name in enumerate(files, 1):
        path = folder / name
        try:
            size_kb = path.stat().st_size / 1024
        except OSError:
            size_kb = 0.0
        click.echo(
            f"  [{i}/{total}] {name} ({size_kb:.1f} KB, {guess_mime_type(name)})... ",
            nl=False,
        )
        try:
            result = upload_file(backend, path, name=name)
        except UploadError as exc:
            click.echo(f"FAILED: {exc}", err=True)
            logger.warning("Upload failed for %s: %s", path, exc)
            continue
        results.append(result)
        click.echo(f"done ({result.storage_id})")
    return results


def build_asset_index(backend: ShowcaseBackend, max_files: int) -> dict[str, str]:
    """Map retrieval URL to storage id over the ``max_files`` most recent assets."""
    index: dict[str, str] = {}
    for asset in backend.list_recent(max_files):
        if asset.url and asset.storage_id:
            index[asset.url] = asset.storage_id
    if len(index) >= max_files:
        logger.warning(
            "Asset listing hit the %d-file cap; older assets will not resolve.",
            max_files,
        )
    return index
