"""Delete a markdown document together with every asset its body references.

Steps, strictly in order:
  1. fetch the document (missing or non-markdown documents are fatal)
  2. resolve the markdown blob's URL (unresolvable: delete the document only)
  3. fetch the markdown body (failure: delete the blob and the document only)
  4. delete each referenced asset found in the recent-asset index
     (a failed listing leaves every referenced asset in place)
  5. delete the markdown blob, then the document

Deletions are best-effort: a failure is logged and counted, never rolled back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import click

from .references import extract_storage_urls
from .remote import RemoteError, ShowcaseBackend, build_asset_index
from .runtime import DEFAULT_ASSET_PAGE_SIZE

logger = logging.getLogger(__name__)


class DocumentNotFoundError(LookupError):
    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(f'Message "{document_id}" not found')


class WrongDocumentKindError(ValueError):
    def __init__(self, document_id: str, kind: str | None):
        self.document_id = document_id
        self.kind = kind
        super().__init__(
            f'Message "{document_id}" is not a markdown message (type: {kind})'
        )


@dataclass
class CollectionReport:
    document_id: str
    markdown_storage_id: str
    referenced: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    markdown_deleted: bool = False
    document_deleted: bool = False
    degraded: str | None = None


def _markdown_storage_id(document_id: str, document: dict[str, Any]) -> str:
    kind = document.get("type")
    markdown = document.get("markdown") or {}
    storage_id = markdown.get("storageId") if isinstance(markdown, dict) else None
    if kind != "markdown" or not storage_id:
        raise WrongDocumentKindError(document_id, kind)
    return str(storage_id)


def _try_delete_file(backend: ShowcaseBackend, storage_id: str, label: str) -> bool:
    click.echo(f"  Deleting {label} {storage_id}... ", nl=False)
    try:
        backend.delete_file(storage_id)
    except RemoteError as exc:
        click.echo(f"FAILED: {exc}", err=True)
        logger.warning("Could not delete %s %s: %s", label, storage_id, exc)
        return False
    click.echo("done")
    return True


def _try_remove_document(backend: ShowcaseBackend, document_id: str) -> bool:
    click.echo(f"  Deleting message {document_id}... ", nl=False)
    try:
        backend.remove_message(document_id)
    except RemoteError as exc:
        click.echo(f"FAILED: {exc}", err=True)
        logger.warning("Could not delete message %s: %s", document_id, exc)
        return False
    click.echo("done")
    return True


def collect_document(
    backend: ShowcaseBackend,
    document_id: str,
    *,
    asset_page_size: int = DEFAULT_ASSET_PAGE_SIZE,
) -> CollectionReport:
    click.echo(f"\nFetching message: {document_id}")
    document = backend.get_message(document_id)
    if not document:
        raise DocumentNotFoundError(document_id)
    md_storage_id = _markdown_storage_id(document_id, document)
    click.echo(f"Message found: type=markdown, storageId={md_storage_id}")
    if document.get("content"):
        click.echo(f'Content: "{document["content"]}"')

    report = CollectionReport(document_id, md_storage_id)

    try:
        md_url = backend.get_url(md_storage_id)
    except RemoteError as exc:
        logger.warning("URL lookup failed for %s: %s", md_storage_id, exc)
        md_url = None
    if not md_url:
        logger.warning(
            "Could not get URL for markdown storageId %s; deleting the message "
            "without cleaning up assets.",
            md_storage_id,
        )
        report.degraded = "markdown-url-missing"
        report.document_deleted = _try_remove_document(backend, document_id)
        return report

    click.echo(f"Fetching markdown content from: {md_url}")
    try:
        body = backend.fetch_text(md_url)
    except RemoteError as exc:
        logger.warning(
            "Failed to fetch markdown content (%s); deleting the markdown file "
            "and message only.",
            exc,
        )
        report.degraded = "markdown-fetch-failed"
        report.markdown_deleted = _try_delete_file(backend, md_storage_id, "markdown file")
        report.document_deleted = _try_remove_document(backend, document_id)
        return report

    report.referenced = extract_storage_urls(body)
    click.echo(f"\nFound {len(report.referenced)} storage URL(s) in markdown content.")

    if report.referenced:
        try:
            index = build_asset_index(backend, asset_page_size)
        except RemoteError as exc:
            logger.warning(
                "Asset listing failed (%s); referenced assets left in place.", exc
            )
            index = {}
        for url in report.referenced:
            storage_id = index.get(url)
            if storage_id is None:
                logger.warning("[SKIP] No storageId found for URL: %s", url)
                report.skipped.append(url)
                continue
            if _try_delete_file(backend, storage_id, "asset"):
                report.deleted.append(storage_id)
            else:
                report.failed.append(storage_id)

    click.echo(
        f"\nDeleted {len(report.deleted)}/{len(report.referenced)} asset file(s)."
    )
    if report.failed or report.skipped:
        click.echo(
            f"  {len(report.failed)} failed, {len(report.skipped)} unresolved.",
            err=True,
        )

    report.markdown_deleted = _try_delete_file(backend, md_storage_id, "markdown file")
    report.document_deleted = _try_remove_document(backend, document_id)
    return report
