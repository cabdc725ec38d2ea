"""Scan the content root, upload what is new, and record it in the manifest."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import click

from .compose import (
    CompositionError,
    compose_document,
    files_to_upload,
    select_channel,
)
from .content import (
    IGNORED_FILES,
    FolderDiff,
    compute_diffs,
    scan_groups,
    suggest_kind,
)
from .manifest import (
    KINDS,
    Manifest,
    ManifestEntry,
    add_pending_tasks,
    load_manifest,
    mark_tasks_complete,
    merge_manifest,
    save_manifest,
)
from .prompts import Prompter
from .remote import RemoteError, ShowcaseBackend, upload_files
from .runtime import Settings

logger = logging.getLogger(__name__)


@dataclass
class GroupOutcome:
    name: str
    status: str
    document_id: str | None = None
    files: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "synced"


@dataclass
class SyncReport:
    groups: dict[str, list[str]] = field(default_factory=dict)
    diffs: list[FolderDiff] = field(default_factory=list)
    outcomes: list[GroupOutcome] = field(default_factory=list)
    manifest: Manifest = field(default_factory=dict)

    @property
    def synced(self) -> list[GroupOutcome]:
        return [o for o in self.outcomes if o.ok]


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def status_lines(
    groups: dict[str, list[str]], manifest: Manifest, diffs: list[FolderDiff]
) -> list[str]:
    by_name = {d.name: d for d in diffs}
    lines = []
    for name, files in groups.items():
        diff = by_name.get(name)
        if name not in manifest:
            lines.append(f"  + {name}  (new, {_plural(len(files), 'file')})")
        elif diff is not None:
            lines.append(f"  ~ {name}  ({_plural(len(diff.new_files), 'new file')})")
        else:
            lines.append(f"  = {name}  (synced, {_plural(len(files), 'file')})")
    return lines


def choose_kind(
    diff: FolderDiff, existing: ManifestEntry | None, prompter: Prompter
) -> str:
    if existing is not None and not diff.is_new and existing.kind:
        click.echo(f"  Using existing message type: {existing.kind}")
        return existing.kind
    suggested = suggest_kind(diff.new_files)
    choices = [
        (f"{kind} (suggested)" if kind == suggested else kind, kind) for kind in KINDS
    ]
    return prompter.choose("Message type:", choices, default=suggested)


def choose_channel(
    diff: FolderDiff,
    existing: ManifestEntry | None,
    backend: ShowcaseBackend,
    prompter: Prompter,
) -> str:
    if existing is not None and not diff.is_new and existing.channel_id:
        click.echo(f"  Using existing channel: {existing.channel_id}")
        return existing.channel_id
    return select_channel(backend, prompter)


def sync_group(
    settings: Settings,
    backend: ShowcaseBackend,
    prompter: Prompter,
    diff: FolderDiff,
    manifest: Manifest,
) -> tuple[Manifest, GroupOutcome]:
    """
    Upload and compose one group. The manifest is merged and saved only when
    the document was composed; on any failure the input manifest is returned
    unchanged.
    """
    existing = manifest.get(diff.name)
    folder = settings.content_root / diff.name
    try:
        kind = choose_kind(diff, existing, prompter)
        channel_id = choose_channel(diff, existing, backend, prompter)
    except ValueError as exc:
        click.echo(f"\n  Error: {exc}", err=True)
        return manifest, GroupOutcome(diff.name, "failed", error=str(exc))

    pending = files_to_upload(kind, diff)
    uploads = []
    if pending:
        click.echo("\nUploading files...\n")
        uploads = upload_files(backend, folder, pending)
        if not uploads:
            click.echo(
                "\nNo files were successfully uploaded. Skipping message creation.\n",
                err=True,
            )
            logger.warning("Skipped %s: every upload failed", diff.name)
            return manifest, GroupOutcome(diff.name, "skipped", error="no uploads")

    try:
        composition = compose_document(
            kind, backend, prompter, folder, diff, uploads, channel_id, existing
        )
    except (CompositionError, RemoteError) as exc:
        click.echo(f"\n  Error: {exc}", err=True)
        click.echo("  Manifest NOT updated for this folder.\n", err=True)
        logger.warning("Composition failed for %s: %s", diff.name, exc)
        return manifest, GroupOutcome(diff.name, "failed", error=str(exc))

    uploaded = list(dict.fromkeys(u.file for u in composition.uploads))
    updated = merge_manifest(
        manifest,
        diff.name,
        ManifestEntry(
            document_id=composition.document_id,
            channel_id=channel_id,
            kind=kind,
            files=frozenset(uploaded),
        ),
    )
    save_manifest(settings.manifest_path, updated)
    click.echo(f"\n  Updated {settings.manifest_path.name}")

    marked = mark_tasks_complete(settings.index_path, diff.name, uploaded)
    click.echo(f"  Marked {marked} task(s) complete in {settings.index_path.name}")
    return updated, GroupOutcome(
        diff.name, "synced", document_id=composition.document_id, files=uploaded
    )


def _pick_next(pending: list[FolderDiff], prompter: Prompter) -> FolderDiff:
    choices = [
        (f"{d.name} ({_plural(len(d.new_files), 'new file')})", d.name)
        for d in pending
    ]
    name = prompter.choose("Select folder to sync:", choices)
    return next(d for d in pending if d.name == name)


def run_sync(
    settings: Settings,
    backend: ShowcaseBackend,
    prompter: Prompter,
    *,
    sync_all: bool = False,
) -> SyncReport:
    click.echo("Scanning showcase directory...\n")
    ignored = IGNORED_FILES | {settings.manifest_path.name, settings.index_path.name}
    groups = scan_groups(settings.content_root, ignored)
    report = SyncReport(groups=groups)
    if not groups:
        click.echo(
            f"No subdirectories found in {settings.content_root.name}/.\n"
            "Add folders with files and run again.\n"
        )
        return report

    manifest = load_manifest(settings.manifest_path)
    diffs = compute_diffs(groups, manifest)
    report.diffs = diffs
    report.manifest = manifest

    click.echo(f"Found {len(groups)} subdirectory(ies):\n")
    for line in status_lines(groups, manifest, diffs):
        click.echo(line)
    click.echo()

    if not diffs:
        click.echo("Everything is synced. Nothing to do!\n")
        return report

    added = add_pending_tasks(
        settings.index_path, ((d.name, d.new_files) for d in diffs)
    )
    total = sum(len(d.new_files) for d in diffs)
    click.echo(
        f"Updated {settings.index_path.name} with {total} pending task(s)"
        f" ({added} new).\n"
    )

    pending = list(diffs)
    while pending:
        diff = pending[0] if sync_all else _pick_next(pending, prompter)
        click.echo(f"\n== {diff.name}")
        manifest, outcome = sync_group(settings, backend, prompter, diff, manifest)
        report.outcomes.append(outcome)
        pending.remove(diff)
        if not pending or sync_all:
            continue
        if outcome.ok:
            keep_going = prompter.confirm("Sync another folder?", default=True)
        else:
            keep_going = prompter.confirm("Continue with another folder?", default=False)
        if not keep_going:
            break

    report.manifest = manifest
    click.echo("\nDone!\n")
    return report
