"""Turn a group's uploaded assets into one remote document."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import click

from .content import FolderDiff, is_markdown, title_case
from .content.kinds import COVER_EXTENSIONS, extension
from .manifest import ManifestEntry
from .prompts import Prompter
from .references import (
    RewriteResult,
    extract_references,
    resolve_local_file,
    rewrite_references,
    unique_paths,
)
from .remote import (
    RemoteError,
    ShowcaseBackend,
    UploadError,
    UploadResult,
    upload_content,
    upload_file,
)

logger = logging.getLogger(__name__)

MANUAL_CHANNEL = "__manual__"
DEFAULT_ARTIST = "Unknown Artist"
DEFAULT_DURATION = 180

_LEADING_INT_RE = re.compile(r"\s*[+-]?\d+")


class CompositionError(ValueError):
    pass


@dataclass
class Composition:
    document_id: str
    uploads: list[UploadResult] = field(default_factory=list)


@dataclass
class MarkdownUpload:
    document: UploadResult
    rewrite: RewriteResult
    assets: list[UploadResult] = field(default_factory=list)


def select_channel(backend: ShowcaseBackend, prompter: Prompter) -> str:
    try:
        channels = backend.list_channels()
    except RemoteError as exc:
        logger.warning("Could not fetch channels: %s", exc)
        channels = []

    if channels:
        choices = [(ch.label, ch.channel_id) for ch in channels]
        choices.append(("[ Enter channel ID manually ]", MANUAL_CHANNEL))
        choice = prompter.choose("Select target channel:", choices)
        if choice != MANUAL_CHANNEL:
            return choice

    channel_id = prompter.prompt_text("Enter channel ID:")
    if not channel_id:
        raise CompositionError("A channel ID is required")
    return channel_id


def _split_tags(raw: str) -> list[str]:
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def compose_media(
    backend: ShowcaseBackend,
    prompter: Prompter,
    diff: FolderDiff,
    uploads: Sequence[UploadResult],
    channel_id: str,
    existing: ManifestEntry | None = None,
) -> Composition:
    image_urls = [u.url for u in uploads if u.content_type.startswith("image/")]
    if not image_urls:
        raise CompositionError("No image files among the uploads")
    skipped = len(uploads) - len(image_urls)
    if skipped:
        logger.warning("%d non-image upload(s) not attached to %s", skipped, diff.name)

    if existing is not None and existing.document_id and not diff.is_new:
        click.echo(f"\n  Appending {len(image_urls)} image(s) to existing message...")
        backend.append_media_images(existing.document_id, image_urls)
        click.echo("  Done.")
        return Composition(existing.document_id, list(uploads))

    title = prompter.prompt_text("Media title:", title_case(diff.name))
    caption = prompter.prompt_text("Caption:", f"Showcase: {title}")
    tags = _split_tags(
        prompter.prompt_text("Tags (comma-separated):", diff.name.replace("-", ", "))
    )
    external_url = prompter.prompt_text(
        "External URL (optional, press Enter to skip):", ""
    )

    click.echo(f"\n  Creating media message with {len(image_urls)} image(s)...")
    document_id = backend.create_media_direct(
        channel_id,
        title=title,
        caption=caption,
        tags=tags,
        image_urls=image_urls,
        external_url=external_url or None,
    )
    click.echo(f"  Message created: {document_id}")
    return Composition(str(document_id), list(uploads))


def _find_cover(
    backend: ShowcaseBackend,
    folder: Path,
    diff: FolderDiff,
    uploads: Sequence[UploadResult],
) -> tuple[str | None, UploadResult | None]:
    cover_file = next(
        (f for f in diff.all_files if extension(f) in COVER_EXTENSIONS), None
    )
    if cover_file is None:
        return None, None
    for upload in uploads:
        if upload.file == cover_file:
            return upload.url, None
    click.echo(f"  Uploading cover image {cover_file}... ", nl=False)
    try:
        result = upload_file(backend, folder / cover_file)
    except UploadError as exc:
        click.echo("skipped (upload failed)")
        logger.warning("Cover upload failed for %s: %s", cover_file, exc)
        return None, None
    click.echo("done")
    return result.url, result


def _parse_duration(raw: str) -> int:
    # leading integer, so "90s" reads as 90
    match = _LEADING_INT_RE.match(raw)
    if match is None:
        return DEFAULT_DURATION
    value = int(match.group(0))
    return value if value > 0 else DEFAULT_DURATION


def compose_audio(
    backend: ShowcaseBackend,
    prompter: Prompter,
    folder: Path,
    diff: FolderDiff,
    uploads: Sequence[UploadResult],
    channel_id: str,
) -> Composition:
    tracks = [u for u in uploads if u.content_type.startswith("audio/")]
    if not tracks:
        raise CompositionError("No audio files among the uploads")

    cover_url, cover_upload = _find_cover(backend, folder, diff, uploads)
    recorded = list(uploads)
    if cover_upload is not None:
        recorded.append(cover_upload)

    document_id = ""
    for track in tracks:
        stem = Path(track.file).stem
        title = prompter.prompt_text(f'Title for "{track.file}":', title_case(stem))
        artist = prompter.prompt_text("Artist:", DEFAULT_ARTIST)
        duration = _parse_duration(
            prompter.prompt_text("Duration (seconds):", str(DEFAULT_DURATION))
        )
        click.echo(f'  Creating audio message for "{title}"...')
        document_id = str(
            backend.create_audio_message(
                channel_id,
                title=title,
                artist=artist,
                duration=duration,
                storage_id=track.storage_id,
                cover_url=cover_url,
            )
        )
        click.echo(f"  Message created: {document_id}")
    return Composition(document_id, recorded)


def upload_markdown(
    backend: ShowcaseBackend,
    folder: Path,
    markdown_file: str,
    uploads: Sequence[UploadResult] = (),
) -> MarkdownUpload:
    """
    Rewrite the local references of ``markdown_file`` to remote URLs and upload
    the rewritten body. References to files not in ``uploads`` are uploaded on
    demand; missing or failed files stay as written.
    """
    try:
        text = (folder / markdown_file).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise CompositionError(f"Could not read {markdown_file}: {exc}") from exc

    refs = extract_references(text)
    paths = unique_paths(refs)
    if paths:
        click.echo(f"  Found {len(refs)} file reference(s) in {markdown_file}.")

    base = folder.resolve()
    by_name = {u.file: u for u in uploads}
    ref_map: dict[str, str] = {}
    assets: list[UploadResult] = []
    for path in paths:
        local = resolve_local_file(folder, path)
        if local is None:
            logger.warning("[SKIP] File not found: %s", path)
            continue
        name = local.relative_to(base).as_posix()
        upload = by_name.get(name)
        if upload is None:
            click.echo(f"  Uploading {name}... ", nl=False)
            try:
                upload = upload_file(backend, local, name=name)
            except UploadError as exc:
                click.echo(f"FAILED: {exc}", err=True)
                logger.warning("Upload failed for %s: %s", local, exc)
                continue
            click.echo(f"done ({upload.storage_id})")
            by_name[name] = upload
            assets.append(upload)
        ref_map[path] = upload.url

    rewrite = rewrite_references(text, ref_map)
    click.echo(
        f"  Replaced {len(rewrite.replaced)}/{len(paths)} file reference(s) in markdown."
    )
    for path in rewrite.unresolved:
        logger.warning("Unresolved reference left as written: %s", path)

    document = upload_content(
        backend,
        rewrite.text.encode("utf-8"),
        name=markdown_file,
        content_type="text/markdown",
    )
    click.echo(f"  Markdown uploaded: storageId = {document.storage_id}")
    return MarkdownUpload(document, rewrite, assets)


def pick_markdown_file(files: Sequence[str]) -> str:
    candidates = [f for f in files if is_markdown(f)]
    if not candidates:
        raise CompositionError("No markdown files among the new files")
    if len(candidates) > 1:
        logger.warning("Multiple markdown files found, using first: %s", candidates[0])
    return candidates[0]


def compose_markdown(
    backend: ShowcaseBackend,
    prompter: Prompter,
    folder: Path,
    diff: FolderDiff,
    uploads: Sequence[UploadResult],
    channel_id: str,
) -> Composition:
    markdown_file = pick_markdown_file(diff.new_files)
    result = upload_markdown(backend, folder, markdown_file, uploads)
    title = prompter.prompt_text(
        f'Title for "{markdown_file}":', title_case(Path(markdown_file).stem)
    )
    click.echo(f'  Creating markdown message for "{title}"...')
    document_id = backend.create_markdown_message(
        channel_id, storage_id=result.document.storage_id, content=title
    )
    click.echo(f"  Message created: {document_id}")
    return Composition(
        str(document_id), [*uploads, *result.assets, result.document]
    )


def compose_text(
    backend: ShowcaseBackend,
    prompter: Prompter,
    diff: FolderDiff,
    uploads: Sequence[UploadResult],
    channel_id: str,
) -> Composition:
    content = prompter.prompt_text("Message content:", title_case(diff.name))
    if not content:
        raise CompositionError("Message content cannot be empty")
    click.echo("  Creating text message...")
    document_id = backend.send(channel_id, content)
    click.echo(f"  Message created: {document_id}")
    return Composition(str(document_id), list(uploads))


def compose_document(
    kind: str,
    backend: ShowcaseBackend,
    prompter: Prompter,
    folder: Path,
    diff: FolderDiff,
    uploads: Sequence[UploadResult],
    channel_id: str,
    existing: ManifestEntry | None = None,
) -> Composition:
    if kind == "media":
        return compose_media(backend, prompter, diff, uploads, channel_id, existing)
    if kind == "audio":
        return compose_audio(backend, prompter, folder, diff, uploads, channel_id)
    if kind == "markdown":
        return compose_markdown(backend, prompter, folder, diff, uploads, channel_id)
    if kind == "text":
        return compose_text(backend, prompter, diff, uploads, channel_id)
    raise CompositionError(f"Unsupported document kind: {kind}")


def files_to_upload(kind: str, diff: FolderDiff) -> list[str]:
    """Markdown bodies are uploaded after rewriting, so they are held back here."""
    if kind == "markdown":
        return [f for f in diff.new_files if not is_markdown(f)]
    return list(diff.new_files)


__all__ = [
    "Composition",
    "CompositionError",
    "MarkdownUpload",
    "compose_audio",
    "compose_document",
    "compose_markdown",
    "compose_media",
    "compose_text",
    "files_to_upload",
    "pick_markdown_file",
    "select_channel",
    "upload_markdown",
]
