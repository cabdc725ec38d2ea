from __future__ import annotations

import functools
from pathlib import Path

import click

from .prompts import ClickPrompter, ScriptedPrompter
from .runtime import (
    ConfigurationError,
    Settings,
    configure_logging,
    load_settings,
    reset_verbose_logging,
    set_verbose_logging,
)

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def common_options(func):
    @click.option(
        "--root",
        "project_root",
        type=click.Path(file_okay=False),
        default=None,
        help="Project root holding .env.local / showcase.yaml (default: cwd).",
    )
    @click.option(
        "--content-root",
        type=click.Path(file_okay=False),
        default=None,
        help="Directory whose subdirectories are synced (default: <root>/showcase).",
    )
    @click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
    @functools.wraps(func)
    def wrapper(*args, project_root, content_root, verbose, **kwargs):
        token = set_verbose_logging(verbose)
        try:
            configure_logging()
            try:
                settings = load_settings(project_root, content_root=content_root)
            except ConfigurationError as exc:
                raise click.ClickException(str(exc)) from exc
            return func(*args, settings=settings, **kwargs)
        finally:
            reset_verbose_logging(token)

    return wrapper


def _connect(settings: Settings):
    from .remote import ShowcaseBackend

    try:
        endpoint = settings.require_endpoint()
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"  Convex: {endpoint}")
    return ShowcaseBackend.connect(endpoint, timeout=settings.http_timeout)


@click.group(context_settings=CONTEXT_SETTINGS)
def cli():
    """
    Showcase sync - upload local content groups and manage their documents
    """


@cli.command("sync", context_settings=CONTEXT_SETTINGS)
@click.option(
    "--all",
    "sync_all",
    is_flag=True,
    help="Sync every pending folder in order instead of picking one at a time.",
)
@click.option(
    "--defaults",
    "--yes",
    "use_defaults",
    is_flag=True,
    help="Accept every suggested answer without prompting.",
)
@common_options
def sync_cmd(settings, sync_all, use_defaults):
    """
    Upload new files from each content folder and create or extend its message.
    """
    from .sync import run_sync

    click.echo("\nShowcase Sync\n")
    backend = _connect(settings)
    click.echo()
    prompter = ScriptedPrompter() if use_defaults else ClickPrompter()
    report = run_sync(settings, backend, prompter, sync_all=sync_all or use_defaults)
    failed = [o for o in report.outcomes if not o.ok]
    for outcome in failed:
        click.echo(f"  {outcome.name}: {outcome.status} ({outcome.error})", err=True)


@cli.command("delete", context_settings=CONTEXT_SETTINGS)
@click.argument("document_id")
@click.option(
    "--page-size",
    type=click.IntRange(min=1),
    default=None,
    help="How many recent assets to index when resolving referenced URLs.",
)
@common_options
def delete_cmd(settings, document_id, page_size):
    """
    Delete a markdown message, its markdown file and every asset it references.
    """
    from .gc import DocumentNotFoundError, WrongDocumentKindError, collect_document
    from .remote import RemoteError

    backend = _connect(settings)
    try:
        report = collect_document(
            backend,
            document_id,
            asset_page_size=page_size or settings.asset_page_size,
        )
    except (DocumentNotFoundError, WrongDocumentKindError) as exc:
        raise click.ClickException(str(exc)) from exc
    except RemoteError as exc:
        raise click.ClickException(f"Remote call failed: {exc}") from exc

    if not report.document_deleted:
        raise click.ClickException(f"Message {document_id} was not deleted.")
    click.echo("\nDone!")


@cli.command("upload-markdown", context_settings=CONTEXT_SETTINGS)
@click.argument(
    "directory", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
@click.option("--channel", "channel_id", default=None, help="Create a message in this channel.")
@click.option("--content", "title", default=None, help="Message title (default: file stem).")
@common_options
def upload_markdown_cmd(settings, directory, channel_id, title):
    """
    Upload a directory's markdown file with its referenced assets, without
    touching the manifest.
    """
    from .compose import CompositionError, pick_markdown_file, upload_markdown
    from .remote import RemoteError

    files = sorted(p.name for p in directory.iterdir() if p.is_file())
    backend = _connect(settings)
    try:
        markdown_file = pick_markdown_file(files)
        click.echo(f"\nFound markdown: {markdown_file}")
        result = upload_markdown(backend, directory, markdown_file)
    except (CompositionError, RemoteError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Markdown URL: {result.document.url}")

    if channel_id:
        click.echo(f"\nCreating markdown message in channel {channel_id}...")
        try:
            message_id = backend.create_markdown_message(
                channel_id,
                storage_id=result.document.storage_id,
                content=title or Path(markdown_file).stem,
            )
        except RemoteError as exc:
            raise click.ClickException(f"Failed to create message: {exc}") from exc
        click.echo(f"Message created: {message_id}")
    click.echo("\nDone!")


def main():
    cli()


def sync_main():
    sync_cmd(prog_name="showcase-sync")


def delete_main():
    delete_cmd(prog_name="showcase-delete")


if __name__ == "__main__":
    main()
