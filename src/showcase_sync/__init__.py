from pathlib import Path


def sync(
    project_root: str | Path | None = None,
    *,
    content_root: str | Path | None = None,
    answers: list[str | bool] | None = None,
    sync_all: bool = True,
):
    from .prompts import ScriptedPrompter
    from .remote import ShowcaseBackend
    from .runtime import load_settings
    from .sync import run_sync

    settings = load_settings(project_root, content_root=content_root)
    backend = ShowcaseBackend.connect(
        settings.require_endpoint(), timeout=settings.http_timeout
    )
    return run_sync(settings, backend, ScriptedPrompter(answers), sync_all=sync_all)


def delete(
    document_id: str,
    *,
    project_root: str | Path | None = None,
    asset_page_size: int | None = None,
):
    from .gc import collect_document
    from .remote import ShowcaseBackend
    from .runtime import load_settings

    settings = load_settings(project_root)
    backend = ShowcaseBackend.connect(
        settings.require_endpoint(), timeout=settings.http_timeout
    )
    return collect_document(
        backend,
        document_id,
        asset_page_size=asset_page_size or settings.asset_page_size,
    )


__all__ = [
    "delete",
    "sync",
]
