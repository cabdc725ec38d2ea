from __future__ import annotations

import logging

import pytest

from showcase_sync.gc import (
    DocumentNotFoundError,
    WrongDocumentKindError,
    collect_document,
)
from showcase_sync.remote import RemoteError, upload_content


def _publish(backend, body_template: str, assets: list[bytes]):
    urls = [
        upload_content(backend, content, name=f"{i}.png", content_type="image/png")
        for i, content in enumerate(assets)
    ]
    body = body_template.format(*(u.url for u in urls))
    markdown = upload_content(
        backend, body.encode("utf-8"), name="post.md", content_type="text/markdown"
    )
    document_id = backend.create_markdown_message(
        "chan1", storage_id=markdown.storage_id, content="Post"
    )
    return document_id, markdown.storage_id, [u.storage_id for u in urls]


def _url(backend, storage_id: str) -> str:
    return backend.assets[storage_id]["url"]


def _deleted(backend) -> list[str]:
    return [call[1] for call in backend.calls if call[0] == "delete_file"]


def test_deletes_assets_then_markdown_then_document(backend) -> None:
    keep = upload_content(backend, b"KEEP", name="keep.png", content_type="image/png")
    document_id, md_id, asset_ids = _publish(
        backend, "![a]({0})\n![b]({1})\n![a again]({0})\n", [b"A", b"B"]
    )

    expected_urls = [_url(backend, sid) for sid in asset_ids]

    report = collect_document(backend, document_id)

    assert report.referenced == expected_urls
    assert report.deleted == asset_ids
    assert report.markdown_deleted and report.document_deleted
    assert report.degraded is None
    assert _deleted(backend) == [*asset_ids, md_id]
    assert backend.calls[-1] == ("messages:remove",)
    assert set(backend.assets) == {keep.storage_id}
    assert document_id not in backend.messages


def test_unresolvable_markdown_url_deletes_only_the_document(backend, caplog) -> None:
    document_id = backend.create_markdown_message("chan1", storage_id="gone", content="Post")

    with caplog.at_level(logging.WARNING, logger="showcase_sync"):
        report = collect_document(backend, document_id)

    assert report.degraded == "markdown-url-missing"
    assert report.document_deleted
    assert _deleted(backend) == []
    assert document_id not in backend.messages
    assert "Could not get URL" in caplog.text


def test_unfetchable_markdown_deletes_blob_and_document(backend) -> None:
    document_id, md_id, asset_ids = _publish(backend, "![a]({0})", [b"A"])
    backend.fail_fetch.add(_url(backend, md_id))

    report = collect_document(backend, document_id)

    assert report.degraded == "markdown-fetch-failed"
    assert _deleted(backend) == [md_id]
    assert report.document_deleted
    assert asset_ids[0] in backend.assets


def test_missing_document_is_fatal(backend) -> None:
    with pytest.raises(DocumentNotFoundError):
        collect_document(backend, "nope")
    assert backend.calls == []


def test_non_markdown_document_is_refused(backend) -> None:
    document_id = backend.send("chan1", "hello")

    with pytest.raises(WrongDocumentKindError, match="type: user"):
        collect_document(backend, document_id)

    assert document_id in backend.messages


def test_urls_outside_the_index_are_skipped(backend, caplog) -> None:
    stray = "https://happy-otter-123.convex.cloud/api/storage/deadbeef"
    document_id, md_id, asset_ids = _publish(backend, "![a]({0}) ![x](" + stray + ")", [b"A"])

    with caplog.at_level(logging.WARNING, logger="showcase_sync"):
        report = collect_document(backend, document_id)

    assert report.deleted == asset_ids
    assert report.skipped == [stray]
    assert report.document_deleted
    assert "No storageId found" in caplog.text


def test_failed_asset_delete_is_counted_and_run_continues(backend) -> None:
    document_id, md_id, asset_ids = _publish(backend, "![a]({0}) ![b]({1})", [b"A", b"B"])
    backend.fail_deletes.add(asset_ids[0])

    report = collect_document(backend, document_id)

    assert report.failed == [asset_ids[0]]
    assert report.deleted == [asset_ids[1]]
    assert report.markdown_deleted and report.document_deleted


def test_body_without_storage_urls_skips_the_listing(backend, monkeypatch) -> None:
    document_id, md_id, _ = _publish(backend, "plain text", [])

    def _no_listing(max_files):  # type: ignore[no-untyped-def]
        raise AssertionError("listing should not be needed")

    monkeypatch.setattr(backend, "list_recent", _no_listing)

    report = collect_document(backend, document_id)

    assert report.referenced == []
    assert _deleted(backend) == [md_id]
    assert report.document_deleted


def test_failed_asset_listing_still_removes_markdown_and_document(backend, monkeypatch, caplog) -> None:
    document_id, md_id, asset_ids = _publish(backend, "![a]({0})", [b"A"])
    referenced = _url(backend, asset_ids[0])

    def _listing_down(max_files):  # type: ignore[no-untyped-def]
        raise RemoteError("listing failed", path="storage:listRecent")

    monkeypatch.setattr(backend, "list_recent", _listing_down)

    with caplog.at_level(logging.WARNING, logger="showcase_sync"):
        report = collect_document(backend, document_id)

    assert report.skipped == [referenced]
    assert report.deleted == []
    assert _deleted(backend) == [md_id]
    assert report.markdown_deleted and report.document_deleted
    assert document_id not in backend.messages
    assert asset_ids[0] in backend.assets
    assert "Asset listing failed" in caplog.text


def test_default_listing_size_matches_settings_default(backend, settings, monkeypatch) -> None:
    document_id, _, _ = _publish(backend, "![a]({0})", [b"A"])
    seen: list[int] = []
    real_listing = backend.list_recent

    def _recording(max_files):  # type: ignore[no-untyped-def]
        seen.append(max_files)
        return real_listing(max_files)

    monkeypatch.setattr(backend, "list_recent", _recording)

    collect_document(backend, document_id)

    assert seen == [settings.asset_page_size]
