from __future__ import annotations

from pathlib import Path

import pytest

from showcase_sync.remote import Channel, RemoteError, StoredAsset
from showcase_sync.runtime import Settings

DEPLOYMENT = "https://happy-otter-123.convex.cloud"


class FakeBackend:
    """In-memory stand-in for ShowcaseBackend."""

    def __init__(
        self,
        *,
        fail_contents: set[bytes] | None = None,
        channels: list[Channel] | None = None,
    ) -> None:
        self.base_url = DEPLOYMENT
        self.fail_contents = set(fail_contents or ())
        self.fail_deletes: set[str] = set()
        self.fail_fetch: set[str] = set()
        self.fail_mutations: set[str] = set()
        self.channels = (
            [Channel("chan1", "showcase", "Portfolio")] if channels is None else channels
        )
        self.assets: dict[str, dict] = {}
        self.messages: dict[str, dict] = {}
        self.calls: list[tuple] = []
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    def _mutate(self, name: str) -> None:
        self.calls.append((name,))
        if name in self.fail_mutations:
            raise RemoteError("mutation failed", path=name)

    # storage

    def generate_upload_url(self) -> str:
        return f"{DEPLOYMENT}/api/storage/upload?token={self._next()}"

    def upload_bytes(self, upload_url: str, content: bytes, content_type: str) -> str:
        if content in self.fail_contents:
            raise RemoteError("Upload failed: HTTP 500", path="upload", status_code=500)
        n = self._next()
        storage_id = f"{n:08x}-0000-4000-8000-{n:012x}"
        self.assets[storage_id] = {
            "content": content,
            "content_type": content_type,
            "url": f"{DEPLOYMENT}/api/storage/{storage_id}",
            "created": n,
        }
        return storage_id

    def get_url(self, storage_id: str) -> str | None:
        asset = self.assets.get(storage_id)
        return asset["url"] if asset else None

    def delete_file(self, storage_id: str) -> None:
        self.calls.append(("delete_file", storage_id))
        if storage_id in self.fail_deletes:
            raise RemoteError("delete failed", path="storage:deleteFile")
        self.assets.pop(storage_id, None)

    def list_recent(self, max_files: int) -> list[StoredAsset]:
        ordered = sorted(self.assets.items(), key=lambda kv: -kv[1]["created"])
        return [
            StoredAsset(sid, a["url"], a["content_type"], len(a["content"]), a["created"])
            for sid, a in ordered[:max_files]
        ]

    def fetch_text(self, url: str) -> str:
        if url in self.fail_fetch:
            raise RemoteError("HTTP 404", path=url, status_code=404)
        for asset in self.assets.values():
            if asset["url"] == url:
                return asset["content"].decode("utf-8")
        raise RemoteError("HTTP 404", path=url, status_code=404)

    def url_of(self, content: bytes) -> str:
        for asset in self.assets.values():
            if asset["content"] == content:
                return asset["url"]
        raise KeyError(content)

    # channels / messages

    def list_channels(self) -> list[Channel]:
        return list(self.channels)

    def _insert(self, doc: dict) -> str:
        message_id = f"msg{self._next()}"
        self.messages[message_id] = doc
        return message_id

    def get_message(self, message_id: str):
        return self.messages.get(message_id)

    def remove_message(self, message_id: str) -> None:
        self._mutate("messages:remove")
        self.messages.pop(message_id, None)

    def send(self, channel_id: str, content: str) -> str:
        self._mutate("messages:send")
        return self._insert({"type": "user", "channelId": channel_id, "content": content})

    def create_media_direct(self, channel_id, *, title, caption, tags, image_urls, external_url=None):
        self._mutate("messages:createMediaDirect")
        return self._insert(
            {
                "type": "media",
                "channelId": channel_id,
                "content": title,
                "media": {
                    "title": title,
                    "caption": caption,
                    "tags": tags,
                    "externalUrl": external_url,
                    "images": list(image_urls),
                },
            }
        )

    def append_media_images(self, message_id: str, image_urls: list[str]) -> str:
        self._mutate("messages:appendMediaImages")
        self.messages[message_id]["media"]["images"].extend(image_urls)
        return message_id

    def create_audio_message(self, channel_id, *, title, artist, duration, storage_id, cover_url=None):
        self._mutate("messages:createAudioMessage")
        return self._insert(
            {
                "type": "audio",
                "channelId": channel_id,
                "content": title,
                "audio": {
                    "title": title,
                    "artist": artist,
                    "duration": duration,
                    "storageId": storage_id,
                    "cover": cover_url,
                },
            }
        )

    def create_markdown_message(self, channel_id, *, storage_id, content=None):
        self._mutate("messages:createMarkdownMessage")
        return self._insert(
            {
                "type": "markdown",
                "channelId": channel_id,
                "content": content,
                "markdown": {"storageId": storage_id},
            }
        )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    content = tmp_path / "showcase"
    return Settings(
        project_root=tmp_path,
        content_root=content,
        manifest_path=content / "manifest.json",
        index_path=content / "index.md",
        convex_url=DEPLOYMENT,
    )


def make_group(root: Path, name: str, files: dict[str, bytes | str]) -> Path:
    folder = root / name
    folder.mkdir(parents=True, exist_ok=True)
    for filename, content in files.items():
        path = folder / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            path.write_text(content, encoding="utf-8")
        else:
            path.write_bytes(content)
    return folder


@pytest.fixture(name="make_group")
def make_group_fixture():
    return make_group


@pytest.fixture
def backend_factory():
    return FakeBackend
