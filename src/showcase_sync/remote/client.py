from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests

logger = logging.getLogger(__name__)

USER_AGENT = "showcase-sync"


class RemoteError(RuntimeError):
    def __init__(
        self, message: str, *, path: str | None = None, status_code: int | None = None
    ):
        self.path = path
        self.status_code = status_code
        if path:
            message = f"{message} ({path})"
        super().__init__(message)


@dataclass(frozen=True)
class StoredAsset:
    storage_id: str
    url: str | None
    content_type: str | None = None
    size: int | None = None
    creation_time: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StoredAsset":
        return cls(
            storage_id=str(data.get("_id") or data.get("storageId") or ""),
            url=data.get("url"),
            content_type=data.get("contentType"),
            size=data.get("size"),
            creation_time=data.get("_creationTime"),
        )


@dataclass(frozen=True)
class Channel:
    channel_id: str
    name: str
    server_name: str

    @property
    def label(self) -> str:
        return f"#{self.name} ({self.server_name})"


class ConvexClient:
    """Blocking client for the deployment's HTTP function API."""

    def __init__(self, base_url: str, *, timeout: float | None = None) -> None:
        self.base_url = base_url.strip().rstrip("/")
        self.timeout = timeout

    def _call(self, endpoint: str, path: str, args: dict[str, Any]) -> Any:
        url = f"{self.base_url}/api/{endpoint}"
        logger.debug("%s %s %s", endpoint, path, sorted(args))
        try:
            response = requests.post(
                url,
                json={"path": path, "args": args, "format": "json"},
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise RemoteError(f"{type(exc).__name__}: {exc}", path=path) from exc

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not isinstance(payload, dict):
            if response.status_code >= 400:
                raise RemoteError(
                    f"HTTP {response.status_code}",
                    path=path,
                    status_code=response.status_code,
                )
            raise RemoteError("Response was not a JSON object", path=path)

        if payload.get("status") == "success":
            return payload.get("value")
        message = payload.get("errorMessage") or f"HTTP {response.status_code}"
        raise RemoteError(str(message), path=path, status_code=response.status_code)

    def query(self, path: str, args: dict[str, Any] | None = None) -> Any:
        return self._call("query", path, args or {})

    def mutation(self, path: str, args: dict[str, Any] | None = None) -> Any:
        return self._call("mutation", path, args or {})


def _drop_none(args: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in args.items() if value is not None}


class ShowcaseBackend:
    """The remote functions and raw transfers the sync tooling relies on."""

    def __init__(self, client: ConvexClient) -> None:
        self.client = client

    @classmethod
    def connect(cls, base_url: str, *, timeout: float | None = None) -> "ShowcaseBackend":
        return cls(ConvexClient(base_url, timeout=timeout))

    @property
    def base_url(self) -> str:
        return self.client.base_url

    # storage

    def generate_upload_url(self) -> str:
        url = self.client.mutation("storage:generateUploadUrl")
        if not isinstance(url, str) or not url:
            raise RemoteError("No upload URL returned", path="storage:generateUploadUrl")
        return url

    def get_url(self, storage_id: str) -> str | None:
        return self.client.query("storage:getUrl", {"storageId": storage_id})

    def delete_file(self, storage_id: str) -> None:
        self.client.mutation("storage:deleteFile", {"storageId": storage_id})

    def list_recent(self, max_files: int) -> list[StoredAsset]:
        rows = self.client.query("storage:listRecent", {"maxFiles": max_files}) or []
        return [StoredAsset.from_dict(row) for row in rows if isinstance(row, dict)]

    def upload_bytes(self, upload_url: str, content: bytes, content_type: str) -> str:
        try:
            response = requests.post(
                upload_url,
                data=content,
                headers={"Content-Type": content_type, "User-Agent": USER_AGENT},
                timeout=self.client.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise RemoteError(
                f"Upload failed: HTTP {status}", path="upload", status_code=status
            ) from exc
        except (requests.RequestException, ValueError) as exc:
            raise RemoteError(f"Upload failed: {exc}", path="upload") from exc
        storage_id = payload.get("storageId") if isinstance(payload, dict) else None
        if not storage_id:
            raise RemoteError("Upload response had no storageId", path="upload")
        return str(storage_id)

    def fetch_text(self, url: str) -> str:
        try:
            response = requests.get(
                url, headers={"User-Agent": USER_AGENT}, timeout=self.client.timeout
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise RemoteError(f"HTTP {status}", path=url, status_code=status) from exc
        except requests.RequestException as exc:
            raise RemoteError(f"{type(exc).__name__}: {exc}", path=url) from exc
        response.encoding = response.encoding or "utf-8"
        return response.text

    # channels

    def list_channels(self) -> list[Channel]:
        rows = self.client.query("channels:listAll") or []
        return [
            Channel(
                channel_id=str(row.get("_id") or row.get("channelId") or ""),
                name=str(row.get("name") or ""),
                server_name=str(row.get("serverName") or ""),
            )
            for row in rows
            if isinstance(row, dict)
        ]

    # messages

    def get_message(self, message_id: str) -> dict[str, Any] | None:
        return self.client.query("messages:getById", {"messageId": message_id})

    def remove_message(self, message_id: str) -> None:
        self.client.mutation("messages:remove", {"messageId": message_id})

    def send(self, channel_id: str, content: str) -> str:
        return self.client.mutation(
            "messages:send", {"channelId": channel_id, "content": content}
        )

    def create_media_direct(
        self,
        channel_id: str,
        *,
        title: str,
        caption: str,
        tags: list[str],
        image_urls: list[str],
        external_url: str | None = None,
    ) -> str:
        return self.client.mutation(
            "messages:createMediaDirect",
            _drop_none(
                {
                    "channelId": channel_id,
                    "title": title,
                    "caption": caption,
                    "tags": tags,
                    "externalUrl": external_url or None,
                    "imageUrls": image_urls,
                }
            ),
        )

    def append_media_images(self, message_id: str, image_urls: list[str]) -> str:
        return self.client.mutation(
            "messages:appendMediaImages",
            {"messageId": message_id, "imageUrls": image_urls},
        )

    def create_audio_message(
        self,
        channel_id: str,
        *,
        title: str,
        artist: str,
        duration: int,
        storage_id: str,
        cover_url: str | None = None,
    ) -> str:
        return self.client.mutation(
            "messages:createAudioMessage",
            _drop_none(
                {
                    "channelId": channel_id,
                    "title": title,
                    "artist": artist,
                    "duration": duration,
                    "storageId": storage_id,
                    "coverUrl": cover_url,
                }
            ),
        )

    def create_markdown_message(
        self, channel_id: str, *, storage_id: str, content: str | None = None
    ) -> str:
        return self.client.mutation(
            "messages:createMarkdownMessage",
            _drop_none(
                {"channelId": channel_id, "storageId": storage_id, "content": content}
            ),
        )
