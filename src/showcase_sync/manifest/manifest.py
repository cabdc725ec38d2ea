from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Union

logger = logging.getLogger(__name__)

KINDS = ("media", "audio", "markdown", "text")

_LEGACY_KEYS = {
    "convexMessageId": "documentId",
    "messageType": "kind",
}
_LEGACY_KINDS = {"user": "text", "bot": "text"}


@dataclass(frozen=True)
class ManifestEntry:
    document_id: str
    channel_id: str
    kind: str
    files: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ManifestEntry":
        if not isinstance(data, dict):
            raise ValueError("Manifest entry must be a mapping")
        values = dict(data)
        for legacy, key in _LEGACY_KEYS.items():
            if legacy in values and key not in values:
                values[key] = values[legacy]

        files = values.get("files", [])
        if not isinstance(files, list) or not all(isinstance(f, str) for f in files):
            raise ValueError("Manifest entry 'files' must be a list of strings")

        kind = str(values.get("kind") or "media")
        kind = _LEGACY_KINDS.get(kind, kind)
        if kind not in KINDS:
            raise ValueError(f"Unknown document kind: {kind!r}")

        return cls(
            document_id=str(values.get("documentId") or ""),
            channel_id=str(values.get("channelId") or ""),
            kind=kind,
            files=frozenset(files),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "documentId": self.document_id,
            "channelId": self.channel_id,
            "kind": self.kind,
            "files": sorted(self.files),
        }


Manifest = Dict[str, ManifestEntry]


def parse_manifest(raw: str) -> Manifest:
    data = json.loads(raw) if raw.strip() else {}
    if not isinstance(data, dict):
        raise ValueError("Manifest must be a JSON object keyed by group name")
    return {str(name): ManifestEntry.from_dict(entry) for name, entry in data.items()}


def load_manifest(path: Union[str, Path]) -> Manifest:
    """
    Read the manifest at ``path``.
    A missing file is an empty manifest; so is an unreadable or malformed one,
    which is reported as a warning rather than aborting the run.
    """
    path = Path(path)
    if not path.exists():
        return {}
    try:
        return parse_manifest(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        logger.warning("Could not parse %s (%s); starting fresh.", path, exc)
        return {}


def merge_manifest(
    existing: Manifest, group_name: str, entry: ManifestEntry
) -> Manifest:
    """
    Return a new manifest with ``entry`` merged in for ``group_name``.
    Metadata is last-write-wins; the file ledger is the union of both sides.
    """
    prev = existing.get(group_name)
    files = entry.files if prev is None else prev.files | entry.files
    merged = dict(existing)
    merged[group_name] = ManifestEntry(
        document_id=entry.document_id,
        channel_id=entry.channel_id,
        kind=entry.kind,
        files=frozenset(files),
    )
    return merged


def dump_manifest(manifest: Manifest) -> str:
    data = {name: entry.to_dict() for name, entry in sorted(manifest.items())}
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def save_manifest(path: Union[str, Path], manifest: Manifest) -> None:
    """Write the manifest atomically via temp file + rename."""
    path = Path(path)
    content = dump_manifest(manifest).encode("utf-8")
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
        os.replace(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise
