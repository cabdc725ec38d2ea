"""Markdown image references: discovery, resolution and rewriting."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import unquote

_IMAGE_REF_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
_STORAGE_URL_RE = re.compile(
    r"https?://[^)\s]+\.convex\.cloud/api/storage/[a-f0-9-]+"
)
_REMOTE_PREFIXES = ("http://", "https://", "data:", "mailto:")


@dataclass(frozen=True)
class Reference:
    matched_text: str
    alt_text: str
    path: str

    @property
    def local_path(self) -> str:
        """The path as it names a file on disk (percent-decoded)."""
        return unquote(self.path)


@dataclass
class RewriteResult:
    text: str
    replaced: list[str] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)


def is_remote_path(path: str) -> bool:
    return path.startswith(_REMOTE_PREFIXES)


def extract_references(text: str) -> list[Reference]:
    """Return every local ``![alt](path)`` reference in document order."""
    refs: list[Reference] = []
    for match in _IMAGE_REF_RE.finditer(text):
        path = match.group(2)
        if is_remote_path(path):
            continue
        refs.append(Reference(match.group(0), match.group(1), path))
    return refs


def unique_paths(refs: Iterable[Reference]) -> list[str]:
    seen: dict[str, None] = {}
    for ref in refs:
        seen.setdefault(ref.path, None)
    return list(seen)


def resolve_local_file(base_dir: Path, ref_path: str) -> Path | None:
    """Map a reference path onto a regular file inside ``base_dir``."""
    candidate = (base_dir / unquote(ref_path)).resolve()
    base = base_dir.resolve()
    if base not in candidate.parents:
        return None
    if not candidate.is_file():
        return None
    return candidate


def rewrite_references(text: str, ref_map: Mapping[str, str]) -> RewriteResult:
    """
    Replace each ``](path)`` with ``](url)`` for paths in ``ref_map``.
    Paths without a mapping stay byte-for-byte as written.
    """
    result = RewriteResult(text=text)
    for path in unique_paths(extract_references(text)):
        url = ref_map.get(path)
        if not url:
            result.unresolved.append(path)
            continue
        result.text = result.text.replace(f"]({path})", f"]({url})")
        result.replaced.append(path)
    return result


def extract_storage_urls(text: str) -> list[str]:
    """Remote asset URLs in ``text``, deduplicated in first-seen order."""
    return list(dict.fromkeys(_STORAGE_URL_RE.findall(text)))
