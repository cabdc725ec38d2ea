from __future__ import annotations

import os
import re
from collections import Counter
from collections.abc import Iterable

from ..manifest import KINDS

DEFAULT_KIND = "media"
OCTET_STREAM = "application/octet-stream"

MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".heic": "image/heic",
    ".heif": "image/heif",
    ".bmp": "image/bmp",
    ".ico": "image/x-icon",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".flac": "audio/flac",
    ".md": "text/markdown",
    ".txt": "text/plain",
    ".json": "application/json",
    ".pdf": "application/pdf",
}

# one vote per file; extensions missing here do not vote
KIND_BY_EXTENSION = {
    ".png": "media",
    ".jpg": "media",
    ".jpeg": "media",
    ".gif": "media",
    ".webp": "media",
    ".svg": "media",
    ".bmp": "media",
    ".heic": "media",
    ".mp3": "audio",
    ".wav": "audio",
    ".ogg": "audio",
    ".flac": "audio",
    ".md": "markdown",
}

COVER_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".webp"})

_WORD_START_RE = re.compile(r"\b\w", re.ASCII)


def extension(filename: str) -> str:
    return os.path.splitext(filename)[1].lower()


def guess_mime_type(filename: str) -> str:
    return MIME_TYPES.get(extension(filename), OCTET_STREAM)


def kind_for_file(filename: str) -> str | None:
    return KIND_BY_EXTENSION.get(extension(filename))


def is_markdown(filename: str) -> bool:
    return kind_for_file(filename) == "markdown"


def score_kinds(files: Iterable[str]) -> dict[str, int]:
    scores = dict.fromkeys(KINDS, 0)
    scores.update(Counter(k for k in map(kind_for_file, files) if k is not None))
    return scores


def suggest_kind(files: Iterable[str]) -> str:
    """
    Suggest a document kind from the group's file extensions.
    The single highest tally wins; ties and empty tallies fall back to media.
    """
    scores = score_kinds(files)
    best = max(scores.values())
    leaders = [kind for kind, score in scores.items() if score == best]
    if best == 0 or len(leaders) > 1:
        return DEFAULT_KIND
    return leaders[0]


def title_case(name: str) -> str:
    return _WORD_START_RE.sub(lambda m: m.group(0).upper(), name.replace("-", " "))
