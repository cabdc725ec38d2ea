from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ..manifest import Manifest

logger = logging.getLogger(__name__)

IGNORED_FILES = frozenset(
    {
        "manifest.json",
        "index.md",
        ".gitkeep",
        ".DS_Store",
        "Thumbs.db",
    }
)


@dataclass(frozen=True)
class FolderDiff:
    name: str
    all_files: tuple[str, ...]
    new_files: tuple[str, ...]
    is_new: bool


def ensure_content_root(root: Path) -> bool:
    """Create the content root if needed; return True when it was created."""
    if root.is_dir():
        return False
    root.mkdir(parents=True, exist_ok=True)
    logger.info("Created content directory: %s", root)
    return True


def scan_groups(
    root: Path, ignored: frozenset[str] = IGNORED_FILES
) -> dict[str, list[str]]:
    """
    Map each immediate subdirectory of ``root`` to its sorted regular files.
    Groups with no eligible files are left out. A missing root is created and
    yields no groups.
    """
    ensure_content_root(root)
    groups: dict[str, list[str]] = {}
    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        if not entry.is_dir():
            continue
        files = sorted(
            child.name
            for child in entry.iterdir()
            if child.name not in ignored and child.is_file()
        )
        if files:
            groups[entry.name] = files
    return groups


def compute_diffs(groups: dict[str, list[str]], manifest: Manifest) -> list[FolderDiff]:
    diffs: list[FolderDiff] = []
    for name, files in groups.items():
        all_files = tuple(files)
        existing = manifest.get(name)
        if existing is None:
            diffs.append(FolderDiff(name, all_files, all_files, True))
            continue
        new_files = tuple(f for f in files if f not in existing.files)
        if new_files:
            diffs.append(FolderDiff(name, all_files, new_files, False))
    return diffs
