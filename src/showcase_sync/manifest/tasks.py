"""Advisory task checklist kept next to the manifest."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

INDEX_HEADER = "# Showcase Sync Tasks\n\n"


def _task_line(group: str, filename: str, *, done: bool = False) -> str:
    mark = "x" if done else " "
    return f"- [{mark}] Upload: {group}/{filename}"


def load_index(path: Path) -> str:
    if not path.exists():
        return ""
    return path.read_text(encoding="utf-8")


def add_pending_tasks(path: Path, pending: Iterable[tuple[str, Iterable[str]]]) -> int:
    """Append an unchecked line per (group, file) not already listed."""
    content = load_index(path) or INDEX_HEADER
    if not content.endswith("\n"):
        content += "\n"
    listed = {line.rstrip() for line in content.splitlines()}
    added = 0
    for group, files in pending:
        for filename in files:
            line = _task_line(group, filename)
            if line in listed:
                continue
            content += line + "\n"
            listed.add(line)
            added += 1
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return added


def mark_tasks_complete(path: Path, group: str, files: Iterable[str]) -> int:
    content = load_index(path)
    if not content:
        return 0
    targets = {_task_line(group, filename): filename for filename in files}
    lines = content.splitlines(keepends=True)
    marked = 0
    for i, line in enumerate(lines):
        filename = targets.get(line.rstrip())
        if filename is None:
            continue
        ending = line[len(line.rstrip()):]
        lines[i] = _task_line(group, filename, done=True) + ending
        marked += 1
    path.write_text("".join(lines), encoding="utf-8")
    return marked
