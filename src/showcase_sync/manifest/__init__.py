from .manifest import (
    KINDS,
    Manifest,
    ManifestEntry,
    dump_manifest,
    load_manifest,
    merge_manifest,
    parse_manifest,
    save_manifest,
)
from .tasks import add_pending_tasks, mark_tasks_complete

__all__ = [
    "KINDS",
    "Manifest",
    "ManifestEntry",
    "add_pending_tasks",
    "dump_manifest",
    "load_manifest",
    "mark_tasks_complete",
    "merge_manifest",
    "parse_manifest",
    "save_manifest",
]
