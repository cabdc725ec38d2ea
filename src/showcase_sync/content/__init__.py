from .kinds import (
    DEFAULT_KIND,
    guess_mime_type,
    is_markdown,
    kind_for_file,
    score_kinds,
    suggest_kind,
    title_case,
)
from .scan import IGNORED_FILES, FolderDiff, compute_diffs, scan_groups

__all__ = [
    "DEFAULT_KIND",
    "FolderDiff",
    "IGNORED_FILES",
    "compute_diffs",
    "guess_mime_type",
    "is_markdown",
    "kind_for_file",
    "scan_groups",
    "score_kinds",
    "suggest_kind",
    "title_case",
]
