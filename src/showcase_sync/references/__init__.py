from .markdown import (
    Reference,
    RewriteResult,
    extract_references,
    extract_storage_urls,
    is_remote_path,
    resolve_local_file,
    rewrite_references,
    unique_paths,
)

__all__ = [
    "Reference",
    "RewriteResult",
    "extract_references",
    "extract_storage_urls",
    "is_remote_path",
    "resolve_local_file",
    "rewrite_references",
    "unique_paths",
]
