from .client import Channel, ConvexClient, RemoteError, ShowcaseBackend, StoredAsset
from .storage import (
    UploadError,
    UploadResult,
    build_asset_index,
    upload_content,
    upload_file,
    upload_files,
)

__all__ = [
    "Channel",
    "ConvexClient",
    "RemoteError",
    "ShowcaseBackend",
    "StoredAsset",
    "UploadError",
    "UploadResult",
    "build_asset_index",
    "upload_content",
    "upload_file",
    "upload_files",
]
