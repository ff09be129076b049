"""Upload persistence and audio metadata."""

from .types import AudioMetadata, StoredUpload
from .uploads import UploadStore, sanitize_filename

__all__ = [
    "AudioMetadata",
    "StoredUpload",
    "UploadStore",
    "sanitize_filename",
]
