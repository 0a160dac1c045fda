"""
Filesystem layout for uploaded objects and in-flight recordings.
"""
import os

from ..core.config import settings


class Buckets:
    TEST_RECORDINGS = "test-recordings"
    PUBLIC = "public"


class FileTypes:
    CHUNKS = "chunks"
    PENDING_SUBMISSIONS = "pending_submissions"


def get_upload_root() -> str:
    """Absolute directory that holds every bucket and working directory."""
    return os.path.join(settings.upload_base_dir, "uploads")


def safe_join(base: str, *parts: str) -> str:
    """
    Join path parts under base, refusing anything that escapes it.

    Raises:
        ValueError: if the resulting path is outside base
    """
    base = os.path.abspath(base)
    path = os.path.abspath(os.path.join(base, *parts))
    if path != base and not path.startswith(base + os.sep):
        raise ValueError(f"Path escapes storage root: {'/'.join(parts)}")
    return path


def get_bucket_path(bucket: str, key: str = "") -> str:
    return safe_join(get_upload_root(), bucket, key) if key else safe_join(get_upload_root(), bucket)


def ensure_upload_directory(file_type: str) -> str:
    """Create a working directory (chunks, pending submissions) and return its absolute path."""
    full_dir = safe_join(get_upload_root(), file_type)
    os.makedirs(full_dir, exist_ok=True)
    return full_dir
