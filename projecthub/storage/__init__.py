"""Object storage for project files and avatars."""

from .local import (
    AVATARS_BUCKET,
    PROJECT_FILES_BUCKET,
    LocalObjectStorage,
    ObjectNotFoundError,
    StorageError,
)

__all__ = [
    "AVATARS_BUCKET",
    "PROJECT_FILES_BUCKET",
    "LocalObjectStorage",
    "ObjectNotFoundError",
    "StorageError",
]
