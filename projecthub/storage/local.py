"""Bucketed object storage on the local filesystem."""

import logging
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

PROJECT_FILES_BUCKET = "project-files"
AVATARS_BUCKET = "avatars"
DEFAULT_BUCKETS = (PROJECT_FILES_BUCKET, AVATARS_BUCKET)


class StorageError(Exception):
    """Object storage operation failed."""


class ObjectNotFoundError(StorageError):
    """Requested object does not exist in the bucket."""


class LocalObjectStorage:
    """
    Objects live at ``<root>/<bucket>/<key>``.

    Keys are slash-separated relative paths (``"12/1737540000.pdf"``) and
    can never point outside their bucket directory.
    """

    def __init__(
        self,
        root: str | Path,
        buckets: Iterable[str] = DEFAULT_BUCKETS,
        public_base_url: str = "/api/v1/storage",
    ):
        self.root = Path(root).resolve()
        self.buckets = frozenset(buckets)
        self.public_base_url = public_base_url.rstrip("/")

    def _bucket_dir(self, bucket: str) -> Path:
        if bucket not in self.buckets:
            raise StorageError(f"Bucket '{bucket}' does not exist")
        return self.root / bucket

    def _resolve(self, bucket: str, key: str) -> Path:
        base = self._bucket_dir(bucket)
        if not key or key.startswith(("/", "~")) or "\\" in key:
            raise StorageError(f"Invalid object key: {key!r}")
        full = (base / key).resolve()
        if full == base or not full.is_relative_to(base):
            raise StorageError(f"Object key escapes bucket '{bucket}': {key!r}")
        return full

    def upload(self, bucket: str, key: str, data: bytes, upsert: bool = False) -> str:
        """Store ``data`` under ``key``; returns the key."""
        path = self._resolve(bucket, key)
        if path.exists() and not upsert:
            raise StorageError(f"Object '{key}' already exists in '{bucket}'")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("Object stored", extra={"bucket": bucket, "key": key, "size": len(data)})
        return key

    def download(self, bucket: str, key: str) -> bytes:
        path = self._resolve(bucket, key)
        if not path.is_file():
            raise ObjectNotFoundError(f"Object '{key}' not found in '{bucket}'")
        return path.read_bytes()

    def exists(self, bucket: str, key: str) -> bool:
        return self._resolve(bucket, key).is_file()

    def remove(self, bucket: str, keys: Iterable[str]) -> list[str]:
        """Delete objects; missing keys are skipped. Returns the keys actually removed."""
        removed = []
        for key in keys:
            path = self._resolve(bucket, key)
            if path.is_file():
                path.unlink()
                removed.append(key)
        if removed:
            logger.info("Objects removed", extra={"bucket": bucket, "keys": removed})
        return removed

    def public_url(self, bucket: str, key: str) -> str:
        self._resolve(bucket, key)
        return f"{self.public_base_url}/{bucket}/{key}"
