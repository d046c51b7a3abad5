"""
Blob storage abstraction for attachment files.

v0: file:// support (local filesystem)
Other backends implement ``BlobStore`` and are selected by URI scheme.

Design principle: treat storage as a URI, not a boolean.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import quote, urlparse

import structlog

from ..tracker.primitives import generate_ulid

logger = structlog.get_logger()

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class BlobRef:
    """Where an uploaded blob ended up."""

    url: str
    object_id: str


class BlobStore(ABC):
    """Abstract base class for attachment blob storage."""

    @abstractmethod
    def upload(self, data: bytes, original_name: str, folder: str) -> BlobRef:
        """Store bytes under ``folder`` and return their URL and object id."""
        pass

    @abstractmethod
    def delete(self, object_id: str) -> bool:
        """Remove a blob. Returns False when nothing was removed."""
        pass

    @abstractmethod
    def get_uri(self) -> str:
        """Get the base URI of this store."""
        pass


def _safe_name(original_name: str) -> str:
    name = _UNSAFE_CHARS.sub("_", Path(original_name).name).strip("._")
    return name or "file"


class FileBlobStore(BlobStore):
    """Local filesystem blob store (file:// URIs).

    Structure:
        {root}/
        └── {folder}/
            └── {ulid}-{safe original name}
    """

    def __init__(self, root: Path, public_base_url: Optional[str] = None):
        self.root = root.resolve()
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, object_id: str) -> Path:
        path = (self.root / object_id).resolve()
        if self.root not in path.parents:
            raise ValueError(f"Object id escapes blob root: {object_id}")
        return path

    def upload(self, data: bytes, original_name: str, folder: str) -> BlobRef:
        folder = folder.strip("/")
        object_id = f"{folder}/{generate_ulid()}-{_safe_name(original_name)}"
        path = self._resolve(object_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

        if self.public_base_url:
            url = f"{self.public_base_url}/{quote(object_id)}"
        else:
            url = path.as_uri()

        logger.info("blob_uploaded", object_id=object_id, size=len(data))
        return BlobRef(url=url, object_id=object_id)

    def delete(self, object_id: str) -> bool:
        path = self._resolve(object_id)
        if not path.exists():
            return False
        path.unlink()
        logger.info("blob_deleted", object_id=object_id)
        return True

    def get_uri(self) -> str:
        return self.root.as_uri()


def get_blob_store(uri: str, public_base_url: Optional[str] = None) -> BlobStore:
    """Factory to create the appropriate BlobStore based on URI scheme.

    Args:
        uri: Storage URI (e.g., "file://./uploads" or "file:///var/lib/workboard")
        public_base_url: Base URL attachments are served from, if any

    Returns:
        BlobStore instance

    Raises:
        ValueError: If URI scheme is not supported
    """
    parsed = urlparse(uri)

    if parsed.scheme == "file":
        # file://./relative keeps "." as netloc
        path = Path(parsed.netloc + parsed.path) if parsed.netloc else Path(parsed.path)
        return FileBlobStore(path, public_base_url=public_base_url)
    else:
        raise ValueError(f"Unsupported blob store URI scheme: {parsed.scheme}")
