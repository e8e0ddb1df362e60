"""
Media reference resolver - turns uploaded blobs into opaque content handles.

The pipelines only see ``resolve(blobs) -> [reference]``; the references are
comma-joined and stored on chain as ``mediaIpfs``.
"""

import hashlib
import os
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence

from .config import MEDIA_MAX_BYTES, MEDIA_MAX_FILES
from .errors import ValidationError
from .schema import MediaBlob
from ..util.logging import logger

ALLOWED_TYPES = re.compile(r"jpeg|jpg|png|gif|mp4|mov|avi")


class MediaResolver(ABC):
    """Abstract interface for content-addressed media stores."""

    @abstractmethod
    def resolve(self, blobs: Sequence[MediaBlob]) -> List[str]:
        """Store blobs and return one reference per blob, in order."""
        pass


class ContentAddressedMediaResolver(MediaResolver):
    """Local store keyed by the SHA-256 of each blob.

    Re-uploading identical content yields the same reference and does not
    rewrite the file. Without an upload directory, only references are
    computed.
    """

    def __init__(self, upload_dir: Optional[str] = None):
        self.upload_dir = Path(upload_dir) if upload_dir else None

    def reference_for(self, blob: MediaBlob) -> str:
        return "sha256-" + hashlib.sha256(blob.data).hexdigest()

    def resolve(self, blobs: Sequence[MediaBlob]) -> List[str]:
        references = []
        for blob in blobs:
            reference = self.reference_for(blob)
            if self.upload_dir is not None:
                self._store(reference, blob)
            references.append(reference)
        return references

    def path_for(self, reference: str, blob: MediaBlob) -> Path:
        extension = os.path.splitext(blob.filename)[1].lower()
        return self.upload_dir / f"{reference}{extension}"

    def _store(self, reference: str, blob: MediaBlob):
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(reference, blob)
        if path.exists():
            return
        path.write_bytes(blob.data)
        logger.log_operation("media.store", "success", {"reference": reference, "bytes": blob.size})


def validate_media(blobs: Sequence[MediaBlob], max_files: int = None, max_bytes: int = None) -> None:
    """Enforce upload count, size and type limits."""
    max_files = MEDIA_MAX_FILES if max_files is None else max_files
    max_bytes = MEDIA_MAX_BYTES if max_bytes is None else max_bytes

    if len(blobs) > max_files:
        raise ValidationError(f"Too many media files. Maximum is {max_files}.")

    for blob in blobs:
        if blob.size > max_bytes:
            limit_mb = max_bytes // (1024 * 1024)
            raise ValidationError(f"File too large. Maximum size is {limit_mb}MB.",
                                  details=f"{blob.filename}: {blob.size} bytes")

        extension = os.path.splitext(blob.filename)[1].lower()
        if not (ALLOWED_TYPES.search(extension) and ALLOWED_TYPES.search(blob.content_type or "")):
            raise ValidationError("Only images and videos are allowed",
                                  details=f"{blob.filename} ({blob.content_type})")


def join_references(references: Sequence[str]) -> str:
    return ",".join(references)
