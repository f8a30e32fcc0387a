"""Temporary intake store: raw upload bytes on disk for the lifetime of one request."""
import logging
import re
import uuid
from pathlib import Path
from typing import BinaryIO, Optional

from app.conversion.errors import IntakeError, PayloadTooLarge
from app.conversion.models import IntakeArtifact

logger = logging.getLogger("converter.intake")

CHUNK_SIZE = 1024 * 1024


class IntakeStore:
    def __init__(self, root: Path):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _sanitize_filename(filename: Optional[str]) -> str:
        """Remove path traversal and dangerous characters."""
        safe = (filename or "upload").replace("/", "_").replace("\\", "_")
        safe = re.sub(r"[^a-zA-Z0-9._-]", "_", safe).lstrip(".")
        return safe[:100] or "upload"

    def write(self, stream: BinaryIO, filename: Optional[str] = None, max_bytes: Optional[int] = None) -> IntakeArtifact:
        """Copy `stream` to disk in chunks.

        The ceiling is enforced while copying, so streams whose length could not be measured
        up front are still bounded. Nothing is left on disk if this raises.
        """
        token = uuid.uuid4().hex
        dest = self.root / f"{token}_{self._sanitize_filename(filename)}"
        total = 0
        try:
            if stream.seekable():
                stream.seek(0)
            with open(dest, "wb") as f:
                while chunk := stream.read(CHUNK_SIZE):
                    total += len(chunk)
                    if max_bytes is not None and total > max_bytes:
                        raise PayloadTooLarge(total, max_bytes)
                    f.write(chunk)
        except OSError as e:
            dest.unlink(missing_ok=True)
            raise IntakeError(f"Could not store upload: {e}") from e
        except Exception:
            dest.unlink(missing_ok=True)
            raise
        logger.debug("Stored upload %s as %s (%d bytes)", filename, dest.name, total)
        return IntakeArtifact(token=token, path=dest, size=total)
