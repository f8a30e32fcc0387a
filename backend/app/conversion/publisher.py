"""Places converted output at a stable, collision-free location."""
import logging
import os
import tempfile
import time
import uuid
from pathlib import Path
from typing import Optional

from app.conversion.errors import PublishError
from app.conversion.models import EncodedImage, OutputArtifact, TargetFormat

logger = logging.getLogger("converter.publisher")

_EXTENSIONS = {f".{fmt.extension}" for fmt in TargetFormat}


def new_token() -> str:
    """Millisecond timestamp plus random suffix; unique across concurrent requests."""
    return f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


class ArtifactPublisher:
    def __init__(self, root: Path, url_prefix: str = "/converted", name_attempts: int = 5):
        self.root = root
        self.url_prefix = url_prefix.rstrip("/")
        self.name_attempts = max(1, name_attempts)
        self.root.mkdir(parents=True, exist_ok=True)

    def url_for(self, name: str) -> str:
        return f"{self.url_prefix}/{name}"

    def _link_unique(self, tmp_path: str, target: TargetFormat) -> Path:
        """Hard-link the temp file under a fresh name; os.link never overwrites an existing artifact."""
        for _ in range(self.name_attempts):
            dest = self.root / f"{new_token()}.{target.extension}"
            try:
                os.link(tmp_path, dest)
            except FileExistsError:
                logger.warning("Artifact name collision on %s, retrying", dest.name)
                continue
            return dest
        raise PublishError(f"No free artifact name after {self.name_attempts} attempts")

    def publish(self, encoded: EncodedImage) -> OutputArtifact:
        """Write to a temp file in the output dir, then link it into place so readers never see partial output."""
        target = encoded.target_format
        tmp_path: Optional[str] = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=self.root, prefix=".tmp_", suffix=f".{target.extension}")
            with os.fdopen(fd, "wb") as f:
                f.write(encoded.data)
                f.flush()
                os.fsync(f.fileno())
            dest = self._link_unique(tmp_path, target)
        except OSError as e:
            raise PublishError(f"Could not write {target.value} artifact: {e}") from e
        finally:
            if tmp_path is not None:
                Path(tmp_path).unlink(missing_ok=True)
        logger.info("Published %s (%d bytes)", dest.name, len(encoded.data))
        return OutputArtifact(
            name=dest.name,
            path=dest,
            target_format=encoded.target_format,
            url=self.url_for(dest.name),
            width=encoded.width,
            height=encoded.height,
            size=len(encoded.data),
        )

    def resolve(self, name: str) -> Optional[Path]:
        """Path of a published artifact, or None if `name` is not one."""
        if not name or Path(name).name != name or name.startswith("."):
            return None
        path = self.root / name
        if path.suffix.lower() not in _EXTENSIONS or not path.is_file():
            return None
        return path
