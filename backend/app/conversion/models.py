"""Conversion request/result models."""
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Optional

from app.conversion.errors import ConversionError, UnsupportedTargetFormat


class TargetFormat(str, Enum):
    JPEG = "jpeg"
    PNG = "png"

    @classmethod
    def parse(cls, value: Optional[str]) -> "TargetFormat":
        raw = (value or "").strip().lower()
        try:
            return cls(raw)
        except ValueError:
            raise UnsupportedTargetFormat(f"Unsupported target format: {value!r}") from None

    @property
    def pil_format(self) -> str:
        return _PIL_FORMATS[self]

    @property
    def extension(self) -> str:
        return self.value

    @property
    def media_type(self) -> str:
        return f"image/{self.value}"


_PIL_FORMATS = {
    TargetFormat.JPEG: "JPEG",
    TargetFormat.PNG: "PNG",
}

# Media type -> Pillow decoder name, used to restrict Image.open to the declared codec
SOURCE_DECODERS = {
    "image/webp": "WEBP",
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/gif": "GIF",
    "image/bmp": "BMP",
    "image/tiff": "TIFF",
}

# Extension -> media type, for sniffing when the client sends no usable content type
EXT_TO_MIME = {
    ".webp": "image/webp", ".png": "image/png",
    ".jpg": "image/jpeg", ".jpeg": "image/jpeg",
    ".gif": "image/gif", ".bmp": "image/bmp",
    ".tiff": "image/tiff", ".tif": "image/tiff",
}


class RequestState(str, Enum):
    RECEIVED = "received"
    REJECTED = "rejected"
    STORED = "stored"
    CONVERTED = "converted"
    PUBLISHED = "published"
    FAILED = "failed"
    DONE = "done"


@dataclass
class ConversionRequest:
    """One upload, owned by a single orchestrator call."""

    source: Optional[BinaryIO]
    content_type: Optional[str]
    target_format: Optional[str]
    filename: Optional[str] = None
    size: Optional[int] = None
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass(frozen=True)
class IntakeArtifact:
    token: str
    path: Path
    size: int = 0


@dataclass(frozen=True)
class EncodedImage:
    data: bytes
    target_format: TargetFormat
    width: int
    height: int


@dataclass(frozen=True)
class OutputArtifact:
    name: str
    path: Path
    target_format: TargetFormat
    url: str
    width: int
    height: int
    size: int


@dataclass
class ConversionResult:
    state: RequestState
    artifact: Optional[OutputArtifact] = None
    error: Optional[ConversionError] = None

    @property
    def ok(self) -> bool:
        return self.artifact is not None and self.error is None
