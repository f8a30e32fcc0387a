"""Upload validation. Runs on request metadata before any bytes are persisted."""
import io
import logging
from pathlib import Path
from typing import Optional

from app.config import ConverterSettings
from app.conversion.errors import MissingFile, PayloadTooLarge, UnsupportedSourceType
from app.conversion.models import EXT_TO_MIME, ConversionRequest, TargetFormat

logger = logging.getLogger("converter.validator")

_GENERIC_TYPES = {"", "application/octet-stream", "binary/octet-stream"}


def resolve_source_type(content_type: Optional[str], filename: Optional[str]) -> str:
    """Declared media type, or one sniffed from the filename extension when the client sent none."""
    declared = (content_type or "").split(";", 1)[0].strip().lower()
    if declared not in _GENERIC_TYPES:
        return declared
    return EXT_TO_MIME.get(Path(filename or "").suffix.lower(), declared)


def measure_size(request: ConversionRequest) -> Optional[int]:
    """Declared or measured byte length; None when the stream cannot seek (the intake store enforces the ceiling then)."""
    if request.size is not None:
        return request.size
    stream = request.source
    if not stream.seekable():
        return None
    pos = stream.tell()
    stream.seek(0, io.SEEK_END)
    size = stream.tell()
    stream.seek(pos)
    return size


def validate_request(request: ConversionRequest, settings: ConverterSettings) -> TargetFormat:
    """Check, in order: file attached, source type, size ceiling, target format.

    Raises the first failing ClientInputError; returns the parsed target format on success.
    """
    if request.source is None or (not request.filename and measure_size(request) == 0):
        raise MissingFile("No file attached to request")

    source_type = resolve_source_type(request.content_type, request.filename)
    if source_type not in settings.accepted_source_types:
        raise UnsupportedSourceType(f"Source type {source_type!r} not accepted")

    size = measure_size(request)
    if size is not None and size > settings.max_upload_bytes:
        raise PayloadTooLarge(size, settings.max_upload_bytes)

    target = TargetFormat.parse(request.target_format)
    logger.debug("Accepted %s (%s, %s bytes) -> %s", request.filename, source_type, size, target.value)
    return target
