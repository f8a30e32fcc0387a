"""Tests for upload validation."""

import io

import pytest

from app.conversion.errors import (
    MissingFile,
    PayloadTooLarge,
    UnsupportedSourceType,
    UnsupportedTargetFormat,
)
from app.conversion.models import ConversionRequest, TargetFormat
from app.conversion.validator import resolve_source_type, validate_request


def _request(data=b"RIFF....WEBP", content_type="image/webp", target="jpeg", filename="photo.webp", size=None):
    return ConversionRequest(
        source=io.BytesIO(data),
        content_type=content_type,
        target_format=target,
        filename=filename,
        size=size,
    )


def test_accepts_valid_request(settings):
    assert validate_request(_request(), settings) is TargetFormat.JPEG


def test_missing_source_is_rejected(settings):
    request = ConversionRequest(source=None, content_type=None, target_format="png")
    with pytest.raises(MissingFile):
        validate_request(request, settings)


def test_empty_part_without_filename_is_rejected(settings):
    with pytest.raises(MissingFile):
        validate_request(_request(data=b"", filename=""), settings)


def test_unsupported_source_type(settings):
    with pytest.raises(UnsupportedSourceType):
        validate_request(_request(content_type="image/png", filename="photo.png"), settings)


def test_payload_too_large_measured_from_stream(settings):
    data = b"\0" * (6 * 1024 * 1024)
    with pytest.raises(PayloadTooLarge) as exc_info:
        validate_request(_request(data=data, target="png"), settings)
    assert exc_info.value.size == len(data)
    assert "5MB" in exc_info.value.public_message


def test_declared_size_takes_precedence(settings):
    with pytest.raises(PayloadTooLarge):
        validate_request(_request(size=settings.max_upload_bytes + 1), settings)


def test_size_at_ceiling_is_accepted(settings):
    assert validate_request(_request(size=settings.max_upload_bytes), settings) is TargetFormat.JPEG


def test_measuring_size_keeps_stream_position(settings):
    request = _request(data=b"abcdef")
    request.source.seek(2)
    validate_request(request, settings)
    assert request.source.tell() == 2


def test_unsupported_target_format(settings):
    with pytest.raises(UnsupportedTargetFormat):
        validate_request(_request(target="gif"), settings)


def test_missing_target_format(settings):
    with pytest.raises(UnsupportedTargetFormat):
        validate_request(_request(target=None), settings)


def test_target_format_is_normalized(settings):
    assert validate_request(_request(target=" PNG "), settings) is TargetFormat.PNG


def test_checks_short_circuit_in_order(settings):
    """Source type is checked before size, size before target format."""
    big = b"\0" * (6 * 1024 * 1024)
    with pytest.raises(UnsupportedSourceType):
        validate_request(_request(data=big, content_type="text/plain", filename="a.txt", target="gif"), settings)
    with pytest.raises(PayloadTooLarge):
        validate_request(_request(data=big, target="gif"), settings)


def test_source_type_sniffed_from_extension():
    assert resolve_source_type("application/octet-stream", "photo.WEBP") == "image/webp"
    assert resolve_source_type(None, "photo.png") == "image/png"
    assert resolve_source_type("image/webp; charset=binary", "x.bin") == "image/webp"
    assert resolve_source_type(None, "noext") == ""
