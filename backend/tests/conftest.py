"""Pytest configuration and shared fixtures."""

import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from app.config import ConverterSettings
from app.conversion.service import ConversionOrchestrator
from app.main import create_app


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at throwaway upload/output directories."""
    return ConverterSettings(
        upload_dir=tmp_path / "uploads",
        output_dir=tmp_path / "converted",
        accepted_source_types=frozenset({"image/webp"}),
        max_upload_bytes=5 * 1024 * 1024,
        max_workers=2,
    )


@pytest.fixture
def orchestrator(settings):
    orch = ConversionOrchestrator(settings)
    yield orch
    orch.shutdown()


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def make_image():
    """Return a factory producing encoded image bytes generated in memory."""

    def _make(fmt="WEBP", size=(100, 100), mode="RGB", color=(200, 30, 30)):
        if mode == "RGBA" and len(color) == 3:
            color = color + (128,)
        img = Image.new(mode, size, color)
        buf = io.BytesIO()
        img.save(buf, format=fmt)
        return buf.getvalue()

    return _make
