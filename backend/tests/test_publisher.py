"""Tests for artifact publishing."""

import re
from unittest.mock import patch

import pytest

from app.conversion.errors import PublishError
from app.conversion.models import EncodedImage, TargetFormat
from app.conversion.publisher import ArtifactPublisher

NAME_PATTERN = re.compile(r"^\d+_[0-9a-f]{8}\.(jpeg|png)$")


@pytest.fixture
def publisher(tmp_path):
    return ArtifactPublisher(tmp_path / "converted", url_prefix="/converted/", name_attempts=3)


def _encoded(fmt=TargetFormat.JPEG, data=b"encoded-bytes"):
    return EncodedImage(data=data, target_format=fmt, width=10, height=20)


def test_publish_writes_artifact(publisher):
    artifact = publisher.publish(_encoded())

    assert NAME_PATTERN.match(artifact.name)
    assert artifact.name.endswith(".jpeg")
    assert artifact.url == f"/converted/{artifact.name}"
    assert artifact.path.read_bytes() == b"encoded-bytes"
    assert artifact.size == len(b"encoded-bytes")
    assert (artifact.width, artifact.height) == (10, 20)


def test_publish_leaves_no_temp_files(publisher):
    publisher.publish(_encoded(TargetFormat.PNG))
    names = [p.name for p in publisher.root.iterdir()]
    assert len(names) == 1
    assert names[0].endswith(".png")


def test_repeated_publishes_never_collide(publisher):
    names = {publisher.publish(_encoded()).name for _ in range(20)}
    assert len(names) == 20


def test_name_collision_retries_then_fails(publisher):
    with patch("app.conversion.publisher.new_token", return_value="1700000000000_deadbeef"):
        first = publisher.publish(_encoded())
        with pytest.raises(PublishError, match="No free artifact name"):
            publisher.publish(_encoded(data=b"other"))
    assert first.path.read_bytes() == b"encoded-bytes"


def test_write_failure_raises_publish_error_without_partial_output(publisher):
    with patch("app.conversion.publisher.os.link", side_effect=OSError("disk full")):
        with pytest.raises(PublishError, match="disk full"):
            publisher.publish(_encoded())
    assert list(publisher.root.iterdir()) == []


def test_resolve_published_artifact(publisher):
    artifact = publisher.publish(_encoded())
    assert publisher.resolve(artifact.name) == artifact.path


@pytest.mark.parametrize("name", ["", "../secret.jpeg", "missing.png", "notes.txt", ".tmp_abc.jpeg"])
def test_resolve_rejects_unknown_names(publisher, name):
    (publisher.root / "notes.txt").write_text("x")
    (publisher.root / ".tmp_abc.jpeg").write_bytes(b"partial")
    assert publisher.resolve(name) is None


def test_existing_artifact_is_never_overwritten(publisher):
    token = "1700000000000_cafef00d"
    existing = publisher.root / f"{token}.png"
    existing.write_bytes(b"already published")

    with patch("app.conversion.publisher.new_token", return_value=token):
        with pytest.raises(PublishError, match="No free artifact name"):
            publisher.publish(_encoded(TargetFormat.PNG, data=b"newcomer"))

    assert existing.read_bytes() == b"already published"
    assert [p.name for p in publisher.root.iterdir()] == [existing.name]


def test_collision_is_retried_with_fresh_token(publisher):
    taken = publisher.root / "1700000000000_00000000.jpeg"
    taken.write_bytes(b"old")
    tokens = iter(["1700000000000_00000000", "1700000000001_11111111"])

    with patch("app.conversion.publisher.new_token", side_effect=lambda: next(tokens)):
        artifact = publisher.publish(_encoded())

    assert artifact.name == "1700000000001_11111111.jpeg"
    assert taken.read_bytes() == b"old"
