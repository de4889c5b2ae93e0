"""Tests for the local artifact writer."""

import json
from datetime import datetime

import pytest

from gemini_mcp.storage import (
    ArtifactWriter,
    extension_for,
    format_timestamp,
    media_filename,
    metadata_filename,
    sanitize_tag,
)

TIMESTAMP = "20250102_030405"


class TestNaming:
    """Tests for file name helpers."""

    def test_format_timestamp(self):
        assert format_timestamp(datetime(2025, 1, 2, 3, 4, 5)) == TIMESTAMP

    def test_media_filename_with_tag(self):
        assert media_filename("gemini_generated", "artistic", TIMESTAMP, 0, "png") == (
            "gemini_generated_artistic_20250102_030405_0.png"
        )

    @pytest.mark.parametrize("tag", [None, "", "   ", "///"])
    def test_media_filename_without_tag(self, tag):
        assert media_filename("imagen", tag, TIMESTAMP, 2, "png") == "imagen_20250102_030405_2.png"

    def test_metadata_filename(self):
        assert metadata_filename("veo_text_to_video", TIMESTAMP) == "veo_text_to_video_metadata_20250102_030405.json"

    @pytest.mark.parametrize("tag,expected", [
        ("oil painting", "oil_painting"),
        ("../../etc", "etc"),
        ("pixel-art", "pixel-art"),
        ("café noir", "caf_noir"),
    ])
    def test_sanitize_tag(self, tag, expected):
        assert sanitize_tag(tag) == expected

    @pytest.mark.parametrize("mime,expected", [
        ("image/png", "png"),
        ("image/jpeg", "jpg"),
        ("IMAGE/WEBP", "webp"),
        ("video/mp4", "mp4"),
        ("application/octet-stream", "png"),
        (None, "png"),
    ])
    def test_extension_for(self, mime, expected):
        assert extension_for(mime) == expected

    def test_extension_for_custom_default(self):
        assert extension_for(None, "mp4") == "mp4"


class TestArtifactWriter:
    """Tests for ArtifactWriter."""

    def test_requested_directory_wins(self, tmp_path):
        writer = ArtifactWriter.for_call(str(tmp_path / "mine"), tmp_path / "default", TIMESTAMP)

        assert writer.directory == tmp_path / "mine"

    @pytest.mark.parametrize("requested", [None, ""])
    def test_falls_back_to_default(self, tmp_path, requested):
        writer = ArtifactWriter.for_call(requested, tmp_path / "default", TIMESTAMP)

        assert writer.directory == tmp_path / "default"

    def test_running_index(self, tmp_path):
        writer = ArtifactWriter(directory=tmp_path, timestamp=TIMESTAMP)

        first = writer.write_media("gemini_generated", "art", b"1", "png")
        second = writer.write_media("gemini_generated", "art", b"2", "png")

        assert first.path != second.path
        assert first.path.name.endswith("_0.png")
        assert second.path.name.endswith("_1.png")
        assert writer.saved_files == [str(first.path), str(second.path)]

    def test_creates_missing_directory(self, tmp_path):
        writer = ArtifactWriter(directory=tmp_path / "a" / "b", timestamp=TIMESTAMP)

        outcome = writer.write_media("imagen", None, b"data", "png")

        assert outcome.ok
        assert outcome.path.read_bytes() == b"data"

    def test_write_failure_is_recorded(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        writer = ArtifactWriter(directory=blocker / "out", timestamp=TIMESTAMP)

        outcome = writer.write_media("imagen", None, b"data", "png")

        assert not outcome.ok
        assert writer.saved_files == []
        assert len(writer.errors) == 1
        assert writer.errors[0].startswith(str(blocker / "out" / "imagen_20250102_030405_0.png"))

    def test_partial_success(self, tmp_path):
        writer = ArtifactWriter(directory=tmp_path, timestamp=TIMESTAMP)
        (tmp_path / "imagen_20250102_030405_1.png").mkdir()

        writer.write_media("imagen", None, b"ok", "png")
        writer.write_media("imagen", None, b"blocked", "png")

        assert writer.saved_files == [str(tmp_path / "imagen_20250102_030405_0.png")]
        assert len(writer.errors) == 1

    def test_same_second_collision_is_reported(self, tmp_path):
        """A second call with the same timestamp never overwrites the first."""
        first = ArtifactWriter(directory=tmp_path, timestamp=TIMESTAMP)
        second = ArtifactWriter(directory=tmp_path, timestamp=TIMESTAMP)

        first.write_media("imagen", None, b"first", "png")
        first.write_metadata("imagen", {"call": 1})
        second.write_media("imagen", None, b"second", "png")
        second.write_metadata("imagen", {"call": 2})

        assert (tmp_path / "imagen_20250102_030405_0.png").read_bytes() == b"first"
        assert json.loads((tmp_path / "imagen_metadata_20250102_030405.json").read_text()) == {"call": 1}
        assert second.saved_files == []
        assert len(second.errors) == 2
        assert all(e.endswith("file already exists") for e in second.errors)

    def test_metadata_round_trip(self, tmp_path):
        writer = ArtifactWriter(directory=tmp_path, timestamp=TIMESTAMP)
        record = {"prompt": "こんにちは", "tags": ["a", "b"], "seed": 3, "image": None}

        outcome = writer.write_metadata("gemini", record)

        text = outcome.path.read_text(encoding="utf-8")
        assert json.loads(text) == record
        assert "こんにちは" in text
        assert "\n  " in text
