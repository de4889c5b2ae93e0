"""Shared fixtures for the gemini-mcp test suite."""

from datetime import datetime
from unittest.mock import AsyncMock, Mock

import pytest
from google.genai import types

from gemini_mcp.config import ServerConfig
from gemini_mcp.handlers import MediaToolHandlers

FIXED_NOW = datetime(2025, 1, 2, 3, 4, 5)
FIXED_TIMESTAMP = "20250102_030405"

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"
MP4_BYTES = b"\x00\x00\x00\x18ftypmp42fake-video"


def content_response(*parts: types.Part) -> types.GenerateContentResponse:
    """Build a generate-content response with a single candidate."""
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=list(parts)))]
    )


def text_part(text: str) -> types.Part:
    return types.Part(text=text)


def image_part(data: bytes = PNG_BYTES, mime_type: str = "image/png") -> types.Part:
    return types.Part(inline_data=types.Blob(data=data, mime_type=mime_type))


def pending_operation(name: str = "operations/veo-123") -> types.GenerateVideosOperation:
    return types.GenerateVideosOperation(name=name, done=False)


def finished_operation(name: str = "operations/veo-123", videos: int = 1) -> types.GenerateVideosOperation:
    generated = [
        types.GeneratedVideo(video=types.Video(uri=f"https://example.com/video-{i}.mp4", mime_type="video/mp4"))
        for i in range(videos)
    ]
    return types.GenerateVideosOperation(
        name=name,
        done=True,
        response=types.GenerateVideosResponse(generated_videos=generated),
    )


def failed_operation(name: str = "operations/veo-123", message: str = "prompt rejected") -> types.GenerateVideosOperation:
    return types.GenerateVideosOperation(name=name, done=True, error={"code": 3, "message": message})


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "output"


@pytest.fixture
def config(output_dir):
    """Configuration pointing at a temporary output directory."""
    return ServerConfig(api_key="test-key", output_dir=output_dir)


@pytest.fixture
def mock_client():
    """Remote adapter double with every coroutine mocked."""
    client = Mock()
    client.generate_content = AsyncMock(
        return_value=content_response(text_part("A red fox in snow"), image_part())
    )
    client.generate_images = AsyncMock(
        return_value=types.GenerateImagesResponse(
            generated_images=[types.GeneratedImage(image=types.Image(image_bytes=PNG_BYTES, mime_type="image/png"))]
        )
    )
    client.generate_videos = AsyncMock(return_value=pending_operation())
    client.get_video_operation = AsyncMock(return_value=finished_operation())
    client.download_video = AsyncMock(return_value=MP4_BYTES)
    return client


@pytest.fixture
def sleeps():
    """Records every requested sleep instead of waiting."""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(seconds):
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
def handlers(config, mock_client, fake_sleep):
    return MediaToolHandlers(config, mock_client, clock=lambda: FIXED_NOW, sleep=fake_sleep)


@pytest.fixture
def sample_image(tmp_path):
    """A small PNG file on disk."""
    path = tmp_path / "input.png"
    path.write_bytes(PNG_BYTES)
    return path


@pytest.fixture
def sample_images(tmp_path):
    paths = []
    for i, suffix in enumerate([".png", ".jpg", ".webp", ".png"]):
        path = tmp_path / f"input_{i}{suffix}"
        path.write_bytes(PNG_BYTES)
        paths.append(path)
    return paths
