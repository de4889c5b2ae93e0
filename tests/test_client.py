"""Tests for the google-genai adapter and error formatting."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from google.genai import errors as genai_errors
from google.genai import types

from conftest import MP4_BYTES, pending_operation, text_part
from gemini_mcp.client import GenMediaClient, build_genai_client, with_retry
from gemini_mcp.config import ServerConfig
from gemini_mcp.errors import (
    ConfigurationError,
    EmptyResult,
    InvalidArgument,
    RemoteError,
    describe_error,
)


def _api_error(code: int, message: str = "quota exhausted") -> genai_errors.ClientError:
    return genai_errors.ClientError(code, {"error": {"code": code, "message": message, "status": "ERROR"}})


@pytest.fixture
def sdk():
    """Stand-in for genai.Client with async surfaces mocked."""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    client.aio.models.generate_images = AsyncMock()
    client.aio.models.generate_videos = AsyncMock()
    client.aio.operations.get = AsyncMock()
    client.aio.files.download = AsyncMock()
    return client


@pytest.fixture
def no_sleep():
    with patch("gemini_mcp.client.asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep


class TestBuildClient:
    """Tests for build_genai_client."""

    def test_api_key_mode(self):
        with patch("gemini_mcp.client.genai.Client") as factory:
            build_genai_client(ServerConfig(api_key="k"))

        factory.assert_called_once_with(api_key="k")

    def test_vertex_mode(self):
        config = ServerConfig(api_key="k", use_vertexai=True, project_id="proj", location="europe-west4")

        with patch("gemini_mcp.client.genai.Client") as factory:
            build_genai_client(config)

        factory.assert_called_once_with(vertexai=True, project="proj", location="europe-west4")

    def test_vertex_mode_requires_project(self):
        with pytest.raises(ConfigurationError, match="GOOGLE_PROJECT_ID"):
            build_genai_client(ServerConfig(api_key="k", use_vertexai=True))


class TestGenMediaClient:
    """Tests for GenMediaClient."""

    @pytest.mark.asyncio
    async def test_generate_content_wraps_parts(self, sdk):
        client = GenMediaClient(sdk)
        part = text_part("hello")

        await client.generate_content("gemini-2.5-flash-image-preview", [part])

        kwargs = sdk.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash-image-preview"
        assert kwargs["contents"][0].role == "user"
        assert kwargs["contents"][0].parts == [part]

    @pytest.mark.asyncio
    async def test_api_error_keeps_status(self, sdk):
        sdk.aio.models.generate_content.side_effect = _api_error(429)

        with pytest.raises(RemoteError) as exc_info:
            await GenMediaClient(sdk).generate_content("m", [text_part("x")])

        assert exc_info.value.code == 429
        assert str(exc_info.value).startswith("error generating content:")

    @pytest.mark.asyncio
    async def test_transport_error_has_no_status(self, sdk):
        sdk.aio.models.generate_images.side_effect = httpx.ConnectError("refused")

        with pytest.raises(RemoteError) as exc_info:
            await GenMediaClient(sdk).generate_images("imagen-4.0-generate-001", "a cat", 2, "1:1")

        assert exc_info.value.code is None

    @pytest.mark.asyncio
    async def test_generate_images_config(self, sdk):
        await GenMediaClient(sdk).generate_images("imagen-4.0-generate-001", "a cat", 2, "16:9")

        kwargs = sdk.aio.models.generate_images.call_args.kwargs
        assert kwargs["prompt"] == "a cat"
        assert kwargs["config"].number_of_images == 2
        assert kwargs["config"].aspect_ratio == "16:9"

    @pytest.mark.asyncio
    async def test_status_check(self, sdk):
        operation = pending_operation()
        sdk.aio.operations.get.return_value = operation

        assert await GenMediaClient(sdk).get_video_operation(operation) is operation
        sdk.aio.operations.get.assert_awaited_once_with(operation)

    @pytest.mark.asyncio
    async def test_download_uses_inline_bytes(self, sdk):
        video = types.Video(video_bytes=MP4_BYTES, mime_type="video/mp4")

        assert await GenMediaClient(sdk).download_video(video) == MP4_BYTES
        sdk.aio.files.download.assert_not_called()

    @pytest.mark.asyncio
    async def test_download_fetches_remote_file(self, sdk):
        sdk.aio.files.download.return_value = MP4_BYTES
        video = types.Video(uri="https://example.com/v.mp4")

        assert await GenMediaClient(sdk).download_video(video) == MP4_BYTES
        sdk.aio.files.download.assert_awaited_once_with(file=video)

    @pytest.mark.asyncio
    async def test_download_retries_then_fails(self, sdk, no_sleep):
        sdk.aio.files.download.side_effect = httpx.ReadTimeout("slow")

        with pytest.raises(RemoteError, match="downloading video"):
            await GenMediaClient(sdk).download_video(types.Video(uri="https://example.com/v.mp4"))

        assert sdk.aio.files.download.await_count == 3
        assert [c.args[0] for c in no_sleep.await_args_list] == [5, 5]

    @pytest.mark.asyncio
    async def test_download_recovers(self, sdk, no_sleep):
        sdk.aio.files.download.side_effect = [b"", MP4_BYTES]

        data = await GenMediaClient(sdk).download_video(types.Video(uri="https://example.com/v.mp4"))

        assert data == MP4_BYTES
        assert no_sleep.await_count == 1


class TestWithRetry:
    """Tests for the with_retry decorator."""

    @pytest.mark.asyncio
    async def test_other_errors_are_not_retried(self, no_sleep):
        calls = []

        @with_retry(retries=3, delay=1)
        async def flaky():
            calls.append(1)
            raise ValueError("bad input")

        with pytest.raises(ValueError):
            await flaky()

        assert len(calls) == 1
        no_sleep.assert_not_called()

    @pytest.mark.asyncio
    async def test_returns_first_success(self, no_sleep):
        outcomes = [RemoteError("a"), RemoteError("b"), "ok"]

        @with_retry(retries=3, delay=1)
        async def flaky():
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        assert await flaky() == "ok"
        assert no_sleep.await_count == 2


class TestDescribeError:
    """Tests for describe_error."""

    @pytest.mark.parametrize("code,fragment", [
        (401, "Authentication failed"),
        (403, "Access forbidden"),
        (404, "not found"),
        (429, "Rate limit"),
    ])
    def test_status_codes(self, code, fragment):
        message = describe_error(RemoteError("boom", code=code), "Imagen")

        assert message.startswith("[Imagen] Error: ")
        assert fragment in message

    def test_sdk_error_status(self):
        assert "Rate limit" in describe_error(_api_error(429))

    def test_timeout(self):
        assert "timed out" in describe_error(httpx.ReadTimeout("slow"))

    @pytest.mark.asyncio
    async def test_wrapped_sdk_timeout(self, sdk):
        """A timeout raised inside the adapter still reads as a timeout."""
        sdk.aio.models.generate_images.side_effect = httpx.ReadTimeout("slow")

        with pytest.raises(RemoteError) as exc_info:
            await GenMediaClient(sdk).generate_images("imagen-4.0-generate-001", "a cat", 1, "1:1")

        message = describe_error(exc_info.value, "Imagen")
        assert message.startswith("[Imagen] Error: ")
        assert "timed out" in message

    @pytest.mark.parametrize("error", [
        InvalidArgument("prompt is required"),
        EmptyResult("no content was generated"),
        RemoteError("error generating content: backend unavailable"),
    ])
    def test_own_errors_keep_message(self, error):
        assert describe_error(error, "Image Generation") == f"[Image Generation] Error: {error}"

    def test_unexpected_error_names_type(self):
        assert describe_error(KeyError("x")) == "Error: KeyError - 'x'"
