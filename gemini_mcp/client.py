"""Adapter over the google-genai SDK.

Wraps authentication and the four remote operations the tools need:
content generation, Imagen generation, Veo generation with status checks, and
video download. SDK failures are re-raised as ``RemoteError``.
"""

import asyncio
import logging
from functools import wraps
from typing import List, Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from .config import ServerConfig
from .errors import ConfigurationError, RemoteError

logger = logging.getLogger(__name__)


def with_retry(retries: int = 3, delay: int = 10):
    """Decorator to retry async functions with delay."""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            last_exception = None
            for attempt in range(retries + 1):
                try:
                    return await func(*args, **kwargs)
                except RemoteError as e:
                    last_exception = e
                    if attempt < retries:
                        logger.warning(
                            "Error in %s: %s. Retrying in %ss... (Attempt %d/%d)",
                            func.__name__, e, delay, attempt + 1, retries,
                        )
                        await asyncio.sleep(delay)
            raise last_exception
        return wrapper
    return decorator


def _remote_error(action: str, e: Exception) -> RemoteError:
    code = e.code if isinstance(e, genai_errors.APIError) else None
    return RemoteError(f"error {action}: {e}", code=code)


def build_genai_client(config: ServerConfig) -> genai.Client:
    """Create the SDK client for the configured backend."""
    if config.use_vertexai:
        if not config.project_id:
            raise ConfigurationError("GOOGLE_PROJECT_ID is required when GOOGLE_GENAI_USE_VERTEXAI is set")
        return genai.Client(vertexai=True, project=config.project_id, location=config.location)
    return genai.Client(api_key=config.api_key)


class GenMediaClient:
    """Async facade over ``genai.Client`` used by every tool handler."""

    def __init__(self, client: genai.Client):
        self._client = client

    @classmethod
    def from_config(cls, config: ServerConfig) -> "GenMediaClient":
        return cls(build_genai_client(config))

    async def generate_content(
        self,
        model: str,
        parts: List[types.Part],
        config: Optional[types.GenerateContentConfig] = None,
    ) -> types.GenerateContentResponse:
        contents = [types.Content(role="user", parts=parts)]
        try:
            return await self._client.aio.models.generate_content(
                model=model, contents=contents, config=config
            )
        except Exception as e:
            raise _remote_error("generating content", e) from e

    async def generate_images(
        self,
        model: str,
        prompt: str,
        number_of_images: int,
        aspect_ratio: str,
    ) -> types.GenerateImagesResponse:
        config = types.GenerateImagesConfig(
            number_of_images=number_of_images,
            aspect_ratio=aspect_ratio,
        )
        try:
            return await self._client.aio.models.generate_images(
                model=model, prompt=prompt, config=config
            )
        except Exception as e:
            raise _remote_error("generating images", e) from e

    async def generate_videos(
        self,
        model: str,
        prompt: str,
        image: Optional[types.Image] = None,
        config: Optional[types.GenerateVideosConfig] = None,
    ) -> types.GenerateVideosOperation:
        try:
            return await self._client.aio.models.generate_videos(
                model=model, prompt=prompt, image=image, config=config
            )
        except Exception as e:
            raise _remote_error("starting video generation", e) from e

    async def get_video_operation(
        self, operation: types.GenerateVideosOperation
    ) -> types.GenerateVideosOperation:
        try:
            return await self._client.aio.operations.get(operation)
        except Exception as e:
            raise _remote_error("checking operation status", e) from e

    @with_retry(retries=2, delay=5)
    async def download_video(self, video: types.Video) -> bytes:
        """Return the video bytes, fetching them from the Files API when needed."""
        if video.video_bytes:
            return video.video_bytes
        try:
            data = await self._client.aio.files.download(file=video)
        except Exception as e:
            raise _remote_error("downloading video", e) from e
        if not data:
            raise RemoteError("error downloading video: empty payload")
        return data
