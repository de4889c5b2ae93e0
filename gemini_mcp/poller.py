"""Polling of long-running Veo operations.

The loop sleeps, checks status, and repeats until the operation reports done
or the attempt budget runs out. A timeout is reported as a status value. A
status check that fails is retried on the next tick, and a run of failures
ends the loop with ``poll_error``. Cancelling the calling task aborts the wait
immediately; the remote job itself keeps running.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from google.genai import types

from .errors import RemoteError
from .models import VideoStatus

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 10
MAX_POLL_ATTEMPTS = 60  # 10 minutes max
MAX_CONSECUTIVE_POLL_ERRORS = 3

Sleep = Callable[[float], Awaitable[None]]


@dataclass
class PollResult:
    operation: types.GenerateVideosOperation
    status: VideoStatus
    attempts: int
    error: Optional[str] = None
    videos: List[types.GeneratedVideo] = field(default_factory=list)


def generated_videos(operation: types.GenerateVideosOperation) -> List[types.GeneratedVideo]:
    response = getattr(operation, "response", None) or getattr(operation, "result", None)
    if response is None or not response.generated_videos:
        return []
    return [v for v in response.generated_videos if v.video is not None]


def _error_text(error) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)


def classify(operation: types.GenerateVideosOperation, attempts: int) -> PollResult:
    """Map a finished (or abandoned) operation to its terminal status."""
    if not operation.done:
        return PollResult(operation, VideoStatus.TIMEOUT, attempts)
    if operation.error:
        return PollResult(operation, VideoStatus.FAILED, attempts, error=_error_text(operation.error))
    videos = generated_videos(operation)
    if not videos:
        return PollResult(operation, VideoStatus.FAILED, attempts, error="no videos returned")
    return PollResult(operation, VideoStatus.COMPLETED, attempts, videos=videos)


async def poll_operation(
    client,
    operation: types.GenerateVideosOperation,
    *,
    interval: float = POLL_INTERVAL_SECONDS,
    max_attempts: int = MAX_POLL_ATTEMPTS,
    max_poll_errors: int = MAX_CONSECUTIVE_POLL_ERRORS,
    sleep: Sleep = asyncio.sleep,
    label: str = "video generation",
) -> PollResult:
    """Wait for ``operation`` to finish and classify the outcome.

    Args:
        client: Object exposing ``get_video_operation(operation)``.
        operation: Handle returned by the generate-videos call.
        interval: Seconds between status checks.
        max_attempts: Upper bound on status checks.
        max_poll_errors: Consecutive failed checks tolerated before giving up.
        sleep: Awaitable sleep, injectable for tests.
        label: Used in log lines.

    Returns:
        PollResult with status ``completed``, ``failed``, ``timeout`` or
        ``poll_error``.
    """
    attempts = 0
    consecutive_errors = 0

    try:
        while not operation.done and attempts < max_attempts:
            attempts += 1
            logger.info("Waiting for %s to complete... (attempt %d/%d)", label, attempts, max_attempts)
            await sleep(interval)
            try:
                operation = await client.get_video_operation(operation)
            except RemoteError as e:
                consecutive_errors += 1
                logger.warning(
                    "Error checking operation status (%d/%d): %s",
                    consecutive_errors, max_poll_errors, e,
                )
                if consecutive_errors >= max_poll_errors:
                    return PollResult(operation, VideoStatus.POLL_ERROR, attempts, error=str(e))
                continue
            consecutive_errors = 0
    except asyncio.CancelledError:
        logger.info(
            "%s cancelled after %d status checks; remote operation %s is left running",
            label.capitalize(), attempts, operation.name,
        )
        raise

    result = classify(operation, attempts)
    if result.status is VideoStatus.TIMEOUT:
        logger.warning("%s timed out after %d status checks", label.capitalize(), attempts)
    elif result.status is VideoStatus.FAILED:
        logger.warning("%s failed: %s", label.capitalize(), result.error)
    else:
        logger.info("%s completed successfully", label.capitalize())
    return result
