"""Error taxonomy and user-facing error formatting."""

from typing import Optional

import httpx
from google.genai import errors as genai_errors


class GeminiMCPError(Exception):
    """Base class for all server errors."""


class ConfigurationError(GeminiMCPError):
    """Required configuration is missing or invalid. Fatal at startup."""


class InvalidArgument(GeminiMCPError):
    """Malformed tool input. Raised before any remote call is made."""


class RemoteError(GeminiMCPError):
    """The generative-media backend call failed."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class EmptyResult(GeminiMCPError):
    """The backend call succeeded but returned nothing usable."""


def describe_error(e: Exception, context: str = "") -> str:
    """Format errors consistently."""
    prefix = f"[{context}] " if context else ""

    status = None
    if isinstance(e, RemoteError):
        status = e.code
    elif isinstance(e, genai_errors.APIError):
        status = e.code

    if status == 401:
        return f"{prefix}Error: Authentication failed. Check GOOGLE_API_KEY."
    elif status == 403:
        return f"{prefix}Error: Access forbidden. Check API permissions and model access."
    elif status == 404:
        return f"{prefix}Error: Model or resource not found."
    elif status == 429:
        return f"{prefix}Error: Rate limit or quota exceeded. Please wait before retrying."

    # RemoteError keeps the SDK exception as its cause
    if isinstance(e, httpx.TimeoutException) or isinstance(e.__cause__, httpx.TimeoutException):
        return f"{prefix}Error: Request timed out. Try again or use a simpler prompt."

    if isinstance(e, (InvalidArgument, EmptyResult, RemoteError)):
        return f"{prefix}Error: {e}"

    return f"{prefix}Error: {type(e).__name__} - {e}"
