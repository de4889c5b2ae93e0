"""MCP server exposing Google's Gemini, Imagen and Veo media generation."""

SERVICE_NAME = "gemini-mcp"
DESCRIPTION = "A Model Context Protocol server for Google Gemini AI services"

__version__ = "0.1.0"

# Replaced by the release build.
BUILD_TIME = "unknown"
GIT_COMMIT = "unknown"
