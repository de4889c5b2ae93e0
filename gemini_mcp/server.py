"""
MCP Server for Google generative media.

Generates and edits images with Gemini, generates images with Imagen, and
generates videos with Veo. Every tool saves its output and a JSON metadata
sidecar to a local directory.
"""

import logging
from typing import Awaitable, Optional, TypeVar

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from . import SERVICE_NAME
from .client import GenMediaClient
from .config import ServerConfig
from .errors import GeminiMCPError, describe_error
from .handlers import MediaToolHandlers
from .models import (
    GeminiImageEditInput,
    GeminiImageEditOutput,
    GeminiImageGenerationInput,
    GeminiImageGenerationOutput,
    GeminiMultiImageInput,
    GeminiMultiImageOutput,
    ImagenGenerationInput,
    ImagenGenerationOutput,
    VeoGenerationInput,
    VeoGenerationOutput,
    VeoImageToVideoInput,
    VeoTextToVideoInput,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

SERVER_INSTRUCTIONS = (
    "Generate images and videos with Google's Gemini, Imagen and Veo models. "
    "Generated files and JSON metadata are saved to a local output directory; "
    "paths are returned in 'saved_files'. Video tools wait for the remote job "
    "and can take several minutes."
)

# ============================================================================
# Tool registry
# ============================================================================

TOOL_DESCRIPTIONS = {
    "gemini_image_generation": (
        "Generate high-quality images using Google's latest Gemini image generation models. "
        "Supports text-to-image generation with advanced style control, quality settings, and "
        "multi-language prompts. Features include customizable aspect ratios, artistic styles, "
        "content safety levels, and high-fidelity text rendering."
    ),
    "gemini_image_edit": (
        "Edit existing images using Google's Gemini AI models. Supports targeted image "
        "modifications, style transfers, object addition/removal, and background changes. "
        "Provides precise control over edit types and can preserve original image "
        "characteristics while making specific alterations."
    ),
    "gemini_multi_image": (
        "Combine and blend multiple images using Google's Gemini AI models. Supports merging "
        "2-3 images into cohesive compositions, creating collages, overlays, and seamless "
        "blends. Ideal for character consistency across scenes, style unification, and "
        "creative image compositions."
    ),
    "imagen_t2i": (
        "Generate high-quality images using Google's Imagen models via the Gemini API. Imagen "
        "is Google's text-to-image diffusion model for photorealistic and artistic images "
        "from detailed text descriptions. Generates 1-4 images per request."
    ),
    "veo_text_to_video": (
        "Generate 8-second videos from text prompts using Google's Veo models. Create videos "
        "with detailed scene descriptions, camera movements, and realistic physics. Supports "
        "16:9/9:16 aspect ratios, 720p/1080p resolution, negative prompts, and includes "
        "SynthID watermarking."
    ),
    "veo_image_to_video": (
        "Animate static images into 8-second videos using Google's Veo models. Transform "
        "photos into dynamic scenes with natural motion, camera movements, and realistic "
        "physics. The input image becomes the starting frame of the generated video."
    ),
    "veo_generate_video": (
        "Generate 8-second videos using Google's Veo models. Supports both text-to-video and "
        "image-to-video creation (pass image_path to animate an image). Features 16:9 and 9:16 "
        "aspect ratios, 720p/1080p resolution, negative prompts, and automatic operation "
        "polling with local download of the finished video."
    ),
}

TOOL_TITLES = {
    "gemini_image_generation": "Generate Image with Gemini",
    "gemini_image_edit": "Edit Image with Gemini",
    "gemini_multi_image": "Combine Images with Gemini",
    "imagen_t2i": "Generate Images with Imagen",
    "veo_text_to_video": "Generate Video from Text",
    "veo_image_to_video": "Animate Image to Video",
    "veo_generate_video": "Generate Video (Legacy)",
}


def _annotations(name: str) -> dict:
    return {
        "title": TOOL_TITLES[name],
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": True,
    }


async def _run_tool(call: Awaitable[T], context: str) -> T:
    """Await a handler and turn any failure into an MCP tool error."""
    try:
        return await call
    except GeminiMCPError as e:
        logger.warning("%s failed: %s", context, e)
        raise ToolError(describe_error(e, context)) from e
    except Exception as e:
        logger.exception("%s failed unexpectedly", context)
        raise ToolError(describe_error(e, context)) from e


# ============================================================================
# Server factory
# ============================================================================

def create_server(config: ServerConfig, handlers: Optional[MediaToolHandlers] = None) -> FastMCP:
    """Build a FastMCP server with all seven tools registered.

    Args:
        config: Server configuration.
        handlers: Pre-built handlers; by default they are created with a
            ``GenMediaClient`` for ``config``.
    """
    if handlers is None:
        handlers = MediaToolHandlers(config, GenMediaClient.from_config(config))

    mcp = FastMCP(
        SERVICE_NAME,
        instructions=SERVER_INSTRUCTIONS,
        host=config.host,
        port=config.port,
        log_level=config.log_level,
    )

    @mcp.tool(
        name="gemini_image_generation",
        description=TOOL_DESCRIPTIONS["gemini_image_generation"],
        annotations=_annotations("gemini_image_generation"),
    )
    async def gemini_image_generation(params: GeminiImageGenerationInput) -> GeminiImageGenerationOutput:
        return await _run_tool(handlers.generate_image(params), "Image Generation")

    @mcp.tool(
        name="gemini_image_edit",
        description=TOOL_DESCRIPTIONS["gemini_image_edit"],
        annotations=_annotations("gemini_image_edit"),
    )
    async def gemini_image_edit(params: GeminiImageEditInput) -> GeminiImageEditOutput:
        return await _run_tool(handlers.edit_image(params), "Image Edit")

    @mcp.tool(
        name="gemini_multi_image",
        description=TOOL_DESCRIPTIONS["gemini_multi_image"],
        annotations=_annotations("gemini_multi_image"),
    )
    async def gemini_multi_image(params: GeminiMultiImageInput) -> GeminiMultiImageOutput:
        return await _run_tool(handlers.combine_images(params), "Multi-Image")

    @mcp.tool(
        name="imagen_t2i",
        description=TOOL_DESCRIPTIONS["imagen_t2i"],
        annotations=_annotations("imagen_t2i"),
    )
    async def imagen_t2i(params: ImagenGenerationInput) -> ImagenGenerationOutput:
        return await _run_tool(handlers.imagen_generate(params), "Imagen")

    @mcp.tool(
        name="veo_text_to_video",
        description=TOOL_DESCRIPTIONS["veo_text_to_video"],
        annotations=_annotations("veo_text_to_video"),
    )
    async def veo_text_to_video(params: VeoTextToVideoInput) -> VeoGenerationOutput:
        return await _run_tool(handlers.text_to_video(params), "Text-to-Video")

    @mcp.tool(
        name="veo_image_to_video",
        description=TOOL_DESCRIPTIONS["veo_image_to_video"],
        annotations=_annotations("veo_image_to_video"),
    )
    async def veo_image_to_video(params: VeoImageToVideoInput) -> VeoGenerationOutput:
        return await _run_tool(handlers.image_to_video(params), "Image-to-Video")

    @mcp.tool(
        name="veo_generate_video",
        description=TOOL_DESCRIPTIONS["veo_generate_video"],
        annotations=_annotations("veo_generate_video"),
    )
    async def veo_generate_video(params: VeoGenerationInput) -> VeoGenerationOutput:
        return await _run_tool(handlers.generate_video(params), "Video Generation")

    return mcp
