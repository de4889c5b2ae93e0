"""Typed tool inputs, outputs and per-tool default tables."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Enums
# ============================================================================

class Quality(str, Enum):
    """Gemini image quality preference."""
    HIGH = "high"
    MEDIUM = "medium"
    DRAFT = "draft"


class SafetyLevel(str, Enum):
    """Content filtering strictness."""
    STRICT = "strict"
    MODERATE = "moderate"
    PERMISSIVE = "permissive"


class Language(str, Enum):
    """Prompt language."""
    ENGLISH = "en"
    SPANISH_MEXICO = "es-MX"
    JAPANESE = "ja"
    CHINESE = "zh"
    HINDI = "hi"


class EditType(str, Enum):
    """Kind of image edit."""
    MODIFY = "modify"
    ADD = "add"
    REMOVE = "remove"
    STYLE = "style"


class BlendMode(str, Enum):
    """How multiple images are combined."""
    MERGE = "merge"
    COLLAGE = "collage"
    OVERLAY = "overlay"
    SEQUENCE = "sequence"


class ImagenAspectRatio(str, Enum):
    """Aspect ratios accepted by Imagen."""
    SQUARE = "1:1"
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    STANDARD = "4:3"
    STANDARD_PORTRAIT = "3:4"


class VideoAspectRatio(str, Enum):
    """Aspect ratios accepted by Veo."""
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"


class VideoResolution(str, Enum):
    """Veo output resolution. 1080p is only supported for 16:9."""
    HD = "720p"
    FULL_HD = "1080p"


class VeoModel(str, Enum):
    """Supported Veo model versions."""
    VEO_3 = "veo-3.0-generate-001"
    VEO_3_FAST = "veo-3.0-fast-generate-001"
    VEO_2 = "veo-2.0-generate-001"


class VideoStatus(str, Enum):
    """Final state of a video generation call."""
    COMPLETED = "completed"
    FAILED = "failed"
    TIMEOUT = "timeout"
    POLL_ERROR = "poll_error"


# ============================================================================
# Default tables
# ============================================================================

GEMINI_IMAGE_MODEL = "gemini-2.5-flash-image-preview"
IMAGEN_MODEL = "imagen-4.0-generate-001"
VEO_MODEL = VeoModel.VEO_3.value
ESTIMATED_VIDEO_LENGTH = "8 seconds"

IMAGE_GENERATION_DEFAULTS = {
    "model": GEMINI_IMAGE_MODEL,
    "style": "photorealistic",
    "quality": Quality.HIGH.value,
    "safety_level": SafetyLevel.MODERATE.value,
    "language": Language.ENGLISH.value,
}

IMAGE_EDIT_DEFAULTS = {
    "model": GEMINI_IMAGE_MODEL,
    "edit_type": EditType.MODIFY.value,
    "preserve_style": True,
}

MULTI_IMAGE_DEFAULTS = {
    "model": GEMINI_IMAGE_MODEL,
    "blend_mode": BlendMode.MERGE.value,
}

IMAGEN_DEFAULTS = {
    "model": IMAGEN_MODEL,
    "num_images": 1,
    "aspect_ratio": ImagenAspectRatio.SQUARE.value,
}

VIDEO_DEFAULTS = {
    "model": VEO_MODEL,
    "aspect_ratio": VideoAspectRatio.LANDSCAPE.value,
    "resolution": VideoResolution.HD.value,
}

MULTI_IMAGE_MIN = 2
MULTI_IMAGE_MAX = 3
IMAGEN_MIN_IMAGES = 1
IMAGEN_MAX_IMAGES = 4


def resolve(value: Any, defaults: Dict[str, Any], key: str) -> Any:
    """Return ``value`` unless it is unset or empty, else the table default."""
    if value is None or value == "":
        return defaults[key]
    if isinstance(value, Enum):
        return value.value
    return value


# ============================================================================
# Input Models
# ============================================================================

_INPUT_CONFIG = ConfigDict(str_strip_whitespace=True, validate_assignment=True, extra='forbid')

_OUTPUT_DIRECTORY_DESCRIPTION = (
    "Optional. Local directory path where generated files and metadata will be saved. "
    "If not provided, files are saved to the server's default output directory."
)


class GeminiImageGenerationInput(BaseModel):
    """Input for generating an image from text with Gemini."""
    model_config = _INPUT_CONFIG

    prompt: str = Field(
        ...,
        description="Detailed text prompt describing what you want to visualize. Be specific about style, composition, colors, mood, and any particular elements you want included in the image.",
    )
    model: Optional[str] = Field(
        default=None,
        description="Gemini model to use for generation. Supported: 'gemini-2.5-flash-image-preview' (default), 'gemini-2.0-flash-preview'.",
    )
    style: Optional[str] = Field(
        default=None,
        description="Image style preference such as 'photorealistic' (default), 'artistic', 'cartoon', 'sketch', 'oil painting', 'watercolor'.",
        max_length=200,
    )
    aspect_ratio: Optional[str] = Field(
        default=None,
        description="Preferred aspect ratio. Common ratios: '1:1' (square), '16:9' (landscape), '9:16' (portrait), '4:3', '3:4'.",
        max_length=20,
    )
    quality: Optional[Quality] = Field(
        default=None,
        description="Image quality preference: 'high' (default), 'medium', 'draft'. Higher quality may take longer.",
    )
    safety_level: Optional[SafetyLevel] = Field(
        default=None,
        description="Content safety level: 'strict', 'moderate' (default), 'permissive'.",
    )
    language: Optional[Language] = Field(
        default=None,
        description="Language for prompt processing: 'en' (default), 'es-MX', 'ja', 'zh', 'hi'.",
    )
    include_text: bool = Field(
        default=False,
        description="Enable high-fidelity text rendering for images that need clear text elements.",
    )
    tags: List[str] = Field(
        default_factory=list,
        description="Optional tags to help categorize or describe the generated image.",
    )
    output_directory: Optional[str] = Field(default=None, description=_OUTPUT_DIRECTORY_DESCRIPTION)


class GeminiImageEditInput(BaseModel):
    """Input for editing an existing local image with Gemini."""
    model_config = _INPUT_CONFIG

    input_image_path: str = Field(
        ...,
        description="Path to the input image file to edit (PNG, JPEG, WebP supported).",
    )
    edit_prompt: str = Field(
        ...,
        description="Detailed description of how to edit the image. Be specific about what changes to make.",
    )
    model: Optional[str] = Field(
        default=None,
        description="Gemini model to use for image editing (default 'gemini-2.5-flash-image-preview').",
    )
    preserve_style: Optional[bool] = Field(
        default=None,
        description="Whether to preserve the original image style during editing (default true).",
    )
    edit_type: Optional[EditType] = Field(
        default=None,
        description="Type of edit: 'modify' (default), 'add', 'remove', 'style'.",
    )
    mask_area: Optional[str] = Field(
        default=None,
        description="Specific area to focus edits on (e.g., 'background', 'foreground', 'top-left', 'center').",
        max_length=200,
    )
    output_directory: Optional[str] = Field(default=None, description=_OUTPUT_DIRECTORY_DESCRIPTION)


class GeminiMultiImageInput(BaseModel):
    """Input for combining 2-3 local images with Gemini."""
    model_config = _INPUT_CONFIG

    input_image_paths: List[str] = Field(
        ...,
        description="Paths to input image files to combine (2 or 3 images).",
    )
    combine_prompt: str = Field(
        ...,
        description="Description of how to combine or blend the images.",
    )
    model: Optional[str] = Field(
        default=None,
        description="Gemini model to use for multi-image processing (default 'gemini-2.5-flash-image-preview').",
    )
    blend_mode: Optional[BlendMode] = Field(
        default=None,
        description="How to blend images: 'merge' (default), 'collage', 'overlay', 'sequence'.",
    )
    output_style: Optional[str] = Field(
        default=None,
        description="Style for the combined image: 'photorealistic', 'artistic', 'seamless'.",
        max_length=200,
    )
    output_directory: Optional[str] = Field(default=None, description=_OUTPUT_DIRECTORY_DESCRIPTION)


class ImagenGenerationInput(BaseModel):
    """Input for text-to-image generation with Imagen."""
    model_config = _INPUT_CONFIG

    prompt: str = Field(
        ...,
        description="Detailed text prompt for image generation. Example: 'A serene mountain landscape at sunset with purple and orange sky, reflecting in a calm lake, photorealistic style'",
    )
    model: Optional[str] = Field(
        default=None,
        description="Imagen model variant to use (default 'imagen-4.0-generate-001').",
    )
    num_images: Optional[int] = Field(
        default=None,
        description="Number of images to generate in a single request (1-4, default 1).",
    )
    aspect_ratio: Optional[ImagenAspectRatio] = Field(
        default=None,
        description="Aspect ratio for generated images: '1:1' (default), '16:9', '9:16', '4:3', '3:4'.",
    )
    output_directory: Optional[str] = Field(default=None, description=_OUTPUT_DIRECTORY_DESCRIPTION)


class _VideoInputBase(BaseModel):
    model_config = _INPUT_CONFIG

    prompt: str = Field(
        ...,
        description="Detailed text prompt describing the video content (max 1024 tokens). Be specific about scenes, actions, camera movements, visual style, and any audio elements.",
    )
    negative_prompt: Optional[str] = Field(
        default=None,
        description="Description of what should NOT appear in the video.",
    )
    aspect_ratio: Optional[VideoAspectRatio] = Field(
        default=None,
        description="Video width-to-height ratio: '16:9' (default) or '9:16'.",
    )
    resolution: Optional[VideoResolution] = Field(
        default=None,
        description="Video resolution: '720p' (default) or '1080p'. 1080p is only supported for 16:9.",
    )
    model: Optional[VeoModel] = Field(
        default=None,
        description="Veo model version: 'veo-3.0-generate-001' (default), 'veo-3.0-fast-generate-001', 'veo-2.0-generate-001'.",
    )
    seed: Optional[int] = Field(
        default=None,
        description="Optional seed value for slight reproducibility in generation.",
        ge=0,
    )
    output_directory: Optional[str] = Field(
        default=None,
        description="Local directory path where the 8-second MP4 video will be saved. Videos have 2-day retention on the server and include a SynthID watermark.",
    )


class VeoTextToVideoInput(_VideoInputBase):
    """Input for text-to-video generation with Veo."""


class VeoImageToVideoInput(_VideoInputBase):
    """Input for animating a local image into a video with Veo."""

    image_path: str = Field(
        ...,
        description="Path to the initial image file to animate as the starting frame of the video. Supports JPEG, PNG.",
    )


class VeoGenerationInput(_VideoInputBase):
    """Input for the legacy combined video tool. ``image_path`` is optional."""

    image_path: Optional[str] = Field(
        default=None,
        description="Optional path to an initial image file to animate as the starting frame of the video.",
    )


# ============================================================================
# Output Models
# ============================================================================

class _OutputBase(BaseModel):
    saved_files: List[str] = Field(default_factory=list)
    generated_at: str
    write_errors: List[str] = Field(
        default_factory=list,
        description="Files that could not be written. The call still succeeded.",
    )


class GeminiImageGenerationOutput(_OutputBase):
    description: str
    model: str
    style: Optional[str] = None
    aspect_ratio: Optional[str] = None
    quality: Optional[str] = None
    language: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    metadata: Dict[str, str] = Field(default_factory=dict)
    images_created: int = 0


class GeminiImageEditOutput(_OutputBase):
    original_image: str
    edited_image: Optional[str] = None
    edit_type: str
    model: str
    description: str = ""
    metadata: Dict[str, str] = Field(default_factory=dict)


class GeminiMultiImageOutput(_OutputBase):
    input_images: List[str]
    combined_image: Optional[str] = None
    blend_mode: str
    model: str
    description: str = ""
    metadata: Dict[str, str] = Field(default_factory=dict)
    images_processed: int


class ImagenGenerationOutput(_OutputBase):
    images_generated: int
    model: str
    aspect_ratio: str


class VeoGenerationOutput(_OutputBase):
    operation_id: Optional[str] = None
    status: VideoStatus
    error: Optional[str] = None
    video_url: Optional[str] = None
    model: str
    aspect_ratio: str
    resolution: str
    metadata: Dict[str, str] = Field(default_factory=dict)
    estimated_length: str = ESTIMATED_VIDEO_LENGTH
    poll_attempts: int = 0
