"""Tool handlers.

Each handler validates its input, fills in defaults, assembles the
instruction text, calls the remote API, writes returned payloads and a JSON
sidecar, and returns a typed result. Handlers raise ``InvalidArgument``,
``RemoteError`` or ``EmptyResult``; file write failures are reported in the
result instead.
"""

import logging
import mimetypes
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from google.genai import types

from . import prompts
from .config import ServerConfig
from .errors import EmptyResult, InvalidArgument, RemoteError
from .models import (
    ESTIMATED_VIDEO_LENGTH,
    IMAGE_EDIT_DEFAULTS,
    IMAGE_GENERATION_DEFAULTS,
    IMAGEN_DEFAULTS,
    IMAGEN_MAX_IMAGES,
    IMAGEN_MIN_IMAGES,
    MULTI_IMAGE_DEFAULTS,
    MULTI_IMAGE_MAX,
    MULTI_IMAGE_MIN,
    VIDEO_DEFAULTS,
    GeminiImageEditInput,
    GeminiImageEditOutput,
    GeminiImageGenerationInput,
    GeminiImageGenerationOutput,
    GeminiMultiImageInput,
    GeminiMultiImageOutput,
    ImagenGenerationInput,
    ImagenGenerationOutput,
    SafetyLevel,
    VeoGenerationInput,
    VeoGenerationOutput,
    VeoImageToVideoInput,
    VeoTextToVideoInput,
    VideoStatus,
    resolve,
)
from .poller import MAX_POLL_ATTEMPTS, POLL_INTERVAL_SECONDS, Sleep, poll_operation
from .storage import ArtifactWriter, extension_for, format_timestamp

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MIME = "image/png"
DEFAULT_DESCRIPTION = "Image generated successfully"

SAFETY_THRESHOLDS = {
    SafetyLevel.STRICT.value: types.HarmBlockThreshold.BLOCK_LOW_AND_ABOVE,
    SafetyLevel.MODERATE.value: types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    SafetyLevel.PERMISSIVE.value: types.HarmBlockThreshold.BLOCK_ONLY_HIGH,
}

HARM_CATEGORIES = (
    types.HarmCategory.HARM_CATEGORY_HARASSMENT,
    types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
    types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
    types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
)


@dataclass(frozen=True)
class VideoKind:
    """Naming and logging details of one video tool."""
    family: str
    media_prefix: str
    label: str
    generation_type: Optional[str] = None


LEGACY_VIDEO = VideoKind(family="veo", media_prefix="veo_video", label="video generation")
TEXT_TO_VIDEO = VideoKind(
    family="veo_text_to_video",
    media_prefix="veo_text_to_video",
    label="text-to-video generation",
    generation_type="text-to-video",
)
IMAGE_TO_VIDEO = VideoKind(
    family="veo_image_to_video",
    media_prefix="veo_image_to_video",
    label="image-to-video generation",
    generation_type="image-to-video",
)


# ============================================================================
# Helpers
# ============================================================================

def _require(value: Any, name: str) -> None:
    if value is None or (isinstance(value, (str, list)) and not value):
        raise InvalidArgument(f"{name} is required")


def _read_image(path: str) -> Tuple[bytes, str]:
    """Load a local image and guess its MIME type from the file name."""
    image_path = Path(path).expanduser()
    if not image_path.is_file():
        raise InvalidArgument(f"image file not found: {path}")
    try:
        data = image_path.read_bytes()
    except OSError as e:
        raise InvalidArgument(f"failed to read input image {path}: {e}")
    mime_type, _ = mimetypes.guess_type(image_path.name)
    if not mime_type or not mime_type.startswith("image/"):
        mime_type = DEFAULT_IMAGE_MIME
    return data, mime_type


def safety_settings(level: str) -> List[types.SafetySetting]:
    threshold = SAFETY_THRESHOLDS[level]
    return [types.SafetySetting(category=c, threshold=threshold) for c in HARM_CATEGORIES]


def content_config(safety_level: Optional[str] = None) -> types.GenerateContentConfig:
    kwargs: Dict[str, Any] = {"response_modalities": ["TEXT", "IMAGE"]}
    if safety_level:
        kwargs["safety_settings"] = safety_settings(safety_level)
    return types.GenerateContentConfig(**kwargs)


def unpack_content(response: Optional[types.GenerateContentResponse]) -> Tuple[str, List[types.Blob]]:
    """Split a response into its text description and inline binary payloads.

    Raises:
        EmptyResult: no candidates, or no parts in any candidate.
    """
    if response is None or not response.candidates:
        raise EmptyResult("no content was generated")

    description = ""
    blobs: List[types.Blob] = []
    fragments = 0
    for candidate in response.candidates:
        if candidate.content is None or not candidate.content.parts:
            continue
        for part in candidate.content.parts:
            fragments += 1
            if part.text:
                description = part.text
            if part.inline_data is not None and part.inline_data.data:
                blobs.append(part.inline_data)

    if fragments == 0:
        raise EmptyResult("no content was generated")
    return description, blobs


# ============================================================================
# Handlers
# ============================================================================

class MediaToolHandlers:
    """Request pipelines behind the MCP tools.

    Args:
        config: Server configuration; supplies the default output directory.
        client: A ``GenMediaClient`` (or any object with the same coroutines).
        clock: Returns the current time; used for file names and timestamps.
        sleep: Awaitable sleep used between video status checks.
        poll_interval: Seconds between video status checks.
        max_poll_attempts: Status check budget per video call.
    """

    def __init__(
        self,
        config: ServerConfig,
        client,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Optional[Sleep] = None,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        max_poll_attempts: int = MAX_POLL_ATTEMPTS,
    ):
        self.config = config
        self.client = client
        self.clock = clock
        self.sleep = sleep
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts

    def _writer(self, output_directory: Optional[str]) -> ArtifactWriter:
        return ArtifactWriter.for_call(output_directory, self.config.output_dir, format_timestamp(self.clock()))

    # ------------------------------------------------------------------
    # Gemini image generation
    # ------------------------------------------------------------------

    async def generate_image(self, params: GeminiImageGenerationInput) -> GeminiImageGenerationOutput:
        _require(params.prompt, "prompt")

        model = resolve(params.model, IMAGE_GENERATION_DEFAULTS, "model")
        style = resolve(params.style, IMAGE_GENERATION_DEFAULTS, "style")
        quality = resolve(params.quality, IMAGE_GENERATION_DEFAULTS, "quality")
        safety_level = resolve(params.safety_level, IMAGE_GENERATION_DEFAULTS, "safety_level")
        language = resolve(params.language, IMAGE_GENERATION_DEFAULTS, "language")

        logger.info(
            "Generating image with model %s for prompt: %s (style: %s, quality: %s)",
            model, params.prompt, style, quality,
        )

        prompt_text = prompts.image_generation_prompt(
            params.prompt,
            style=style,
            quality=quality,
            aspect_ratio=params.aspect_ratio,
            include_text=params.include_text,
        )
        response = await self.client.generate_content(
            model, [types.Part.from_text(text=prompt_text)], content_config(safety_level)
        )
        description, blobs = unpack_content(response)

        writer = self._writer(params.output_directory)
        for blob in blobs:
            writer.write_media("gemini_generated", style, blob.data, extension_for(blob.mime_type))
        images_created = len(blobs)
        description = description or DEFAULT_DESCRIPTION

        record = params.model_dump(mode="json")
        record.update({
            "model": model,
            "style": style,
            "quality": quality,
            "safety_level": safety_level,
            "language": language,
            "enhanced_prompt": prompt_text,
            "description": description,
            "generated_at": writer.timestamp,
            "images_created": images_created,
        })
        writer.write_metadata("gemini", record)

        return GeminiImageGenerationOutput(
            description=description,
            model=model,
            style=style,
            aspect_ratio=params.aspect_ratio,
            quality=quality,
            language=language,
            tags=params.tags,
            saved_files=writer.saved_files,
            metadata={
                "original_prompt": params.prompt,
                "enhanced_prompt": prompt_text,
                "quality": quality,
                "safety_level": safety_level,
            },
            generated_at=writer.timestamp,
            images_created=images_created,
            write_errors=writer.errors,
        )

    # ------------------------------------------------------------------
    # Gemini image edit
    # ------------------------------------------------------------------

    async def edit_image(self, params: GeminiImageEditInput) -> GeminiImageEditOutput:
        _require(params.input_image_path, "input_image_path")
        _require(params.edit_prompt, "edit_prompt")

        model = resolve(params.model, IMAGE_EDIT_DEFAULTS, "model")
        edit_type = resolve(params.edit_type, IMAGE_EDIT_DEFAULTS, "edit_type")
        preserve_style = resolve(params.preserve_style, IMAGE_EDIT_DEFAULTS, "preserve_style")

        image_data, mime_type = _read_image(params.input_image_path)

        logger.info("Editing image %s with model %s: %s", params.input_image_path, model, params.edit_prompt)

        prompt_text = prompts.image_edit_prompt(
            params.edit_prompt,
            edit_type=edit_type,
            preserve_style=preserve_style,
            mask_area=params.mask_area,
        )
        parts = [
            types.Part.from_text(text=prompt_text),
            types.Part.from_bytes(data=image_data, mime_type=mime_type),
        ]
        response = await self.client.generate_content(model, parts, content_config())
        description, blobs = unpack_content(response)

        writer = self._writer(params.output_directory)
        edited_image = None
        for blob in blobs:
            outcome = writer.write_media("gemini_edited", edit_type, blob.data, extension_for(blob.mime_type))
            if outcome.ok:
                edited_image = str(outcome.path)

        record = params.model_dump(mode="json")
        record.update({
            "model": model,
            "edit_type": edit_type,
            "preserve_style": preserve_style,
            "enhanced_prompt": prompt_text,
            "description": description,
            "edited_image": edited_image,
            "generated_at": writer.timestamp,
        })
        writer.write_metadata("gemini_edited", record)

        return GeminiImageEditOutput(
            original_image=params.input_image_path,
            edited_image=edited_image,
            edit_type=edit_type,
            model=model,
            description=description,
            saved_files=writer.saved_files,
            metadata={
                "original_image": params.input_image_path,
                "edit_prompt": params.edit_prompt,
                "edit_type": edit_type,
                "preserve_style": str(preserve_style).lower(),
                "mask_area": params.mask_area or "",
            },
            generated_at=writer.timestamp,
            write_errors=writer.errors,
        )

    # ------------------------------------------------------------------
    # Gemini multi-image combine
    # ------------------------------------------------------------------

    async def combine_images(self, params: GeminiMultiImageInput) -> GeminiMultiImageOutput:
        paths = params.input_image_paths or []
        if len(paths) < MULTI_IMAGE_MIN:
            raise InvalidArgument(f"at least {MULTI_IMAGE_MIN} input images are required")
        if len(paths) > MULTI_IMAGE_MAX:
            raise InvalidArgument(f"maximum {MULTI_IMAGE_MAX} input images supported")
        for path in paths:
            _require(path, "input_image_paths entry")
        _require(params.combine_prompt, "combine_prompt")

        model = resolve(params.model, MULTI_IMAGE_DEFAULTS, "model")
        blend_mode = resolve(params.blend_mode, MULTI_IMAGE_DEFAULTS, "blend_mode")

        images = []
        for i, path in enumerate(paths):
            try:
                images.append(_read_image(path))
            except InvalidArgument as e:
                raise InvalidArgument(f"image {i + 1}: {e}")

        logger.info("Combining %d images with model %s: %s", len(paths), model, params.combine_prompt)

        prompt_text = prompts.multi_image_prompt(
            params.combine_prompt, blend_mode=blend_mode, output_style=params.output_style
        )
        parts = [types.Part.from_text(text=prompt_text)]
        parts.extend(types.Part.from_bytes(data=data, mime_type=mime) for data, mime in images)

        response = await self.client.generate_content(model, parts, content_config())
        description, blobs = unpack_content(response)

        writer = self._writer(params.output_directory)
        combined_image = None
        for blob in blobs:
            outcome = writer.write_media("gemini_combined", blend_mode, blob.data, extension_for(blob.mime_type))
            if outcome.ok:
                combined_image = str(outcome.path)

        record = params.model_dump(mode="json")
        record.update({
            "model": model,
            "blend_mode": blend_mode,
            "enhanced_prompt": prompt_text,
            "description": description,
            "combined_image": combined_image,
            "generated_at": writer.timestamp,
            "images_processed": len(paths),
        })
        writer.write_metadata("gemini_combined", record)

        return GeminiMultiImageOutput(
            input_images=list(paths),
            combined_image=combined_image,
            blend_mode=blend_mode,
            model=model,
            description=description,
            saved_files=writer.saved_files,
            metadata={
                "combine_prompt": params.combine_prompt,
                "blend_mode": blend_mode,
                "output_style": params.output_style or "",
                "images_count": str(len(paths)),
            },
            generated_at=writer.timestamp,
            images_processed=len(paths),
            write_errors=writer.errors,
        )

    # ------------------------------------------------------------------
    # Imagen text-to-image
    # ------------------------------------------------------------------

    async def imagen_generate(self, params: ImagenGenerationInput) -> ImagenGenerationOutput:
        _require(params.prompt, "prompt")

        model = resolve(params.model, IMAGEN_DEFAULTS, "model")
        num_images = params.num_images if params.num_images else IMAGEN_DEFAULTS["num_images"]
        if not IMAGEN_MIN_IMAGES <= num_images <= IMAGEN_MAX_IMAGES:
            raise InvalidArgument(
                f"num_images must be between {IMAGEN_MIN_IMAGES} and {IMAGEN_MAX_IMAGES}, got {num_images}"
            )
        aspect_ratio = resolve(params.aspect_ratio, IMAGEN_DEFAULTS, "aspect_ratio")

        logger.info("Generating %d image(s) with model %s for prompt: %s", num_images, model, params.prompt)

        response = await self.client.generate_images(model, params.prompt, num_images, aspect_ratio)
        if response is None or not response.generated_images:
            raise EmptyResult("no images were generated")

        writer = self._writer(params.output_directory)
        for generated in response.generated_images:
            image = generated.image
            if image is None or not image.image_bytes:
                continue
            writer.write_media("imagen", None, image.image_bytes, extension_for(image.mime_type))

        record = params.model_dump(mode="json")
        record.update({
            "model": model,
            "num_images": num_images,
            "aspect_ratio": aspect_ratio,
            "enhanced_prompt": params.prompt,
            "generated_at": writer.timestamp,
            "images_generated": len(response.generated_images),
        })
        writer.write_metadata("imagen", record)

        return ImagenGenerationOutput(
            images_generated=len(response.generated_images),
            model=model,
            aspect_ratio=aspect_ratio,
            saved_files=writer.saved_files,
            generated_at=writer.timestamp,
            write_errors=writer.errors,
        )

    # ------------------------------------------------------------------
    # Veo video generation
    # ------------------------------------------------------------------

    async def text_to_video(self, params: VeoTextToVideoInput) -> VeoGenerationOutput:
        return await self._generate_video(params, TEXT_TO_VIDEO, image_path=None)

    async def image_to_video(self, params: VeoImageToVideoInput) -> VeoGenerationOutput:
        _require(params.image_path, "image_path")
        return await self._generate_video(params, IMAGE_TO_VIDEO, image_path=params.image_path)

    async def generate_video(self, params: VeoGenerationInput) -> VeoGenerationOutput:
        return await self._generate_video(params, LEGACY_VIDEO, image_path=params.image_path or None)

    async def _generate_video(self, params, kind: VideoKind, image_path: Optional[str]) -> VeoGenerationOutput:
        _require(params.prompt, "prompt")

        image = None
        if image_path:
            data, mime_type = _read_image(image_path)
            image = types.Image(image_bytes=data, mime_type=mime_type)

        aspect_ratio = resolve(params.aspect_ratio, VIDEO_DEFAULTS, "aspect_ratio")
        resolution = resolve(params.resolution, VIDEO_DEFAULTS, "resolution")
        model = resolve(params.model, VIDEO_DEFAULTS, "model")

        if image_path:
            logger.info(
                "Generating %s with model %s for image: %s, prompt: %s (aspect: %s, resolution: %s)",
                kind.label, model, image_path, params.prompt, aspect_ratio, resolution,
            )
        else:
            logger.info(
                "Generating %s with model %s for prompt: %s (aspect: %s, resolution: %s)",
                kind.label, model, params.prompt, aspect_ratio, resolution,
            )

        writer = self._writer(params.output_directory)
        prompt_text = prompts.video_prompt(params.prompt, params.negative_prompt)

        config_kwargs = {"aspect_ratio": aspect_ratio, "number_of_videos": 1}
        if params.seed:
            config_kwargs["seed"] = params.seed
        # veo-2 models reject the resolution field
        if model.startswith("veo-3"):
            config_kwargs["resolution"] = resolution
        video_config = types.GenerateVideosConfig(**config_kwargs)

        operation = await self.client.generate_videos(model, prompt_text, image, video_config)
        operation_id = operation.name
        logger.info("%s started with operation ID: %s", kind.label.capitalize(), operation_id)

        poll_kwargs = {}
        if self.sleep is not None:
            poll_kwargs["sleep"] = self.sleep
        result = await poll_operation(
            self.client,
            operation,
            interval=self.poll_interval,
            max_attempts=self.max_poll_attempts,
            label=kind.label,
            **poll_kwargs,
        )

        video_url = None
        download_errors = []
        if result.status is VideoStatus.COMPLETED:
            for generated in result.videos:
                try:
                    data = await self.client.download_video(generated.video)
                except RemoteError as e:
                    logger.warning("Could not download video: %s", e)
                    download_errors.append(f"download failed: {e}")
                    continue
                outcome = writer.write_media(
                    kind.media_prefix, None, data, extension_for(generated.video.mime_type, "mp4")
                )
                if outcome.ok and video_url is None:
                    video_url = str(outcome.path)

        metadata = {
            "original_prompt": params.prompt,
            "negative_prompt": params.negative_prompt or "",
            "operation_id": operation_id or "",
        }
        if kind.generation_type:
            metadata["generation_type"] = kind.generation_type
        if image_path:
            metadata["input_image"] = image_path
        if params.seed:
            metadata["seed"] = str(params.seed)

        record = params.model_dump(mode="json")
        record.update({
            "model": model,
            "aspect_ratio": aspect_ratio,
            "resolution": resolution,
            "enhanced_prompt": prompt_text,
            "operation_id": operation_id,
            "video_url": video_url,
            "status": result.status.value,
            "error": result.error,
            "poll_attempts": result.attempts,
            "generated_at": writer.timestamp,
            "estimated_length": ESTIMATED_VIDEO_LENGTH,
        })
        if kind.generation_type:
            record["generation_type"] = kind.generation_type
        writer.write_metadata(kind.family, record)

        return VeoGenerationOutput(
            operation_id=operation_id,
            status=result.status,
            error=result.error,
            video_url=video_url,
            saved_files=writer.saved_files,
            model=model,
            aspect_ratio=aspect_ratio,
            resolution=resolution,
            metadata=metadata,
            generated_at=writer.timestamp,
            poll_attempts=result.attempts,
            write_errors=download_errors + writer.errors,
        )
