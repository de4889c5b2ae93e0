"""Instruction assembly for each tool.

Every builder returns the clauses in order; ``join_clauses`` turns them into
the text sent to the model.
"""

from typing import List, Optional

from .models import BlendMode, EditType, Quality

CLAUSE_SEPARATOR = ". "

EDIT_TYPE_CLAUSES = {
    EditType.ADD.value: "Add the requested elements to the image",
    EditType.REMOVE.value: "Remove the specified elements from the image",
    EditType.STYLE.value: "Change the style while keeping the subject matter",
    EditType.MODIFY.value: "Modify the image as requested",
}

BLEND_MODE_CLAUSES = {
    BlendMode.COLLAGE.value: "Create a collage arrangement of the images",
    BlendMode.OVERLAY.value: "Overlay the images with artistic blending",
    BlendMode.SEQUENCE.value: "Arrange the images in a sequence or timeline",
    BlendMode.MERGE.value: "Seamlessly merge the images into a cohesive composition",
}


def join_clauses(clauses: List[str]) -> str:
    return CLAUSE_SEPARATOR.join(c for c in clauses if c)


def image_generation_prompt(
    prompt: str,
    style: str,
    quality: str,
    aspect_ratio: Optional[str] = None,
    include_text: bool = False,
) -> str:
    clauses = [f"Create a picture of {prompt}"]
    if style:
        clauses.append(f"Style: {style}")
    if aspect_ratio:
        clauses.append(f"Aspect ratio: {aspect_ratio}")
    if include_text:
        clauses.append("Include high-fidelity text rendering")
    if quality == Quality.HIGH.value:
        clauses.append("High quality, detailed rendering")
    return join_clauses(clauses)


def image_edit_prompt(
    edit_prompt: str,
    edit_type: str,
    preserve_style: bool,
    mask_area: Optional[str] = None,
) -> str:
    clauses = [edit_prompt]
    if preserve_style:
        clauses.append("Preserve the original image style and characteristics")
    if mask_area:
        clauses.append(f"Focus changes on the {mask_area} area")
    clauses.append(EDIT_TYPE_CLAUSES.get(edit_type, EDIT_TYPE_CLAUSES[EditType.MODIFY.value]))
    return join_clauses(clauses)


def multi_image_prompt(combine_prompt: str, blend_mode: str, output_style: Optional[str] = None) -> str:
    clauses = [
        combine_prompt,
        BLEND_MODE_CLAUSES.get(blend_mode, BLEND_MODE_CLAUSES[BlendMode.MERGE.value]),
    ]
    if output_style:
        clauses.append(f"Output style: {output_style}")
    return join_clauses(clauses)


def video_prompt(prompt: str, negative_prompt: Optional[str] = None) -> str:
    """Fold the negative prompt into the instruction text."""
    clauses = [prompt]
    if negative_prompt:
        clauses.append(f"Avoid: {negative_prompt}")
    return join_clauses(clauses)
