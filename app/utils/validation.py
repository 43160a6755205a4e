"""
Input validation utilities for Evently.

This module builds request models from form fields and validates uploaded
images before they are stored. Each upload kind (event, profile, review) has
its own size limit.
"""

import io
import logging
from dataclasses import dataclass
from typing import Dict, Type, TypeVar

import pydantic
from fastapi import UploadFile
from PIL import Image

from core.errors import ValidationError

logger = logging.getLogger(__name__)

# Configuration
MAX_IMAGE_DIMENSION = 8192
ALLOWED_CONTENT_TYPES = [
    'image/jpeg',
    'image/png',
    'image/gif',
    'image/webp',
]


@dataclass(frozen=True)
class ImageKind:
    folder: str
    max_size: int


IMAGE_KINDS: Dict[str, ImageKind] = {
    "event": ImageKind("event-images", 5 * 1024 * 1024),
    "profile": ImageKind("profile-images", 2 * 1024 * 1024),
    "review": ImageKind("review-images", 3 * 1024 * 1024),
}

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


def describe_validation_errors(errors) -> str:
    """Readable "field: message; ..." summary of pydantic errors."""
    parts = []
    for error in errors:
        location = [str(p) for p in error.get("loc", ()) if p not in ("body", "query", "path", "form")]
        field = ".".join(location)
        parts.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


def parse_form(model: Type[ModelT], **fields) -> ModelT:
    """
    Build a request model from multipart form fields.

    Raises:
        ValidationError: If the fields do not satisfy the model
    """
    try:
        return model(**fields)
    except pydantic.ValidationError as e:
        raise ValidationError(describe_validation_errors(e.errors())) from e


def validate_image_upload(file: UploadFile, kind: str) -> bytes:
    """
    Validate uploaded image file.

    Checks:
    1. Content type is an allowed image type
    2. File size is within the limit for ``kind``
    3. Image can be opened by PIL and is not corrupted

    Args:
        file: Uploaded file from FastAPI
        kind: One of IMAGE_KINDS

    Returns:
        bytes: Validated image data

    Raises:
        ValidationError: If validation fails
    """
    limits = IMAGE_KINDS[kind]

    if not file.content_type or file.content_type not in ALLOWED_CONTENT_TYPES:
        logger.warning(f"Invalid content type: {file.content_type}")
        raise ValidationError("Invalid file type. Only image files are allowed.")

    file_data = file.file.read()

    file_size = len(file_data)
    if file_size == 0:
        raise ValidationError("Empty file")
    if file_size > limits.max_size:
        logger.warning(f"File too large: {file_size} bytes (max: {limits.max_size})")
        raise ValidationError(f"File too large. Maximum size: {limits.max_size / (1024 * 1024):.0f}MB")

    try:
        image = Image.open(io.BytesIO(file_data))
        image.verify()

        # verify() leaves the image unusable, re-open for the size
        image = Image.open(io.BytesIO(file_data))
        width, height = image.size
    except Exception as e:
        logger.warning(f"Invalid image format: {e}")
        raise ValidationError("Invalid image file")

    if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
        raise ValidationError(f"Image dimensions too large. Maximum: {MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION}")

    logger.info(f"Image validated: {width}x{height}, {file_size} bytes, {image.format}")
    return file_data
