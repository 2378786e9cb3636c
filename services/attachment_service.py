"""
Acceptance evidence handling.
Caps photo attachments per item and shrinks images before upload.
"""

import logging
import os
from io import BytesIO
from typing import List, Sequence, Tuple

from PIL import Image, UnidentifiedImageError

from config.constants import IMAGE_JPEG_QUALITY, IMAGE_MAX_DIMENSION, MAX_ATTACHMENTS
from core.models import Attachment

logger = logging.getLogger("TransferPortal")


def from_uploaded_file(uploaded) -> Attachment:
    """Adapt a Streamlit UploadedFile (or anything with name/type/getvalue)."""
    return Attachment(
        filename=uploaded.name,
        content=uploaded.getvalue(),
        content_type=uploaded.type or "application/octet-stream",
    )


def compress_image(attachment: Attachment,
                   max_dimension: int = IMAGE_MAX_DIMENSION,
                   quality: int = IMAGE_JPEG_QUALITY) -> Attachment:
    """
    Downscale an image so its longest side is at most max_dimension and
    re-encode it as JPEG. Non-images and undecodable files pass through.
    """
    if not attachment.is_image:
        return attachment

    try:
        with Image.open(BytesIO(attachment.content)) as img:
            img.load()
            scale = min(1.0, max_dimension / max(img.width, img.height, 1))
            target = (max(1, round(img.width * scale)), max(1, round(img.height * scale)))
            if scale < 1.0:
                img = img.resize(target, Image.Resampling.LANCZOS)
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")

            output = BytesIO()
            img.save(output, format="JPEG", quality=quality)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning(f"Could not compress '{attachment.filename}', sending original: {e}")
        return attachment

    stem, _ext = os.path.splitext(attachment.filename or "attachment")
    return Attachment(filename=f"{stem}.jpg", content=output.getvalue(), content_type="image/jpeg")


def merge_attachments(existing: Sequence[Attachment], incoming: Sequence[Attachment],
                      limit: int = MAX_ATTACHMENTS) -> Tuple[List[Attachment], int]:
    """
    Append incoming files to an item's attachments, keeping at most `limit`.
    Returns (combined, dropped_count).
    """
    combined = list(existing) + list(incoming)
    kept = combined[:limit]
    return kept, len(combined) - len(kept)
