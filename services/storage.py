import logging
import os
import uuid
from pathlib import Path
from typing import Optional

from fastapi import HTTPException, UploadFile

logger = logging.getLogger(__name__)

STATIC_PREFIX = "/static"
INVALID_IMAGE = "Invalid image. Please upload a photo or provide a valid URL."


def save_image_and_get_url(contents: bytes, upload_dir: Path, filename: Optional[str] = None) -> str:
    os.makedirs(upload_dir, exist_ok=True)

    ext = filename.rsplit(".", 1)[-1].lower() if filename and "." in filename else "jpg"
    unique_name = f"{uuid.uuid4()}.{ext}"
    with open(Path(upload_dir) / unique_name, "wb") as f:
        f.write(contents)

    # URL relative to the static mount
    return f"{STATIC_PREFIX}/{unique_name}"


def is_public_image_url(url: Optional[str]) -> bool:
    return bool(url) and url.startswith(("http://", "https://", f"{STATIC_PREFIX}/"))


async def resolve_image(
    photo: Optional[UploadFile],
    image_url: Optional[str],
    upload_dir: Path,
) -> Optional[str]:
    """Store an uploaded photo, or check a given URL; None if neither was sent."""
    if photo is not None and photo.filename:
        if not (photo.content_type or "").startswith("image/"):
            raise HTTPException(status_code=400, detail=INVALID_IMAGE)
        contents = await photo.read()
        if not contents:
            raise HTTPException(status_code=400, detail=INVALID_IMAGE)
        url = save_image_and_get_url(contents, upload_dir, photo.filename)
        logger.info("Stored image %s", url)
        return url

    if image_url:
        image_url = image_url.strip()
        if not is_public_image_url(image_url):
            raise HTTPException(status_code=400, detail=INVALID_IMAGE)
        return image_url
    return None
