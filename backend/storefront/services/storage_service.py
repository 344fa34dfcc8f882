"""
Product image storage on the local filesystem.

Files land under UPLOAD_FOLDER as <company_id>/<timestamp-ms>-<product-slug>.<ext>
and are served back by GET /assets/<path>. Uploads never overwrite an
existing file.
"""

from __future__ import annotations

import os
import time

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from ..errors import ValidationError
from ..validation import normalize_slug

ALLOWED_IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "webp", "gif"}
DEFAULT_EXTENSION = "jpg"


def _extension(filename: str) -> str:
    safe = secure_filename(filename or "").lower()
    if "." not in safe:
        return DEFAULT_EXTENSION
    return safe.rsplit(".", 1)[1]


def _file_size(file: FileStorage) -> int:
    stream = file.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def public_url(relative_path: str) -> str:
    base = current_app.config.get("PUBLIC_ASSET_BASE_URL", "/assets").rstrip("/")
    return f"{base}/{relative_path}"


def save_product_image(company_id: int, product_name: str | None, file: FileStorage | None) -> str:
    """Store an uploaded product image and return its public URL."""
    if file is None or not file.filename:
        raise ValidationError("Image file is required")

    ext = _extension(file.filename)
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise ValidationError(
            "Unsupported image type",
            details={"allowed": sorted(ALLOWED_IMAGE_EXTENSIONS)},
        )

    max_bytes = current_app.config.get("MAX_IMAGE_BYTES", 5 * 1024 * 1024)
    size = _file_size(file)
    if size == 0:
        raise ValidationError("Image file is empty")
    if size > max_bytes:
        raise ValidationError("Image is too large", details={"max_bytes": max_bytes})

    name_slug = normalize_slug(product_name) or "product"
    relative_path = f"{company_id}/{int(time.time() * 1000)}-{name_slug}.{ext}"

    target = os.path.join(current_app.config["UPLOAD_FOLDER"], str(company_id))
    os.makedirs(target, exist_ok=True)
    destination = os.path.join(current_app.config["UPLOAD_FOLDER"], *relative_path.split("/"))
    if os.path.exists(destination):
        raise ValidationError("An image with this name was just uploaded. Try again.")

    file.save(destination)
    current_app.logger.info("Stored product image %s (%s bytes)", relative_path, size)
    return public_url(relative_path)
