import io
import logging
import os
import re

from PIL import Image, UnidentifiedImageError

from core import storage
from core.errors import BadRequest, NotFound

logger = logging.getLogger(__name__)

ALLOWED_MIMETYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}
ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}
MAX_IMAGE_SIZE = 10 * 1024 * 1024
MAX_FILES = 10
MAX_LIST_LIMIT = 1000
WEBP_QUALITY = 85


def sanitize_filename(filename):
    name = re.sub(r"[^a-zA-Z0-9._-]", "_", filename or "")
    name = re.sub(r"_+", "_", name)
    return name.lower()


def allowed_file(filename, mimetype):
    if mimetype in ALLOWED_MIMETYPES:
        return True
    ext = filename.rsplit(".", 1)[1].lower() if "." in filename else ""
    return mimetype in (None, "", "application/octet-stream") and ext in ALLOWED_EXTENSIONS


def build_key(filename, folder=None):
    """Every upload is stored as ``<folder>/<sanitized stem>.webp``."""
    name = sanitize_filename(os.path.splitext(filename or "")[0]) + ".webp"
    folder = (folder or "").strip().strip("/")
    return f"{folder}/{name}" if folder else name


def to_webp(data):
    try:
        with Image.open(io.BytesIO(data)) as img:
            animated = getattr(img, "is_animated", False)
            if not animated and img.mode not in ("RGB", "RGBA"):
                img = img.convert("RGBA" if img.mode in ("P", "LA", "PA") else "RGB")
            out = io.BytesIO()
            img.save(out, format="WEBP", quality=WEBP_QUALITY, method=6, save_all=animated)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.error("Error converting image to webp: %s", e)
        raise BadRequest("Failed to upload image")
    return out.getvalue()


def upload_image(file, folder=None):
    """Upload a werkzeug ``FileStorage``; returns ``{key, url, size, contentType}``."""
    if file is None or not file.filename:
        raise BadRequest("No file provided")
    if not allowed_file(file.filename, file.mimetype):
        raise BadRequest(
            f"Invalid file type {file.mimetype or file.filename}. Allowed: jpeg, jpg, png, gif, webp"
        )

    data = file.read()
    if not data:
        raise BadRequest("Empty file")
    if len(data) > MAX_IMAGE_SIZE:
        raise BadRequest("File exceeds the 10MB limit")

    webp = to_webp(data)
    key = build_key(file.filename, folder)
    logger.debug(
        "Image converted: %s (%d bytes) -> %s (%d bytes)", file.filename, len(data), key, len(webp)
    )
    url = storage.upload_file(key, webp, "image/webp")
    return {"key": key, "url": url, "size": len(webp), "contentType": "image/webp"}


def upload_images(files, folder=None):
    files = [f for f in files if f and f.filename]
    if not files:
        raise BadRequest("No files provided")
    if len(files) > MAX_FILES:
        raise BadRequest(f"Maximum of {MAX_FILES} files allowed per upload")
    return [upload_image(f, folder) for f in files]


def list_images(page=1, limit=20, prefix=None, continuation_token=None):
    if page < 1:
        raise BadRequest("page must not be less than 1")
    if limit < 1 or limit > MAX_LIST_LIMIT:
        raise BadRequest(f"limit must be between 1 and {MAX_LIST_LIMIT}")
    return storage.list_objects(prefix=prefix, page=page, limit=limit, continuation_token=continuation_token)


def image_url(key):
    return storage.get_file_url(key)


def image_exists(key):
    return storage.file_exists(key)


def delete_image(key):
    if not storage.file_exists(key):
        raise NotFound(f"Image {key} not found")
    storage.delete_file(key)


def resolve_existing_key(image_key):
    """Find ``image_key`` in the bucket, also trying it with/without the ``products/`` prefix."""
    if not image_key or not str(image_key).strip():
        raise BadRequest("imageKey is required")
    clean = str(image_key).strip().lstrip("/")
    alternative = clean[len("products/"):] if clean.startswith("products/") else f"products/{clean}"
    candidates = list(dict.fromkeys([clean, alternative]))

    logger.debug("Checking bucket for keys: %s", ", ".join(candidates))
    for key in candidates:
        if storage.file_exists(key):
            return key

    logger.error("Image not found in Spaces. Tried keys: %s", ", ".join(candidates))
    raise BadRequest(
        f"Image not found in Digital Ocean Spaces: {image_key}. "
        f"Tried locations: {', '.join(candidates)}"
    )
