import logging
import os
import re
import time

from influencore.core.config import settings
from influencore.core.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "video/mp4": "mp4",
    "audio/mpeg": "mp3",
}


def generate_file_key(owner_id: str, kind: str, original_name: str) -> str:
    """storage key: <kind>/<owner>/<millis>_<sanitized name><ext>"""
    base_name, extension = os.path.splitext(os.path.basename(original_name))
    sanitized = re.sub(r"[^a-zA-Z0-9]", "_", base_name)
    return f"{kind}/{owner_id}/{int(time.time() * 1000)}_{sanitized}{extension}"


def check_upload(content_type: str, size: int):
    if content_type not in ALLOWED_TYPES:
        raise ValidationError(f"unsupported file type: {content_type}")
    if size > settings.MAX_UPLOAD_MB * 1024 * 1024:
        raise ValidationError(f"file exceeds {settings.MAX_UPLOAD_MB}MB limit")


def upload_file(data: bytes, key: str, content_type: str) -> str:
    """mock object storage upload, returns the public url"""
    check_upload(content_type, len(data))
    logger.info(f"stored {len(data)} bytes at {key}")
    return f"{settings.STORAGE_BASE_URL.rstrip('/')}/{key}"
