"""
Upload storage: directory setup and product image saving.
"""
from fastapi import UploadFile
import logging
import os
import time
from pathlib import Path
from typing import List

from shopfront.config import settings
from shopfront.errors import InvalidUpload

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = frozenset([".jpg", ".jpeg", ".png", ".gif", ".webp"])
UPLOAD_SUBDIRS = ("products", "profiles")
URL_PREFIX = "/uploads"
CHUNK_SIZE = 64 * 1024


def upload_root() -> Path:
    return Path(settings.UPLOAD_DIR).resolve()


def init_upload_dirs(root: Path = None) -> List[Path]:
    """Create the upload tree; run once before serving, safe to repeat"""
    root = root or upload_root()
    created = []
    for path in [root] + [root / sub for sub in UPLOAD_SUBDIRS]:
        if not path.is_dir():
            path.mkdir(parents=True, exist_ok=True)
            created.append(path)
    if created:
        logger.info(f"Created upload directories: {[str(p) for p in created]}")
    return created


def save_product_image(upload: UploadFile, root: Path = None) -> str:
    """Store an image under products/ and return its public URL"""
    filename = upload.filename or ""
    ext = os.path.splitext(filename)[1].lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise InvalidUpload()

    root = root or upload_root()
    target_dir = root / "products"
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / f"product-{int(time.time() * 1000)}{ext}"

    written = 0
    try:
        with open(target, "wb") as out:
            while True:
                chunk = upload.file.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > settings.MAX_UPLOAD_BYTES:
                    raise InvalidUpload(
                        f"File too large, limit is {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB"
                    )
                out.write(chunk)
    except InvalidUpload:
        target.unlink(missing_ok=True)
        raise

    logger.info(f"Stored product image {target.name} ({written} bytes)")
    return f"{URL_PREFIX}/products/{target.name}"
