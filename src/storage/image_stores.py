# src/storage/image_stores.py — v1
"""Generated-image stores: inline data URLs (default) or local files."""

from __future__ import annotations

import base64
import logging
import mimetypes
import uuid
from pathlib import Path

from snowgoose.config.settings import Settings
from snowgoose.storage.base_image_store import BaseImageStore

logger = logging.getLogger(__name__)


class DataUrlImageStore(BaseImageStore):
    """Returns the payload itself as a ``data:`` URL. Nothing is persisted."""

    async def save_base64_image(self, data: str, mime_type: str = "image/png") -> str:
        return f"data:{mime_type};base64,{data}"


class LocalImageStore(BaseImageStore):
    """Writes images under a directory and returns ``file://`` URLs."""

    def __init__(self, output_dir: Path | str) -> None:
        self._root = Path(output_dir).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def save_base64_image(self, data: str, mime_type: str = "image/png") -> str:
        extension = mimetypes.guess_extension(mime_type) or ".png"
        path = self._root / f"{uuid.uuid4().hex}{extension}"
        path.write_bytes(base64.b64decode(data))
        logger.debug("Saved generated image to %s", path)
        return path.resolve().as_uri()


def create_image_store(settings: Settings | None = None) -> BaseImageStore:
    """Instantiate the configured image store backend."""
    backend = "data_url" if settings is None else settings.image_store

    if backend == "data_url":
        return DataUrlImageStore()

    if backend == "local":
        assert settings is not None
        return LocalImageStore(settings.image_output_dir)

    raise ValueError(f"Unsupported image store: {backend!r}")
