# src/storage/base_image_store.py — v1
"""Abstract store for generated images: persist a payload, hand back a URL."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseImageStore(ABC):
    """Unified interface for generated-image storage backends."""

    @abstractmethod
    async def save_base64_image(self, data: str, mime_type: str = "image/png") -> str:
        """Persist a base64 image payload and return a URL that serves it."""
