# tests/unit/storage/test_unit_image_stores.py — v1
"""Tests for storage/image_stores.py."""

from __future__ import annotations

import base64
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

import pytest

from snowgoose.config.settings import Settings
from snowgoose.storage.image_stores import DataUrlImageStore, LocalImageStore, create_image_store

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"
PNG_B64 = base64.b64encode(PNG_BYTES).decode("ascii")


class TestDataUrlImageStore:
    @pytest.mark.asyncio
    async def test_returns_data_url(self):
        url = await DataUrlImageStore().save_base64_image(PNG_B64)
        assert url == f"data:image/png;base64,{PNG_B64}"

    @pytest.mark.asyncio
    async def test_mime_type(self):
        url = await DataUrlImageStore().save_base64_image("AAAA", "image/jpeg")
        assert url.startswith("data:image/jpeg;base64,")


class TestLocalImageStore:
    @pytest.mark.asyncio
    async def test_writes_file(self, tmp_path):
        store = LocalImageStore(tmp_path / "images")
        url = await store.save_base64_image(PNG_B64)
        assert url.startswith("file://")
        path = Path(url2pathname(urlparse(url).path))
        assert path.read_bytes() == PNG_BYTES
        assert path.suffix == ".png"

    @pytest.mark.asyncio
    async def test_unique_names(self, tmp_path):
        store = LocalImageStore(tmp_path)
        assert await store.save_base64_image(PNG_B64) != await store.save_base64_image(PNG_B64)


class TestCreateImageStore:
    def test_default(self):
        assert isinstance(create_image_store(), DataUrlImageStore)

    def test_local(self, tmp_path):
        settings = Settings(_env_file=None, image_store="local", image_output_dir=tmp_path)
        assert isinstance(create_image_store(settings), LocalImageStore)
