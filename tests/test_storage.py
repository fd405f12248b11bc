"""Tests for screenshot storage."""

import pytest

from sitescout.storage import LocalScreenshotStore


class TestLocalScreenshotStore:
    """Tests for LocalScreenshotStore."""

    @pytest.mark.asyncio
    async def test_upload_writes_png_under_site_dir(self, tmp_path):
        store = LocalScreenshotStore(str(tmp_path))

        url = await store.upload(b"\x89PNG data", "example-com")

        files = list((tmp_path / "example-com").glob("*.png"))
        assert len(files) == 1
        assert files[0].read_bytes() == b"\x89PNG data"
        assert url == files[0].resolve().as_uri()

    @pytest.mark.asyncio
    async def test_public_base_url(self, tmp_path):
        store = LocalScreenshotStore(str(tmp_path), public_base_url="https://cdn.example.com/shots/")

        url = await store.upload(b"png", "site")

        assert url.startswith("https://cdn.example.com/shots/site/")
        assert url.endswith(".png")

    @pytest.mark.asyncio
    async def test_upload_all_keeps_order(self, tmp_path):
        store = LocalScreenshotStore(str(tmp_path))

        urls = await store.upload_all([b"first", b"second"], "site")

        assert len(urls) == 2
        assert len(set(urls)) == 2
        contents = [
            (tmp_path / "site" / url.rsplit("/", 1)[1]).read_bytes() for url in urls
        ]
        assert contents == [b"first", b"second"]
