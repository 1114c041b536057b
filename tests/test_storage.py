"""
Tests for image staging, validation and publishing.
"""

import io
import os
import time

import pytest
from fastapi import UploadFile
from httpx import AsyncClient
from starlette.datastructures import Headers

from estate_api.config import settings
from estate_api.services.images import ImageSetManager, LocalImage, RemoteImage
from estate_api.services.storage import StagedImageStore
from estate_api.utils.exceptions import FileUploadError, UnresolvedLocalImageError
from tests.conftest import make_image_bytes


def make_upload(content: bytes, filename: str = "photo.jpg", content_type: str = "image/jpeg") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type})
    )


class TestStaging:

    @pytest.mark.asyncio
    async def test_stage_valid_jpeg(self, staged_store: StagedImageStore):
        content = make_image_bytes("JPEG")

        image = await staged_store.stage(make_upload(content))

        assert image.handle.endswith(".jpg")
        assert image.size == len(content)
        assert staged_store.storage.staged_path(image.handle).exists()

    @pytest.mark.asyncio
    async def test_stage_png(self, staged_store: StagedImageStore):
        image = await staged_store.stage(make_upload(make_image_bytes("PNG"), "plan.png", "image/png"))

        assert image.handle.endswith(".png")

    @pytest.mark.asyncio
    async def test_unsupported_type_rejected(self, staged_store: StagedImageStore):
        with pytest.raises(FileUploadError):
            await staged_store.stage(make_upload(b"%PDF-1.4", "brochure.pdf", "application/pdf"))

    @pytest.mark.asyncio
    async def test_content_must_match_declared_type(self, staged_store: StagedImageStore):
        with pytest.raises(FileUploadError, match="doesn't match"):
            await staged_store.stage(make_upload(make_image_bytes("PNG"), "photo.jpg", "image/jpeg"))

    @pytest.mark.asyncio
    async def test_not_an_image_rejected(self, staged_store: StagedImageStore):
        with pytest.raises(FileUploadError, match="Invalid image"):
            await staged_store.stage(make_upload(b"definitely not a jpeg"))

    @pytest.mark.asyncio
    async def test_tiny_image_rejected(self, staged_store: StagedImageStore):
        with pytest.raises(FileUploadError, match="dimensions"):
            await staged_store.stage(make_upload(make_image_bytes("JPEG", size=(20, 20))))

    @pytest.mark.asyncio
    async def test_empty_file_rejected(self, staged_store: StagedImageStore):
        with pytest.raises(FileUploadError, match="empty"):
            await staged_store.stage(make_upload(b""))


class TestPublishing:

    @pytest.mark.asyncio
    async def test_resolve_promotes_staged_file(self, staged_store: StagedImageStore):
        image = await staged_store.stage(make_upload(make_image_bytes("JPEG")))

        url = await staged_store.resolve(image)

        assert url == f"/media/listings/{image.handle}"
        assert staged_store.storage.public_path(image.handle).exists()
        assert not staged_store.storage.staged_path(image.handle).exists()

    @pytest.mark.asyncio
    async def test_resolve_twice_returns_same_url(self, staged_store: StagedImageStore):
        image = await staged_store.stage(make_upload(make_image_bytes("JPEG")))

        assert await staged_store.resolve(image) == await staged_store.resolve(image)

    @pytest.mark.asyncio
    async def test_size_mismatch_rejected(self, staged_store: StagedImageStore):
        image = await staged_store.stage(make_upload(make_image_bytes("JPEG")))

        with pytest.raises(FileUploadError, match="declared size"):
            await staged_store.resolve(LocalImage(handle=image.handle, size=image.size + 1))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("handle", ["../secret.jpg", "nested/file.jpg", ".hidden"])
    async def test_handles_cannot_escape_staging(self, staged_store: StagedImageStore, handle: str):
        with pytest.raises(FileUploadError, match="Invalid staging handle"):
            await staged_store.resolve(LocalImage(handle=handle, size=1))

    @pytest.mark.asyncio
    async def test_unknown_handle_rejected(self, staged_store: StagedImageStore):
        with pytest.raises(FileUploadError, match="not found"):
            await staged_store.resolve(LocalImage(handle="missing.jpg", size=1))

    @pytest.mark.asyncio
    async def test_image_set_failure_names_the_handle(
        self,
        staged_store: StagedImageStore,
        image_manager: ImageSetManager
    ):
        image = await staged_store.stage(make_upload(make_image_bytes("JPEG")))

        with pytest.raises(UnresolvedLocalImageError) as exc_info:
            await image_manager.normalize(
                [image, RemoteImage("b.jpg"), LocalImage("missing.jpg", 1)],
                staged_store
            )

        assert exc_info.value.handle == "missing.jpg"


def age_file(path, hours: float) -> None:
    """Backdate a file's modification time."""
    old = time.time() - hours * 3600
    os.utime(path, (old, old))


class TestStagingCleanup:

    @pytest.mark.asyncio
    async def test_purge_removes_only_old_staged_files(self, staged_store: StagedImageStore):
        old = await staged_store.stage(make_upload(make_image_bytes("JPEG")))
        fresh = await staged_store.stage(make_upload(make_image_bytes("JPEG")))
        age_file(staged_store.storage.staged_path(old.handle), hours=25)

        removed = await staged_store.purge_stale()

        assert removed == 1
        assert not staged_store.storage.staged_path(old.handle).exists()
        assert staged_store.storage.staged_path(fresh.handle).exists()

    @pytest.mark.asyncio
    async def test_staging_purges_abandoned_files(self, staged_store: StagedImageStore):
        abandoned = await staged_store.stage(make_upload(make_image_bytes("JPEG")))
        age_file(staged_store.storage.staged_path(abandoned.handle), hours=48)

        await staged_store.stage(make_upload(make_image_bytes("PNG"), "plan.png", "image/png"))

        assert not staged_store.storage.staged_path(abandoned.handle).exists()

    @pytest.mark.asyncio
    async def test_published_files_are_never_purged(self, staged_store: StagedImageStore):
        image = await staged_store.stage(make_upload(make_image_bytes("JPEG")))
        await staged_store.resolve(image)
        age_file(staged_store.storage.public_path(image.handle), hours=48)

        assert await staged_store.purge_stale() == 0
        assert staged_store.storage.public_path(image.handle).exists()


class TestStagingIsPrivate:
    """Staged files are not served until a listing publishes them."""

    @pytest.mark.asyncio
    async def test_staged_image_not_served_under_media(self, async_client: AsyncClient):
        # The media mount serves the application's configured upload dir
        store = StagedImageStore.from_settings(settings)
        image = await store.stage(make_upload(make_image_bytes("JPEG")))
        try:
            before = await async_client.get(f"{settings.public_media_url}/staging/{image.handle}")
            url = await store.resolve(image)
            after = await async_client.get(url)
        finally:
            for path in (store.storage.staged_path(image.handle), store.storage.public_path(image.handle)):
                if path.exists():
                    path.unlink()

        assert before.status_code == 404
        assert after.status_code == 200
