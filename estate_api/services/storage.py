"""
Default upload collaborator for listing images.
Stages client uploads on disk and promotes them to public media on demand.
"""

from datetime import timedelta
from pathlib import Path
from fastapi import UploadFile
import logging

from estate_api.config import Settings
from estate_api.services.images import LocalImage, UploadResolver
from estate_api.utils.exceptions import FileUploadError
from estate_api.utils.file_utils import FileStorage, FileValidator

logger = logging.getLogger(__name__)


class StagedImageStore(UploadResolver):
    """
    Filesystem-backed image staging and publishing.

    ``stage`` validates an uploaded file and returns the LocalImage the
    client submits with its listing; ``resolve`` publishes that staged file
    and returns its public URL. Staged files that are never published are
    purged once they are older than ``staging_max_age``.
    """

    def __init__(
        self,
        validator: FileValidator,
        storage: FileStorage,
        staging_max_age: timedelta = timedelta(hours=24)
    ):
        self.validator = validator
        self.storage = storage
        self.staging_max_age = staging_max_age

    @classmethod
    def from_settings(cls, settings: Settings) -> "StagedImageStore":
        return cls(
            validator=FileValidator(settings.max_file_size, settings.allowed_file_types),
            storage=FileStorage(
                staging_dir=Path(settings.staging_dir),
                media_dir=Path(settings.upload_dir),
                public_url=settings.public_media_url
            ),
            staging_max_age=timedelta(hours=settings.staging_max_age_hours)
        )

    async def stage(self, file: UploadFile) -> LocalImage:
        """
        Validate and store an uploaded image in the staging area.

        Raises:
            FileUploadError: If the file is not an acceptable image
        """
        await self.purge_stale()
        content, extension = await self.validator.validate_upload_file(file)
        handle = await self.storage.write_staged(content, extension)

        logger.info(f"Staged image {handle} ({len(content)} bytes)")
        return LocalImage(handle=handle, size=len(content))

    async def resolve(self, image: LocalImage) -> str:
        """
        Publish a staged image and return its public URL.

        Raises:
            FileUploadError: If the staged file is missing or does not match
                the declared size
        """
        staged = self.storage.staged_path(image.handle)
        if staged.exists() and staged.stat().st_size != image.size:
            raise FileUploadError(f"Staged file '{image.handle}' does not match its declared size")

        await self.storage.promote(image.handle)
        url = self.storage.public_url_for(image.handle)

        logger.info(f"Published staged image {image.handle} as {url}")
        return url

    async def purge_stale(self) -> int:
        """Remove abandoned staged files; returns how many were removed."""
        removed = await self.storage.purge_stale_staged(self.staging_max_age)
        if removed:
            logger.info(f"Purged {removed} stale staged images")
        return removed
