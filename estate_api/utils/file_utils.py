"""
File upload utilities for image validation and storage.
Staged uploads are written to a staging directory and later promoted into
the public media directory.
"""

import io
import time
import uuid
from pathlib import Path
from datetime import timedelta
from typing import Optional, Tuple
from PIL import Image
import aiofiles
import aiofiles.os
from fastapi import UploadFile

from estate_api.utils.exceptions import FileUploadError


class FileValidator:
    """Utility class for file validation operations."""

    # Supported image formats and their MIME types
    SUPPORTED_FORMATS = {
        'image/jpeg': ['.jpg', '.jpeg'],
        'image/png': ['.png'],
        'image/webp': ['.webp']
    }

    PIL_FORMATS = {
        'image/jpeg': 'jpeg',
        'image/png': 'png',
        'image/webp': 'webp'
    }

    # Image dimension constraints
    MIN_WIDTH = 100
    MIN_HEIGHT = 100
    MAX_WIDTH = 10000
    MAX_HEIGHT = 10000

    def __init__(self, max_file_size: int, allowed_types: Optional[list] = None):
        self.max_file_size = max_file_size
        self.allowed_types = allowed_types or list(self.SUPPORTED_FORMATS)

    def validate_file_extension(self, filename: str) -> str:
        """
        Validate file extension.

        Returns:
            Lowercase file extension

        Raises:
            FileUploadError: If extension is missing or not supported
        """
        if not filename:
            raise FileUploadError("Filename is required")

        extension = Path(filename).suffix.lower()
        if not extension:
            raise FileUploadError("File must have an extension")

        supported = [ext for mime in self.allowed_types for ext in self.SUPPORTED_FORMATS.get(mime, [])]
        if extension not in supported:
            raise FileUploadError(
                f"File extension '{extension}' not supported. "
                f"Supported extensions: {', '.join(supported)}"
            )

        return extension

    def validate_mime_type(self, mime_type: str) -> str:
        if not mime_type:
            raise FileUploadError("MIME type is required")

        if mime_type not in self.allowed_types:
            raise FileUploadError(
                f"MIME type '{mime_type}' not supported. "
                f"Supported types: {', '.join(self.allowed_types)}"
            )

        return mime_type

    def validate_file_size(self, file_size: int) -> int:
        if file_size <= 0:
            raise FileUploadError("File is empty")

        if file_size > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            actual_mb = file_size / (1024 * 1024)
            raise FileUploadError(
                f"File size ({actual_mb:.1f}MB) exceeds maximum allowed size ({max_mb:.1f}MB)"
            )

        return file_size

    def validate_image_content(self, content: bytes, mime_type: str) -> Tuple[int, int]:
        """
        Check that the bytes decode as an image of the declared type.

        Returns:
            Tuple of (width, height)
        """
        try:
            with Image.open(io.BytesIO(content)) as img:
                width, height = img.size
                pil_format = img.format.lower() if img.format else ""
        except Exception as e:
            raise FileUploadError(f"Invalid image file: {e}")

        if pil_format != self.PIL_FORMATS.get(mime_type):
            raise FileUploadError(f"Image format '{pil_format}' doesn't match MIME type '{mime_type}'")

        if not (self.MIN_WIDTH <= width <= self.MAX_WIDTH and self.MIN_HEIGHT <= height <= self.MAX_HEIGHT):
            raise FileUploadError(
                f"Image dimensions {width}x{height} must be between "
                f"{self.MIN_WIDTH}x{self.MIN_HEIGHT} and {self.MAX_WIDTH}x{self.MAX_HEIGHT}"
            )

        return width, height

    async def validate_upload_file(self, file: UploadFile) -> Tuple[bytes, str]:
        """
        Comprehensive validation of an uploaded file.

        Returns:
            Tuple of (content, extension)
        """
        extension = self.validate_file_extension(file.filename or "")
        mime_type = self.validate_mime_type(file.content_type or "")

        if extension not in self.SUPPORTED_FORMATS.get(mime_type, []):
            raise FileUploadError(f"File extension '{extension}' doesn't match MIME type '{mime_type}'")

        await file.seek(0)
        content = await file.read()

        self.validate_file_size(len(content))
        self.validate_image_content(content, mime_type)

        return content, extension


class FileStorage:
    """Staging and public media storage on the local filesystem."""

    LISTINGS_SUBDIR = "listings"

    def __init__(self, staging_dir: Path, media_dir: Path, public_url: str):
        self.staging_dir = Path(staging_dir)
        self.media_dir = Path(media_dir)
        self.public_url = public_url.rstrip("/")
        self.staging_dir.mkdir(parents=True, exist_ok=True)
        (self.media_dir / self.LISTINGS_SUBDIR).mkdir(parents=True, exist_ok=True)

    @staticmethod
    def generate_unique_filename(extension: str) -> str:
        return f"{uuid.uuid4().hex}{extension}"

    def staged_path(self, handle: str) -> Path:
        """
        Resolve a staging handle to its file path.

        Raises:
            FileUploadError: If the handle is not a bare file name
        """
        if not handle or Path(handle).name != handle or handle.startswith("."):
            raise FileUploadError(f"Invalid staging handle '{handle}'")
        return self.staging_dir / handle

    def public_path(self, handle: str) -> Path:
        return self.media_dir / self.LISTINGS_SUBDIR / handle

    def public_url_for(self, handle: str) -> str:
        return f"{self.public_url}/{self.LISTINGS_SUBDIR}/{handle}"

    async def write_staged(self, content: bytes, extension: str) -> str:
        """Write bytes to the staging area and return the new handle."""
        handle = self.generate_unique_filename(extension)
        path = self.staged_path(handle)

        try:
            async with aiofiles.open(path, 'wb') as f:
                await f.write(content)
        except OSError as e:
            if path.exists():
                await aiofiles.os.remove(path)
            raise FileUploadError(f"Failed to save file: {e}")

        return handle

    async def promote(self, handle: str) -> Path:
        """
        Move a staged file into public media storage.

        Returns:
            Path of the public file
        """
        source = self.staged_path(handle)
        target = self.public_path(handle)

        if not source.exists():
            if target.exists():
                return target
            raise FileUploadError(f"Staged file '{handle}' not found")

        async with aiofiles.open(source, 'rb') as src:
            content = await src.read()
        async with aiofiles.open(target, 'wb') as dst:
            await dst.write(content)
        await aiofiles.os.remove(source)

        return target

    async def purge_stale_staged(self, max_age: timedelta) -> int:
        """
        Delete staged files that were never promoted.

        Args:
            max_age: Staged files last modified longer ago than this are removed

        Returns:
            Number of files removed
        """
        cutoff = time.time() - max_age.total_seconds()
        removed = 0

        for name in await aiofiles.os.listdir(self.staging_dir):
            path = self.staging_dir / name
            try:
                stat = await aiofiles.os.stat(path)
                if path.is_file() and stat.st_mtime < cutoff:
                    await aiofiles.os.remove(path)
                    removed += 1
            except FileNotFoundError:
                # Promoted or purged by a concurrent request
                continue

        return removed
