"""
Image set management for listings.

A listing's images arrive as an ordered mix of Remote references (URLs that
are already persisted) and Local references (files staged by the client but
not uploaded yet). ImageSetManager validates the set, asks an upload
resolver to turn every Local entry into a URL, and returns the final ordered
URL list. Position 0 is the cover image. The caller owns the ordering.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence, TypeVar, Union
import asyncio
import logging

from estate_api.utils.exceptions import (
    EmptyImageSetError,
    TooManyImagesError,
    UnresolvedLocalImageError,
    ImageIndexError
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RemoteImage:
    """An image already stored at a public URL."""
    url: str

    @property
    def key(self) -> str:
        return f"remote:{self.url}"


@dataclass(frozen=True)
class LocalImage:
    """A client-staged image that still has to be uploaded."""
    handle: str
    size: int

    @property
    def key(self) -> str:
        return f"local:{self.handle}"


ImageRef = Union[RemoteImage, LocalImage]


class UploadResolver(ABC):
    """Uploads a staged image and returns the URL it is now served from."""

    @abstractmethod
    async def resolve(self, image: LocalImage) -> str:
        ...


class ImageSetManager:
    """
    Validates and normalizes ordered image sets.

    The manager never uploads bytes itself and never re-sorts: whatever order
    it receives is the order it returns.
    """

    def __init__(self, max_images: int, upload_timeout: Optional[float] = None):
        if max_images < 1:
            raise ValueError("max_images must be at least 1")
        self.max_images = max_images
        self.upload_timeout = upload_timeout

    def validate_count(self, images: Sequence) -> None:
        """
        Check the size invariant of an image sequence.

        Raises:
            EmptyImageSetError: If the sequence is empty
            TooManyImagesError: If it exceeds the configured maximum
        """
        if len(images) == 0:
            raise EmptyImageSetError()
        if len(images) > self.max_images:
            raise TooManyImagesError(len(images), self.max_images)

    async def normalize(self, candidates: Sequence[ImageRef], resolver: UploadResolver) -> List[str]:
        """
        Turn a submitted working set into the ordered list of URLs to persist.

        Duplicate references keep only their first position. Local entries are
        resolved one at a time in submission order; if any of them fails or
        times out the whole call fails and nothing is returned.

        Args:
            candidates: Ordered Remote/Local references as submitted
            resolver: Upload collaborator for Local entries

        Returns:
            Ordered list of URLs, cover first

        Raises:
            EmptyImageSetError: If no images were submitted
            TooManyImagesError: If more than the maximum were submitted
            UnresolvedLocalImageError: If a Local entry could not be uploaded
        """
        images = self._dedupe(candidates, key=lambda image: image.key)
        self.validate_count(images)

        urls = []
        for image in images:
            if isinstance(image, RemoteImage):
                urls.append(image.url)
            elif isinstance(image, LocalImage):
                urls.append(await self._resolve(image, resolver))
            else:
                raise TypeError(f"Unsupported image reference: {image!r}")

        return self._dedupe(urls, key=lambda url: url)

    @staticmethod
    def reorder(images: Sequence[T], from_index: int, to_index: int) -> List[T]:
        """
        Move the element at ``from_index`` so that it ends up at ``to_index``.

        Pure: returns a new list and leaves ``images`` untouched. Every other
        element keeps its relative order.
        """
        size = len(images)
        for index in (from_index, to_index):
            if not 0 <= index < size:
                raise ImageIndexError(index, size)

        result = list(images)
        moved = result.pop(from_index)
        result.insert(to_index, moved)
        return result

    def remove(self, images: Sequence[T], index: int) -> List[T]:
        """
        Delete the element at ``index`` and re-validate the remaining set.

        Raises:
            ImageIndexError: If index is out of range
            EmptyImageSetError: If the last image was removed
        """
        size = len(images)
        if not 0 <= index < size:
            raise ImageIndexError(index, size)

        result = list(images[:index]) + list(images[index + 1:])
        self.validate_count(result)
        return result

    @staticmethod
    def cover(images: Sequence[T]) -> Optional[T]:
        return images[0] if images else None

    async def _resolve(self, image: LocalImage, resolver: UploadResolver) -> str:
        try:
            url = await asyncio.wait_for(resolver.resolve(image), timeout=self.upload_timeout)
        except UnresolvedLocalImageError:
            raise
        except asyncio.TimeoutError:
            logger.warning(f"Upload of staged image {image.handle} timed out after {self.upload_timeout}s")
            raise UnresolvedLocalImageError(image.handle, "upload timed out")
        except Exception as e:
            logger.warning(f"Upload of staged image {image.handle} failed: {e}")
            raise UnresolvedLocalImageError(image.handle)

        if not url:
            raise UnresolvedLocalImageError(image.handle, "upload returned no URL")
        return url

    @staticmethod
    def _dedupe(items: Sequence[T], key) -> List[T]:
        seen = set()
        result = []
        for item in items:
            marker = key(item)
            if marker in seen:
                continue
            seen.add(marker)
            result.append(item)
        return result
