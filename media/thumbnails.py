"""
On-disk cache of resized cover images.

Covers are resized once per (book, profile) and served from the cache
afterwards. Cache files are never refreshed or expired: a cover changed in
the library keeps its old thumbnail until the cache file is removed.

Layout: ``<cache_root>/<digit><shard>/<book_id>.jpg`` where ``digit`` is
``1`` for list thumbnails and ``0`` for detail thumbnails, and ``shard`` is
the first two digits of the zero-padded five digit book id.
"""

import asyncio
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import structlog
from PIL import Image, ImageOps

from catalog.errors import FileDeliveryError
from catalog.models import CoverData

logger = structlog.get_logger(__name__)

COVER_FILENAME = "cover.jpg"
JPEG_QUALITY = 85


class ThumbnailProfile(str, Enum):
    """Resize geometry of a thumbnail."""
    LIST = "list"
    DETAIL = "detail"

    @property
    def cache_digit(self) -> str:
        return "1" if self is ThumbnailProfile.LIST else "0"

    @property
    def size(self) -> tuple:
        """(width, height) target; ``None`` keeps the aspect ratio."""
        if self is ThumbnailProfile.LIST:
            return (None, 250)
        return (320, None)


def cache_shard(book_id: int, profile: ThumbnailProfile) -> str:
    """Name of the cache subdirectory for a book, e.g. ``100`` for list/42."""
    return profile.cache_digit + f"{book_id:05d}"[-5:][:2]


def cache_path(cache_root: Path, book_id: int, profile: ThumbnailProfile) -> Path:
    return Path(cache_root) / cache_shard(book_id, profile) / f"{book_id}.jpg"


def resize_cover(source: Path, target: Path, profile: ThumbnailProfile) -> None:
    """
    Resize a cover image to a profile's geometry and write it as JPEG.

    Args:
        source: Original cover image
        target: File to write
        profile: Target geometry; the free dimension follows the aspect ratio
    """
    width, height = profile.size
    with Image.open(source) as img:
        img = ImageOps.exif_transpose(img)
        if width is None:
            width = max(1, round(img.width * height / img.height))
        else:
            height = max(1, round(img.height * width / img.width))
        resized = img.resize((width, height), Image.Resampling.LANCZOS)
        if resized.mode != "RGB":
            resized = resized.convert("RGB")
        resized.save(target, "JPEG", quality=JPEG_QUALITY, optimize=True)


class ThumbnailCache:
    """
    Resolves covers to cached, size specific thumbnail files.

    Two concurrent first requests for the same thumbnail may both resize
    it. Each writes to its own temporary file and renames it into place, so
    a reader never sees a partial image and the last rename wins with
    identical content.
    """

    def __init__(
        self,
        book_dir: Path,
        cache_root: Path,
        resizer: Optional[Callable[[Path, Path, ThumbnailProfile], None]] = None,
    ):
        self.book_dir = Path(book_dir)
        self.cache_root = Path(cache_root)
        self.resizer = resizer or resize_cover

    def ensure_root(self) -> None:
        """Create the cache root directory."""
        self.cache_root.mkdir(parents=True, exist_ok=True)
        logger.info("Cover cache ready", path=str(self.cache_root))

    def source_path(self, cover: CoverData) -> Path:
        return self.book_dir / cover.path / COVER_FILENAME

    async def resolve(self, cover: CoverData, profile: ThumbnailProfile) -> Path:
        """
        Return the cached thumbnail of a cover, generating it on first access.

        Args:
            cover: Cover location from the Catalog Store
            profile: Thumbnail geometry

        Returns:
            Path of the JPEG file to serve

        Raises:
            FileDeliveryError: If the source cover is missing or cannot be resized
        """
        target = cache_path(self.cache_root, cover.book_id, profile)
        if await asyncio.to_thread(target.exists):
            return target

        source = self.source_path(cover)
        if not await asyncio.to_thread(source.is_file):
            logger.warning("Cover image missing", book_id=cover.book_id, source=str(source))
            raise FileDeliveryError("Cover image not available")

        await asyncio.to_thread(self._generate, source, target, profile)
        logger.debug(
            "Generated thumbnail",
            book_id=cover.book_id,
            profile=profile.value,
            path=str(target),
        )
        return target

    def _generate(self, source: Path, target: Path, profile: ThumbnailProfile) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.stem}-", suffix=".tmp")
        os.close(fd)
        tmp_path = Path(tmp_name)
        try:
            self.resizer(source, tmp_path, profile)
            os.replace(tmp_path, target)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            logger.error("Failed to generate thumbnail", source=str(source), error=str(e))
            raise FileDeliveryError("Cover image could not be resized") from e
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise
