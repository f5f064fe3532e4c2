# src/conversion/pillow_converter.py - v1
"""Pillow-based converter (WebP by default).

Re-encoding drops EXIF and other metadata from the uploaded image.
"""

from __future__ import annotations

import asyncio
import logging
import tempfile
import time
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from avatarkit.conversion.base_converter import BaseImageConverter
from avatarkit.core.errors import ConversionError

logger = logging.getLogger(__name__)

_EXTENSIONS = {"WEBP": ".webp", "PNG": ".png", "JPEG": ".jpg"}


class PillowImageConverter(BaseImageConverter):
    """Convert images with Pillow, resizing to fit max_dimension."""

    def __init__(
        self,
        output_dir: Path | str | None = None,
        image_format: str = "WEBP",
    ) -> None:
        fmt = image_format.upper()
        if fmt not in _EXTENSIONS:
            raise ConversionError(f"Unsupported target format: {image_format!r}")
        self._format = fmt
        self._output_dir = Path(output_dir) if output_dir else Path(tempfile.gettempdir())

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self._format]

    async def convert(
        self,
        source: Path,
        quality: int = 80,
        max_dimension: int | None = None,
    ) -> Path:
        if not 0 <= quality <= 100:
            raise ConversionError(f"quality must be between 0 and 100, got {quality}")
        return await asyncio.to_thread(self._convert_sync, Path(source), quality, max_dimension)

    def _convert_sync(self, source: Path, quality: int, max_dimension: int | None) -> Path:
        try:
            with Image.open(source) as opened:
                img = ImageOps.exif_transpose(opened)
                img.load()
        except (FileNotFoundError, UnidentifiedImageError, OSError) as e:
            raise ConversionError(f"Cannot read source image {source}: {e}") from e

        if max_dimension is not None and max(img.size) > max_dimension:
            img.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)

        if self._format == "JPEG" and img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
        elif img.mode not in ("RGB", "RGBA", "L", "LA"):
            img = img.convert("RGBA")

        self._output_dir.mkdir(parents=True, exist_ok=True)
        target = self._output_dir / f"avatar_{time.time_ns()}{self.extension}"
        save_kwargs: dict = {"format": self._format}
        if self._format in ("WEBP", "JPEG"):
            save_kwargs["quality"] = quality
        try:
            img.save(target, **save_kwargs)
        except (OSError, KeyError, ValueError) as e:
            target.unlink(missing_ok=True)
            raise ConversionError(f"Failed to encode {source} as {self._format}: {e}") from e

        logger.debug(
            "Converted %s -> %s (%dx%d, q=%d)",
            source.name, target.name, img.width, img.height, quality,
        )
        return target
