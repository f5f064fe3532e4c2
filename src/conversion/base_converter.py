# src/conversion/base_converter.py - v1
"""Abstract image conversion gateway."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class BaseImageConverter(ABC):
    """Converts a source image to the compact avatar encoding."""

    @abstractmethod
    async def convert(
        self,
        source: Path,
        quality: int = 80,
        max_dimension: int | None = None,
    ) -> Path:
        """Convert source and return the path of a new file.

        Args:
            source: Original image file.
            quality: Encoder quality (0-100).
            max_dimension: Longest side in pixels; the image is scaled down
                proportionally to fit. None keeps the original size.

        Raises:
            ConversionError: Source unreadable or target format unsupported.
        """
