"""Загрузка исходного изображения с диска и упаковка метаданных.

Принципы:
- SRP: класс отвечает только за загрузку и базовое извлечение свойств.
- Ошибка декодирования фатальна для всего конвейера, поэтому она поднимается
  как `SourceImageError`, а не обрабатывается здесь.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from iconsmith.errors import SourceImageError
from iconsmith.models.image_model import ImageData

logger = logging.getLogger(__name__)

_ALPHA_MODES = {"RGBA", "RGBa", "LA", "La", "PA"}


class ImageService:
    def load_image(self, file_path: str | Path) -> ImageData:
        """Загружает изображение с диска и возвращает его вместе с метаданными.

        Args:
            file_path: Путь до файла изображения.

        Returns:
            `ImageData` c `PIL.Image.Image` (в режиме RGBA), размерами, исходным режимом и размером файла.

        Raises:
            SourceImageError: если путь не существует, не указывает на файл
                или файл не распознан как растровое изображение.
        """
        path = Path(file_path)
        if not path.exists() or not path.is_file():
            raise SourceImageError("file not found", path=path)

        try:
            with Image.open(path) as src:
                source_mode = src.mode
                has_alpha = source_mode in _ALPHA_MODES or "transparency" in src.info
                # convert() forces a full decode, so truncated files fail here
                pil_image = src.convert("RGBA")
        except UnidentifiedImageError as exc:
            raise SourceImageError("not a decodable raster image", path=path) from exc
        except (OSError, ValueError) as exc:
            raise SourceImageError(f"cannot decode image: {exc}", path=path) from exc

        width, height = pil_image.size
        try:
            size_bytes: Optional[int] = path.stat().st_size
        except OSError:
            size_bytes = None

        logger.debug("Loaded %s: %dx%d, mode %s", path, width, height, source_mode)
        return ImageData(
            path=path,
            pil_image=pil_image,
            width=width,
            height=height,
            source_mode=source_mode,
            has_alpha=has_alpha,
            size_bytes=size_bytes,
        )
