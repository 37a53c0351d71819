"""Модель исходного изображения.

Принципы:
- SRP: только структура данных, без логики обработки.
- Неизменяемость (`frozen=True`): одно и то же изображение читают все задачи рендера.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image


@dataclass(frozen=True)
class ImageData:
    """Декодированный источник и его метаданные.

    Fields:
        path: Путь к исходному файлу.
        pil_image: Загруженное изображение PIL (всегда RGBA, пиксели уже загружены).
        width: Ширина, px.
        height: Высота, px.
        source_mode: Режим PIL до конвертации, например "P" или "RGB".
        has_alpha: Был ли у источника альфа-канал или прозрачный цвет.
        size_bytes: Размер файла, если доступен.
    """
    path: Path
    pil_image: Image.Image
    width: int
    height: int
    source_mode: str
    has_alpha: bool
    size_bytes: Optional[int]
