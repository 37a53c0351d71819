"""Записи, которыми обмениваются сервисы генерации: спецификации иконок, цвет,
растр RGBA и элементы ICO.
"""
from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from PIL import Image

from iconsmith.errors import InvariantViolation


@dataclass(frozen=True)
class IconSpec:
    """Одна выходная PNG-иконка: имя файла, сторона квадрата и нужна ли сплошная заливка."""
    name: str
    size: int
    needs_solid_background: bool

    def __post_init__(self) -> None:
        if self.size <= 0:
            raise ValueError(f"icon size must be positive: {self.name} ({self.size})")


ICON_SPECS: Tuple[IconSpec, ...] = (
    IconSpec("favicon-16x16.png", 16, False),
    IconSpec("favicon-32x32.png", 32, False),
    IconSpec("favicon-48x48.png", 48, False),
    IconSpec("apple-touch-icon.png", 180, True),
    IconSpec("android-chrome-192x192.png", 192, True),
    IconSpec("android-chrome-512x512.png", 512, True),
    IconSpec("alpha-android-chrome-512x512.png", 512, False),
)

ICO_SIZES: Tuple[int, ...] = (16, 32, 48)
ICO_FILENAME = "favicon.ico"

if len({spec.name for spec in ICON_SPECS}) != len(ICON_SPECS):
    raise InvariantViolation("duplicate file names in ICON_SPECS")


@dataclass(frozen=True)
class Color:
    """RGB-цвет, каналы в [0, 255]."""
    r: int
    g: int
    b: int

    def __post_init__(self) -> None:
        for channel in (self.r, self.g, self.b):
            if not 0 <= channel <= 255:
                raise ValueError(f"color channel out of range: {channel}")

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)

    def as_hex(self) -> str:
        return "#{:02x}{:02x}{:02x}".format(self.r, self.g, self.b)

    def __str__(self) -> str:
        return f"rgb({self.r}, {self.g}, {self.b})"


@dataclass(frozen=True)
class RenderedImage:
    """Растр RGBA до кодирования в PNG.

    Длина `pixels` всегда равна width*height*4; иначе это ошибка программы.
    """
    width: int
    height: int
    pixels: bytes

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise InvariantViolation(f"raster must be non-empty, got {self.width}x{self.height}")
        expected = self.width * self.height * 4
        if len(self.pixels) != expected:
            raise InvariantViolation(
                f"RGBA buffer is {len(self.pixels)} bytes, expected {expected} for {self.width}x{self.height}"
            )

    @classmethod
    def from_pil(cls, image: Image.Image) -> "RenderedImage":
        rgba = image if image.mode == "RGBA" else image.convert("RGBA")
        arr = np.asarray(rgba, dtype=np.uint8)
        height, width = arr.shape[:2]
        return cls(width=width, height=height, pixels=arr.tobytes())

    def to_pil(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.width, self.height), self.pixels)

    def alpha(self) -> np.ndarray:
        """Альфа-канал как массив (height, width) uint8."""
        arr = np.frombuffer(self.pixels, dtype=np.uint8).reshape(self.height, self.width, 4)
        return arr[:, :, 3]

    def to_png(self) -> bytes:
        # Always RGBA on the way out, whatever the source mode was.
        buf = io.BytesIO()
        self.to_pil().save(buf, format="PNG")
        return buf.getvalue()


@dataclass(frozen=True)
class IcoImageEntry:
    """Один образ внутри ICO: сторона квадрата и PNG-данные."""
    size: int
    data: bytes


@dataclass(frozen=True)
class IcoDirectoryEntry:
    """Разобранная запись ICONDIRENTRY (см. `IcoService.decode_directory`)."""
    width: int
    height: int
    color_count: int
    reserved: int
    planes: int
    bit_count: int
    length: int
    offset: int
