"""Сборка многоразмерного ICO с PNG-образами внутри.

Формат (все числа little-endian):

    ICONDIR        6 байт   reserved=0, type=1, count
    ICONDIRENTRY  16 байт   width, height, colors=0, reserved=0,
                            planes=1, bpp=32, bytes_in_res, image_offset
    payload                 PNG-данные подряд, в порядке записей каталога

Ширина и высота 256 не помещаются в байт и пишутся как 0.
"""
from __future__ import annotations

import logging
import struct
from concurrent.futures import Executor
from typing import Iterable, List, Optional, Sequence

from PIL import Image

from iconsmith.errors import InvariantViolation
from iconsmith.models.icon_model import ICO_SIZES, IcoDirectoryEntry, IcoImageEntry
from iconsmith.services.render_service import RenderService

logger = logging.getLogger(__name__)

ICONDIR = struct.Struct("<HHH")
ICONDIRENTRY = struct.Struct("<BBBBHHII")
ICO_TYPE_ICON = 1
MAX_ICO_SIZE = 256


def dimension_byte(size: int) -> int:
    """Значение поля ширины/высоты: 256 -> 0."""
    if not 1 <= size <= MAX_ICO_SIZE:
        raise ValueError(f"icon size out of range for ICO: {size}")
    return 0 if size == MAX_ICO_SIZE else size


class IcoService:
    def __init__(self, renderer: Optional[RenderService] = None) -> None:
        self.renderer = renderer or RenderService()

    def encode(self, entries: Sequence[IcoImageEntry]) -> bytes:
        """Собирает ICO-контейнер из готовых PNG-образов.

        Raises:
            ValueError: пустой список или сторона вне 1..256.
            InvariantViolation: итоговые смещения/длины не сходятся (баг сборки).
        """
        if not entries:
            raise ValueError("no images provided")

        count = len(entries)
        header = ICONDIR.pack(0, ICO_TYPE_ICON, count)
        directory: List[bytes] = []
        offset = ICONDIR.size + ICONDIRENTRY.size * count
        for entry in entries:
            dim = dimension_byte(entry.size)
            directory.append(ICONDIRENTRY.pack(dim, dim, 0, 0, 1, 32, len(entry.data), offset))
            offset += len(entry.data)

        data = header + b"".join(directory) + b"".join(e.data for e in entries)
        self._verify(data, entries)
        return data

    def _verify(self, data: bytes, entries: Sequence[IcoImageEntry]) -> None:
        expected = ICONDIR.size + ICONDIRENTRY.size * len(entries) + sum(len(e.data) for e in entries)
        if len(data) != expected:
            raise InvariantViolation(f"ICO is {len(data)} bytes, expected {expected}")
        decoded = self.decode_directory(data)
        cursor = ICONDIR.size + ICONDIRENTRY.size * len(entries)
        for i, (dir_entry, entry) in enumerate(zip(decoded, entries)):
            if dir_entry.offset != cursor or dir_entry.length != len(entry.data):
                raise InvariantViolation(
                    f"directory entry {i} points at {dir_entry.offset}+{dir_entry.length}, "
                    f"payload is at {cursor}+{len(entry.data)}"
                )
            cursor += dir_entry.length

    @staticmethod
    def decode_directory(data: bytes) -> List[IcoDirectoryEntry]:
        """Разбирает заголовок и каталог ICO.

        Raises:
            ValueError: данные короче заголовка/каталога или это не иконка (type != 1).
        """
        if len(data) < ICONDIR.size:
            raise ValueError("data too short for ICONDIR header")
        reserved, image_type, count = ICONDIR.unpack_from(data, 0)
        if reserved != 0 or image_type != ICO_TYPE_ICON:
            raise ValueError(f"not an ICO file (reserved={reserved}, type={image_type})")
        if len(data) < ICONDIR.size + ICONDIRENTRY.size * count:
            raise ValueError(f"data too short for {count} directory entries")
        return [
            IcoDirectoryEntry(*ICONDIRENTRY.unpack_from(data, ICONDIR.size + i * ICONDIRENTRY.size))
            for i in range(count)
        ]

    def render_entry(self, image: Image.Image, size: int) -> IcoImageEntry:
        """Один образ ICO: contain-вписывание без заливки, затем отдельный PNG из RGBA-растра."""
        dimension_byte(size)
        return IcoImageEntry(size=size, data=self.renderer.render_raster(image, size).to_png())

    def render_entries(
        self,
        image: Image.Image,
        sizes: Iterable[int] = ICO_SIZES,
        executor: Optional[Executor] = None,
    ) -> List[IcoImageEntry]:
        """Рендерит образы ICO с сохранённой прозрачностью; порядок = порядок `sizes`."""
        sizes = list(sizes)
        for size in sizes:
            dimension_byte(size)

        if executor is None:
            return [self.render_entry(image, size) for size in sizes]
        futures = [executor.submit(self.render_entry, image, size) for size in sizes]
        # join: the container is assembled only after every constituent is ready
        return [f.result() for f in futures]

    def encode_ico(
        self,
        image: Image.Image,
        sizes: Iterable[int] = ICO_SIZES,
        executor: Optional[Executor] = None,
    ) -> bytes:
        entries = self.render_entries(image, sizes, executor=executor)
        logger.debug("Packing ICO: %s", ", ".join(f"{e.size}px/{len(e.data)}B" for e in entries))
        return self.encode(entries)
