"""Рендер одной иконки: вписывание в квадрат, заливка фоном, кодирование PNG.

Порядок шагов важен: сначала «contain» с прозрачными полями, затем (если нужно)
заливка фоном поверх уже дополненного изображения, затем PNG.
"""
from __future__ import annotations

import io
from typing import Optional

import numpy as np
from PIL import Image

from iconsmith.errors import RenderError
from iconsmith.models.icon_model import Color, IconSpec, RenderedImage

TRANSPARENT = (0, 0, 0, 0)


class RenderService:
    def __init__(self, resample: Image.Resampling = Image.Resampling.LANCZOS) -> None:
        self.resample = resample

    def contain(self, image: Image.Image, size: int) -> Image.Image:
        """
        Вписывает изображение в квадрат size x size без искажения пропорций и
        без обрезки. Остаток заполняется полностью прозрачными пикселями,
        картинка центрируется.
        """
        if size <= 0:
            raise ValueError(f"size must be positive, got {size}")
        src = image if image.mode == "RGBA" else image.convert("RGBA")
        w, h = src.size
        scale = min(size / w, size / h)
        new_w = min(size, max(1, round(w * scale)))
        new_h = min(size, max(1, round(h * scale)))

        # Pillow premultiplies alpha while resampling RGBA
        resized = src.resize((new_w, new_h), resample=self.resample)
        if resized.size == (size, size):
            return resized

        canvas = Image.new("RGBA", (size, size), TRANSPARENT)
        canvas.paste(resized, ((size - new_w) // 2, (size - new_h) // 2))
        return canvas

    def flatten(self, image: Image.Image, color: Color) -> Image.Image:
        """
        Накладывает RGBA-изображение на непрозрачный слой цвета `color`.
        Возвращает RGB без альфа-канала: c' = c*a + bg*(1-a).
        """
        rgba = np.asarray(image.convert("RGBA"), dtype=np.float64)
        alpha = rgba[:, :, 3:4] / 255.0
        bg = np.array(color.as_tuple(), dtype=np.float64).reshape(1, 1, 3)
        out = rgba[:, :, :3] * alpha + bg * (1.0 - alpha)
        out_u8 = np.clip(np.floor(out + 0.5), 0, 255).astype(np.uint8)
        return Image.fromarray(out_u8)

    def encode_png(self, image: Image.Image) -> bytes:
        buf = io.BytesIO()
        image.save(buf, format="PNG")
        return buf.getvalue()

    def render(self, image: Image.Image, spec: IconSpec, background: Optional[Color]) -> bytes:
        """Рендерит иконку по спецификации и возвращает PNG.

        Args:
            image: Декодированный источник (RGBA).
            spec: Имя, сторона и флаг сплошного фона.
            background: Цвет фона; обязателен, только если `spec.needs_solid_background`.

        Raises:
            RenderError: при любой ошибке масштабирования, заливки или кодирования.
        """
        if spec.needs_solid_background and background is None:
            raise RenderError("background color required for solid-background icon", path=spec.name)
        try:
            out = self.contain(image, spec.size)
            if spec.needs_solid_background:
                out = self.flatten(out, background)
            return self.encode_png(out)
        except (OSError, ValueError, MemoryError) as exc:
            raise RenderError(f"cannot render {spec.size}x{spec.size}: {exc}", path=spec.name) from exc

    def render_raster(self, image: Image.Image, size: int) -> RenderedImage:
        """Вписывает в квадрат, сохраняя альфа-канал; фон никогда не заливается."""
        try:
            return RenderedImage.from_pil(self.contain(image, size))
        except (OSError, ValueError, MemoryError) as exc:
            raise RenderError(f"cannot render {size}x{size} raster: {exc}") from exc
