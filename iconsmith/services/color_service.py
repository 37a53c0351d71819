"""Подбор цвета фона по исходному изображению.

Средний цвет берётся как «размыть сильно, затем сжать до одного пикселя»:
это пространственное среднее, в котором шум и тонкие контрастные края
почти не влияют на результат. Затем цвет сдвигается к середине шкалы
яркости, чтобы фон контрастировал с содержимым иконки.
"""
from __future__ import annotations

import numpy as np
from PIL import Image, ImageFilter

from iconsmith.models.icon_model import Color
from iconsmith.models.image_model import ImageData

LUMA_WEIGHTS = (0.299, 0.587, 0.114)
LIGHTEN_FACTOR = 1.3
DARKEN_FACTOR = 0.7
LUMINANCE_THRESHOLD = 0.5


class ColorService:
    def __init__(self, blur_radius: float = 50.0) -> None:
        if blur_radius <= 0:
            raise ValueError(f"blur_radius must be positive, got {blur_radius}")
        self.blur_radius = blur_radius

    def average_color(self, image: Image.Image) -> Color:
        """
        Средний цвет изображения: гауссово размытие (σ = blur_radius) и
        уменьшение до 1x1 усредняющим фильтром. Детерминирован.

        Оба шага идут в режиме RGBa (альфа предумножена), поэтому цвет под
        полностью прозрачными пикселями на результат не влияет.
        """
        premultiplied = image.convert("RGBA").convert("RGBa")
        blurred = premultiplied.filter(ImageFilter.GaussianBlur(radius=self.blur_radius))
        pixel = blurred.resize((1, 1), resample=Image.Resampling.BOX)
        rgb = np.asarray(pixel.convert("RGBA").convert("RGB"), dtype=np.uint8).reshape(-1)
        return Color(int(rgb[0]), int(rgb[1]), int(rgb[2]))

    @staticmethod
    def luminance(color: Color) -> float:
        """Яркость по весам вещательного стандарта (BT.601), в диапазоне [0, 1]."""
        wr, wg, wb = LUMA_WEIGHTS
        return (wr * color.r + wg * color.g + wb * color.b) / 255

    def adjust_for_background(self, color: Color) -> Color:
        """
        Тёмный цвет осветляется (x1.3), светлый затемняется (x0.7).
        Яркость ровно 0.5 считается светлой.
        """
        factor = LIGHTEN_FACTOR if self.luminance(color) < LUMINANCE_THRESHOLD else DARKEN_FACTOR
        r, g, b = (min(255, max(0, round(c * factor))) for c in color.as_tuple())
        return Color(r, g, b)

    @staticmethod
    def has_transparency(image_data: ImageData) -> bool:
        """Только для диагностики: рендер от этого значения не зависит."""
        return image_data.has_alpha

    def background_for(self, image_data: ImageData) -> tuple[Color, Color]:
        """Возвращает (средний цвет, цвет фона) для загруженного источника."""
        average = self.average_color(image_data.pil_image)
        return average, self.adjust_for_background(average)
