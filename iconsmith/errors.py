"""Иерархия ошибок генерации иконок.

Каждая ошибка знает стадию конвейера (`decode`, `render`, `write`, `assemble`)
и путь к файлу, к которому она относится, чтобы верхний уровень мог
сообщить пользователю, что именно сломалось.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional


class IconGenerationError(Exception):
    """Базовая ошибка конвейера генерации."""

    stage: str = "pipeline"

    def __init__(self, message: str, *, path: Optional[str | Path] = None, stage: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None
        if stage is not None:
            self.stage = stage

    def __str__(self) -> str:
        if self.path is None:
            return f"[{self.stage}] {self.message}"
        return f"[{self.stage}] {self.path}: {self.message}"


class SourceImageError(IconGenerationError):
    """Исходное изображение не найдено или не декодируется."""

    stage = "decode"


class RenderError(IconGenerationError):
    """Ошибка масштабирования, заливки фона или кодирования PNG."""

    stage = "render"


class OutputError(IconGenerationError):
    """Не удалось записать файл в выходной каталог."""

    stage = "write"


class InvariantViolation(IconGenerationError, AssertionError):
    """Нарушен внутренний инвариант (длина буфера, смещения ICO). Это баг, а не ошибка ввода."""

    stage = "assemble"
