"""Настройки генератора.

Значения по умолчанию совпадают с поведением CLI; переменные окружения
`ICONSMITH_*` переопределяют их, флаги командной строки имеют приоритет
над окружением (см. `Settings.with_overrides`).
"""
from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional

ENV_PREFIX = "ICONSMITH_"


@dataclass(frozen=True)
class Settings:
    """Неизменяемые параметры одного запуска.

    Fields:
        blur_radius: Радиус (σ) гауссова размытия при поиске среднего цвета, px.
        max_workers: Размер пула потоков; None означает значение по умолчанию `ThreadPoolExecutor`.
        app_name: Имя приложения для `site.webmanifest`.
        theme_color: `theme_color` манифеста.
        background_color: `background_color` манифеста.
        write_manifest: Писать ли `site.webmanifest` рядом с иконками.
    """
    blur_radius: float = 50.0
    max_workers: Optional[int] = None
    app_name: str = "AppName"
    theme_color: str = "#000000"
    background_color: str = "#000000"
    write_manifest: bool = False

    def __post_init__(self) -> None:
        if self.blur_radius <= 0:
            raise ValueError(f"blur_radius must be positive, got {self.blur_radius}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Собирает настройки из переменных окружения `ICONSMITH_*`.

        Raises:
            ValueError: если числовая переменная не парсится.
        """
        env = os.environ if environ is None else environ
        values: dict = {}

        radius = env.get(ENV_PREFIX + "BLUR_RADIUS")
        if radius:
            try:
                values["blur_radius"] = float(radius)
            except ValueError as exc:
                raise ValueError(f"{ENV_PREFIX}BLUR_RADIUS is not a number: {radius!r}") from exc

        workers = env.get(ENV_PREFIX + "MAX_WORKERS")
        if workers:
            try:
                values["max_workers"] = int(workers)
            except ValueError as exc:
                raise ValueError(f"{ENV_PREFIX}MAX_WORKERS is not an integer: {workers!r}") from exc

        for name in ("app_name", "theme_color", "background_color"):
            value = env.get(ENV_PREFIX + name.upper())
            if value:
                values[name] = value

        return cls(**values)

    def with_overrides(self, **overrides: object) -> "Settings":
        """Возвращает копию с заменёнными полями; `None` означает «не задано»."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"unknown settings: {', '.join(sorted(unknown))}")
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self
