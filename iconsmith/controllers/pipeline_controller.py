"""Контроллер конвейера: оркестрация сервисов загрузки, цвета, рендера и ICO.

SOLID:
- SRP: класс управляет порядком стадий и записью файлов, без логики обработки пикселей.
- DIP: сервисы подставляются полями dataclass; тесты заменяют их своими.
Параллелизм:
- Все рендеры независимы и читают один неизменяемый источник, поэтому идут в пул потоков.
- Рендеры со сплошным фоном ставятся в пул только после вычисления цвета фона.
- ICO собирается после того, как готовы все три его образа.
"""
from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PIL import Image

from iconsmith.config import Settings
from iconsmith.errors import IconGenerationError, SourceImageError
from iconsmith.models.icon_model import ICO_FILENAME, ICO_SIZES, ICON_SPECS, Color, IconSpec
from iconsmith.services.color_service import ColorService
from iconsmith.services.ico_service import IcoService
from iconsmith.services.image_service import ImageService
from iconsmith.services.manifest_service import ManifestService
from iconsmith.services.output_service import OutputService, find_unique_folder
from iconsmith.services.render_service import RenderService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    source: Path
    output_dir: Path
    average_color: Color
    background_color: Color
    has_transparency: bool
    written: Tuple[Path, ...]


@dataclass
class BatchResult:
    succeeded: List[PipelineResult] = field(default_factory=list)
    failed: List[Tuple[Path, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass
class PipelineController:
    """Запускает генерацию полного набора иконок для одного источника или каталога.

    Ответственности:
    - Загрузка источника через `ImageService` (ошибка фатальна).
    - Подбор цвета фона через `ColorService`.
    - Параллельный рендер PNG через `RenderService` и сборка ICO через `IcoService`.
    - Запись файлов через `OutputService`, манифест через `ManifestService`.
    """
    settings: Settings = field(default_factory=Settings)

    _image_service: ImageService = field(default_factory=ImageService)
    _render_service: RenderService = field(default_factory=RenderService)
    _output_service: OutputService = field(default_factory=OutputService)
    _manifest_service: ManifestService = field(default_factory=ManifestService)
    _color_service: Optional[ColorService] = None
    _ico_service: Optional[IcoService] = None

    def __post_init__(self) -> None:
        if self._color_service is None:
            self._color_service = ColorService(blur_radius=self.settings.blur_radius)
        if self._ico_service is None:
            self._ico_service = IcoService(renderer=self._render_service)

    # ---- Public API ----
    def run(self, source: str | Path, output_dir: str | Path, write_manifest: Optional[bool] = None) -> PipelineResult:
        """Генерирует 7 PNG и `favicon.ico` в `output_dir`.

        Raises:
            SourceImageError: источник не найден или не декодируется; ничего не пишется.
            RenderError, OutputError: первая ошибка рендера/записи прерывает весь запуск.
        """
        image_data = self._image_service.load_image(source)
        has_transparency = self._color_service.has_transparency(image_data)
        logger.info("Input: %s (%dx%d, %s)", image_data.path, image_data.width, image_data.height,
                    "with alpha" if has_transparency else "opaque")
        out_dir = self._output_service.ensure_directory(output_dir)
        logger.info("Output: %s", out_dir)

        image = image_data.pil_image
        written: Dict[str, Path] = {}
        with ThreadPoolExecutor(max_workers=self.settings.max_workers, thread_name_prefix="iconsmith") as pool:
            try:
                png_futures: List[Future] = [
                    pool.submit(self._render_and_write, image, spec, None, out_dir)
                    for spec in ICON_SPECS if not spec.needs_solid_background
                ]
                ico_futures = [pool.submit(self._ico_service.render_entry, image, size) for size in ICO_SIZES]

                average, background = self._color_service.background_for(image_data)
                logger.info("Average color: %s", average)
                logger.info("Background color: %s", background)

                png_futures += [
                    pool.submit(self._render_and_write, image, spec, background, out_dir)
                    for spec in ICON_SPECS if spec.needs_solid_background
                ]
                self._join(png_futures + ico_futures)
                for f in png_futures:
                    path = f.result()
                    written[path.name] = path

                ico_bytes = self._ico_service.encode([f.result() for f in ico_futures])
            except BaseException:
                pool.shutdown(wait=True, cancel_futures=True)
                raise

        written[ICO_FILENAME] = self._output_service.write_bytes(out_dir / ICO_FILENAME, ico_bytes)
        logger.info("Generated: %s", ICO_FILENAME)

        if self.settings.write_manifest if write_manifest is None else write_manifest:
            manifest_path = self._manifest_service.write_manifest(
                out_dir,
                app_name=self.settings.app_name,
                theme_color=self.settings.theme_color,
                background_color=self.settings.background_color,
            )
            logger.info("Generated: %s", manifest_path.name)

        ordered = tuple(written[spec.name] for spec in ICON_SPECS) + (written[ICO_FILENAME],)
        return PipelineResult(
            source=image_data.path,
            output_dir=out_dir,
            average_color=average,
            background_color=background,
            has_transparency=has_transparency,
            written=ordered,
        )

    def run_batch(self, image_dir: str | Path) -> BatchResult:
        """Обрабатывает все PNG каталога; для каждого создаётся своя папка рядом с ним.

        Ошибка одного файла не останавливает остальные, а попадает в `BatchResult.failed`.
        """
        directory = Path(image_dir)
        if not directory.is_dir():
            raise SourceImageError("image directory not found", path=directory)

        sources = sorted(
            p for p in directory.iterdir()
            if p.is_file() and not p.name.startswith(".") and p.suffix.lower() == ".png"
        )
        result = BatchResult()
        if not sources:
            logger.warning("No PNG files found in %s", directory)
            return result

        logger.info("Found %d PNG file(s) to process", len(sources))
        for source in sources:
            out_dir = find_unique_folder(source.stem, directory)
            logger.info("Processing: %s -> %s/", source.name, out_dir.name)
            try:
                result.succeeded.append(self.run(source, out_dir, write_manifest=True))
            except (IconGenerationError, OSError) as exc:
                logger.error("Icon generation failed for %s: %s", source.name, exc)
                result.failed.append((source, str(exc)))
        return result

    # ---- Helpers ----
    def _render_and_write(self, image: Image.Image, spec: IconSpec, background: Optional[Color], out_dir: Path) -> Path:
        data = self._render_service.render(image, spec, background)
        path = self._output_service.write_bytes(out_dir / spec.name, data)
        logger.info("Generated: %s", spec.name)
        return path

    @staticmethod
    def _join(futures: List[Future]) -> None:
        # first failure is terminal: re-raise it, the caller cancels the rest
        done, _ = wait(futures, return_when=FIRST_EXCEPTION)
        for f in done:
            exc = f.exception()
            if exc is not None:
                raise exc
        wait(futures)
