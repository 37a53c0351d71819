"""Точка входа: `iconsmith generate|batch|inspect`."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from iconsmith.config import Settings
from iconsmith.controllers.pipeline_controller import PipelineController
from iconsmith.errors import IconGenerationError
from iconsmith.services.ico_service import IcoService

logger = logging.getLogger("iconsmith")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="iconsmith",
        description="Generate a favicon set (PNG sizes + favicon.ico) from one source image.",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only warnings and errors")
    parser.add_argument("--blur-radius", type=float, default=None, help="Blur sigma for the average color (px)")
    parser.add_argument("--workers", type=int, default=None, help="Render thread pool size")
    parser.add_argument("--app-name", default=None, help="Manifest name/short_name")
    parser.add_argument("--theme-color", default=None, help="Manifest theme_color")
    parser.add_argument("--background-color", default=None, help="Manifest background_color")

    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Render all icons for one image")
    gen.add_argument("image", type=Path, help="Source raster image")
    gen.add_argument("output_dir", type=Path, help="Output directory (created if missing)")
    gen.add_argument("--manifest", action="store_true", default=None, help="Also write site.webmanifest")

    batch = sub.add_parser("batch", help="Render icons for every PNG in a directory")
    batch.add_argument("image_dir", type=Path, help="Directory with source PNG files")

    inspect = sub.add_parser("inspect", help="Print the image directory of an .ico file")
    inspect.add_argument("ico", type=Path, help="ICO file")
    return parser


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _inspect(path: Path) -> int:
    data = path.read_bytes()
    entries = IcoService.decode_directory(data)
    print(f"{path.name}: {len(entries)} image(s), {len(data)} bytes")
    for i, e in enumerate(entries):
        print(f"  #{i}: {e.width or 256}x{e.height or 256} {e.bit_count}bpp {e.length} bytes @ {e.offset}")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Разбирает аргументы, запускает команду и возвращает код выхода."""
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet)

    try:
        settings = Settings.from_env().with_overrides(
            blur_radius=args.blur_radius,
            max_workers=args.workers,
            app_name=args.app_name,
            theme_color=args.theme_color,
            background_color=args.background_color,
            write_manifest=getattr(args, "manifest", None),
        )
    except ValueError as exc:
        logger.error("Invalid settings: %s", exc)
        return EXIT_USAGE

    try:
        if args.command == "inspect":
            return _inspect(args.ico)

        controller = PipelineController(settings=settings)
        if args.command == "generate":
            controller.run(args.image, args.output_dir)
            logger.info("Done!")
            return EXIT_OK

        result = controller.run_batch(args.image_dir)
        logger.info("All done: %d succeeded, %d failed", len(result.succeeded), len(result.failed))
        return EXIT_OK if result.ok else EXIT_FAILURE
    except IconGenerationError as exc:
        logger.error("Error: %s", exc)
        return EXIT_FAILURE
    except (OSError, ValueError) as exc:
        logger.error("Error: %s", exc)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
