"""Работа с выходным каталогом: атомарная запись файлов и выбор свободного имени папки."""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from iconsmith.errors import OutputError

logger = logging.getLogger(__name__)

# os.umask can only be read by setting it, so do it once at import time
_UMASK = os.umask(0)
os.umask(_UMASK)
FILE_MODE = 0o666 & ~_UMASK


class OutputService:
    def ensure_directory(self, directory: str | Path) -> Path:
        path = Path(directory)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputError(f"cannot create output directory: {exc.strerror or exc}", path=path) from exc
        return path

    def write_bytes(self, path: str | Path, data: bytes) -> Path:
        """Пишет `data` во временный файл рядом с `path` и атомарно подменяет его.

        Дескриптор закрывается, а временный файл удаляется при любой ошибке.

        Raises:
            OutputError: если запись или переименование не удались.
        """
        target = Path(path)
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                dir=target.parent, prefix=f".{target.name}.", suffix=".tmp", delete=False
            ) as fh:
                tmp_name = fh.name
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            # NamedTemporaryFile creates the file as 0600, regardless of umask
            os.chmod(tmp_name, FILE_MODE)
            os.replace(tmp_name, target)
            tmp_name = None
        except OSError as exc:
            raise OutputError(f"cannot write file: {exc.strerror or exc}", path=target) from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except FileNotFoundError:
                    pass
        logger.debug("Wrote %d bytes to %s", len(data), target)
        return target


def find_unique_folder(base_name: str, parent: str | Path) -> Path:
    """Возвращает `parent/base_name`, а если он занят, то первый свободный из `base_name-0`, `base_name-1`, ..."""
    parent = Path(parent)
    candidate = parent / base_name
    if not candidate.exists():
        return candidate
    index = 0
    while True:
        candidate = parent / f"{base_name}-{index}"
        if not candidate.exists():
            return candidate
        index += 1
