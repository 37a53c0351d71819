"""Генерация `site.webmanifest` со ссылками на Android-иконки."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional

from iconsmith.models.icon_model import ICON_SPECS, IconSpec
from iconsmith.services.output_service import OutputService

MANIFEST_FILENAME = "site.webmanifest"

# (file name, purpose) in manifest order
MANIFEST_ICONS = (
    ("android-chrome-192x192.png", "maskable"),
    ("android-chrome-512x512.png", "maskable"),
    ("alpha-android-chrome-512x512.png", "any"),
)


def _spec_by_name(name: str) -> IconSpec:
    for spec in ICON_SPECS:
        if spec.name == name:
            return spec
    raise KeyError(name)


class ManifestService:
    def __init__(self, output: Optional[OutputService] = None) -> None:
        self.output = output or OutputService()

    def build_manifest(
        self,
        app_name: str = "AppName",
        theme_color: str = "#000000",
        background_color: str = "#000000",
    ) -> Dict[str, object]:
        icons: List[Dict[str, str]] = []
        for name, purpose in MANIFEST_ICONS:
            spec = _spec_by_name(name)
            icons.append({
                "src": f"/{spec.name}",
                "sizes": f"{spec.size}x{spec.size}",
                "type": "image/png",
                "purpose": purpose,
            })
        return {
            "name": app_name,
            "short_name": app_name,
            "icons": icons,
            "theme_color": theme_color,
            "background_color": background_color,
            "display": "standalone",
        }

    def write_manifest(self, output_dir: str | Path, **kwargs: str) -> Path:
        manifest = self.build_manifest(**kwargs)
        text = json.dumps(manifest, indent=2, sort_keys=True, ensure_ascii=False) + "\n"
        return self.output.write_bytes(Path(output_dir) / MANIFEST_FILENAME, text.encode("utf-8"))
