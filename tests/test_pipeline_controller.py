import json
import tempfile
from pathlib import Path
from unittest import TestCase

from PIL import Image

from iconsmith.config import Settings
from iconsmith.controllers.pipeline_controller import PipelineController
from iconsmith.errors import RenderError, SourceImageError
from iconsmith.models.icon_model import ICO_FILENAME, ICON_SPECS
from iconsmith.services.manifest_service import MANIFEST_FILENAME
from iconsmith.services.render_service import RenderService

EXPECTED_FILES = {
    "favicon-16x16.png",
    "favicon-32x32.png",
    "favicon-48x48.png",
    "apple-touch-icon.png",
    "android-chrome-192x192.png",
    "android-chrome-512x512.png",
    "alpha-android-chrome-512x512.png",
    "favicon.ico",
}


def _write_source(path: Path, size=(80, 40)) -> Path:
    img = Image.new("RGBA", size, (0, 0, 0, 0))
    img.paste((200, 40, 40, 255), (10, 5, size[0] - 10, size[1] - 5))
    img.save(path, format="PNG")
    return path


class FailingRenderService(RenderService):
    def render(self, image, spec, background):
        if spec.name == "apple-touch-icon.png":
            raise RenderError("simulated failure", path=spec.name)
        return super().render(image, spec, background)


class RunTests(TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.source = _write_source(self.tmp / "logo.png")
        self.controller = PipelineController(settings=Settings(blur_radius=10, max_workers=4))

    def tearDown(self):
        self._tmp.cleanup()

    def test_writes_exactly_eight_files(self):
        out = self.tmp / "out"
        result = self.controller.run(self.source, out)
        self.assertEqual({p.name for p in out.iterdir()}, EXPECTED_FILES)
        self.assertEqual(len(result.written), 8)
        self.assertEqual([p.name for p in result.written[:7]], [s.name for s in ICON_SPECS])
        self.assertEqual(result.written[-1].name, ICO_FILENAME)
        self.assertTrue(result.has_transparency)

    def test_outputs_follow_background_flag(self):
        out = self.tmp / "out"
        result = self.controller.run(self.source, out)
        for spec in ICON_SPECS:
            with self.subTest(spec=spec.name):
                with Image.open(out / spec.name) as img:
                    self.assertEqual(img.size, (spec.size, spec.size))
                    if spec.needs_solid_background:
                        self.assertEqual(img.mode, "RGB")
                        self.assertEqual(img.getpixel((0, 0)), result.background_color.as_tuple())
                    else:
                        self.assertEqual(img.mode, "RGBA")
                        self.assertEqual(img.getpixel((0, 0))[3], 0)

    def test_ico_is_readable(self):
        out = self.tmp / "out"
        self.controller.run(self.source, out)
        with Image.open(out / ICO_FILENAME) as img:
            self.assertEqual(set(img.info["sizes"]), {(16, 16), (32, 32), (48, 48)})

    def test_manifest_on_request(self):
        out = self.tmp / "out"
        self.controller.run(self.source, out)
        self.assertFalse((out / MANIFEST_FILENAME).exists())
        self.controller.run(self.source, out, write_manifest=True)
        manifest = json.loads((out / MANIFEST_FILENAME).read_text(encoding="utf-8"))
        self.assertEqual(manifest["name"], "AppName")

    def test_undecodable_source_is_fatal(self):
        bad = self.tmp / "bad.png"
        bad.write_bytes(b"definitely not a png")
        out = self.tmp / "out"
        with self.assertRaises(SourceImageError):
            self.controller.run(bad, out)
        self.assertFalse(out.exists())

    def test_missing_source_is_fatal(self):
        with self.assertRaises(SourceImageError):
            self.controller.run(self.tmp / "nope.png", self.tmp / "out")

    def test_render_failure_aborts_run(self):
        controller = PipelineController(settings=Settings(blur_radius=10), _render_service=FailingRenderService())
        out = self.tmp / "out"
        with self.assertRaises(RenderError) as ctx:
            controller.run(self.source, out)
        self.assertIn("apple-touch-icon.png", str(ctx.exception))
        self.assertFalse((out / ICO_FILENAME).exists())

    def test_opaque_source_reported(self):
        src = self.tmp / "opaque.jpg"
        Image.new("RGB", (50, 50), (10, 10, 10)).save(src, format="JPEG")
        result = self.controller.run(src, self.tmp / "out")
        self.assertFalse(result.has_transparency)
        self.assertEqual(len(result.written), 8)


class BatchTests(TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.controller = PipelineController(settings=Settings(blur_radius=10))

    def tearDown(self):
        self._tmp.cleanup()

    def test_processes_pngs_into_unique_folders(self):
        _write_source(self.tmp / "one.png")
        _write_source(self.tmp / "Two.PNG")
        _write_source(self.tmp / ".hidden.png")
        (self.tmp / "notes.txt").write_text("skip me")
        (self.tmp / "one").mkdir()

        result = self.controller.run_batch(self.tmp)

        self.assertTrue(result.ok)
        self.assertEqual(len(result.succeeded), 2)
        self.assertEqual({r.output_dir.name for r in result.succeeded}, {"one-0", "Two"})
        for r in result.succeeded:
            self.assertTrue((r.output_dir / MANIFEST_FILENAME).is_file())
            self.assertTrue((r.output_dir / ICO_FILENAME).is_file())

    def test_failure_does_not_stop_batch(self):
        (self.tmp / "a.png").write_bytes(b"broken")
        _write_source(self.tmp / "b.png")

        result = self.controller.run_batch(self.tmp)

        self.assertFalse(result.ok)
        self.assertEqual([p.name for p, _ in result.failed], ["a.png"])
        self.assertEqual([r.source.name for r in result.succeeded], ["b.png"])

    def test_empty_directory(self):
        result = self.controller.run_batch(self.tmp)
        self.assertTrue(result.ok)
        self.assertEqual(result.succeeded, [])

    def test_missing_directory(self):
        with self.assertRaises(SourceImageError):
            self.controller.run_batch(self.tmp / "missing")
