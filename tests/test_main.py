import io
import os
import tempfile
from contextlib import redirect_stdout
from pathlib import Path
from unittest import TestCase
from unittest.mock import patch

from PIL import Image

from iconsmith.main import EXIT_FAILURE, EXIT_OK, EXIT_USAGE, main


class MainTests(TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.source = self.tmp / "logo.png"
        Image.new("RGBA", (40, 40), (90, 30, 160, 255)).save(self.source)
        env = patch.dict(os.environ, {k: v for k, v in os.environ.items() if not k.startswith("ICONSMITH_")}, clear=True)
        env.start()
        self.addCleanup(env.stop)

    def tearDown(self):
        self._tmp.cleanup()

    def test_generate(self):
        out = self.tmp / "out"
        code = main(["-q", "--blur-radius", "5", "generate", str(self.source), str(out), "--manifest"])
        self.assertEqual(code, EXIT_OK)
        self.assertEqual(len([p for p in out.iterdir() if p.suffix in (".png", ".ico")]), 8)
        self.assertTrue((out / "site.webmanifest").is_file())

    def test_generate_missing_source(self):
        code = main(["-q", "generate", str(self.tmp / "missing.png"), str(self.tmp / "out")])
        self.assertEqual(code, EXIT_FAILURE)

    def test_inspect(self):
        out = self.tmp / "out"
        main(["-q", "generate", str(self.source), str(out)])
        buf = io.StringIO()
        with redirect_stdout(buf):
            code = main(["-q", "inspect", str(out / "favicon.ico")])
        self.assertEqual(code, EXIT_OK)
        text = buf.getvalue()
        self.assertIn("3 image(s)", text)
        self.assertIn("48x48 32bpp", text)

    def test_batch_with_broken_file(self):
        (self.tmp / "broken.png").write_bytes(b"nope")
        self.assertEqual(main(["-q", "batch", str(self.tmp)]), EXIT_FAILURE)

    def test_invalid_env(self):
        with patch.dict(os.environ, {"ICONSMITH_BLUR_RADIUS": "abc"}):
            self.assertEqual(main(["-q", "batch", str(self.tmp)]), EXIT_USAGE)
