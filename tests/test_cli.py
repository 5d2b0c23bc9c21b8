import io
import json
import logging
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock

from confstrap.__main__ import main


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        root = logging.getLogger()
        saved_handlers = root.handlers[:]
        saved_level = root.level

        def restore_logging() -> None:
            for handler in root.handlers[:]:
                root.removeHandler(handler)
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)

        self.addCleanup(restore_logging)

        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name)
        (self.root / "config.json").write_text(
            json.dumps({"db": {"host": "localhost", "port": 5432}, "name": "billing"}),
            encoding="utf-8",
        )

        patcher = mock.patch.dict(os.environ, {}, clear=True)
        patcher.start()
        self.addCleanup(patcher.stop)

    def _main(self, *argv: str):
        out = io.StringIO()
        with redirect_stdout(out):
            code = main(["--no-dotenv", "--dir", str(self.root), *argv])
        return code, out.getvalue()

    def test_show_all_settings(self) -> None:
        code, out = self._main("show")
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), {"db": {"host": "localhost", "port": 5432}, "name": "billing"})

    def test_show_single_key_as_yaml(self) -> None:
        code, out = self._main("show", "--key", "db.port", "--format", "yaml")
        self.assertEqual(code, 0)
        self.assertEqual(out.strip().splitlines()[0], "5432")

    def test_show_missing_key(self) -> None:
        code, out = self._main("show", "--key", "db.password")
        self.assertEqual(code, 1)
        self.assertEqual(out, "")

    def test_sources_report(self) -> None:
        code, out = self._main("sources")
        report = json.loads(out)
        self.assertEqual(code, 0)
        self.assertTrue(report["file"]["ok"])
        self.assertEqual(report["file"]["location"], str(self.root / "config.json"))
        self.assertEqual(report["env"]["error_type"], "DotenvNotFoundError")

    def test_check_passes(self) -> None:
        code, _ = self._main("check", "--require", "db.host", "--source", "file")
        self.assertEqual(code, 0)

    def test_check_missing_key_exits(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            self._main("check", "--require", "db.host", "--require", "db.password")
        self.assertEqual(ctx.exception.code, 1)

    def test_check_failed_source_exits(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            self._main("check", "--source", "remote")
        self.assertEqual(ctx.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
