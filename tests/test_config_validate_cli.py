import io
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

import asmhashctl


class TestConfigValidateCLI(unittest.TestCase):
    def test_config_validate_repo_configs(self) -> None:
        rc = asmhashctl.main(["config", "validate", "--config", "configs/default.yaml"])
        self.assertEqual(rc, 0)

        rc = asmhashctl.main(["config", "validate", "--config", "configs/rebuild-check.yaml"])
        self.assertEqual(rc, 0)

    def test_config_validate_reports_failure(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "bad.yaml"
            path.write_text("disassembler:\n  timeout_seconds: 0\n", encoding="utf-8")

            buf = io.StringIO()
            with redirect_stdout(buf):
                rc = asmhashctl.main(["config", "validate", "--config", str(path)])

        self.assertEqual(rc, 60)
        self.assertIn("CONFIG_VALIDATE_FAILED: disassembler.timeout_seconds", buf.getvalue())


if __name__ == "__main__":
    unittest.main()
