from __future__ import annotations

import re
import tempfile
import unittest
from pathlib import Path

from asmhash.version import read_repo_version


class TestVersionConsistency(unittest.TestCase):
    def test_version_matches_pyproject(self) -> None:
        repo_root = Path(__file__).resolve().parents[1]

        version = read_repo_version(repo_root=repo_root)

        pyproject = (repo_root / "pyproject.toml").read_text(encoding="utf-8")
        m = re.search(r'^version\s*=\s*"([^"]+)"', pyproject, flags=re.MULTILINE)
        self.assertIsNotNone(m, "version not found in pyproject.toml")
        assert m is not None
        self.assertEqual(version, m.group(1))

    def test_invalid_version_file_is_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            with self.assertRaises(FileNotFoundError):
                read_repo_version(repo_root=root)

            (root / "VERSION").write_text("1.0\n", encoding="utf-8")
            with self.assertRaises(ValueError):
                read_repo_version(repo_root=root)


if __name__ == "__main__":
    unittest.main()
