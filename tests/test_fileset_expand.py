import tempfile
import unittest
from pathlib import Path

from asmhash.fileset import expand_file_set


class TestExpandFileSet(unittest.TestCase):
    def test_flat_file_list_keeps_caller_order(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            base = Path(td)
            b = base / "b.txt"
            a = base / "a.txt"
            b.write_text("b", encoding="utf-8")
            a.write_text("a", encoding="utf-8")

            self.assertEqual(expand_file_set([b, a]), [b, a])

    def test_directory_is_expanded_recursively_and_sorted(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            base = Path(td)
            d = base / "dirA"
            (d / "sub").mkdir(parents=True)
            (d / "y.txt").write_text("y", encoding="utf-8")
            (d / "x.txt").write_text("x", encoding="utf-8")
            (d / "sub" / "z.bin").write_bytes(b"z")

            files = expand_file_set([d])
            self.assertEqual(files, sorted(files, key=str))
            self.assertEqual({p.name for p in files}, {"x.txt", "y.txt", "z.bin"})
            self.assertFalse(any(p.is_dir() for p in files))
            self.assertLess(files.index(d / "sub" / "z.bin"), files.index(d / "x.txt"))

    def test_mixed_list_sorts_everything_once_a_directory_is_expanded(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            base = Path(td)
            d = base / "m"
            d.mkdir()
            (d / "inner.txt").write_text("i", encoding="utf-8")
            z = base / "z.txt"
            a = base / "a.txt"
            z.write_text("z", encoding="utf-8")
            a.write_text("a", encoding="utf-8")

            files = expand_file_set([z, d, a])
            self.assertEqual(files, [a, d / "inner.txt", z])

    def test_empty_directory_contributes_nothing(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            base = Path(td)
            empty = base / "empty"
            empty.mkdir()
            self.assertEqual(expand_file_set([empty]), [])

    def test_missing_path_is_fatal(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(FileNotFoundError):
                expand_file_set([Path(td) / "missing.dll"])

    def test_empty_input(self) -> None:
        self.assertEqual(expand_file_set([]), [])


if __name__ == "__main__":
    unittest.main()
