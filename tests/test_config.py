import tempfile
import unittest
from pathlib import Path

from asmhash.config import default_config, load_config
from asmhash.pipeline.hasher import hash_options_from_config


def _write(td: str, text: str) -> Path:
    path = Path(td) / "asmhash.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestConfig(unittest.TestCase):
    def test_repo_configs_load(self) -> None:
        repo_root = Path(__file__).resolve().parents[1]

        cfg = load_config(path=repo_root / "configs" / "default.yaml")
        self.assertFalse(cfg.hashing.ignore_version_noise)
        self.assertEqual(tuple(cfg.disassembler.command), ("ildasm",))
        self.assertTrue(str(cfg.config_sha256).startswith("sha256:"))

        cfg = load_config(path=repo_root / "configs" / "rebuild-check.yaml")
        self.assertTrue(cfg.hashing.ignore_version_noise)
        self.assertTrue(cfg.observability.metrics_enabled)

    def test_empty_file_yields_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg = load_config(path=_write(td, ""))
        self.assertEqual(cfg.hashing, default_config().hashing)
        self.assertEqual(cfg.disassembler, default_config().disassembler)
        self.assertEqual(cfg.observability, default_config().observability)

    def test_module_extensions_are_lowercased(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg = load_config(path=_write(td, "hashing:\n  module_extensions: ['.DLL', '.Exe', '.winmd']\n"))
        self.assertEqual(tuple(cfg.hashing.module_extensions), (".dll", ".exe", ".winmd"))

    def test_invalid_values_name_their_path(self) -> None:
        cases = [
            ("hashing: []\n", "hashing must be a mapping"),
            ("hashing:\n  ignore_version_noise: 'yes'\n", "hashing.ignore_version_noise"),
            ("hashing:\n  chunk_size_bytes: 0\n", "hashing.chunk_size_bytes"),
            ("hashing:\n  chunk_size_bytes: true\n", "hashing.chunk_size_bytes"),
            ("hashing:\n  module_extensions: ['dll']\n", "hashing.module_extensions"),
            ("hashing:\n  text_encoding: not-a-codec\n", "hashing.text_encoding"),
            ("disassembler:\n  command: []\n", "disassembler.command"),
            ("disassembler:\n  timeout_seconds: -1\n", "disassembler.timeout_seconds"),
            ("observability:\n  tracing_enabled: 1\n", "observability.tracing_enabled"),
            ("- a\n- b\n", "config must be a mapping"),
        ]
        for text, fragment in cases:
            with self.subTest(text=text):
                with tempfile.TemporaryDirectory() as td:
                    with self.assertRaises(ValueError) as cm:
                        load_config(path=_write(td, text))
                self.assertIn(fragment, str(cm.exception))

    def test_cli_flags_only_turn_options_on(self) -> None:
        cfg = default_config()
        opts = hash_options_from_config(cfg, ignore_version_noise=True)
        self.assertTrue(opts.ignore_version_noise)
        self.assertFalse(opts.keep_temp_files)

        opts = hash_options_from_config(cfg)
        self.assertFalse(opts.ignore_version_noise)
        self.assertEqual(opts.chunk_size, cfg.hashing.chunk_size_bytes)


if __name__ == "__main__":
    unittest.main()
