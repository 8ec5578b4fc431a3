#!/usr/bin/env python3
from __future__ import annotations

import argparse
import subprocess
import sys
from pathlib import Path
from typing import Optional

from asmhash.config import AsmHashConfig, default_config, load_config, validate_config_file
from asmhash.manifest import load_manifest, write_manifest
from asmhash.observability import metrics, tracing
from asmhash.observability.progress_log import FileProgressLog, NullProgressSink, ProgressSink
from asmhash.pipeline.hasher import disassembler_from_config, hash_file_set, hash_options_from_config
from asmhash.pipeline.verify import verify_manifest
from asmhash.version import read_repo_version

REPO_ROOT = Path(__file__).resolve().parent
MANIFEST_SCHEMA_PATH = REPO_ROOT / "schemas" / "manifest.schema.json"


def _resolve_config_path(path: str) -> Path:
    p = Path(path)
    if p.is_absolute() or p.exists():
        return p
    return REPO_ROOT / p


def _load_cli_config(args: argparse.Namespace) -> AsmHashConfig:
    if args.config is None:
        return default_config()
    return load_config(path=_resolve_config_path(args.config))


def _progress_sink(config: AsmHashConfig) -> ProgressSink:
    if config.observability.progress_log_dir is None:
        return NullProgressSink()
    return FileProgressLog(base_dir=Path(config.observability.progress_log_dir))


def _write_metrics(config: AsmHashConfig) -> None:
    obs = config.observability
    if not obs.metrics_enabled or obs.metrics_path is None:
        return
    body, _ = metrics.render_prometheus()
    path = Path(obs.metrics_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(body)


def _flag(value: bool) -> Optional[bool]:
    return True if value else None


def cmd_hash(args: argparse.Namespace) -> int:
    try:
        config = _load_cli_config(args)
    except Exception as e:
        print(f"CONFIG_VALIDATE_FAILED: {e}")
        return 60

    tracing.init_tracing(enabled=config.observability.tracing_enabled, service_name="asmhash")
    options = hash_options_from_config(
        config,
        ignore_version_noise=_flag(args.ignore_versions),
        keep_temp_files=_flag(args.keep_temp_files),
    )

    try:
        master_hash, manifest = hash_file_set(
            args.paths,
            disassembler=disassembler_from_config(config),
            options=options,
            progress=_progress_sink(config),
        )
        if args.manifest_out is not None:
            write_manifest(path=Path(args.manifest_out), manifest=manifest)
    except (OSError, UnicodeDecodeError, subprocess.SubprocessError) as e:
        print(f"HASH_FAILED: {e}")
        return 10
    finally:
        _write_metrics(config)

    print(f"MASTER_HASH: {master_hash}")
    for item in manifest.components:
        print(f"COMPONENT: {item.path} {item.hash}")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    try:
        config = _load_cli_config(args)
    except Exception as e:
        print(f"CONFIG_VALIDATE_FAILED: {e}")
        return 60

    manifest_path = Path(args.manifest)
    if not manifest_path.is_file():
        print(f"VERIFY_FAILED: missing manifest: {manifest_path}")
        return 10

    try:
        expected = load_manifest(path=manifest_path, schema_path=MANIFEST_SCHEMA_PATH)
    except Exception as e:
        print(f"VERIFY_FAILED: invalid manifest: {e}")
        return 10

    tracing.init_tracing(enabled=config.observability.tracing_enabled, service_name="asmhash")
    options = hash_options_from_config(config, ignore_version_noise=_flag(args.ignore_versions))

    try:
        result = verify_manifest(
            expected=expected,
            paths=args.paths,
            disassembler=disassembler_from_config(config),
            options=options,
            progress=_progress_sink(config),
        )
    except (OSError, UnicodeDecodeError, subprocess.SubprocessError) as e:
        print(f"VERIFY_FAILED: {e}")
        return 10
    finally:
        _write_metrics(config)

    if not result.ok:
        print("VERIFY_FAILED")
        for err in result.errors[:200]:
            print(err)
        return 60

    print(f"VERIFY_OK: master_hash={result.actual_master_hash}")
    return 0


def cmd_config_validate(args: argparse.Namespace) -> int:
    cfg_path = _resolve_config_path(args.config)
    try:
        validate_config_file(path=cfg_path)
    except Exception as e:
        print(f"CONFIG_VALIDATE_FAILED: {e}")
        return 60
    print("CONFIG_VALIDATE_OK")
    return 0


def cmd_pack_verify(args: argparse.Namespace) -> int:
    script = REPO_ROOT / "scripts" / "validate_schemas.py"
    if not script.exists():
        print("PACK_VERIFY_FAILED: missing scripts/validate_schemas.py")
        return 10
    proc = subprocess.run([sys.executable, str(script)], cwd=str(REPO_ROOT))
    if proc.returncode != 0:
        print(f"PACK_VERIFY_FAILED: scripts/validate_schemas.py: rc={proc.returncode}")
        return int(proc.returncode)
    print("PACK_VERIFY_OK")
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    try:
        version = read_repo_version(repo_root=REPO_ROOT)
    except Exception as e:
        print(f"VERSION_FAILED: {e}")
        return 60
    print(version)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="asmhashctl")
    sub = parser.add_subparsers(dest="command", required=True)

    version = sub.add_parser("version")
    version.set_defaults(func=cmd_version)

    hash_cmd = sub.add_parser("hash", help="Fingerprint a set of files and directories.")
    hash_cmd.add_argument("paths", nargs="*", help="Files or directories, in hashing order.")
    hash_cmd.add_argument("--config", default=None, help="Config file (cwd- or repo-relative).")
    hash_cmd.add_argument(
        "--ignore-versions",
        action="store_true",
        help="Drop version stamps, module ids and timestamps before hashing.",
    )
    hash_cmd.add_argument(
        "--keep-temp-files",
        action="store_true",
        help="Keep disassembler output instead of deleting it after hashing.",
    )
    hash_cmd.add_argument("--manifest-out", default=None, help="Optional path to write the manifest JSON.")
    hash_cmd.set_defaults(func=cmd_hash)

    verify = sub.add_parser("verify", help="Re-fingerprint files and compare with a stored manifest.")
    verify.add_argument("paths", nargs="*", help="Files or directories, in hashing order.")
    verify.add_argument("--manifest", required=True, help="Manifest JSON written by `hash --manifest-out`.")
    verify.add_argument("--config", default=None, help="Config file (cwd- or repo-relative).")
    verify.add_argument("--ignore-versions", action="store_true")
    verify.set_defaults(func=cmd_verify)

    config = sub.add_parser("config")
    config_sub = config.add_subparsers(dest="config_command", required=True)

    cfg_validate = config_sub.add_parser("validate")
    cfg_validate.add_argument("--config", default="configs/default.yaml", help="Config file (cwd- or repo-relative).")
    cfg_validate.set_defaults(func=cmd_config_validate)

    pack = sub.add_parser("pack")
    pack_sub = pack.add_subparsers(dest="pack_command", required=True)

    pack_verify = pack_sub.add_parser("verify")
    pack_verify.set_defaults(func=cmd_pack_verify)

    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
