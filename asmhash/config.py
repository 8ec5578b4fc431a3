from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

import yaml

from asmhash.determinism.accumulator import DEFAULT_CHUNK_SIZE
from asmhash.disassembly.disassembler import DEFAULT_ARGUMENTS
from asmhash.normalize.categories import DEFAULT_MODULE_EXTENSIONS


def _sha256_prefixed(data: bytes) -> str:
    return "sha256:" + hashlib.sha256(data).hexdigest()


def _require_dict(obj: Any, *, path: str) -> dict[str, Any]:
    if not isinstance(obj, dict):
        raise ValueError(f"{path} must be a mapping")
    return obj


def _require_str(obj: Any, *, path: str) -> str:
    if not isinstance(obj, str) or not obj:
        raise ValueError(f"{path} must be a non-empty string")
    return obj


def _require_bool(obj: Any, *, path: str) -> bool:
    if not isinstance(obj, bool):
        raise ValueError(f"{path} must be a boolean")
    return obj


def _require_positive_int(obj: Any, *, path: str) -> int:
    if isinstance(obj, bool) or not isinstance(obj, int) or obj <= 0:
        raise ValueError(f"{path} must be a positive integer")
    return obj


def _require_str_list(obj: Any, *, path: str, allow_empty: bool = False) -> tuple[str, ...]:
    if not isinstance(obj, list) or not all(isinstance(x, str) and x for x in obj):
        raise ValueError(f"{path} must be a list of non-empty strings")
    if not obj and not allow_empty:
        raise ValueError(f"{path} must not be empty")
    return tuple(obj)


def _optional_str(obj: Any, *, path: str) -> Optional[str]:
    if obj is None:
        return None
    return _require_str(obj, path=path)


def _section(cfg: dict[str, Any], name: str) -> dict[str, Any]:
    obj = cfg.get(name)
    if obj is None:
        return {}
    return _require_dict(obj, path=name)


@dataclass(frozen=True)
class HashingConfig:
    ignore_version_noise: bool = False
    keep_temp_files: bool = False
    chunk_size_bytes: int = DEFAULT_CHUNK_SIZE
    text_encoding: Optional[str] = None
    module_extensions: Sequence[str] = DEFAULT_MODULE_EXTENSIONS


@dataclass(frozen=True)
class DisassemblerConfig:
    command: Sequence[str] = ("ildasm",)
    arguments: Sequence[str] = DEFAULT_ARGUMENTS
    timeout_seconds: int = 300


@dataclass(frozen=True)
class ObservabilityConfig:
    progress_log_dir: Optional[str] = None
    tracing_enabled: bool = False
    metrics_enabled: bool = False
    metrics_path: Optional[str] = None


@dataclass(frozen=True)
class AsmHashConfig:
    config_path: Optional[str]
    config_sha256: Optional[str]
    hashing: HashingConfig
    disassembler: DisassemblerConfig
    observability: ObservabilityConfig


def default_config() -> AsmHashConfig:
    return AsmHashConfig(
        config_path=None,
        config_sha256=None,
        hashing=HashingConfig(),
        disassembler=DisassemblerConfig(),
        observability=ObservabilityConfig(),
    )


def _load_hashing(cfg: dict[str, Any]) -> HashingConfig:
    hashing = _section(cfg, "hashing")
    defaults = HashingConfig()

    module_extensions = _require_str_list(
        hashing.get("module_extensions", list(defaults.module_extensions)),
        path="hashing.module_extensions",
    )
    for ext in module_extensions:
        if not ext.startswith("."):
            raise ValueError("hashing.module_extensions entries must start with '.'")

    text_encoding = _optional_str(hashing.get("text_encoding"), path="hashing.text_encoding")
    if text_encoding is not None:
        try:
            "".encode(text_encoding)
        except LookupError as e:
            raise ValueError(f"hashing.text_encoding is not a known codec: {text_encoding}") from e

    return HashingConfig(
        ignore_version_noise=_require_bool(
            hashing.get("ignore_version_noise", defaults.ignore_version_noise),
            path="hashing.ignore_version_noise",
        ),
        keep_temp_files=_require_bool(
            hashing.get("keep_temp_files", defaults.keep_temp_files), path="hashing.keep_temp_files"
        ),
        chunk_size_bytes=_require_positive_int(
            hashing.get("chunk_size_bytes", defaults.chunk_size_bytes), path="hashing.chunk_size_bytes"
        ),
        text_encoding=text_encoding,
        module_extensions=tuple(ext.lower() for ext in module_extensions),
    )


def _load_disassembler(cfg: dict[str, Any]) -> DisassemblerConfig:
    dis = _section(cfg, "disassembler")
    defaults = DisassemblerConfig()
    return DisassemblerConfig(
        command=_require_str_list(dis.get("command", list(defaults.command)), path="disassembler.command"),
        arguments=_require_str_list(
            dis.get("arguments", list(defaults.arguments)), path="disassembler.arguments", allow_empty=True
        ),
        timeout_seconds=_require_positive_int(
            dis.get("timeout_seconds", defaults.timeout_seconds), path="disassembler.timeout_seconds"
        ),
    )


def _load_observability(cfg: dict[str, Any]) -> ObservabilityConfig:
    obs = _section(cfg, "observability")
    return ObservabilityConfig(
        progress_log_dir=_optional_str(obs.get("progress_log_dir"), path="observability.progress_log_dir"),
        tracing_enabled=_require_bool(obs.get("tracing_enabled", False), path="observability.tracing_enabled"),
        metrics_enabled=_require_bool(obs.get("metrics_enabled", False), path="observability.metrics_enabled"),
        metrics_path=_optional_str(obs.get("metrics_path"), path="observability.metrics_path"),
    )


def load_config(*, path: Path) -> AsmHashConfig:
    data_bytes = path.read_bytes()
    cfg = yaml.safe_load(data_bytes.decode("utf-8"))
    if cfg is None:
        cfg = {}
    cfg = _require_dict(cfg, path="config")

    return AsmHashConfig(
        config_path=path.as_posix(),
        config_sha256=_sha256_prefixed(data_bytes),
        hashing=_load_hashing(cfg),
        disassembler=_load_disassembler(cfg),
        observability=_load_observability(cfg),
    )


def validate_config_file(*, path: Path) -> None:
    _ = load_config(path=path)
