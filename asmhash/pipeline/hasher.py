from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from asmhash.config import AsmHashConfig
from asmhash.determinism.accumulator import DEFAULT_CHUNK_SIZE, HashAccumulator
from asmhash.disassembly.disassembler import CommandLineDisassembler, Disassembler, DisassemblyResult
from asmhash.fileset import expand_file_set
from asmhash.manifest import ChildItem, Manifest
from asmhash.normalize.categories import (
    DEFAULT_MODULE_EXTENSIONS,
    ArtifactCategory,
    category_for_path,
    is_module_path,
)
from asmhash.normalize.filters import StreamFilter, select_filter
from asmhash.observability import metrics
from asmhash.observability.progress_log import (
    STAGE_CLEANUP,
    STAGE_DISASSEMBLE,
    STAGE_EXPAND,
    STAGE_HASH_COMPONENT,
    STAGE_MASTER_HASH,
    NullProgressSink,
    ProgressSink,
    build_progress_event,
)
from asmhash.observability.tracing import annotate_current_span_hash, artifact_span, run_span


@dataclass(frozen=True)
class HashOptions:
    ignore_version_noise: bool = False
    keep_temp_files: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE
    text_encoding: Optional[str] = None
    module_extensions: tuple[str, ...] = DEFAULT_MODULE_EXTENSIONS


def hash_options_from_config(
    config: AsmHashConfig,
    *,
    ignore_version_noise: Optional[bool] = None,
    keep_temp_files: Optional[bool] = None,
) -> HashOptions:
    hashing = config.hashing
    return HashOptions(
        ignore_version_noise=(
            hashing.ignore_version_noise if ignore_version_noise is None else ignore_version_noise
        ),
        keep_temp_files=hashing.keep_temp_files if keep_temp_files is None else keep_temp_files,
        chunk_size=hashing.chunk_size_bytes,
        text_encoding=hashing.text_encoding,
        module_extensions=tuple(hashing.module_extensions),
    )


def disassembler_from_config(config: AsmHashConfig) -> CommandLineDisassembler:
    dis = config.disassembler
    return CommandLineDisassembler(
        command=dis.command,
        arguments=dis.arguments,
        timeout_seconds=dis.timeout_seconds,
    )


class ManifestBuilder:
    """Folds artifacts into the aggregate and records one component per artifact."""

    def __init__(self, *, options: HashOptions, progress: ProgressSink, run_id: str) -> None:
        self._options = options
        self._progress = progress
        self._run_id = run_id
        self._aggregate = HashAccumulator()
        self.manifest = Manifest()

    def _feed(self, acc: HashAccumulator, path: Path, stream_filter: StreamFilter) -> None:
        acc.feed_all(
            stream_filter.iter_filtered_bytes(
                path,
                platform_encoding=self._options.text_encoding,
                chunk_size=self._options.chunk_size,
            )
        )

    def add_artifact(self, path: Path, category: ArtifactCategory, *, label: str) -> ChildItem:
        stream_filter = select_filter(category, ignore_version_noise=self._options.ignore_version_noise)

        with artifact_span(label=label, category=category.value, filter_name=stream_filter.name):
            self._feed(self._aggregate, path, stream_filter)

            single = HashAccumulator()
            self._feed(single, path, stream_filter)
            item = self.manifest.add(path=label, hash=single.finalize())
            annotate_current_span_hash(digest=item.hash)

            metrics.inc_artifact(category=category.value)
            self._progress.emit(
                build_progress_event(
                    run_id=self._run_id,
                    stage=STAGE_HASH_COMPONENT,
                    message=f"hashed {label}",
                    fields={"path": label, "hash": item.hash, "filter": stream_filter.name},
                )
            )
        return item

    def finish(self) -> Manifest:
        self.manifest.master_hash = self._aggregate.finalize()
        self._progress.emit(
            build_progress_event(
                run_id=self._run_id,
                stage=STAGE_MASTER_HASH,
                message="computed master hash for the file set",
                fields={"master_hash": self.manifest.master_hash, "components": len(self.manifest.components)},
            )
        )
        return self.manifest


def _hash_disassembled(builder: ManifestBuilder, *, source: Path, result: DisassemblyResult) -> None:
    builder.add_artifact(result.il_path, ArtifactCategory.MODULE_IR, label=source.name)
    for resource in result.resources:
        builder.add_artifact(resource, category_for_path(resource), label=resource.name)


def _hash_module(
    builder: ManifestBuilder,
    *,
    path: Path,
    disassembler: Disassembler,
    options: HashOptions,
    progress: ProgressSink,
    run_id: str,
) -> None:
    result = disassembler.disassemble(path)
    try:
        status = "OK" if result.successful else "FALLBACK"
        metrics.inc_disassembly(status=status)
        progress.emit(
            build_progress_event(
                run_id=run_id,
                stage=STAGE_DISASSEMBLE,
                message=f"disassembled {path.name}: {status}",
                fields={"path": str(path), "status": status, "resources": len(result.resources)},
            )
        )

        if result.successful:
            _hash_disassembled(builder, source=path, result=result)
        else:
            # Not a module the tool understands: hash the original bytes instead.
            builder.add_artifact(result.il_path, category_for_path(result.il_path), label=str(result.il_path))
    finally:
        if not options.keep_temp_files:
            result.delete()
            progress.emit(
                build_progress_event(
                    run_id=run_id,
                    stage=STAGE_CLEANUP,
                    message=f"removed temporary files for {path.name}",
                    fields={"path": str(path)},
                )
            )


def hash_file_set(
    paths: Sequence[Path | str],
    *,
    disassembler: Disassembler,
    options: HashOptions = HashOptions(),
    progress: Optional[ProgressSink] = None,
    run_id: Optional[str] = None,
) -> tuple[str, Manifest]:
    """Fingerprint `paths` and return `(master_hash, manifest)`.

    Any input error aborts the run; no partial manifest is returned.
    """

    progress = progress or NullProgressSink()
    run_id = run_id or str(uuid.uuid4())
    started = time.monotonic()

    try:
        with run_span(run_id=run_id, inputs=paths):
            files = expand_file_set(paths)
            progress.emit(
                build_progress_event(
                    run_id=run_id,
                    stage=STAGE_EXPAND,
                    message=f"compiled file list of {len(files)} files",
                    fields={"inputs": [str(p) for p in paths], "files": len(files)},
                )
            )

            builder = ManifestBuilder(options=options, progress=progress, run_id=run_id)
            for path in files:
                if is_module_path(path, module_extensions=options.module_extensions):
                    _hash_module(
                        builder,
                        path=path,
                        disassembler=disassembler,
                        options=options,
                        progress=progress,
                        run_id=run_id,
                    )
                else:
                    builder.add_artifact(path, category_for_path(path), label=str(path))

            manifest = builder.finish()
    except Exception:
        metrics.observe_run(duration_ms=int((time.monotonic() - started) * 1000), status="FAILED")
        raise

    metrics.observe_run(duration_ms=int((time.monotonic() - started) * 1000), status="OK")
    assert manifest.master_hash is not None
    return manifest.master_hash, manifest


def fingerprint(*paths: Path | str, disassembler: Optional[Disassembler] = None) -> str:
    """Master hash of `paths` with default options."""

    master_hash, _ = hash_file_set(list(paths), disassembler=disassembler or CommandLineDisassembler())
    return master_hash
