from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from asmhash.disassembly.disassembler import Disassembler
from asmhash.manifest import Manifest
from asmhash.observability.progress_log import ProgressSink
from asmhash.pipeline.hasher import HashOptions, hash_file_set


@dataclass(frozen=True)
class ManifestVerification:
    expected_master_hash: str
    actual_master_hash: str
    errors: list[str]

    @property
    def ok(self) -> bool:
        return not self.errors


def compare_manifests(*, expected: Manifest, actual: Manifest) -> list[str]:
    errors: list[str] = []

    if expected.master_hash != actual.master_hash:
        errors.append(f"master_hash mismatch: {actual.master_hash} != {expected.master_hash}")

    if len(expected.components) != len(actual.components):
        errors.append(
            f"component count mismatch: {len(actual.components)} != {len(expected.components)}"
        )

    for idx, (exp, act) in enumerate(zip(expected.components, actual.components)):
        if exp.path != act.path:
            errors.append(f"components[{idx}]: path mismatch: {act.path} != {exp.path}")
        elif exp.hash != act.hash:
            errors.append(f"components[{idx}]: hash mismatch: {exp.path}")

    return errors


def verify_manifest(
    *,
    expected: Manifest,
    paths: Sequence[Path | str],
    disassembler: Disassembler,
    options: HashOptions = HashOptions(),
    progress: Optional[ProgressSink] = None,
) -> ManifestVerification:
    """Re-fingerprint `paths` and report where the result departs from `expected`."""

    actual_master_hash, actual = hash_file_set(
        paths,
        disassembler=disassembler,
        options=options,
        progress=progress,
    )
    return ManifestVerification(
        expected_master_hash=str(expected.master_hash),
        actual_master_hash=actual_master_hash,
        errors=compare_manifests(expected=expected, actual=actual),
    )
