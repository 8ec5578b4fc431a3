from __future__ import annotations

import shutil
import subprocess
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

DEFAULT_ARGUMENTS: tuple[str, ...] = ("/all", "/out={il_path}", "{input}")


@dataclass(frozen=True)
class DisassemblyResult:
    successful: bool
    il_path: Path
    resources: tuple[Path, ...] = ()
    work_dir: Optional[Path] = None

    def delete(self) -> None:
        if self.work_dir is not None and self.work_dir.exists():
            shutil.rmtree(self.work_dir)


class Disassembler(ABC):
    @abstractmethod
    def disassemble(self, path: Path) -> DisassemblyResult:
        """Return IL text plus extracted resources, or an unsuccessful result.

        Must be deterministic for identical input bytes.
        """


def failed_disassembly(path: Path, *, work_dir: Optional[Path] = None) -> DisassemblyResult:
    return DisassemblyResult(successful=False, il_path=path, resources=(), work_dir=work_dir)


class CommandLineDisassembler(Disassembler):
    """Runs an ildasm-compatible executable into a private temp directory.

    The tool runs with the private work directory as its cwd, so `command` must be
    found on PATH or given as an absolute path. A missing executable or a timeout
    propagates; a non-zero exit or a missing IL file means the input is not a module
    the tool understands.
    """

    def __init__(
        self,
        *,
        command: Sequence[str] = ("ildasm",),
        arguments: Sequence[str] = DEFAULT_ARGUMENTS,
        timeout_seconds: int = 300,
    ) -> None:
        if not command:
            raise ValueError("command must not be empty")
        self._command = list(command)
        self._arguments = list(arguments)
        self._timeout_seconds = timeout_seconds

    def _argv(self, *, input_path: Path, il_name: str) -> list[str]:
        # Paths stay relative to the work dir (the tool's cwd); ildasm echoes them into the IL.
        values = {"input": str(input_path), "il_path": il_name, "out_dir": "."}
        return self._command + [arg.format(**values) for arg in self._arguments]

    def disassemble(self, path: Path) -> DisassemblyResult:
        work_dir = Path(tempfile.mkdtemp(prefix="asmhash-"))
        il_path = work_dir / (path.stem + ".il")

        try:
            proc = subprocess.run(
                self._argv(input_path=path.resolve(), il_name=il_path.name),
                cwd=work_dir,
                capture_output=True,
                timeout=self._timeout_seconds,
            )
        except Exception:
            shutil.rmtree(work_dir)
            raise
        if proc.returncode != 0 or not il_path.is_file():
            return failed_disassembly(path, work_dir=work_dir)

        resources = tuple(
            sorted(
                (p for p in work_dir.iterdir() if p.is_file() and p != il_path),
                key=lambda p: p.name,
            )
        )
        return DisassemblyResult(successful=True, il_path=il_path, resources=resources, work_dir=work_dir)
