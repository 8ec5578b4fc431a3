from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Optional

from asmhash.disassembly.disassembler import Disassembler, DisassemblyResult, failed_disassembly

MODULE_MAGIC = b"MZ"


def widget_il(*, version: str, mvid: str, image_base: str) -> str:
    major, minor, patch = version.split(".")
    return (
        "// Metadata version: v4.0.30319\n"
        ".assembly extern mscorlib\n"
        "{\n"
        "  .publickeytoken = (B7 7A 5C 56 19 34 E0 89 )\n"
        "  .ver 4:0:0:0\n"
        "}\n"
        ".assembly Widget\n"
        "{\n"
        "  .custom instance void [mscorlib]System.Reflection.AssemblyFileVersionAttribute::.ctor(string)"
        f" = ( 01 00 05 3{major} 2E 3{minor} 2E 3{patch} 00 00 )\n"
        "  .hash algorithm 0x00008004\n"
        f"  .ver {major}:{minor}:{patch}:0\n"
        "}\n"
        ".module Widget.dll\n"
        f"// MVID: {{{mvid}}}\n"
        ".imagebase 0x10000000\n"
        f"// Image base: {image_base}\n"
        ".method public hidebysig static int32 Add(int32 a, int32 b) cil managed\n"
        "{\n"
        "  ldarg.0\n"
        "  ldarg.1\n"
        "  add\n"
        "  ret\n"
        "}\n"
    )


def write_module(path: Path, il_text: str) -> Path:
    path.write_bytes(MODULE_MAGIC + il_text.encode("utf-8"))
    return path


class FakeDisassembler(Disassembler):
    """Treats files starting with `MZ` as modules whose IL text is the rest of the file."""

    def __init__(
        self,
        *,
        work_root: Path,
        resources_by_module: Optional[dict[str, list[tuple[str, bytes]]]] = None,
    ) -> None:
        self._work_root = work_root
        self._resources_by_module = resources_by_module or {}
        self.calls: list[Path] = []
        self.results: list[DisassemblyResult] = []

    def disassemble(self, path: Path) -> DisassemblyResult:
        self.calls.append(path)
        data = path.read_bytes()
        if not data.startswith(MODULE_MAGIC):
            result = failed_disassembly(path)
            self.results.append(result)
            return result

        work_dir = Path(tempfile.mkdtemp(prefix="fake-ildasm-", dir=self._work_root))
        il_path = work_dir / (path.stem + ".il")
        il_path.write_bytes(data[len(MODULE_MAGIC) :])

        resources: list[Path] = []
        for name, content in self._resources_by_module.get(path.name, []):
            resource_path = work_dir / name
            resource_path.write_bytes(content)
            resources.append(resource_path)

        result = DisassemblyResult(
            successful=True,
            il_path=il_path,
            resources=tuple(resources),
            work_dir=work_dir,
        )
        self.results.append(result)
        return result
