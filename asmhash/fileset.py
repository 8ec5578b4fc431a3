from __future__ import annotations

from pathlib import Path
from typing import Sequence


def _iter_directory_files(directory: Path) -> list[Path]:
    return [p for p in directory.rglob("*") if p.is_file()]


def expand_file_set(paths: Sequence[Path | str]) -> list[Path]:
    """Flatten files and directories into an ordered list of files.

    Directories are replaced by every file beneath them and the whole list is then
    sorted lexicographically. A list with no directories keeps the caller's order.
    """

    files: list[Path] = []
    discovered: list[Path] = []
    expanded_any = False

    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            discovered.extend(_iter_directory_files(path))
            expanded_any = True
        elif path.is_file():
            files.append(path)
        else:
            raise FileNotFoundError(f"input path is neither a file nor a directory: {path}")

    if not expanded_any:
        return files

    files.extend(discovered)
    return sorted(files, key=lambda p: str(p))
