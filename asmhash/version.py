from __future__ import annotations

import re
from pathlib import Path

VERSION_FILENAME = "VERSION"

_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$"
)


def read_repo_version(*, repo_root: Path) -> str:
    """SemVer string from `<repo_root>/VERSION`, the single source of the release number."""

    path = repo_root / VERSION_FILENAME
    if not path.is_file():
        raise FileNotFoundError(f"{VERSION_FILENAME} not found in {repo_root}")
    text = path.read_text(encoding="utf-8").strip()
    if _SEMVER_RE.fullmatch(text) is None:
        raise ValueError(f"{VERSION_FILENAME} is not a SemVer version: {text!r}")
    return text
