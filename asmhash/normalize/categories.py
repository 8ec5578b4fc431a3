from __future__ import annotations

from enum import Enum
from pathlib import Path


class ArtifactCategory(str, Enum):
    MODULE_IR = "MODULE_IR"
    RESOURCE_CONTAINER = "RESOURCE_CONTAINER"
    GENERIC_RESOURCE = "GENERIC_RESOURCE"
    OPAQUE = "OPAQUE"


IL_EXTENSIONS = frozenset({".il"})
RESOURCE_CONTAINER_EXTENSIONS = frozenset({".res"})
GENERIC_RESOURCE_EXTENSIONS = frozenset({".resources"})

DEFAULT_MODULE_EXTENSIONS: tuple[str, ...] = (".dll", ".exe")


def _suffix(path: Path | str) -> str:
    return Path(path).suffix.lower()


def is_module_path(path: Path | str, *, module_extensions: tuple[str, ...] = DEFAULT_MODULE_EXTENSIONS) -> bool:
    return _suffix(path) in {ext.lower() for ext in module_extensions}


def category_for_path(path: Path | str) -> ArtifactCategory:
    """Classify a standalone file or extracted resource by its extension."""

    ext = _suffix(path)
    if ext in IL_EXTENSIONS:
        return ArtifactCategory.MODULE_IR
    if ext in RESOURCE_CONTAINER_EXTENSIONS:
        return ArtifactCategory.RESOURCE_CONTAINER
    if ext in GENERIC_RESOURCE_EXTENSIONS:
        return ArtifactCategory.GENERIC_RESOURCE
    return ArtifactCategory.OPAQUE
