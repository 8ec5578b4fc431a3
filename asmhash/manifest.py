from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import jsonschema


@dataclass(frozen=True)
class ChildItem:
    path: str
    hash: str

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "hash": self.hash}


@dataclass
class Manifest:
    """One entry per hashed artifact, in processing order, plus the aggregate digest."""

    master_hash: Optional[str] = None
    components: list[ChildItem] = field(default_factory=list)

    def add(self, *, path: str, hash: str) -> ChildItem:
        item = ChildItem(path=path, hash=hash)
        self.components.append(item)
        return item

    def to_dict(self) -> dict[str, Any]:
        if self.master_hash is None:
            raise ValueError("manifest has no master_hash")
        return {
            "master_hash": self.master_hash,
            "components": [c.to_dict() for c in self.components],
        }

    @classmethod
    def from_dict(cls, obj: dict[str, Any]) -> "Manifest":
        return cls(
            master_hash=str(obj["master_hash"]),
            components=[ChildItem(path=str(c["path"]), hash=str(c["hash"])) for c in obj["components"]],
        )


def _load_manifest_schema(*, schema_path: Path) -> dict:
    return json.loads(schema_path.read_text(encoding="utf-8"))


def write_manifest(*, path: Path, manifest: Manifest) -> None:
    encoded = json.dumps(manifest.to_dict(), sort_keys=True, indent=2, ensure_ascii=False) + "\n"
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(encoded, encoding="utf-8")
    tmp.replace(path)


def load_manifest(*, path: Path, schema_path: Path) -> Manifest:
    obj = json.loads(path.read_text(encoding="utf-8"))
    schema = _load_manifest_schema(schema_path=schema_path)
    jsonschema.Draft202012Validator(schema).validate(obj)
    return Manifest.from_dict(obj)
