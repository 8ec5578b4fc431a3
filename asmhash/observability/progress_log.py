from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Protocol

from asmhash.observability.tracing import current_trace_ids

STAGE_EXPAND = "EXPAND"
STAGE_DISASSEMBLE = "DISASSEMBLE"
STAGE_HASH_COMPONENT = "HASH_COMPONENT"
STAGE_MASTER_HASH = "MASTER_HASH"
STAGE_CLEANUP = "CLEANUP"


def _format_datetime(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt.isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ProgressEvent:
    run_id: str
    stage: str
    message: str
    occurred_at: str
    trace_id: str
    span_id: str
    fields: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "stage": self.stage,
            "message": self.message,
            "occurred_at": self.occurred_at,
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "fields": dict(self.fields),
        }


def build_progress_event(
    *,
    run_id: str,
    stage: str,
    message: str,
    occurred_at: Optional[datetime] = None,
    fields: Optional[dict[str, Any]] = None,
) -> ProgressEvent:
    ids = current_trace_ids()
    return ProgressEvent(
        run_id=run_id,
        stage=stage,
        message=message,
        occurred_at=_format_datetime(occurred_at or datetime.now(timezone.utc)),
        trace_id=(ids.trace_id_hex if ids is not None else None) or run_id,
        span_id=(ids.span_id_hex if ids is not None else None) or stage,
        fields=fields or {},
    )


class ProgressSink(Protocol):
    def emit(self, event: ProgressEvent) -> None: ...


class NullProgressSink:
    def emit(self, event: ProgressEvent) -> None:
        return None


class FileProgressLog:
    """Append-only progress events, one JSONL file per run_id."""

    def __init__(self, *, base_dir: Path) -> None:
        self._base_dir = base_dir

    def path_for(self, *, run_id: str) -> Path:
        return self._base_dir / "progress" / f"{run_id}.jsonl"

    def emit(self, event: ProgressEvent) -> None:
        path = self.path_for(run_id=event.run_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(event.to_dict(), ensure_ascii=False) + "\n")


class MemoryProgressSink:
    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def emit(self, event: ProgressEvent) -> None:
        self.events.append(event)
