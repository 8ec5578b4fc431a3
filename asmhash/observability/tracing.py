from __future__ import annotations

import hashlib
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional, Sequence


try:
    from opentelemetry import trace
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.trace import NonRecordingSpan, Span, SpanContext, SpanKind, TraceFlags, TraceState
except Exception as e:  # pragma: no cover
    raise RuntimeError("opentelemetry-sdk is required (see pyproject.toml)") from e


TRACER_NAME = "asmhash"

_initialized = False
_enabled = False


def _stable_id_from_key(key: str, *, size: int) -> int:
    digest = hashlib.sha256(key.encode("utf-8")).digest()
    value = int.from_bytes(digest[:size], byteorder="big", signed=False)
    return value or 1


@dataclass(frozen=True)
class TraceIds:
    trace_id_hex: str
    span_id_hex: str


def init_tracing(*, enabled: bool, service_name: str = TRACER_NAME) -> None:
    """Install an SDK tracer provider once; later calls can only turn tracing on."""

    global _initialized, _enabled
    if _initialized and (_enabled or not enabled):
        return

    _initialized = True
    _enabled = enabled
    if enabled:
        trace.set_tracer_provider(TracerProvider(resource=Resource.create({"service.name": service_name})))


def context_for_run_id(*, run_id: str) -> Any:
    # Same run_id, same trace id: progress events of a re-run line up with the first one.
    parent = SpanContext(
        trace_id=_stable_id_from_key(f"asmhash:run:{run_id}", size=16),
        span_id=_stable_id_from_key(f"asmhash:run_span:{run_id}", size=8),
        is_remote=True,
        trace_flags=TraceFlags(TraceFlags.SAMPLED),
        trace_state=TraceState(),
    )
    return trace.set_span_in_context(NonRecordingSpan(parent))


def current_trace_ids() -> Optional[TraceIds]:
    ctx = trace.get_current_span().get_span_context()
    if ctx is None or not ctx.is_valid:
        return None
    return TraceIds(trace_id_hex=f"{int(ctx.trace_id):032x}", span_id_hex=f"{int(ctx.span_id):016x}")


def _attribute_value(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return value


@contextmanager
def start_span(
    name: str,
    *,
    context: Any = None,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: Optional[Mapping[str, Any]] = None,
) -> Iterator[Span]:
    tracer = trace.get_tracer(TRACER_NAME)
    with tracer.start_as_current_span(name, context=context, kind=kind) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(str(key), _attribute_value(value))
        yield span


@contextmanager
def run_span(*, run_id: str, inputs: Sequence[Path | str]) -> Iterator[Span]:
    """Root span of one fingerprint run, parented on the run's stable trace id."""

    with start_span(
        "asmhash.run",
        context=context_for_run_id(run_id=run_id),
        attributes={"asmhash.run_id": run_id, "asmhash.inputs": list(inputs)},
    ) as span:
        yield span


@contextmanager
def artifact_span(*, label: str, category: str, filter_name: str) -> Iterator[Span]:
    with start_span(
        "asmhash.artifact",
        attributes={"asmhash.label": label, "asmhash.category": category, "asmhash.filter": filter_name},
    ) as span:
        yield span


def annotate_current_span_hash(*, digest: str) -> None:
    trace.get_current_span().set_attribute("asmhash.hash", digest)


def reset_tracing_for_tests() -> None:
    global _initialized, _enabled
    _initialized = False
    _enabled = False
