from __future__ import annotations


try:
    from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
except Exception as e:  # pragma: no cover
    raise RuntimeError("prometheus_client is required (see pyproject.toml)") from e


artifacts_hashed_total = Counter(
    "artifacts_hashed_total",
    "Artifacts folded into a fingerprint, by artifact category.",
    labelnames=("category",),
)

disassembly_total = Counter(
    "disassembly_total",
    "Disassembler invocations by outcome (OK or FALLBACK).",
    labelnames=("status",),
)

hash_runs_total = Counter(
    "hash_runs_total",
    "Completed or failed fingerprint runs.",
    labelnames=("status",),
)

hash_run_latency_ms = Histogram(
    "hash_run_latency_ms",
    "Fingerprint run latency in milliseconds.",
    labelnames=("status",),
    buckets=(
        10,
        50,
        100,
        500,
        1000,
        5000,
        10000,
        30000,
        60000,
        300000,
    ),
)


def inc_artifact(*, category: str) -> None:
    artifacts_hashed_total.labels(category=category).inc()


def inc_disassembly(*, status: str) -> None:
    disassembly_total.labels(status=status).inc()


def observe_run(*, duration_ms: int, status: str) -> None:
    if duration_ms < 0:
        return
    hash_runs_total.labels(status=status).inc()
    hash_run_latency_ms.labels(status=status).observe(duration_ms)


def render_prometheus() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST
