import threading
import time
from typing import Any


_lock = threading.Lock()
_COUNTERS = (
    "sessions_active",
    "sessions_total",
    "live_analyses_started",
    "live_analyses_skipped",
    "live_analyses_discarded",
    "final_analyses_completed",
    "final_analyses_failed",
    "transport_errors",
    "transport_reconnects",
    "audio_chunks_dropped",
    "followup_fallbacks",
    "qualitative_fallbacks",
    "analysis_latency_total_ms",
    "analysis_latency_samples",
)
_metrics: dict[str, float] = {name: 0.0 for name in _COUNTERS}


def increment_metric(name: str, amount: float = 1.0) -> None:
    key = str(name or "").strip()
    if not key:
        return
    with _lock:
        _metrics[key] = float(_metrics.get(key, 0.0)) + float(amount)


def decrement_metric(name: str, amount: float = 1.0) -> None:
    key = str(name or "").strip()
    if not key:
        return
    with _lock:
        next_value = float(_metrics.get(key, 0.0)) - float(amount)
        _metrics[key] = max(0.0, next_value)


def set_metric(name: str, value: float) -> None:
    key = str(name or "").strip()
    if not key:
        return
    with _lock:
        _metrics[key] = max(0.0, float(value))


def observe_analysis_latency_ms(value_ms: float) -> None:
    latency = max(0.0, float(value_ms or 0.0))
    with _lock:
        _metrics["analysis_latency_total_ms"] = float(_metrics.get("analysis_latency_total_ms", 0.0)) + latency
        _metrics["analysis_latency_samples"] = float(_metrics.get("analysis_latency_samples", 0.0)) + 1.0


def get_metric(name: str) -> float:
    with _lock:
        return float(_metrics.get(str(name or "").strip(), 0.0))


def get_metrics_snapshot(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    with _lock:
        data = dict(_metrics)

    latency_samples = max(1.0, float(data.get("analysis_latency_samples") or 0.0))

    payload: dict[str, Any] = {"generated_at": time.time()}
    for name in _COUNTERS:
        if name == "analysis_latency_total_ms":
            payload[name] = float(data.get(name) or 0.0)
        else:
            payload[name] = int(data.get(name) or 0.0)
    payload["avg_analysis_latency_ms"] = round(float(data.get("analysis_latency_total_ms") or 0.0) / latency_samples, 2)

    if extra:
        payload.update(extra)
    return payload
