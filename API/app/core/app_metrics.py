"""In-memory app metrics: request latency, error rates and quiz outcomes, with optional alerts."""
from __future__ import annotations

import time
from collections import Counter, deque
from threading import Lock

from starlette.requests import Request
from starlette.responses import Response

# Rolling window size for latency percentiles
_LATENCY_WINDOW = 500
# Alert thresholds
_ERROR_RATE_ALERT_THRESHOLD = 0.10  # 10%
_LATENCY_P95_ALERT_MS = 15000  # one LLM timeout
_GENERATION_FAILURE_ALERT_THRESHOLD = 0.25
_EVALUATION_FALLBACK_ALERT_THRESHOLD = 0.25

QUIZ_EVENTS = (
    "questions_generated",
    "generation_failures",
    "evaluations",
    "evaluation_fallbacks",
    "persistence_warnings",
    "content_generated",
    "video_fallbacks",
)

_lock = Lock()
_request_count = 0
_error_count = 0
_latencies: deque[float] = deque(maxlen=_LATENCY_WINDOW)
_quiz_events: Counter[str] = Counter()


def record_request(duration_sec: float, is_error: bool) -> None:
    with _lock:
        global _request_count, _error_count
        _request_count += 1
        if is_error:
            _error_count += 1
        _latencies.append(duration_sec)


def record_quiz_event(name: str, count: int = 1) -> None:
    if name not in QUIZ_EVENTS:
        raise ValueError(f"Unknown quiz event: {name}")
    with _lock:
        _quiz_events[name] += count


def get_quiz_metrics() -> dict:
    with _lock:
        return {name: _quiz_events.get(name, 0) for name in QUIZ_EVENTS}


def get_metrics() -> dict:
    with _lock:
        total = _request_count
        errors = _error_count
        latencies = list(_latencies)

    error_rate = (errors / total) if total else 0.0
    latency_ms_p50: float | None = None
    latency_ms_p95: float | None = None
    if latencies:
        sorted_ms = sorted(lat * 1000 for lat in latencies)
        n = len(sorted_ms)
        latency_ms_p50 = sorted_ms[int((n - 1) * 0.50)]
        latency_ms_p95 = sorted_ms[int((n - 1) * 0.95)]

    quiz = get_quiz_metrics()
    alerts: list[str] = []
    if total and error_rate >= _ERROR_RATE_ALERT_THRESHOLD:
        alerts.append("high_error_rate")
    if latency_ms_p95 is not None and latency_ms_p95 >= _LATENCY_P95_ALERT_MS:
        alerts.append("high_latency_p95")
    attempts = quiz["questions_generated"] + quiz["generation_failures"]
    if attempts >= 5 and quiz["generation_failures"] / attempts >= _GENERATION_FAILURE_ALERT_THRESHOLD:
        alerts.append("high_generation_failure_rate")
    if quiz["evaluations"] >= 5 and quiz["evaluation_fallbacks"] / quiz["evaluations"] >= _EVALUATION_FALLBACK_ALERT_THRESHOLD:
        alerts.append("high_evaluation_fallback_rate")

    return {
        "request_count": total,
        "error_count": errors,
        "error_rate": round(error_rate, 4),
        "latency_ms_p50": round(latency_ms_p50, 2) if latency_ms_p50 is not None else None,
        "latency_ms_p95": round(latency_ms_p95, 2) if latency_ms_p95 is not None else None,
        "quiz": quiz,
        "alerts": alerts,
    }


def reset_metrics() -> None:
    """Reset counters (e.g. for tests)."""
    with _lock:
        global _request_count, _error_count
        _request_count = 0
        _error_count = 0
        _latencies.clear()
        _quiz_events.clear()


async def metrics_middleware(request: Request, call_next) -> Response:
    """Record request duration and status (skips /health and /metrics)."""
    path = request.url.path
    if path == "/health" or path.startswith("/metrics"):
        return await call_next(request)
    start = time.perf_counter()
    response = await call_next(request)
    record_request(time.perf_counter() - start, response.status_code >= 400)
    return response
