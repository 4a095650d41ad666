from __future__ import annotations

from fastapi import APIRouter

from app.core.app_metrics import get_metrics
from app.core.resilience import get_breakers_status

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.get("/app")
async def app_metrics():
    """Request latency (p50/p95), error rate, quiz outcome counters and alerts."""
    out = get_metrics()
    open_breakers = [name for name, status in get_breakers_status().items() if status["state"] != "closed"]
    if open_breakers:
        out["alerts"] = list(out.get("alerts", [])) + ["llm_circuit_open"]
    return out


@router.get("/resilience")
async def resilience_metrics():
    return {"breakers": get_breakers_status()}
