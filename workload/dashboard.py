from __future__ import annotations

from fastapi import FastAPI, HTTPException
from redis import Redis

from . import __version__
from .config import APP_NAME, REDIS_URL
from .metrics import MetricsStore

app = FastAPI(title=f"{APP_NAME} dashboard", version=__version__)

# Runtime singletons
redis_client = Redis.from_url(REDIS_URL or "redis://localhost:6379/0", decode_responses=True)
metrics = MetricsStore(redis_client)


@app.get("/api/ping")
def ping():
    return {"ok": True, "message": "pong"}


@app.get("/api/metrics")
def api_metrics(top: int = 10):
    data = metrics.global_stats()
    data["status"] = metrics.status_stats()
    data["top_urls"] = metrics.top_urls(top)
    return data


@app.get("/api/metrics/url")
def url_metrics(url: str):
    stats = metrics.url_stats(url)
    return {"url": url, "visits": stats.visits, "errors": stats.errors}


@app.post("/api/admin/reset")
def reset_metrics():
    metrics.reset()
    return {"ok": True, "message": "metrics reset"}


@app.get("/api/health")
def health():
    try:
        metrics.r.ping()
    except Exception as e:
        raise HTTPException(status_code=503, detail=f"redis unreachable: {e}")
    return {"ok": True}
