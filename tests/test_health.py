from __future__ import annotations

from types import SimpleNamespace

import psutil
from fastapi.testclient import TestClient

from arcade_bot.health import HealthMonitor, create_health_app


def _client(latency=0.0421, ready=True, closed=False):
    return SimpleNamespace(
        latency=latency,
        guilds=[object(), object()],
        users=[object(), object(), object()],
        is_ready=lambda: ready,
        is_closed=lambda: closed,
    )


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_snapshot_fields():
    clock = _Clock()
    monitor = HealthMonitor(_client(), started_at=100.0, clock=clock)
    clock.now = 112.5

    snap = monitor.snapshot()
    assert snap["status"] == "healthy"
    assert snap["uptime"] == 12.5
    assert snap["memory"]["rss"] > 0
    assert snap["discord"] == {"connected": True, "ping": 42.1, "guilds": 2, "users": 3}
    assert snap["timestamp"].endswith("+00:00")


def test_snapshot_before_first_heartbeat():
    snap = HealthMonitor(_client(latency=float("nan"), ready=False)).snapshot()
    assert snap["discord"]["connected"] is False
    assert snap["discord"]["ping"] is None


def test_health_endpoint_and_404():
    client = TestClient(create_health_app(HealthMonitor(_client())))

    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert set(body) == {"status", "timestamp", "uptime", "memory", "discord"}
    assert set(body["discord"]) == {"connected", "ping", "guilds", "users"}

    assert client.get("/").status_code == 404
    assert client.get("/docs").status_code == 404
    assert client.get("/metrics").status_code == 404


def test_uptime_defaults_to_process_age():
    created = psutil.Process().create_time()
    monitor = HealthMonitor(_client(), clock=lambda: created + 42.0)
    assert monitor.snapshot()["uptime"] == 42.0


def test_health_answers_any_method():
    client = TestClient(create_health_app(HealthMonitor(_client())))
    for method in ("post", "put", "delete"):
        resp = getattr(client, method)("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"
    assert client.post("/status").status_code == 404
