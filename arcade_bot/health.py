from __future__ import annotations

import asyncio
import contextlib
import logging
import math
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, Optional

import psutil
import uvicorn
from fastapi import FastAPI

logger = logging.getLogger(__name__)

HEALTH_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class HealthMonitor:
    """
    Read-only snapshot of process + gateway state, recomputed per query.

    client is anything discord.Client-shaped: latency, guilds, users,
    is_ready(), is_closed(). started_at is an epoch timestamp; uptime is
    measured from it and defaults to the process creation time.
    """

    def __init__(
        self,
        client: Any,
        started_at: Optional[float] = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._clock = clock
        self._process = psutil.Process()
        self._started = started_at if started_at is not None else self._process.create_time()

    def _ping_ms(self) -> Optional[float]:
        latency = getattr(self._client, "latency", None)
        if latency is None or math.isnan(latency) or math.isinf(latency):
            return None
        return round(latency * 1000, 2)

    def snapshot(self) -> Dict[str, Any]:
        mem = self._process.memory_info()
        client = self._client
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(self._clock() - self._started, 3),
            "memory": {"rss": mem.rss, "vms": mem.vms},
            "discord": {
                "connected": bool(client.is_ready() and not client.is_closed()),
                "ping": self._ping_ms(),
                "guilds": len(client.guilds),
                "users": len(client.users),
            },
        }


def create_health_app(monitor: HealthMonitor) -> FastAPI:
    # Only /health exists (any method); docs and schema routes are off so every other path is a 404.
    app = FastAPI(title="Arcade Bot Health", docs_url=None, redoc_url=None, openapi_url=None)

    @app.api_route("/health", methods=HEALTH_METHODS)
    def health() -> Dict[str, Any]:
        return monitor.snapshot()

    return app


class _EmbeddedServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the bot process."""

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield

    def install_signal_handlers(self) -> None:
        return


class HealthServer:
    """Runs the health app on the bot's event loop."""

    def __init__(self, app: FastAPI, *, host: str, port: int) -> None:
        self.port = port
        self._server = _EmbeddedServer(
            uvicorn.Config(app, host=host, port=port, log_level="warning", lifespan="off")
        )
        self._task: Optional["asyncio.Task[None]"] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._server.serve(), name="arcade-health")
        logger.info("Health check server listening on port %s", self.port)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._server.should_exit = True
        try:
            await self._task
        except Exception:
            logger.exception("Health check server exited with an error")
        self._task = None
        logger.info("Health check server stopped")


__all__ = ["HealthMonitor", "HealthServer", "create_health_app"]
