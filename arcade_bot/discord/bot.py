from __future__ import annotations

import asyncio
import logging
import signal
from typing import Any, List, Optional

import discord
import psutil
from sqlalchemy.engine import Engine

from ..config import Settings
from ..database import create_db_engine, init_db
from ..health import HealthMonitor, HealthServer, create_health_app
from .eventbus import EventBus, SubscriptionHandle
from .registry import DescriptorRegistry
from .sync import DeploymentTarget, DiscordRegistrationApi, SyncEngine, SyncReport

logger = logging.getLogger(__name__)

# Termination signals that trigger close() instead of killing the process
SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class ArcadeBot(discord.Client):
    """
    Gateway client for the arcade bot.

    Notes:
    - Commands are not attached to a discord.py CommandTree; the registry's
      catalog is the only source of truth, pushed with SyncEngine and routed
      by the "interaction" listener.
    - Every gateway dispatch is forwarded to the EventBus as (client, *args).
    - SIGTERM/SIGINT run the same ordered close() as a normal shutdown.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        registry: Optional[DescriptorRegistry] = None,
        events: Optional[EventBus] = None,
        engine: Optional[Engine] = None,
        started_at: Optional[float] = None,
    ) -> None:
        intents = discord.Intents.default()
        intents.guilds = True
        super().__init__(intents=intents)

        self.settings = settings
        self.registry = registry if registry is not None else DescriptorRegistry.default()
        self.events = events if events is not None else EventBus()
        self.engine = engine
        self.started_at = started_at
        self.health_server: Optional[HealthServer] = None

        self._subscriptions: List[SubscriptionHandle] = []
        self._signals: List[signal.Signals] = []
        self._signal_task: Optional["asyncio.Task[None]"] = None
        self._shutdown_done = False

    async def setup_hook(self) -> None:
        self.install_signal_handlers()
        self.registry.load()
        self.subscribe_events()

        if self.settings.auto_register:
            logger.info("Auto-registering commands (AUTO_REGISTER=true)...")
            await self.register_commands()
        else:
            logger.info("Skipping command registration. Run register_commands to update commands.")

        monitor = HealthMonitor(self, started_at=self.started_at)
        self.health_server = HealthServer(create_health_app(monitor), host=self.settings.host, port=self.settings.port)
        await self.health_server.start()

    def install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError):
                # No loop signal support (Windows, or not the main thread)
                logger.debug("Cannot install handler for %s", sig.name)
                continue
            self._signals.append(sig)

    def _remove_signal_handlers(self) -> None:
        if not self._signals:
            return
        loop = asyncio.get_running_loop()
        for sig in self._signals:
            loop.remove_signal_handler(sig)
        self._signals = []

    def _on_signal(self, sig: signal.Signals) -> None:
        if self._signal_task is not None:
            return
        logger.info("Received %s, shutting down...", sig.name)
        self._signal_task = asyncio.get_running_loop().create_task(self.close(), name="arcade-shutdown")

    def subscribe_events(self) -> None:
        for handle in self._subscriptions:
            self.events.unsubscribe(handle)
        self._subscriptions = []

        for ev in self.registry.get_events():
            self._subscriptions.append(self.events.subscribe(ev.name, ev.handler, once=ev.once))
            logger.info("Subscribed event: %s (once=%s)", ev.name, ev.once)

    def startup_target(self) -> DeploymentTarget:
        # Guild registration updates instantly; global is the fallback when no guild is configured.
        if self.settings.guild_ids:
            return DeploymentTarget.guilds(self.settings.guild_ids)
        return DeploymentTarget.global_()

    async def register_commands(self) -> SyncReport:
        target = self.startup_target()
        async with DiscordRegistrationApi.from_settings(self.settings) as api:
            report = await SyncEngine(api).sync(self.registry.get_commands(), target)
        if not report.ok:
            logger.error("Startup command sync incomplete: %s", ", ".join(str(o.scope) for o in report.failed))
        return report

    def dispatch(self, event_name: str, /, *args: Any, **kwargs: Any) -> None:
        super().dispatch(event_name, *args, **kwargs)
        self.events.emit(event_name, self, *args, **kwargs)

    async def close(self) -> None:
        # Ordered shutdown: health queries, subscriptions, store, gateway.
        if not self._shutdown_done:
            self._shutdown_done = True
            logger.info("Shutting down bot...")
            self._remove_signal_handlers()

            if self.health_server is not None:
                await self.health_server.stop()

            for handle in self._subscriptions:
                self.events.unsubscribe(handle)
            self._subscriptions = []

            if self.engine is not None:
                self.engine.dispose()

        await super().close()


def run_bot(settings: Settings) -> None:
    """
    Blocking entrypoint: validate, prepare the store, connect.
    Raises on fatal errors; run_bot.py turns that into exit code 1.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings.validate_required()

    engine = create_db_engine(settings.resolved_database_url)
    init_db(engine)

    bot = ArcadeBot(settings, engine=engine, started_at=psutil.Process().create_time())
    bot.run(settings.discord_token, log_handler=None)
