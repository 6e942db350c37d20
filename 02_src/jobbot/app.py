"""Application bootstrap and lifecycle management."""

import os
from typing import Protocol

from .bot import JobBot
from .channel import ChannelAdapter
from .commands import CommandDispatcher
from .config import Settings, resolve_db_path
from .dialogs import DialogEngine
from .event_bus import EventBus
from .jobs import JobIdGenerator, JobRegistry
from .logging_config import get_logger
from .output_router import OutputRouter
from .proactive import ProactiveNotifier, ResumeScheduler
from .storage import IStorage, Storage
from .tracker import ITracker, Tracker

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(self, db_path: str | None = None, settings: Settings | None = None):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        self._settings = settings or Settings.from_env()

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._event_bus: EventBus | None = None
        self._tracker: ITracker | None = None
        self._adapter: ChannelAdapter | None = None
        self._output_router: OutputRouter | None = None
        self._registry: JobRegistry | None = None
        self._dialogs: DialogEngine | None = None
        self._scheduler: ResumeScheduler | None = None
        self._notifier: ProactiveNotifier | None = None
        self._dispatcher: CommandDispatcher | None = None
        self._bot: JobBot | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. EventBus (depends on Storage for persistence)
        self._event_bus = EventBus(self._storage)

        # 3. Tracker (depends on EventBus + Storage)
        self._tracker = Tracker(self._event_bus, self._storage)
        await self._tracker.start()

        # 4. Channel adapter and transcript delivery
        self._adapter = ChannelAdapter(self._event_bus, self._storage)
        self._output_router = OutputRouter(
            event_bus=self._event_bus,
            storage=self._storage,
            tracker=self._tracker,
        )
        await self._output_router.start()

        # 5. Job registry and dialogs
        self._registry = JobRegistry(
            self._storage,
            bot_id=self._settings.bot_id,
            max_retries=self._settings.registry_max_retries,
        )
        self._dialogs = DialogEngine(self._tracker)

        # 6. Proactive resume (depends on adapter, registry, dialogs)
        self._scheduler = ResumeScheduler(
            event_bus=self._event_bus,
            adapter=self._adapter,
            tracker=self._tracker,
            timeout=self._settings.resume_timeout_seconds,
        )
        await self._scheduler.start()
        self._notifier = ProactiveNotifier(
            registry=self._registry,
            scheduler=self._scheduler,
            dialogs=self._dialogs,
            tracker=self._tracker,
        )
        await self._notifier.start()

        # 7. Commands and the bot itself
        self._dispatcher = CommandDispatcher(
            registry=self._registry,
            notifier=self._notifier,
            tracker=self._tracker,
            id_generator=JobIdGenerator(),
        )
        self._bot = JobBot(
            adapter=self._adapter,
            dispatcher=self._dispatcher,
            dialogs=self._dialogs,
            notifier=self._notifier,
        )
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._scheduler:
            await self._scheduler.stop()
        if self._output_router:
            await self._output_router.stop()
        if self._tracker:
            await self._tracker.stop()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Reset data between test runs."""
        if self._storage:
            await self._storage.clear()
            logger.info("Reset complete")

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def bot(self) -> JobBot:
        """Get the turn handler."""
        if not self._bot:
            raise RuntimeError("Application not started")
        return self._bot

    @property
    def registry(self) -> JobRegistry:
        """Get the job registry."""
        if not self._registry:
            raise RuntimeError("Application not started")
        return self._registry

    @property
    def tracker(self) -> ITracker:
        """Get tracker instance."""
        if not self._tracker:
            raise RuntimeError("Application not started")
        return self._tracker
