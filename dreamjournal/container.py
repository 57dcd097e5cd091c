import random
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from .alarms import AlarmScheduler, AlarmService
from .config import Settings
from .journal import JournalService
from .narrative import NarrativeGenerator, select_strategy
from .notifications import MemoryNotificationService, NotificationService, SchedulerNotificationService
from .sentiment import SentimentCapability, probe_sentiment_capability
from .store import JsonFileStore, MemoryStore, ObjectStore


@dataclass
class Container:
    """Services built once at startup and handed to whoever needs them."""

    settings: Settings
    capability: SentimentCapability
    store: ObjectStore
    notifier: NotificationService
    generator: NarrativeGenerator
    journal: JournalService
    alarms: AlarmService


def build_store(settings: Settings) -> ObjectStore:
    if settings.store_path:
        return JsonFileStore(settings.store_path)
    return MemoryStore()


def build_notifier(settings: Settings) -> NotificationService:
    if settings.notifier == "memory":
        return MemoryNotificationService(grant_permission=settings.notifications_granted)
    return SchedulerNotificationService(
        timezone=settings.timezone,
        grant_permission=settings.notifications_granted,
    )


def build_container(
    settings: Settings,
    capability: Optional[SentimentCapability] = None,
    store: Optional[ObjectStore] = None,
    notifier: Optional[NotificationService] = None,
) -> Container:
    if capability is None:
        capability = probe_sentiment_capability(settings.allow_nltk_download)

    strategy = select_strategy(settings.strategy, capability)
    generator = NarrativeGenerator(
        strategy=strategy,
        scorer=capability.scorer,
        delay=settings.generation_delay,
        rng=random.Random(settings.random_seed),
    )
    logger.info(f"Narrative strategy: {strategy.value}")

    store = store if store is not None else build_store(settings)
    notifier = notifier if notifier is not None else build_notifier(settings)

    return Container(
        settings=settings,
        capability=capability,
        store=store,
        notifier=notifier,
        generator=generator,
        journal=JournalService(store),
        alarms=AlarmService(store, AlarmScheduler(notifier)),
    )
