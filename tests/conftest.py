"""Shared fixtures: in-memory store, in-memory notifications, fixed sentiment scores."""

import pytest

from dreamjournal.alarms import AlarmScheduler, AlarmService
from dreamjournal.journal import JournalService
from dreamjournal.notifications import MemoryNotificationService
from dreamjournal.sentiment import probe_sentiment_capability
from dreamjournal.store import MemoryStore


class FixedScorer:
    """Sentiment scorer that always answers with the same polarity."""

    def __init__(self, value: float):
        self.value = value
        self.calls = []

    def score(self, text: str) -> float:
        self.calls.append(text)
        return self.value


class FlakyStore(MemoryStore):
    """Memory store whose saves fail while ``failing`` is set."""

    failing = False

    def _write(self, state):
        if self.failing:
            raise OSError("disk full")


@pytest.fixture(autouse=True)
def fresh_capability_probe():
    probe_sentiment_capability.cache_clear()
    yield
    probe_sentiment_capability.cache_clear()


@pytest.fixture
def scorer():
    return FixedScorer


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def notifier():
    service = MemoryNotificationService()
    service.request_permission()
    return service


@pytest.fixture
def alarm_service(store, notifier):
    return AlarmService(store, AlarmScheduler(notifier))


@pytest.fixture
def journal(store):
    return JournalService(store)
