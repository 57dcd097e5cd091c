from collections import Counter
from typing import Iterable, List, Optional
from uuid import UUID

from loguru import logger

from .errors import NotFound, StorageError
from .models import AlarmRule, DreamEntry, JournalStats
from .store import ObjectStore


def clean_tags(tags: Iterable[str]) -> List[str]:
    """Trim tags, dropping blanks and repeats while keeping their order."""
    cleaned = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


def _required(value: str, name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{name} must not be empty")
    return value


def _optional(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


class JournalService:
    """Dream entries: create, edit, tag, delete, and keep confirmed interpretations."""

    def __init__(self, store: ObjectStore):
        self.store = store

    def _commit(self, action: str) -> bool:
        try:
            self.store.save()
        except StorageError as exc:
            logger.warning(f"Could not {action}: {exc}")
            self.store.rollback()
            return False
        return True

    def list_entries(self) -> List[DreamEntry]:
        return self.store.query(DreamEntry, sort_by="created_at", descending=True)

    def get_entry(self, entry_id: UUID) -> DreamEntry:
        entry = self.store.get(DreamEntry, entry_id)
        if entry is None:
            raise NotFound("entry", entry_id)
        return entry

    def create_entry(
        self,
        title: str,
        body: str,
        tags: Iterable[str] = (),
        mood: Optional[str] = None,
    ) -> Optional[DreamEntry]:
        entry = DreamEntry(
            title=_required(title, "title"),
            body=_required(body, "body"),
            tags=clean_tags(tags),
            mood=_optional(mood),
        )
        self.store.insert(entry)
        if not self._commit("create entry"):
            return None
        logger.info(f"Recorded dream '{entry.title}' ({entry.id})")
        return entry

    def update_entry(
        self,
        entry_id: UUID,
        title: Optional[str] = None,
        body: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
        mood: Optional[str] = None,
    ) -> Optional[DreamEntry]:
        entry = self.get_entry(entry_id)
        if title is not None:
            entry.title = _required(title, "title")
        if body is not None:
            entry.body = _required(body, "body")
        if tags is not None:
            entry.tags = clean_tags(tags)
        if mood is not None:
            entry.mood = _optional(mood)

        self.store.insert(entry)
        if not self._commit("update entry"):
            return None
        return entry

    def delete_entry(self, entry_id: UUID) -> bool:
        entry = self.get_entry(entry_id)
        self.store.delete(entry)
        if not self._commit("delete entry"):
            return False
        logger.info(f"Deleted dream '{entry.title}' ({entry.id})")
        return True

    def add_tag(self, entry_id: UUID, tag: str) -> Optional[DreamEntry]:
        entry = self.get_entry(entry_id)
        tag = _required(tag, "tag")
        if tag in entry.tags:
            return entry
        return self.update_entry(entry_id, tags=entry.tags + [tag])

    def remove_tag(self, entry_id: UUID, tag: str) -> Optional[DreamEntry]:
        entry = self.get_entry(entry_id)
        return self.update_entry(entry_id, tags=[t for t in entry.tags if t != tag])

    def save_interpretation(self, entry_id: UUID, text: str) -> Optional[DreamEntry]:
        """Keep a generated interpretation the user confirmed.

        Saving the same text again just writes the identical value.
        """
        entry = self.get_entry(entry_id)
        entry.interpretation = _required(text, "interpretation")
        entry.interpreted = True

        self.store.insert(entry)
        if not self._commit("save interpretation"):
            return None
        return entry

    def entries_with_tag(self, tag: str) -> List[DreamEntry]:
        return [entry for entry in self.list_entries() if tag in entry.tags]

    def tag_counts(self) -> Counter:
        return Counter(tag for entry in self.list_entries() for tag in entry.tags)

    def stats(self, alarms: Iterable[AlarmRule] = ()) -> JournalStats:
        entries = self.list_entries()
        counts = self.tag_counts()
        return JournalStats(
            entries_recorded=len(entries),
            entries_interpreted=sum(1 for entry in entries if entry.interpreted),
            active_alarms=sum(1 for alarm in alarms if alarm.enabled),
            unique_tags=len(counts),
            tag_counts=dict(sorted(counts.items())),
        )
