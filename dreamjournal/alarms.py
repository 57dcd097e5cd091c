"""Alarm rules and their registrations with the notification service.

Every enabled rule has exactly one registration keyed by its id; disabled
and deleted rules have none. Rule changes are saved to the store first and
only then mirrored to the notification service, so a failed save never
leaves a registration behind for a rule that does not exist.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional
from uuid import UUID

from loguru import logger

from .errors import NotFound, RegistrationFailure, StorageError
from .models import DEFAULT_ALARM_BODY, DEFAULT_ALARM_LABEL, AlarmRule
from .notifications import NotificationService
from .store import ObjectStore


@dataclass
class AlarmChange:
    rule: Optional[AlarmRule]
    warning: Optional[str] = None
    saved: bool = True


class AlarmScheduler:
    def __init__(self, notifier: NotificationService, body: str = DEFAULT_ALARM_BODY):
        self.notifier = notifier
        self.body = body

    def schedule(self, rule: AlarmRule) -> Optional[str]:
        """Install the daily trigger for ``rule``; returns a warning if the service refused it."""
        try:
            self.notifier.register(rule.id, rule.hour, rule.minute, rule.label, self.body)
        except RegistrationFailure as exc:
            logger.warning(f"Alarm '{rule.label}' was not scheduled: {exc.reason}")
            return str(exc)
        return None

    def cancel(self, alarm_id: UUID) -> None:
        self.notifier.cancel(alarm_id)

    def reschedule(self, rule: AlarmRule) -> Optional[str]:
        # The old trigger must be gone before the new one goes in
        self.cancel(rule.id)
        return self.schedule(rule)

    def apply(self, before: Optional[AlarmRule], after: Optional[AlarmRule]) -> Optional[str]:
        """Bring the registrations in line with a rule going from ``before`` to ``after``.

        ``before`` is None for a new rule and ``after`` is None for a deleted one.
        """
        if after is None:
            if before is not None:
                self.cancel(before.id)
            return None

        if before is None:
            return self.schedule(after) if after.enabled else None

        if before.enabled != after.enabled:
            if after.enabled:
                return self.schedule(after)
            self.cancel(after.id)
            return None

        if after.enabled:
            return self.reschedule(after)
        return None

    def resync(self, rules: Iterable[AlarmRule]) -> List[str]:
        warnings = []
        for rule in rules:
            if rule.enabled:
                warning = self.reschedule(rule)
                if warning:
                    warnings.append(warning)
            else:
                self.cancel(rule.id)
        return warnings


class AlarmService:
    def __init__(self, store: ObjectStore, scheduler: AlarmScheduler):
        self.store = store
        self.scheduler = scheduler

    def list_alarms(self) -> List[AlarmRule]:
        return self.store.query(AlarmRule, sort_by="time_of_day")

    def get_alarm(self, alarm_id: UUID) -> AlarmRule:
        rule = self.store.get(AlarmRule, alarm_id)
        if rule is None:
            raise NotFound("alarm", alarm_id)
        return rule

    def _commit(self, action: str) -> bool:
        try:
            self.store.save()
        except StorageError as exc:
            logger.warning(f"Could not {action}: {exc}")
            self.store.rollback()
            return False
        return True

    def create_alarm(self, hour: int, minute: int, label: str = "", enabled: bool = False) -> AlarmChange:
        rule = AlarmRule(hour=hour, minute=minute, label=label.strip() or DEFAULT_ALARM_LABEL, enabled=enabled)

        self.store.insert(rule)
        if not self._commit("create alarm"):
            return AlarmChange(rule=None, warning="alarm was not saved", saved=False)

        logger.info(f"Created alarm '{rule.label}' at {rule.time_of_day:%H:%M} (enabled={rule.enabled})")
        return AlarmChange(rule=rule, warning=self.scheduler.apply(None, rule))

    def update_alarm(
        self,
        alarm_id: UUID,
        hour: Optional[int] = None,
        minute: Optional[int] = None,
        label: Optional[str] = None,
        enabled: Optional[bool] = None,
    ) -> AlarmChange:
        before = self.get_alarm(alarm_id)

        changes = {}
        if hour is not None:
            changes["hour"] = hour
        if minute is not None:
            changes["minute"] = minute
        if label is not None:
            changes["label"] = label.strip() or DEFAULT_ALARM_LABEL
        if enabled is not None:
            changes["enabled"] = enabled
        after = AlarmRule.model_validate({**before.model_dump(), **changes})

        self.store.insert(after)
        if not self._commit("update alarm"):
            return AlarmChange(rule=before, warning="alarm was not saved", saved=False)

        return AlarmChange(rule=after, warning=self.scheduler.apply(before, after))

    def toggle_alarm(self, alarm_id: UUID, enabled: bool) -> AlarmChange:
        return self.update_alarm(alarm_id, enabled=enabled)

    def delete_alarm(self, alarm_id: UUID) -> AlarmChange:
        rule = self.get_alarm(alarm_id)

        self.store.delete(rule)
        if not self._commit("delete alarm"):
            return AlarmChange(rule=rule, warning="alarm was not deleted", saved=False)

        self.scheduler.apply(rule, None)
        logger.info(f"Deleted alarm '{rule.label}'")
        return AlarmChange(rule=None)

    def resync(self) -> List[str]:
        """Re-register every enabled alarm, e.g. after the scheduler was restarted."""
        rules = self.list_alarms()
        warnings = self.scheduler.resync(rules)
        logger.info(f"Synchronised {sum(rule.enabled for rule in rules)} enabled alarm(s)")
        return warnings
