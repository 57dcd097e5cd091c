"""Notification services that deliver daily alarm reminders.

A service keeps at most one registration per alarm id. ``register`` replaces
any existing registration for the id and ``cancel`` ignores ids it does not
know.
"""

import threading
from typing import Callable, Dict, List, Optional, Protocol
from uuid import UUID

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from .errors import PermissionDenied, RegistrationFailure
from .models import DEFAULT_ALARM_BODY, Registration

DeliveryCallback = Callable[[Registration], None]


class NotificationService(Protocol):
    permission_granted: bool

    def register(self, alarm_id: UUID, hour: int, minute: int, label: str, body: str = DEFAULT_ALARM_BODY) -> None:
        ...

    def cancel(self, alarm_id: UUID) -> None:
        ...

    def request_permission(self) -> bool:
        ...

    def registrations(self) -> List[Registration]:
        ...

    def start(self) -> None:
        ...

    def shutdown(self) -> None:
        ...


class _DeliveryMixin:
    permission_granted: bool = False

    def __init__(self, grant_permission: bool = True, on_deliver: Optional[DeliveryCallback] = None):
        self._grant_permission = grant_permission
        self._permission_checked = False
        self.permission_granted = False
        self.on_deliver = on_deliver

    def request_permission(self) -> bool:
        """Ask for permission to deliver; the answer is kept for the process lifetime."""
        if not self._permission_checked:
            self.permission_granted = self._grant_permission
            self._permission_checked = True
            logger.info(f"Notifications granted: {self.permission_granted}")
        return self.permission_granted

    def _deliver(self, registration: Registration) -> None:
        if not self.permission_granted:
            raise PermissionDenied("notification permission has not been granted")
        logger.info(f"Alarm '{registration.title}' fired ({registration.hour:02d}:{registration.minute:02d})")
        if self.on_deliver is not None:
            self.on_deliver(registration)

    def _fire(self, registration: Registration) -> None:
        try:
            self._deliver(registration)
        except PermissionDenied as exc:
            logger.warning(f"Suppressed alarm {registration.alarm_id}: {exc}")


class MemoryNotificationService(_DeliveryMixin):
    """Keeps registrations in a dict; triggers only fire when ``fire`` is called."""

    def __init__(self, grant_permission: bool = True, on_deliver: Optional[DeliveryCallback] = None):
        super().__init__(grant_permission, on_deliver)
        self._registrations: Dict[UUID, Registration] = {}

    def register(self, alarm_id: UUID, hour: int, minute: int, label: str, body: str = DEFAULT_ALARM_BODY) -> None:
        self._registrations[alarm_id] = Registration(
            alarm_id=alarm_id, hour=hour, minute=minute, title=label, body=body
        )
        logger.debug(f"Registered alarm {alarm_id} at {hour:02d}:{minute:02d}")

    def cancel(self, alarm_id: UUID) -> None:
        if self._registrations.pop(alarm_id, None) is not None:
            logger.debug(f"Cancelled alarm {alarm_id}")

    def registrations(self) -> List[Registration]:
        return list(self._registrations.values())

    def fire(self, alarm_id: UUID) -> bool:
        registration = self._registrations.get(alarm_id)
        if registration is None:
            return False
        self._fire(registration)
        return True

    def start(self) -> None:
        pass

    def shutdown(self) -> None:
        pass


class SchedulerNotificationService(_DeliveryMixin):
    """One APScheduler cron job per alarm, firing every day at the alarm's time."""

    def __init__(
        self,
        timezone: Optional[str] = None,
        grant_permission: bool = True,
        on_deliver: Optional[DeliveryCallback] = None,
    ):
        super().__init__(grant_permission, on_deliver)
        self.timezone = timezone
        job_defaults = {
            "coalesce": True,  # one reminder even if several runs were missed
            "max_instances": 1,
            "misfire_grace_time": 60,
        }
        if timezone:
            self.scheduler = BackgroundScheduler(timezone=timezone, job_defaults=job_defaults)
        else:
            self.scheduler = BackgroundScheduler(job_defaults=job_defaults)
        self._lock = threading.Lock()

    def register(self, alarm_id: UUID, hour: int, minute: int, label: str, body: str = DEFAULT_ALARM_BODY) -> None:
        registration = Registration(alarm_id=alarm_id, hour=hour, minute=minute, title=label, body=body)
        trigger = CronTrigger(hour=hour, minute=minute, timezone=self.scheduler.timezone)
        with self._lock:
            # A stopped scheduler queues jobs without honouring replace_existing
            try:
                self.scheduler.remove_job(str(alarm_id))
            except JobLookupError:
                pass
            try:
                self.scheduler.add_job(
                    self._fire,
                    trigger=trigger,
                    args=[registration],
                    id=str(alarm_id),
                    name=label,
                    replace_existing=True,
                )
            except Exception as exc:
                raise RegistrationFailure(alarm_id, str(exc)) from exc
        logger.debug(f"Scheduled alarm {alarm_id} daily at {hour:02d}:{minute:02d}")

    def cancel(self, alarm_id: UUID) -> None:
        with self._lock:
            try:
                self.scheduler.remove_job(str(alarm_id))
            except JobLookupError:
                return
        logger.debug(f"Cancelled alarm {alarm_id}")

    def registrations(self) -> List[Registration]:
        return [job.args[0] for job in self.scheduler.get_jobs()]

    def start(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info(f"Alarm scheduler started with {len(self.scheduler.get_jobs())} job(s)")

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Alarm scheduler stopped")
