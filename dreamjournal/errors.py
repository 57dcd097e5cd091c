class DreamJournalError(Exception):
    """Base class for every error raised by the dream journal core."""


class StorageError(DreamJournalError):
    """The persistence layer failed to save or delete."""


class NotFound(DreamJournalError):
    def __init__(self, kind: str, identifier):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} not found")


class GenerationFailure(DreamJournalError):
    """The heuristic pipeline found nothing to interpret."""


class PermissionDenied(DreamJournalError):
    """Notification permission was refused by the user."""


class RegistrationFailure(DreamJournalError):
    def __init__(self, alarm_id, reason: str):
        self.alarm_id = alarm_id
        self.reason = reason
        super().__init__(f"Could not register alarm {alarm_id}: {reason}")
