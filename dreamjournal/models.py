from datetime import datetime, time
from enum import Enum
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

DEFAULT_ALARM_LABEL = "Dream Alarm"
DEFAULT_ALARM_BODY = "Tap here to record a new dream entry!"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class DreamEntry(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    title: str = Field(description="short title the user gave the dream")
    body: str = Field(default="", description="free-form dream text")
    created_at: datetime = Field(default_factory=datetime.now)
    tags: List[str] = Field(default_factory=list)
    mood: Optional[str] = None
    interpreted: bool = False
    interpretation: Optional[str] = None

    @property
    def text(self) -> str:
        """Title and body together, as fed to the theme and sentiment extractors."""
        return f"{self.title} {self.body}".strip()


class AlarmRule(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59)
    label: str = DEFAULT_ALARM_LABEL
    enabled: bool = False

    @property
    def time_of_day(self) -> time:
        return time(self.hour, self.minute)


class Registration(BaseModel):
    """A daily trigger as recorded by the notification service."""

    alarm_id: UUID
    hour: int
    minute: int
    title: str
    body: str = DEFAULT_ALARM_BODY


class JournalStats(BaseModel):
    entries_recorded: int = 0
    entries_interpreted: int = 0
    active_alarms: int = 0
    unique_tags: int = 0
    tag_counts: Dict[str, int] = Field(default_factory=dict)


class ThemeReport(BaseModel):
    themes: List[str]
    sentiment: Sentiment
    colors: Dict[str, str] = Field(default_factory=dict)
