from contextlib import asynccontextmanager
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, Field

from dreamjournal import __version__
from dreamjournal.config import Settings
from dreamjournal.container import Container, build_container
from dreamjournal.errors import NotFound
from dreamjournal.log import setup_logging
from dreamjournal.models import AlarmRule, DreamEntry, JournalStats, Registration, ThemeReport


# Request/Response models
class EntryCreateRequest(BaseModel):
    title: str
    body: str
    tags: List[str] = Field(default_factory=list)
    mood: Optional[str] = None


class EntryUpdateRequest(BaseModel):
    title: Optional[str] = None
    body: Optional[str] = None
    tags: Optional[List[str]] = None
    mood: Optional[str] = None


class TagRequest(BaseModel):
    tag: str


class InterpretationRequest(BaseModel):
    text: str


class TextRequest(BaseModel):
    text: str


class AlarmCreateRequest(BaseModel):
    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59)
    label: str = ""
    enabled: bool = False


class AlarmUpdateRequest(BaseModel):
    hour: Optional[int] = Field(default=None, ge=0, le=23)
    minute: Optional[int] = Field(default=None, ge=0, le=59)
    label: Optional[str] = None
    enabled: Optional[bool] = None


class ToggleRequest(BaseModel):
    enabled: bool


class AlarmResponse(BaseModel):
    alarm: Optional[AlarmRule] = None
    warning: Optional[str] = None


class NarrativeResponse(BaseModel):
    text: str
    strategy: str


class NotificationStatus(BaseModel):
    permission_granted: bool
    registrations: List[Registration]


# Dependency to get the services
def get_container(request: Request) -> Container:
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return container


def _saved(result, action: str):
    if result is None or result is False:
        raise HTTPException(status_code=503, detail=f"Could not {action}, storage is unavailable")
    return result


router = APIRouter()


@router.get("/")
async def root():
    return {"message": "Dream Journal API", "version": __version__}


@router.get("/health")
async def health_check(container: Container = Depends(get_container)):
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "strategy": container.generator.strategy.value,
    }


# Entries
@router.get("/entries", response_model=List[DreamEntry])
def list_entries(container: Container = Depends(get_container)):
    return container.journal.list_entries()


@router.post("/entries", response_model=DreamEntry, status_code=201)
def create_entry(request: EntryCreateRequest, container: Container = Depends(get_container)):
    """Record a new dream entry."""
    try:
        entry = container.journal.create_entry(request.title, request.body, request.tags, request.mood)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _saved(entry, "save entry")


@router.get("/entries/{entry_id}", response_model=DreamEntry)
def get_entry(entry_id: UUID, container: Container = Depends(get_container)):
    return container.journal.get_entry(entry_id)


@router.patch("/entries/{entry_id}", response_model=DreamEntry)
def update_entry(entry_id: UUID, request: EntryUpdateRequest, container: Container = Depends(get_container)):
    try:
        entry = container.journal.update_entry(entry_id, request.title, request.body, request.tags, request.mood)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _saved(entry, "update entry")


@router.delete("/entries/{entry_id}", status_code=204)
def delete_entry(entry_id: UUID, container: Container = Depends(get_container)):
    _saved(container.journal.delete_entry(entry_id), "delete entry")


@router.post("/entries/{entry_id}/tags", response_model=DreamEntry)
def add_tag(entry_id: UUID, request: TagRequest, container: Container = Depends(get_container)):
    try:
        entry = container.journal.add_tag(entry_id, request.tag)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _saved(entry, "add tag")


@router.delete("/entries/{entry_id}/tags/{tag}", response_model=DreamEntry)
def remove_tag(entry_id: UUID, tag: str, container: Container = Depends(get_container)):
    return _saved(container.journal.remove_tag(entry_id, tag), "remove tag")


# Interpretations and horoscopes
@router.post("/entries/{entry_id}/interpret", response_model=NarrativeResponse)
async def interpret_entry(entry_id: UUID, container: Container = Depends(get_container)):
    """Generate an interpretation for an entry without saving it."""
    entry = container.journal.get_entry(entry_id)
    text = await container.generator.interpret(entry)
    return NarrativeResponse(text=text, strategy=container.generator.strategy.value)


@router.put("/entries/{entry_id}/interpretation", response_model=DreamEntry)
def save_interpretation(
    entry_id: UUID,
    request: InterpretationRequest,
    container: Container = Depends(get_container)
):
    """Keep an interpretation the user confirmed."""
    try:
        entry = container.journal.save_interpretation(entry_id, request.text)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _saved(entry, "save interpretation")


@router.get("/horoscope", response_model=NarrativeResponse)
async def get_horoscope(entry_id: Optional[UUID] = None, container: Container = Depends(get_container)):
    entry = container.journal.get_entry(entry_id) if entry_id is not None else None
    text = await container.generator.horoscope(entry)
    return NarrativeResponse(text=text, strategy=container.generator.strategy.value)


@router.post("/themes", response_model=ThemeReport)
async def analyze_themes(request: TextRequest, container: Container = Depends(get_container)):
    """Themes, sentiment and theme colours for a piece of dream text."""
    return container.generator.theme_report(request.text)


# Alarms
@router.get("/alarms", response_model=List[AlarmRule])
def list_alarms(container: Container = Depends(get_container)):
    return container.alarms.list_alarms()


@router.post("/alarms", response_model=AlarmResponse, status_code=201)
def create_alarm(request: AlarmCreateRequest, container: Container = Depends(get_container)):
    change = container.alarms.create_alarm(request.hour, request.minute, request.label, request.enabled)
    _saved(change.saved, "save alarm")
    return AlarmResponse(alarm=change.rule, warning=change.warning)


@router.patch("/alarms/{alarm_id}", response_model=AlarmResponse)
def update_alarm(alarm_id: UUID, request: AlarmUpdateRequest, container: Container = Depends(get_container)):
    change = container.alarms.update_alarm(alarm_id, request.hour, request.minute, request.label, request.enabled)
    _saved(change.saved, "update alarm")
    return AlarmResponse(alarm=change.rule, warning=change.warning)


@router.post("/alarms/{alarm_id}/toggle", response_model=AlarmResponse)
def toggle_alarm(alarm_id: UUID, request: ToggleRequest, container: Container = Depends(get_container)):
    change = container.alarms.toggle_alarm(alarm_id, request.enabled)
    _saved(change.saved, "toggle alarm")
    return AlarmResponse(alarm=change.rule, warning=change.warning)


@router.delete("/alarms/{alarm_id}", status_code=204)
def delete_alarm(alarm_id: UUID, container: Container = Depends(get_container)):
    _saved(container.alarms.delete_alarm(alarm_id).saved, "delete alarm")


# Journal overview
@router.get("/stats", response_model=JournalStats)
def get_stats(container: Container = Depends(get_container)):
    return container.journal.stats(container.alarms.list_alarms())


@router.get("/tags", response_model=Dict[str, int])
def get_tags(container: Container = Depends(get_container)):
    return dict(sorted(container.journal.tag_counts().items()))


@router.get("/tags/{tag}/entries", response_model=List[DreamEntry])
def get_entries_with_tag(tag: str, container: Container = Depends(get_container)):
    return container.journal.entries_with_tag(tag)


@router.get("/notifications", response_model=NotificationStatus)
async def notification_status(container: Container = Depends(get_container)):
    return NotificationStatus(
        permission_granted=container.notifier.permission_granted,
        registrations=container.notifier.registrations(),
    )


def create_app(settings: Optional[Settings] = None, container: Optional[Container] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services = container
        if services is None:
            config = settings or Settings.from_env()
            setup_logging(config.log_level, config.log_file)
            services = build_container(config)

        services.notifier.request_permission()
        for warning in services.alarms.resync():
            logger.warning(warning)
        services.notifier.start()

        app.state.container = services
        yield
        services.notifier.shutdown()
        app.state.container = None

    app = FastAPI(
        title="Dream Journal API",
        description="Dream journal with interpretations, horoscopes and daily journaling reminders",
        version=__version__,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    app.include_router(router)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
