"""
NexMind FastAPI Application

A REST API server for the NexMind note service.
Provides endpoints for notes, tasks, chat, the weekly report,
the knowledge graph and AI suggestions.
"""

from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from nexmind.config import Config
from nexmind.core.factory import EmbedderFactory, LLMFactory, StoreFactory
from nexmind.core.repositories import ChatRepository, GraphRepository, SuggestionRepository
from nexmind.models.analysis import SemanticClassification
from nexmind.models.chat import ChatCommand, ChatMessage
from nexmind.models.graph import GraphNodeType
from nexmind.models.note import EntityBag, Note, NoteCategory, TaskPriority, TaskStatus
from nexmind.models.report import BrainReport
from nexmind.models.suggestion import AISuggestion, SuggestionStatus
from nexmind.services.brain_report import BrainReportService
from nexmind.services.chat_service import ChatService
from nexmind.services.nlp_pipeline import NlpPipeline
from nexmind.services.note_service import NoteService
from nexmind.services.scheduler import SuggestionScheduler
from nexmind.utils.exceptions import NexMindError, NotFoundError, ValidationError
from nexmind.utils.logger import get_logger, setup_logging

# Global service instances
service: NoteService | None = None
scheduler: SuggestionScheduler | None = None
chat: ChatService | None = None
report: BrainReportService | None = None
logger = get_logger(__name__)


# Pydantic models for API
class AddNoteRequest(BaseModel):
    """Request model for adding notes from free text."""

    text: str = Field(..., description="Free-text input; may contain several intents")


class ClassifyRequest(BaseModel):
    """Request model for classifying text without storing it."""

    text: str


class UpdateNoteRequest(BaseModel):
    """Request model for editing a note."""

    content: str | None = None
    category: NoteCategory | None = None
    entities: EntityBag | None = None


class UpdateTaskRequest(BaseModel):
    """Request model for task field changes. Unset fields are left unchanged."""

    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: date | None = None
    clear_due_date: bool = False


class NoteResponse(BaseModel):
    """Note without its embedding vector."""

    id: str
    content: str
    category: NoteCategory
    created_at: datetime
    updated_at: datetime | None
    entities: EntityBag | None
    category_confidence: float | None
    category_reason: str | None
    status: TaskStatus | None
    priority: TaskPriority | None
    due_date: date | None
    has_embedding: bool

    @classmethod
    def from_note(cls, note: Note) -> "NoteResponse":
        return cls(
            **note.model_dump(exclude={"embedding", "related_note_ids"}),
            has_embedding=bool(note.embedding),
        )


class ChatRequest(BaseModel):
    text: str


class ChatResponse(BaseModel):
    """One chat exchange; notes are the created or the matching notes."""

    command: ChatCommand
    message: ChatMessage
    reply: ChatMessage
    notes: list[NoteResponse]


class EntitiesRequest(BaseModel):
    text: str


class SimilarNote(BaseModel):
    note_id: str
    similarity: float
    label: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service_initialized: bool
    llm_configured: bool
    embedder: str
    storage_backend: str
    scheduler_running: bool


def get_service() -> NoteService:
    if not service:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return service


def get_chat() -> ChatService:
    if not chat:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return chat


def get_report() -> BrainReportService:
    if not report:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return report


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    global service, scheduler, chat, report

    # Load configuration from environment or use defaults
    config = Config.from_env()

    # Initialize logging with config
    setup_logging(
        level=config.logging.level,
        log_to_file=config.logging.log_to_file,
        log_dir=config.logging.log_dir,
        file_rotation=config.logging.file_rotation,
        file_retention=config.logging.file_retention,
        compression=config.logging.compression,
        serialize=config.logging.serialize,
    )

    logger.info("Starting NexMind server")
    logger.info(
        f"Configuration: LLM={config.llm.provider}/{config.llm.model}, "
        f"Embedder={config.embedder.provider}, Storage={config.storage.backend}"
    )

    # Create components using factories
    llm = LLMFactory.create_optional(config.llm)
    if llm is None:
        logger.warning("No LLM credential configured, using keyword analysis only")

    embedder = EmbedderFactory.create(config.embedder)
    store = StoreFactory.create(config.storage)
    notes = StoreFactory.create_note_repository(config.storage, store)
    await store.initialize()

    service = NoteService(
        notes=notes,
        graph_repository=GraphRepository(store),
        suggestions=SuggestionRepository(store),
        pipeline=NlpPipeline(llm, config.llm),
        embedder=embedder,
        config=config,
    )
    await service.initialize()
    chat = ChatService(service, ChatRepository(store), llm, config.llm)
    report = BrainReportService(service, llm, config.llm)

    if config.automation.enabled:
        scheduler = SuggestionScheduler(service, config.automation)
        scheduler.start()

    logger.info("NexMind service initialized")

    yield

    # Cleanup
    logger.info("Shutting down NexMind server")
    if scheduler:
        await scheduler.stop()
    await notes.close()
    await store.close()
    await embedder.close()
    if llm:
        await llm.close()
    service = None
    scheduler = None
    chat = None
    report = None
    logger.info("Cleanup complete")


# Create FastAPI app
app = FastAPI(
    title="NexMind API",
    description="Note classification, knowledge graph and AI suggestions",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(NexMindError)
async def nexmind_error_handler(request: Request, exc: NexMindError):
    logger.bind(path=request.url.path, **exc.context).error(f"Request failed: {exc.message}")
    return JSONResponse(status_code=500, content={"detail": exc.message})


# Health check endpoint
@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy" if service else "initializing",
        service_initialized=service is not None,
        llm_configured=bool(service and service.pipeline.llm),
        embedder=service.embedder.name if service else "",
        storage_backend=service.config.storage.backend if service else "",
        scheduler_running=bool(scheduler and scheduler.running),
    )


# Note endpoints
@app.post("/notes", response_model=list[NoteResponse])
async def add_note(request: AddNoteRequest):
    """
    Analyze free text and store one note per detected item.

    Input like "Call Maria tomorrow, and buy milk" becomes two notes. Each
    note is embedded and linked into the knowledge graph.
    """
    notes = await get_service().add_note(request.text)
    return [NoteResponse.from_note(n) for n in notes]


@app.post("/classify", response_model=SemanticClassification)
async def classify(request: ClassifyRequest):
    """Classify text with a confidence per category. Nothing is stored."""
    if not request.text.strip():
        raise ValidationError("Text cannot be empty")
    return await get_service().pipeline.classify_semantic(request.text)


@app.get("/notes", response_model=list[NoteResponse])
async def list_notes(
    category: NoteCategory | None = Query(default=None),
    q: str | None = Query(default=None, description="Substring search over content and entities"),
):
    """List notes, newest first, optionally filtered."""
    svc = get_service()
    if q:
        notes = await svc.search_notes(q)
    else:
        notes = await svc.list_notes()
    if category:
        notes = [n for n in notes if n.category == category]
    return [NoteResponse.from_note(n) for n in notes]


@app.get("/notes/{note_id}", response_model=NoteResponse)
async def get_note(note_id: str):
    return NoteResponse.from_note(await get_service().get_note(note_id))


@app.put("/notes/{note_id}", response_model=NoteResponse)
async def update_note(note_id: str, request: UpdateNoteRequest):
    """Edit a note; the graph entry is rebuilt for it."""
    note = await get_service().update_note(
        note_id,
        content=request.content,
        category=request.category,
        entities=request.entities,
    )
    return NoteResponse.from_note(note)


@app.delete("/notes/{note_id}")
async def delete_note(note_id: str):
    if not await get_service().delete_note(note_id):
        raise HTTPException(status_code=404, detail="Note not found")
    return {"deleted": True, "note_id": note_id}


@app.patch("/notes/{note_id}/task", response_model=NoteResponse)
async def update_task(note_id: str, request: UpdateTaskRequest):
    """Update status, priority and/or due date of a task."""
    svc = get_service()
    note = await svc.get_note(note_id)
    if request.status is not None:
        note = await svc.update_task_status(note_id, request.status)
    if request.priority is not None:
        note = await svc.update_task_priority(note_id, request.priority)
    if request.due_date is not None or request.clear_due_date:
        note = await svc.update_task_due_date(note_id, None if request.clear_due_date else request.due_date)
    return NoteResponse.from_note(note)


@app.get("/notes/{note_id}/similar", response_model=list[SimilarNote])
async def similar_notes(note_id: str, limit: int = Query(default=3, ge=1, le=20)):
    return await get_service().similar_notes(note_id, limit)


# Task endpoints
@app.get("/tasks", response_model=list[NoteResponse])
async def list_tasks(
    view: str = Query(default="all", pattern="^(all|open|overdue|today)$"),
    status: TaskStatus | None = Query(default=None),
    priority: TaskPriority | None = Query(default=None),
):
    """List tasks by view (all, open, overdue, today), optionally filtered."""
    svc = get_service()
    if view == "open":
        tasks = await svc.open_tasks()
    elif view == "overdue":
        tasks = await svc.overdue_tasks()
    elif view == "today":
        tasks = await svc.tasks_due_today()
    else:
        tasks = await svc.tasks()

    if status:
        tasks = [t for t in tasks if t.effective_status == status]
    if priority:
        tasks = [t for t in tasks if t.priority == priority]
    return [NoteResponse.from_note(t) for t in tasks]


# Graph endpoints
@app.get("/graph")
async def get_graph() -> dict[str, Any]:
    graph = await get_service().get_graph()
    return graph.model_dump(mode="json")


@app.post("/graph/rebuild")
async def rebuild_graph() -> dict[str, Any]:
    """Rebuild the knowledge graph from all notes."""
    svc = get_service()
    await svc.rebuild_graph()
    return (await svc.stats())["graph"]


@app.get("/graph/entities/{node_type}")
async def top_entities(node_type: GraphNodeType, limit: int = Query(default=10, ge=1, le=100)):
    """Most mentioned entities of one type (person, place, project, topic)."""
    if node_type == GraphNodeType.NOTE:
        raise HTTPException(status_code=400, detail="Notes are not entities")
    return await get_service().top_entities(node_type, limit)


# Suggestion endpoints
@app.get("/suggestions", response_model=list[AISuggestion])
async def list_suggestions(status: SuggestionStatus | None = Query(default=None)):
    return await get_service().list_suggestions(status)


@app.post("/suggestions/generate", response_model=list[AISuggestion])
async def generate_suggestions():
    """Run the automation engine now; returns only new suggestions."""
    return await get_service().run_automation()


@app.post("/suggestions/{suggestion_id}/accept", response_model=AISuggestion)
async def accept_suggestion(suggestion_id: str):
    return await get_service().accept_suggestion(suggestion_id)


@app.post("/suggestions/{suggestion_id}/reject", response_model=AISuggestion)
async def reject_suggestion(suggestion_id: str):
    return await get_service().reject_suggestion(suggestion_id)


# Chat endpoints
@app.post("/chat", response_model=ChatResponse)
async def send_chat_message(request: ChatRequest):
    """
    Send a chat message.

    Queries ("Zeig mir alle Aufgaben von heute") return matching notes;
    other messages are stored as notes.
    """
    exchange = await get_chat().send(request.text)
    return ChatResponse(
        command=exchange.command,
        message=exchange.message,
        reply=exchange.reply,
        notes=[NoteResponse.from_note(n) for n in exchange.notes],
    )


@app.get("/chat", response_model=list[ChatMessage])
async def chat_history():
    return await get_chat().history()


@app.delete("/chat")
async def clear_chat():
    return {"deleted": await get_chat().clear_history()}


@app.post("/entities", response_model=EntityBag)
async def extract_entities(request: EntitiesRequest):
    """Extract persons, places, projects and topics without storing anything."""
    return await get_service().pipeline.extract_entities(request.text)


@app.get("/report", response_model=BrainReport)
async def brain_report():
    """Weekly brain report over the last seven days."""
    return await get_report().generate()


# Statistics
@app.get("/stats")
async def get_stats() -> dict[str, Any]:
    return await get_service().stats()


@app.get("/")
async def root():
    """API root."""
    return {
        "name": "NexMind API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }
