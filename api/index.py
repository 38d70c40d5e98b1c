"""
FastAPI wrapper for Text Diff Reviewer.

This module exposes diffing and AI review as a REST API so a browser
front end can render highlights and run review conversations.
"""

from typing import Literal, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from diff_reviewer import __version__
from diff_reviewer.config import ReviewConfig
from diff_reviewer.diff_engine import get_changes_summary
from diff_reviewer.highlighter import DiffTooLargeError, bounded_diff, render_html
from diff_reviewer.llm_client import ChatProvider, LLMClientError, MissingAPIKeyError
from diff_reviewer.models import ChatMessage
from diff_reviewer.personas import PersonaRegistry
from diff_reviewer.session import ReviewSession
from diff_reviewer.store import PersonaStore, HistoryStore

app = FastAPI(
    title="Text Diff Reviewer API",
    description="Token-level text comparison with AI persona review",
    version=__version__,
)

# Enable CORS for all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_config() -> ReviewConfig:
    """Configuration for a request, read from the environment."""
    return ReviewConfig.from_env()


def get_provider() -> Optional[ChatProvider]:
    """Provider override; None means use the active stored key."""
    return None


class DiffRequest(BaseModel):
    """Two texts to compare."""
    original: str = Field("", description="Original text")
    modified: str = Field("", description="Modified text")


class HtmlDiffRequest(DiffRequest):
    view: Literal["unified", "split", "original", "modified"] = Field(
        "unified", description="Rendering mode"
    )


class SpanModel(BaseModel):
    value: str
    added: bool = False
    removed: bool = False


class DiffResponse(BaseModel):
    spans: list[SpanModel]
    summary: dict


class PersonaModel(BaseModel):
    id: str
    name: str
    description: str
    is_custom: bool = False


class MessageModel(BaseModel):
    id: str
    role: str
    text: str
    timestamp: int
    is_error: bool = False


class ReviewRequest(DiffRequest):
    """Comparison to send to a reviewer persona."""
    persona_id: str = Field("general", description="Persona id")
    question: str = Field("", description="Optional question to answer")
    model: Optional[str] = Field(None, description="Model override")


class ReviewResponse(BaseModel):
    success: bool
    history_id: Optional[str] = None
    persona: PersonaModel
    messages: list[MessageModel]


class HistorySummary(BaseModel):
    id: str
    timestamp: int
    persona: str
    preview: str
    question: str
    message_count: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


def _message_model(message: ChatMessage) -> MessageModel:
    return MessageModel(**message.to_dict())


def _diff_or_413(request: DiffRequest, config: ReviewConfig):
    try:
        return bounded_diff(request.original, request.modified, config.max_diff_tokens)
    except DiffTooLargeError as e:
        raise HTTPException(status_code=413, detail=str(e))


@app.get("/", response_class=HTMLResponse)
async def root():
    return HTMLResponse(
        content="<h1>Text Diff Reviewer API</h1><p>Visit <a href='/docs'>/docs</a> for API documentation.</p>"
    )


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=__version__)


@app.post("/api/diff", response_model=DiffResponse)
def diff_texts(request: DiffRequest, config: ReviewConfig = Depends(get_config)):
    """Compare two texts and return the labelled spans."""
    spans = _diff_or_413(request, config)
    return DiffResponse(
        spans=[SpanModel(**span.to_dict()) for span in spans],
        summary=get_changes_summary(spans),
    )


@app.post("/api/diff/html", response_class=HTMLResponse)
def diff_html(request: HtmlDiffRequest, config: ReviewConfig = Depends(get_config)):
    """Compare two texts and return highlighted HTML."""
    spans = _diff_or_413(request, config)
    return HTMLResponse(content=render_html(spans, request.view))


@app.get("/api/personas", response_model=list[PersonaModel])
def list_personas(config: ReviewConfig = Depends(get_config)):
    """List default and custom personas."""
    registry = PersonaRegistry(PersonaStore(config.personas_path))
    return [PersonaModel(**p.to_dict()) for p in registry.all()]


@app.post("/api/review", response_model=ReviewResponse)
def start_review(
    request: ReviewRequest,
    config: ReviewConfig = Depends(get_config),
    provider: Optional[ChatProvider] = Depends(get_provider),
):
    """
    Run the opening analysis for a comparison.

    Provider failures raise HTTPException with status 502 whose detail is
    the error message recorded in the session.
    """
    session = ReviewSession(config, provider=provider)
    session.set_texts(request.original, request.modified)
    session.select_persona(request.persona_id)
    session.question = request.question
    if request.model:
        session.model = request.model

    _diff_or_413(request, config)

    try:
        message = session.start_analysis()
    except MissingAPIKeyError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LLMClientError as e:
        raise HTTPException(status_code=502, detail=str(e))

    if message is None:
        raise HTTPException(status_code=400, detail="Both texts must contain non-whitespace content")
    if message.is_error:
        raise HTTPException(status_code=502, detail=message.text)

    return ReviewResponse(
        success=True,
        history_id=session.history_id,
        persona=PersonaModel(**session.persona.to_dict()),
        messages=[_message_model(m) for m in session.messages],
    )


@app.get("/api/history", response_model=list[HistorySummary])
def list_history(config: ReviewConfig = Depends(get_config)):
    """Saved reviews, newest first."""
    store = HistoryStore(config.history_path, limit=config.history_limit)
    return [
        HistorySummary(
            id=item.id,
            timestamp=item.timestamp,
            persona=item.persona.name,
            preview=item.preview,
            question=item.question,
            message_count=len(item.messages),
        )
        for item in store.list()
    ]
