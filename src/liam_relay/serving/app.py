"""FastAPI application exposing the Liam relay as a REST API."""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fastapi import Depends, FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from langchain_core.language_models import BaseChatModel
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from liam_relay.completion.llm import complete
from liam_relay.config import settings
from liam_relay.google.contacts import ContactDirectory
from liam_relay.google.drive import DriveClient
from liam_relay.google.sync_log import SyncLogError, agent_folders, load_sync_log
from liam_relay.mail.smtp import Mailer
from liam_relay.memory.archive import (
    ArchiveError,
    ArchiveLog,
    DuplicateArchiveError,
    discard_extraction,
    extract_archive,
)
from liam_relay.memory.indexer import MemoryIndexer
from liam_relay.retrieval.base import VectorStoreBase
from liam_relay.retrieval.flat_store import MissingIndexError
from liam_relay.retrieval.retriever import MemoryRetriever
from liam_relay.serving.activity import ACTIVITY_LOG, install_activity_log
from liam_relay.serving.auth import (
    issue_admin_token,
    require_admin,
    require_api_token,
    verify_admin_credentials,
)
from liam_relay.serving.dependencies import (
    get_archive_log,
    get_contacts,
    get_drive,
    get_indexer,
    get_llm_factory,
    get_mailer,
    get_retriever,
    get_vector_store,
)

logger = logging.getLogger(__name__)
install_activity_log()

app = FastAPI(
    title="Liam Relay API",
    version="0.1.0",
    description="Relays prompts to a completion API, email, Google Drive and a memory recall index.",
)

relay_auth = [Depends(require_api_token)]


# ── Request / Response schemas ────────────────────────────────────────
class AskRequest(BaseModel):
    """Prompt to complete and the contact who receives the reply."""

    prompt: str = ""
    sendTo: str = ""


class AskResponse(BaseModel):
    to: str
    sent: bool
    response: str


class PromptRequest(BaseModel):
    prompt: str = Field(..., min_length=1)


class EmailRequest(BaseModel):
    """``to`` is either an address or a contact name from the sheet."""

    to: str = Field(..., min_length=1)
    subject: str | None = None
    text: str = Field(..., min_length=1)


class DocumentRequest(BaseModel):
    title: str = Field(..., min_length=1)
    content: str = ""
    folder_id: str | None = None


class SyncRequest(BaseModel):
    agent: str = Field(..., min_length=1)
    archive_id: str | None = None


class RecallRequest(BaseModel):
    query: str = Field(..., min_length=1)
    top_k: int = Field(default_factory=lambda: settings.recall_top_k, gt=0, le=100)


class RecallResult(BaseModel):
    score: float
    text: str


class RecallResponse(BaseModel):
    results: list[RecallResult]


# ── Error rendering ───────────────────────────────────────────────────
@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render every HTTP error as ``{"error": message}``."""
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "body"
    return JSONResponse({"error": f"Invalid {field}: {first.get('msg', 'bad request')}"}, status_code=400)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"error": "Internal processing error."}, status_code=500)


def _resolve_recipient(contacts: ContactDirectory, name: str) -> str | None:
    if "@" in name:
        return name.strip()
    return contacts.resolve_email(name)


# ── Status ────────────────────────────────────────────────────────────
@app.get("/", response_class=PlainTextResponse)
def index() -> str:
    return "Liam is live with GPT, Gmail, Google Drive and memory recall!"


@app.get("/health")
def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.get("/ping")
def ping() -> dict[str, Any]:
    return {"pong": True, "time": datetime.now(timezone.utc).isoformat()}


# ── Completion relay ──────────────────────────────────────────────────
@app.post("/ask-liam", response_model=AskResponse)
def ask_liam(
    request: AskRequest,
    make_llm: Callable[[], BaseChatModel] = Depends(get_llm_factory),
    contacts: ContactDirectory = Depends(get_contacts),
    mailer: Mailer = Depends(get_mailer),
) -> AskResponse:
    """Complete the prompt and email the reply to the named contact."""
    if not request.prompt.strip() or not request.sendTo.strip():
        raise HTTPException(status_code=400, detail="Missing prompt or sendTo")

    try:
        reply = complete(request.prompt, llm=make_llm())
        recipient = _resolve_recipient(contacts, request.sendTo)
        if not recipient:
            raise HTTPException(status_code=404, detail="Recipient not found in contacts sheet.")
        mailer.send(recipient, settings.mail_subject, reply)
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Liam error: %s", exc)
        raise HTTPException(status_code=500, detail="Internal processing error.") from exc

    return AskResponse(to=recipient, sent=True, response=reply)


@app.post("/prompt", dependencies=relay_auth)
def prompt(
    request: PromptRequest,
    make_llm: Callable[[], BaseChatModel] = Depends(get_llm_factory),
) -> dict[str, str]:
    try:
        reply = complete(request.prompt, llm=make_llm())
    except Exception as exc:
        logger.exception("Completion failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {"response": reply}


@app.post("/send-email", dependencies=relay_auth)
def send_email(
    request: EmailRequest,
    contacts: ContactDirectory = Depends(get_contacts),
    mailer: Mailer = Depends(get_mailer),
) -> dict[str, Any]:
    try:
        recipient = _resolve_recipient(contacts, request.to)
        if not recipient:
            raise HTTPException(status_code=404, detail="Recipient not found in contacts sheet.")
        mailer.send(recipient, request.subject or settings.mail_subject, request.text)
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Email send failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {"to": recipient, "sent": True}


# ── Cloud drive ───────────────────────────────────────────────────────
@app.post("/drive/upload", dependencies=relay_auth)
def drive_upload(
    file: UploadFile = File(...),
    folder_id: str | None = Query(default=None),
    drive: DriveClient = Depends(get_drive),
) -> dict[str, Any]:
    name = Path(file.filename or "upload.bin").name
    try:
        with tempfile.TemporaryDirectory() as tmp:
            local = Path(tmp) / name
            local.write_bytes(file.file.read())
            return drive.upload_file(local, folder_id=folder_id, name=name, mime_type=file.content_type)
    except Exception as exc:
        logger.exception("Drive upload failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.post("/drive/docs", dependencies=relay_auth)
def drive_create_document(
    request: DocumentRequest,
    drive: DriveClient = Depends(get_drive),
) -> dict[str, Any]:
    try:
        return drive.create_document(request.title, request.content, folder_id=request.folder_id)
    except Exception as exc:
        logger.exception("Document creation failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.get("/drive/files", dependencies=relay_auth)
def drive_list_files(
    folder_id: str | None = Query(default=None),
    page_size: int = Query(default=50, gt=0, le=1000),
    drive: DriveClient = Depends(get_drive),
) -> dict[str, Any]:
    try:
        files = drive.list_files(folder_id=folder_id, page_size=page_size)
    except Exception as exc:
        logger.exception("Drive listing failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {"files": files}


@app.post("/drive/sync", dependencies=relay_auth)
def drive_sync(
    request: SyncRequest,
    drive: DriveClient = Depends(get_drive),
    log: ArchiveLog = Depends(get_archive_log),
) -> dict[str, Any]:
    """Upload an extracted memory archive into the agent's Drive folders."""
    try:
        folders = agent_folders(load_sync_log(), request.agent)
    except SyncLogError as exc:
        logger.error("Sync log unavailable: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown agent: {request.agent}") from exc

    entry = log.get(request.archive_id) if request.archive_id else log.latest()
    if entry is None:
        raise HTTPException(status_code=404, detail="No ingested archive to sync.")
    unified = folders.get("unifiedFolderId")
    if not unified:
        raise HTTPException(status_code=400, detail=f"Agent {request.agent} has no unifiedFolderId")

    uploaded: list[dict[str, Any]] = []
    try:
        for rel in entry.files:
            uploaded.append(drive.upload_file(Path(entry.folder) / rel, folder_id=unified, name=rel))
        archives = folders.get("archivesFolderId")
        if archives and entry.zip_path and Path(entry.zip_path).exists():
            uploaded.append(drive.upload_file(entry.zip_path, folder_id=archives, name=entry.name))
    except Exception as exc:
        logger.exception("Drive sync failed after %d uploads: %s", len(uploaded), exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    logger.info("Synced archive %s for agent %s (%d files)", entry.id, request.agent, len(uploaded))
    return {"agent": request.agent, "archive": entry.id, "uploaded": uploaded}


# ── Memory ────────────────────────────────────────────────────────────
@app.post("/memory/upload", dependencies=relay_auth)
def memory_upload(
    file: UploadFile = File(...),
    log: ArchiveLog = Depends(get_archive_log),
    indexer: MemoryIndexer = Depends(get_indexer),
) -> dict[str, Any]:
    """Extract an uploaded memory ZIP and index its text for recall."""
    name = Path(file.filename or "").name
    if not name.lower().endswith(".zip"):
        raise HTTPException(status_code=400, detail="Only .zip archives are accepted.")

    payload = file.file.read()
    try:
        with log.reserve(name):
            entry = extract_archive(payload, name, log=log)
            try:
                entry.chunks = indexer.index_folder(entry.folder, archive_id=entry.id)
                log.record(entry)
            except Exception:
                discard_extraction(entry)
                raise
    except DuplicateArchiveError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ArchiveError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Indexing failed for %s: %s", name, exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return entry.model_dump(mode="json")


@app.get("/memory", dependencies=relay_auth)
def memory_list(log: ArchiveLog = Depends(get_archive_log)) -> dict[str, Any]:
    return {"archives": [entry.model_dump(mode="json") for entry in log.entries()]}


@app.get("/memory/{archive_id}", dependencies=relay_auth)
def memory_get(archive_id: str, log: ArchiveLog = Depends(get_archive_log)) -> dict[str, Any]:
    entry = log.get(archive_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Unknown archive: {archive_id}")
    return entry.model_dump(mode="json")


@app.post("/memory/recall", response_model=RecallResponse, dependencies=relay_auth)
def memory_recall(
    request: RecallRequest,
    retriever: MemoryRetriever = Depends(get_retriever),
) -> RecallResponse:
    """Return the stored fragments most similar to the query."""
    try:
        hits = retriever.recall(request.query, k=request.top_k)
    except MissingIndexError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Recall failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return RecallResponse(results=[RecallResult(score=h.score, text=h.text) for h in hits])


# ── Admin ─────────────────────────────────────────────────────────────
@app.post("/admin/token")
def admin_token(username: str = Depends(verify_admin_credentials)) -> dict[str, str]:
    token, expires_at = issue_admin_token(username)
    logger.info("Issued admin token for %s", username)
    return {"token": token, "token_type": "bearer", "expires_at": expires_at.isoformat()}


@app.get("/admin/logs")
def admin_logs(
    limit: int | None = Query(default=None, ge=0),
    _: str = Depends(require_admin),
) -> dict[str, Any]:
    return {"entries": ACTIVITY_LOG.snapshot(limit)}


@app.get("/admin/status")
def admin_status(
    _: str = Depends(require_admin),
    log: ArchiveLog = Depends(get_archive_log),
    store: VectorStoreBase = Depends(get_vector_store),
) -> dict[str, Any]:
    return {
        "archives": len(log.entries()),
        "fragments": store.count(),
        "index_present": store.health_check(),
        "sync_log_present": settings.sync_log_path.exists(),
    }


# ── Dashboard ─────────────────────────────────────────────────────────
if settings.dashboard_dir.is_dir():
    app.mount("/dashboard", StaticFiles(directory=settings.dashboard_dir, html=True), name="dashboard")
