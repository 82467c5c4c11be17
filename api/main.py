from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool
import logging, os, tempfile
from pathlib import Path

from tender_summary import __version__
from tender_summary.config import config
from tender_summary.ingestion import load_document
from tender_summary.llm_summarizer import MissingAPIKeyError, SummarizerAPIError
from tender_summary.main import TenderSummaryPipeline
from tender_summary.schemas import (
    DocumentSummaryResponse,
    QueryRequest,
    QueryResponse,
    SummaryRequest,
    SummaryResult,
)

logger = logging.getLogger("tender_summary.api")

app = FastAPI(title="Tender Summary", version=__version__)
app.add_middleware(CORSMiddleware,
    allow_origins=list(config.api.cors_origins),
    allow_methods=["*"], allow_headers=["*"])

# Tests swap this for a fake so API mode never leaves the process.
remote_summarizer = None


def _pipeline(mode: str) -> TenderSummaryPipeline:
    return TenderSummaryPipeline(mode=mode, remote_summarizer=remote_summarizer)


def _api_error(exc: SummarizerAPIError) -> HTTPException:
    status = 503 if isinstance(exc, MissingAPIKeyError) else 502
    logger.warning("API mode failed (%d): %s", status, exc)
    return HTTPException(status_code=status, detail=str(exc))


@app.get("/health")
def health():
    return {"status": "ok", "version": __version__}


@app.post("/summarize", response_model=SummaryResult)
def summarize_text(request: SummaryRequest):
    try:
        return _pipeline(request.mode).summarize_text(request.text)
    except SummarizerAPIError as exc:
        raise _api_error(exc)


@app.post("/query", response_model=QueryResponse)
def query(request: QueryRequest):
    try:
        return _pipeline(request.mode).ask(request.text, request.prompt)
    except SummarizerAPIError as exc:
        raise _api_error(exc)


def _load_and_summarize(path: str, mode: str):
    text = load_document(path)
    return text, _pipeline(mode).summarize_text(text)


@app.post("/upload", response_model=DocumentSummaryResponse)
async def upload(file: UploadFile = File(...), mode: str = config.api.default_mode):
    if mode not in ("mock", "api"):
        raise HTTPException(status_code=400, detail=f"Unknown mode '{mode}'")

    suffix = Path(file.filename or "").suffix.lower()
    content = await file.read()
    # ingestion works on paths; the temp copy is removed before returning
    fd, tmp_path = tempfile.mkstemp(suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
        # OCR and API-mode calls block, so they run off the event loop
        text, summary = await run_in_threadpool(_load_and_summarize, tmp_path, mode)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except SummarizerAPIError as exc:
        raise _api_error(exc)
    finally:
        os.remove(tmp_path)

    return DocumentSummaryResponse(
        filename=file.filename or "document",
        characters=len(text),
        text=text,
        summary=summary,
    )
