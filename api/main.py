"""Reality Debugger — FastAPI application."""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from errors import RealityDebugError, UploadNotFoundError
from models import AnalyzeRequest, RealityDebugReport, SegmentAnalyzeRequest, UploadResponse
from pipeline import run_analysis, run_segment_analysis
from stages.gemini import get_analyze_model, get_segment_model
from storage import find_upload, save_upload

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 50 * 1024 * 1024  # 50 MiB
MIN_EXPECTATION_CHARS = 10
DURATION_PLACEHOLDER = 0.0


def _is_truthy_env(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


def _is_mock_mode() -> bool:
    return _is_truthy_env("MOCK_MODE")


def _has_gemini_key() -> bool:
    return bool(os.getenv("GEMINI_API_KEY", "").strip())


def _get_upload_dir() -> Path:
    configured = os.environ.get("UPLOAD_DIR", "").strip()
    return Path(configured) if configured else Path.cwd() / "uploads"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — report configuration; a missing key only fails at first use."""
    if _is_mock_mode():
        logger.info("MOCK_MODE is ON — using fixture report; GEMINI_API_KEY not required")
    elif not _has_gemini_key():
        logger.warning("GEMINI_API_KEY is not set — /analyze and /segmentAnalyze will fail")

    logger.info(
        "Uploads in %s (analyze model=%s, segment model=%s)",
        _get_upload_dir(),
        get_analyze_model(),
        get_segment_model(),
    )
    yield


app = FastAPI(
    title="Reality Debugger API",
    description="Upload a failure video + expectation → get a structured causal-analysis report",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS for local dev
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are input errors (400), not 422."""
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
        for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"detail": f"Invalid request: {problems}"})


@app.get("/health")
def health():
    """Health check endpoint with effective runtime configuration."""
    mock = _is_mock_mode()
    return {
        "ok": True,
        "mode": "mock" if mock else "real",
        "has_gemini_key": _has_gemini_key(),
        "analyze_model": get_analyze_model(),
        "segment_model": get_segment_model(),
        "upload_dir": str(_get_upload_dir()),
    }


@app.post("/upload", response_model=UploadResponse)
async def upload(file: Optional[UploadFile] = File(None)):
    """Store an uploaded video and return its id."""
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")

    content_type = (file.content_type or "").lower()
    if not content_type.startswith("video/") and not file.filename.lower().endswith(".mp4"):
        raise HTTPException(status_code=400, detail="File must be a video (MP4)")

    # Read one byte past the cap so oversize files are detected before anything is written
    content = await file.read(MAX_UPLOAD_BYTES + 1)
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size is {MAX_UPLOAD_BYTES // (1024 * 1024)}MB",
        )

    try:
        stored = save_upload(_get_upload_dir(), content, file.filename)
    except OSError:
        logger.exception("Upload storage error")
        raise HTTPException(status_code=500, detail="Failed to upload file")

    return UploadResponse(file_id=stored.file_id, file_name=stored.file_name, duration=DURATION_PLACEHOLDER)


def _resolve_upload(file_id: str) -> Path:
    try:
        return find_upload(_get_upload_dir(), file_id)
    except UploadNotFoundError:
        raise HTTPException(status_code=404, detail="File not found")
    except RealityDebugError as e:
        logger.error("Upload lookup failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/analyze", response_model=RealityDebugReport)
def analyze(req: AnalyzeRequest):
    """Full causal analysis of a previously uploaded video."""
    if not req.file_id or not req.expectation_text:
        raise HTTPException(status_code=400, detail="fileId and expectationText are required")

    if len(req.expectation_text) < MIN_EXPECTATION_CHARS:
        raise HTTPException(
            status_code=400,
            detail=f"expectationText must be at least {MIN_EXPECTATION_CHARS} characters",
        )

    video_path = _resolve_upload(req.file_id)
    logger.info("Starting analysis for %s (mode=%s)", video_path.name, "mock" if _is_mock_mode() else "real")

    try:
        return run_analysis(str(video_path), req.expectation_text)
    except RealityDebugError as e:
        logger.error("Analysis failed: %s", e)
        raise HTTPException(status_code=500, detail=f"Analysis failed: {e}")
    except Exception as e:
        logger.exception("Pipeline error")
        raise HTTPException(status_code=500, detail=f"Analysis failed: {str(e)}")


@app.post("/segmentAnalyze", response_model=RealityDebugReport)
def segment_analyze(req: SegmentAnalyzeRequest):
    """Re-analyze a time window. The response fully replaces the previous report."""
    if not req.file_id or not req.expectation_text or req.t_start is None or req.t_end is None:
        raise HTTPException(
            status_code=400,
            detail="fileId, expectationText, tStart, and tEnd are required",
        )

    if req.t_start >= req.t_end or req.t_start < 0:
        raise HTTPException(
            status_code=400,
            detail="Invalid time window: tStart must be < tEnd and >= 0",
        )

    video_path = _resolve_upload(req.file_id)
    logger.info("Starting segment analysis for %s [%s, %s]", video_path.name, req.t_start, req.t_end)

    try:
        return run_segment_analysis(str(video_path), req.expectation_text, req.t_start, req.t_end)
    except RealityDebugError as e:
        logger.error("Segment analysis failed: %s", e)
        raise HTTPException(status_code=500, detail=f"Segment analysis failed: {e}")
    except Exception as e:
        logger.exception("Segment pipeline error")
        raise HTTPException(status_code=500, detail=f"Segment analysis failed: {str(e)}")
