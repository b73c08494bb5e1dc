from __future__ import annotations

import asyncio
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import ProviderConfig
from .errors import DispatchError, ExtractionError, MissingConfigurationError
from .extractor import extract_text
from .llm_review import LLMReviewer
from .logger import Log
from .prompts import MAX_DOCUMENT_CHARS, build_prompt, truncate_document

ANALYZE_PATH = "/api/analyze-document"

# File size limit: 10MB
MAX_FILE_SIZE = 10 * 1024 * 1024

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

METHOD_NOT_ALLOWED_MESSAGE = "Method not allowed"
FALLBACK_ERROR_MESSAGE = "An error occurred while analyzing the document"


@dataclass(frozen=True)
class ReviewResult:
    review: str
    document_length: int
    truncated: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "review": self.review,
            "documentLength": self.document_length,
            "truncated": self.truncated,
        }


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _spool_upload(content: bytes, file_name: str) -> str:
    """Write the upload to a named temporary file and return its path."""
    with tempfile.NamedTemporaryFile(suffix=Path(file_name).suffix, delete=False) as tmp:
        try:
            tmp.write(content)
        except Exception:
            tmp.close()
            os.unlink(tmp.name)
            raise
        return tmp.name


def create_app(
    config: Optional[ProviderConfig] = None,
    reviewer: Optional[LLMReviewer] = None,
) -> FastAPI:
    """Build the review API. Configuration is read once, here."""
    config = config or ProviderConfig.from_env()
    reviewer = reviewer or LLMReviewer(config)
    Log.configure(config.log_level)

    app = FastAPI(title="Legal Document Reviewer")
    app.state.config = config
    app.state.reviewer = reviewer

    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def method_not_allowed(request: Request, exc: StarletteHTTPException) -> Response:
        # Verbs outside the route method list never reach analyze_document.
        if exc.status_code == 405:
            return _error(405, METHOD_NOT_ALLOWED_MESSAGE)
        return await http_exception_handler(request, exc)

    @app.api_route(
        ANALYZE_PATH,
        methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    )
    async def analyze_document(request: Request) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200)
        if request.method != "POST":
            return _error(405, METHOD_NOT_ALLOWED_MESSAGE)

        try:
            return await _run_review(request, app.state.config, app.state.reviewer)
        except Exception as exc:
            Log.exception("Unhandled error while analyzing document")
            return _error(500, str(exc) or FALLBACK_ERROR_MESSAGE)

    return app


async def _run_review(request: Request, config: ProviderConfig, reviewer: LLMReviewer) -> Response:
    try:
        config.require_api_key()
    except MissingConfigurationError as exc:
        Log.error("Rejected request: LLM_API_KEY is not set")
        return _error(500, str(exc))

    form = await request.form()
    try:
        uploads = [item for item in form.getlist("file") if isinstance(item, UploadFile)]
        focus_area = next(iter(form.getlist("focusArea")), "")
        if not isinstance(focus_area, str):
            focus_area = ""

        if not uploads:
            return _error(400, "No file uploaded")
        if len(uploads) > 1:
            Log.warning("Received %d files; reviewing only the first", len(uploads))
        upload = uploads[0]

        content = await upload.read()
        if len(content) > MAX_FILE_SIZE:
            return _error(400, "File size must be less than 10MB.")

        file_name = upload.filename or ""
        content_type = upload.content_type
        Log.info("Received %s (%s, %d bytes)", file_name or "upload", upload.content_type, len(content))
    finally:
        await form.close()

    # Blocking disk and PDF work stays off the event loop.
    file_path = await asyncio.to_thread(_spool_upload, content, file_name)
    try:
        document_text = await asyncio.to_thread(extract_text, file_path, content_type, file_name)
    except ExtractionError as exc:
        Log.warning("Extraction failed for %s: %s", file_name or "upload", exc)
        return _error(500, str(exc))

    if not document_text.strip():
        return _error(400, "Could not extract text from document")

    review_text, truncated = truncate_document(document_text)
    if truncated:
        Log.info("Truncated document from %d to %d characters", len(document_text), MAX_DOCUMENT_CHARS)

    prompt = build_prompt(review_text, focus_area)
    try:
        review = await reviewer.review(prompt)
    except DispatchError as exc:
        Log.error("LLM dispatch failed: %s", exc)
        return _error(500, str(exc))

    result = ReviewResult(
        review=review,
        document_length=len(document_text),
        truncated=truncated,
    )
    return JSONResponse(content=result.to_dict())


app = create_app()
