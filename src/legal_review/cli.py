from __future__ import annotations

import argparse
import asyncio
import mimetypes
import os
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Optional

import markdown
import uvicorn

from .config import ProviderConfig
from .errors import BadInputError, ReviewError
from .extractor import extract_text
from .llm_review import LLMReviewer
from .logger import Log
from .prompts import FocusArea, build_prompt, truncate_document


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Review a legal document (PDF or plain text) with an LLM."
    )
    commands = parser.add_subparsers(dest="command", required=True)

    review = commands.add_parser("review", help="Review a local file and print the feedback.")
    review.add_argument("path", type=Path, help="Path to the PDF or text file to review.")
    review.add_argument(
        "--focus",
        choices=[area.value for area in FocusArea],
        help="Narrow the review to one focus area.",
    )
    review.add_argument(
        "--html",
        action="store_true",
        help="Render the Markdown review as HTML.",
    )

    serve = commands.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser.parse_args(argv)


async def review_file(path: Path, config: ProviderConfig, focus: Optional[str] = None) -> str:
    """Run the extraction and review pipeline against a local file.

    The extractor deletes its input, so the file is copied to a temporary
    location first.
    """
    with tempfile.NamedTemporaryFile(suffix=path.suffix, delete=False) as tmp:
        work_path = tmp.name
    try:
        shutil.copyfile(path, work_path)
    except OSError:
        os.unlink(work_path)
        raise

    mime_type, _ = mimetypes.guess_type(path.name)
    text = extract_text(work_path, mime_type, path.name)
    if not text.strip():
        raise BadInputError("Could not extract text from document")

    document_text, truncated = truncate_document(text)
    if truncated:
        Log.warning("Document is %d characters long; only the beginning is reviewed", len(text))
    return await LLMReviewer(config).review(build_prompt(document_text, focus))


def serve(host: str, port: int) -> None:
    uvicorn.run("legal_review.web:app", host=host, port=port)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    config = ProviderConfig.from_env()
    Log.configure(config.log_level)

    if args.command == "serve":
        serve(args.host, args.port)
        return 0

    try:
        config.require_api_key()
        review_text = asyncio.run(review_file(args.path, config, args.focus))
    except (ReviewError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(markdown.markdown(review_text) if args.html else review_text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
