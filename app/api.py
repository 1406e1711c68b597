"""HTTP API for the research assistant.

Exposes the chat endpoint that runs one retrieval-and-generation cycle per
request, and optionally serves the local PDF folder under /papers.
"""

import logging
import os

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from app.config import Settings, load_settings
from app.models import ChatRequest, ErrorResponse
from app.rag.pipeline import QueryPipeline

logger = logging.getLogger(__name__)

MESSAGE_REQUIRED = "Message is required"
INVALID_HISTORY = "Invalid chat history"
PROCESSING_FAILED = "Failed to process your request. Please try again."


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=ErrorResponse(error=message).model_dump()
    )


def create_app(
    pipeline: QueryPipeline | None = None, settings: Settings | None = None
) -> FastAPI:
    """Build the FastAPI application.

    Service clients are created once here and live as long as the process.

    Args:
        pipeline: Query pipeline to serve. Built from settings when omitted.
        settings: Application settings. Loaded from the environment when omitted.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or load_settings()
    app = FastAPI(
        title="Himalayan Climate Research Assistant API",
        description="Retrieval-augmented answers over a corpus of research papers.",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.pipeline = pipeline or QueryPipeline(settings)

    @app.post("/api/chat", summary="Answer a research question")
    async def chat(request: Request) -> JSONResponse:
        try:
            payload = await request.json()
        except ValueError:
            payload = None

        message = payload.get("message") if isinstance(payload, dict) else None
        if not isinstance(message, str) or not message.strip():
            return _error(400, MESSAGE_REQUIRED)

        try:
            chat_request = ChatRequest.model_validate(payload)
        except ValidationError as e:
            logger.info(f"Rejected chat request with malformed history: {e.error_count()} error(s)")
            return _error(400, INVALID_HISTORY)

        logger.info(
            f"Chat request: {len(chat_request.message)} chars, "
            f"{len(chat_request.chat_history)} history turns"
        )
        try:
            response = await run_in_threadpool(
                request.app.state.pipeline.answer,
                chat_request.message,
                chat_request.chat_history,
            )
        except Exception:
            logger.exception("Chat API error")
            return _error(500, PROCESSING_FAILED)

        return JSONResponse(content=response.model_dump(by_alias=True))

    if settings.papers_dir and os.path.isdir(settings.papers_dir):
        app.mount("/papers", StaticFiles(directory=settings.papers_dir), name="papers")
        logger.info(f"Serving local papers from {settings.papers_dir}")

    return app


def main() -> None:
    """Run the API with uvicorn."""
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "app.api:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
    )


if __name__ == "__main__":
    main()
