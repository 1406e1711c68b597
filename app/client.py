"""HTTP client used by the chat UI.

Wraps the POST /api/chat call, keeps the transcript message shape, and
turns any failure into a single apology message.
"""

import logging
from typing import Literal, Optional

import requests
from pydantic import BaseModel, Field, ValidationError

from app.models import ChatResponse, ImageResult, SourcePaper

logger = logging.getLogger(__name__)

APOLOGY = "Sorry, I encountered an error. Please try again."


class ChatMessage(BaseModel):
    """A message in the client-side transcript.

    Attributes:
        role: Who produced the message.
        content: Message text (markdown for assistant answers).
        images: Figures attached to an assistant answer.
        sources: Source papers attached to an assistant answer.
    """

    role: Literal["user", "assistant"]
    content: str
    images: list[ImageResult] = Field(default_factory=list)
    sources: list[SourcePaper] = Field(default_factory=list)


def dedupe_sources(sources: list[SourcePaper]) -> list[SourcePaper]:
    """Drop repeated titles within one message, keeping the first."""
    seen = set()
    unique = []
    for source in sources:
        if source.title in seen:
            continue
        seen.add(source.title)
        unique.append(source)
    return unique


def display_title(title: str, limit: int = 50) -> str:
    if len(title) > limit:
        return title[: limit - 3] + "..."
    return title


class ChatApiClient:
    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = 120.0,
        history_turns: int = 6,
        session: Optional[requests.Session] = None,
    ):
        self.url = f"{base_url.rstrip('/')}/api/chat"
        self.timeout = timeout
        self.history_turns = history_turns
        self.session = session or requests.Session()

    def build_payload(self, message: str, history: list[ChatMessage]) -> dict:
        recent = history[-self.history_turns :] if self.history_turns > 0 else []
        return {
            "message": message,
            "chatHistory": [{"role": m.role, "content": m.content} for m in recent],
        }

    def send(self, message: str, history: list[ChatMessage]) -> ChatMessage:
        """Ask the API a question.

        Args:
            message: The user's question.
            history: Transcript before this question.

        Returns:
            The assistant's reply, or an apology message when the request fails.
        """
        payload = self.build_payload(message, history)
        try:
            resp = self.session.post(self.url, json=payload, timeout=self.timeout)
            resp.raise_for_status()
            data = ChatResponse.model_validate(resp.json())
        except (requests.RequestException, ValueError, ValidationError) as e:
            logger.error(f"Chat request to {self.url} failed: {e}")
            return ChatMessage(role="assistant", content=APOLOGY)

        return ChatMessage(
            role="assistant",
            content=data.message,
            images=data.images,
            sources=dedupe_sources(data.sources),
        )
