"""Data models for the chat API and RAG pipeline.

This module defines Pydantic models for the request/response contract of
the chat endpoint and for the records passed between pipeline stages.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt


class ChatTurn(BaseModel):
    """A single prior turn of the conversation.

    Attributes:
        role: Who produced the turn.
        content: Turn text.
    """

    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Body of a chat request.

    Attributes:
        message: The user's current question.
        chat_history: Prior turns sent back by the client.
    """

    model_config = ConfigDict(populate_by_name=True)

    message: str = ""
    chat_history: list[ChatTurn] = Field(default_factory=list, alias="chatHistory")


class MatchMetadata(BaseModel):
    """Metadata stored alongside each vector in the knowledge base.

    Attributes:
        content_type: Whether the vector embeds a text passage or a figure caption.
        paper_title: Title of the owning paper. Used as the paper's identity.
        page_number: Page the passage or figure appears on.
        content: Passage text or figure caption.
        image_url: Public URL of the figure image, for image entries.
        paper_id: Optional paper identifier, when the index carries one.
    """

    content_type: Literal["text", "image"]
    paper_title: str
    page_number: PositiveInt
    content: str = ""
    image_url: str | None = None
    paper_id: str | None = None


class RetrievedMatch(BaseModel):
    """A single result of a vector similarity search.

    Attributes:
        id: Vector identifier.
        score: Similarity score, higher is more relevant.
        metadata: Validated metadata, or None when absent or unusable.
    """

    id: str
    score: float = 0.0
    metadata: MatchMetadata | None = None


class ContextItem(BaseModel):
    """A retrieved match projected into the shape the assembler needs."""

    type: Literal["text", "image"]
    content: str
    source: str
    page: int
    image_url: str | None = None
    score: float


class RetrievedContext(BaseModel):
    """Retriever output partitioned by content kind.

    Attributes:
        text_items: Text passages in retrieval order.
        image_items: Figures with a usable image URL, in retrieval order.
    """

    text_items: list[ContextItem] = Field(default_factory=list)
    image_items: list[ContextItem] = Field(default_factory=list)


class SourcePaper(BaseModel):
    """A deduplicated source paper cited by an answer.

    Attributes:
        title: Paper title.
        page: Page of the first-ranked passage from this paper.
        pdf_file: Derived PDF filename used for document links.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str
    page: int
    pdf_file: str = Field(alias="pdfFile")


class ImageResult(BaseModel):
    """A figure returned alongside an answer."""

    model_config = ConfigDict(populate_by_name=True)

    url: str
    source: str
    page: int
    description: str
    pdf_file: str = Field(alias="pdfFile")
    score: float | None = None


class ChatResponse(BaseModel):
    """Successful chat response.

    Attributes:
        message: Generated answer text (markdown).
        images: Figures relevant to the answer.
        sources: Source papers the answer draws on.
    """

    message: str
    images: list[ImageResult] = Field(default_factory=list)
    sources: list[SourcePaper] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Error body returned by the chat endpoint."""

    error: str
