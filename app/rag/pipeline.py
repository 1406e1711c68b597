"""RAG pipeline for query answering.

This module provides the QueryPipeline class, which runs one chat turn
end to end: embed the question, retrieve context, generate a grounded
answer, and shape the response.
"""

import logging

from app.config import Settings
from app.models import ChatResponse, ChatTurn, ContextItem
from app.rag.context import build_context_block, image_results, unique_sources
from app.rag.embeddings import EmbeddingClient
from app.rag.generator import GeneratorClient
from app.rag.retriever import ContextRetriever
from app.rag.vectorstore import VectorStore, build_vector_store

logger = logging.getLogger(__name__)


def shape_response(
    answer: str,
    text_items: list[ContextItem],
    image_items: list[ContextItem],
    max_images: int = 4,
    max_sources: int = 6,
) -> ChatResponse:
    """Package an answer with its figures and deduplicated sources.

    Args:
        answer: Generated answer text.
        text_items: Retrieved text passages, used for the source list.
        image_items: Retrieved figures.
        max_images: Maximum number of figures returned.
        max_sources: Maximum number of source papers returned.

    Returns:
        ChatResponse with truncated image and source lists.
    """
    return ChatResponse(
        message=answer,
        images=image_results(image_items[:max_images]),
        sources=unique_sources(text_items)[:max_sources],
    )


class QueryPipeline:
    """Pipeline for processing questions and generating grounded answers.

    Every call is independent: the embedding service, vector index and
    language model are called in sequence and any failure propagates to
    the caller.
    """

    def __init__(
        self,
        settings: Settings,
        embedder: EmbeddingClient | None = None,
        store: VectorStore | None = None,
        generator: GeneratorClient | None = None,
    ) -> None:
        """Initialize query pipeline.

        Args:
            settings: Application settings.
            embedder: Query embedder. Built from settings when omitted.
            store: Vector store. Built from settings when omitted.
            generator: Answer generator. Built from settings when omitted.
        """
        self.settings = settings
        self.embed = embedder or EmbeddingClient(settings)
        self.vs = store or build_vector_store(settings)
        self.retriever = ContextRetriever(settings, self.vs)
        self.gen = generator or GeneratorClient(settings)

    def answer(
        self, question: str, chat_history: list[ChatTurn] | None = None
    ) -> ChatResponse:
        """Answer a question from the knowledge base.

        Args:
            question: User question.
            chat_history: Prior turns; only the most recent ones are forwarded.

        Returns:
            ChatResponse with answer, figures and sources.
        """
        # Step 1: Embed the question
        q_emb = self.embed.embed_query(question)

        # Step 2: Similarity search with relevance floor
        retrieved = self.retriever.retrieve(q_emb)

        # Step 3: Build the research context block
        context = build_context_block(retrieved.text_items, retrieved.image_items)
        logger.info(f"Assembled context of {len(context)} chars")

        # Step 4: Generate the grounded answer
        answer = self.gen.generate(question, context, chat_history or [])

        # Step 5: Truncate figures and sources for display
        return shape_response(
            answer,
            retrieved.text_items,
            retrieved.image_items,
            max_images=self.settings.max_images,
            max_sources=self.settings.max_sources,
        )
