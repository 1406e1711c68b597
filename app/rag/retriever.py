"""Similarity retrieval with a relevance floor.

Matches come back from the vector index in similarity order. This module
drops unusable or weak matches and splits the rest into text passages and
figures. Order is preserved; nothing is re-ranked.
"""

import logging

from app.config import Settings
from app.models import ContextItem, RetrievedContext, RetrievedMatch
from app.rag.vectorstore import VectorStore

logger = logging.getLogger(__name__)


def filter_matches(
    matches: list[RetrievedMatch], score_floor: float = 0.3
) -> list[ContextItem]:
    """Project matches above the relevance floor into context items.

    Args:
        matches: Matches in index order.
        score_floor: Matches scoring at or below this value are discarded.

    Returns:
        Context items for matches with metadata and score > score_floor.
    """
    items = []
    for match in matches:
        meta = match.metadata
        if meta is None or match.score <= score_floor:
            continue
        items.append(
            ContextItem(
                type=meta.content_type,
                content=meta.content,
                source=meta.paper_title,
                page=meta.page_number,
                image_url=meta.image_url,
                score=match.score,
            )
        )
    return items


def partition_items(items: list[ContextItem]) -> RetrievedContext:
    """Split context items into text passages and usable figures.

    Figures without an image URL cannot be displayed and are dropped.
    """
    text_items = [item for item in items if item.type == "text"]
    image_items = [item for item in items if item.type == "image" and item.image_url]
    return RetrievedContext(text_items=text_items, image_items=image_items)


class ContextRetriever:
    def __init__(self, settings: Settings, store: VectorStore):
        self.settings = settings
        self.store = store
        self.top_k = settings.top_k
        self.score_floor = settings.score_floor

    def retrieve(self, query_embedding: list[float]) -> RetrievedContext:
        matches = self.store.search(query_embedding, top_k=self.top_k)
        items = filter_matches(matches, self.score_floor)
        context = partition_items(items)
        dropped = len(matches) - len(context.text_items) - len(context.image_items)
        if dropped:
            logger.debug(
                f"Dropped {dropped} of {len(matches)} matches (score <= {self.score_floor}, "
                "missing metadata, or figure without URL)"
            )
        logger.info(
            f"Retrieved {len(context.text_items)} text passages and "
            f"{len(context.image_items)} figures"
        )
        return context
