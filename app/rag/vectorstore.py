import logging
from typing import Any, List, Optional, Protocol

from pinecone import Pinecone
from pydantic import ValidationError

from app.config import Settings
from app.models import MatchMetadata, RetrievedMatch

logger = logging.getLogger(__name__)


class VectorStore(Protocol):
    def search(self, query_embedding: List[float], top_k: int = 12) -> List[RetrievedMatch]:
        ...


def to_retrieved_match(match_id: str, score: Optional[float], metadata: Any) -> RetrievedMatch:
    """Convert a raw index hit into a RetrievedMatch.

    Metadata that is missing or fails validation is replaced by None so the
    retriever drops the match like any other unusable hit.
    """
    parsed = None
    if metadata:
        try:
            parsed = MatchMetadata.model_validate(dict(metadata))
        except (ValidationError, TypeError, ValueError) as e:
            logger.debug(f"Unusable metadata on match {match_id}: {e}")
    return RetrievedMatch(id=str(match_id), score=float(score or 0.0), metadata=parsed)


class PineconeStore:
    def __init__(self, settings: Settings, index: Any = None):
        self.settings = settings
        self.index_name = settings.pinecone_index_name
        if index is None:
            if not settings.pinecone_api_key:
                raise ValueError(
                    "Missing Pinecone configuration. Please set PINECONE_API_KEY."
                )
            client = Pinecone(api_key=settings.pinecone_api_key)
            index = client.Index(self.index_name)
        self.index = index

    def search(self, query_embedding: List[float], top_k: int = 12) -> List[RetrievedMatch]:
        results = self.index.query(
            vector=query_embedding,
            top_k=top_k,
            include_metadata=True,
        )
        raw_matches = getattr(results, "matches", None)
        if raw_matches is None and isinstance(results, dict):
            raw_matches = results.get("matches")
        hits = []
        for m in raw_matches or []:
            if isinstance(m, dict):
                hits.append(to_retrieved_match(m.get("id", ""), m.get("score"), m.get("metadata")))
            else:
                hits.append(
                    to_retrieved_match(
                        getattr(m, "id", ""),
                        getattr(m, "score", None),
                        getattr(m, "metadata", None),
                    )
                )
        logger.info(f"Pinecone index '{self.index_name}' returned {len(hits)} matches")
        return hits


def build_vector_store(settings: Settings) -> VectorStore:
    """Create the vector store selected by settings.vector_backend."""
    backend = settings.vector_backend
    if backend == "pinecone":
        return PineconeStore(settings)
    if backend == "faiss":
        from app.rag.faiss_store import FaissStore

        return FaissStore(settings)
    raise ValueError(
        f"Unknown VECTOR_BACKEND '{backend}'. Expected 'pinecone' or 'faiss'."
    )
