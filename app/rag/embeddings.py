import logging

from openai import OpenAI

from app.config import Settings

logger = logging.getLogger(__name__)


class EmbeddingClient:
    def __init__(self, settings: Settings, client: OpenAI | None = None):
        self.settings = settings
        self.model = settings.openai_embed_model
        self.dim = settings.embedding_dim
        self.client = client or OpenAI(api_key=settings.openai_api_key)

    def embed_query(self, text: str) -> list[float]:
        if not text or not text.strip():
            raise ValueError("Cannot embed empty query text")
        response = self.client.embeddings.create(
            model=self.model,
            input=text,
            dimensions=self.dim,
        )
        data = getattr(response, "data", None)
        if not data:
            raise RuntimeError(
                f"Empty embeddings response from OpenAI for model {self.model}"
            )
        embedding = list(data[0].embedding)
        # Only the dimension is checkable here; a different model of the same
        # size yields vectors the index will still accept.
        if len(embedding) != self.dim:
            raise RuntimeError(
                f"Unexpected query embedding dimension from {self.model}: "
                f"got {len(embedding)}, expected {self.dim}. "
                "Set EMBEDDING_DIM and OPENAI_EMBED_MODEL to match the knowledge base."
            )
        logger.debug(f"Embedded query ({len(text)} chars) with {self.model}")
        return embedding
