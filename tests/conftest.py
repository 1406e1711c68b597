"""Shared pytest fixtures."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from app.config import Settings
from app.models import MatchMetadata, RetrievedMatch

GLOF_PAPER = "Glacial lake changes and the identification of potentially dangerous glacial lakes"


@pytest.fixture
def settings(tmp_path):
    """Settings with test keys and local paths under a temp directory."""
    return Settings(
        openai_api_key="test-openai-key",
        openai_embed_model="text-embedding-3-small",
        openai_chat_model="gpt-4o",
        embedding_dim=4,
        pinecone_api_key="test-pinecone-key",
        pinecone_index_name="test-index",
        vector_backend="pinecone",
        faiss_index_path=str(tmp_path / "index.faiss"),
        faiss_meta_path=str(tmp_path / "meta.json"),
        papers_dir=str(tmp_path / "papers"),
        paper_links_path=str(tmp_path / "paper_links.json"),
    )


@pytest.fixture
def make_match():
    """Factory for retrieved matches."""

    def _make(
        score=0.8,
        content_type="text",
        title=GLOF_PAPER,
        page=1,
        content="Moraine-dammed lakes can fail suddenly.",
        image_url=None,
        match_id=None,
        with_metadata=True,
    ):
        metadata = None
        if with_metadata:
            metadata = MatchMetadata(
                content_type=content_type,
                paper_title=title,
                page_number=page,
                content=content,
                image_url=image_url,
            )
        return RetrievedMatch(
            id=match_id or f"{content_type}-{title[:10]}-{page}",
            score=score,
            metadata=metadata,
        )

    return _make


@pytest.fixture
def mock_openai():
    """Mock OpenAI client returning a fixed embedding and completion."""
    client = MagicMock()
    client.embeddings.create.return_value = SimpleNamespace(
        data=[SimpleNamespace(embedding=[0.1, 0.2, 0.3, 0.4])]
    )
    client.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content="Grounded answer."))]
    )
    return client


@pytest.fixture
def mock_store():
    """Mock vector store with no matches by default."""
    store = MagicMock()
    store.search.return_value = []
    return store


@pytest.fixture
def pipeline(settings, mock_openai, mock_store):
    """Query pipeline wired to the mocked OpenAI client and vector store."""
    from app.rag.embeddings import EmbeddingClient
    from app.rag.generator import GeneratorClient
    from app.rag.pipeline import QueryPipeline

    return QueryPipeline(
        settings,
        embedder=EmbeddingClient(settings, client=mock_openai),
        store=mock_store,
        generator=GeneratorClient(settings, client=mock_openai),
    )
