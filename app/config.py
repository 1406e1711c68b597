"""Application configuration settings.

This module defines the Settings dataclass that loads configuration
from environment variables.
"""

from dataclasses import dataclass
import os

from dotenv import load_dotenv


@dataclass
class Settings:
    """Application settings loaded from environment variables.

    Attributes:
        openai_api_key: OpenAI API key for embeddings and generation.
        openai_embed_model: Embedding model ID. Must match the model that
            built the knowledge base.
        openai_chat_model: Chat completion model ID.
        embedding_dim: Expected embedding dimension.
        pinecone_api_key: Pinecone API key.
        pinecone_index_name: Name of the Pinecone index holding the knowledge base.
        vector_backend: Which vector index to query ("pinecone" or "faiss").
        faiss_index_path: Path to a local FAISS export of the knowledge base.
        faiss_meta_path: Path to the metadata file for the FAISS export.
        top_k: Number of matches requested from the vector index.
        score_floor: Matches scoring at or below this value are discarded.
        temperature: Generation temperature.
        max_tokens: Maximum completion tokens.
        history_turns: Number of prior chat turns forwarded to the model.
        max_images: Maximum number of images in a response.
        max_sources: Maximum number of source papers in a response.
        papers_dir: Local folder served under /papers.
        paper_links_path: JSON file mapping PDF filenames to hosted URLs.
        api_host: Host the HTTP API binds to.
        api_port: Port the HTTP API binds to.
        chat_api_url: Base URL the chat UI uses to reach the API.
        chat_api_timeout: Request timeout in seconds for the chat UI.
        log_level: Logging level name.
    """

    openai_api_key: str
    openai_embed_model: str
    openai_chat_model: str
    embedding_dim: int

    pinecone_api_key: str
    pinecone_index_name: str

    vector_backend: str
    faiss_index_path: str
    faiss_meta_path: str

    top_k: int = 12
    score_floor: float = 0.3
    temperature: float = 0.7
    max_tokens: int = 1500
    history_turns: int = 6
    max_images: int = 4
    max_sources: int = 6

    papers_dir: str = "public/papers"
    paper_links_path: str = "data/paper_links.json"

    api_host: str = "0.0.0.0"
    api_port: int = 8000
    chat_api_url: str = "http://localhost:8000"
    chat_api_timeout: float = 120.0

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings instance from environment variables.

        Returns:
            Settings instance with values loaded from environment.
        """
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_embed_model=os.getenv(
                "OPENAI_EMBED_MODEL", "text-embedding-3-small"
            ),
            openai_chat_model=os.getenv("OPENAI_CHAT_MODEL", "gpt-4o"),
            embedding_dim=int(os.getenv("EMBEDDING_DIM", "1536")),
            pinecone_api_key=os.getenv("PINECONE_API_KEY", ""),
            pinecone_index_name=os.getenv("PINECONE_INDEX_NAME")
            or "himalayan-climate-kb",
            vector_backend=os.getenv("VECTOR_BACKEND", "pinecone").lower(),
            faiss_index_path=os.getenv("FAISS_INDEX_PATH", "data/index.faiss"),
            faiss_meta_path=os.getenv("FAISS_META_PATH", "data/meta.json"),
            top_k=int(os.getenv("TOP_K", "12")),
            score_floor=float(os.getenv("SCORE_FLOOR", "0.3")),
            temperature=float(os.getenv("TEMPERATURE", "0.7")),
            max_tokens=int(os.getenv("MAX_TOKENS", "1500")),
            history_turns=int(os.getenv("HISTORY_TURNS", "6")),
            max_images=int(os.getenv("MAX_IMAGES", "4")),
            max_sources=int(os.getenv("MAX_SOURCES", "6")),
            papers_dir=os.getenv("PAPERS_DIR", "public/papers"),
            paper_links_path=os.getenv("PAPER_LINKS_PATH", "data/paper_links.json"),
            api_host=os.getenv("API_HOST", "0.0.0.0"),
            api_port=int(os.getenv("API_PORT", "8000")),
            chat_api_url=os.getenv("CHAT_API_URL", "http://localhost:8000").rstrip("/"),
            chat_api_timeout=float(os.getenv("CHAT_API_TIMEOUT", "120")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def load_settings() -> Settings:
    """Load settings from a local .env file (if any) and the environment.

    Returns:
        Settings instance.
    """
    load_dotenv()
    return Settings.from_env()
