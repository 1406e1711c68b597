import os
import json
import logging
from typing import List, Dict, Any

import faiss
import numpy as np

from app.config import Settings
from app.models import RetrievedMatch
from app.rag.vectorstore import to_retrieved_match

logger = logging.getLogger(__name__)


class FaissStore:
    """Read-only local copy of the knowledge base.

    Expects an inner-product FAISS index and a JSON list of
    ``{"id": ..., "metadata": {...}}`` records in the same order as the
    index vectors.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.dim = settings.embedding_dim
        self.index_path = settings.faiss_index_path
        self.meta_path = settings.faiss_meta_path
        self.index = None
        self.records: List[Dict[str, Any]] = []
        self._load()

    @staticmethod
    def _normalize(vecs: np.ndarray) -> np.ndarray:
        norms = np.linalg.norm(vecs, axis=1, keepdims=True) + 1e-12
        return vecs / norms

    def _load(self) -> None:
        if os.path.exists(self.index_path) and os.path.exists(self.meta_path):
            self.index = faiss.read_index(self.index_path)
            with open(self.meta_path, "r", encoding="utf-8") as f:
                self.records = json.load(f)
            if self.index.d != self.dim:
                raise RuntimeError(
                    f"FAISS index dimension mismatch: index.d={self.index.d} vs EMBEDDING_DIM={self.dim}. "
                    f"The local export ({self.index_path}) must come from the same embedding model as the queries."
                )
            if self.index.ntotal != len(self.records):
                logger.warning(
                    f"FAISS index holds {self.index.ntotal} vectors but {self.meta_path} "
                    f"has {len(self.records)} records"
                )
        else:
            logger.warning(
                f"No local knowledge base at {self.index_path} / {self.meta_path}; searches return nothing"
            )
            self.index = None
            self.records = []

    def search(self, query_embedding: List[float], top_k: int = 12) -> List[RetrievedMatch]:
        if self.index is None or self.index.ntotal == 0:
            return []
        # Inner product search on normalized vectors = cosine similarity
        q = np.array([query_embedding], dtype=np.float32)
        q = self._normalize(q)
        scores, idxs = self.index.search(q, top_k)
        hits: List[RetrievedMatch] = []
        for score, idx in zip(scores[0].tolist(), idxs[0].tolist()):
            if idx < 0 or idx >= len(self.records):
                continue
            rec = self.records[idx]
            hits.append(to_retrieved_match(rec.get("id", str(idx)), score, rec.get("metadata")))
        return hits
