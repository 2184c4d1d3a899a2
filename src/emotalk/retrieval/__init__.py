"""Retrieval layer (vector store queries)."""
from .client import BaseRetriever, ChromaRetriever, RetrievedPassage, create_retriever

__all__ = [
    "BaseRetriever",
    "ChromaRetriever",
    "RetrievedPassage",
    "create_retriever",
]
