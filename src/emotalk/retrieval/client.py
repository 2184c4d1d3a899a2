"""Vector store query facade used to ground turns in external context."""
import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import chromadb
from chromadb.config import Settings as ChromaSettings

from ..config import RetrievalConfig
from ..exceptions import RetrievalError
from ..logging_config import setup_logger

logger = setup_logger("emotalk.retrieval")

# Only the best match is injected into a turn
TOP_K = 1


@dataclass
class RetrievedPassage:
    """A passage returned by the vector store."""
    text: str
    source: str
    rank: int = 1


class BaseRetriever(ABC):
    """Base class for retrieval clients.

    Implementations must never raise from query(): a failed lookup means
    the turn simply goes out without context.
    """

    @abstractmethod
    async def query(self, text: str) -> Optional[RetrievedPassage]:
        """Return the most relevant passage for text, or None."""
        pass

    async def close(self) -> None:
        """Release backend resources."""
        pass


class ChromaRetriever(BaseRetriever):
    """Similarity search against an existing chromadb collection.

    The collection is built and maintained elsewhere; this client only
    reads from it. Every call is a fresh query, bounded by ``timeout_s``.
    """

    def __init__(
        self,
        index_name: str,
        host: str = "",
        port: int = 8000,
        path: str = "./chroma",
        timeout_s: float = 5.0,
        client: Optional[Any] = None,
    ):
        self.index_name = index_name
        self.host = host
        self.port = port
        self.path = path
        self.timeout_s = timeout_s
        self._client = client
        self._collection = None

    def _get_collection(self):
        if self._collection is not None:
            return self._collection

        if self._client is None:
            settings = ChromaSettings(anonymized_telemetry=False)
            if self.host:
                self._client = chromadb.HttpClient(host=self.host, port=self.port, settings=settings)
            else:
                self._client = chromadb.PersistentClient(path=self.path, settings=settings)

        try:
            self._collection = self._client.get_collection(name=self.index_name)
        except Exception as e:
            raise RetrievalError(f"Index '{self.index_name}' is not available: {e}") from e
        return self._collection

    def _search(self, text: str) -> Optional[RetrievedPassage]:
        """Blocking top-1 query. Raises RetrievalError on backend failure."""
        collection = self._get_collection()
        try:
            results = collection.query(query_texts=[text], n_results=TOP_K)
        except Exception as e:
            raise RetrievalError(f"Query against '{self.index_name}' failed: {e}") from e

        documents = (results.get("documents") or [[]])[0]
        if not documents or not documents[0]:
            return None

        ids = (results.get("ids") or [[]])[0]
        metadatas = (results.get("metadatas") or [[]])[0]
        metadata = (metadatas[0] if metadatas else None) or {}
        source = metadata.get("source") or (ids[0] if ids else "") or self.index_name

        return RetrievedPassage(text=documents[0], source=str(source), rank=1)

    async def query(self, text: str) -> Optional[RetrievedPassage]:
        """Query the index, degrading to None on timeout or error."""
        if not text or not text.strip():
            return None

        loop = asyncio.get_running_loop()
        try:
            passage = await asyncio.wait_for(
                loop.run_in_executor(None, self._search, text),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Retrieval timed out after {self.timeout_s}s, continuing without context")
            return None
        except Exception as e:
            logger.warning(f"Retrieval failed, continuing without context: {e}")
            return None

        if passage is None:
            logger.info(f"No match in index '{self.index_name}'")
        else:
            logger.debug(f"Retrieved passage from {passage.source}: {passage.text[:60]}")
        return passage


def create_retriever(config: Optional[RetrievalConfig] = None) -> Optional[BaseRetriever]:
    """Factory function. Returns None when retrieval is disabled."""
    if config is None or not config.enabled:
        return None

    logger.info(f"Retrieval enabled against index '{config.index_name}'")
    return ChromaRetriever(
        index_name=config.index_name,
        host=config.chroma_host,
        port=config.chroma_port,
        path=config.chroma_path,
        timeout_s=config.timeout_s,
    )
