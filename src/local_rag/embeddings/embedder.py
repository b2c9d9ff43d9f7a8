"""
Embedding Client

This module implements the embedding collaborator used by the RAG core: a
client for any OpenAI-compatible `/embeddings` endpoint (a local server hosting
all-MiniLM-L6-v2, llama.cpp, Ollama, or the OpenAI API itself). It is
responsible for:

- Efficient batching of text inputs
- Network and transport error isolation
- Strict response validation (shape and dimension)
- Order-preserving output: result[i] is the vector for texts[i]

Calls are blocking. The indexing layer never calls the client on the event
loop directly; it goes through EmbeddingWorker, which owns a dedicated thread.
"""

from __future__ import annotations

from typing import List, Sequence, Optional, Protocol
import logging
import httpx
import numpy as np

from ..config import settings
from ..core.errors import ModelError

logger = logging.getLogger("rag.embedder")


class Encoder(Protocol):
    """
    Minimal contract the core needs from an embedding model.
    """

    dimension: int

    def encode(self, text: str) -> List[float]:
        ...

    def encode_batch(self, texts: Sequence[str]) -> List[List[float]]:
        ...


class Embedder:
    """
    Blocking embedding generator for batches of text.

    This class performs no caching and assumes the caller handles persistence
    of the produced vectors.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        dimension: Optional[int] = None,
        batch_size: Optional[int] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Initialize an Embedder.

        Parameters
        ----------
        base_url : Optional[str]
            Full URL of the embeddings endpoint. Defaults to settings.embedding_base_url.

        model : Optional[str]
            Model name sent with each request. Defaults to settings.embedding_model.

        api_key : Optional[str]
            Bearer token, if the endpoint needs one. Defaults to settings.embedding_api_key.

        dimension : Optional[int]
            Expected vector dimension D. Defaults to settings.embedding_dimension.

        batch_size : Optional[int]
            Maximum texts per request. Defaults to settings.embedding_batch_size.

        timeout : Optional[float]
            HTTP timeout for each request.

        transport : Optional[httpx.BaseTransport]
            Custom transport (tests use httpx.MockTransport).
        """
        if api_key is None and settings.embedding_api_key is not None:
            api_key = settings.embedding_api_key.get_secret_value()

        self.base_url = base_url or settings.embedding_base_url
        self.model = model or settings.embedding_model
        self.dimension = dimension or settings.embedding_dimension
        self.batch_size = batch_size or settings.embedding_batch_size
        self.timeout = timeout or settings.embedding_timeout

        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = httpx.Client(
            timeout=self.timeout,
            headers=headers,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load(self) -> None:
        """
        Verify the endpoint is reachable and serves vectors of the expected
        dimension.

        Raises
        ------
        ModelError
            If the warm-up request fails or returns a wrong-sized vector.
        """
        logger.info("Loading embedding model %r from %s", self.model, self.base_url)
        self.encode("warmup")
        logger.info("Embedding model ready (dimension=%d)", self.dimension)

    def encode(self, text: str) -> List[float]:
        """
        Encode a single text string into a vector of dimension D.
        """
        return self.encode_batch([text])[0]

    def encode_batch(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Generate embeddings for a sequence of input texts.

        Parameters
        ----------
        texts : Sequence[str]
            Input text strings.

        Returns
        -------
        List[List[float]]
            One vector per input, in input order. Empty input yields [].

        Raises
        ------
        ModelError
            If any batch fails or the response is malformed.
        """
        if not texts:
            return []

        all_embeddings: List[List[float]] = []

        for start in range(0, len(texts), self.batch_size):
            batch = list(texts[start : start + self.batch_size])
            payload = {
                "model": self.model,
                "input": batch,
            }

            try:
                response = self._client.post(self.base_url, json=payload)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                logger.error(
                    "Embedding request failed (%s): batch size=%d, error=%s",
                    type(exc).__name__,
                    len(batch),
                    str(exc),
                )
                raise ModelError(
                    f"Embedding generation failed: {type(exc).__name__}: {exc}"
                ) from exc

            try:
                data = response.json()
            except ValueError as exc:
                raise ModelError("Embedding response is not valid JSON.") from exc

            embeddings = self._extract_embeddings(data, self.dimension)

            if len(embeddings) != len(batch):
                raise ModelError(
                    f"Embedding response has {len(embeddings)} vectors for "
                    f"{len(batch)} inputs."
                )

            all_embeddings.extend(embeddings)

        return all_embeddings

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_embeddings(data: dict, dimension: int) -> List[List[float]]:
        """
        Parse and validate embedding output format.

        OpenAI-compatible servers return:
            { "data": [ {"index": 0, "embedding": [...]}, ... ] }

        Records are reordered by "index" when present, since the protocol does
        not promise response order. Every vector is L2-normalized.

        Raises
        ------
        ModelError
            If the API returns unexpected structure or a zero vector.
        """
        if not isinstance(data, dict) or "data" not in data:
            raise ModelError("Embedding response missing 'data' field.")

        records = data["data"]
        if not isinstance(records, list):
            raise ModelError("'data' field must be a list.")

        if all(isinstance(r, dict) and isinstance(r.get("index"), int) for r in records):
            records = sorted(records, key=lambda r: r["index"])

        embeddings: List[List[float]] = []

        for index, record in enumerate(records):
            if not isinstance(record, dict) or "embedding" not in record:
                raise ModelError(
                    f"Malformed embedding record at index {index}: {record!r}"
                )

            emb = record["embedding"]
            if not isinstance(emb, list) or not all(
                isinstance(x, (float, int)) for x in emb
            ):
                raise ModelError(
                    f"Invalid embedding vector at index {index}: must be float list."
                )

            if len(emb) != dimension:
                raise ModelError(
                    f"Embedding at index {index} has dimension {len(emb)}, "
                    f"expected {dimension}."
                )

            vec = np.asarray(emb, dtype=np.float32)
            norm = float(np.linalg.norm(vec))
            if not np.isfinite(norm) or norm == 0.0:
                raise ModelError(
                    f"Embedding at index {index} has norm {norm}; cannot normalize."
                )

            # Unit length; search scores are plain dot products
            embeddings.append((vec / norm).tolist())

        return embeddings
