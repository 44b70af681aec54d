"""
Embedding collaborator.

Contract used by the semantic classifier:

    embed(text)        -> list[float] | None
    embed_batch(texts) -> list[EmbeddingResult]   (same length, per-item None)

``None`` always means "skip classification for this item". Nothing here
raises for network, timeout or API errors; they are logged and turned into
``None`` for the affected chunk only.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

import httpx
from openai import APIStatusError, AsyncOpenAI, OpenAIError

from ..http_client import RetryConfig, Timeouts, build_client, is_retryable_error
from ..settings import Settings

logger = logging.getLogger(__name__)

# Input cap per text (characters), well inside the model's token limit
MAX_INPUT_CHARS = 8000


@dataclass(frozen=True)
class EmbeddingResult:
    embedding: Optional[List[float]] = None

    @property
    def ok(self) -> bool:
        return bool(self.embedding)


class EmbeddingClient(Protocol):
    async def embed(self, text: str) -> Optional[List[float]]:
        ...

    async def embed_batch(self, texts: Sequence[str]) -> List[EmbeddingResult]:
        ...


def chunked(items: Sequence[str], size: int) -> List[Sequence[str]]:
    return [items[start:start + size] for start in range(0, len(items), size)]


class OpenAIEmbeddingClient:
    """OpenAI embeddings over a pooled httpx client.

    Texts are sent in chunks of ``batch_size``; chunks run concurrently and
    fail independently.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-large",
        dimensions: Optional[int] = 1536,
        batch_size: int = 20,
        timeout: float = Timeouts.OPENAI_EMBEDDING,
        client: Optional[AsyncOpenAI] = None,
    ):
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.model = model
        self.dimensions = dimensions
        self.batch_size = batch_size
        self.timeout = timeout
        self._http_client: Optional[httpx.AsyncClient] = None
        if client is None:
            self._http_client = build_client("openai_embedding", timeout)
            client = AsyncOpenAI(
                api_key=api_key,
                http_client=self._http_client,
                max_retries=RetryConfig.MAX_RETRIES,
            )
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIEmbeddingClient":
        if not settings.openai_api_key:
            raise EnvironmentError("OPENAI_API_KEY environment variable not set")
        return cls(
            api_key=settings.openai_api_key,
            model=settings.embedding_model,
            dimensions=settings.embedding_dimensions,
            batch_size=settings.embedding_batch_size,
            timeout=settings.embedding_timeout,
        )

    async def embed(self, text: str) -> Optional[List[float]]:
        results = await self.embed_batch([text])
        return results[0].embedding

    async def embed_batch(self, texts: Sequence[str]) -> List[EmbeddingResult]:
        if not texts:
            return []

        results: List[EmbeddingResult] = [EmbeddingResult() for _ in texts]
        # the API rejects empty strings, so blank items never leave the process
        positions = [i for i, text in enumerate(texts) if text and text.strip()]
        if not positions:
            return results

        cleaned = [texts[i].strip()[:MAX_INPUT_CHARS] for i in positions]
        chunks = chunked(cleaned, self.batch_size)
        vectors = await asyncio.gather(*(self._embed_chunk(chunk) for chunk in chunks))

        flat = [vector for chunk_vectors in vectors for vector in chunk_vectors]
        for position, vector in zip(positions, flat):
            results[position] = EmbeddingResult(embedding=vector)

        failed = sum(1 for vector in flat if vector is None)
        if failed:
            logger.warning("[EMBED] %d of %d embeddings unavailable", failed, len(flat))
        return results

    async def _embed_chunk(self, chunk: Sequence[str]) -> List[Optional[List[float]]]:
        kwargs = {"model": self.model, "input": list(chunk)}
        if self.dimensions:
            kwargs["dimensions"] = self.dimensions
        try:
            response = await asyncio.wait_for(
                self._client.embeddings.create(**kwargs),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("[EMBED] Batch of %d timed out after %.1fs", len(chunk), self.timeout)
            return [None] * len(chunk)
        except APIStatusError as exc:
            logger.warning(
                "[EMBED] Batch of %d rejected: status=%s retryable=%s",
                len(chunk),
                exc.status_code,
                is_retryable_error(exc.status_code),
            )
            return [None] * len(chunk)
        except (OpenAIError, httpx.HTTPError) as exc:
            logger.warning("[EMBED] Batch of %d failed: %s", len(chunk), str(exc)[:100])
            return [None] * len(chunk)

        data = sorted(response.data, key=lambda item: item.index)
        if len(data) != len(chunk):
            logger.warning("[EMBED] Expected %d embeddings, got %d; dropping batch", len(chunk), len(data))
            return [None] * len(chunk)
        return [list(item.embedding) or None for item in data]

    async def aclose(self):
        await self._client.close()
        if self._http_client is not None and not self._http_client.is_closed:
            await self._http_client.aclose()
