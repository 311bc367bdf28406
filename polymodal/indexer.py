"""
Chunk Indexer - generates and stores embeddings for content chunks.

For every chunk with a vector path:
- prepare the embedding text (label heading + chunk text)
- embed it in batches through an EmbeddingProvider
- write one YAML vector record per chunk

Chunks whose record already exists are skipped unless ``force`` is set.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from .chunks import ContentChunk
from .config import PolymodalConfig
from .embedder import EmbeddingProvider, create_provider
from .extract import prepare_chunk_for_embedding
from .utils import EmbeddingError, PathLike, batch_iter
from .vectors import EmbeddingRecord, VectorStore, validate_embedding

# Configure module logger
logger = logging.getLogger(__name__)


@dataclass
class IndexConfig:
    """Configuration for an indexing run."""

    # Vector records
    content_root: Path = field(default_factory=Path.cwd)
    force: bool = False  # Re-embed chunks that already have a record

    # Embedding
    batch_size: int = 32
    provider_config: Optional[PolymodalConfig] = None  # From the environment if None

    def __post_init__(self):
        self.content_root = Path(self.content_root)
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")


@dataclass
class IndexResult:
    """Result of an indexing run."""

    success: bool
    indexed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    paths: list[Path] = field(default_factory=list)
    error: Optional[str] = None
    stats: dict = field(default_factory=dict)


class ChunkIndexer:
    """
    Embeds content chunks and persists their vector records.

    Pipeline:
        1. Select chunks (skip missing vector paths and existing records)
        2. Embed prepared texts batch by batch, writing each record

    Example:
        indexer = ChunkIndexer(IndexConfig(content_root="./site"))
        result = indexer.index(registry.list())
        print(f"Indexed {len(result.indexed)} chunks")
    """

    def __init__(self, config: IndexConfig, provider: Optional[EmbeddingProvider] = None):
        self.config = config
        self.store = VectorStore(config.content_root)
        self._provider = provider

    def _get_provider(self) -> EmbeddingProvider:
        """Get or create the embedding provider."""
        if self._provider is None:
            self._provider = create_provider(self.config.provider_config)
        return self._provider

    def index(self, chunks: Iterable[ContentChunk]) -> IndexResult:
        """
        Embed and store the given chunks.

        Returns:
            IndexResult; on failure ``success`` is False, ``error`` holds
            the message, and chunks written before the failure are listed
            in ``indexed``
        """
        chunks = list(chunks)
        result = IndexResult(success=False)
        logger.info(f"Starting indexing of {len(chunks)} chunks")

        try:
            # Step 1: Select chunks
            logger.info("Step 1/2: Selecting chunks...")
            pending = self._select(chunks, result)

            # Step 2: Embed and write
            if pending:
                logger.info(f"Step 2/2: Embedding {len(pending)} chunks...")
                provider = self._get_provider()
                batches = 0
                for batch in batch_iter(pending, self.config.batch_size):
                    self._index_batch(provider, batch, result)
                    batches += 1
                result.stats.update({
                    "batches": batches,
                    "model": provider.model_name,
                })
            else:
                logger.info("Step 2/2: Nothing to embed")

            result.success = True
            logger.info(f"✅ Indexed {len(result.indexed)} chunks, skipped {len(result.skipped)}")

        except Exception as e:
            logger.exception(f"Indexing failed: {e}")
            result.error = str(e)

        result.stats.update({
            "total_chunks": len(chunks),
            "indexed": len(result.indexed),
            "skipped": len(result.skipped),
        })
        return result

    def _select(self, chunks: list[ContentChunk], result: IndexResult) -> list[ContentChunk]:
        pending = []
        seen: set[str] = set()
        for chunk in chunks:
            if chunk.id in seen:
                raise ValueError(f"Duplicate chunk id: {chunk.id}")
            seen.add(chunk.id)

            if not chunk.vector_path:
                logger.warning(f"Chunk {chunk.id} has no vector path, skipping")
                result.skipped.append(chunk.id)
            elif self.store.exists(chunk) and not self.config.force:
                logger.debug(f"Vector record exists for {chunk.id}, skipping")
                result.skipped.append(chunk.id)
            else:
                pending.append(chunk)
        return pending

    def _index_batch(
        self,
        provider: EmbeddingProvider,
        batch: list[ContentChunk],
        result: IndexResult,
    ) -> None:
        texts = [prepare_chunk_for_embedding(chunk) for chunk in batch]
        vectors = provider.generate_embeddings(texts)
        if len(vectors) != len(batch):
            raise EmbeddingError(f"Provider returned {len(vectors)} embeddings for {len(batch)} texts")

        for chunk, text, vector in zip(batch, texts, vectors):
            if not validate_embedding(vector):
                raise EmbeddingError(f"Provider returned an invalid embedding for {chunk.id}")
            self._check_dimension(provider, len(vector), result)

            record = EmbeddingRecord(
                id=chunk.id,
                label=chunk.label,
                tags=list(chunk.tags),
                text_length=len(chunk.text),
                prepared_text_length=len(text),
                embedding=vector,
                model=provider.model_name,
            )
            result.paths.append(self.store.save(chunk, record))
            result.indexed.append(chunk.id)
            logger.debug(f"Indexed {chunk.id} ({len(vector)} dimensions)")

    @staticmethod
    def _check_dimension(provider: EmbeddingProvider, size: int, result: IndexResult) -> None:
        expected = result.stats.setdefault("embedding_dims", provider.dimension or size)
        if size != expected:
            raise EmbeddingError(f"Embedding dimension {size} does not match {expected}")


def index_chunks(
    chunks: Iterable[ContentChunk],
    content_root: PathLike = ".",
    provider: Optional[EmbeddingProvider] = None,
    **kwargs,
) -> IndexResult:
    """
    Convenience function to index chunks.

    Args:
        chunks: Chunks to embed
        content_root: Directory vector paths are resolved against
        provider: Embedding provider (from the environment if None)
        **kwargs: Additional IndexConfig options

    Returns:
        IndexResult with success status and written paths

    Example:
        result = index_chunks(registry.list(), content_root="./site", force=True)
        if not result.success:
            print(result.error)
    """
    config = IndexConfig(content_root=Path(content_root), **kwargs)
    return ChunkIndexer(config, provider=provider).index(chunks)
