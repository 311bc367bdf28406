"""
Chunk search - text, vector and hybrid ranking over content chunks.

Text search counts whole-word query term matches, weighting the chunk label
above the target's name and both above the chunk text, with a bonus for
each term found in a tag. Vector search ranks chunks with a stored
embedding by cosine similarity to the query embedding. Hybrid search merges
both lists with fixed weights, text results first.

Usage:
    results = text_search("islands hydration", registry.list())
    results = hybrid_search("partial hydration", registry.list(), content_root="./site")
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from .chunks import ContentChunk, EmbeddedChunk
from .embedder import EmbeddingProvider, create_provider
from .utils import EmbeddingError, PathLike
from .vectors import VectorStore, cosine_similarity

logger = logging.getLogger(__name__)

# Text score weights per term occurrence
LABEL_WEIGHT = 10
TARGET_NAME_WEIGHT = 5
TEXT_WEIGHT = 1
TAG_BONUS = 8

WHITESPACE = re.compile(r"\s+")


@dataclass
class SearchResult:
    """A ranked chunk. ``similarity`` is set for vector matches only."""

    chunk: ContentChunk
    score: float
    method: str  # "text" or "vector"
    similarity: Optional[float] = None


# ============================================================================
# Text scoring
# ============================================================================

def normalize_text(text: str) -> str:
    """Lowercase and collapse whitespace."""
    return WHITESPACE.sub(" ", text.lower().strip())


def extract_search_terms(query: str) -> list[str]:
    """Lowercased, whitespace-separated terms of a query."""
    return [term for term in normalize_text(query).split(" ") if term]


def count_word_occurrences(text: str, word: str) -> int:
    """Whole-word, case-insensitive occurrences of ``word`` in ``text``."""
    word = normalize_text(word)
    if not word:
        return 0
    pattern = re.compile(rf"\b{re.escape(word)}\b")
    return len(pattern.findall(normalize_text(text)))


def calculate_text_score(text: str, label: str, target_name: str, terms: Iterable[str]) -> int:
    score = 0
    for term in terms:
        score += count_word_occurrences(label, term) * LABEL_WEIGHT
        score += count_word_occurrences(target_name, term) * TARGET_NAME_WEIGHT
        score += count_word_occurrences(text, term) * TEXT_WEIGHT
    return score


def tag_bonus(chunk: ContentChunk, terms: Iterable[str]) -> int:
    """TAG_BONUS for each term contained in any of the chunk's tags."""
    tags = [tag.lower() for tag in chunk.tags]
    return sum(TAG_BONUS for term in terms if any(term in tag for tag in tags))


def _ranked(results: list[SearchResult], limit: int) -> list[SearchResult]:
    return sorted(results, key=lambda result: result.score, reverse=True)[:limit]


# ============================================================================
# Search
# ============================================================================

def text_search(
    query: str,
    chunks: Iterable[ContentChunk],
    limit: int = 10,
    min_score: float = 1,
) -> list[SearchResult]:
    """
    Rank chunks by query term matches.

    Args:
        query: Search query
        chunks: Chunks to search
        limit: Maximum number of results
        min_score: Drop chunks scoring below this

    Returns:
        Results, best first
    """
    terms = extract_search_terms(query)
    results = []
    for chunk in chunks:
        score = calculate_text_score(chunk.text, chunk.label, chunk.target.name, terms)
        score += tag_bonus(chunk, terms)
        if score >= min_score:
            results.append(SearchResult(chunk=chunk, score=score, method="text"))
    return _ranked(results, limit)


def load_searchable(chunks: Iterable[ContentChunk], store: VectorStore) -> list[EmbeddedChunk]:
    """
    Chunks with an embedding; chunks without a readable record are skipped.
    """
    embedded = []
    for chunk in chunks:
        if isinstance(chunk, EmbeddedChunk):
            embedded.append(chunk)
            continue
        if not store.exists(chunk):
            logger.debug(f"Skipping chunk {chunk.id} - no embedding file found")
            continue
        try:
            embedded.append(store.load(chunk))
        except EmbeddingError as e:
            logger.warning(f"Skipping chunk {chunk.id}: {e}")
    return embedded


def vector_search(
    query: str,
    chunks: Iterable[ContentChunk],
    provider: Optional[EmbeddingProvider] = None,
    content_root: Optional[PathLike] = None,
    limit: int = 10,
    threshold: float = 0.1,
) -> list[SearchResult]:
    """
    Rank chunks by cosine similarity between the query and their embeddings.

    Args:
        query: Search query, embedded with ``provider``
        chunks: Chunks to search; EmbeddedChunks are used as they are,
            others are loaded from their vector records
        provider: Embedding provider (from the environment if None)
        content_root: Directory vector paths resolve against (default: cwd)
        limit: Maximum number of results
        threshold: Drop chunks less similar than this

    Returns:
        Results, most similar first; empty when no chunk has an embedding

    Raises:
        EmbeddingError: If a stored embedding does not match the query's dimension
    """
    embedded = load_searchable(chunks, VectorStore(content_root))
    if not embedded:
        logger.info("No chunks with embeddings found for vector search")
        return []

    provider = provider or create_provider()
    query_embedding = provider.generate_embedding(query)

    results = []
    for chunk in embedded:
        try:
            similarity = cosine_similarity(query_embedding, chunk.embedding)
        except ValueError as e:
            raise EmbeddingError(f"Cannot compare query with chunk {chunk.id}: {e}") from e
        if similarity >= threshold:
            results.append(
                SearchResult(chunk=chunk, score=similarity, method="vector", similarity=similarity)
            )
    return _ranked(results, limit)


def hybrid_search(
    query: str,
    chunks: Sequence[ContentChunk],
    provider: Optional[EmbeddingProvider] = None,
    content_root: Optional[PathLike] = None,
    limit: int = 10,
    text_weight: float = 0.6,
    vector_weight: float = 0.4,
    text_min_score: float = 0.1,
    vector_threshold: float = 0.3,
) -> list[SearchResult]:
    """
    Merge text and vector results.

    Text results come first and keep their chunk when both methods match
    it. Scores are weighted (text score * text_weight, similarity *
    vector_weight) and the merged list is ranked again. If vector search
    fails the text results are returned alone.

    Returns:
        Results, best first
    """
    chunks = list(chunks)
    text_results = text_search(query, chunks, limit=len(chunks), min_score=text_min_score)
    try:
        vector_results = vector_search(
            query,
            chunks,
            provider=provider,
            content_root=content_root,
            limit=len(chunks),
            threshold=vector_threshold,
        )
    except Exception as e:
        logger.warning(f"Vector search failed, using text results only: {e}")
        vector_results = []

    merged: dict[str, SearchResult] = {}
    for result in text_results:
        merged.setdefault(
            result.chunk.id,
            SearchResult(chunk=result.chunk, score=result.score * text_weight, method="text"),
        )
    for result in vector_results:
        merged.setdefault(
            result.chunk.id,
            SearchResult(
                chunk=result.chunk,
                score=result.score * vector_weight,
                method="vector",
                similarity=result.similarity,
            ),
        )
    return _ranked(list(merged.values()), limit)
