"""
Vector records - where chunk embeddings live and how they are read back.

Each chunk's embedding is stored in its own YAML file next to the content it
belongs to:

    content/articles/{slug}/vectors/{chunk-id}.yml

    id: islands-intro
    label: Introduction
    tags: [react, islands]
    textLength: 812
    preparedTextLength: 828
    embedding: [0.0123, -0.0456, ...]
    model: text-embedding-3-small
    generatedAt: '2025-01-05T12:00:00+00:00'

Embeddings are loaded lazily by VectorStore, never during tree traversal.
"""
from __future__ import annotations

import hashlib
import logging
import math
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

import numpy as np
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .chunks import ContentChunk, EmbeddedChunk
from .utils import EmbeddingError, PathLike, read_yaml, write_yaml

logger = logging.getLogger(__name__)

VECTOR_DIR = "vectors"
VECTOR_SUFFIX = ".yml"

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]+")


# ============================================================================
# Paths
# ============================================================================

def vector_filename(chunk_id: str) -> str:
    """
    File stem for a chunk's vector record.

    Ids that are already filesystem-safe are used unchanged. Anything else is
    sanitized and suffixed with a short hash of the original id, so distinct
    ids never share a file.
    """
    safe = _UNSAFE_FILENAME.sub("-", chunk_id).strip("-.")
    if safe == chunk_id:
        return chunk_id
    digest = hashlib.sha256(chunk_id.encode("utf-8")).hexdigest()[:8]
    return f"{safe}-{digest}" if safe else digest


def create_vector_path(content_dir: PathLike, filename: str) -> str:
    """Relative path of a vector record: ``{content_dir}/vectors/{filename}.yml``."""
    return (Path(content_dir) / VECTOR_DIR / f"{filename}{VECTOR_SUFFIX}").as_posix()


def create_article_vector_path(slug: str, filename: str) -> str:
    return create_vector_path(f"content/articles/{slug}", filename)


def create_lab_vector_path(slug: str, filename: str) -> str:
    return create_vector_path(f"content/labs/{slug}", filename)


def create_doc_vector_path(slug: str, filename: str) -> str:
    return create_vector_path(f"content/docs/{slug}", filename)


def resolve_vector_path(vector_path: PathLike, root: Optional[PathLike] = None) -> Path:
    """Absolute path of a vector record; relative paths resolve against ``root`` (default: cwd)."""
    path = Path(vector_path)
    if path.is_absolute():
        return path
    return (Path(root) if root is not None else Path.cwd()).resolve() / path


# ============================================================================
# Embedding math
# ============================================================================

def validate_embedding(embedding: Any) -> bool:
    """True for a non-empty sequence of finite numbers."""
    if not isinstance(embedding, (list, tuple, np.ndarray)) or len(embedding) == 0:
        return False
    return all(
        isinstance(v, (int, float, np.floating, np.integer))
        and not isinstance(v, bool)
        and math.isfinite(v)
        for v in embedding
    )


def normalize_embedding(embedding: Sequence[float]) -> list[float]:
    """Scale to unit length; a zero vector is returned unchanged."""
    vector = np.asarray(embedding, dtype=np.float64)
    magnitude = np.linalg.norm(vector)
    if magnitude == 0:
        return vector.tolist()
    return (vector / magnitude).tolist()


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two embeddings.

    Returns:
        Similarity in [-1, 1], or 0.0 if either vector has zero length

    Raises:
        ValueError: If the vectors differ in dimension
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Embedding vectors must have the same dimension ({va.size} != {vb.size})")

    magnitude = np.linalg.norm(va) * np.linalg.norm(vb)
    if magnitude == 0:
        return 0.0
    return float(np.dot(va, vb) / magnitude)


# ============================================================================
# Records
# ============================================================================

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EmbeddingRecord(BaseModel):
    """A persisted chunk embedding."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    label: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    text_length: Optional[int] = Field(default=None, alias="textLength")
    prepared_text_length: Optional[int] = Field(default=None, alias="preparedTextLength")
    embedding: list[float]
    model: str
    generated_at: datetime = Field(default_factory=_utcnow, alias="generatedAt")

    @field_validator("embedding")
    @classmethod
    def _check_embedding(cls, value: list[float]) -> list[float]:
        if not validate_embedding(value):
            raise ValueError("embedding must be a non-empty list of finite numbers")
        return value

    @property
    def dimension(self) -> int:
        return len(self.embedding)

    def to_yaml_dict(self) -> dict[str, Any]:
        """Plain dict in the on-disk key order and spelling."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class VectorStore:
    """
    Reads and writes vector records for chunks.

    Usage:
        store = VectorStore(root="/srv/site")
        embedded = store.load_embeddings(registry.by_target("article"))
    """

    def __init__(self, root: Optional[PathLike] = None):
        self.root = Path(root) if root is not None else Path.cwd()

    def path_for(self, chunk: ContentChunk) -> Path:
        """
        Raises:
            EmbeddingError: If the chunk has no vector path
        """
        if not chunk.vector_path:
            raise EmbeddingError(f"Chunk {chunk.id!r} has no vector path")
        return resolve_vector_path(chunk.vector_path, self.root)

    def exists(self, chunk: ContentChunk) -> bool:
        return bool(chunk.vector_path) and self.path_for(chunk).is_file()

    def save(self, chunk: ContentChunk, record: EmbeddingRecord) -> Path:
        """Write ``record`` to the chunk's vector path."""
        path = write_yaml(record.to_yaml_dict(), self.path_for(chunk))
        logger.debug(f"Wrote vector record: {path}")
        return path

    def load_record(self, chunk: ContentChunk) -> EmbeddingRecord:
        """
        Read the chunk's vector record.

        Raises:
            EmbeddingError: If the file is missing, is not valid YAML, or
                holds no valid embedding
        """
        path = self.path_for(chunk)
        if not path.is_file():
            raise EmbeddingError(f"Embedding file not found: {path}")

        try:
            data = read_yaml(path)
        except yaml.YAMLError as e:
            raise EmbeddingError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("embedding"), list):
            raise EmbeddingError(f"Invalid embedding data in {path}")

        data.setdefault("id", chunk.id)
        data.setdefault("model", "unknown")
        try:
            record = EmbeddingRecord.model_validate(data)
        except ValidationError as e:
            raise EmbeddingError(f"Invalid embedding data in {path}: {e}") from e

        if record.id != chunk.id:
            logger.warning(f"Vector record {path} belongs to {record.id!r}, not {chunk.id!r}")
        return record

    def load(self, chunk: ContentChunk) -> EmbeddedChunk:
        """Attach the stored embedding to ``chunk``."""
        return chunk.with_embedding(self.load_record(chunk).embedding)

    def load_embeddings(self, chunks: Iterable[ContentChunk]) -> list[EmbeddedChunk]:
        """
        Load embeddings for many chunks.

        Raises:
            EmbeddingError: If any record fails to load, or the records
                disagree on dimension
        """
        embedded = []
        for chunk in chunks:
            try:
                embedded.append(self.load(chunk))
            except EmbeddingError as e:
                logger.error(f"Failed to load embedding for chunk {chunk.label}: {e}")
                raise

        dimensions = {chunk.dimension for chunk in embedded}
        if len(dimensions) > 1:
            raise EmbeddingError(f"Embeddings have mixed dimensions: {sorted(dimensions)}")
        return embedded
