"""
Content chunk model.

A chunk is a labelled piece of searchable text that belongs to one piece of
content (an article, a doc page, a lab). Chunks are what gets embedded and
searched; the embedding itself lives in a YAML vector record on disk and is
only attached when loaded (see vectors.VectorStore).

Example:
    article = ContentMeta(kind="article", slug="islands", name="Islands")
    make_chunk = chunker(article, vector_dir="content/articles/islands")

    intro = make_chunk(id="islands-intro", label="Introduction", text=tree)
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Iterable, Iterator, Optional

from .extract import clean_text, extract_text
from .utils import EmbeddingError, PathLike

logger = logging.getLogger(__name__)


def unique_tags(tags: Optional[Iterable[str]]) -> tuple[str, ...]:
    """Tags in first-seen order with duplicates and blanks removed."""
    seen: dict[str, None] = {}
    for tag in tags or ():
        tag = str(tag).strip()
        if tag:
            seen.setdefault(tag, None)
    return tuple(seen)


@dataclass(frozen=True)
class ContentMeta:
    """
    The piece of content chunks belong to.

    ``kind`` is usually one of article, doc, lab, library, scenario or
    contributor, but any string is accepted.
    """
    kind: str
    slug: str
    name: str
    blurb: str = ""
    tags: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "tags", unique_tags(self.tags))

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "slug": self.slug,
            "name": self.name,
            "blurb": self.blurb,
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContentMeta":
        return cls(
            kind=data["kind"],
            slug=data["slug"],
            name=data["name"],
            blurb=data.get("blurb", ""),
            tags=tuple(data.get("tags", ())),
        )


@dataclass(frozen=True)
class ContentChunk:
    """
    A labelled unit of searchable text.

    Chunks are immutable: regenerating a chunk builds a new one. Tags keep
    their order for display but match as a set.
    """
    id: str
    target: ContentMeta
    label: str
    tags: tuple[str, ...]
    text: str
    vector_path: str = ""

    def __post_init__(self):
        if not self.id:
            raise ValueError("chunk id must not be empty")
        object.__setattr__(self, "tags", unique_tags(self.tags))

    @property
    def tag_set(self) -> frozenset[str]:
        return frozenset(self.tags)

    def has_tags(self, tags: Iterable[str], match_all: bool = True) -> bool:
        """True when the chunk carries all (or, with match_all=False, any) of ``tags``."""
        wanted = set(tags)
        if match_all:
            return wanted <= self.tag_set
        return bool(wanted & self.tag_set)

    def with_embedding(self, embedding: Iterable[float]) -> "EmbeddedChunk":
        """Attach an embedding, returning a new EmbeddedChunk."""
        values = {f.name: getattr(self, f.name) for f in fields(ContentChunk)}
        return EmbeddedChunk(**values, embedding=tuple(float(v) for v in embedding))

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dict (the target nested as a dict)."""
        return {
            "id": self.id,
            "target": self.target.to_dict(),
            "label": self.label,
            "tags": list(self.tags),
            "text": self.text,
            "vector_path": self.vector_path,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContentChunk":
        return cls(
            id=data["id"],
            target=ContentMeta.from_dict(data["target"]),
            label=data["label"],
            tags=tuple(data.get("tags", ())),
            text=data.get("text", ""),
            vector_path=data.get("vector_path", ""),
        )


@dataclass(frozen=True)
class EmbeddedChunk(ContentChunk):
    """A chunk with its embedding attached."""
    embedding: tuple[float, ...] = field(default=(), repr=False)

    def __post_init__(self):
        super().__post_init__()
        if not self.embedding:
            raise EmbeddingError(f"chunk {self.id!r} has an empty embedding")
        if not all(isinstance(v, (int, float)) and math.isfinite(v) for v in self.embedding):
            raise EmbeddingError(f"chunk {self.id!r} has a non-finite embedding value")

    @property
    def dimension(self) -> int:
        return len(self.embedding)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["embedding"] = list(self.embedding)
        return result


def build_chunk(
    target: ContentMeta,
    id: str,
    label: str,
    text: Any,
    tags: Optional[Iterable[str]] = None,
    vector_path: str = "",
) -> ContentChunk:
    """
    Build a chunk for ``target``.

    Args:
        target: Content the chunk belongs to
        id: Stable chunk id
        label: Human-readable label (used as the embedding heading)
        text: Chunk text, or a content tree to extract it from
        tags: Chunk tags (defaults to the target's tags)
        vector_path: Where the chunk's vector record lives

    Returns:
        A new ContentChunk
    """
    if not isinstance(text, str):
        text = clean_text(extract_text(text))

    return ContentChunk(
        id=id,
        target=target,
        label=label,
        tags=tuple(target.tags if tags is None else tags),
        text=text,
        vector_path=vector_path,
    )


def chunker(
    target: ContentMeta,
    vector_dir: Optional[PathLike] = None,
) -> Callable[..., ContentChunk]:
    """
    Chunk factory bound to one piece of content.

    Args:
        target: Content every chunk belongs to
        vector_dir: Content directory; when set, chunks built without an
            explicit vector_path get ``{vector_dir}/vectors/{id}.yml``

    Returns:
        A function taking build_chunk's remaining arguments
    """
    # Import here to avoid circular imports
    from .vectors import create_vector_path, vector_filename

    def make_chunk(
        id: str,
        label: str,
        text: Any,
        tags: Optional[Iterable[str]] = None,
        vector_path: Optional[str] = None,
    ) -> ContentChunk:
        if vector_path is None:
            vector_path = (
                create_vector_path(vector_dir, vector_filename(id)) if vector_dir is not None else ""
            )
        return build_chunk(target, id, label, text, tags=tags, vector_path=vector_path)

    return make_chunk


class ChunkRegistry:
    """
    Registry of content chunks, keyed by id.

    Usage:
        registry = ChunkRegistry()
        registry.register_all(article_chunks)

        react = registry.by_tags(["react"])
        islands = registry.by_target("article", "islands")
    """

    def __init__(self, chunks: Optional[Iterable[ContentChunk]] = None):
        self._chunks: dict[str, ContentChunk] = {}
        if chunks is not None:
            self.register_all(chunks)

    def register(self, chunk: ContentChunk) -> None:
        """
        Register a chunk.

        Raises:
            ValueError: If a chunk with the same id is already registered
        """
        if chunk.id in self._chunks:
            raise ValueError(f"Chunk already registered: {chunk.id}")
        self._chunks[chunk.id] = chunk
        logger.debug(f"Registered chunk: {chunk.id} ({chunk.target.kind}/{chunk.target.slug})")

    def register_all(self, chunks: Iterable[ContentChunk]) -> None:
        for chunk in chunks:
            self.register(chunk)

    def remove(self, chunk_id: str) -> bool:
        """
        Remove a chunk by id.

        Returns:
            True if a chunk was removed, False otherwise
        """
        return self._chunks.pop(chunk_id, None) is not None

    def get(self, chunk_id: str) -> Optional[ContentChunk]:
        """Get a chunk by id."""
        return self._chunks.get(chunk_id)

    def list(self) -> list[ContentChunk]:
        """All chunks in registration order."""
        return list(self._chunks.values())

    def by_target(self, kind: str, slug: Optional[str] = None) -> list[ContentChunk]:
        """Chunks belonging to content of ``kind`` (and ``slug``, if given)."""
        return [
            chunk for chunk in self._chunks.values()
            if chunk.target.kind == kind and (slug is None or chunk.target.slug == slug)
        ]

    def by_tags(self, tags: Iterable[str], match_all: bool = False) -> list[ContentChunk]:
        """Chunks carrying any (or, with match_all=True, all) of ``tags``."""
        tags = list(tags)
        return [chunk for chunk in self._chunks.values() if chunk.has_tags(tags, match_all)]

    def __contains__(self, chunk_id: object) -> bool:
        return chunk_id in self._chunks

    def __len__(self) -> int:
        return len(self._chunks)

    def __iter__(self) -> Iterator[ContentChunk]:
        return iter(self._chunks.values())
