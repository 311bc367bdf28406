"""
Utility functions for the polymodal engine.
Provides the error hierarchy plus helpers for batching and YAML file I/O.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Generator, Optional, TypeVar, Union

import yaml

# Type definitions
PathLike = Union[str, Path]
T = TypeVar("T")

logger = logging.getLogger(__name__)


# ============================================================================
# Batching Utilities
# ============================================================================

def batch_iter(
    items: list[T],
    batch_size: int,
) -> Generator[list[T], None, None]:
    """
    Iterate over items in batches.

    Args:
        items: List of items to batch
        batch_size: Maximum items per batch

    Yields:
        Lists of items, each up to batch_size in length

    Example:
        for batch in batch_iter(texts, batch_size=32):
            vectors = provider.generate_embeddings(batch)
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    for i in range(0, len(items), batch_size):
        yield items[i:i + batch_size]


# ============================================================================
# File I/O Utilities
# ============================================================================

def read_yaml(path: PathLike) -> Any:
    """
    Read and parse a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Parsed YAML data (None for an empty file)

    Raises:
        FileNotFoundError: If file doesn't exist
        yaml.YAMLError: If file isn't valid YAML
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def write_yaml(
    data: Any,
    path: PathLike,
) -> Path:
    """
    Write data to a YAML file, creating parent directories.

    Args:
        data: Data to serialize (plain dicts, lists and scalars)
        path: Output path

    Returns:
        Path to written file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)

    return path


# ============================================================================
# Error Handling
# ============================================================================

class PolymodalError(Exception):
    """Base exception for polymodal errors."""
    pass


class ContentError(PolymodalError):
    """Error caused by how a content tree was authored or invoked."""
    pass


class InvalidModality(ContentError, ValueError):
    """A modality value outside the closed set reached the engine."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"invalid modality: {value!r}")


class UnsupportedModality(ContentError):
    """A primitive has no usable implementation for the requested modality."""

    def __init__(self, primitive: str, modality: Any, reason: Optional[str] = None):
        self.primitive = primitive
        self.modality = modality
        message = f"primitive {primitive!r} does not support modality {_modality_name(modality)!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ModalityMismatch(ContentError):
    """A tree mixes primitive nodes built for different modalities."""

    def __init__(self, parent: str, expected: Any, child: str, found: Any):
        self.parent = parent
        self.expected = expected
        self.child = child
        self.found = found
        super().__init__(
            f"{child!r} was built for {_modality_name(found)!r} but is a child "
            f"of {parent!r} built for {_modality_name(expected)!r}"
        )


class PendingRender(ContentError):
    """A synchronous render reached a primitive that produced an awaitable."""

    def __init__(self, primitive: str):
        self.primitive = primitive
        super().__init__(
            f"primitive {primitive!r} rendered asynchronously; use arender() instead"
        )


class EscapeEncodingError(ContentError, TypeError):
    """A value the serialization escaper cannot encode."""
    pass


class ExtractionExecutionFailure(PolymodalError):
    """
    A component raised while being executed for text extraction.

    The extractor records and logs these; it never raises them.
    """

    def __init__(self, component: str, cause: BaseException):
        self.component = component
        self.cause = cause
        super().__init__(f"Failed to execute component {component}: {cause}")


class EmbeddingError(PolymodalError):
    """Error during embedding generation or vector record I/O."""
    pass


def _modality_name(modality: Any) -> str:
    return getattr(modality, "value", modality)
