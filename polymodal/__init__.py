"""
Polymodal - one content tree, many outputs.

This package provides:
- Content trees: h(), fragment() and the Modality tag
- multimodal(): per-modality component dispatch
- A primitive catalog (Heading, Paragraph, List, Link, CodeBlock, ...)
- render() / arender(): display element trees, flat markup, serialized text
- extract_text(): search text from any tree
- Content chunks, vector records, embedding providers and chunk search
- CLI: rendering, chunk listing, embedding generation and search

Quick Start:
    from polymodal import Modality, h, render
    from polymodal.primitives import Article, Heading, Paragraph

    def page(m):
        return h(Article, h(Heading, "Islands", level=1, modality=m),
                 h(Paragraph, "Ship less JavaScript.", modality=m), modality=m)

    render(page(Modality.FLAT_MARKUP), Modality.FLAT_MARKUP)
    # "# Islands\\n\\nShip less JavaScript.\\n\\n"
"""

from .nodes import Element, Fragment, Leaf, Modality, NodeKind, PrimitiveNode, fragment, h
from .dispatch import MultiModalComponent, multimodal, passthrough, suppressed
from .render import arender, clean_markup_output, render, render_markup, render_mode, to_html
from .extract import TextExtractor, clean_text, extract_text, prepare_chunk_for_embedding
from .serialize import escape_scalar, to_serialized
from .chunks import ChunkRegistry, ContentChunk, ContentMeta, EmbeddedChunk, chunker
from .utils import (
    ContentError,
    EmbeddingError,
    EscapeEncodingError,
    ExtractionExecutionFailure,
    InvalidModality,
    ModalityMismatch,
    PendingRender,
    PolymodalError,
    UnsupportedModality,
)

__all__ = [
    # Content trees
    "Modality",
    "NodeKind",
    "Leaf",
    "Element",
    "Fragment",
    "PrimitiveNode",
    "h",
    "fragment",
    # Dispatch
    "MultiModalComponent",
    "multimodal",
    "suppressed",
    "passthrough",
    # Rendering
    "render",
    "arender",
    "render_mode",
    "render_markup",
    "to_html",
    "clean_markup_output",
    # Extraction
    "TextExtractor",
    "extract_text",
    "clean_text",
    "prepare_chunk_for_embedding",
    # Serialization
    "escape_scalar",
    "to_serialized",
    # Chunks
    "ContentMeta",
    "ContentChunk",
    "EmbeddedChunk",
    "ChunkRegistry",
    "chunker",
    # Errors
    "PolymodalError",
    "ContentError",
    "InvalidModality",
    "UnsupportedModality",
    "ModalityMismatch",
    "PendingRender",
    "EscapeEncodingError",
    "ExtractionExecutionFailure",
    "EmbeddingError",
]
