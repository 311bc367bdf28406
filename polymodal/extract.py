"""
Text extraction - flat, searchable text from a content tree.

Extraction executes components the way a renderer would, so it reaches the
text that primitives produce. A component that raises (or that only renders
asynchronously) does not abort extraction: the failure is recorded, logged,
and the node's own children are extracted in its place.
"""
from __future__ import annotations

import inspect
import logging
import re
from typing import Any, Optional

from .nodes import NodeKind, PrimitiveNode, h
from .utils import ExtractionExecutionFailure, PendingRender

logger = logging.getLogger(__name__)

# Structural tags followed by a space so adjacent blocks don't run together
BLOCK_TAGS = frozenset({"p", "div", "li", "h1", "h2", "h3", "h4", "h5", "h6"})

_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")


class TextExtractor:
    """
    Walks a content tree and returns its text.

    Usage:
        extractor = TextExtractor()
        text = extractor.extract(tree)
        for failure in extractor.failures:
            print(failure.component, failure.cause)
    """

    def __init__(self):
        self.failures: list[ExtractionExecutionFailure] = []

    def extract(self, node: Any) -> str:
        if node is None or isinstance(node, bool):
            return ""
        if isinstance(node, str):
            return node
        if isinstance(node, (int, float)):
            return str(node)
        if isinstance(node, (list, tuple)):
            return "".join(self.extract(child) for child in node)

        kind = getattr(node, "kind", None)
        if kind is NodeKind.LEAF:
            return str(node.value)
        if kind is NodeKind.FRAGMENT:
            return self.extract(node.children)
        if kind is NodeKind.STRUCTURAL:
            text = self.extract(node.children)
            return f"{text} " if node.tag in BLOCK_TAGS else text
        if kind is NodeKind.PRIMITIVE:
            return self._execute(node)

        logger.debug(f"Skipping non-content value during extraction: {type(node).__name__}")
        return ""

    def _execute(self, node: PrimitiveNode) -> str:
        try:
            output = node.execute()
        except Exception as e:
            return self._fall_back(node, e)

        if inspect.isawaitable(output):
            if inspect.iscoroutine(output):
                output.close()
            return self._fall_back(node, PendingRender(node.name), logging.DEBUG)

        return self.extract(output)

    def _fall_back(
        self,
        node: PrimitiveNode,
        cause: BaseException,
        level: int = logging.WARNING,
    ) -> str:
        failure = ExtractionExecutionFailure(node.name, cause)
        self.failures.append(failure)
        logger.log(level, f"{failure}; extracting its children instead")
        return self.extract(node.children)


def extract_text(node: Any) -> str:
    """
    Extract the text of a content tree.

    Args:
        node: Any content: a node, a string or number, a list, or None

    Returns:
        Concatenated text; block-level structural tags add a trailing space

    Example:
        extract_text(["a", "b"])          # "ab"
        extract_text(h("p", "Hello"))     # "Hello "
    """
    return TextExtractor().extract(node)


def extract_component_text(
    component: Any,
    *children: Any,
    modality: Any = None,
    **props: Any,
) -> str:
    """Extract the text a single component invocation produces."""
    return extract_text(h(component, *children, modality=modality, **props))


def structural_text(node: Any) -> str:
    """
    Concatenate the leaves of a tree without executing anything.

    Primitive nodes contribute their children. Whitespace is kept exactly,
    so this is also how code blocks read their source text.
    """
    if node is None or isinstance(node, bool):
        return ""
    if isinstance(node, (str, int, float)):
        return str(node)
    if isinstance(node, (list, tuple)):
        return "".join(structural_text(child) for child in node)

    kind = getattr(node, "kind", None)
    if kind is NodeKind.LEAF:
        return str(node.value)
    if kind is None:
        return ""
    return structural_text(node.children)


def clean_text(text: Optional[str]) -> str:
    """Strip residual tags and collapse whitespace."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", _TAG.sub(" ", text)).strip()


def prepare_chunk_for_embedding(chunk: Any) -> str:
    """Text sent to the embedding provider: the label as a heading, then the body."""
    return f"# {chunk.label}\n\n{chunk.text}"
