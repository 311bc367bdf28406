"""
Code blocks with syntax highlighting.

The display form is asynchronous: highlighting goes through a Highlighter,
whose ``tokenize`` is a coroutine. Render trees containing a display
CodeBlock with ``arender``. Flat markup is a fenced block and renders
synchronously.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, runtime_checkable

from ..dispatch import multimodal
from ..extract import structural_text
from ..nodes import Node, h
from .block import normalize_block

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "markdown"

LANGUAGE_ALIASES = {
    "ts": "typescript",
    "typescript": "typescript",
    "tsx": "tsx",
    "js": "javascript",
    "javascript": "javascript",
    "jsx": "jsx",
    "py": "python",
    "python": "python",
    "bash": "bash",
    "sh": "bash",
    "shell": "bash",
    "json": "json",
    "sql": "sql",
    "yaml": "yaml",
    "yml": "yaml",
    "txt": DEFAULT_LANGUAGE,
    "text": DEFAULT_LANGUAGE,
}


def normalize_language(language: Optional[str]) -> str:
    """Map an authored language name to a highlighter language id."""
    if not language:
        return DEFAULT_LANGUAGE
    return LANGUAGE_ALIASES.get(language.lower(), DEFAULT_LANGUAGE)


@dataclass(frozen=True)
class Token:
    """A run of source text with one colour."""
    content: str
    color: Optional[str] = None


@dataclass(frozen=True)
class HighlightResult:
    """Tokenized source, one list of tokens per line."""
    lines: list[list[Token]] = field(default_factory=list)
    foreground: Optional[str] = None
    background: Optional[str] = None


@runtime_checkable
class Highlighter(Protocol):
    async def tokenize(self, code: str, language: str) -> Optional[HighlightResult]:
        """Tokenize ``code``; None means render it unhighlighted."""
        ...


class PlainHighlighter:
    """Highlighter that emits one uncoloured token per line."""

    async def tokenize(self, code: str, language: str) -> Optional[HighlightResult]:
        return HighlightResult(lines=[[Token(line)] for line in code.split("\n")])


DEFAULT_HIGHLIGHTER = PlainHighlighter()


def _plain_block(code: str, class_name: str) -> Node:
    classes = f"bg-gray-900 text-gray-100 p-4 rounded-lg overflow-x-auto {class_name}".strip()
    return h("pre", h("code", code), class_name=classes)


def _highlighted_block(result: HighlightResult, class_name: str) -> Node:
    lines = []
    last = len(result.lines) - 1
    for index, tokens in enumerate(result.lines):
        spans = [
            h("span", token.content, style={"color": token.color} if token.color else None)
            for token in tokens
        ]
        if index < last:
            spans.append("\n")
        lines.append(h("div", spans))

    style = {"background_color": result.background, "color": result.foreground}
    style = {key: value for key, value in style.items() if value}
    return h(
        "pre",
        h("code", lines, class_name="block p-4"),
        class_name=f"rounded-lg overflow-x-auto {class_name}".strip(),
        style=style or None,
    )


def _code_markup(*, language: str = "", children: Any = None, **_: Any) -> str:
    return normalize_block(f"```{language or ''}\n{structural_text(children)}\n```")


@multimodal(flat_markup=_code_markup)
async def CodeBlock(
    *,
    language: str = "",
    filename: Optional[str] = None,
    children: Any = None,
    highlighter: Optional[Highlighter] = None,
    **_: Any,
):
    """
    Highlighted code block.

    Args:
        language: Authored language name (aliases like ``ts`` or ``yml`` accepted)
        filename: Optional caption shown above the code
        children: The source text
        highlighter: Tokenizer to use (defaults to PlainHighlighter)
    """
    code = structural_text(children)
    highlighter = highlighter or DEFAULT_HIGHLIGHTER

    try:
        result = await highlighter.tokenize(code, normalize_language(language))
    except Exception as e:
        logger.warning(f"Failed to highlight code: {e}")
        result = None

    rounding = "rounded-t-none" if filename else ""
    block = _plain_block(code, rounding) if result is None else _highlighted_block(result, rounding)

    children = []
    if filename:
        children.append(h(
            "div",
            filename,
            class_name="bg-gray-100 px-4 py-2 text-sm text-gray-600 border-b border-gray-300 rounded-t-lg",
        ))
    children.append(block)
    return h("div", children, class_name="code-section my-6")
