"""
Prose primitives: headings, paragraphs and inline text.
"""
from __future__ import annotations

from typing import Any

from ..dispatch import multimodal
from ..extract import structural_text
from ..nodes import h
from ..render import markup_block
from ..serialize import create_indent, escape_scalar, render_map
from .block import normalize_block

HEADING_CLASSES = {
    1: "text-4xl font-bold mb-8",
    2: "text-3xl font-bold mb-6 mt-12",
    3: "text-2xl font-semibold mb-4 mt-8",
    4: "text-xl font-semibold mb-3 mt-6",
    5: "text-lg font-semibold mb-2 mt-4",
    6: "text-base font-semibold mb-2 mt-4",
}


def heading_level(level: Any) -> int:
    """
    Validate a heading level.

    Raises:
        ValueError: If level is not an integer from 1 to 6
    """
    if isinstance(level, bool) or not isinstance(level, int) or level not in HEADING_CLASSES:
        raise ValueError(f"heading level must be an integer from 1 to 6, got {level!r}")
    return level


# ============================================================================
# Heading
# ============================================================================

def _heading_markup(*, level: int = 2, children: Any = None, **_: Any) -> Any:
    hashes = "#" * heading_level(level)
    return markup_block(children, lambda text: normalize_block(f"{hashes} {text.strip()}"))


@multimodal(flat_markup=_heading_markup)
def Heading(*, level: int = 2, children: Any = None, **_: Any):
    """Section heading, ``h1`` to ``h6``."""
    level = heading_level(level)
    return h(f"h{level}", children, class_name=HEADING_CLASSES[level])


# ============================================================================
# Paragraph
# ============================================================================

def _paragraph_markup(*, children: Any = None, **_: Any) -> Any:
    return markup_block(children, normalize_block)


def _paragraph_serialized(*, children: Any = None, indent_level: int = 0, **_: Any) -> str:
    return render_map({"paragraph": {"text": structural_text(children)}}, indent_level)


@multimodal(flat_markup=_paragraph_markup, serialized=_paragraph_serialized)
def Paragraph(*, children: Any = None, **_: Any):
    return h("p", children, class_name="mb-6 text-gray-700 leading-relaxed")


# ============================================================================
# Inline text
# ============================================================================

def _text_markup(*, children: Any = None, **_: Any) -> Any:
    return markup_block(children, str)


def _text_serialized(*, children: Any = None, indent_level: int = 0, **_: Any) -> str:
    return f"{create_indent(indent_level)}{escape_scalar(structural_text(children))}"


@multimodal(flat_markup=_text_markup, serialized=_text_serialized)
def Text(*, children: Any = None, **_: Any):
    return h("span", children)


def _strong_markup(*, children: Any = None, **_: Any) -> Any:
    return markup_block(children, lambda text: f"**{text}**")


def _strong_serialized(*, children: Any = None, indent_level: int = 0, **_: Any) -> str:
    return render_map({"strong": {"text": structural_text(children)}}, indent_level)


@multimodal(flat_markup=_strong_markup, serialized=_strong_serialized)
def Strong(*, children: Any = None, **_: Any):
    return h("strong", children)


def _emphasis_markup(*, children: Any = None, **_: Any) -> Any:
    return markup_block(children, lambda text: f"*{text}*")


@multimodal(flat_markup=_emphasis_markup)
def Emphasis(*, children: Any = None, **_: Any):
    return h("em", children)


def _inline_code_markup(*, children: Any = None, **_: Any) -> Any:
    return markup_block(children, lambda text: f"`{text}`")


@multimodal(flat_markup=_inline_code_markup)
def InlineCode(*, children: Any = None, **_: Any):
    return h("code", children)
