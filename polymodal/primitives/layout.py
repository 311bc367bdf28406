"""
Layout primitives.

Grouping primitives (Container, Section, ArticleHeader) have no textual
form of their own: in flat markup and serialized output they pass their
children through.
"""
from __future__ import annotations

from typing import Any, Optional

from ..dispatch import multimodal, passthrough
from ..nodes import h
from ..render import markup_block, serialized_items_block
from ..serialize import create_indent
from .block import normalize_block


def _article_serialized(*, children: Any = None, indent_level: int = 0, **_: Any) -> Any:
    pad = create_indent(indent_level)

    def article(items: str) -> str:
        if not items:
            return f"{pad}article: []"
        return f"{pad}article:\n{items}"

    return serialized_items_block(children, indent_level + 1, article)


@multimodal(flat_markup=passthrough, serialized=_article_serialized)
def Article(*, children: Any = None, **_: Any):
    """Article root. Serialized output lists the article's blocks in order."""
    return h("article", children, class_name="max-w-4xl mx-auto px-6 py-12")


def _header_markup(*, children: Any = None, **_: Any) -> Any:
    return markup_block(children, lambda text: normalize_block(text.strip()))


@multimodal(flat_markup=_header_markup)
def Header(*, children: Any = None, **_: Any):
    return h("header", children, class_name="mb-12")


@multimodal(flat_markup=passthrough)
def ArticleHeader(*, children: Any = None, **_: Any):
    return h("section", children, class_name="mb-6")


def _footer_markup(*, children: Any = None, **_: Any) -> Any:
    return markup_block(children, lambda text: normalize_block(f"---\n\n{text.strip()}"))


@multimodal(flat_markup=_footer_markup)
def Footer(*, children: Any = None, **_: Any):
    return h("footer", children, class_name="mt-16 pt-8 border-t border-gray-200")


@multimodal(flat_markup=passthrough, serialized=passthrough)
def Section(*, children: Any = None, class_name: Optional[str] = None, **_: Any):
    return h("section", children, class_name=class_name)


@multimodal(flat_markup=passthrough, serialized=passthrough)
def Container(*, children: Any = None, class_name: Optional[str] = None, **_: Any):
    return h("div", children, class_name=class_name)
