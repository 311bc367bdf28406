"""
List primitives.

Flat markup renders one line per item. Items are the list's children with
fragments opened up; whitespace-only children are dropped so authored
layout between items does not produce empty bullets.
"""
from __future__ import annotations

from typing import Any

from ..dispatch import multimodal
from ..nodes import h
from ..render import markup_block, markup_items_block
from .block import normalize_block


def _bullet_lines(texts: list[str]) -> str:
    lines = [f"- {text}" for text in texts]
    return normalize_block("\n".join(lines)) if lines else ""


def _list_markup(*, children: Any = None, **_: Any) -> Any:
    return markup_items_block(children, _bullet_lines)


def _ordered_list_markup(*, children: Any = None, start: int = 1, **_: Any) -> Any:
    def numbered(texts: list[str]) -> str:
        lines = [f"{start + i}. {text}" for i, text in enumerate(texts)]
        return normalize_block("\n".join(lines)) if lines else ""

    return markup_items_block(children, numbered)


@multimodal(flat_markup=_list_markup)
def List(*, children: Any = None, **_: Any):
    """Unordered list."""
    return h("ul", children)


@multimodal(flat_markup=_ordered_list_markup)
def OrderedList(*, children: Any = None, start: int = 1, **_: Any):
    """Ordered list, numbered from ``start``."""
    return h("ol", children, start=start if start != 1 else None)


@multimodal(flat_markup=lambda *, children=None, **_: markup_block(children, str))
def ListItem(*, children: Any = None, **_: Any):
    """List item. Its bullet comes from the enclosing list."""
    return h("li", children)
