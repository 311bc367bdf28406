"""
Link primitives: plain links and tag links.
"""
from __future__ import annotations

from typing import Any, Iterable, Optional
from urllib.parse import quote

from ..dispatch import multimodal
from ..extract import structural_text
from ..nodes import Node, fragment, h
from ..render import markup_block
from ..serialize import render_map
from .block import normalize_block

TAG_INDEX = "/articles"

# Unreserved in URI components, beyond quote()'s own safe set
URI_COMPONENT_SAFE = "!~*'()"


def tag_href(tag: str, base: str = TAG_INDEX) -> str:
    """Listing URL filtered by ``tag``."""
    return f"{base}?tag={quote(tag, safe=URI_COMPONENT_SAFE)}"


def tag_markup_links(tags: Iterable[str], base: str = TAG_INDEX) -> str:
    return ", ".join(f"[{tag}]({tag_href(tag, base)})" for tag in tags)


def _tag_elements(tags: Iterable[str], base: str, class_name: Optional[str] = None) -> list[Node]:
    return [h("a", tag, href=tag_href(tag, base), class_name=class_name) for tag in tags]


# ============================================================================
# Link
# ============================================================================

def _link_markup(*, href: str, children: Any = None, **_: Any) -> Any:
    return markup_block(children, lambda text: f"[{text}]({href})")


def _link_serialized(*, href: str, children: Any = None, indent_level: int = 0, **_: Any) -> str:
    return render_map(
        {"link": {"text": structural_text(children), "href": href}},
        indent_level,
    )


@multimodal(flat_markup=_link_markup, serialized=_link_serialized)
def Link(*, href: str, children: Any = None, class_name: Optional[str] = None, **_: Any):
    classes = "text-blue-600 hover:text-blue-800 transition-colors"
    if class_name:
        classes = f"{classes} {class_name}"
    return h("a", children, href=href, class_name=classes)


# ============================================================================
# Tags
# ============================================================================

def _tags_markup(*, tags: Iterable[str] = (), base: str = TAG_INDEX, **_: Any) -> str:
    tags = list(tags)
    if not tags:
        return ""
    return f"**Tags:** {tag_markup_links(tags, base)}"


@multimodal(flat_markup=_tags_markup)
def Tags(*, tags: Iterable[str] = (), base: str = TAG_INDEX, **_: Any):
    """Tag pills linking to the tag listing."""
    pill = "px-3 py-1 bg-blue-100 text-blue-800 text-sm rounded-full hover:bg-blue-200"
    return h("div", _tag_elements(tags, base, pill), class_name="flex flex-wrap gap-2 mb-4")


def _tags_list_markup(*, label: str = "", tags: Iterable[str] = (), base: str = TAG_INDEX, **_: Any) -> str:
    tags = list(tags)
    if not tags:
        return ""
    return normalize_block(f"{label} {tag_markup_links(tags, base)}".strip())


@multimodal(flat_markup=_tags_list_markup)
def TagsList(*, label: str = "", tags: Iterable[str] = (), base: str = TAG_INDEX, **_: Any):
    """Inline, comma-separated tag links after a label."""
    items: list[Any] = [h("span", f"{label} ")]
    for index, link in enumerate(_tag_elements(tags, base)):
        if index > 0:
            items.append(h("span", ", "))
        items.append(link)
    return fragment(items)
