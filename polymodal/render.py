"""
Renderer - expands a content tree under one modality.

    display      -> element tree (Element / Leaf / Fragment), see to_html()
    flat-markup  -> string
    serialized   -> string (YAML subset, see serialize.py)

Rendering is synchronous. A primitive may return an awaitable (syntax
highlighting tokenizes asynchronously); ``render`` raises PendingRender when
it meets one and ``arender`` awaits it in document order. Both share one
walker: the walker is written as coroutines, and ``render`` drives it
without an event loop since nothing in a synchronous render ever suspends.
"""
from __future__ import annotations

import inspect
import logging
import re
from collections.abc import Mapping
from typing import Any, Callable, Coroutine

from markupsafe import Markup, escape

from .nodes import (
    Element,
    Fragment,
    Leaf,
    Modality,
    Node,
    NodeKind,
    PrimitiveNode,
    h,
    is_multimodal,
    to_nodes,
    tree_modality,
)
from .serialize import as_sequence_entry, create_indent, escape_scalar, render_scalar
from .utils import ModalityMismatch, PendingRender

logger = logging.getLogger(__name__)

VOID_TAGS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img",
    "input", "link", "meta", "source", "track", "wbr",
})

ATTRIBUTE_ALIASES = {
    "class_name": "class",
    "html_for": "for",
}

# Prop holding pre-serialized inner HTML (JSON-LD scripts)
RAW_HTML_PROP = "dangerously_set_inner_html"

HTML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)

# Coroutine function rendering children; takes awaiting= as its last argument
RenderStep = Callable[..., Coroutine[Any, Any, Any]]


def _kind(child: Any) -> NodeKind:
    kind = getattr(child, "kind", None)
    if not isinstance(kind, NodeKind):
        raise TypeError(f"{type(child).__name__} is not valid content: {child!r}")
    return kind


class _Renderer:
    """One render pass under a fixed modality."""

    def __init__(self, modality: Modality, awaiting: bool):
        self.modality = modality
        self.awaiting = awaiting

    async def execute(self, node: PrimitiveNode, **overrides: Any) -> Any:
        if node.modality is not None and node.modality is not self.modality:
            raise ModalityMismatch("render", self.modality, node.name, node.modality)

        result = node.execute(**overrides)
        if inspect.isawaitable(result):
            if not self.awaiting:
                if inspect.iscoroutine(result):
                    result.close()
                raise PendingRender(node.name)
            result = await result
        return result

    # -- display -----------------------------------------------------------

    async def display(self, child: Any) -> list[Node]:
        if child is None or isinstance(child, bool):
            return []
        if isinstance(child, (str, int, float)):
            return [Leaf(child)]
        if isinstance(child, (list, tuple)):
            nodes: list[Node] = []
            for item in child:
                nodes.extend(await self.display(item))
            return nodes

        kind = _kind(child)
        if kind is NodeKind.LEAF:
            return [child]
        if kind is NodeKind.FRAGMENT:
            return await self.display(child.children)
        if kind is NodeKind.STRUCTURAL:
            children = await self.display(child.children)
            return [Element(child.tag, child.props, tuple(children))]
        return await self.display(await self.execute(child))

    # -- flat markup ---------------------------------------------------------

    async def markup(self, child: Any) -> str:
        if child is None or isinstance(child, bool):
            return ""
        if isinstance(child, str):
            return child
        if isinstance(child, (int, float)):
            return str(child)
        if isinstance(child, (list, tuple)):
            return "".join([await self.markup(item) for item in child])

        kind = _kind(child)
        if kind is NodeKind.LEAF:
            return str(child.value)
        if kind is NodeKind.FRAGMENT:
            return await self.markup(child.children)
        if kind is NodeKind.STRUCTURAL:
            # display output reached a textual modality: cast it to HTML
            inner = child.props.get(RAW_HTML_PROP)
            if inner is None:
                inner = await self.markup(child.children)
            return _element_html(child, inner, escaped=False)
        return await self.markup(await self.execute(child))

    # -- serialized ----------------------------------------------------------

    async def serialized(self, child: Any, level: int) -> str:
        return "\n".join(await self.serialized_pieces(child, level))

    async def serialized_pieces(self, child: Any, level: int) -> list[str]:
        """Top-level blocks of ``child`` rendered at ``level``, empties dropped."""
        if child is None or isinstance(child, bool):
            return []
        if isinstance(child, (str, int, float)):
            return [f"{create_indent(level)}{render_scalar(child)}"]
        if isinstance(child, (list, tuple)):
            pieces: list[str] = []
            for item in child:
                pieces.extend(await self.serialized_pieces(item, level))
            return pieces

        kind = _kind(child)
        if kind is NodeKind.LEAF:
            return [f"{create_indent(level)}{render_scalar(child.value)}"]
        if kind is NodeKind.FRAGMENT:
            return await self.serialized_pieces(child.children, level)
        if kind is NodeKind.STRUCTURAL:
            return self._scalar_piece(await self.markup(child), level)

        component = child.component
        if not is_multimodal(component):
            return await self.serialized_pieces(await self.execute(child), level)
        if component.passes_through(Modality.SERIALIZED):
            return await self.serialized_pieces(child.children, level)
        if component.has_implementation(Modality.SERIALIZED):
            result = await self.execute(child, indent_level=level)
            if isinstance(result, str):
                return [result] if result else []
            return await self.serialized_pieces(result, level)

        # no serialized form: the display fallback is cast to a string
        return self._scalar_piece(await self.markup(await self.execute(child)), level)

    @staticmethod
    def _scalar_piece(text: str, level: int) -> list[str]:
        return [f"{create_indent(level)}{escape_scalar(text)}"] if text else []


def _run_sync(coro: Coroutine[Any, Any, Any]) -> Any:
    try:
        coro.send(None)
    except StopIteration as stop:
        return stop.value
    coro.close()
    raise RuntimeError("synchronous render was suspended; use arender()")


def _resolve_modality(node: Any, modality: Any) -> Modality:
    if modality is None:
        return tree_modality(node) or Modality.DISPLAY
    return Modality.coerce(modality)


async def _render(node: Any, modality: Modality, awaiting: bool) -> Any:
    renderer = _Renderer(modality, awaiting)
    if modality is Modality.DISPLAY:
        nodes = await renderer.display(node)
        return nodes[0] if len(nodes) == 1 else Fragment(tuple(nodes))
    if modality is Modality.FLAT_MARKUP:
        return await renderer.markup(node)
    return await renderer.serialized(node, 0)


def render(node: Any, modality: Any = None) -> Any:
    """
    Render a content tree synchronously.

    Args:
        node: Any content (node, string, list of nodes, ...)
        modality: Target modality; defaults to the tree's own modality,
            or display when the tree carries none

    Returns:
        An element tree for display, a string otherwise

    Raises:
        PendingRender: If a primitive rendered asynchronously
        ModalityMismatch: If the tree was built for another modality
    """
    return _run_sync(_render(node, _resolve_modality(node, modality), awaiting=False))


async def arender(node: Any, modality: Any = None) -> Any:
    """Render a content tree, awaiting asynchronous primitives in document order."""
    return await _render(node, _resolve_modality(node, modality), awaiting=True)


def render_mode(component: Any, modality: Any, **props: Any) -> Any:
    """Render a single component invocation under ``modality``."""
    children = props.pop("children", None)
    return render(h(component, children, modality=modality, **props), modality)


# ============================================================================
# Helpers for primitive implementations
# ============================================================================
#
# Block implementations that wrap their children call the *_block helpers.
# They hand the rendered children to ``build`` right away when the children
# render synchronously, and otherwise return an awaitable of build's result:
# ``arender`` awaits it, ``render`` raises PendingRender for the enclosing
# primitive.

async def _markup(children: Any, awaiting: bool) -> str:
    return await _Renderer(Modality.FLAT_MARKUP, awaiting).markup(children)


async def _markup_items(children: Any, awaiting: bool) -> list[str]:
    renderer = _Renderer(Modality.FLAT_MARKUP, awaiting)
    texts = []
    for child in iter_children(children):
        text = (await renderer.markup(child)).strip()
        if text:
            texts.append(text)
    return texts


async def _serialized(children: Any, indent_level: int, awaiting: bool) -> str:
    return await _Renderer(Modality.SERIALIZED, awaiting).serialized(children, indent_level)


async def _serialized_items(children: Any, indent_level: int, awaiting: bool) -> str:
    renderer = _Renderer(Modality.SERIALIZED, awaiting)
    pieces = await renderer.serialized_pieces(children, indent_level + 1)
    return "\n".join(as_sequence_entry(piece, indent_level) for piece in pieces)


def render_markup(children: Any) -> str:
    """Flatten children to flat-markup text."""
    return _run_sync(_markup(children, awaiting=False))


async def arender_markup(children: Any) -> str:
    """Flatten children to flat-markup text, awaiting asynchronous primitives."""
    return await _markup(children, awaiting=True)


def render_serialized(children: Any, indent_level: int = 0) -> str:
    """Render children as serialized blocks at ``indent_level``."""
    return _run_sync(_serialized(children, indent_level, awaiting=False))


def render_serialized_items(children: Any, indent_level: int = 0) -> str:
    """Render children as serialized list entries at ``indent_level``."""
    return _run_sync(_serialized_items(children, indent_level, awaiting=False))


async def arender_serialized_items(children: Any, indent_level: int = 0) -> str:
    """Render children as serialized list entries, awaiting asynchronous primitives."""
    return await _serialized_items(children, indent_level, awaiting=True)


def _build(step: RenderStep, args: tuple, build: Callable[[Any], Any]) -> Any:
    try:
        rendered = _run_sync(step(*args, awaiting=False))
    except PendingRender:
        return _build_later(step, args, build)
    return build(rendered)


async def _build_later(step: RenderStep, args: tuple, build: Callable[[Any], Any]) -> Any:
    return build(await step(*args, awaiting=True))


def markup_block(children: Any, build: Callable[[str], Any]) -> Any:
    """
    Flatten children to flat markup and pass the text to ``build``.

    Example:
        def _strong_markup(*, children=None, **_):
            return markup_block(children, lambda text: f"**{text}**")
    """
    return _build(_markup, (children,), build)


def markup_items_block(children: Any, build: Callable[[list[str]], Any]) -> Any:
    """
    Pass the stripped flat-markup text of each non-blank child to ``build``.

    Fragments are opened up, so each list item is one entry.
    """
    return _build(_markup_items, (children,), build)


def serialized_items_block(children: Any, indent_level: int, build: Callable[[str], Any]) -> Any:
    """Render children as list entries at ``indent_level`` and pass them to ``build``."""
    return _build(_serialized_items, (children, indent_level), build)


def iter_children(children: Any) -> list[Node]:
    """Children as nodes, with fragments opened up."""
    nodes: list[Node] = []
    for node in to_nodes(children):
        if node.kind is NodeKind.FRAGMENT:
            nodes.extend(iter_children(node.children))
        else:
            nodes.append(node)
    return nodes


# ============================================================================
# HTML
# ============================================================================

def attribute_name(prop: str) -> str:
    """Map a Python prop name to an HTML attribute name."""
    if prop in ATTRIBUTE_ALIASES:
        return ATTRIBUTE_ALIASES[prop]
    return prop.rstrip("_").replace("_", "-")


def format_attributes(props: Mapping[str, Any], escaped: bool = True) -> str:
    parts = []
    for key, value in props.items():
        if key == RAW_HTML_PROP or value is None or value is False:
            continue
        name = attribute_name(key)
        if value is True:
            parts.append(f" {name}")
            continue
        if isinstance(value, Mapping):
            value = "; ".join(
                f"{attribute_name(k)}: {v}" for k, v in value.items() if v is not None
            )
            if not value:
                continue
        text = str(escape(value)) if escaped else str(value)
        parts.append(f' {name}="{text}"')
    return "".join(parts)


def _element_html(element: Element, inner: str, escaped: bool) -> str:
    attributes = format_attributes(element.props, escaped)
    if element.tag in VOID_TAGS:
        return f"<{element.tag}{attributes}>"
    return f"<{element.tag}{attributes}>{inner}</{element.tag}>"


def to_html(tree: Any) -> str:
    """
    Serialize a rendered display tree to HTML.

    Raises:
        TypeError: If the tree still holds unexecuted primitive nodes
    """
    if tree is None or isinstance(tree, bool):
        return ""
    if isinstance(tree, (str, int, float)):
        return str(escape(tree))
    if isinstance(tree, (list, tuple)):
        return "".join(to_html(item) for item in tree)

    kind = _kind(tree)
    if kind is NodeKind.LEAF:
        return str(escape(tree.value))
    if kind is NodeKind.FRAGMENT:
        return to_html(tree.children)
    if kind is NodeKind.PRIMITIVE:
        raise TypeError(f"render {tree.name!r} before serializing it to HTML")

    inner = tree.props.get(RAW_HTML_PROP)
    if inner is None:
        inner = to_html(tree.children)
    return _element_html(tree, inner, escaped=True)


def clean_markup_output(text: str) -> str:
    """Remove HTML comments and decode entities left in rendered markup."""
    return Markup(HTML_COMMENT.sub("", text)).unescape()
