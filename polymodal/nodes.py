"""
Content tree nodes.

A content tree is built once by authors and rendered once per modality.
Every node is one of four tagged variants, decided when the node is built:

    Leaf          raw text or number
    Element       intrinsic structural tag (p, div, h2, ...)
    PrimitiveNode unexecuted invocation of a component
    Fragment      ordered group with no representation of its own

Walkers switch on ``node.kind`` instead of probing the node's shape.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, ClassVar, Iterator, Optional, Sequence, Union

from .utils import InvalidModality, ModalityMismatch


class Modality(str, Enum):
    """
    Output targets a content tree can be rendered to.

    - DISPLAY: element tree for pages (serializes to HTML)
    - FLAT_MARKUP: markdown-like text for LLM ingestion and markdown export
    - SERIALIZED: indentation-based structured text (a YAML subset)
    """
    DISPLAY = "display"
    FLAT_MARKUP = "flat-markup"
    SERIALIZED = "serialized"

    @classmethod
    def coerce(cls, value: Any) -> "Modality":
        """
        Convert a modality or its string value to a Modality.

        Raises:
            InvalidModality: If value is not one of the closed set
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except (ValueError, TypeError):
            raise InvalidModality(value) from None

    @property
    def is_textual(self) -> bool:
        """True for modalities whose rendered output is a string."""
        return self is not Modality.DISPLAY


class NodeKind(str, Enum):
    """Discriminant carried by every content tree node."""
    LEAF = "leaf"
    STRUCTURAL = "structural"
    PRIMITIVE = "primitive"
    FRAGMENT = "fragment"


@dataclass(frozen=True)
class Leaf:
    """A text or number leaf."""
    value: Union[str, int, float]

    kind: ClassVar[NodeKind] = NodeKind.LEAF

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Element:
    """An intrinsic structural tag with props and ordered children."""
    tag: str
    props: dict[str, Any] = field(default_factory=dict)
    children: tuple["Node", ...] = ()

    kind: ClassVar[NodeKind] = NodeKind.STRUCTURAL


@dataclass(frozen=True)
class Fragment:
    """An ordered group of children with no own representation."""
    children: tuple["Node", ...] = ()

    kind: ClassVar[NodeKind] = NodeKind.FRAGMENT


@dataclass(frozen=True)
class PrimitiveNode:
    """
    An unexecuted invocation of a component.

    ``component`` is either a MultiModalComponent or a plain function
    returning content. Plain functions carry ``modality=None`` unless one
    was given when the node was built.
    """
    component: Callable[..., Any]
    props: dict[str, Any] = field(default_factory=dict)
    children: tuple["Node", ...] = ()
    modality: Optional[Modality] = None

    kind: ClassVar[NodeKind] = NodeKind.PRIMITIVE

    @property
    def name(self) -> str:
        return component_name(self.component)

    def execute(self, modality: Optional[Modality] = None, **overrides: Any) -> Any:
        """
        Invoke the component with this node's props and children.

        Args:
            modality: Modality to invoke with (defaults to the node's own)
            **overrides: Props that replace the node's props for this call

        Returns:
            Whatever the component returns: a string, a node, a list of
            nodes, or an awaitable for asynchronous components
        """
        props = dict(self.props)
        if self.children:
            props["children"] = self.children[0] if len(self.children) == 1 else self.children
        props.update(overrides)

        modality = modality if modality is not None else self.modality
        if modality is None:
            return self.component(**props)
        return self.component(modality=modality, **props)


Node = Union[Leaf, Element, Fragment, PrimitiveNode]

# Anything accepted where a child is expected. None and booleans render nothing.
Child = Union[Node, str, int, float, bool, None, Sequence[Any]]


def component_name(component: Any) -> str:
    """Human-readable name of a component, for diagnostics."""
    return (
        getattr(component, "name", None)
        or getattr(component, "__name__", None)
        or type(component).__name__
    )


def is_multimodal(component: Any) -> bool:
    return getattr(component, "is_multimodal", False)


def to_nodes(children: Any) -> tuple[Node, ...]:
    """
    Coerce authored children into a flat tuple of nodes.

    Strings and numbers become leaves, lists and tuples are flattened in
    order, None and booleans are dropped.

    Raises:
        TypeError: If a child is not valid content
    """
    nodes: list[Node] = []
    _collect(children, nodes)
    return tuple(nodes)


def _collect(child: Any, out: list[Node]) -> None:
    if child is None or isinstance(child, bool):
        return
    if isinstance(child, (str, int, float)):
        out.append(Leaf(child))
    elif isinstance(child, (list, tuple)):
        for item in child:
            _collect(item, out)
    elif isinstance(getattr(child, "kind", None), NodeKind):
        out.append(child)
    else:
        raise TypeError(f"{type(child).__name__} is not valid content: {child!r}")


def h(component: Any, *children: Any, modality: Any = None, **props: Any) -> Node:
    """
    Build a content tree node.

    Args:
        component: A tag name (str) for a structural element, or a
            component (MultiModalComponent or plain function)
        *children: Ordered children
        modality: Required for multimodal components, optional otherwise
        **props: Component props (``class_`` style names for element
            attributes that clash with Python keywords)

    Returns:
        An Element or a PrimitiveNode

    Raises:
        InvalidModality: If a multimodal component gets no valid modality
        ModalityMismatch: If a child was built for a different modality

    Example:
        page = h(Article, h(Heading, "Intro", level=2, modality=m), modality=m)
    """
    nodes = to_nodes(children)

    if isinstance(component, str):
        if modality is not None:
            raise TypeError(f"structural element <{component}> does not take a modality")
        return Element(component, props, nodes)

    if not callable(component):
        raise TypeError(f"{component!r} is not a component")

    if is_multimodal(component) or modality is not None:
        modality = Modality.coerce(modality)
        check_modality(component_name(component), modality, nodes)

    return PrimitiveNode(component, props, nodes, modality)


def fragment(*children: Any) -> Fragment:
    """Group children without adding a representation."""
    return Fragment(to_nodes(children))


def check_modality(parent: str, modality: Modality, children: Sequence[Node]) -> None:
    """
    Ensure the nearest primitive descendants were built for ``modality``.

    Descendants further down were checked when their own parents were built.
    """
    for child in modal_descendants(children):
        if child.modality is not modality:
            raise ModalityMismatch(parent, modality, child.name, child.modality)


def modal_descendants(children: Sequence[Node]) -> Iterator[PrimitiveNode]:
    """Yield the nearest primitive nodes that carry a modality."""
    for child in children:
        if child.kind is NodeKind.PRIMITIVE and child.modality is not None:
            yield child
        elif child.kind is not NodeKind.LEAF:
            yield from modal_descendants(child.children)


def tree_modality(node: Any) -> Optional[Modality]:
    """Modality of the nearest modal node in a tree, if any."""
    for child in modal_descendants(to_nodes(node)):
        return child.modality
    return None
