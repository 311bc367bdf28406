"""
Modality dispatcher - one component, one implementation per output target.

Usage:
    def _heading_markup(*, level, children=None, **_):
        return normalize_block(f"{'#' * level} {render_markup(children)}")

    @multimodal(flat_markup=_heading_markup)
    def Heading(*, level, children=None, **_):
        return h(f"h{level}", children)

    Heading(Modality.FLAT_MARKUP, level=2, children="Topic")  # "## Topic\\n\\n"

Every implementation receives ``modality=`` plus the caller's props unchanged,
so implementations that build nested components can pass the modality on.
"""
from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Mapping, Optional

from .nodes import Modality, Node, h
from .utils import UnsupportedModality

logger = logging.getLogger(__name__)

Implementation = Callable[..., Any]


def suppressed(**_: Any) -> str:
    """Implementation for a deliberate opt-out: renders nothing."""
    return ""


def passthrough(*, children: Any = None, **_: Any) -> Any:
    """Implementation for pure grouping: hands the children back unchanged."""
    return children


class MultiModalComponent:
    """
    A content primitive with one implementation per modality.

    The display implementation is mandatory. A missing flat-markup or
    serialized implementation falls back to the display one, called with
    the requested modality, unless the component is ``display_only``.
    """

    is_multimodal = True

    def __init__(
        self,
        display: Implementation,
        implementations: Optional[Mapping[Any, Optional[Implementation]]] = None,
        name: Optional[str] = None,
        display_only: bool = False,
    ):
        if not callable(display):
            raise TypeError(f"display implementation must be callable, got {display!r}")

        impls: dict[Modality, Implementation] = {}
        for key, impl in (implementations or {}).items():
            modality = Modality.coerce(key)
            if modality is Modality.DISPLAY:
                raise ValueError("the display implementation is passed separately")
            if impl is None:
                continue
            if not callable(impl):
                raise TypeError(f"{modality.value} implementation must be callable, got {impl!r}")
            impls[modality] = impl

        if display_only and impls:
            raise ValueError("a display-only component cannot define other implementations")

        self.display = display
        self.name = name or getattr(display, "__name__", "component")
        self.display_only = display_only
        self._implementations = impls
        functools.update_wrapper(self, display)

    def __call__(self, modality: Any, **props: Any) -> Any:
        """
        Render this component under ``modality``.

        Raises:
            InvalidModality: If modality is outside the closed set
            UnsupportedModality: If the component is display-only and a
                different modality was requested
        """
        modality = Modality.coerce(modality)

        if modality is Modality.DISPLAY:
            return self.display(modality=modality, **props)

        impl = self._implementations.get(modality)
        if impl is not None:
            return impl(modality=modality, **props)

        if self.display_only:
            raise UnsupportedModality(self.name, modality, "component is display-only")

        logger.debug(f"{self.name}: no {modality.value} implementation, using display")
        return self.display(modality=modality, **props)

    def element(self, modality: Any, *children: Any, **props: Any) -> Node:
        """Build an unexecuted node for this component."""
        return h(self, *children, modality=modality, **props)

    def implementation(self, modality: Any) -> Optional[Implementation]:
        """The dedicated implementation for ``modality``, if any."""
        modality = Modality.coerce(modality)
        if modality is Modality.DISPLAY:
            return self.display
        return self._implementations.get(modality)

    def has_implementation(self, modality: Any) -> bool:
        return self.implementation(modality) is not None

    def passes_through(self, modality: Any) -> bool:
        """True when ``modality`` output is just the children."""
        return self.implementation(modality) is passthrough

    def supports(self, modality: Any) -> bool:
        """True when rendering under ``modality`` will not raise."""
        modality = Modality.coerce(modality)
        return modality is Modality.DISPLAY or not self.display_only

    @property
    def implemented_modalities(self) -> list[Modality]:
        return [m for m in Modality if self.has_implementation(m)]

    def __repr__(self) -> str:
        modalities = ", ".join(m.value for m in self.implemented_modalities)
        return f"<MultiModalComponent {self.name} [{modalities}]>"


def multimodal(
    implementations: Optional[Mapping[Any, Optional[Implementation]]] = None,
    *,
    flat_markup: Optional[Implementation] = None,
    serialized: Optional[Implementation] = None,
    name: Optional[str] = None,
    display_only: bool = False,
) -> Callable[[Implementation], MultiModalComponent]:
    """
    Multimodal component factory.

    Args:
        implementations: Optional mapping of modality (or its value) to
            implementation, for callers that build the table dynamically
        flat_markup: Flat-markup implementation
        serialized: Serialized implementation
        name: Component name (defaults to the display function's name)
        display_only: Raise UnsupportedModality instead of falling back

    Returns:
        A decorator taking the display implementation
    """
    table: dict[Any, Optional[Implementation]] = dict(implementations or {})
    if flat_markup is not None:
        table[Modality.FLAT_MARKUP] = flat_markup
    if serialized is not None:
        table[Modality.SERIALIZED] = serialized

    def decorator(display: Implementation) -> MultiModalComponent:
        return MultiModalComponent(display, table, name=name, display_only=display_only)

    return decorator
