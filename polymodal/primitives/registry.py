"""
Primitive Registry - catalog of the multimodal primitives.

Lists the primitives a site can build with and reports, per modality, which
of them have no dedicated implementation and fall back to display output.
Add primitives by registering them with the global registry.
"""
from __future__ import annotations

import inspect
import logging
from typing import Any, Iterator, Optional

from ..dispatch import MultiModalComponent, suppressed
from ..nodes import Modality, is_multimodal

logger = logging.getLogger(__name__)


class PrimitiveRegistry:
    """
    Registry of multimodal primitives, keyed by name.

    Usage:
        registry = PrimitiveRegistry()
        registry.register(Callout)

        for name in registry.gaps(Modality.SERIALIZED):
            print(f"{name} falls back to display output")
    """

    def __init__(self):
        self._primitives: dict[str, MultiModalComponent] = {}

    def register(
        self,
        component: MultiModalComponent,
        name: Optional[str] = None,
        replace: bool = False,
    ) -> None:
        """
        Register a primitive.

        Args:
            component: A multimodal component
            name: Registry name (defaults to the component's name)
            replace: Allow overwriting an existing registration

        Raises:
            TypeError: If component is not multimodal
            ValueError: If the name is taken and replace is False
        """
        if not is_multimodal(component):
            raise TypeError(f"{component!r} is not a multimodal component")

        name = name or component.name
        if name in self._primitives and not replace:
            raise ValueError(f"Primitive already registered: {name}")

        self._primitives[name] = component
        modalities = ", ".join(m.value for m in component.implemented_modalities)
        logger.debug(f"Registered primitive: {name} ({modalities})")

    def unregister(self, name: str) -> bool:
        """
        Unregister a primitive by name.

        Returns:
            True if a primitive was removed, False otherwise
        """
        return self._primitives.pop(name, None) is not None

    def get(self, name: str) -> Optional[MultiModalComponent]:
        """Get a primitive by name."""
        return self._primitives.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._primitives

    def __len__(self) -> int:
        return len(self._primitives)

    def __iter__(self) -> Iterator[str]:
        return iter(self._primitives)

    def list_primitives(self) -> list[dict[str, Any]]:
        """List all registered primitives with their metadata."""
        result = []
        for name, component in self._primitives.items():
            result.append({
                "name": name,
                "modalities": [m.value for m in component.implemented_modalities],
                "suppressed": [
                    m.value for m in Modality
                    if component.implementation(m) is suppressed
                ],
                "display_only": component.display_only,
                "async": inspect.iscoroutinefunction(component.display),
            })
        return result

    def gaps(self, modality: Any) -> list[str]:
        """
        Names of primitives without a dedicated implementation for ``modality``.

        Display is mandatory, so it never has gaps.
        """
        modality = Modality.coerce(modality)
        return [
            name for name, component in self._primitives.items()
            if not component.has_implementation(modality)
        ]


# Global registry instance
_global_registry: Optional[PrimitiveRegistry] = None


def get_registry() -> PrimitiveRegistry:
    """Get the global primitive registry, creating it if needed."""
    global _global_registry

    if _global_registry is None:
        _global_registry = PrimitiveRegistry()
        _setup_default_primitives(_global_registry)

    return _global_registry


def _setup_default_primitives(registry: PrimitiveRegistry) -> None:
    """Register the built-in catalog."""
    # Import here to avoid circular imports
    from . import CATALOG

    for component in CATALOG:
        registry.register(component)

    logger.debug(f"Registered {len(registry)} built-in primitives")


def register_primitive(
    component: MultiModalComponent,
    name: Optional[str] = None,
    replace: bool = False,
) -> None:
    """
    Convenience function to register a primitive in the global registry.

    Args:
        component: A multimodal component
        name: Registry name (defaults to the component's name)
        replace: Allow overwriting an existing registration
    """
    get_registry().register(component, name=name, replace=replace)
