"""
Block spacing for flat-markup output.

Markdown needs blank lines between blocks. Every block-level primitive ends
its flat-markup output through normalize_block so the spacing between
blocks is decided in one place.
"""
from __future__ import annotations

from enum import Enum
from typing import Any


class Spacing(str, Enum):
    """Trailing space appended after a block."""
    NONE = "none"
    TIGHT = "tight"
    NORMAL = "normal"
    LOOSE = "loose"

    @property
    def suffix(self) -> str:
        return _SUFFIXES[self]


_SUFFIXES = {
    Spacing.NONE: "",
    Spacing.TIGHT: "\n",
    Spacing.NORMAL: "\n\n",
    Spacing.LOOSE: "\n\n\n",
}


def normalize_block(content: Any, spacing: Any = Spacing.NORMAL) -> str:
    """
    Append block spacing to flat-markup content.

    Args:
        content: Block text (None renders as an empty block)
        spacing: One of none, tight, normal, loose

    Returns:
        content followed by 0, 1, 2 or 3 newlines

    Raises:
        ValueError: If spacing is not a known value

    Example:
        normalize_block("## Topic")            # "## Topic\\n\\n"
        normalize_block("a", spacing="tight")  # "a\\n"
    """
    try:
        spacing = Spacing(spacing)
    except ValueError:
        raise ValueError(
            f"unknown block spacing {spacing!r}, expected one of "
            f"{', '.join(s.value for s in Spacing)}"
        ) from None

    text = "" if content is None else str(content)
    return f"{text}{spacing.suffix}"
