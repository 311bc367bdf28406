"""
Serialization escaper - pure encoders for the serialized modality.

The serialized modality is a YAML subset: block lists and maps indented two
spaces per level, with scalars double-quoted only when they would otherwise
be read back as something else.
"""
from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any, Iterable, Union

from .utils import EscapeEncodingError

INDENT_UNIT = "  "

# Characters that force quoting anywhere in the string
SPECIAL_CHARACTERS = frozenset(":#|>{}[],&*!%@`\"'\\")

# Characters that force quoting when they open the string
LEADING_INDICATORS = frozenset("-?:,[]{}#&*!|>'\"%@`")

# Plain scalars a YAML reader would resolve to booleans, null, numbers,
# dates, or the merge and value tags
RESERVED_LITERAL = re.compile(
    r"""^(?:
        true|false|null|yes|no|on|off|~
        |[-+]?(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:e[-+]?\d+)?
        |0x[0-9a-f_]+|0o[0-7_]+|0b[01_]+
        |[-+]?\.(?:inf|nan)
        |\d{4}-\d{2}-\d{2}
        |=|<<
    )$""",
    re.IGNORECASE | re.VERBOSE,
)

# C0 and C1 controls, DEL, and the Unicode line and paragraph separators
CONTROL_CHARACTER = re.compile(r"[\x00-\x1f\x7f-\x9f\u2028\u2029]")

_CONTROL_ESCAPES = {
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\0": "\\0",
}

_ESCAPE_SEQUENCE = re.compile(r"\\(x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|.)")

_UNESCAPES = {
    "\\": "\\",
    '"': '"',
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "0": "\0",
}

Entries = Union[Mapping[Any, Any], Iterable[tuple[Any, Any]]]


def create_indent(level: int = 0) -> str:
    """Indentation for a nesting level."""
    if level < 0:
        raise ValueError(f"indent level must be >= 0, got {level}")
    return INDENT_UNIT * level


def needs_quoting(value: str) -> bool:
    """True when ``value`` cannot be written as a plain scalar."""
    return (
        not value.strip()
        or value != value.strip()
        or any(ch in SPECIAL_CHARACTERS for ch in value)
        or CONTROL_CHARACTER.search(value) is not None
        or value[0] in LEADING_INDICATORS
        or RESERVED_LITERAL.match(value) is not None
    )


def escape_scalar(value: str) -> str:
    """
    Encode a string as a scalar, quoting only when required.

    Quoted output escapes backslashes first, then double quotes, then
    control characters.

    Raises:
        EscapeEncodingError: If value is not a string
    """
    if not isinstance(value, str):
        raise EscapeEncodingError(
            f"escape_scalar expects a string, got {type(value).__name__}: {value!r}"
        )
    if not needs_quoting(value):
        return value

    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    escaped = CONTROL_CHARACTER.sub(_escape_control, escaped)
    return f'"{escaped}"'


def _escape_control(match: re.Match) -> str:
    ch = match.group(0)
    if ch in _CONTROL_ESCAPES:
        return _CONTROL_ESCAPES[ch]
    code = ord(ch)
    return f"\\x{code:02x}" if code <= 0xFF else f"\\u{code:04x}"


def unescape_scalar(text: str) -> str:
    """Invert escape_scalar for a single scalar."""
    if len(text) < 2 or not (text.startswith('"') and text.endswith('"')):
        return text
    return _ESCAPE_SEQUENCE.sub(_unescape, text[1:-1])


def _unescape(match: re.Match) -> str:
    code = match.group(1)
    if len(code) > 1 and code[0] in "xu":
        return chr(int(code[1:], 16))
    return _UNESCAPES.get(code, code)


def render_scalar(value: Any) -> str:
    """
    Encode a scalar value.

    Raises:
        EscapeEncodingError: For values with no scalar form
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return ".nan"
        if math.isinf(value):
            return ".inf" if value > 0 else "-.inf"
        return repr(value)
    if isinstance(value, str):
        return escape_scalar(value)
    raise EscapeEncodingError(f"cannot encode {type(value).__name__} as a scalar: {value!r}")


def is_composite(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple))


def _inline_empty(value: Any) -> str:
    return "{}" if isinstance(value, Mapping) else "[]"


def as_sequence_entry(block: str, indent: int) -> str:
    """
    Turn a block rendered at ``indent + 1`` into a list entry at ``indent``.

    The first line's indentation is replaced by the entry dash, so

        "    key: 1\\n    other: 2"   (rendered at level 2)

    becomes

        "  - key: 1\\n    other: 2"   (entry at level 1)
    """
    inner = create_indent(indent + 1)
    if not block.startswith(inner):
        raise ValueError(f"block is not indented to level {indent + 1}: {block!r}")
    return f"{create_indent(indent)}- {block[len(inner):]}"


def render_list(items: Iterable[Any], indent: int = 0) -> str:
    """
    Render a list as indented ``- item`` entries.

    Composite items are rendered one level deeper and attached to the dash.
    """
    items = list(items)
    pad = create_indent(indent)
    if not items:
        return f"{pad}[]"

    lines = []
    for item in items:
        if is_composite(item) and len(item) > 0:
            lines.append(as_sequence_entry(to_serialized(item, indent + 1), indent))
        elif is_composite(item):
            lines.append(f"{pad}- {_inline_empty(item)}")
        else:
            lines.append(f"{pad}- {render_scalar(item)}")
    return "\n".join(lines)


def render_map(entries: Entries, indent: int = 0) -> str:
    """
    Render a mapping as indented ``key: value`` entries.

    Composite values start on the next line, one level deeper.
    """
    pairs = list(entries.items() if isinstance(entries, Mapping) else entries)
    pad = create_indent(indent)
    if not pairs:
        return f"{pad}{{}}"

    lines = []
    for key, value in pairs:
        key_text = escape_scalar(key) if isinstance(key, str) else render_scalar(key)
        if is_composite(value) and len(value) > 0:
            lines.append(f"{pad}{key_text}:\n{to_serialized(value, indent + 1)}")
        elif is_composite(value):
            lines.append(f"{pad}{key_text}: {_inline_empty(value)}")
        else:
            lines.append(f"{pad}{key_text}: {render_scalar(value)}")
    return "\n".join(lines)


def to_serialized(value: Any, indent: int = 0) -> str:
    """Render any supported value, starting at ``indent``."""
    if isinstance(value, Mapping):
        return render_map(value, indent)
    if isinstance(value, (list, tuple)):
        return render_list(value, indent)
    return f"{create_indent(indent)}{render_scalar(value)}"
