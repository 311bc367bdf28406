"""
Media and metadata primitives.

These only make sense on a page. Their flat-markup and serialized forms are
suppressed, so exports and search text stay free of image markup, dates
chrome and structured-data payloads.
"""
from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Mapping, Optional, Union

from ..dispatch import multimodal, suppressed
from ..nodes import h
from .block import normalize_block

DateLike = Union[date, datetime, str]

SCHEMA_CONTEXT = "https://schema.org"


def parse_date(value: DateLike) -> date:
    """
    Accept a date, a datetime or an ISO 8601 string.

    Raises:
        ValueError: If a string is not ISO 8601
        TypeError: For any other type
    """
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    raise TypeError(f"expected a date or ISO 8601 string, got {type(value).__name__}")


def format_date(value: DateLike) -> str:
    """Long US form, e.g. ``January 5, 2025``."""
    d = parse_date(value)
    return f"{d:%B} {d.day}, {d.year}"


def _as_datetime(d: date) -> datetime:
    if isinstance(d, datetime):
        return d.replace(tzinfo=None)
    return datetime(d.year, d.month, d.day)


def was_updated(published_at: DateLike, updated_at: Optional[DateLike]) -> bool:
    """True when ``updated_at`` is set and later than ``published_at``."""
    if updated_at is None:
        return False
    return _as_datetime(parse_date(updated_at)) > _as_datetime(parse_date(published_at))


# ============================================================================
# CoverImage
# ============================================================================

@multimodal(flat_markup=suppressed, serialized=suppressed)
def CoverImage(*, src: str, alt: str = "", **_: Any):
    return h(
        "div",
        h("img", src=src, alt=alt, class_name="w-full h-full object-cover"),
        class_name="w-full bg-gray-100 rounded-lg overflow-hidden mb-8",
        style={"aspect_ratio": "2.7/1"},
    )


# ============================================================================
# JsonLd
# ============================================================================

def json_ld_payload(data: Mapping[str, Any]) -> str:
    """JSON-LD document for ``data`` with ``@context`` added."""
    payload = {"@context": SCHEMA_CONTEXT, **data}
    text = json.dumps(payload, indent=2, ensure_ascii=False, default=str)
    # keep the payload from closing its own script element
    return text.replace("</", "<\\/")


@multimodal(flat_markup=suppressed, serialized=suppressed)
def JsonLd(*, data: Mapping[str, Any], **_: Any):
    """Structured data script for search engines."""
    return h("script", type="application/ld+json", dangerously_set_inner_html=json_ld_payload(data))


# ============================================================================
# ArticleMetadata
# ============================================================================

def _metadata_markup(*, published_at: DateLike, updated_at: Optional[DateLike] = None, **_: Any) -> str:
    text = f"Published: {format_date(published_at)}"
    if was_updated(published_at, updated_at):
        text = f"{text} | Updated: {format_date(updated_at)}"
    return normalize_block(f"*{text}*")


@multimodal(flat_markup=_metadata_markup)
def ArticleMetadata(*, published_at: DateLike, updated_at: Optional[DateLike] = None, **_: Any):
    """Publication and update dates."""
    published = parse_date(published_at)
    children = [h("time", f"Published {format_date(published)}", datetime=published.isoformat())]
    if was_updated(published_at, updated_at):
        children.append(h("span", f"• Updated {format_date(updated_at)}"))
    return h("div", children, class_name="flex items-center gap-4 text-sm text-gray-500")
