"""
Primitive Catalog - the built-in multimodal content primitives.

Every primitive renders under all three modalities:

    Heading, Paragraph, Text, Strong, Emphasis, InlineCode   prose
    List, OrderedList, ListItem                              lists
    Link, Tags, TagsList                                     links
    Article, Header, ArticleHeader, Footer, Section,
    Container                                                layout
    CoverImage, JsonLd, ArticleMetadata                      page-only media
    CodeBlock                                                highlighted code
"""
from .block import Spacing, normalize_block
from .code import (
    CodeBlock,
    DEFAULT_HIGHLIGHTER,
    HighlightResult,
    Highlighter,
    PlainHighlighter,
    Token,
    normalize_language,
)
from .layout import Article, ArticleHeader, Container, Footer, Header, Section
from .links import Link, Tags, TagsList, tag_href
from .lists import List, ListItem, OrderedList
from .media import ArticleMetadata, CoverImage, JsonLd, format_date
from .text import Emphasis, Heading, InlineCode, Paragraph, Strong, Text

CATALOG = (
    Heading,
    Paragraph,
    Text,
    Strong,
    Emphasis,
    InlineCode,
    List,
    OrderedList,
    ListItem,
    Link,
    Tags,
    TagsList,
    Article,
    Header,
    ArticleHeader,
    Footer,
    Section,
    Container,
    CoverImage,
    JsonLd,
    ArticleMetadata,
    CodeBlock,
)

from .registry import PrimitiveRegistry, get_registry, register_primitive  # noqa: E402

__all__ = [
    # Block spacing
    "Spacing",
    "normalize_block",
    # Prose
    "Heading",
    "Paragraph",
    "Text",
    "Strong",
    "Emphasis",
    "InlineCode",
    # Lists
    "List",
    "OrderedList",
    "ListItem",
    # Links
    "Link",
    "Tags",
    "TagsList",
    "tag_href",
    # Layout
    "Article",
    "Header",
    "ArticleHeader",
    "Footer",
    "Section",
    "Container",
    # Media
    "CoverImage",
    "JsonLd",
    "ArticleMetadata",
    "format_date",
    # Code
    "CodeBlock",
    "Highlighter",
    "HighlightResult",
    "PlainHighlighter",
    "Token",
    "DEFAULT_HIGHLIGHTER",
    "normalize_language",
    # Registry
    "CATALOG",
    "PrimitiveRegistry",
    "get_registry",
    "register_primitive",
]
