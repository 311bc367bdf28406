#!/usr/bin/env python3
"""
Polymodal CLI - render content trees and manage chunk embeddings.

Usage:
    python -m polymodal.cli primitives [--gaps MODALITY]
    python -m polymodal.cli render <module:attr> [--modality MODALITY]
    python -m polymodal.cli chunks <module:attr> [--kind KIND] [--tag TAG]
    python -m polymodal.cli show <module:attr> <chunk-id> [--prepared]
    python -m polymodal.cli embed <module:attr> [chunk-id ...] [options]
    python -m polymodal.cli search <module:attr> <query> [--mode MODE]

Targets are ``module:attribute`` references. A render target is a content
tree, or a function taking a modality and returning one. A chunk source is
a ChunkRegistry, an iterable of chunks, or a function returning either.

Examples:
    # Flat markup of an article
    python -m polymodal.cli render site.articles.islands:page -m flat-markup

    # Which primitives have no serialized form
    python -m polymodal.cli primitives --gaps serialized

    # Embed new chunks with a local model
    python -m polymodal.cli embed site.chunks:registry --provider local --model fast

    # Hybrid search over embedded chunks
    python -m polymodal.cli search site.chunks:registry "partial hydration" --mode hybrid
"""
from __future__ import annotations

import argparse
import importlib
import logging
import sys
from typing import Any

from dotenv import load_dotenv

load_dotenv()

# Setup logging before imports
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger(__name__)


def load_object(reference: str) -> Any:
    """
    Import ``package.module:attribute`` (the attribute may be dotted).

    Raises:
        ValueError: If the reference is malformed or cannot be resolved
    """
    module_name, sep, attr_path = reference.partition(":")
    if not sep or not module_name or not attr_path:
        raise ValueError(f"Expected 'module:attribute', got {reference!r}")

    try:
        obj = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Cannot import {module_name!r}: {e}") from e

    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError:
            raise ValueError(f"{module_name!r} has no attribute {attr_path!r}") from None
    return obj


def load_chunks(reference: str) -> list:
    """Load the chunks a chunk source reference points to."""
    from .chunks import ContentChunk

    source = load_object(reference)
    if callable(source) and not isinstance(source, ContentChunk):
        source = source()
    if isinstance(source, ContentChunk):
        return [source]

    chunks = list(source)
    for chunk in chunks:
        if not isinstance(chunk, ContentChunk):
            raise ValueError(f"{reference} yielded a {type(chunk).__name__}, not a ContentChunk")
    return chunks


def cmd_primitives(args: argparse.Namespace) -> int:
    """List the registered primitives, or the ones lacking a modality."""
    from .primitives import get_registry

    registry = get_registry()

    if args.gaps:
        gaps = registry.gaps(args.gaps)
        print(f"\n📋 Primitives without a {args.gaps} implementation ({len(gaps)}):")
        for name in gaps:
            print(f"  {name}")
        return 0

    print("\n📋 Registered Primitives:")
    print("-" * 60)
    for info in registry.list_primitives():
        flags = []
        if info["async"]:
            flags.append("async")
        if info["display_only"]:
            flags.append("display-only")
        if info["suppressed"]:
            flags.append(f"suppressed: {', '.join(info['suppressed'])}")
        extra = f"  ({'; '.join(flags)})" if flags else ""
        print(f"  {info['name']:<16} {', '.join(info['modalities'])}{extra}")
    return 0


def cmd_render(args: argparse.Namespace) -> int:
    """Render a content tree under one modality."""
    import asyncio

    from .nodes import Modality, NodeKind
    from .render import arender, to_html
    from .utils import PolymodalError

    try:
        modality = Modality.coerce(args.modality)
        target = load_object(args.target)
        if callable(target) and not isinstance(getattr(target, "kind", None), NodeKind):
            target = target(modality)

        output = asyncio.run(arender(target, modality))
    except (PolymodalError, ValueError) as e:
        print(f"❌ Render failed: {e}")
        return 1

    print(to_html(output) if modality is Modality.DISPLAY else output)
    return 0


def cmd_chunks(args: argparse.Namespace) -> int:
    """List chunks from a chunk source."""
    from .chunks import ChunkRegistry

    try:
        registry = ChunkRegistry(load_chunks(args.source))
    except ValueError as e:
        print(f"❌ {e}")
        return 1

    chunks = registry.by_target(args.kind) if args.kind else registry.list()
    if args.tag:
        chunks = [chunk for chunk in chunks if chunk.has_tags(args.tag)]

    print(f"\n📋 Chunks ({len(chunks)}):")
    print("-" * 60)
    for chunk in chunks:
        target = f"{chunk.target.kind}/{chunk.target.slug}"
        tags = f"  [{', '.join(chunk.tags)}]" if chunk.tags else ""
        print(f"  {chunk.id:<30} {target:<30} {len(chunk.text):>6} chars{tags}")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Print a chunk's text."""
    from .chunks import ChunkRegistry
    from .extract import prepare_chunk_for_embedding

    try:
        registry = ChunkRegistry(load_chunks(args.source))
    except ValueError as e:
        print(f"❌ {e}")
        return 1

    chunk = registry.get(args.chunk_id)
    if chunk is None:
        print(f"❌ Chunk not found: {args.chunk_id}")
        return 1

    print(prepare_chunk_for_embedding(chunk) if args.prepared else chunk.text)
    return 0


def cmd_embed(args: argparse.Namespace) -> int:
    """Generate embeddings for chunks and write their vector records."""
    from .config import PolymodalConfig
    from .indexer import ChunkIndexer, IndexConfig

    try:
        chunks = load_chunks(args.source)
        settings = PolymodalConfig.from_env(
            provider=args.provider,
            model=args.model,
            batch_size=args.batch_size,
            content_root=args.root,
        )
    except ValueError as e:
        print(f"❌ {e}")
        return 1

    if args.chunk_ids:
        wanted = set(args.chunk_ids)
        missing = wanted - {chunk.id for chunk in chunks}
        if missing:
            print(f"❌ Chunks not found: {', '.join(sorted(missing))}")
            return 1
        chunks = [chunk for chunk in chunks if chunk.id in wanted]

    logger.info(f"Embedding {len(chunks)} chunks with {settings.provider}/{settings.model_name}")
    logger.info(f"Content root: {settings.content_root}")

    config = IndexConfig(
        content_root=settings.content_root,
        force=args.force,
        batch_size=settings.batch_size,
        provider_config=settings,
    )
    result = ChunkIndexer(config).index(chunks)

    if result.success:
        print(f"\n✅ Embeddings generated!")
        print(f"   Indexed: {len(result.indexed)}")
        print(f"   Skipped: {len(result.skipped)}")
        print(f"   Model: {result.stats.get('model', 'N/A')}")
        print(f"   Embedding dims: {result.stats.get('embedding_dims', 'N/A')}")
        return 0
    else:
        print(f"\n❌ Embedding failed!")
        print(f"   Error: {result.error}")
        print(f"   Indexed before failure: {len(result.indexed)}")
        return 1


def cmd_search(args: argparse.Namespace) -> int:
    """Search chunks by text, embedding similarity, or both."""
    from .config import PolymodalConfig
    from .embedder import create_provider
    from .search import hybrid_search, text_search, vector_search
    from .utils import EmbeddingError

    try:
        chunks = load_chunks(args.source)
        if args.mode == "text":
            results = text_search(args.query, chunks, limit=args.limit)
        else:
            settings = PolymodalConfig.from_env(
                provider=args.provider,
                model=args.model,
                content_root=args.root,
            )
            search = vector_search if args.mode == "vector" else hybrid_search
            results = search(
                args.query,
                chunks,
                provider=create_provider(settings),
                content_root=settings.content_root,
                limit=args.limit,
            )
    except (EmbeddingError, ValueError) as e:
        print(f"❌ Search failed: {e}")
        return 1

    print(f"\n🔎 Results for {args.query!r} ({args.mode}, {len(results)}):")
    print("-" * 60)
    for result in results:
        print(f"  {result.score:>8.3f}  {result.chunk.id:<30} {result.method:<6} {result.chunk.label}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="polymodal",
        description="Render multimodal content trees and manage chunk embeddings",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Primitives command
    primitives_parser = subparsers.add_parser(
        "primitives",
        help="List registered primitives and their modalities",
    )
    primitives_parser.add_argument(
        "--gaps",
        choices=["flat-markup", "serialized"],
        default=None,
        help="Only list primitives without an implementation for this modality",
    )
    primitives_parser.set_defaults(func=cmd_primitives)

    # Render command
    render_parser = subparsers.add_parser(
        "render",
        help="Render a content tree",
    )
    render_parser.add_argument(
        "target",
        help="module:attribute of a tree, or of a function(modality) returning one",
    )
    render_parser.add_argument(
        "-m", "--modality",
        default="flat-markup",
        help="display, flat-markup or serialized (default: flat-markup)",
    )
    render_parser.set_defaults(func=cmd_render)

    # Chunks command
    chunks_parser = subparsers.add_parser(
        "chunks",
        help="List content chunks",
    )
    chunks_parser.add_argument(
        "source",
        help="module:attribute of a chunk registry, list, or function returning one",
    )
    chunks_parser.add_argument(
        "-k", "--kind",
        default=None,
        help="Only chunks of this content kind (article, doc, lab, ...)",
    )
    chunks_parser.add_argument(
        "-t", "--tag",
        action="append",
        default=None,
        help="Only chunks with this tag (repeatable, all must match)",
    )
    chunks_parser.set_defaults(func=cmd_chunks)

    # Show command
    show_parser = subparsers.add_parser(
        "show",
        help="Print a chunk's text",
    )
    show_parser.add_argument(
        "source",
        help="module:attribute of a chunk registry, list, or function returning one",
    )
    show_parser.add_argument(
        "chunk_id",
        help="Chunk id",
    )
    show_parser.add_argument(
        "--prepared",
        action="store_true",
        help="Print the text exactly as sent to the embedding provider",
    )
    show_parser.set_defaults(func=cmd_show)

    # Embed command
    embed_parser = subparsers.add_parser(
        "embed",
        help="Generate embeddings and write vector records",
    )
    embed_parser.add_argument(
        "source",
        help="module:attribute of a chunk registry, list, or function returning one",
    )
    embed_parser.add_argument(
        "chunk_ids",
        nargs="*",
        help="Only embed these chunks (default: all)",
    )
    embed_parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Re-embed chunks that already have a vector record",
    )
    embed_parser.add_argument(
        "-p", "--provider",
        choices=["openai", "local"],
        default=None,
        help="Embedding provider (default: EMBEDDING_PROVIDER or openai)",
    )
    embed_parser.add_argument(
        "-m", "--model",
        default=None,
        help="Embedding model or local preset (default: EMBEDDING_MODEL or provider default)",
    )
    embed_parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Texts per provider call (default: EMBEDDING_BATCH_SIZE or 32)",
    )
    embed_parser.add_argument(
        "--root",
        default=None,
        help="Directory vector paths resolve against (default: POLYMODAL_CONTENT_ROOT or cwd)",
    )
    embed_parser.set_defaults(func=cmd_embed)

    # Search command
    search_parser = subparsers.add_parser(
        "search",
        help="Search chunks",
    )
    search_parser.add_argument(
        "source",
        help="module:attribute of a chunk registry, list, or function returning one",
    )
    search_parser.add_argument(
        "query",
        help="Search query",
    )
    search_parser.add_argument(
        "--mode",
        choices=["text", "vector", "hybrid"],
        default="text",
        help="Ranking method (default: text)",
    )
    search_parser.add_argument(
        "-n", "--limit",
        type=int,
        default=10,
        help="Maximum number of results (default: 10)",
    )
    search_parser.add_argument(
        "-p", "--provider",
        choices=["openai", "local"],
        default=None,
        help="Embedding provider for vector and hybrid search",
    )
    search_parser.add_argument(
        "-m", "--model",
        default=None,
        help="Embedding model or local preset",
    )
    search_parser.add_argument(
        "--root",
        default=None,
        help="Directory vector paths resolve against (default: POLYMODAL_CONTENT_ROOT or cwd)",
    )
    search_parser.set_defaults(func=cmd_search)

    # Parse args
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Run command
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
