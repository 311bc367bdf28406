"""
Pytest Configuration and Fixtures
"""

import sys
from pathlib import Path
from typing import Sequence

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from polymodal.chunks import ContentMeta, chunker  # noqa: E402
from polymodal.embedder import EmbeddingProvider  # noqa: E402
from polymodal.nodes import Modality, h  # noqa: E402
from polymodal.primitives import (  # noqa: E402
    Article,
    CoverImage,
    Heading,
    Link,
    List,
    ListItem,
    Paragraph,
    Strong,
)


class FakeProvider(EmbeddingProvider):
    """Deterministic provider: vector = [len(text), batch index, 1.0]."""

    provider_name = "fake"

    def __init__(self, dims: int = 3, fail_on: str = None):
        self.dims = dims
        self.fail_on = fail_on
        self.batches: list[list[str]] = []

    @property
    def model_name(self) -> str:
        return "fake-model"

    @property
    def dimension(self) -> int:
        return self.dims

    def generate_embeddings(self, texts: Sequence[str]) -> list[list[float]]:
        texts = list(texts)
        self.batches.append(texts)
        if self.fail_on and any(self.fail_on in text for text in texts):
            raise RuntimeError(f"provider rejected {self.fail_on!r}")
        return [
            [float(len(text)), float(i)] + [1.0] * (self.dims - 2)
            for i, text in enumerate(texts)
        ]


def build_page(m: Modality):
    """A small article built for one modality."""
    return h(
        Article,
        h(CoverImage, src="/covers/islands.png", alt="Islands", modality=m),
        h(Heading, "Islands", level=1, modality=m),
        h(Paragraph, "Ship less ", h(Strong, "JavaScript", modality=m), ".", modality=m),
        h(
            List,
            h(ListItem, "Static HTML", modality=m),
            h(ListItem, "Hydrated islands", modality=m),
            modality=m,
        ),
        h(Link, "Read more", href="/articles/islands", modality=m),
        modality=m,
    )


@pytest.fixture
def page():
    """Factory for the sample article tree."""
    return build_page


@pytest.fixture
def article() -> ContentMeta:
    return ContentMeta(
        kind="article",
        slug="islands",
        name="Islands Architecture",
        blurb="Ship less JavaScript",
        tags=("react", "islands", "react"),
    )


@pytest.fixture
def content_root(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    root.mkdir()
    return root


@pytest.fixture
def chunks(article: ContentMeta):
    """Three chunks for the sample article, vector paths relative to the content root."""
    make_chunk = chunker(article, vector_dir="content/articles/islands")
    return [
        make_chunk(id="islands-intro", label="Introduction", text="Islands ship static HTML."),
        make_chunk(
            id="islands-hydration",
            label="Hydration",
            text="Only interactive parts hydrate.",
            tags=["react", "hydration"],
        ),
        make_chunk(id="islands-summary", label="Summary", text=build_page(Modality.FLAT_MARKUP)),
    ]


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()
