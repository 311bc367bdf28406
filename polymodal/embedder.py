"""
Embedding providers.

Two interchangeable backends behind one interface:

- OpenAIEmbeddingProvider: the OpenAI embeddings endpoint (or any
  OpenAI-compatible server via OPENAI_BASE_URL)
- LocalEmbeddingProvider: a sentence-transformers model fetched with
  HuggingFace snapshot_download and run in-process

Select one from configuration with create_provider().
"""
from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional, Sequence

from huggingface_hub import snapshot_download
from openai import OpenAI

from .config import DEFAULT_OPENAI_MODEL, PolymodalConfig
from .utils import EmbeddingError

logger = logging.getLogger(__name__)

# Native output size of the OpenAI embedding models
OPENAI_MODEL_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

# Model presets for quick selection
MODEL_PRESETS = {
    "fast": "sentence-transformers/all-MiniLM-L6-v2",
    "balanced": "sentence-transformers/all-mpnet-base-v2",
    "quality": "BAAI/bge-large-en-v1.5",
    "multilingual": "sentence-transformers/paraphrase-multilingual-mpnet-base-v2",
}


def resolve_model_id(model_id: Optional[str] = None) -> str:
    """
    Resolve a local model id with fallback chain.
    Priority: direct parameter > EMBEDDING_MODEL env var > "fast" preset.
    Preset names resolve to their HuggingFace ids.
    """
    model_id = model_id or os.getenv("EMBEDDING_MODEL") or "fast"
    return MODEL_PRESETS.get(model_id, model_id)


class EmbeddingProvider(ABC):
    """
    Interface every embedding backend implements.

    Providers turn a batch of texts into vectors of one fixed dimension.
    Batching across calls is the caller's job (see ChunkIndexer).
    """

    provider_name: str = "base"

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model identifier recorded alongside generated vectors."""

    @property
    @abstractmethod
    def dimension(self) -> Optional[int]:
        """Vector size, if known before the first call."""

    @abstractmethod
    def generate_embeddings(self, texts: Sequence[str]) -> list[list[float]]:
        """
        Embed a batch of texts.

        Returns:
            One vector per text, in input order

        Raises:
            EmbeddingError: If the backend fails
        """

    def generate_embedding(self, text: str) -> list[float]:
        return self.generate_embeddings([text])[0]

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.model_name}>"


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """
    Embeddings from the OpenAI API.

    Example:
        provider = OpenAIEmbeddingProvider(model="text-embedding-3-large", dimensions=1024)
        vectors = provider.generate_embeddings(["# Intro\\n\\nIslands architecture ..."])
    """

    provider_name = "openai"

    def __init__(
        self,
        model: str = DEFAULT_OPENAI_MODEL,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        dimensions: Optional[int] = None,
        client: Optional[Any] = None,
    ):
        """
        Args:
            model: OpenAI embedding model
            api_key: API key (default: OPENAI_API_KEY)
            base_url: Endpoint override (default: OPENAI_BASE_URL)
            dimensions: Shortened output size, for models that support it
            client: Preconfigured client to use instead of creating one

        Raises:
            EmbeddingError: If no client is given and no API key is available
        """
        self.model = model
        self._dimensions = dimensions

        if client is None:
            api_key = api_key or os.getenv("OPENAI_API_KEY")
            if not api_key:
                raise EmbeddingError("OPENAI_API_KEY is not set")
            client = OpenAI(api_key=api_key, base_url=base_url or os.getenv("OPENAI_BASE_URL"))
        self._client = client

    @property
    def model_name(self) -> str:
        return self.model

    @property
    def dimension(self) -> Optional[int]:
        return self._dimensions or OPENAI_MODEL_DIMENSIONS.get(self.model)

    def generate_embeddings(self, texts: Sequence[str]) -> list[list[float]]:
        texts = list(texts)
        if not texts:
            return []

        request: dict[str, Any] = {
            "model": self.model,
            "input": texts,
            "encoding_format": "float",
        }
        if self._dimensions:
            request["dimensions"] = self._dimensions

        logger.debug(f"Requesting {len(texts)} embeddings from {self.model}")
        try:
            response = self._client.embeddings.create(**request)
        except Exception as e:
            raise EmbeddingError(f"OpenAI embedding request failed: {e}") from e

        data = sorted(response.data, key=lambda item: item.index)
        if len(data) != len(texts):
            raise EmbeddingError(f"Expected {len(texts)} embeddings, got {len(data)}")
        return [list(item.embedding) for item in data]


class LocalEmbeddingProvider(EmbeddingProvider):
    """
    Sentence-transformers model run in-process.

    The model is downloaded on first use with snapshot_download and cached
    under ``cache_dir``. torch and sentence-transformers are imported only
    when the model loads.

    Examples:
        provider = LocalEmbeddingProvider()                  # "fast" preset
        provider = LocalEmbeddingProvider(model_id="quality")
        provider = LocalEmbeddingProvider(model_id="intfloat/e5-large-v2", device="cpu")
    """

    provider_name = "local"

    def __init__(
        self,
        model_id: Optional[str] = None,
        cache_dir: Optional[str] = None,
        device: Optional[str] = None,
        token: Optional[str] = None,
        batch_size: int = 32,
    ):
        self.model_id = resolve_model_id(model_id)
        self.cache_dir = Path(cache_dir or os.getenv("EMBEDDING_CACHE_DIR", "./models/embeddings"))
        self.device = device or os.getenv("EMBEDDING_DEVICE", "auto")
        self.token = token or os.getenv("HF_TOKEN")
        self.batch_size = batch_size

        self.model = None
        self._is_loaded = False

        logger.info(f"Local embedding model configured: {self.model_id} (device={self.device})")

    @property
    def model_name(self) -> str:
        return self.model_id

    @property
    def dimension(self) -> Optional[int]:
        if not self._is_loaded:
            return None
        return self.model.get_sentence_embedding_dimension()

    def download_model(self) -> Path:
        """
        Download the model snapshot (uses the cache if present).

        Returns:
            Path to the downloaded model directory
        """
        logger.info(f"Downloading model: {self.model_id}")
        self.cache_dir.mkdir(parents=True, exist_ok=True)

        model_path = snapshot_download(
            repo_id=self.model_id,
            cache_dir=str(self.cache_dir),
            token=self.token,
        )

        logger.info(f"Model downloaded to: {model_path}")
        return Path(model_path)

    def load_model(self, force_reload: bool = False) -> None:
        """
        Load the model, downloading it first if needed.

        Raises:
            EmbeddingError: If the model cannot be downloaded or loaded
        """
        if self._is_loaded and not force_reload:
            return

        import torch
        from sentence_transformers import SentenceTransformer

        device = self.device
        if device == "auto":
            device = "cuda" if torch.cuda.is_available() else "cpu"

        try:
            model_path = self.download_model()
            self.model = SentenceTransformer(str(model_path), device=device)
        except Exception as e:
            raise EmbeddingError(f"Failed to load embedding model {self.model_id}: {e}") from e

        self._is_loaded = True
        logger.info(
            f"Loaded {self.model_id} on {device} "
            f"({self.model.get_sentence_embedding_dimension()} dimensions)"
        )

    def generate_embeddings(self, texts: Sequence[str]) -> list[list[float]]:
        texts = list(texts)
        if not texts:
            return []

        self.load_model()
        logger.debug(f"Encoding {len(texts)} texts with {self.model_id}")
        vectors = self.model.encode(
            texts,
            batch_size=self.batch_size,
            convert_to_numpy=True,
            show_progress_bar=False,
        )
        return vectors.tolist()

    def get_model_info(self) -> dict:
        """Get information about the configured model."""
        if not self._is_loaded:
            return {"loaded": False, "model_id": self.model_id}

        return {
            "loaded": True,
            "model_id": self.model_id,
            "device": str(self.model.device),
            "embedding_dim": self.model.get_sentence_embedding_dimension(),
            "max_seq_length": self.model.max_seq_length,
            "cache_dir": str(self.cache_dir),
        }


def create_provider(config: Optional[PolymodalConfig] = None) -> EmbeddingProvider:
    """
    Create the provider a config selects.

    Args:
        config: Configuration (default: PolymodalConfig.from_env())

    Returns:
        An EmbeddingProvider
    """
    config = config or PolymodalConfig.from_env()

    if config.provider == "local":
        return LocalEmbeddingProvider(
            model_id=config.model,
            cache_dir=str(config.cache_dir),
            device=config.device,
            token=config.hf_token,
            batch_size=config.batch_size,
        )

    return OpenAIEmbeddingProvider(
        model=config.model_name,
        api_key=config.openai_api_key,
        base_url=config.openai_base_url,
        dimensions=config.dimensions,
    )
