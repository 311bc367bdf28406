"""
Runtime configuration, read from the environment.

Environment Variables:
- EMBEDDING_PROVIDER: "openai" or "local" (default: "openai")
- EMBEDDING_MODEL: Model id, or a local preset name (fast, balanced, quality, multilingual)
- EMBEDDING_DIMENSIONS: Requested vector size, for models that support shortening
- EMBEDDING_BATCH_SIZE: Texts per provider call (default: 32)
- EMBEDDING_CACHE_DIR: Local model cache (default: "./models/embeddings")
- EMBEDDING_DEVICE: "cuda", "cpu" or "auto" (default: "auto")
- OPENAI_API_KEY / OPENAI_BASE_URL: OpenAI credentials and endpoint
- POLYMODAL_CONTENT_ROOT: Directory vector paths are resolved against (default: cwd)
- HF_TOKEN: HuggingFace token for private models
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Optional

PROVIDERS = ("openai", "local")

DEFAULT_OPENAI_MODEL = "text-embedding-3-small"


def _env_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


@dataclass
class PolymodalConfig:
    """Configuration for embedding generation and vector storage."""

    # Embedding
    provider: str = "openai"
    model: Optional[str] = None  # Provider default if None
    dimensions: Optional[int] = None
    batch_size: int = 32

    # Local models
    cache_dir: Path = field(default_factory=lambda: Path("./models/embeddings"))
    device: str = "auto"
    hf_token: Optional[str] = None

    # OpenAI
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None

    # Vector records
    content_root: Path = field(default_factory=Path.cwd)

    def __post_init__(self):
        self.provider = self.provider.lower()
        if self.provider not in PROVIDERS:
            raise ValueError(f"Unknown embedding provider {self.provider!r}, expected one of {PROVIDERS}")
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        self.cache_dir = Path(self.cache_dir)
        self.content_root = Path(self.content_root)

    @classmethod
    def from_env(cls, **overrides: Any) -> "PolymodalConfig":
        """
        Build a config from environment variables.

        Args:
            **overrides: Field values that take precedence over the
                environment (None values are ignored)

        Raises:
            ValueError: If a variable holds an invalid value
        """
        values: dict[str, Any] = {
            "provider": os.getenv("EMBEDDING_PROVIDER", "openai"),
            "model": os.getenv("EMBEDDING_MODEL") or None,
            "dimensions": _env_int("EMBEDDING_DIMENSIONS"),
            "batch_size": _env_int("EMBEDDING_BATCH_SIZE") or 32,
            "cache_dir": Path(os.getenv("EMBEDDING_CACHE_DIR", "./models/embeddings")),
            "device": os.getenv("EMBEDDING_DEVICE", "auto"),
            "hf_token": os.getenv("HF_TOKEN") or None,
            "openai_api_key": os.getenv("OPENAI_API_KEY") or None,
            "openai_base_url": os.getenv("OPENAI_BASE_URL") or None,
            "content_root": Path(os.getenv("POLYMODAL_CONTENT_ROOT") or Path.cwd()),
        }

        known = {f.name for f in fields(cls)}
        for key, value in overrides.items():
            if key not in known:
                raise TypeError(f"Unknown config field: {key}")
            if value is not None:
                values[key] = value

        return cls(**values)

    def with_overrides(self, **overrides: Any) -> "PolymodalConfig":
        """Copy with the given non-None fields replaced."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @property
    def model_name(self) -> str:
        """Configured model, or the provider's default."""
        if self.model:
            return self.model
        return DEFAULT_OPENAI_MODEL if self.provider == "openai" else "fast"
