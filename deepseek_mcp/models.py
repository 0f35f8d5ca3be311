"""Known models and lookup of model identifiers."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class ModelInfo:
    """A model offered by the API."""

    id: str
    name: str
    description: str


class InvalidModelError(ValueError):
    """The requested model identifier is not among the available models."""


def fallback_models() -> list[ModelInfo]:
    """Models assumed to exist when none could be discovered."""
    return [
        ModelInfo(
            id="deepseek-chat",
            name="DeepSeek Chat",
            description="General-purpose chat model from DeepSeek, balancing performance and efficiency",
        ),
        ModelInfo(
            id="deepseek-coder",
            name="DeepSeek Coder",
            description="Specialized model for coding and technical tasks",
        ),
        ModelInfo(
            id="deepseek-reasoner",
            name="DeepSeek Reasoner",
            description="Model optimized for reasoning and problem-solving tasks",
        ),
    ]


class ModelCatalog:
    """Thread-safe set of discovered models, falling back to a fixed list when empty."""

    def __init__(self, models: Iterable[ModelInfo] | None = None) -> None:
        self._lock = threading.Lock()
        self._models: list[ModelInfo] = list(models or [])

    def replace(self, models: Iterable[ModelInfo]) -> None:
        """Swap in a newly discovered list of models."""
        new_models = list(models)
        with self._lock:
            self._models = new_models

    def available(self) -> list[ModelInfo]:
        """Discovered models, or the fallback list if none were discovered."""
        with self._lock:
            models = list(self._models)
        return models or fallback_models()

    def get_model_by_id(self, model_id: str) -> ModelInfo | None:
        """The model with this identifier, or None."""
        return next((model for model in self.available() if model.id == model_id), None)

    def validate_model_id(self, model_id: str) -> None:
        """Raise InvalidModelError listing the available models if model_id is unknown."""
        if self.get_model_by_id(model_id) is not None:
            return
        lines = [f"Invalid model ID: {model_id}. Available models are:"]
        lines.extend(f"- {model.id}: {model.name}" for model in self.available())
        raise InvalidModelError("\n".join(lines))