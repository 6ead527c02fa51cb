"""Bundled model and pricing table.

Used when model discovery is unavailable, and to attach pricing to
discovered models (discovery endpoints do not report costs). Prices are
USD per million tokens.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ModelInfo:
    """A model offered by a backend.

    Attributes:
        id: Model identifier as the API expects it
        input_cost: USD per million input tokens (None if unknown)
        output_cost: USD per million output tokens (None if unknown)
        context_window: Maximum context length in tokens, if known
    """

    id: str
    input_cost: float | None = None
    output_cost: float | None = None
    context_window: int | None = None

    @property
    def is_free(self) -> bool:
        return self.input_cost == 0 and self.output_cost == 0


_LOCAL_MODELS: tuple[ModelInfo, ...] = (
    ModelInfo("llama3.2", 0.0, 0.0, 131072),
    ModelInfo("qwen2.5-coder", 0.0, 0.0, 32768),
)

STATIC_MODELS: dict[str, tuple[ModelInfo, ...]] = {
    "remote-managed": (
        ModelInfo("deepseek-ai/DeepSeek-V3.1", 1.0, 2.5, 128000),
        ModelInfo("Qwen/Qwen3-30B-A3B-Instruct-2507", 0.15, 0.45, 262144),
        ModelInfo("openai/gpt-oss-120b", 0.2, 0.6, 131072),
    ),
    "private-inference": (
        ModelInfo("llama3-3-70b", 2.0, 2.0, 128000),
        ModelInfo("deepseek-r1-70b", 2.0, 2.0, 64000),
    ),
    "openai": (
        ModelInfo("gpt-4o", 2.5, 10.0, 128000),
        ModelInfo("gpt-4o-mini", 0.15, 0.6, 128000),
    ),
    "anthropic": (
        ModelInfo("claude-sonnet-4-5", 3.0, 15.0, 200000),
        ModelInfo("claude-haiku-4-5", 1.0, 5.0, 200000),
    ),
    "local-ollama": _LOCAL_MODELS,
    "local-openai-compatible": _LOCAL_MODELS,
}


def static_models(family: str) -> tuple[ModelInfo, ...]:
    """Bundled models for ``family`` (empty for unknown families)."""
    return STATIC_MODELS.get(family, ())


def with_pricing(family: str, model_ids: list[str]) -> tuple[ModelInfo, ...]:
    """Attach bundled pricing to discovered model ids.

    Models missing from the table keep unknown costs, except on local
    backends where inference is always free.
    """
    known = {model.id: model for model in static_models(family)}
    local = family.startswith("local-")
    models = []
    for model_id in model_ids:
        if model_id in known:
            models.append(known[model_id])
        elif local:
            models.append(ModelInfo(model_id, 0.0, 0.0))
        else:
            models.append(ModelInfo(model_id))
    return tuple(models)


__all__ = ["ModelInfo", "STATIC_MODELS", "static_models", "with_pricing"]
