from __future__ import annotations

from fastapi import Depends
from pydantic_ai.models import Model, infer_model

from chatrelay.config import Config, get_config
from chatrelay.exceptions import UpstreamProviderError
from chatrelay.log import logger

SUPPORTED_PROVIDERS = [
    "openai",
    "anthropic",
    "google-gla",
    "groq",
    "mistral",
    "bedrock",
]

KNOWN_MODELS = {
    "openai": ["gpt-4o", "gpt-4o-mini", "gpt-4.1", "gpt-4.1-mini"],
    "anthropic": ["claude-3-5-sonnet-latest", "claude-3-5-haiku-latest"],
    "google-gla": ["gemini-2.0-flash", "gemini-1.5-pro"],
    "groq": ["llama-3.3-70b-versatile"],
    "mistral": ["mistral-large-latest", "mistral-small-latest"],
    "bedrock": ["anthropic.claude-3-5-sonnet-20241022-v2:0"],
}


def get_supported_providers() -> list[str]:
    return SUPPORTED_PROVIDERS


def get_known_models(provider: str) -> list[str]:
    return KNOWN_MODELS.get(provider, [])


def init_model(provider: str, model_name: str) -> Model:
    if provider not in SUPPORTED_PROVIDERS:
        raise UpstreamProviderError(f"Unsupported model provider: {provider}")

    try:
        return infer_model(f"{provider}:{model_name}")
    except Exception as e:
        # Missing credentials or provider extras surface here
        raise UpstreamProviderError(f"Can not initialize model {provider}:{model_name}: {e}") from e


def get_default_model(config: Config = Depends(get_config)) -> Model | None:
    try:
        return init_model(config.default_model_provider, config.default_model_name)
    except UpstreamProviderError as e:
        logger.error(f"Default model is not available: {e}")
        return None
