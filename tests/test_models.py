import pytest

from chatrelay.config import Config
from chatrelay.exceptions import UpstreamProviderError
from chatrelay.llms.models import get_default_model, get_known_models, get_supported_providers, init_model


def test_init_model_rejects_unknown_provider():
    with pytest.raises(UpstreamProviderError, match="Unsupported model provider: nope"):
        init_model("nope", "some-model")


def test_default_model_unavailable_returns_none():
    assert get_default_model(Config(default_model_provider="nope")) is None


def test_known_models():
    assert "openai" in get_supported_providers()
    assert "gpt-4o" in get_known_models("openai")
    assert get_known_models("nope") == []
