from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant."


def get_config() -> Config:
    return Config()


class Config(BaseSettings):
    default_model_provider: str = "openai"
    default_model_name: str = "gpt-4o"
    default_system_prompt: str = DEFAULT_SYSTEM_PROMPT

    # Without a CSV url the schedule tool answers with an error result
    schedule_csv_url: str | None = None
    tool_fetch_timeout: float = 10.0

    backend_url: str = "http://localhost:9772"

    model_config = SettingsConfigDict(env_prefix="chatrelay_", case_sensitive=False, frozen=True)

    @property
    def default_model_id(self) -> str:
        return f"{self.default_model_provider}:{self.default_model_name}"
