"""Application configuration."""

import os
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from allergen_scanner.domain.allergens import DEFAULT_CRITICAL_ALLERGENS

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    openai_api_key: str
    openai_model: str = "gpt-5.2"
    openai_reasoning_effort: str | None = "low"
    openai_store: bool = False
    allergen_evaluator: Literal["rules", "inference"] = "rules"
    critical_allergens: str = ",".join(DEFAULT_CRITICAL_ALLERGENS)
    inference_timeout_seconds: float | None = 30.0
    food_data_path: str | None = None
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_critical_allergens(raw: str | None) -> tuple[str, ...]:
    """Parse the comma-separated critical allergen list from env."""
    if raw is None:
        return DEFAULT_CRITICAL_ALLERGENS
    terms: list[str] = []
    for chunk in raw.split(","):
        value = chunk.strip().lower()
        if value and value not in terms:
            terms.append(value)
    return tuple(terms)
