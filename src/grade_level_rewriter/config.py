from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml


@dataclass(slots=True)
class OpenAISettings:
    """Configuration block for OpenAI-powered rewriting."""

    enabled: bool = False
    model: str = "gpt-4-turbo"
    api_key: str | None = None
    api_key_env: str = "OPENAI_API_KEY"
    base_url: str | None = None
    organization: str | None = None
    max_output_tokens: int = 4000
    min_output_tokens: int = 800
    top_p: float = 0.95
    frequency_penalty: float = 0.2
    presence_penalty: float = 0.2
    request_timeout: float = 60.0
    parallel_requests: int = 1
    max_attempts: int = 3


@dataclass(slots=True)
class EngineConfig:
    """Configuration options for the grade-level rewrite engine."""

    max_iterations: int = 3
    cache_capacity: int = 50
    cache_ttl_seconds: float = 30 * 60
    max_requests_per_minute: int = 10
    rate_limit_window_seconds: float = 60.0
    retry_base_delay_seconds: float = 1.0
    retry_max_delay_seconds: float = 5 * 60
    max_retries: int = 3
    retry_poll_interval_seconds: float = 1.0
    debounce_seconds: float = 1.5
    history_max_items: int = 20
    openai: OpenAISettings = field(default_factory=OpenAISettings)

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable dictionary representation of the configuration."""
        return dict(asdict(self))


def _build_kwargs(data: Mapping[str, Any]) -> dict[str, Any]:
    allowed = {field.name for field in fields(EngineConfig)}
    kwargs = {key: data[key] for key in data if key in allowed}
    if "openai" in data:
        openai_value = data["openai"]
        if isinstance(openai_value, OpenAISettings):
            kwargs["openai"] = openai_value
        elif isinstance(openai_value, Mapping):
            kwargs["openai"] = _build_openai_settings(openai_value)
        else:
            raise ValueError("The 'openai' configuration block must be a mapping.")
    return kwargs


def _build_openai_settings(data: Mapping[str, Any]) -> OpenAISettings:
    openai_allowed = {field.name for field in fields(OpenAISettings)}
    filtered = {key: data[key] for key in data if key in openai_allowed}
    return OpenAISettings(**filtered)


def _validate(config: EngineConfig) -> EngineConfig:
    if config.max_iterations < 1:
        raise ValueError("max_iterations must be at least 1.")
    if config.cache_capacity < 1:
        raise ValueError("cache_capacity must be at least 1.")
    if config.max_requests_per_minute < 1:
        raise ValueError("max_requests_per_minute must be at least 1.")
    if config.max_retries < 1:
        raise ValueError("max_retries must be at least 1.")
    return config


def config_from_dict(data: Mapping[str, Any] | None) -> EngineConfig:
    """Build an EngineConfig from a dictionary-like input."""
    if data is None:
        return EngineConfig()
    return _validate(EngineConfig(**_build_kwargs(data)))


def config_from_yaml(path: str | Path) -> EngineConfig:
    """Load configuration from a YAML file."""
    contents = Path(path).read_text(encoding="utf-8")
    parsed = yaml.safe_load(contents) or {}
    if not isinstance(parsed, MutableMapping):
        raise ValueError("Configuration YAML must define a mapping.")
    return config_from_dict(parsed)


def load_config(path: str | Path | None = None) -> EngineConfig:
    """Load configuration from YAML when provided, otherwise return defaults."""
    if path is None:
        return EngineConfig()
    return config_from_yaml(path)
