from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, TypedDict

import typer
import yaml

from .config import EngineConfig, OpenAISettings, load_config
from .errors import RewriteEngineError
from .llm import OpenAIRewriteClient
from .models import Priority
from .profiles import PROFILES
from .readability import score as score_text
from .rewriting import NoOpRewriter, OpenAIRewriter, Rewriter
from .service import RewriteService

app = typer.Typer(help="Grade-level rewrite engine CLI.", no_args_is_help=True)


class ProfilePayload(TypedDict):
    label: str
    audience: str
    grade_level_range: List[float]
    reading_ease_range: List[float]
    sampling_temperature: float


@app.callback()
def configure(
    log_level: str = typer.Option(
        "WARNING", "--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)."
    ),
) -> None:
    """Configure logging before any sub-command runs."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def score(
    text: str | None = typer.Option(None, "--text", "-t", help="Text to score."),
    input_path: Path | None = typer.Option(
        None, exists=True, readable=True, dir_okay=False, file_okay=True
    ),
) -> None:
    """Print readability metrics for text or a UTF-8 file as JSON."""
    content = _read_input(text, input_path)
    typer.echo(json.dumps(score_text(content).to_dict(), indent=2))


@app.command()
def profiles() -> None:
    """List the available target grade-level profiles."""
    payload: List[ProfilePayload] = [
        {
            "label": profile.label,
            "audience": profile.audience,
            "grade_level_range": list(profile.grade_level_range),
            "reading_ease_range": list(profile.reading_ease_range),
            "sampling_temperature": profile.sampling_temperature,
        }
        for profile in PROFILES.values()
    ]
    typer.echo(json.dumps({"profiles": payload}, indent=2))


@app.command()
def rewrite(
    level: str = typer.Option(..., "--level", "-l", help="Target grade level label."),
    text: str | None = typer.Option(None, "--text", "-t", help="Text to rewrite."),
    input_path: Path | None = typer.Option(
        None, exists=True, readable=True, dir_okay=False, file_okay=True
    ),
    output_path: Path | None = typer.Option(
        None, "--output-path", "-o", dir_okay=False, help="Write the JSON result here."
    ),
    config: Path | None = typer.Option(None, "--config", "-c"),
    max_iterations: int | None = typer.Option(
        None, "--max-iterations", help="Override max convergence iterations."
    ),
    openai_enabled: bool | None = typer.Option(
        None,
        "--openai-enabled/--openai-disabled",
        help="Toggle OpenAI-backed rewriting.",
    ),
    openai_model: str | None = typer.Option(
        None, "--openai-model", help="OpenAI model identifier (e.g., gpt-4-turbo)."
    ),
    openai_api_key: str | None = typer.Option(
        None, "--openai-api-key", help="Explicit OpenAI API key (prefer env vars)."
    ),
    openai_api_key_env: str | None = typer.Option(
        None,
        "--openai-api-key-env",
        help="Environment variable to read the OpenAI API key from.",
    ),
    openai_base_url: str | None = typer.Option(
        None, "--openai-base-url", help="Custom OpenAI base URL (Azure, proxy, etc.)."
    ),
    openai_request_timeout: float | None = typer.Option(
        None, "--openai-request-timeout", help="Request timeout (seconds)."
    ),
) -> None:
    """Rewrite text toward a grade level and emit the result as JSON."""
    cfg = load_config(config)
    if max_iterations is not None:
        cfg.max_iterations = max_iterations
    _apply_openai_overrides(
        cfg.openai,
        openai_enabled,
        openai_model,
        openai_api_key,
        openai_api_key_env,
        openai_base_url,
        openai_request_timeout,
    )
    content = _read_input(text, input_path)
    service = RewriteService(_build_rewriter(cfg), config=cfg)
    try:
        result = asyncio.run(service.rewrite(content, level, priority=Priority.HIGH))
    except RewriteEngineError as exc:
        typer.echo(f"Rewrite failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    payload: Dict[str, Any] = {
        "result": result.to_dict(),
        "metrics": service.context.metrics.to_dict(),
    }
    rendered = json.dumps(payload, indent=2)
    if output_path is not None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(rendered, encoding="utf-8")
        typer.echo(f"Wrote rewrite result to {output_path}")
    else:
        typer.echo(rendered)


@app.command("print-config")
def print_config() -> None:
    """Print the default configuration as YAML."""
    cfg = EngineConfig()
    typer.echo(yaml.safe_dump(cfg.to_dict(), sort_keys=False))


def main() -> None:
    app()


def _read_input(text: str | None, input_path: Path | None) -> str:
    """Return inline text or the contents of ``input_path``; exactly one is required."""
    if (text is None) == (input_path is None):
        raise typer.BadParameter("Provide exactly one of --text or --input-path.")
    if input_path is not None:
        return input_path.read_text(encoding="utf-8")
    return text or ""


def _apply_openai_overrides(
    settings: OpenAISettings,
    openai_enabled: bool | None,
    openai_model: str | None,
    openai_api_key: str | None,
    openai_api_key_env: str | None,
    openai_base_url: str | None,
    openai_request_timeout: float | None,
) -> None:
    """Override OpenAI settings from CLI flags."""
    if openai_enabled is not None:
        settings.enabled = openai_enabled
    if openai_model:
        settings.model = openai_model
    if openai_api_key:
        settings.api_key = openai_api_key
    if openai_api_key_env:
        settings.api_key_env = openai_api_key_env
    if openai_base_url:
        settings.base_url = openai_base_url
    if openai_request_timeout is not None:
        settings.request_timeout = openai_request_timeout


def _build_rewriter(config: EngineConfig) -> Rewriter:
    """Instantiate the configured rewriter implementation for the current run."""
    if config.openai.enabled:
        api_key = _resolve_openai_api_key(config.openai)
        client = OpenAIRewriteClient(config.openai, api_key=api_key)
        return OpenAIRewriter(client)
    typer.echo(
        "OpenAI rewriting is disabled; returning original text.",
        err=True,
    )
    return NoOpRewriter()


def _resolve_openai_api_key(settings: OpenAISettings) -> str:
    """Resolve the API key from explicit config or the configured environment variable."""
    if settings.api_key:
        return settings.api_key
    env_name = settings.api_key_env or "OPENAI_API_KEY"
    if env_name in os.environ:
        return os.environ[env_name]
    raise RuntimeError(
        "OpenAI API key not provided. Use --openai-api-key or set the configured environment variable."
    )


if __name__ == "__main__":
    main()
