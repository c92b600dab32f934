import json
from pathlib import Path
from typing import Any

from pytest import MonkeyPatch
from typer.testing import CliRunner

from grade_level_rewriter.cli import app
from grade_level_rewriter.rewriting import RewriteCompletion, Rewriter, RewriteRequest
from tests.utils import COMPLEX_TEXT, EASY_TEXT

runner = CliRunner()


def test_cli_score_outputs_metrics():
    """score command prints readability metrics as JSON."""
    result = runner.invoke(app, ["score", "--text", "The cat sat on the mat."])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["word_count"] == 6
    assert payload["sentence_count"] == 1
    assert payload["ease_label"] == "Very Easy"


def test_cli_score_reads_input_file(tmp_path: Path):
    source = tmp_path / "passage.txt"
    source.write_text(COMPLEX_TEXT, encoding="utf-8")
    result = runner.invoke(app, ["score", "--input-path", str(source)])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["grade_label"] == "Graduate Level"


def test_cli_score_requires_exactly_one_input():
    result = runner.invoke(app, ["score"])
    assert result.exit_code != 0


def test_cli_profiles_lists_every_level():
    result = runner.invoke(app, ["profiles"])
    assert result.exit_code == 0
    labels = [profile["label"] for profile in json.loads(result.stdout)["profiles"]]
    assert labels == ["elementary", "middle-school", "high-school", "college", "graduate"]


def test_cli_print_config():
    """print-config command dumps the current configuration values."""
    result = runner.invoke(app, ["print-config"])
    assert result.exit_code == 0
    assert "cache_capacity: 50" in result.stdout
    assert "max_requests_per_minute: 10" in result.stdout


def test_cli_rewrite_without_openai_keeps_text(tmp_path: Path):
    """rewrite falls back to the no-op rewriter when OpenAI is disabled."""
    output_path = tmp_path / "out" / "result.json"
    result = runner.invoke(
        app,
        [
            "rewrite",
            "--text",
            COMPLEX_TEXT,
            "--level",
            "college",
            "--output-path",
            str(output_path),
        ],
    )
    assert result.exit_code == 0
    payload = json.loads(output_path.read_text(encoding="utf-8"))
    assert payload["result"]["rewritten_text"] == COMPLEX_TEXT
    assert payload["result"]["changed"] is False
    assert payload["result"]["method"] == "noop"
    assert payload["metrics"]["completed_requests"] == 1


def test_cli_rewrite_with_openai_options(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    """rewrite command wires OpenAI settings into the rewriter when enabled."""
    output_path = tmp_path / "result.json"
    config_path = tmp_path / "config.yaml"
    config_path.write_text("max_iterations: 2\n", encoding="utf-8")
    calls: dict[str, Any] = {}

    class DummyClient:
        def __init__(self, settings: Any, api_key: str) -> None:
            calls["settings"] = settings
            calls["api_key"] = api_key

    class DummyRewriter(Rewriter):
        method = "openai"

        def __init__(self, client: DummyClient, **_ignored: Any) -> None:
            self._client = client

        async def rewrite(self, request: RewriteRequest) -> RewriteCompletion:
            calls.setdefault("levels", []).append(request.target_level)
            return RewriteCompletion(text=EASY_TEXT, tokens_used=25)

    monkeypatch.setattr("grade_level_rewriter.cli.OpenAIRewriteClient", DummyClient)
    monkeypatch.setattr("grade_level_rewriter.cli.OpenAIRewriter", DummyRewriter)

    result = runner.invoke(
        app,
        [
            "rewrite",
            "--text",
            COMPLEX_TEXT,
            "--level",
            "Elementary",
            "--output-path",
            str(output_path),
            "--config",
            str(config_path),
            "--openai-enabled",
            "--openai-model",
            "gpt-4.1-mini",
        ],
        env={"OPENAI_API_KEY": "dummy-key"},
    )
    assert result.exit_code == 0
    payload = json.loads(output_path.read_text(encoding="utf-8"))
    assert payload["result"]["rewritten_text"] == EASY_TEXT
    assert payload["result"]["target_met"] is True
    assert payload["metrics"]["total_tokens_consumed"] == 25
    assert calls["settings"].model == "gpt-4.1-mini"
    assert calls["api_key"] == "dummy-key"
    assert calls["levels"] == ["elementary"]


def test_cli_rewrite_reports_hard_failure(monkeypatch: MonkeyPatch) -> None:
    class BrokenRewriter(Rewriter):
        method = "openai"

        def __init__(self, client: Any, **_ignored: Any) -> None:
            pass

        async def rewrite(self, request: RewriteRequest) -> RewriteCompletion:
            raise RuntimeError("invalid api key")

    monkeypatch.setattr(
        "grade_level_rewriter.cli.OpenAIRewriteClient", lambda settings, api_key: None
    )
    monkeypatch.setattr("grade_level_rewriter.cli.OpenAIRewriter", BrokenRewriter)

    result = runner.invoke(
        app,
        ["rewrite", "--text", COMPLEX_TEXT, "--level", "college", "--openai-enabled"],
        env={"OPENAI_API_KEY": "dummy-key"},
    )
    assert result.exit_code == 1
