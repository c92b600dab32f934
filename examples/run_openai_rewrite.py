"""Minimal example showing how to drive the rewrite service with OpenAI."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

from grade_level_rewriter.config import load_config
from grade_level_rewriter.llm import OpenAIRewriteClient
from grade_level_rewriter.rewriting import OpenAIRewriter
from grade_level_rewriter.service import RewriteService


async def run() -> None:
    config = load_config(Path(__file__).with_name("example_config.yaml"))
    config.openai.enabled = True
    api_key = (
        config.openai.api_key
        or os.environ.get(config.openai.api_key_env or "OPENAI_API_KEY")
        or ""
    )
    if not api_key:
        raise RuntimeError(
            "Set the OpenAI API key before running this example "
            f"({config.openai.api_key_env})."
        )

    client = OpenAIRewriteClient(config.openai, api_key=api_key)
    service = RewriteService(OpenAIRewriter(client), config=config)

    sample_text = (
        "The mechanical manual described gyroscopic stabilization in dense jargon, "
        "explaining how the device keeps a platform steady even when the base wobbles."
    )
    result = await service.rewrite(sample_text, "elementary")
    print("Original:\n", result.original_text)
    print("\nRewritten:\n", result.rewritten_text)
    print(
        f"\nGrade {result.metrics_before.grade_level} -> {result.metrics_after.grade_level}"
        f" after {result.iterations_used} iteration(s); target met: {result.target_met}"
    )
    print("Metrics:", service.context.metrics.to_dict())


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
