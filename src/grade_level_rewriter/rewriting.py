from __future__ import annotations

import inspect
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Union

from .llm.openai_client import OpenAIRewriteClient, RewriteMetadata
from .models import TargetProfile

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert educational content rewriter specializing in adapting text "
    "for specific grade levels.\n"
    "\n"
    "TASK: Rewrite for {level} readers ({audience}).\n"
    "\n"
    "KEY METRICS TO ACHIEVE:\n"
    "- Flesch-Kincaid Grade Level: {grade_range}\n"
    "- Reading Ease Score: {ease_range}\n"
    "\n"
    "GUIDANCE:\n"
    "{guidance}\n"
    "\n"
    "CRITICAL RULES:\n"
    "1. Preserve ALL original meaning and information.\n"
    "2. Maintain natural flow and readability.\n"
    "3. Output plain text only (no Markdown, no quotes, no introductions or commentary)."
)

USER_PROMPT_TEMPLATE = (
    "Please rewrite the following text for {level} readers:\n"
    "\n"
    "{text}\n"
    "\n"
    "Remember to:\n"
    "- Aim for grade level {grade_range}\n"
    "- Keep sentences around {sentence_words} words\n"
    "- Preserve all the original meaning\n"
    "\n"
    "Rewritten text:"
)

REFINE_PROMPT_TEMPLATE = (
    "Please refine this text to better match {level} reading level:\n"
    "\n"
    "{text}\n"
    "\n"
    "Target: Grade {grade_range}, Reading Ease {ease_range}\n"
    "\n"
    "Refined text:"
)


@dataclass(slots=True)
class RewriteRequest:
    """One call to the rewrite capability."""

    text: str
    guidance: str
    temperature: float
    target_level: str
    iteration: int = 1
    profile: TargetProfile | None = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class RewriteCompletion:
    """Text returned by the rewrite capability plus its token cost."""

    text: str
    tokens_used: int = 0


class Rewriter(ABC):
    """Abstract interface for rewriting text toward a target grade level."""

    method = "custom"

    @abstractmethod
    async def rewrite(self, request: RewriteRequest) -> RewriteCompletion:
        """Return rewritten text."""
        raise NotImplementedError


class NoOpRewriter(Rewriter):
    """Returns the original text unchanged."""

    method = "noop"

    async def rewrite(self, request: RewriteRequest) -> RewriteCompletion:
        return RewriteCompletion(text=request.text)


RewriteFunc = Callable[
    [RewriteRequest],
    Union[str, RewriteCompletion, Awaitable[Union[str, RewriteCompletion]]],
]


class CallableRewriter(Rewriter):
    """Adapt an arbitrary (sync or async) callable into the Rewriter interface."""

    def __init__(self, func: RewriteFunc, method: str = "callable") -> None:
        self._func = func
        self.method = method

    async def rewrite(self, request: RewriteRequest) -> RewriteCompletion:
        output = self._func(request)
        if inspect.isawaitable(output):
            output = await output
        if isinstance(output, RewriteCompletion):
            return output
        return RewriteCompletion(text=output or "")


class OpenAIRewriter(Rewriter):
    """Rewriter implementation backed by OpenAI chat completions."""

    method = "openai"

    def __init__(
        self,
        client: OpenAIRewriteClient,
        *,
        system_prompt_template: str = SYSTEM_PROMPT,
        user_prompt_template: str = USER_PROMPT_TEMPLATE,
        refine_prompt_template: str = REFINE_PROMPT_TEMPLATE,
    ) -> None:
        self._client = client
        self._system_prompt_template = system_prompt_template
        self._user_prompt_template = user_prompt_template
        self._refine_prompt_template = refine_prompt_template

    def build_prompts(self, request: RewriteRequest) -> tuple[str, str]:
        profile = request.profile
        if profile is not None:
            grade_range, ease_range = profile.describe_ranges()
            audience = profile.audience
            sentence_words: Any = profile.target_sentence_words
        else:
            grade_range = ease_range = "unspecified"
            audience = request.target_level
            sentence_words = "a comfortable number of"
        values = {
            "level": request.target_level,
            "audience": audience,
            "grade_range": grade_range,
            "ease_range": ease_range,
            "sentence_words": sentence_words,
            "guidance": request.guidance.strip(),
            "text": request.text.strip(),
        }
        system_prompt = self._system_prompt_template.format(**values)
        template = (
            self._user_prompt_template
            if request.iteration <= 1
            else self._refine_prompt_template
        )
        return system_prompt, template.format(**values)

    async def rewrite(self, request: RewriteRequest) -> RewriteCompletion:
        system_prompt, user_prompt = self.build_prompts(request)
        metadata = RewriteMetadata(
            target_level=request.target_level,
            iteration=request.iteration,
            token_count=max(1, len(request.text.split())),
        )
        logger.info(
            "Rewriting for %s (iteration %d, temperature %.2f)",
            request.target_level,
            request.iteration,
            request.temperature,
        )
        output = await self._client.complete(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            temperature=request.temperature,
            max_tokens=self._estimate_max_tokens(request.text),
            metadata=metadata,
        )
        return RewriteCompletion(text=output.text.strip(), tokens_used=output.total_tokens)

    def _estimate_max_tokens(self, text: str) -> int:
        settings = self._client.settings
        estimated_input = math.ceil(len(text) / 3)
        return min(
            settings.max_output_tokens,
            max(settings.min_output_tokens, estimated_input * 2),
        )
