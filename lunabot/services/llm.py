"""LiteLLM completion provider used by the AI chat commands."""

import time
from dataclasses import dataclass, field
from typing import Any, Callable

import litellm
from litellm import acompletion
from loguru import logger


@dataclass
class CompletionResult:
    """Response from a completion request."""
    content: str | None
    model: str = ""
    finish_reason: str = "stop"
    usage: dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.finish_reason != "error" and bool(self.content)


@dataclass
class ModelHealth:
    """Failure state of one model, timed on the provider's monotonic clock."""
    failure_count: int = 0
    cooldown_until: float = 0.0
    last_error: str = ""

    @property
    def healthy(self) -> bool:
        return self.failure_count == 0

    def record_failure(self, error: str, now: float, cooldown_seconds: float) -> None:
        """Count a failure and bench the model until now + cooldown_seconds."""
        self.failure_count += 1
        self.cooldown_until = now + cooldown_seconds
        self.last_error = error

    def record_success(self) -> None:
        self.failure_count = 0
        self.cooldown_until = 0.0
        self.last_error = ""

    def available_at(self, now: float) -> bool:
        return now >= self.cooldown_until


class CompletionProvider:
    """
    Chat completion through LiteLLM.

    Features:
    - Any LiteLLM model id ("openai/gpt-4o-mini", "anthropic/claude-3-5-haiku-latest")
    - Model failover with per-model health cooldowns
    - Usage tracking
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        default_model: str = "openai/gpt-4o-mini",
        fallback_models: list[str] | None = None,
        cooldown_seconds: int = 300,
        system_prompt: str = "",
        max_tokens: int = 300,
        temperature: float = 0.7,
        clock: Callable[[], float] | None = None,
    ):
        self.api_key = api_key
        self.api_base = api_base
        self.default_model = default_model
        self.fallback_models = fallback_models or []
        self.cooldown_seconds = cooldown_seconds
        self.system_prompt = system_prompt
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._clock = clock or time.monotonic

        self._model_health: dict[str, ModelHealth] = {}

        # Usage tracking
        self._total_tokens = 0
        self._request_count = 0

        # Disable LiteLLM logging noise
        litellm.suppress_debug_info = True

    def _get_model_health(self, model: str) -> ModelHealth:
        """Get or create health tracking for a model."""
        if model not in self._model_health:
            self._model_health[model] = ModelHealth()
        return self._model_health[model]

    async def complete(
        self,
        prompt: str,
        model: str | None = None,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
    ) -> CompletionResult:
        """
        Ask a model for a reply to a single prompt.

        Tries the requested model, then each fallback that is not cooling
        down after a failure.

        Args:
            prompt: User text.
            model: Model id, default_model when omitted.
            system_prompt: Overrides the provider's system prompt.
            max_tokens: Overrides the provider's token limit.

        Returns:
            CompletionResult; finish_reason is "error" if every model failed.
        """
        model = model or self.default_model
        system = self.system_prompt if system_prompt is None else system_prompt

        messages: list[dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        models_to_try = [model] + [fb for fb in self.fallback_models if fb != model]
        last_error = ""

        for try_model in models_to_try:
            health = self._get_model_health(try_model)
            if not health.available_at(self._clock()):
                continue

            try:
                result = await self._call_model(try_model, messages, max_tokens or self.max_tokens)
            except Exception as e:
                last_error = str(e)
                logger.warning(f"Completion with {try_model} failed: {e}")
                health.record_failure(last_error, self._clock(), self.cooldown_seconds)
                continue

            health.record_success()
            self._request_count += 1
            self._total_tokens += result.usage.get("total_tokens", 0)
            return result

        return CompletionResult(
            content=f"Error: All models failed. Last error: {last_error}",
            finish_reason="error",
        )

    async def _call_model(
        self,
        model: str,
        messages: list[dict[str, Any]],
        max_tokens: int,
    ) -> CompletionResult:
        """Make a single API call to a model."""
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": self.temperature,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base

        response = await acompletion(**kwargs)
        return self._parse_response(response, model)

    def _parse_response(self, response: Any, model: str) -> CompletionResult:
        """Parse LiteLLM response into our standard format."""
        choice = response.choices[0]

        usage = {}
        if getattr(response, "usage", None):
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return CompletionResult(
            content=(choice.message.content or "").strip(),
            model=model,
            finish_reason=choice.finish_reason or "stop",
            usage=usage,
        )

    def get_usage_stats(self) -> dict[str, Any]:
        """Get usage statistics."""
        return {
            "total_tokens": self._total_tokens,
            "request_count": self._request_count,
            "model_health": {
                model: {
                    "healthy": health.healthy,
                    "failure_count": health.failure_count,
                    "last_error": health.last_error,
                }
                for model, health in self._model_health.items()
            },
        }
