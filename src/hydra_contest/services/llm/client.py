"""OpenRouter API client with async support and retries."""

from __future__ import annotations

import json
import random
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
import structlog
import yaml
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger()

_FAKE_RESPONSES_PATH = Path(__file__).parent / "fake_responses.yaml"
_CRITERION_LINE = re.compile(r"^- (\w+) \(weight", re.MULTILINE)


@dataclass(frozen=True)
class LLMResponse:
    """Response from an LLM API call with usage data."""

    content: str
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


def _load_fake_responses() -> dict[str, Any]:
    """Load fake response templates from YAML file (cached after first call)."""
    if not hasattr(_load_fake_responses, "_cache"):
        with _FAKE_RESPONSES_PATH.open(encoding="utf-8") as f:
            _load_fake_responses._cache = yaml.safe_load(f)
    return _load_fake_responses._cache


class MalformedResponseError(ValueError):
    """API answered successfully but the body is not a chat completion."""


def _parse_completion(data: Any) -> tuple[str, dict[str, Any]]:
    """Extract message content and usage from a chat completion body."""
    try:
        content = data["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError) as e:
        msg = f"Malformed completion response: {str(data)[:200]}"
        raise MalformedResponseError(msg) from e
    if not isinstance(content, str):
        msg = f"Completion content is not text: {type(content).__name__}"
        raise MalformedResponseError(msg)
    usage = data.get("usage") or {}
    return content, usage if isinstance(usage, dict) else {}


class LLMClient(ABC):
    """Abstract base class for async LLM clients."""

    @abstractmethod
    async def complete(
        self,
        model: str,
        messages: list[dict[str, str]],
        max_tokens: int,
        temperature: float,
    ) -> LLMResponse:
        """Generate a completion from the model.

        Args:
            model: Model identifier.
            messages: List of message dicts with 'role' and 'content'.
            max_tokens: Maximum tokens to generate.
            temperature: Sampling temperature.

        Returns:
            LLMResponse with content and usage data.
        """

    async def close(self) -> None:  # noqa: B027
        """Close any resources. Override if needed."""


class FakeLLMClient(LLMClient):
    """Fake async LLM client for tests and dry runs.

    Picks a response template from the system prompt: arbiter prompts get a
    JSON assessment over the criteria listed in the user prompt, moderator
    prompts a summary, evolutioner prompts a calibration hypothesis.
    """

    def __init__(self, seed: int = 42) -> None:
        self.seed = seed
        self.call_count = 0

    async def complete(
        self,
        model: str,
        messages: list[dict[str, str]],
        _max_tokens: int,
        _temperature: float,
    ) -> LLMResponse:
        """Return deterministic fake response."""
        self.call_count += 1
        last_content = messages[-1]["content"] if messages else ""

        system_content = ""
        if messages and messages[0].get("role") == "system":
            system_content = messages[0].get("content", "").lower()

        templates = _load_fake_responses()
        if "arbiter" in system_content:
            content = self._fake_assessment(model, last_content)
        elif "moderator" in system_content:
            content = templates["moderator"].format(model=model)
        elif "evolutioner" in system_content:
            content = templates["evolutioner"]
        else:
            content = templates["default"].format(model=model)

        # Simulate token counts based on content length
        prompt_tokens = sum(len(m.get("content", "").split()) for m in messages) * 2
        completion_tokens = len(content.split()) * 2
        return LLMResponse(
            content=content,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )

    def _fake_assessment(self, model: str, prompt: str) -> str:
        """Generate a fake arbiter assessment JSON."""
        template = _load_fake_responses()["arbiter"]
        rng = random.Random(self.seed + self.call_count)  # noqa: S311
        criteria = _CRITERION_LINE.findall(prompt) or ["quality"]
        scores = {c: round(rng.uniform(6.0, 9.0), 1) for c in criteria}
        return json.dumps(
            {
                "scores": scores,
                "red_flags": template["red_flags"],
                "recommendation": "hire",
                "confidence": round(rng.uniform(0.6, 0.95), 2),
                "comment": template["comment"].format(model=model),
                "retest_competencies": template["retest_competencies"],
            }
        )


class OpenRouterClient(LLMClient):
    """Async OpenRouter API client with retries."""

    BASE_URL = "https://openrouter.ai/api/v1/chat/completions"

    def __init__(self, api_key: str, timeout: float = 120.0) -> None:
        self.api_key = api_key
        self.client = httpx.AsyncClient(timeout=timeout)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type((httpx.HTTPStatusError, httpx.TransportError)),
        reraise=True,
    )
    async def complete(
        self,
        model: str,
        messages: list[dict[str, str]],
        max_tokens: int,
        temperature: float,
    ) -> LLMResponse:
        """Generate completion via OpenRouter API.

        Raises:
            httpx.HTTPStatusError: On API error after retries.
            MalformedResponseError: If the response body is not a chat completion.
        """
        logger.info("api_call", model=model, max_tokens=max_tokens)

        response = await self.client.post(
            self.BASE_URL,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
                "X-Title": "Hydra",
            },
            json={
                "model": model,
                "messages": messages,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "stream": False,
            },
        )
        response.raise_for_status()

        data = response.json()
        content, usage = _parse_completion(data)
        prompt_tokens = usage.get("prompt_tokens", 0)
        completion_tokens = usage.get("completion_tokens", 0)
        total_tokens = usage.get("total_tokens", prompt_tokens + completion_tokens)

        logger.debug(
            "api_response",
            model=model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
        )
        return LLMResponse(
            content=content,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total_tokens,
        )

    async def close(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()


def create_client(
    api_key: str | None = None,
    dry_run: bool = False,
    seed: int = 42,
) -> LLMClient:
    """Create appropriate LLM client based on settings.

    Args:
        api_key: OpenRouter API key (required unless dry_run).
        dry_run: Use fake client instead of real API.
        seed: Random seed for fake client.

    Returns:
        LLMClient instance.
    """
    if dry_run:
        logger.info("using_fake_client", seed=seed)
        return FakeLLMClient(seed=seed)

    if not api_key:
        msg = "API key required for real API calls"
        raise ValueError(msg)

    return OpenRouterClient(api_key)
