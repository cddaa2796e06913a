"""AI provider abstraction layer.

Google Gemini behind a small provider interface so callers (and tests) can
swap the transport without touching prompt code.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import httpx

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class AIProviderError(Exception):
    """The provider call failed (network, HTTP status or response shape)."""


@dataclass
class ChatMessage:
    """A single message in a conversation."""

    role: str  # 'system', 'user', 'assistant'
    content: str


@dataclass
class ChatResponse:
    """Response from an AI provider."""

    content: str
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    model: str

    @property
    def estimated_cost_usd(self) -> Decimal:
        """Estimate cost based on model pricing (approximate)."""
        # Pricing per 1M tokens
        pricing = {
            "gemini-2.0-flash": {"input": Decimal("0.10"), "output": Decimal("0.40")},
            "gemini-2.0-flash-exp": {"input": Decimal("0.075"), "output": Decimal("0.30")},
            "gemini-1.5-flash": {"input": Decimal("0.075"), "output": Decimal("0.30")},
            "gemini-1.5-pro": {"input": Decimal("1.25"), "output": Decimal("5.00")},
        }

        model_pricing = pricing.get(self.model, {"input": Decimal("0"), "output": Decimal("0")})
        input_cost = (Decimal(self.prompt_tokens) / Decimal("1000000")) * model_pricing["input"]
        output_cost = (Decimal(self.completion_tokens) / Decimal("1000000")) * model_pricing["output"]
        return input_cost + output_cost


class AIProvider(ABC):
    """Abstract base class for AI providers."""

    @abstractmethod
    async def chat(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 8192,
    ) -> ChatResponse:
        """Send a chat completion request."""

    @abstractmethod
    async def validate_key(self) -> bool:
        """Validate that the API key is working."""


class GeminiProvider(AIProvider):
    """Google Gemini API provider."""

    def __init__(self, api_key: str, default_model: str, timeout: float = 120.0):
        self.api_key = api_key
        self.default_model = default_model
        self.timeout = timeout
        self.base_url = GEMINI_BASE_URL

    async def chat(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 8192,
    ) -> ChatResponse:
        model = model or self.default_model

        # Gemini uses 'user' and 'model' roles, system goes in systemInstruction
        system_instruction = None
        contents = []
        for msg in messages:
            if msg.role == "system":
                system_instruction = msg.content
            else:
                role = "model" if msg.role == "assistant" else "user"
                contents.append({"role": role, "parts": [{"text": msg.content}]})

        request_body: dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
            },
        }
        if system_instruction:
            request_body["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/models/{model}:generateContent",
                    params={"key": self.api_key},
                    headers={"Content-Type": "application/json"},
                    json=request_body,
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise AIProviderError(
                f"Gemini returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise AIProviderError(f"Gemini request failed: {e}") from e

        try:
            content = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise AIProviderError("Gemini response contained no text") from e

        usage = data.get("usageMetadata", {})
        prompt_tokens = usage.get("promptTokenCount", 0)
        completion_tokens = usage.get("candidatesTokenCount", 0)

        return ChatResponse(
            content=content,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
            model=model,
        )

    async def validate_key(self) -> bool:
        """Test the API key with a minimal request."""
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.get(
                    f"{self.base_url}/models",
                    params={"key": self.api_key},
                )
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning("Gemini key validation failed: %s", e)
            return False


def get_provider(provider_name: str, api_key: str, model: str, timeout: float = 120.0) -> AIProvider:
    """Factory function to get the appropriate AI provider."""
    if provider_name == "gemini":
        return GeminiProvider(api_key, default_model=model, timeout=timeout)
    raise ValueError(f"Unknown provider: {provider_name}")
