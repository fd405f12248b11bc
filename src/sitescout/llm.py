"""Vision LLM client used by the AI advisor."""

from typing import Any, Optional, Protocol, runtime_checkable
import asyncio
import base64
import json
import logging
import os

logger = logging.getLogger(__name__)


@runtime_checkable
class VisionModel(Protocol):
    """A generative model that accepts a prompt and an optional PNG image."""

    async def generate(
        self,
        prompt: str,
        image: Optional[bytes] = None,
        response_schema: Optional[dict] = None,
        max_tokens: int = 256,
        temperature: float = 0.3,
    ) -> str:
        ...


# Substrings of provider errors that will not go away on retry
NON_RETRYABLE_ERRORS = [
    'invalid api key',
    'authentication',
    'unauthorized',
    'invalid_api_key',
    'model not found',
    'invalid model',
    'permission',
]


class VisionLLMClient:
    """Async vision client for OpenAI and Anthropic.

    Implements the VisionModel protocol. SDK imports are deferred until the
    first call so the advisor can be disabled without the SDKs configured.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        provider: str = "openai",
        timeout: float = 30.0,
        max_retries: int = 2,
        retry_delay: float = 1.0,
    ):
        """Initialize the client.

        Args:
            api_key: API key for the provider (falls back to LLM_API_KEY)
            model: Model name to use
            provider: "openai" or "anthropic"
            timeout: Per-request timeout in seconds
            max_retries: Retries after the first attempt for transient errors
            retry_delay: Initial delay between retries in seconds
        """
        self.api_key = api_key or os.getenv("LLM_API_KEY")
        self.model = model
        self.provider = provider
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._client: Any = None

        if not self.api_key:
            raise ValueError(
                "API key must be provided or set in LLM_API_KEY environment variable"
            )
        if provider not in ("openai", "anthropic"):
            raise ValueError(f"Unsupported provider: {provider}")

    async def generate(
        self,
        prompt: str,
        image: Optional[bytes] = None,
        response_schema: Optional[dict] = None,
        max_tokens: int = 256,
        temperature: float = 0.3,
    ) -> str:
        """Send a prompt (and optional PNG) and return the text response.

        Transient failures (connection errors, rate limits, timeouts) are
        retried with exponential backoff. Non-retryable errors are raised
        immediately.

        Raises:
            Exception: If all retries are exhausted or the error is not retryable
        """
        last_exception = None
        current_delay = self.retry_delay

        for attempt in range(self.max_retries + 1):
            try:
                if self.provider == "openai":
                    return await self._call_openai(
                        prompt, image, response_schema, max_tokens, temperature
                    )
                return await self._call_anthropic(
                    prompt, image, response_schema, max_tokens, temperature
                )
            except Exception as e:
                error_str = str(e).lower()
                last_exception = e

                if any(err in error_str for err in NON_RETRYABLE_ERRORS):
                    logger.error(f"Non-retryable LLM error: {e}")
                    raise

                if attempt < self.max_retries:
                    logger.warning(
                        f"LLM call failed (attempt {attempt + 1}/{self.max_retries + 1}): {e}. "
                        f"Retrying in {current_delay:.1f}s..."
                    )
                    await asyncio.sleep(current_delay)
                    current_delay *= 2
                else:
                    logger.error(f"LLM call failed after {self.max_retries + 1} attempts: {e}")

        raise last_exception

    async def _call_openai(
        self,
        prompt: str,
        image: Optional[bytes],
        response_schema: Optional[dict],
        max_tokens: int,
        temperature: float,
    ) -> str:
        if self._client is None:
            import openai
            self._client = openai.AsyncOpenAI(api_key=self.api_key, timeout=self.timeout)

        content: list[dict] = [{"type": "text", "text": prompt}]
        if image is not None:
            encoded = base64.b64encode(image).decode("ascii")
            content.append({
                "type": "image_url",
                "image_url": {"url": f"data:image/png;base64,{encoded}"},
            })

        kwargs: dict[str, Any] = {}
        if response_schema is not None:
            kwargs["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": "response", "schema": response_schema},
            }

        response = await self._client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": content}],
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )
        return response.choices[0].message.content or ""

    async def _call_anthropic(
        self,
        prompt: str,
        image: Optional[bytes],
        response_schema: Optional[dict],
        max_tokens: int,
        temperature: float,
    ) -> str:
        if self._client is None:
            import anthropic
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key, timeout=self.timeout)

        # No native structured output here: ask for the schema in the prompt
        if response_schema is not None:
            prompt = (
                f"{prompt}\n\nRespond ONLY with a JSON object matching this schema, "
                f"with no additional text:\n{json.dumps(response_schema)}"
            )

        content: list[dict] = []
        if image is not None:
            content.append({
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": "image/png",
                    "data": base64.b64encode(image).decode("ascii"),
                },
            })
        content.append({"type": "text", "text": prompt})

        response = await self._client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": content}],
        )
        for block in response.content:
            if getattr(block, "type", None) == "text":
                return block.text
        return ""
