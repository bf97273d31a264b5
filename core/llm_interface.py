# core/llm_interface.py
"""
Handles all direct interactions with the text-generation endpoint used by
the creativity judge and the narrator. Includes the ``TextGenerator``
protocol the evaluation engine depends on, token counting helpers and an
OpenAI-compatible chat completion client with retries.

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

# Standard library imports
import asyncio
import functools
import logging
import random
import re

# Type hints
from typing import Any, Protocol, runtime_checkable

import httpx

# Third-party imports
import structlog
import tiktoken

# Local imports
from config import NarrationEvalSettings, settings
from core.exceptions import LLMCallError

logger = structlog.get_logger(__name__)
# Token estimates are only computed when debug output is enabled.
_stdlib_logger = logging.getLogger(__name__)


@runtime_checkable
class TextGenerator(Protocol):
    """Anything that turns a prompt into generated text."""

    async def generate(self, prompt: str, *, model: str, temperature: float) -> str:
        ...


# Token parameter handling
def _completion_token_param(api_base: str) -> str:
    """Return the token count parameter expected by the provider."""
    if "api.openai.com" in api_base or "api.anthropic.com" in api_base:
        return "max_completion_tokens"
    return "max_tokens"


@functools.lru_cache(maxsize=8)
def _get_tokenizer(model_name: str) -> tiktoken.Encoding | None:
    """
    Gets a tiktoken encoder for the given model name, with caching.
    Tries model-specific encoding, then a default, then returns None.
    """
    try:
        try:
            encoder = tiktoken.encoding_for_model(model_name)
        except KeyError:
            logger.debug(
                f"No direct tiktoken encoding for '{model_name}'. Using default '{settings.TIKTOKEN_DEFAULT_ENCODING}'."
            )
            encoder = tiktoken.get_encoding(settings.TIKTOKEN_DEFAULT_ENCODING)
        return encoder
    except Exception as e:
        logger.error(
            f"Unexpected error getting tokenizer for '{model_name}': {e}",
            exc_info=True,
        )
        return None


def count_tokens(text: str, model_name: str) -> int:
    """
    Counts the number of tokens in a string for a given model.
    Falls back to a character-based estimate when no tokenizer is available.
    """
    if not text:
        return 0

    encoder = _get_tokenizer(model_name)
    if encoder:
        return len(encoder.encode(text, allowed_special="all"))

    token_estimate = int(len(text) / settings.FALLBACK_CHARS_PER_TOKEN)
    logger.warning(
        f"count_tokens: Failed to get tokenizer for '{model_name}'. "
        f"Falling back to character-based estimate: ~{token_estimate} tokens."
    )
    return token_estimate


_THINK_TAGS = ("think", "thought", "thinking", "reasoning", "analysis")


def clean_model_response(text: str) -> str:
    """Strip reasoning tags and code fences from a model reply."""
    if not isinstance(text, str):
        logger.warning(
            f"clean_model_response received non-string input: {type(text)}. Returning empty string."
        )
        return ""

    cleaned_text = text
    for tag_name in _THINK_TAGS:
        cleaned_text = re.sub(
            rf"<\s*{tag_name}\s*>.*?<\s*/\s*{tag_name}\s*>",
            "",
            cleaned_text,
            flags=re.DOTALL | re.IGNORECASE,
        )
        cleaned_text = re.sub(
            rf"<\s*/?\s*{tag_name}\s*/?\s*>", "", cleaned_text, flags=re.IGNORECASE
        )

    cleaned_text = re.sub(
        r"```(?:[a-zA-Z0-9_-]+)?\s*(.*?)\s*```",
        r"\1",
        cleaned_text,
        flags=re.DOTALL,
    )
    cleaned_text = re.sub(r"\n{3,}", "\n\n", cleaned_text.strip())
    return cleaned_text


class LLMService:
    """OpenAI-compatible chat completion client implementing ``TextGenerator``."""

    def __init__(
        self,
        config: NarrationEvalSettings = settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        # Use a single async client for all requests to reuse connections
        self._client = httpx.AsyncClient(timeout=config.HTTPX_TIMEOUT, transport=transport)
        # Add a semaphore to limit concurrent requests
        self._semaphore = asyncio.Semaphore(config.MAX_CONCURRENT_LLM_CALLS)
        self.request_count = 0
        logger.info(
            f"LLMService initialized with a concurrency limit of {config.MAX_CONCURRENT_LLM_CALLS}."
        )

    async def _backoff_delay(self, attempt: int) -> None:
        """Sleep for an exponentially increasing delay with jitter."""
        delay = self.config.LLM_RETRY_DELAY_SECONDS * (2**attempt)
        jitter = random.uniform(0, delay / 2)
        await asyncio.sleep(delay + jitter)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def _log_llm_usage(self, model_name: str, usage_data: dict[str, int] | None) -> None:
        """Helper to log LLM token usage if available in the response."""
        if usage_data and isinstance(usage_data, dict):
            logger.info(
                f"LLM ('{model_name}') Usage - Prompt: {usage_data.get('prompt_tokens', 'N/A')} tk, "
                f"Comp: {usage_data.get('completion_tokens', 'N/A')} tk, Total: {usage_data.get('total_tokens', 'N/A')} tk"
            )
        else:
            logger.debug(f"LLM ('{model_name}') response missing 'usage' information.")

    async def _post_chat_completion(
        self, payload: dict[str, Any], headers: dict[str, str]
    ) -> tuple[str, dict[str, int] | None]:
        """Send a regular chat completion request."""
        response = await self._client.post(
            f"{self.config.OPENAI_API_BASE}/chat/completions",
            json=payload,
            headers=headers,
        )
        response.raise_for_status()
        data = response.json()
        choices = data.get("choices") or []
        if not choices or not (choices[0].get("message") or {}).get("content"):
            raise ValueError(
                f"Invalid response structure - missing choices/content despite 200 OK: {str(data)[:200]}"
            )
        return choices[0]["message"]["content"], data.get("usage")

    async def _call_model_with_retries(
        self,
        model_name: str,
        payload: dict[str, Any],
        headers: dict[str, str],
    ) -> str:
        """Try calling the model, retrying transient failures."""
        last_exc: Exception | None = None
        for retry_attempt in range(self.config.LLM_RETRY_ATTEMPTS):
            try:
                self.request_count += 1
                text, usage = await self._post_chat_completion(payload, headers)
                self._log_llm_usage(model_name, usage)
                return clean_model_response(text)
            except httpx.HTTPStatusError as e_status:
                last_exc = e_status
                status_code = e_status.response.status_code
                logger.warning(
                    f"LLM ('{model_name}' Attempt {retry_attempt + 1}/{self.config.LLM_RETRY_ATTEMPTS}): "
                    f"HTTP status {status_code}. Body: {e_status.response.text[:200]}"
                )
                if 400 <= status_code < 500 and status_code != 429:
                    logger.error(
                        f"LLM ('{model_name}'): Client-side error {status_code}. Aborting retries."
                    )
                    break
            except (httpx.RequestError, ValueError) as exc:
                last_exc = exc
                logger.warning(
                    f"LLM ('{model_name}' Attempt {retry_attempt + 1}/{self.config.LLM_RETRY_ATTEMPTS}): {exc}"
                )
            if retry_attempt < self.config.LLM_RETRY_ATTEMPTS - 1:
                await self._backoff_delay(retry_attempt)

        logger.error(
            f"LLM: All attempts failed for '{model_name}'. Last error: {last_exc}"
        )
        raise LLMCallError(model_name, last_exc)

    async def generate(self, prompt: str, *, model: str, temperature: float) -> str:
        """Generate text for ``prompt``; raises ``LLMCallError`` on failure."""
        if not prompt or not prompt.strip():
            raise ValueError("generate: empty or invalid prompt.")

        async with self._semaphore:
            payload: dict[str, Any] = {
                "model": model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": temperature,
                "top_p": self.config.LLM_TOP_P,
                _completion_token_param(
                    self.config.OPENAI_API_BASE
                ): self.config.MAX_GENERATION_TOKENS,
            }
            headers = {
                "Authorization": f"Bearer {self.config.OPENAI_API_KEY}",
                "Content-Type": "application/json",
            }
            if _stdlib_logger.isEnabledFor(logging.DEBUG):
                logger.debug(
                    f"Calling LLM '{model}'. Prompt tokens (est.): {count_tokens(prompt, model)}. "
                    f"Temp: {temperature}, TopP: {self.config.LLM_TOP_P}"
                )
            return await self._call_model_with_retries(model, payload, headers)
