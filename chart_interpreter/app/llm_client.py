"""
Generation clients for the Google Gemini API.

Rationale:
- One tiny interface: generate(prompt, chart) -> GenerationResult.
- Two transports behind it: raw HTTPS via httpx, or the google-generativeai SDK.
  The handler never knows which one it is talking to.
- Credentials come from Settings at construction, not from the environment.
- No retries / no fallback.
"""

import logging
import time
from typing import Any, Dict, Optional

import httpx
import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from .config import MAX_OUTPUT_TOKENS, TEMPERATURE, Settings
from .errors import (
    ConfigError,
    EmptyResponseError,
    GenerationTimeoutError,
    ProviderError,
)
from .schemas import GenerationResult, TokenUsage
from .serializer import compose_prompt

logger = logging.getLogger(__name__)


class GenerationClient:
    def __init__(self, settings: Settings):
        self.settings = settings

    async def generate(self, prompt: str, chart: Any) -> GenerationResult:
        raise NotImplementedError("Subclasses must implement generate()")

    def _require_api_key(self) -> str:
        if not self.settings.api_key:
            raise ConfigError("API key not provided")
        return self.settings.api_key


def build_request_body(full_prompt: str) -> Dict[str, Any]:
    """Provider payload: one content turn plus fixed generation parameters."""
    return {
        "contents": [
            {"parts": [{"text": full_prompt}]},
        ],
        "generationConfig": {
            "temperature": TEMPERATURE,
            "maxOutputTokens": MAX_OUTPUT_TOKENS,
        },
    }


def parse_generation_response(data: Dict[str, Any]) -> GenerationResult:
    """Pull the first candidate's first text part and usage counters out of a generateContent reply."""
    if not isinstance(data, dict):
        raise ProviderError("failed to parse response: expected a JSON object")

    try:
        candidates = data.get("candidates") or []
        parts = []
        if candidates:
            content = candidates[0].get("content") or {}
            parts = content.get("parts") or []
        if not parts:
            raise EmptyResponseError()

        text = parts[0].get("text") or ""

        token_usage = None
        usage = data.get("usageMetadata")
        if usage:
            token_usage = TokenUsage(
                prompt_tokens=usage.get("promptTokenCount", 0),
                completion_tokens=usage.get("candidatesTokenCount", 0),
                total_tokens=usage.get("totalTokenCount", 0),
            )

        return GenerationResult(interpretation=text.strip(), token_usage=token_usage)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ProviderError(f"failed to parse response: {e}") from e


class HttpGenerationClient(GenerationClient):
    """Calls generateContent directly over HTTPS."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(settings)
        # injected in tests (httpx.MockTransport)
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.settings.api_base}/models/{self.settings.model_name}:generateContent"

    async def generate(self, prompt: str, chart: Any) -> GenerationResult:
        api_key = self._require_api_key()
        full_prompt = compose_prompt(prompt, chart)
        body = build_request_body(full_prompt)
        timeout = self.settings.effective_provider_timeout

        started = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.post(
                    self.endpoint,
                    params={"key": api_key},
                    json=body,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TimeoutException as e:
            raise GenerationTimeoutError(timeout) from e
        except httpx.HTTPError as e:
            raise ProviderError(f"failed to call Google AI API: {type(e).__name__}") from e

        logger.info(
            f"Gemini responded {response.status_code} in {time.perf_counter() - started:.2f}s "
            f"(model={self.settings.model_name})"
        )

        if response.status_code != 200:
            raise ProviderError(
                f"API error (status {response.status_code}): {response.text}",
                provider_status=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(f"failed to parse response: {e}", provider_status=200, body=response.text) from e

        return parse_generation_response(data)


class SdkGenerationClient(GenerationClient):
    """
    Calls Gemini through the google-generativeai SDK.

    genai.configure is process-wide, so it runs once here; main.py keeps one
    client per Settings.
    """

    def __init__(self, settings: Settings):
        super().__init__(settings)
        if settings.api_key:
            genai.configure(api_key=settings.api_key)

    async def generate(self, prompt: str, chart: Any) -> GenerationResult:
        self._require_api_key()
        full_prompt = compose_prompt(prompt, chart)
        timeout = self.settings.effective_provider_timeout

        model = genai.GenerativeModel(model_name=self.settings.model_name)

        # Configuration for generation
        config = genai.GenerationConfig(
            max_output_tokens=MAX_OUTPUT_TOKENS,
            temperature=TEMPERATURE,
        )

        started = time.perf_counter()
        try:
            response = await model.generate_content_async(
                full_prompt,
                generation_config=config,
                request_options={"timeout": timeout},
            )
        except google_exceptions.DeadlineExceeded as e:
            raise GenerationTimeoutError(timeout) from e
        except google_exceptions.GoogleAPICallError as e:
            status = int(e.code) if e.code is not None else None
            raise ProviderError(f"API error (status {status}): {e.message}", provider_status=status, body=e.message) from e

        logger.info(f"Gemini SDK call finished in {time.perf_counter() - started:.2f}s (model={self.settings.model_name})")

        if not response.candidates:
            raise EmptyResponseError()
        candidate = response.candidates[0]
        if not candidate.content or not candidate.content.parts:
            raise EmptyResponseError()

        text = candidate.content.parts[0].text or ""

        token_usage = None
        usage = getattr(response, "usage_metadata", None)
        if usage:
            token_usage = TokenUsage(
                prompt_tokens=usage.prompt_token_count,
                completion_tokens=usage.candidates_token_count,
                total_tokens=usage.total_token_count,
            )

        return GenerationResult(interpretation=text.strip(), token_usage=token_usage)


def create_generation_client(settings: Settings) -> GenerationClient:
    transport = settings.transport.lower()

    if transport == "http":
        return HttpGenerationClient(settings)

    if transport == "sdk":
        return SdkGenerationClient(settings)

    raise ConfigError(f"Unsupported generation transport: {settings.transport}")
