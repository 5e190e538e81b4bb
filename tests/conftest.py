"""
Pytest configuration and fixtures for the chart interpretation relay.
"""

import json
from typing import Any, Callable, Generator, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from chart_interpreter.app.config import Settings, get_settings
from chart_interpreter.app.llm_client import GenerationClient, HttpGenerationClient
from chart_interpreter.app.main import app, get_generation_client, get_prompt_loader
from chart_interpreter.app.prompt_loader import PromptLoader
from chart_interpreter.app.schemas import GenerationResult, TokenUsage

PROMPT_TEXT = "You are a Vedic astrologer. Interpret this chart."


class FakeGenerationClient(GenerationClient):
    """Records every generate() call and answers with a canned result or error."""

    def __init__(self, settings: Settings, result: Optional[GenerationResult] = None, error: Optional[Exception] = None):
        super().__init__(settings)
        self.result = result or GenerationResult(
            interpretation="Strong Lagna lord.",
            token_usage=TokenUsage(prompt_tokens=10, completion_tokens=5, total_tokens=15),
        )
        self.error = error
        self.calls: List[tuple] = []

    async def generate(self, prompt: str, chart: Any) -> GenerationResult:
        self.calls.append((prompt, chart))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def sample_chart() -> dict:
    return {
        "ascendant": {"sign": "Leo", "degree": 12.5},
        "planets": [
            {"name": "Sun", "sign": "Aries", "house": 9},
            {"name": "Moon", "sign": "Cancer", "house": 12},
        ],
        "dasha": "Jupiter-Saturn",
    }


@pytest.fixture
def prompt_file(tmp_path) -> str:
    path = tmp_path / "post-prompt.txt"
    path.write_text(PROMPT_TEXT, encoding="utf-8")
    return str(path)


@pytest.fixture
def test_settings(prompt_file) -> Settings:
    return Settings(
        api_key="test-api-key",
        model_name="gemini-test",
        api_base="https://generativelanguage.test/v1beta",
        prompt_path=prompt_file,
        request_timeout=5,
        provider_timeout=5,
    )


@pytest.fixture
def fake_client(test_settings) -> FakeGenerationClient:
    return FakeGenerationClient(test_settings)


@pytest.fixture
def client(test_settings, fake_client) -> Generator[TestClient, None, None]:
    """Test client whose generation calls go to fake_client."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_generation_client] = lambda: fake_client
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def provider_requests() -> List[httpx.Request]:
    return []


@pytest.fixture
def mock_provider(provider_requests) -> Callable[..., httpx.MockTransport]:
    """Build an httpx transport that plays the Gemini API and records requests."""
    def _create(status_code: int = 200, body: Any = None, exc: Optional[Exception] = None) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            provider_requests.append(request)
            if exc is not None:
                raise exc
            content = body if isinstance(body, str) else json.dumps(body)
            return httpx.Response(status_code, content=content, headers={"Content-Type": "application/json"})
        return httpx.MockTransport(handler)
    return _create


@pytest.fixture
def http_app_client(test_settings) -> Generator[Callable[..., TestClient], None, None]:
    """Test client wired to a real HttpGenerationClient over a mock transport."""
    def _create(transport: httpx.MockTransport, settings: Optional[Settings] = None) -> TestClient:
        settings = settings or test_settings
        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[get_generation_client] = lambda: HttpGenerationClient(settings, transport=transport)
        return TestClient(app)
    yield _create
    app.dependency_overrides.clear()


def gemini_reply(text: str = "Interpretation text", usage: bool = True) -> dict:
    reply = {
        "candidates": [
            {"content": {"parts": [{"text": text}], "role": "model"}, "finishReason": "STOP"},
        ],
    }
    if usage:
        reply["usageMetadata"] = {
            "promptTokenCount": 120,
            "candidatesTokenCount": 80,
            "totalTokenCount": 200,
        }
    return reply


@pytest.fixture
def loader_override() -> Generator[Callable[[PromptLoader], None], None, None]:
    def _set(loader: PromptLoader) -> None:
        app.dependency_overrides[get_prompt_loader] = lambda: loader
    yield _set
    app.dependency_overrides.pop(get_prompt_loader, None)
