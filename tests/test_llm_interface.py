import json
import logging

import httpx
import pytest
from config import NarrationEvalSettings
from core import llm_interface
from core.exceptions import LLMCallError
from core.llm_interface import LLMService, TextGenerator, clean_model_response


@pytest.fixture(autouse=True)
def _no_tokenizer(monkeypatch):
    monkeypatch.setattr(llm_interface, "count_tokens", lambda text, model: len(text) // 4)


def _settings(**overrides) -> NarrationEvalSettings:
    values = {
        "OPENAI_API_KEY": "sk-test",
        "OPENAI_API_BASE": "http://llm.local/v1",
        "LLM_RETRY_ATTEMPTS": 3,
        "LLM_RETRY_DELAY_SECONDS": 0.0,
    }
    values.update(overrides)
    return NarrationEvalSettings(**values)


def _completion(content: str) -> dict:
    return {
        "choices": [{"message": {"content": content}}],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }


@pytest.mark.asyncio
async def test_generate_posts_chat_completion():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200, json=_completion("<think>hmm</think>CREATIVITY_SCORE: 70")
        )

    service = LLMService(_settings(), transport=httpx.MockTransport(handler))
    text = await service.generate("Judge this", model="judge-model", temperature=0.3)
    await service.aclose()

    assert text == "CREATIVITY_SCORE: 70"
    assert isinstance(service, TextGenerator)
    request = seen[0]
    assert request.url == "http://llm.local/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    payload = json.loads(request.content)
    assert payload["model"] == "judge-model"
    assert payload["temperature"] == 0.3
    assert payload["messages"] == [{"role": "user", "content": "Judge this"}]
    assert "max_tokens" in payload


@pytest.mark.asyncio
async def test_client_errors_abort_without_retry():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "bad key"})

    service = LLMService(_settings(), transport=httpx.MockTransport(handler))
    with pytest.raises(LLMCallError):
        await service.generate("prompt", model="m", temperature=0.3)
    await service.aclose()
    assert service.request_count == 1


@pytest.mark.asyncio
async def test_server_errors_retry_then_raise():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="overloaded")

    service = LLMService(_settings(), transport=httpx.MockTransport(handler))
    with pytest.raises(LLMCallError) as exc_info:
        await service.generate("prompt", model="m", temperature=0.3)
    await service.aclose()
    assert service.request_count == 3
    assert isinstance(exc_info.value.cause, httpx.HTTPStatusError)


@pytest.mark.asyncio
async def test_rate_limit_is_retried_until_success():
    responses = iter(
        [httpx.Response(429, text="slow down"), httpx.Response(200, json=_completion("ok"))]
    )

    service = LLMService(
        _settings(), transport=httpx.MockTransport(lambda request: next(responses))
    )
    assert await service.generate("prompt", model="m", temperature=0.3) == "ok"
    await service.aclose()
    assert service.request_count == 2


@pytest.mark.asyncio
async def test_missing_choices_is_an_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"choices": []})

    service = LLMService(
        _settings(LLM_RETRY_ATTEMPTS=1), transport=httpx.MockTransport(handler)
    )
    with pytest.raises(LLMCallError):
        await service.generate("prompt", model="m", temperature=0.3)
    await service.aclose()


@pytest.mark.asyncio
async def test_empty_prompt_is_rejected():
    service = LLMService(_settings())
    with pytest.raises(ValueError):
        await service.generate("   ", model="m", temperature=0.3)
    await service.aclose()


def test_openai_base_uses_completion_token_param():
    assert llm_interface._completion_token_param("https://api.openai.com/v1") == (
        "max_completion_tokens"
    )
    assert llm_interface._completion_token_param("http://localhost:8080/v1") == "max_tokens"


def test_clean_model_response_strips_fences_and_tags():
    raw = "<thinking>plan</thinking>\n```text\nCREATIVITY_SCORE: 12\n```"
    assert clean_model_response(raw) == "CREATIVITY_SCORE: 12"
    assert clean_model_response(None) == ""


@pytest.mark.asyncio
async def test_prompt_tokens_counted_only_for_debug_logging(monkeypatch, caplog):
    counted: list[str] = []

    def fake_count_tokens(text, model):
        counted.append(text)
        return 1

    monkeypatch.setattr(llm_interface, "count_tokens", fake_count_tokens)
    service = LLMService(
        _settings(),
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=_completion("ok"))),
    )

    caplog.set_level(logging.INFO, logger="core.llm_interface")
    await service.generate("quiet prompt", model="m", temperature=0.3)
    assert counted == []

    caplog.set_level(logging.DEBUG, logger="core.llm_interface")
    await service.generate("loud prompt", model="m", temperature=0.3)
    await service.aclose()
    assert counted == ["loud prompt"]
