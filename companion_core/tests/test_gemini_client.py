import asyncio

import httpx
import pytest

from companion_core.domain.exceptions import (
    ApiError,
    MalformedResponseError,
    NetworkError,
    RateLimitError,
    ValidationError,
)
from companion_core.domain.models import GenerationConfig
from companion_core.providers.gemini_client import GeminiClient


class SettingsStub:
    gemini_api_key = "g-0123456789"
    http_timeout = 1.0
    gemini_base_url = "https://generativelanguage.googleapis.com/v1beta"
    default_model = "companion-chat"


class Resp:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def install_client(monkeypatch, response=None, error=None):
    calls = []

    class Client:
        def __init__(self, *a, **kw):
            calls.append(("init", kw))

        async def __aenter__(self):
            return self

        async def __aexit__(self, *a):
            return False

        async def post(self, url, **kw):
            calls.append(("post", url, kw))
            if error is not None:
                raise error
            return response

    monkeypatch.setattr("httpx.AsyncClient", Client)
    return calls


def ok_payload(text="I'm here with you."):
    return {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": text}]},
                "finishReason": "STOP",
            }
        ],
        "usageMetadata": {"promptTokenCount": 10, "candidatesTokenCount": 5, "totalTokenCount": 15},
    }


def test_gemini_client_basic(monkeypatch):
    calls = install_client(monkeypatch, response=Resp(payload=ok_payload()))
    gc = GeminiClient(SettingsStub())

    res = asyncio.run(gc.complete("prompt text", GenerationConfig()))

    assert res.text == "I'm here with you."
    assert res.provider == "gemini"
    assert res.finish_reason == "STOP"
    assert res.usage.total_tokens == 15

    _, init_kw = calls[0]
    assert init_kw["timeout"] == 1.0
    _, url, kw = calls[1]
    assert url == "https://generativelanguage.googleapis.com/v1beta/models/gemini-1.5-pro:generateContent"
    assert kw["headers"]["x-goog-api-key"] == "g-0123456789"
    assert kw["json"] == {
        "contents": [{"role": "user", "parts": [{"text": "prompt text"}]}],
        "generationConfig": {"temperature": 0.7, "topK": 40, "topP": 0.95, "maxOutputTokens": 1000},
    }


def test_gemini_client_joins_multiple_parts(monkeypatch):
    payload = ok_payload()
    payload["candidates"][0]["content"]["parts"] = [{"text": "a"}, {"text": "b"}]
    del payload["usageMetadata"]
    install_client(monkeypatch, response=Resp(payload=payload))

    res = asyncio.run(GeminiClient(SettingsStub()).complete("p", GenerationConfig()))

    assert res.text == "ab"
    assert res.usage is None


def test_missing_api_key():
    class NoKey(SettingsStub):
        gemini_api_key = None

    with pytest.raises(ValidationError) as exc:
        asyncio.run(GeminiClient(NoKey()).complete("p", GenerationConfig()))
    assert exc.value.code == "MISSING_API_KEY"


@pytest.mark.parametrize(
    "response, error_type",
    [
        (Resp(status_code=429), RateLimitError),
        (Resp(status_code=500, text="internal"), ApiError),
        (Resp(status_code=200, payload=None), MalformedResponseError),
        (Resp(status_code=200, payload={"candidates": []}), MalformedResponseError),
        (Resp(status_code=200, payload={"promptFeedback": {"blockReason": "SAFETY"}}), MalformedResponseError),
        (Resp(status_code=200, payload=ok_payload(text="")), MalformedResponseError),
    ],
)
def test_error_mapping(monkeypatch, response, error_type):
    install_client(monkeypatch, response=response)
    with pytest.raises(error_type):
        asyncio.run(GeminiClient(SettingsStub()).complete("p", GenerationConfig()))


def test_api_error_keeps_status(monkeypatch):
    install_client(monkeypatch, response=Resp(status_code=403, text="forbidden"))
    with pytest.raises(ApiError) as exc:
        asyncio.run(GeminiClient(SettingsStub()).complete("p", GenerationConfig()))
    assert exc.value.http_status == 403
    assert exc.value.message == "forbidden"


def test_network_error(monkeypatch):
    install_client(monkeypatch, error=httpx.ConnectError("dns failure"))
    with pytest.raises(NetworkError):
        asyncio.run(GeminiClient(SettingsStub()).complete("p", GenerationConfig()))


def test_unknown_model():
    with pytest.raises(ValidationError) as exc:
        asyncio.run(GeminiClient(SettingsStub(), model="nope").complete("p", GenerationConfig()))
    assert exc.value.code == "UNKNOWN_MODEL"
