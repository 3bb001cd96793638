import json

import httpx
import pytest

from llm.providers.openrouter_provider import OpenRouterProvider
from zenith_tasks.config import Settings


def _settings(**kw):
    base = dict(llm_provider="openrouter", openrouter_api_key="or-key", openrouter_base_url="http://or.test/api/v1")
    base.update(kw)
    return Settings(**base)


def test_posts_chat_completion_with_attribution_headers():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": '{"ok": true}'}}]})

    provider = OpenRouterProvider(_settings(), transport=httpx.MockTransport(handler))
    out = provider.generate(system="sys", user="hello", model="m/x:free", temperature=0.3, max_tokens=400)

    assert out == '{"ok": true}'
    assert seen["url"] == "http://or.test/api/v1/chat/completions"
    assert seen["headers"]["authorization"] == "Bearer or-key"
    assert seen["headers"]["http-referer"] == "http://localhost:3000"
    assert seen["headers"]["x-title"] == "AI Productivity Assistant"
    assert seen["body"]["messages"][0] == {"role": "system", "content": "sys"}
    assert seen["body"]["max_tokens"] == 400


def test_http_error_propagates_to_caller():
    provider = OpenRouterProvider(
        _settings(), transport=httpx.MockTransport(lambda r: httpx.Response(429, json={}))
    )
    with pytest.raises(httpx.HTTPStatusError):
        provider.generate(system="s", user="u")


def test_missing_key_is_rejected():
    with pytest.raises(RuntimeError):
        OpenRouterProvider(_settings(openrouter_api_key=None))
