"""
Tests for HTTP Advisory Client — verify request shape and response unwrapping.
"""

import asyncio
import json

import httpx
import pytest

from counterweight.advisory.http_client import HttpAdvisoryClient
from counterweight.models.synthesis_models import AdvisoryRequest

URL = "https://advisory.example.com/v1/weights"


@pytest.fixture
def request_model():
    return AdvisoryRequest(
        organization_context={"industry": "water utility"},
        ahp_weights={"fatalities": 60.0, "economic": 40.0},
        consequence_keys=["fatalities", "economic"],
    )


def _client(handler, api_key="secret"):
    return HttpAdvisoryClient(
        url=URL, api_key=api_key, timeout=5, transport=httpx.MockTransport(handler)
    )


def test_posts_request_as_json(request_model):
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"recommended_weights": {"fatalities": 70, "economic": 30}})

    payload = asyncio.run(_client(handler).fetch_weights(request_model))

    assert payload["recommended_weights"] == {"fatalities": 70, "economic": 30}
    assert seen["method"] == "POST"
    assert seen["url"] == URL
    assert seen["auth"] == "Bearer secret"
    assert seen["body"]["ahp_weights"] == {"fatalities": 60.0, "economic": 40.0}
    assert seen["body"]["organization_context"] == {"industry": "water utility"}


def test_no_auth_header_without_key(request_model):
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json={"recommended_weights": {}})

    asyncio.run(_client(handler, api_key="").fetch_weights(request_model))
    assert seen["auth"] is None


def test_unwraps_chat_completion_with_fenced_json(request_model):
    content = 'Here you go:\n```json\n{"recommended_weights": {"fatalities": 55, "economic": 45}}\n```'

    def handler(request):
        return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})

    payload = asyncio.run(_client(handler).fetch_weights(request_model))
    assert payload["recommended_weights"]["fatalities"] == 55


def test_unwraps_content_field(request_model):
    def handler(request):
        return httpx.Response(
            200, json={"content": '{"recommended_weights": {"fatalities": 50, "economic": 50}}'}
        )

    payload = asyncio.run(_client(handler).fetch_weights(request_model))
    assert payload["recommended_weights"]["economic"] == 50


def test_http_error_raises(request_model):
    def handler(request):
        return httpx.Response(503, json={"error": "overloaded"})

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(_client(handler).fetch_weights(request_model))


def test_text_without_json_raises(request_model):
    def handler(request):
        return httpx.Response(200, json={"content": "I cannot help with that."})

    with pytest.raises(ValueError):
        asyncio.run(_client(handler).fetch_weights(request_model))


def test_requires_endpoint(monkeypatch):
    from counterweight.config import settings

    monkeypatch.setattr(settings, "advisory_url", None)
    with pytest.raises(ValueError):
        HttpAdvisoryClient()


@pytest.mark.parametrize(
    "content,expected",
    [
        ('{"recommended_weights": {"fatalities": 1}}', 1),
        ('Weights: {"recommended_weights": {"fatalities": 2}} as requested.', 2),
        ('{draft} then {"recommended_weights": {"fatalities": 3}}', 3),
        ('```\n{"recommended_weights": {"fatalities": 4}}\n```', 4),
    ],
)
def test_finds_json_object_in_text(request_model, content, expected):
    def handler(request):
        return httpx.Response(200, json={"content": content})

    payload = asyncio.run(_client(handler).fetch_weights(request_model))
    assert payload["recommended_weights"]["fatalities"] == expected
