from __future__ import annotations

import json

import httpx
import pytest

from backend.core.encoding import EncodedImage, encode_bytes
from backend.core.errors import GenerationError
from backend.infrastructure.gemini import INSTRUCTION_PROMPT, RESPONSE_SCHEMA, GeminiMetadataClient

IMAGE = encode_bytes(b"\xff\xd8\xff\xe0", "image/jpeg")


def _envelope(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}, "finishReason": "STOP"}]}


def _metadata_json(**overrides) -> str:
    data = {
        "title": "Sunset over mountains",
        "description": "Warm light over a ridge.",
        "keywords": ["sunset", "mountain", "mountains", "dusk"],
        "category": "Nature",
    }
    data.update(overrides)
    return json.dumps(data)


def _client(handler, **kwargs) -> GeminiMetadataClient:
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    return GeminiMetadataClient("secret-key", http_client=http_client, **kwargs)


def test_generate_metadata_builds_structured_request():
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["api_key"] = request.headers.get("x-goog-api-key")
        captured["body"] = json.loads(request.content.decode("utf-8"))
        return httpx.Response(200, json=_envelope(_metadata_json()))

    client = _client(handler, temperature=0.25)
    result = client.generate_metadata(IMAGE)

    assert captured["url"] == (
        "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash:generateContent"
    )
    assert captured["api_key"] == "secret-key"
    body = captured["body"]
    parts = body["contents"][0]["parts"]
    assert parts[0]["inline_data"] == {"mime_type": "image/jpeg", "data": IMAGE.data}
    assert parts[1]["text"] == INSTRUCTION_PROMPT
    assert "Avoid trademarked names" in INSTRUCTION_PROMPT
    config = body["generationConfig"]
    assert config["temperature"] == 0.25
    assert config["responseMimeType"] == "application/json"
    assert config["responseSchema"] == RESPONSE_SCHEMA
    assert sorted(config["responseSchema"]["required"]) == ["category", "description", "keywords", "title"]

    assert result.title == "Sunset over mountains"
    assert result.keywords == ("sunset", "mountain", "mountains", "dusk")
    assert result.category == "Nature"


def test_default_temperature_is_low():
    client = _client(lambda request: httpx.Response(200, json=_envelope(_metadata_json())))
    assert client.temperature == pytest.approx(0.4)


def test_data_url_prefix_is_not_sent():
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["body"] = json.loads(request.content.decode("utf-8"))
        return httpx.Response(200, json=_envelope(_metadata_json()))

    prefixed = EncodedImage(mime_type="image/jpeg", data=f"data:image/jpeg;base64,{IMAGE.data}")
    _client(handler).generate_metadata(prefixed)

    assert captured["body"]["contents"][0]["parts"][0]["inline_data"]["data"] == IMAGE.data


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"candidates": []},
        {"candidates": [{"content": {"parts": []}}]},
        _envelope("   "),
    ],
)
def test_empty_response_is_an_error(body):
    client = _client(lambda request: httpx.Response(200, json=body))

    with pytest.raises(GenerationError, match="empty response"):
        client.generate_metadata(IMAGE)


def test_invalid_json_text_is_an_error():
    client = _client(lambda request: httpx.Response(200, json=_envelope("Here are your keywords: sunset")))

    with pytest.raises(GenerationError, match="not valid JSON"):
        client.generate_metadata(IMAGE)


@pytest.mark.parametrize(
    "text",
    [
        json.dumps({"title": "Only a title"}),
        _metadata_json(keywords="sunset, mountain"),
        _metadata_json(keywords=[]),
        _metadata_json(category=""),
        json.dumps(["not", "an", "object"]),
    ],
)
def test_schema_violations_are_errors(text):
    client = _client(lambda request: httpx.Response(200, json=_envelope(text)))

    with pytest.raises(GenerationError):
        client.generate_metadata(IMAGE)


def test_http_error_includes_upstream_message():
    body = {"error": {"code": 400, "message": "API key not valid.", "status": "INVALID_ARGUMENT"}}
    client = _client(lambda request: httpx.Response(400, json=body))

    with pytest.raises(GenerationError, match="API key not valid"):
        client.generate_metadata(IMAGE)


def test_timeout_is_an_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(GenerationError, match="timed out"):
        _client(handler).generate_metadata(IMAGE)


def test_non_json_envelope_is_an_error():
    client = _client(lambda request: httpx.Response(200, text="<html>bad gateway</html>"))

    with pytest.raises(GenerationError, match="non-JSON"):
        client.generate_metadata(IMAGE)


def test_api_base_must_be_absolute():
    with pytest.raises(ValueError):
        GeminiMetadataClient("key", api_base="generativelanguage.googleapis.com")
