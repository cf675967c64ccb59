"""Integration with the Gemini ``generateContent`` structured-output API."""
from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from backend.core.config import DEFAULT_API_BASE, DEFAULT_MODEL, DEFAULT_TEMPERATURE, DEFAULT_TIMEOUT_SECONDS
from backend.core.encoding import EncodedImage, strip_data_url_prefix
from backend.core.errors import GenerationError
from backend.core.schema import StockMetadata

logger = logging.getLogger(__name__)

INSTRUCTION_PROMPT = """
Act as a professional Microstock Keywording Expert (Shutterstock, Adobe Stock, Getty Images).
Analyze the uploaded image and generate metadata optimized for high sales and searchability.

Rules:
1. All output MUST be in English (Standard for Microstock).
2. Keywords should include singular and plural forms where relevant, concepts, emotions, and descriptive terms.
3. The title should be catchy and descriptive.
4. Avoid trademarked names or restricted brands.
""".strip()

RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "title": {
            "type": "STRING",
            "description": "A concise, commercially viable title for the image (max 10 words). English language.",
        },
        "description": {
            "type": "STRING",
            "description": "A detailed description of the image including action, subject, and mood. English language.",
        },
        "keywords": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": (
                "A list of 40-50 highly relevant, high-ranking keywords/tags for microstock SEO. "
                "Sorted by relevance. English language."
            ),
        },
        "category": {
            "type": "STRING",
            "description": "The most suitable category (e.g., Business, Nature, Technology, Lifestyle).",
        },
    },
    "required": ["title", "description", "keywords", "category"],
}


class GeminiMetadataClient:
    """Client that asks Gemini for microstock metadata describing one image."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        api_base: str = DEFAULT_API_BASE,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: httpx.Client | None = None,
    ) -> None:
        parsed = urlparse(api_base)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("api_base must include scheme and host")

        self._api_key = api_key
        self.model = model
        self.temperature = temperature
        self._request_url = f"{parsed.scheme}://{parsed.netloc}/v1beta/models/{model}:generateContent"
        self._client = http_client or httpx.Client(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _build_payload(self, image: EncodedImage) -> dict[str, Any]:
        return {
            "contents": [
                {
                    "parts": [
                        {
                            "inline_data": {
                                "mime_type": image.mime_type,
                                "data": strip_data_url_prefix(image.data),
                            }
                        },
                        {"text": INSTRUCTION_PROMPT},
                    ]
                }
            ],
            "generationConfig": {
                "temperature": self.temperature,
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200]
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return response.text[:200]

    @staticmethod
    def _extract_text(body: Any) -> str:
        """Concatenate the text parts of the first candidate."""

        if not isinstance(body, dict):
            return ""
        candidates = body.get("candidates") or []
        if not candidates or not isinstance(candidates[0], dict):
            return ""
        content = candidates[0].get("content")
        if not isinstance(content, dict):
            return ""
        parts = content.get("parts") or []
        pieces = [part.get("text") or "" for part in parts if isinstance(part, dict)]
        return "".join(pieces).strip()

    @staticmethod
    def parse_metadata(text: str) -> StockMetadata:
        """Parse a JSON document into :class:`StockMetadata`.

        Malformed JSON and schema violations raise :class:`GenerationError`;
        no default object is ever substituted.
        """

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise GenerationError(f"response is not valid JSON: {exc.msg}") from exc
        if not isinstance(data, dict):
            raise GenerationError("response JSON is not an object")
        try:
            return StockMetadata.model_validate(data)
        except ValidationError as exc:
            fields = ", ".join(".".join(str(loc) for loc in err["loc"]) for err in exc.errors())
            raise GenerationError(f"response does not match the metadata schema: {fields}") from exc

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    def generate_metadata(self, image: EncodedImage) -> StockMetadata:
        payload = self._build_payload(image)
        logger.info("requesting metadata from %s (%s, %d base64 chars)", self.model, image.mime_type, image.size)
        try:
            response = self._client.post(
                self._request_url,
                headers={"x-goog-api-key": self._api_key},
                json=payload,
            )
        except httpx.TimeoutException as exc:
            raise GenerationError("request to the AI service timed out") from exc
        except httpx.HTTPError as exc:
            raise GenerationError(f"request to the AI service failed: {exc}") from exc

        if response.is_error:
            raise GenerationError(f"AI service returned HTTP {response.status_code}: {self._error_detail(response)}")

        try:
            body = response.json()
        except ValueError as exc:
            raise GenerationError("AI service returned a non-JSON envelope") from exc

        text = self._extract_text(body)
        if not text:
            raise GenerationError("empty response")

        metadata = self.parse_metadata(text)
        logger.info("received metadata with %d keywords (category=%s)", len(metadata.keywords), metadata.category)
        return metadata

    def close(self) -> None:  # pragma: no cover - best effort cleanup
        if self._owns_client:
            self._client.close()


__all__ = ["GeminiMetadataClient", "INSTRUCTION_PROMPT", "RESPONSE_SCHEMA"]
