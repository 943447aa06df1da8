"""
HTTP Advisory Client — Posts the advisory request as JSON over httpx.

Retries and timeouts belong to AdvisoryGateway; this client makes exactly
one request per call and raises on any transport or HTTP error.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import httpx

from counterweight.config import settings
from counterweight.models.synthesis_models import AdvisoryRequest

logger = logging.getLogger("counterweight.advisory.http")

_FENCE = re.compile(r"```[a-zA-Z]*\s*\n(.*?)```", re.DOTALL)
_DECODER = json.JSONDecoder()


class HttpAdvisoryClient:
    """Advisory client for a JSON-over-HTTP weight service."""

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        endpoint = url or settings.advisory_url
        if not endpoint:
            raise ValueError("No advisory endpoint configured (COUNTERWEIGHT_ADVISORY_URL)")
        self.url = endpoint
        self.api_key = api_key if api_key is not None else settings.advisory_api_key
        self.timeout = timeout if timeout is not None else settings.advisory_timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def fetch_weights(self, request: AdvisoryRequest) -> dict[str, Any]:
        """
        POST the request and return the decoded JSON body.

        Services that wrap their JSON in a text completion (``content`` or
        ``choices[0].message.content``) are unwrapped, including markdown
        fenced blocks.

        Raises:
            httpx.HTTPStatusError: non-2xx response.
            httpx.RequestError: transport failure.
            ValueError: body is not a JSON object.
        """
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            response = await client.post(
                self.url,
                headers=self._headers(),
                json=request.model_dump(mode="json"),
            )
            response.raise_for_status()
            body = response.json()

        logger.info(f"Advisory response received ({len(response.content)} bytes)")
        return _unwrap(body)


def _unwrap(body: Any) -> dict[str, Any]:
    if isinstance(body, dict) and "recommended_weights" in body:
        return body

    text: str | None = None
    if isinstance(body, dict):
        if isinstance(body.get("content"), str):
            text = body["content"]
        else:
            choices = body.get("choices") or []
            if choices and isinstance(choices[0], dict):
                text = (choices[0].get("message") or {}).get("content")

    if text is not None:
        parsed = _extract_json(text)
        if parsed is not None:
            return parsed
        raise ValueError("Advisory response text did not contain a JSON object")

    if isinstance(body, dict):
        return body
    raise ValueError(f"Advisory response must be a JSON object, got {type(body).__name__}")


def _extract_json(text: str) -> dict[str, Any] | None:
    """First JSON object in ``text``, looking inside code fences first."""
    for candidate in [m.group(1) for m in _FENCE.finditer(text)] + [text]:
        start = candidate.find("{")
        while start != -1:
            try:
                return _DECODER.raw_decode(candidate, start)[0]
            except json.JSONDecodeError:
                start = candidate.find("{", start + 1)
    return None
