"""Hosted extraction collaborator backed by Mistral chat completions."""

import json
import time
from collections.abc import Iterable
from typing import Any

import httpx

from docscan.core.errors import ExtractionError
from docscan.core.result import Err, Ok, Outcome
from docscan.utils.logger import get_logger

from .confidence import FINISH_CLEAN, FINISH_DEGRADED
from .types import ExtractionRequest, ExtractionResult, ProviderMetadata

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You convert OCR text from scanned documents into JSON that follows the "
    "given schema. Only report values that appear in the text. Never invent "
    "names, amounts, dates or numbers; leave a field out when the text does "
    "not support it."
)


class MistralJsonExtractor:
    """Extraction provider calling ``POST /v1/chat/completions``.

    The target schema is sent as a ``json_schema`` response format, so
    the reply content is a JSON document of the requested shape.

    Args:
        api_key: Mistral API key.
        model: Chat model name.
        api_base: Base URL of the Mistral API.
        timeout: Request timeout in seconds.
        clean_finish_reasons: Finish reasons that count as a normal completion.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "mistral-large-latest",
        api_base: str = "https://api.mistral.ai",
        timeout: float = 60.0,
        clean_finish_reasons: Iterable[str] = ("stop",),
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.clean_finish_reasons = frozenset(r.lower() for r in clean_finish_reasons)
        self._transport = transport

    def build_payload(self, request: ExtractionRequest) -> dict[str, Any]:
        """Build the chat completion request body for ``request``."""
        schema = request.schema
        user_content = request.text
        if schema.instructions:
            user_content = f"{schema.instructions}\n\nOCR text:\n{request.text}"
        return {
            "model": self.model,
            "temperature": 0,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_content},
            ],
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": schema.name,
                    "schema": schema.definition,
                    "strict": request.options.strict_schema,
                },
            },
        }

    async def extract(
        self, request: ExtractionRequest
    ) -> Outcome[ExtractionResult, Exception]:
        """Extract a record of ``request.schema`` shape from ``request.text``.

        Args:
            request: Text, target schema and options.

        Returns:
            Parsed JSON with provider metadata, or the failure.
        """
        start = time.monotonic()
        try:
            async with httpx.AsyncClient(
                base_url=self.api_base,
                timeout=self.timeout,
                headers={"Authorization": f"Bearer {self._api_key}"},
                transport=self._transport,
            ) as client:
                response = await client.post(
                    "/v1/chat/completions", json=self.build_payload(request)
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as exc:
            logger.warning("Mistral extraction request failed: %s", exc)
            return Err(ExtractionError(f"Mistral API request failed: {exc}"))
        except ValueError as exc:
            return Err(ExtractionError(f"Invalid JSON response: {exc}"))

        logger.debug(
            "Mistral extraction for %s answered in %.0f ms",
            request.schema.name,
            (time.monotonic() - start) * 1000,
        )
        return self._parse_response(body)

    def _parse_response(self, body: Any) -> Outcome[ExtractionResult, Exception]:
        choices = body.get("choices") if isinstance(body, dict) else None
        if not choices:
            return Err(ExtractionError("Empty response from Mistral API"))
        if not isinstance(choices, list) or not isinstance(choices[0], dict):
            return Err(ExtractionError("Invalid response format from Mistral API"))

        choice = choices[0]
        message = choice.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            return Err(ExtractionError("Invalid response format from Mistral API"))

        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            return Err(ExtractionError(f"Invalid JSON response: {exc}"))
        if not isinstance(data, dict):
            return Err(ExtractionError("Invalid response format from Mistral API"))

        metadata = ProviderMetadata(
            finish_reason=choice.get("finish_reason"),
            model=body.get("model"),
            usage=dict(body.get("usage") or {}),
        )
        clean = (metadata.finish_reason or "").lower() in self.clean_finish_reasons
        return Ok(
            ExtractionResult(
                json=data,
                confidence=FINISH_CLEAN if clean else FINISH_DEGRADED,
                metadata=metadata,
            )
        )
