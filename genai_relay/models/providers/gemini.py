from __future__ import annotations
from typing import Any, Dict, List, Optional
import logging
import time
from os import getenv

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential_jitter, retry_if_exception

from .base import (
    ModelProvider, GenerateRequest, ModelResponse, ModelError, ModelRetryable, ModelTimeout,
    ConfigurationError, TextPart, InlineMedia,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
RETRYABLE_STATUS = {408, 409, 429, 500, 502, 503, 504}

def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, (httpx.TimeoutException, httpx.TransportError)):
        return True
    return isinstance(exc, (ModelRetryable, ModelTimeout))

def _parts_to_gemini(req: GenerateRequest) -> List[Dict[str, Any]]:
    parts: List[Dict[str, Any]] = []
    for part in req.parts:
        if isinstance(part, TextPart):
            parts.append({"text": part.text})
        elif isinstance(part, InlineMedia):
            parts.append({"inlineData": {"mimeType": part.mime_type, "data": part.data}})
        else:
            raise ModelError(f"Unsupported content part: {type(part).__name__}")
    return parts

def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return response.text or f"HTTP {response.status_code}"

class GeminiProvider(ModelProvider):
    """Google Gemini ``generateContent`` REST provider."""

    def __init__(self, api_key: Optional[str] = None, api_key_env: str = "GEMINI_API_KEY", base_url: str = DEFAULT_BASE_URL, timeout: float = 60.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        api_key = api_key or getenv(api_key_env)
        if not api_key:
            raise ConfigurationError(f"Gemini API key missing: set {api_key_env}")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"x-goog-api-key": api_key, "Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    def _build_payload(self, req: GenerateRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": _parts_to_gemini(req)}]}
        params = dict(req.params or {})
        if params:
            payload["generationConfig"] = params
        return payload

    @retry(reraise=True, wait=wait_exponential_jitter(initial=0.5, max=4), stop=stop_after_attempt(3), retry=retry_if_exception(_is_retryable))
    async def generate(self, req: GenerateRequest) -> ModelResponse:
        model = req.model if req.model.startswith("models/") else f"models/{req.model}"
        payload = self._build_payload(req)

        t0 = time.perf_counter()
        try:
            response = await self.client.post(f"/{model}:generateContent", json=payload)
        except httpx.TimeoutException as e:
            raise ModelTimeout(f"Gemini timeout after {self.timeout}s: {e}") from e
        except httpx.TransportError as e:
            raise ModelRetryable(f"Gemini connection error: {e}") from e

        if response.status_code >= 400:
            msg = f"Gemini API error ({response.status_code}): {_error_message(response)}"
            if response.status_code in RETRYABLE_STATUS:
                logger.warning(msg)
                raise ModelRetryable(msg)
            raise ModelError(msg)

        dt = time.perf_counter() - t0

        try:
            raw = response.json()
        except ValueError as e:
            raise ModelError(f"Invalid JSON from Gemini API: {e}") from e

        candidates = raw.get("candidates") or []
        if not candidates:
            reason = (raw.get("promptFeedback") or {}).get("blockReason")
            if reason:
                raise ModelError(f"Gemini blocked the prompt: {reason}")
            raise ModelError("Gemini returned no candidates")

        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or []
        content = "".join(p.get("text", "") for p in parts)
        finish_reason = candidate.get("finishReason")
        if not content and finish_reason not in (None, "STOP"):
            raise ModelError(f"Gemini returned no text (finish reason: {finish_reason})")

        meta = {
            "provider": "gemini",
            "model": raw.get("modelVersion", req.model),
            "latency": dt,
            "finish_reason": finish_reason,
        }
        usage = raw.get("usageMetadata")
        if usage:
            meta["usage"] = {
                "prompt_tokens": usage.get("promptTokenCount"),
                "completion_tokens": usage.get("candidatesTokenCount"),
                "total_tokens": usage.get("totalTokenCount"),
            }

        return ModelResponse(content=content, raw=raw, meta=meta)

    async def health_check(self) -> bool:
        try:
            response = await self.client.get("/models", params={"pageSize": 1})
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    async def aclose(self) -> None:
        await self.client.aclose()
