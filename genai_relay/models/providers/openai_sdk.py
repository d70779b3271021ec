from __future__ import annotations
from typing import Dict, Any, Optional, List
import time
from os import getenv

from openai import AsyncOpenAI
from openai import APIError, APIStatusError, APITimeoutError, APIConnectionError
from tenacity import retry, stop_after_attempt, wait_exponential_jitter, retry_if_exception

from .base import (
    ModelProvider, GenerateRequest, ModelResponse, ModelError, ModelRetryable, ModelTimeout,
    ConfigurationError, TextPart, InlineMedia,
)

RETRYABLE_STATUS = {408, 409, 429, 500, 502, 503, 504}

# Define retryable OpenAI exceptions
def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, (APITimeoutError, APIConnectionError)):
        return True
    if isinstance(exc, APIStatusError) and exc.status_code in RETRYABLE_STATUS:
        return True
    return isinstance(exc, (ModelRetryable, ModelTimeout))

# input_audio only accepts a format name, not a mime type
_AUDIO_FORMATS = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
}

def _media_to_content(part: InlineMedia, index: int) -> Dict[str, Any]:
    data_url = f"data:{part.mime_type};base64,{part.data}"
    if part.mime_type.startswith("image/"):
        return {"type": "image_url", "image_url": {"url": data_url, "detail": "high"}}
    if part.mime_type.startswith("audio/"):
        audio_format = _AUDIO_FORMATS.get(part.mime_type)
        if audio_format is None:
            raise ModelError(f"Unsupported audio type for OpenAI: {part.mime_type}")
        return {"type": "input_audio", "input_audio": {"data": part.data, "format": audio_format}}
    return {"type": "file", "file": {"filename": f"upload-{index}", "file_data": data_url}}

class OpenAIProvider(ModelProvider):
    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None, api_key_env: str = "OPENAI_API_KEY", default_headers: Optional[Dict[str, str]] = None, timeout: float = 60.0, **kwargs):
        api_key = api_key or getenv(api_key_env)
        if not api_key:
            raise ConfigurationError(f"OpenAI API key missing: set {api_key_env}")
        self.client = AsyncOpenAI(
            base_url=base_url,
            api_key=api_key,
            default_headers=default_headers or {},
            timeout=timeout,
            max_retries=0, #retries handled by tenacity
            **kwargs
        )
        self.base_url = base_url
        self.timeout = timeout

    def _format_messages(self, req: GenerateRequest) -> List[Dict[str, Any]]:
        """Format content parts as a single user message in content array format"""
        content: List[Dict[str, Any]] = []
        for i, part in enumerate(req.parts):
            if isinstance(part, TextPart):
                content.append({"type": "text", "text": part.text})
            elif isinstance(part, InlineMedia):
                content.append(_media_to_content(part, i))
            else:
                raise ModelError(f"Unsupported content part: {type(part).__name__}")
        return [{"role": "user", "content": content}]

    @retry(reraise=True, wait=wait_exponential_jitter(initial=0.5, max=4), stop=stop_after_attempt(3), retry=retry_if_exception(_is_retryable))
    async def generate(self, req: GenerateRequest) -> ModelResponse:
        completion_params = {
            "model": req.model,
            "messages": self._format_messages(req),
            **dict(req.params or {})
        }

        t0 = time.perf_counter()
        try:
            response = await self.client.chat.completions.create(**completion_params)
        except APITimeoutError as e:
            raise ModelTimeout(f"OpenAI timeout: {e}") from e
        except APIError as e:
            msg = f"OpenAI API error: {e}"
            if _is_retryable(e):
                raise ModelRetryable(msg) from e
            raise ModelError(msg) from e

        dt = time.perf_counter() - t0

        try:
            content = response.choices[0].message.content or ""
        except (IndexError, AttributeError) as e:
            raise ModelError(f"Invalid response structure from OpenAI API: {e}") from e

        meta = {
            "provider": "openai",
            "model": getattr(response, 'model', req.model),
            "latency": dt,
            "base_url": self.base_url or "https://api.openai.com/v1",
            "finish_reason": getattr(response.choices[0], 'finish_reason', None),
        }

        if getattr(response, 'usage', None):
            meta["usage"] = {
                "prompt_tokens": getattr(response.usage, 'prompt_tokens', None),
                "completion_tokens": getattr(response.usage, 'completion_tokens', None),
                "total_tokens": getattr(response.usage, 'total_tokens', None)
            }

        return ModelResponse(content=content, raw=response, meta=meta)

    async def health_check(self) -> bool:
        try:
            await self.client.models.list()
            return True
        except APIError:
            return False

    async def aclose(self) -> None:
        await self.client.close()
