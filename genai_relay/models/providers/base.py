from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Any, Tuple, Union

#unified model errors
class ModelError(RuntimeError): ...
class ModelTimeout(ModelError): ...
class ModelRetryable(ModelError): ...

class ConfigurationError(RuntimeError):
    """Raised at startup when required configuration (e.g. an API key) is missing."""

@dataclass(frozen=True)
class TextPart:
    text: str

@dataclass(frozen=True)
class InlineMedia:
    data: str #base64 encoded bytes
    mime_type: str

ContentPart = Union[TextPart, InlineMedia]

@dataclass(frozen=True)
class GenerateRequest:
    model: str
    parts: Tuple[ContentPart, ...]
    params: Dict[str, Any] = field(default_factory=dict)

@dataclass(frozen=True)
class ModelResponse:
    content: str
    raw: Any #provider-native response obj/dict
    meta: Dict[str, Any] #timings, token counts, model, finish reason, etc.

class ModelProvider(ABC):
    @abstractmethod
    async def generate(self, req: GenerateRequest) -> ModelResponse:
        raise NotImplementedError

    @abstractmethod
    async def health_check(self) -> bool:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None
