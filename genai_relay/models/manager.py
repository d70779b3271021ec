from __future__ import annotations
from typing import Optional, Dict, Any, Sequence, Union
from pathlib import Path
from dataclasses import dataclass
from enum import Enum
import asyncio
import yaml
import time
import logging

from .prompts import PromptManager
from .providers.base import (
    ModelProvider, GenerateRequest, ModelResponse, ModelError, ModelTimeout,
    ContentPart, TextPart, InlineMedia,
)
from .providers.gemini import GeminiProvider
from .providers.openai_sdk import OpenAIProvider

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT_CALLS = 8


class Provider(Enum):
    GEMINI = "gemini"
    OPENAI = "openai"

@dataclass(frozen=True)
class TaskConfig:
    provider: str
    model: str
    params: Dict[str, Any]
    prompt_ref: Optional[str] #e.g. "image/describe@v1"
    timeout: Optional[float] = None


class ModelManager:
    def __init__(self, config_path: Union[Path, str], prompts_dir: Optional[Path] = None, providers: Optional[Dict[str, ModelProvider]] = None):
        self.config_path = Path(config_path)
        self.config = self._load_config()
        #pre-built providers (e.g. fakes in tests) take precedence over config
        self._providers: Dict[str, ModelProvider] = dict(providers or {})
        self._stats = {} #performance tracking

        if prompts_dir:
            self.prompts = PromptManager(prompts_dir)
        else:
            self.prompts = PromptManager(Path(__file__).parents[1] / "prompts")

        limits = self.config.get('limits') or {}
        self.max_concurrent_calls = int(limits.get('max_concurrent_calls', DEFAULT_MAX_CONCURRENT_CALLS))
        self._semaphore = asyncio.Semaphore(self.max_concurrent_calls)

    def _load_config(self) -> Dict:
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config not found: {self.config_path}")
        with open(self.config_path) as f:
            config = yaml.safe_load(f) or {}

        if 'providers' not in config:
            raise ValueError("Config missing 'providers'")
        if 'tasks' not in config:
            raise ValueError("Config missing 'tasks'")

        for task_name, task_cfg in config['tasks'].items():
            if 'provider' not in task_cfg:
                raise ValueError(f"Task '{task_name}' missing provider")
            if 'model' not in task_cfg:
                raise ValueError(f"Task '{task_name}' missing model")

            provider_name = task_cfg['provider']
            if provider_name not in config['providers']:
                raise ValueError(f"Task '{task_name}' references unknown provider '{provider_name}'")

        return config

    def task_config(self, task: str) -> TaskConfig:
        if task not in self.config["tasks"]:
            raise ValueError(f"Unknown task: {task}")
        task_cfg = self.config["tasks"][task]
        return TaskConfig(
            provider=task_cfg["provider"],
            model=task_cfg["model"],
            params=task_cfg.get("params") or {},
            prompt_ref=task_cfg.get("prompt_ref"),
            timeout=task_cfg.get("timeout"),
        )

    def _get_provider(self, provider_name: str) -> ModelProvider:
        if provider_name in self._providers:
            return self._providers[provider_name]
        if provider_name not in self.config['providers']:
            raise ValueError(f"Unknown provider: {provider_name}")

        provider_cfg = self.config["providers"][provider_name]
        provider_type = provider_cfg["type"]
        settings = provider_cfg.get("settings") or {}

        if provider_type == Provider.GEMINI.value:
            provider = GeminiProvider(**settings)
        elif provider_type == Provider.OPENAI.value:
            provider = OpenAIProvider(**settings)
        else:
            raise ValueError(f"Unknown provider type: {provider_type}")
        self._providers[provider_name] = provider
        logger.info(f"initialized provider: {provider_name}")
        return provider

    def validate_credentials(self) -> None:
        """Build every provider a task references; raises ConfigurationError on a missing key."""
        for task_name in self.config["tasks"]:
            self._get_provider(self.task_config(task_name).provider)

    def build_parts(self, task: str, variables: Dict[str, Any], media: Sequence[InlineMedia] = ()) -> tuple:
        task_cfg = self.task_config(task)
        if not task_cfg.prompt_ref:
            raise ValueError(f"Task '{task}' has no prompt_ref")
        instruction = self.prompts.render(task_cfg.prompt_ref, variables)
        return (TextPart(instruction), *media)

    async def call(self, task: str, variables: Dict[str, Any], media: Sequence[InlineMedia] = (), **params_override) -> ModelResponse:
        parts = self.build_parts(task, variables, media)
        return await self.generate(task, parts, **params_override)

    async def generate(self, task: str, parts: Sequence[ContentPart], **params_override) -> ModelResponse:
        task_cfg = self.task_config(task)
        request = GenerateRequest(
            model=task_cfg.model,
            parts=tuple(parts),
            params={**task_cfg.params, **params_override},
        )
        provider = self._get_provider(task_cfg.provider)

        start_time = time.perf_counter()
        try:
            async with self._semaphore:
                if task_cfg.timeout:
                    try:
                        response = await asyncio.wait_for(provider.generate(request), timeout=task_cfg.timeout)
                    except asyncio.TimeoutError as e:
                        raise ModelTimeout(f"Model call for task '{task}' timed out after {task_cfg.timeout}s") from e
                else:
                    response = await provider.generate(request)
        except ModelError:
            self._track_stats(task, (time.perf_counter() - start_time) * 1000, success=False)
            raise
        self._track_stats(task, (time.perf_counter() - start_time) * 1000, success=True)
        return response

    def _track_stats(self, task: str, latency_ms: float, success: bool):
        if task not in self._stats:
            self._stats[task] = {
                'total_calls': 0,
                'successful_calls': 0,
                'total_latency_ms': 0
            }

        stats = self._stats[task]
        stats['total_calls'] += 1
        if success:
            stats['successful_calls'] += 1
            stats['total_latency_ms'] += latency_ms

    def get_stats(self, task: Optional[str] = None) -> Dict:
        if task:
            return self._stats.get(task, {})
        return self._stats

    @property
    def providers(self) -> Dict[str, ModelProvider]:
        return dict(self._providers)

    async def aclose(self):
        for name, provider in self._providers.items():
            try:
                await provider.aclose()
                logger.info(f"Closed provider: {name}")
            except Exception as e:
                logger.error(f"Cleanup failed for {name}: {e}")

        self._providers.clear()
