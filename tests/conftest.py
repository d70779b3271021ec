"""Shared test fixtures."""

import asyncio
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from genai_relay.api.dependencies.state import get_model_manager, get_upload_store
from genai_relay.api.main import create_app
from genai_relay.models.manager import ModelManager
from genai_relay.models.providers.base import ModelProvider, GenerateRequest, ModelResponse
from genai_relay.pipeline.uploads import UploadStore


CONFIG_TEMPLATE = """
providers:
  gemini:
    type: gemini
    settings:
      api_key_env: RELAY_TEST_GEMINI_KEY
      timeout: 5

tasks:
  text:
    provider: gemini
    model: "gemini-test"
    prompt_ref: "text/generate@v1"
    timeout: {timeout}
  image:
    provider: gemini
    model: "gemini-test"
    prompt_ref: "image/describe@v1"
    timeout: {timeout}
  document:
    provider: gemini
    model: "gemini-test"
    prompt_ref: "document/analyze@v1"
    timeout: {timeout}
  audio:
    provider: gemini
    model: "gemini-test"
    prompt_ref: "audio/analyze@v1"
    timeout: {timeout}

limits:
  max_concurrent_calls: {max_concurrent_calls}
"""


class FakeProvider(ModelProvider):
    """Records every request and answers with canned text (or raises ``error``)."""

    def __init__(self, content: str = "fake output", error: Optional[Exception] = None, delay: float = 0.0):
        self.content = content
        self.error = error
        self.delay = delay
        self.healthy = True
        self.closed = False
        self.requests: List[GenerateRequest] = []

    async def generate(self, req: GenerateRequest) -> ModelResponse:
        self.requests.append(req)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return ModelResponse(content=self.content, raw={}, meta={"provider": "fake", "model": req.model})

    async def health_check(self) -> bool:
        return self.healthy

    async def aclose(self) -> None:
        self.closed = True


def write_config(tmp_path, timeout: float = 5, max_concurrent_calls: int = 8):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(CONFIG_TEMPLATE.format(timeout=timeout, max_concurrent_calls=max_concurrent_calls))
    return config_file


@pytest.fixture
def config_file(tmp_path):
    return write_config(tmp_path)


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def model_manager(config_file, fake_provider):
    return ModelManager(config_file, providers={"gemini": fake_provider})


@pytest.fixture
def upload_dir(tmp_path):
    directory = tmp_path / "uploads"
    directory.mkdir()
    return directory


@pytest.fixture
def upload_store(upload_dir):
    return UploadStore(
        upload_dir,
        max_bytes=64 * 1024,
        chunk_size=4096,
        allowed_mime_types={
            "image": ["image/"],
            "document": ["application/pdf", "text/"],
            "audio": ["audio/"],
        },
    )


@pytest.fixture
def app(model_manager, upload_store):
    app = create_app(cors_origins=["http://localhost:3000"])
    app.dependency_overrides[get_model_manager] = lambda: model_manager
    app.dependency_overrides[get_upload_store] = lambda: upload_store
    return app


@pytest.fixture
def client(app):
    """Test client for the FastAPI app; lifespan is not run."""
    return TestClient(app)
