"""
FastAPI application entry point.

Wires the generation and health routers, the error handlers and the
process-wide resources (model manager, upload store) created at startup.
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import yaml

from .models.common import ErrorResponse
from .routers import generation, health
from genai_relay import __version__
from genai_relay.models.manager import ModelManager
from genai_relay.pipeline.errors import RelayError
from genai_relay.pipeline.uploads import UploadStore

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "config.yaml"
DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]

# Global application state
app_state = {}


def resolve_config_path() -> Path:
    return Path(os.getenv("GENAI_RELAY_CONFIG", DEFAULT_CONFIG_PATH))


def load_cors_origins(config_path: Path) -> List[str]:
    if not config_path.exists():
        return DEFAULT_CORS_ORIGINS
    with open(config_path) as f:
        config = yaml.safe_load(f) or {}
    server = config.get("server") or {}
    return server.get("cors_origins") or DEFAULT_CORS_ORIGINS


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Credentials and the upload directory are checked before the server
    accepts requests; a missing API key aborts startup.
    """
    load_dotenv()
    config_path = resolve_config_path()
    logger.info(f"Starting genai-relay with config {config_path}")

    model_manager = ModelManager(config_path=config_path)
    try:
        model_manager.validate_credentials()

        upload_store = UploadStore.from_config(model_manager.config.get("uploads") or {})
        upload_store.ensure_directory()
    except Exception:
        logger.error("Startup failed, closing model providers")
        await model_manager.aclose()
        raise

    app_state["model_manager"] = model_manager
    app_state["upload_store"] = upload_store
    logger.info(f"Ready: uploads in {upload_store.directory}, at most {model_manager.max_concurrent_calls} concurrent model calls")

    yield  # Server runs here

    logger.info("Shutting down genai-relay")
    await model_manager.aclose()
    app_state.clear()


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message, error_code=exc.error_code).model_dump(),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(loc) for loc in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error=f"Invalid request: {details}", error_code="invalid_request").model_dump(),
    )


def create_app(cors_origins: Optional[List[str]] = None) -> FastAPI:
    """
    Factory function to create and configure the FastAPI application.

    CORS origins default to the ``server.cors_origins`` entry of the config file.
    """
    if cors_origins is None:
        cors_origins = load_cors_origins(resolve_config_path())

    app = FastAPI(
        title="genai-relay",
        description="Relays text, images, documents and audio to a generative model",
        version=__version__,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RelayError, relay_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(generation.router, tags=["generation"])

    @app.get("/")
    async def root():
        """Root endpoint with basic API information."""
        return {
            "name": "genai-relay",
            "version": __version__,
            "status": "operational",
            "endpoints": {
                "health": "/health",
                "generate_text": "/generate-text",
                "generate_from_image": "/generate-from-image",
                "generate_from_document": "/generate-from-document",
                "generate_from_audio": "/generate-from-audio",
                "docs": "/docs",
            }
        }

    return app

# Create the FastAPI app instance
app = create_app()
