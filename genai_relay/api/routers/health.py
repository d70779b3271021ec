"""
Health check endpoints for monitoring and diagnostics.
"""

import time
from fastapi import APIRouter, Depends

from ..models.common import HealthStatus
from ..dependencies.state import get_model_manager, get_upload_store
from genai_relay import __version__
from genai_relay.models.manager import ModelManager
from genai_relay.pipeline.uploads import UploadStore

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()

@router.get("/", response_model=HealthStatus)
async def health_check(
    model_manager: ModelManager = Depends(get_model_manager),
    upload_store: UploadStore = Depends(get_upload_store)
):
    """
    Basic health check endpoint.

    Reports the upload directory and the providers initialised at startup.
    It does not call the remote model.
    """
    uptime = time.time() - _server_start_time
    dependencies = {}

    if upload_store.directory.is_dir():
        dependencies["upload_store"] = f"ok ({upload_store.directory})"
    else:
        dependencies["upload_store"] = f"missing directory {upload_store.directory}"

    providers = model_manager.providers
    dependencies["model_providers"] = (
        f"ok ({', '.join(sorted(providers))})" if providers else "not initialized"
    )

    healthy = all(v.startswith("ok") for v in dependencies.values())
    return HealthStatus(
        status="healthy" if healthy else "degraded",
        version=__version__,
        uptime=uptime,
        dependencies=dependencies
    )

@router.get("/ready")
async def readiness_check(model_manager: ModelManager = Depends(get_model_manager)):
    """
    Readiness probe for container deployments.

    Asks each provider whether it can reach its remote API.
    """
    providers = model_manager.providers
    if not providers:
        return {"ready": False, "reason": "No model provider initialized"}

    unreachable = [name for name, provider in providers.items() if not await provider.health_check()]
    if unreachable:
        return {"ready": False, "reason": f"Provider unreachable: {', '.join(sorted(unreachable))}"}

    return {"ready": True, "message": "Service ready to handle requests"}
