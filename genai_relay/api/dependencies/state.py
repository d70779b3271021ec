"""
Access to the process-wide resources created in the application lifespan.
"""

from genai_relay.models.manager import ModelManager
from genai_relay.pipeline.uploads import UploadStore


# FastAPI dependency functions
def get_model_manager() -> ModelManager:
    """FastAPI dependency to get the model manager from app state."""
    from ..main import app_state
    return app_state["model_manager"]

def get_upload_store() -> UploadStore:
    """FastAPI dependency to get the temporary upload store from app state."""
    from ..main import app_state
    return app_state["upload_store"]
