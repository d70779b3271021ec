"""
API models for the generation endpoints.
"""

from pydantic import BaseModel, Field
from typing import Optional

# API Request Models
class TextGenerationRequest(BaseModel):
    prompt: Optional[str] = Field(None, description="Prompt sent to the model verbatim")

# API Response Models
class GenerationResponse(BaseModel):
    output: str = Field(..., description="Text generated by the model")
