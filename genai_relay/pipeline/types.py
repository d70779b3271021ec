from dataclasses import dataclass, field
from typing import Optional, Dict, Any

from .uploads import UploadedFile

# Input types
@dataclass
class GenerationInput:
    task: str  # "text", "image", "document" or "audio"
    variables: Dict[str, Any] = field(default_factory=dict)
    upload: Optional[UploadedFile] = None

# Output types
@dataclass
class GenerationOutput:
    text: str
    processing_metadata: Dict[str, Any]
