"""
Generation endpoints, one per input modality.

Each handler validates its input, builds the content parts through the
generation pipeline and relays the model's text. Uploaded files live in the
upload store only for the duration of the request.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from ..models.generation import TextGenerationRequest, GenerationResponse
from ..dependencies.state import get_model_manager, get_upload_store
from genai_relay.models.manager import ModelManager
from genai_relay.pipeline.errors import RelayError, InputError, MissingFileError
from genai_relay.pipeline.generation import GenerationPipeline
from genai_relay.pipeline.types import GenerationInput
from genai_relay.pipeline.uploads import UploadStore

logger = logging.getLogger(__name__)

router = APIRouter()


def _is_missing(upload: Optional[UploadFile]) -> bool:
    return upload is None or not upload.filename


async def _generate(
    model_manager: ModelManager,
    task: str,
    variables: Optional[Dict[str, Any]] = None,
    upload: Optional[UploadFile] = None,
    upload_store: Optional[UploadStore] = None,
) -> GenerationResponse:
    """
    Run one request through the pipeline. The upload, if any, is stored under
    the task's field name and released on every exit path.
    """
    pipeline = GenerationPipeline(model_manager)
    try:
        if upload is None:
            output = await pipeline.process(GenerationInput(task=task, variables=variables or {}))
        else:
            async with upload_store.hold(upload, task) as uploaded:
                output = await pipeline.process(
                    GenerationInput(task=task, variables=variables or {}, upload=uploaded)
                )
    except RelayError:
        raise
    except Exception as e:
        logger.exception(f"Error processing {task} request")
        raise RelayError(str(e) or type(e).__name__) from e
    logger.debug(f"Processed {task} request: {output.processing_metadata}")
    return GenerationResponse(output=output.text)


@router.post("/generate-text", response_model=GenerationResponse)
async def generate_text(
    request: TextGenerationRequest,
    model_manager: ModelManager = Depends(get_model_manager)
):
    if request.prompt is None or not request.prompt.strip():
        raise InputError("A non-empty 'prompt' is required.")

    return await _generate(model_manager, "text", {"prompt": request.prompt})


@router.post("/generate-from-image", response_model=GenerationResponse)
async def generate_from_image(
    image: Optional[UploadFile] = File(None),
    prompt: Optional[str] = Form(None),
    upload_store: UploadStore = Depends(get_upload_store),
    model_manager: ModelManager = Depends(get_model_manager)
):
    """Describe an image; the optional form prompt replaces the default instruction."""
    if _is_missing(image):
        raise MissingFileError("No image file uploaded.")

    return await _generate(model_manager, "image", {"prompt": prompt}, image, upload_store)


@router.post("/generate-from-document", response_model=GenerationResponse)
async def generate_from_document(
    document: Optional[UploadFile] = File(None),
    upload_store: UploadStore = Depends(get_upload_store),
    model_manager: ModelManager = Depends(get_model_manager)
):
    if _is_missing(document):
        raise MissingFileError("No document file uploaded.")

    return await _generate(model_manager, "document", upload=document, upload_store=upload_store)


@router.post("/generate-from-audio", response_model=GenerationResponse)
async def generate_from_audio(
    audio: Optional[UploadFile] = File(None),
    upload_store: UploadStore = Depends(get_upload_store),
    model_manager: ModelManager = Depends(get_model_manager)
):
    if _is_missing(audio):
        raise MissingFileError("No audio file uploaded.")

    return await _generate(model_manager, "audio", upload=audio, upload_store=upload_store)
