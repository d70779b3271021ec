import logging
import time

from genai_relay.models.manager import ModelManager
from genai_relay.models.providers.base import ModelError, ModelRetryable, ModelTimeout
from .encoder import encode
from .errors import EncodingError, ProviderError
from .types import GenerationInput, GenerationOutput

logger = logging.getLogger(__name__)


def _provider_error(exc: ModelError) -> ProviderError:
    message = str(exc) or type(exc).__name__
    if isinstance(exc, ModelTimeout):
        return ProviderError(message, error_code="provider_timeout")
    if isinstance(exc, ModelRetryable):
        return ProviderError(message, error_code="provider_unavailable")
    return ProviderError(message)


class GenerationPipeline:
    def __init__(self, manager: ModelManager):
        self.model_manager = manager

    async def process(self, generation_input: GenerationInput) -> GenerationOutput:
        """
        Build the content parts for one request and run them through the model.

        The instruction text comes first, followed by the encoded upload if there
        is one. Provider failures are re-raised as ProviderError.
        """
        start_time = time.perf_counter()

        media = ()
        if generation_input.upload is not None:
            try:
                media = (await encode(generation_input.upload),)
            except EncodingError as e:
                logger.error(f"Encoding failed for task '{generation_input.task}': {e}")
                raise

        try:
            response = await self.model_manager.call(
                task=generation_input.task,
                variables=generation_input.variables,
                media=media,
            )
        except ModelError as e:
            logger.error(f"Model call failed for task '{generation_input.task}': {e}")
            raise _provider_error(e) from e

        return GenerationOutput(
            text=response.content,
            processing_metadata={
                "task": generation_input.task,
                "processing_time": time.perf_counter() - start_time,
                **response.meta,
            },
        )
