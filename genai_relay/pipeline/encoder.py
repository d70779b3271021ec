from fastapi.concurrency import run_in_threadpool

from genai_relay.models.providers.base import InlineMedia
from genai_relay.utils.encoding import to_base64
from .errors import EncodingError
from .uploads import UploadedFile


async def encode(file: UploadedFile) -> InlineMedia:
    """
    Read an uploaded file fully into memory and wrap it as inline base64 media.

    The mime type is taken verbatim from the upload metadata.
    """
    try:
        data = await run_in_threadpool(to_base64, file.path)
    except OSError as e:
        raise EncodingError(f"Could not read uploaded {file.field_name}: {e}") from e
    return InlineMedia(data=data, mime_type=file.mime_type)
