"""
Request-level error taxonomy.

Every error a handler can answer with derives from RelayError and carries the
HTTP status and machine-readable code it is rendered with.
"""

from typing import Optional


class RelayError(Exception):
    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message or self.__class__.__name__
        if error_code:
            self.error_code = error_code


class InputError(RelayError):
    status_code = 400
    error_code = "invalid_request"


class MissingFileError(RelayError):
    status_code = 400
    error_code = "missing_file"


class PayloadTooLargeError(RelayError):
    status_code = 413
    error_code = "payload_too_large"


class UnsupportedMediaError(RelayError):
    status_code = 415
    error_code = "unsupported_media_type"


class EncodingError(RelayError):
    status_code = 500
    error_code = "encoding_error"


class ProviderError(RelayError):
    status_code = 500
    error_code = "provider_error"
