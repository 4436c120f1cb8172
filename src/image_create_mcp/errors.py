"""Error types surfaced by the generate_image tool."""

from typing import Any, Optional


class ImageGenError(Exception):
    """Base error for image generation failures."""

    code: str = "PROVIDER_ERROR"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigMissingError(ImageGenError):
    """Requested provider alias is not configured."""

    code = "CONFIG_MISSING"


class InvalidInputError(ImageGenError):
    """Tool arguments failed validation."""

    code = "INVALID_PARAMS"


class UpstreamHTTPError(ImageGenError):
    """Upstream API returned an error or could not be reached."""

    code = "HTTP_ERROR"

    def __init__(self, message: str, status: Optional[int] = None, details: Optional[Any] = None):
        super().__init__(message, details)
        self.status = status


class RequestTimeoutError(UpstreamHTTPError):
    """Upstream call did not answer in time."""

    code = "TIMEOUT"


class DecodeError(ImageGenError):
    """Image data could not be decoded or downloaded."""

    code = "DECODE_ERROR"


class SaveError(ImageGenError):
    """Image could not be persisted."""

    code = "SAVE_ERROR"


class FileExistsConflictError(SaveError):
    """Target file exists and the overwrite policy is 'error'."""


class NoImageDataError(ImageGenError):
    """Upstream answered successfully but returned no images."""

    code = "NO_IMAGE_DATA"
