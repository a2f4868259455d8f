"""
Error types shared by the deck editor, the generation gateway and the API
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Machine readable error categories returned to API clients"""
    CONFIGURATION = "configuration_error"
    VALIDATION = "validation_error"
    UPSTREAM = "upstream_error"
    INVALID_RESPONSE = "invalid_response"


class PitchDeckError(Exception):
    """Base class for all application errors"""
    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind.value, "message": self.message}


class ConfigurationError(PitchDeckError):
    """Missing or invalid startup configuration (e.g. no API credential)"""
    kind = ErrorKind.CONFIGURATION


class ValidationError(PitchDeckError, ValueError):
    """Caller supplied an out-of-range index or a missing required field"""
    kind = ErrorKind.VALIDATION


class GenerationError(PitchDeckError):
    """Failure while producing content through the AI provider"""
    kind = ErrorKind.UPSTREAM

    @property
    def retryable(self) -> bool:
        return self.kind is ErrorKind.UPSTREAM


class UpstreamError(GenerationError):
    """The AI provider call itself failed (network, HTTP status, credentials)"""
    kind = ErrorKind.UPSTREAM

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidResponse(GenerationError):
    """The AI provider replied, but the reply does not fit the slide schema"""
    kind = ErrorKind.INVALID_RESPONSE

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text
