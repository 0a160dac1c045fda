"""Domain errors raised by services and mapped to HTTP responses in main.py."""
from typing import Any, Dict, Optional

PREP_REDIRECT = {"redirect_to": "/test-prep"}


class AgukaError(Exception):
    status_code = 400

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, **self.extra}


class NotFoundError(AgukaError):
    status_code = 404


class PermissionDeniedError(AgukaError):
    status_code = 403


class ConflictError(AgukaError):
    status_code = 409


class SessionClosedError(ConflictError):
    """The test session is no longer accepting writes."""


class DevicePermissionError(AgukaError):
    """Camera, microphone or location access was refused by the candidate."""
    status_code = 400

    def __init__(self, device: str):
        super().__init__(f"{device} permission denied", {"device": device})
        self.device = device


class TestStartError(AgukaError):
    """Starting a proctored test failed; the candidate goes back to preparation."""
    status_code = 400
    __test__ = False

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, dict(PREP_REDIRECT))
        self.cause = cause


class AIResponseError(AgukaError):
    status_code = 502
