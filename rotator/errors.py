"""Rotator exception taxonomy."""
from typing import Optional, Dict, Any


class RotatorError(Exception):
    """Base error for a rotation run.

    Args:
        message: Human readable message
        code: Stable error code (NOT_FOUND, PRECONDITION_FAILED, etc.)
        details: Optional extra details
    """

    code = "ROTATOR_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details: Dict[str, Any] = details or {}

    def to_dict(self) -> Dict[str, Any]:
        error_body: Dict[str, Any] = {
            "code": self.code,
            "message": self.message
        }
        if self.details:
            error_body["details"] = self.details
        return error_body


class ConfigurationError(RotatorError):
    """Settings are missing or out of range."""
    code = "CONFIG_INVALID"


class NotFoundError(RotatorError):
    """Target application does not exist in the registry."""
    code = "NOT_FOUND"


class PreconditionError(RotatorError):
    """Executor was handed an unidentified application."""
    code = "PRECONDITION_FAILED"


class SecretCreationError(RotatorError):
    """Registry created a credential but returned no secret text."""
    code = "SECRET_CREATION_FAILED"


class StoreWriteError(RotatorError):
    """Secret store write failed after the registry credential was created."""
    code = "STORE_WRITE_FAILED"


class RegistryError(RotatorError):
    """Transport or HTTP failure talking to the registry."""
    code = "REGISTRY_ERROR"


class SecretStoreError(RotatorError):
    """Transport failure talking to the secret store."""
    code = "SECRET_STORE_ERROR"
