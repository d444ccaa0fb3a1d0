from typing import Any, Dict, Optional
from fastapi import HTTPException, status

class VoxRouterError(Exception):
    """Base exception for the voxrouter application"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

class ConfigurationError(VoxRouterError):
    """Configuration related errors"""
    pass

class ValidationError(VoxRouterError):
    """Malformed or missing turn request fields"""
    pass

class UnsupportedModelError(VoxRouterError):
    """Model identifier outside the known set"""

    def __init__(self, model: Any, details: Optional[Dict[str, Any]] = None):
        self.model = model
        super().__init__(f"Unsupported model: {model}", {"model": str(model), **(details or {})})

class BackendError(VoxRouterError):
    """LLM backend failures: network, auth, status or malformed payload"""

    def __init__(self, backend: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.backend = backend
        super().__init__(message, {"backend": backend, **(details or {})})

class SynthesisError(VoxRouterError):
    """Speech synthesis failures"""
    pass

# HTTP Exceptions for FastAPI
class HTTPValidationError(HTTPException):
    """HTTP validation error with structured details"""

    def __init__(self, detail: str, errors: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": detail, "errors": errors or {}}
        )

class HTTPUnsupportedModelError(HTTPException):
    """HTTP error for a model identifier that cannot be routed"""

    def __init__(self, detail: str, model: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": detail, "type": "unsupported_model", "model": model}
        )

class HTTPInternalServerError(HTTPException):
    """HTTP internal server error"""

    def __init__(self, detail: str = "Failed to process request", error_id: str = None):
        error_detail = {"message": detail, "type": "internal_server_error"}
        if error_id:
            error_detail["error_id"] = error_id

        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_detail
        )

# Exception mapping for consistent error responses
EXCEPTION_MAP = {
    ValidationError: HTTPValidationError,
    UnsupportedModelError: HTTPUnsupportedModelError,
    BackendError: HTTPInternalServerError,
    SynthesisError: HTTPInternalServerError,
    ConfigurationError: HTTPInternalServerError,
}

def map_exception_to_http(exc: VoxRouterError, error_id: Optional[str] = None) -> HTTPException:
    """Map application exception to HTTP exception.

    Backend and synthesis details never reach the client; they are logged
    by the caller and replaced with a generic message here.
    """
    exception_class = EXCEPTION_MAP.get(type(exc), HTTPInternalServerError)

    if exception_class == HTTPValidationError:
        return exception_class(exc.message, exc.details.get("errors"))
    elif exception_class == HTTPUnsupportedModelError:
        return exception_class(exc.message, exc.details.get("model"))
    else:
        return exception_class(error_id=error_id or exc.details.get("error_id"))
