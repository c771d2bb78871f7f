"""
User-friendly error handling for the Diagram Studio API.

Services raise ServiceError subclasses carrying the HTTP status and a payload
that is safe to show to the client; the API layer converts them into
HTTPException responses with an {error, details} body.
"""

from typing import Any, Dict, Optional


FRIENDLY_STATUS_MESSAGES = {
    400: "We couldn't process your request. Please check the information and try again.",
    401: "Unauthorized",
    403: "You don't have permission to do that.",
    404: "We couldn't find what you're looking for.",
    405: "This action isn't allowed.",
    408: "The request timed out. Please try again.",
    413: "This is too large to process. Please try a shorter description.",
    422: "The AI could not process this request.",
    429: "You've reached the current rate limit. Please wait and try again.",
    500: "Something went wrong on our side. Please try again in a moment.",
    502: "The service is temporarily unavailable. Please try again shortly.",
    503: "The service is temporarily unavailable. Please try again shortly.",
    504: "The request took too long. Please try again.",
}


class ServiceError(Exception):
    """Failure that maps directly onto an HTTP error response."""

    def __init__(self, message: str, status_code: int = 500, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details

    def to_response_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class PromptEnhancementError(ServiceError):
    pass


class DiagramGenerationError(ServiceError):
    pass


class DiagramStoreError(ServiceError):
    pass


def get_friendly_status_message(status_code: int) -> str:
    """Map an HTTP status to a message suitable for end users."""
    return FRIENDLY_STATUS_MESSAGES.get(status_code, "We ran into a problem. Please try again.")


def format_validation_error(field: str, message: Optional[str] = None) -> str:
    """Format a request validation message for a single field."""
    return message or f'Missing or invalid "{field}" field.'
