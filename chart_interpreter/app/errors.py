"""
Error taxonomy for the interpretation pipeline.

Every failure raised below the route is one of these; main.py maps them
to the JSON error envelope and an HTTP status.
"""

from typing import Optional


class InterpreterError(RuntimeError):
    """Base class for all pipeline failures."""

    status_code = 500


class BadRequestError(InterpreterError):
    """Bad method, unreadable body or malformed JSON."""

    status_code = 400

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class ConfigError(InterpreterError):
    """Deployment is missing something the provider call needs."""


class PromptLoadError(InterpreterError):
    """Prompt template file is missing or unreadable."""


class SerializationError(InterpreterError):
    """Chart value cannot be rendered as JSON."""


class ProviderError(InterpreterError):
    """
    Generation API failed or answered with something unusable.

    `provider_status` and `body` keep the raw upstream answer for diagnostics.
    """

    def __init__(self, message: str, provider_status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.provider_status = provider_status
        self.body = body


class EmptyResponseError(ProviderError):
    def __init__(self, message: str = "no content in API response"):
        super().__init__(message)


class GenerationTimeoutError(ProviderError):
    def __init__(self, seconds: float):
        super().__init__(f"request timed out after {seconds:g}s")
        self.seconds = seconds
