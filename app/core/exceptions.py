"""Custom exceptions for the pipeline service."""


class PipelineError(Exception):
    """Base exception for the pipeline service."""

    error_code = "pipeline_error"


class NotFoundError(PipelineError):
    """Raised when a referenced client or task does not exist."""

    error_code = "not_found"


class ForbiddenError(PipelineError):
    """Raised when the actor's role does not permit the operation."""

    error_code = "forbidden"


class AuthorizationError(ForbiddenError):
    """Raised when a role lacks a required scope."""

    error_code = "missing_scope"


class ConflictError(PipelineError):
    """Raised when an optimistic-concurrency precondition keeps failing."""

    error_code = "conflict"


class ValidationError(PipelineError):
    """Raised when input is missing or malformed before a write."""

    error_code = "validation_error"


class UpstreamUnavailableError(PipelineError):
    """Raised when the backing store or a delivery service fails to respond."""

    error_code = "upstream_unavailable"


class AuthenticationError(PipelineError):
    """Raised when authentication fails."""

    error_code = "unauthenticated"


class ConfigurationError(PipelineError):
    """Raised when configuration is invalid."""

    error_code = "configuration_error"
