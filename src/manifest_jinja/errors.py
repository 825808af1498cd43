"""Exception hierarchy for the Jinja manifest renderer."""

from typing import Optional


class RendererError(Exception):
    """Base class for all renderer errors."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        template: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.path = path
        self.template = template


class SourceValidationError(RendererError):
    """Raised when a source or renderer configuration is malformed."""

    pass


class ValuesError(RendererError):
    """Raised when a source's values function fails or is cancelled."""

    pass


class TemplateParseError(RendererError):
    """Raised when a source's templates cannot be found or compiled."""

    pass


class TemplateExecutionError(RendererError):
    """Raised when a template fails to render, including undefined values."""

    pass


class DecodeError(RendererError):
    """Raised when rendered output cannot be decoded into objects."""

    pass


class PipelineError(RendererError):
    """Raised when a filter or transformer fails."""

    pass


class ContextCancelledError(RendererError):
    """Raised when a render context has been cancelled."""

    pass


class DeadlineExceededError(ContextCancelledError):
    """Raised when a render context's deadline has passed."""

    pass


# Sentinel messages for source validation
ERR_FS_REQUIRED = "file collection (fs) is required"
ERR_PATH_EMPTY = "path must not be empty"
ERR_NO_SOURCES = "at least one source is required"
