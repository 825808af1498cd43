"""Jinja template renderer for manifest generation pipelines."""

from .config import (
    RenderCache,
    TemplateSpec,
    default_key_func,
    file_values,
    merge_values,
    path_key_func,
    static_values,
)
from .context import RenderContext
from .errors import (
    ContextCancelledError,
    DeadlineExceededError,
    DecodeError,
    PipelineError,
    RendererError,
    SourceValidationError,
    TemplateExecutionError,
    TemplateParseError,
    ValuesError,
)
from .pipeline import (
    Engine,
    Renderer,
    new_engine,
    with_cache,
    with_cache_key_func,
    with_decoder,
    with_filters,
    with_sandbox,
    with_source_annotations,
    with_transformers,
)
from .templates import DirectoryFS, FileCollection, MemoryFS, Source

__version__ = "0.1.0"

__all__ = [
    "Renderer",
    "Engine",
    "new_engine",
    "Source",
    "FileCollection",
    "DirectoryFS",
    "MemoryFS",
    "RenderContext",
    "RenderCache",
    "TemplateSpec",
    "default_key_func",
    "path_key_func",
    "merge_values",
    "static_values",
    "file_values",
    "with_cache",
    "with_cache_key_func",
    "with_decoder",
    "with_filters",
    "with_sandbox",
    "with_source_annotations",
    "with_transformers",
    "RendererError",
    "SourceValidationError",
    "ValuesError",
    "TemplateParseError",
    "TemplateExecutionError",
    "DecodeError",
    "PipelineError",
    "ContextCancelledError",
    "DeadlineExceededError",
]
