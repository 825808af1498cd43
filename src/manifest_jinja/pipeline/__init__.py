"""Render orchestration: renderer, options and post-render stages."""

from .annotations import (
    ANNOTATION_SOURCE_FILE,
    ANNOTATION_SOURCE_PATH,
    ANNOTATION_SOURCE_TYPE,
    RENDERER_TYPE,
    annotate,
)
from .engine import Engine, new_engine
from .filters import (
    AnyFilter,
    Filter,
    FuncFilter,
    KindFilter,
    LabelSelectorFilter,
    NamespaceFilter,
    NotFilter,
)
from .options import (
    RendererConfig,
    RendererOption,
    with_cache,
    with_cache_key_func,
    with_decoder,
    with_filters,
    with_sandbox,
    with_source_annotations,
    with_transformers,
)
from .renderer import Renderer
from .stages import apply_filters, apply_stages, apply_transformers
from .transformers import (
    AnnotationTransformer,
    FuncTransformer,
    LabelTransformer,
    NamespaceTransformer,
    Transformer,
)

__all__ = [
    # Renderer
    "Renderer",
    "Engine",
    "new_engine",
    # Options
    "RendererConfig",
    "RendererOption",
    "with_cache",
    "with_cache_key_func",
    "with_decoder",
    "with_filters",
    "with_sandbox",
    "with_source_annotations",
    "with_transformers",
    # Annotations
    "RENDERER_TYPE",
    "ANNOTATION_SOURCE_TYPE",
    "ANNOTATION_SOURCE_PATH",
    "ANNOTATION_SOURCE_FILE",
    "annotate",
    # Stages
    "apply_stages",
    "apply_filters",
    "apply_transformers",
    "Filter",
    "FuncFilter",
    "KindFilter",
    "NamespaceFilter",
    "LabelSelectorFilter",
    "AnyFilter",
    "NotFilter",
    "Transformer",
    "FuncTransformer",
    "LabelTransformer",
    "AnnotationTransformer",
    "NamespaceTransformer",
]
