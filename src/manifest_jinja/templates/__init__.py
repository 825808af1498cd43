"""Template collections, compilation and rendering."""

from .decoder import Decoder, YamlDecoder
from .engine import FileCollectionLoader, create_environment
from .executor import render_by_template, render_template_text, render_templates
from .filters import TemplateFailure, register_custom_filters
from .fs import DirectoryFS, FileCollection, MemoryFS, match_pattern
from .loader import CompiledTemplates, Source, SourceHolder, is_include_only

__all__ = [
    # Collections
    "FileCollection",
    "DirectoryFS",
    "MemoryFS",
    "match_pattern",
    # Compilation
    "Source",
    "SourceHolder",
    "CompiledTemplates",
    "is_include_only",
    "create_environment",
    "FileCollectionLoader",
    "register_custom_filters",
    "TemplateFailure",
    # Rendering
    "render_templates",
    "render_by_template",
    "render_template_text",
    "Decoder",
    "YamlDecoder",
]
