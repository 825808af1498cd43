"""Value merging, caching and values helpers."""

from .cache import (
    KeyFunc,
    RenderCache,
    TemplateSpec,
    default_key_func,
    path_key_func,
)
from .merge import merge_values
from .values import (
    EnvironmentSubstitutionError,
    ValuesFunc,
    file_values,
    load_values_file,
    static_values,
    substitute_environment_variables,
)

__all__ = [
    # Merging
    "merge_values",
    # Caching
    "RenderCache",
    "TemplateSpec",
    "KeyFunc",
    "default_key_func",
    "path_key_func",
    # Values
    "ValuesFunc",
    "static_values",
    "file_values",
    "load_values_file",
    "substitute_environment_variables",
    "EnvironmentSubstitutionError",
]
