"""Jinja2 environment construction for manifest templates."""

from typing import Callable, Optional, Tuple

from jinja2 import BaseLoader, Environment, StrictUndefined, TemplateNotFound, sandbox

from .filters import register_custom_filters
from .fs import FileCollection


class FileCollectionLoader(BaseLoader):
    """Jinja2 loader that reads templates from a FileCollection.

    Loaded templates are never considered stale: a compiled source does not
    observe later changes to its collection.
    """

    def __init__(self, fs: FileCollection) -> None:
        self.fs = fs

    def get_source(
        self, environment: Environment, template: str
    ) -> Tuple[str, Optional[str], Optional[Callable[[], bool]]]:
        try:
            source = self.fs.read_text(template)
        except FileNotFoundError:
            raise TemplateNotFound(template) from None
        return source, template, lambda: True

    def list_templates(self):
        return sorted(self.fs.list_files())


def create_environment(
    fs: FileCollection,
    enable_sandbox: bool = True,
    trim_blocks: bool = True,
    lstrip_blocks: bool = True,
    keep_trailing_newline: bool = True,
) -> Environment:
    """Create a strict Jinja2 environment backed by a file collection.

    Undefined values raise on any use (StrictUndefined), so a template that
    references a missing value fails instead of rendering an empty string.

    Args:
        fs: File collection templates and includes are loaded from
        enable_sandbox: Use a sandboxed environment
        trim_blocks: Remove first newline after block
        lstrip_blocks: Remove leading spaces/tabs from line start
        keep_trailing_newline: Keep trailing newline in templates

    Returns:
        Configured Jinja2 environment
    """
    env_class = sandbox.SandboxedEnvironment if enable_sandbox else Environment

    env = env_class(
        loader=FileCollectionLoader(fs),
        undefined=StrictUndefined,
        trim_blocks=trim_blocks,
        lstrip_blocks=lstrip_blocks,
        keep_trailing_newline=keep_trailing_newline,
        # YAML output, never HTML
        autoescape=False,
        auto_reload=False,
        # Never evict compiled templates, so includes are read only once
        cache_size=-1,
    )

    register_custom_filters(env)

    return env
