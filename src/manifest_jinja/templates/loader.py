"""Template sources and their lazily compiled template sets."""

import logging
import posixpath
import threading
from dataclasses import dataclass
from typing import List, Optional, Tuple

from jinja2 import Environment, Template, TemplateError, TemplateSyntaxError

from ..config.values import ValuesFunc
from ..errors import (
    ERR_FS_REQUIRED,
    ERR_PATH_EMPTY,
    SourceValidationError,
    TemplateParseError,
)
from .engine import create_environment
from .fs import FileCollection

logger = logging.getLogger(__name__)

# Files with this base name prefix hold shared macros/includes only
INCLUDE_ONLY_PREFIX = "_"


@dataclass(frozen=True)
class Source:
    """A template origin: a file collection, a glob path and optional values.

    Attributes:
        fs: File collection holding the templates
        path: Glob pattern selecting the templates to render (e.g. "*.yaml.j2")
        values: Function returning the source's values, called on every render
    """

    fs: Optional[FileCollection]
    path: str
    values: Optional[ValuesFunc] = None


@dataclass(frozen=True)
class CompiledTemplates:
    """A compiled template set for one source."""

    environment: Environment
    templates: Tuple[Tuple[str, Template], ...]
    include_only: Tuple[str, ...] = ()

    @property
    def names(self) -> List[str]:
        """Names of the directly rendered templates, in render order."""
        return [name for name, _ in self.templates]


def is_include_only(name: str) -> bool:
    """Check whether a template file only hosts includes and macros."""
    return posixpath.basename(name).startswith(INCLUDE_ONLY_PREFIX)


class SourceHolder:
    """Wraps a Source with lazily compiled, thread-safe template state.

    Templates are compiled on first use and kept for the holder's lifetime.
    A failed compilation stores nothing, so the next call tries again.
    """

    def __init__(self, source: Source, enable_sandbox: bool = True) -> None:
        self.source = source
        self.enable_sandbox = enable_sandbox

        # Protects the slow path of load(); reads of _compiled are lock-free
        self._lock = threading.Lock()
        self._compiled: Optional[CompiledTemplates] = None

    @property
    def path(self) -> str:
        return self.source.path

    @property
    def is_loaded(self) -> bool:
        return self._compiled is not None

    def validate(self) -> None:
        """Check that the source configuration is valid.

        Raises:
            SourceValidationError: If the collection is missing or the path is blank
        """
        if self.source.fs is None:
            raise SourceValidationError(ERR_FS_REQUIRED, path=self.source.path)
        if not isinstance(self.source.path, str) or not self.source.path.strip():
            raise SourceValidationError(ERR_PATH_EMPTY)
        if self.source.values is not None and not callable(self.source.values):
            raise SourceValidationError(
                f"values must be callable (path: {self.source.path})",
                path=self.source.path,
            )

    def load(self) -> CompiledTemplates:
        """Return the compiled templates, compiling them on first use.

        Thread-safe: concurrent first callers compile exactly once.

        Raises:
            TemplateParseError: If no template matches or one fails to compile
        """
        compiled = self._compiled
        if compiled is not None:
            return compiled

        with self._lock:
            if self._compiled is None:
                self._compiled = self._compile()
            return self._compiled

    def _compile(self) -> CompiledTemplates:
        path = self.source.path
        fs = self.source.fs

        try:
            names = fs.glob(path)
        except OSError as e:
            raise TemplateParseError(
                f"failed to list templates (path: {path}): {e}", path=path
            ) from e

        if not names:
            raise TemplateParseError(
                f"failed to parse templates (path: {path}): pattern matches no files",
                path=path,
            )

        env = create_environment(fs, enable_sandbox=self.enable_sandbox)
        templates: List[Tuple[str, Template]] = []
        include_only: List[str] = []

        for name in names:
            try:
                template = env.get_template(name)
            except TemplateSyntaxError as e:
                raise TemplateParseError(
                    f"failed to parse templates (path: {path}, template: {name}): "
                    f"line {e.lineno}: {e.message}",
                    path=path,
                    template=name,
                ) from e
            except (TemplateError, OSError, UnicodeDecodeError) as e:
                raise TemplateParseError(
                    f"failed to parse templates (path: {path}, template: {name}): {e}",
                    path=path,
                    template=name,
                ) from e

            if is_include_only(name):
                include_only.append(name)
            else:
                templates.append((name, template))

        if not templates:
            raise TemplateParseError(
                f"failed to parse templates (path: {path}): "
                f"pattern matches only include files {include_only}",
                path=path,
            )

        logger.info(
            f"Compiled {len(templates)} template(s) for path {path} "
            f"({len(include_only)} include-only)"
        )

        return CompiledTemplates(
            environment=env,
            templates=tuple(templates),
            include_only=tuple(include_only),
        )
