"""Minimal engine aggregating renderers, for single-renderer use."""

import logging
from typing import Any, List, Mapping, Optional

from ..context import RenderContext
from ..errors import RendererError, SourceValidationError
from ..objects import Object
from ..templates.loader import Source
from .options import RendererOption
from .renderer import Renderer

logger = logging.getLogger(__name__)


class Engine:
    """Runs renderers in order and concatenates their output."""

    def __init__(self, *renderers: Renderer) -> None:
        if not renderers:
            raise SourceValidationError("at least one renderer is required")
        self.renderers = list(renderers)

    def render(
        self,
        ctx: Optional[RenderContext] = None,
        values: Optional[Mapping[str, Any]] = None,
    ) -> List[Object]:
        """Render every renderer with the same context and values.

        The first failing renderer aborts the call.
        """
        ctx = ctx or RenderContext.background()
        objects: List[Object] = []

        for renderer in self.renderers:
            try:
                objects.extend(renderer.process(ctx, values))
            except RendererError:
                logger.error(f"Renderer {renderer.name} failed: {renderer!r}")
                raise

        return objects


def new_engine(source: Source, *options: RendererOption) -> Engine:
    """Create an Engine with a single Jinja renderer for one source.

    Example:
        engine = new_engine(
            Source(fs=DirectoryFS("manifests"), path="*.yaml.j2"),
            with_source_annotations(),
        )
        objects = engine.render(values={"replicas": 3})

    Raises:
        SourceValidationError: If the source or options are invalid
    """
    try:
        renderer = Renderer([source], *options)
    except SourceValidationError as e:
        raise SourceValidationError(
            f"failed to create jinja renderer: {e}", path=e.path
        ) from e

    return Engine(renderer)
