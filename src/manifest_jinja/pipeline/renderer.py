"""Jinja template renderer for manifest generation pipelines."""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from ..config.cache import RenderCache, TemplateSpec
from ..config.merge import merge_values
from ..context import RenderContext
from ..errors import (
    ERR_NO_SOURCES,
    ContextCancelledError,
    SourceValidationError,
    ValuesError,
)
from ..objects import Object
from ..templates.executor import render_by_template
from ..templates.loader import Source, SourceHolder
from .annotations import RENDERER_TYPE, annotate
from .options import RendererConfig, RendererOption
from .stages import apply_stages

logger = logging.getLogger(__name__)


class Renderer:
    """Renders manifest objects from Jinja template sources.

    One renderer may be shared by many threads. Each source's templates are
    compiled once, on first use, and reused for the renderer's lifetime.
    """

    def __init__(self, sources: Sequence[Source], *options: RendererOption) -> None:
        """Initialize the renderer.

        Args:
            sources: Template sources, rendered in this order
            *options: Configuration options (see ``manifest_jinja.pipeline.options``)

        Raises:
            SourceValidationError: If a source or the configuration is invalid
        """
        if not sources:
            raise SourceValidationError(ERR_NO_SOURCES)

        config = RendererConfig()
        try:
            for option in options:
                config = option(config)
            cache = config.effective_cache()
        except (ValidationError, TypeError, ValueError) as e:
            raise SourceValidationError(f"invalid renderer configuration: {e}") from e

        self.config = config
        self._cache: Optional[RenderCache] = cache

        self._holders: List[SourceHolder] = []
        for source in sources:
            holder = SourceHolder(source, enable_sandbox=config.enable_sandbox)
            holder.validate()
            if cache is not None:
                self._check_cacheable(source)
            self._holders.append(holder)

        logger.debug(
            f"Created {RENDERER_TYPE} renderer with {len(self._holders)} source(s), "
            f"cache={'on' if self._cache else 'off'}, "
            f"annotations={'on' if config.source_annotations else 'off'}"
        )

    @property
    def name(self) -> str:
        """Identifier of this renderer type."""
        return RENDERER_TYPE

    @property
    def sources(self) -> List[Source]:
        return [holder.source for holder in self._holders]

    @property
    def cache(self) -> Optional[RenderCache]:
        return self._cache

    def process(
        self,
        ctx: Optional[RenderContext] = None,
        values: Optional[Mapping[str, Any]] = None,
    ) -> List[Object]:
        """Render all sources and apply the configured filters and transformers.

        Args:
            ctx: Execution context passed to source values functions
            values: Render-time values, taking precedence over source values

        Returns:
            Rendered objects, grouped by source in configuration order

        Raises:
            ContextCancelledError: If the context is done before a source is processed
            ValuesError: If a source's values function fails
            TemplateParseError: If a source's templates cannot be compiled
            TemplateExecutionError: If a template fails to render
            DecodeError: If rendered output cannot be decoded
            PipelineError: If a filter or transformer fails
        """
        ctx = ctx or RenderContext.background()
        objects: List[Object] = []

        for holder in self._holders:
            ctx.raise_if_done()
            objects.extend(self._render_source(ctx, holder, values))

        return apply_stages(objects, self.config.filters, self.config.transformers)

    def _render_source(
        self,
        ctx: RenderContext,
        holder: SourceHolder,
        render_values: Optional[Mapping[str, Any]],
    ) -> List[Object]:
        merged = merge_values(self._source_values(ctx, holder), render_values)
        spec = TemplateSpec(path=holder.path, values=merged)

        if self._cache is not None:
            cached = self._cache.get(spec, scope=holder.source)
            if cached is not None:
                logger.debug(f"Render cache hit (path: {holder.path})")
                return cached
            logger.debug(f"Render cache miss (path: {holder.path})")

        compiled = holder.load()
        objects: List[Object] = []

        for template_name, rendered in render_by_template(
            compiled, merged, holder.path, self.config.decoder
        ):
            if self.config.source_annotations:
                annotate(rendered, holder.path, template_name)
            objects.extend(rendered)

        if self._cache is not None:
            self._cache.set(spec, objects, scope=holder.source)

        return objects

    @staticmethod
    def _check_cacheable(source: Source) -> None:
        # Cache entries are keyed by source
        try:
            hash(source)
        except TypeError as e:
            raise SourceValidationError(
                "source cannot be used with a render cache "
                f"(path: {source.path}): {e}",
                path=source.path,
            ) from e

    @staticmethod
    def _source_values(ctx: RenderContext, holder: SourceHolder) -> Dict[str, Any]:
        values_func = holder.source.values
        if values_func is None:
            return {}

        try:
            values = values_func(ctx)
        except ContextCancelledError as e:
            raise ValuesError(
                f"values function cancelled (path: {holder.path}): {e}",
                path=holder.path,
            ) from e
        except ValuesError:
            raise
        except Exception as e:
            raise ValuesError(
                f"failed to get values (path: {holder.path}): {e}",
                path=holder.path,
            ) from e

        if values is None:
            return {}
        if not isinstance(values, Mapping):
            raise ValuesError(
                f"values function returned {type(values).__name__}, expected a mapping "
                f"(path: {holder.path})",
                path=holder.path,
            )
        return dict(values)

    def __repr__(self) -> str:
        paths = ", ".join(repr(holder.path) for holder in self._holders)
        return f"Renderer({RENDERER_TYPE}, sources=[{paths}])"
