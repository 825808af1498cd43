"""Renderer configuration and options."""

from typing import Callable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config.cache import KeyFunc, RenderCache
from ..templates.decoder import Decoder, YamlDecoder
from .filters import Filter, as_filters
from .transformers import Transformer, as_transformers


class RendererConfig(BaseModel):
    """Configuration of a Renderer, immutable once built.

    Attributes:
        filters: Predicates an object must all pass to be kept
        transformers: Functions applied in order to every kept object
        cache: Caller-supplied render cache
        cache_ttl_seconds: TTL of a cache owned by the renderer, None for no cache
        key_func: Key function for the renderer-owned cache
        source_annotations: Whether to add provenance annotations
        decoder: Decoder for rendered template text
        enable_sandbox: Whether templates run in a sandboxed environment
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    filters: Tuple[Filter, ...] = ()
    transformers: Tuple[Transformer, ...] = ()
    cache: Optional[RenderCache] = None
    cache_ttl_seconds: Optional[float] = Field(default=None, gt=0)
    key_func: Optional[Callable] = None
    source_annotations: bool = False
    decoder: Decoder = Field(default_factory=YamlDecoder)
    enable_sandbox: bool = True

    @field_validator("filters", mode="before")
    @classmethod
    def _wrap_filters(cls, value):
        return as_filters(value)

    @field_validator("transformers", mode="before")
    @classmethod
    def _wrap_transformers(cls, value):
        return as_transformers(value)

    def effective_cache(self) -> Optional[RenderCache]:
        """Return the cache to render with.

        A supplied cache is used as is. Otherwise a cache is created when
        caching is enabled, using ``key_func`` if set.

        Raises:
            ValueError: If a key function is combined with a supplied cache
        """
        if self.cache is not None:
            if self.key_func is not None:
                raise ValueError(
                    "a cache key function cannot be combined with a supplied cache; "
                    "create the cache with RenderCache(key_func=...) instead"
                )
            return self.cache
        if self.cache_ttl_seconds is None:
            return None
        return RenderCache(ttl_seconds=self.cache_ttl_seconds, key_func=self.key_func)

    def replace(self, **changes) -> "RendererConfig":
        """Return a validated copy with the given fields changed."""
        return type(self)(**{**dict(self), **changes})


RendererOption = Callable[[RendererConfig], RendererConfig]


def with_filters(*filters) -> RendererOption:
    """Append filters; an object must pass all of them to be kept."""

    def option(config: RendererConfig) -> RendererConfig:
        return config.replace(filters=config.filters + as_filters(filters))

    return option


def with_transformers(*transformers) -> RendererOption:
    """Append transformers, applied in the given order."""

    def option(config: RendererConfig) -> RendererConfig:
        return config.replace(
            transformers=config.transformers + as_transformers(transformers)
        )

    return option


def with_cache(
    ttl_seconds: float = 300, cache: Optional[RenderCache] = None
) -> RendererOption:
    """Enable render caching with a new cache or an existing one.

    Args:
        ttl_seconds: Time-to-live for a new cache in seconds
        cache: Existing cache instance to use instead, populated in place
    """

    def option(config: RendererConfig) -> RendererConfig:
        if cache is not None:
            return config.replace(cache=cache, cache_ttl_seconds=None)
        return config.replace(cache=None, cache_ttl_seconds=ttl_seconds)

    return option


def with_cache_key_func(key_func: KeyFunc) -> RendererOption:
    """Override the function deriving cache keys from template specs.

    Applies to the cache created by ``with_cache(ttl_seconds=...)``. Combining
    it with ``with_cache(cache=...)`` is rejected when the renderer is built,
    since a supplied cache keeps its own key function.
    """

    def option(config: RendererConfig) -> RendererConfig:
        return config.replace(key_func=key_func)

    return option


def with_source_annotations(enabled: bool = True) -> RendererOption:
    """Enable or disable provenance annotations on rendered objects."""

    def option(config: RendererConfig) -> RendererConfig:
        return config.replace(source_annotations=enabled)

    return option


def with_decoder(decoder: Decoder) -> RendererOption:
    """Use a custom decoder for rendered template text."""

    def option(config: RendererConfig) -> RendererConfig:
        return config.replace(decoder=decoder)

    return option


def with_sandbox(enabled: bool = True) -> RendererOption:
    """Enable or disable the sandboxed template environment."""

    def option(config: RendererConfig) -> RendererConfig:
        return config.replace(enable_sandbox=enabled)

    return option
