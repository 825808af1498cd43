"""Transformer capabilities for the post-render pipeline."""

from abc import ABC, abstractmethod
from typing import Callable, Iterable, Mapping

from ..objects import Object, ensure_metadata
from .annotations import get_annotations


class Transformer(ABC):
    """Rewrites the content of a rendered object."""

    @abstractmethod
    def apply(self, obj: Object) -> Object:
        pass


class FuncTransformer(Transformer):
    """Adapts a plain function to the Transformer interface."""

    def __init__(self, func: Callable[[Object], Object]) -> None:
        self.func = func

    def apply(self, obj: Object) -> Object:
        return self.func(obj)

    def __repr__(self) -> str:
        return f"FuncTransformer({getattr(self.func, '__name__', self.func)!r})"


class LabelTransformer(Transformer):
    """Sets labels on every object, overwriting existing keys."""

    def __init__(self, labels: Mapping[str, str]) -> None:
        self.labels = dict(labels)

    def apply(self, obj: Object) -> Object:
        metadata = ensure_metadata(obj)
        if not isinstance(metadata.get("labels"), dict):
            metadata["labels"] = {}
        metadata["labels"].update(self.labels)
        return obj


class AnnotationTransformer(Transformer):
    """Sets annotations on every object, overwriting existing keys."""

    def __init__(self, annotations: Mapping[str, str]) -> None:
        self.annotations = dict(annotations)

    def apply(self, obj: Object) -> Object:
        get_annotations(obj).update(self.annotations)
        return obj


class NamespaceTransformer(Transformer):
    """Sets the namespace of every object.

    With ``override=False`` only objects without a namespace are changed.
    """

    def __init__(self, namespace: str, override: bool = True) -> None:
        self.namespace = namespace
        self.override = override

    def apply(self, obj: Object) -> Object:
        metadata = ensure_metadata(obj)
        if self.override or not metadata.get("namespace"):
            metadata["namespace"] = self.namespace
        return obj


def as_transformer(value) -> Transformer:
    """Return a Transformer, wrapping plain callables in FuncTransformer."""
    if isinstance(value, Transformer):
        return value
    if callable(value):
        return FuncTransformer(value)
    raise TypeError(f"{value!r} is neither a Transformer nor callable")


def as_transformers(values: Iterable) -> tuple:
    return tuple(as_transformer(v) for v in values)
