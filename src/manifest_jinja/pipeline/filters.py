"""Filter capabilities for the post-render pipeline."""

from abc import ABC, abstractmethod
from typing import Callable, Iterable, Mapping

from ..objects import Object, get_kind, get_labels, get_namespace


class Filter(ABC):
    """Decides whether a rendered object is kept."""

    @abstractmethod
    def accepts(self, obj: Object) -> bool:
        pass


class FuncFilter(Filter):
    """Adapts a plain predicate function to the Filter interface."""

    def __init__(self, func: Callable[[Object], bool]) -> None:
        self.func = func

    def accepts(self, obj: Object) -> bool:
        return bool(self.func(obj))

    def __repr__(self) -> str:
        return f"FuncFilter({getattr(self.func, '__name__', self.func)!r})"


class KindFilter(Filter):
    """Keeps objects whose kind is one of the given kinds."""

    def __init__(self, *kinds: str) -> None:
        self.kinds = frozenset(kinds)

    def accepts(self, obj: Object) -> bool:
        return get_kind(obj) in self.kinds


class NamespaceFilter(Filter):
    """Keeps objects in one of the given namespaces ("" for cluster scope)."""

    def __init__(self, *namespaces: str) -> None:
        self.namespaces = frozenset(namespaces)

    def accepts(self, obj: Object) -> bool:
        return get_namespace(obj) in self.namespaces


class LabelSelectorFilter(Filter):
    """Keeps objects carrying every given label with the given value."""

    def __init__(self, labels: Mapping[str, str]) -> None:
        self.labels = dict(labels)

    def accepts(self, obj: Object) -> bool:
        labels = get_labels(obj)
        return all(labels.get(key) == value for key, value in self.labels.items())


class AnyFilter(Filter):
    """Keeps objects accepted by at least one of the given filters."""

    def __init__(self, *filters: Filter) -> None:
        self.filters = tuple(as_filter(f) for f in filters)

    def accepts(self, obj: Object) -> bool:
        return any(f.accepts(obj) for f in self.filters)


class NotFilter(Filter):
    """Inverts another filter."""

    def __init__(self, inner: Filter) -> None:
        self.inner = as_filter(inner)

    def accepts(self, obj: Object) -> bool:
        return not self.inner.accepts(obj)


def as_filter(value) -> Filter:
    """Return a Filter, wrapping plain callables in FuncFilter."""
    if isinstance(value, Filter):
        return value
    if callable(value):
        return FuncFilter(value)
    raise TypeError(f"{value!r} is neither a Filter nor callable")


def as_filters(values: Iterable) -> tuple:
    return tuple(as_filter(v) for v in values)
