"""Ordered filter and transform stages applied after rendering."""

import logging
from typing import List, Sequence

from ..errors import PipelineError
from ..objects import Object, object_id
from .filters import Filter
from .transformers import Transformer

logger = logging.getLogger(__name__)


def apply_filters(objects: Sequence[Object], filters: Sequence[Filter]) -> List[Object]:
    """Keep the objects accepted by every filter, preserving order."""
    if not filters:
        return list(objects)

    kept: List[Object] = []
    for obj in objects:
        for f in filters:
            try:
                accepted = f.accepts(obj)
            except Exception as e:
                raise PipelineError(
                    f"filter {f!r} failed for {object_id(obj)}: {e}"
                ) from e
            if not accepted:
                break
        else:
            kept.append(obj)

    return kept


def apply_transformers(
    objects: Sequence[Object], transformers: Sequence[Transformer]
) -> List[Object]:
    """Pass each object through every transformer in order."""
    if not transformers:
        return list(objects)

    result: List[Object] = []
    for obj in objects:
        current = obj
        for t in transformers:
            try:
                current = t.apply(current)
            except Exception as e:
                raise PipelineError(
                    f"transformer {t!r} failed for {object_id(obj)}: {e}"
                ) from e
            if not isinstance(current, dict):
                raise PipelineError(
                    f"transformer {t!r} returned {type(current).__name__} "
                    f"for {object_id(obj)}, expected a mapping"
                )
        result.append(current)

    return result


def apply_stages(
    objects: Sequence[Object],
    filters: Sequence[Filter] = (),
    transformers: Sequence[Transformer] = (),
) -> List[Object]:
    """Filter, then transform, a combined object list.

    Args:
        objects: Rendered objects from all sources, in source order
        filters: Predicates that must all accept an object for it to be kept
        transformers: Functions applied in order to each kept object

    Returns:
        Transformed survivors in their original relative order

    Raises:
        PipelineError: If a filter or transformer fails
    """
    kept = apply_filters(objects, filters)
    if len(kept) != len(objects):
        dropped = len(objects) - len(kept)
        logger.debug(f"Filtered out {dropped} of {len(objects)} objects")
    return apply_transformers(kept, transformers)
