"""Provenance annotations for rendered objects."""

from typing import Any, Dict, Iterable

from ..objects import ensure_metadata

RENDERER_TYPE = "jinja"

ANNOTATION_PREFIX = "manifest-jinja.io"
ANNOTATION_SOURCE_TYPE = f"{ANNOTATION_PREFIX}/source-type"
ANNOTATION_SOURCE_PATH = f"{ANNOTATION_PREFIX}/source-path"
ANNOTATION_SOURCE_FILE = f"{ANNOTATION_PREFIX}/source-file"


def get_annotations(obj: Dict[str, Any]) -> Dict[str, Any]:
    """Return the object's annotation map, creating it and metadata if absent."""
    metadata = ensure_metadata(obj)
    annotations = metadata.get("annotations")
    if not isinstance(annotations, dict):
        annotations = {}
        metadata["annotations"] = annotations

    return annotations


def annotate(objects: Iterable[Dict[str, Any]], path: str, template: str) -> None:
    """Record which source and template produced each object.

    Existing values under the provenance keys are overwritten.

    Args:
        objects: Objects to annotate in place
        path: Glob path of the source
        template: Name of the template within the source
    """
    for obj in objects:
        annotations = get_annotations(obj)
        annotations[ANNOTATION_SOURCE_TYPE] = RENDERER_TYPE
        annotations[ANNOTATION_SOURCE_PATH] = path
        annotations[ANNOTATION_SOURCE_FILE] = template
