"""Accessors for rendered manifest objects.

Rendered objects are plain ``dict`` trees decoded from YAML. Identity is
taken from ``apiVersion``, ``kind``, ``metadata.namespace`` and
``metadata.name``; everything else is opaque content.
"""

from typing import Any, Dict, NamedTuple, Optional

Object = Dict[str, Any]


class ObjectId(NamedTuple):
    """Identity of a rendered object."""

    api_version: str
    kind: str
    namespace: str
    name: str

    def __str__(self) -> str:
        scope = f"{self.namespace}/" if self.namespace else ""
        return f"{self.api_version}, Kind={self.kind}, {scope}{self.name}"


def _metadata(obj: Object) -> Dict[str, Any]:
    metadata = obj.get("metadata")
    return metadata if isinstance(metadata, dict) else {}


def get_kind(obj: Object) -> str:
    return str(obj.get("kind") or "")


def get_api_version(obj: Object) -> str:
    return str(obj.get("apiVersion") or "")


def get_name(obj: Object) -> str:
    return str(_metadata(obj).get("name") or "")


def get_namespace(obj: Object) -> str:
    return str(_metadata(obj).get("namespace") or "")


def get_labels(obj: Object) -> Dict[str, str]:
    labels = _metadata(obj).get("labels")
    return dict(labels) if isinstance(labels, dict) else {}


def get_annotation(obj: Object, key: str) -> Optional[Any]:
    annotations = _metadata(obj).get("annotations")
    if not isinstance(annotations, dict):
        return None
    return annotations.get(key)


def object_id(obj: Object) -> ObjectId:
    return ObjectId(
        api_version=get_api_version(obj),
        kind=get_kind(obj),
        namespace=get_namespace(obj),
        name=get_name(obj),
    )


def ensure_metadata(obj: Object) -> Dict[str, Any]:
    """Return the object's metadata map, replacing a missing or null one."""
    metadata = obj.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}
        obj["metadata"] = metadata
    return metadata
