"""Custom Jinja2 filters for manifest templates."""

import base64
import json
from typing import Any, NoReturn, Optional

import yaml
from jinja2 import Undefined


class TemplateFailure(Exception):
    """Raised by templates through ``fail`` or ``required``."""

    pass


def to_yaml(value: Any, indent: int = 2, sort_keys: bool = False) -> str:
    """Serialize a value to block-style YAML without a trailing newline.

    Args:
        value: The value to serialize
        indent: Number of spaces per nesting level
        sort_keys: Whether to sort mapping keys

    Returns:
        YAML text
    """
    text = yaml.safe_dump(
        value,
        indent=indent,
        sort_keys=sort_keys,
        default_flow_style=False,
        allow_unicode=True,
    )
    # safe_dump terminates scalars with a document end marker
    if text.endswith("\n...\n"):
        text = text[: -len("\n...\n")]
    return text.rstrip("\n")


def to_json(value: Any, indent: Optional[int] = None, sort_keys: bool = False) -> str:
    """Serialize a value to JSON."""
    return json.dumps(value, indent=indent, sort_keys=sort_keys)


def b64encode(value: Any) -> str:
    """Base64-encode a string (UTF-8) or bytes value."""
    data = value if isinstance(value, bytes) else str(value).encode("utf-8")
    return base64.b64encode(data).decode("ascii")


def b64decode(value: str) -> str:
    """Decode a base64 string into UTF-8 text."""
    return base64.b64decode(value).decode("utf-8")


def quote(value: Any) -> str:
    """Wrap a value in double quotes, escaping as JSON does.

    The result is always a valid YAML double-quoted scalar.
    """
    return json.dumps(str(value))


def indent_block(text: str, width: int = 2, first: bool = False) -> str:
    """Indent every non-empty line of a text block.

    Args:
        text: Text to indent
        width: Number of spaces to prepend
        first: Whether to indent the first line too

    Returns:
        Indented text
    """
    prefix = " " * width
    lines = str(text).splitlines()
    indented = [
        (prefix + line) if line.strip() and (first or i > 0) else line
        for i, line in enumerate(lines)
    ]
    return "\n".join(indented)


def required(value: Any, message: str = "required value is missing") -> Any:
    """Return the value, failing the render if it is undefined, None or empty."""
    if isinstance(value, Undefined) or value is None or value == "":
        raise TemplateFailure(message)
    return value


def fail(message: str) -> NoReturn:
    """Abort rendering with the given message."""
    raise TemplateFailure(message)


def register_custom_filters(env: Any) -> None:
    """Register all custom filters and globals with a Jinja2 environment.

    Args:
        env: Jinja2 Environment instance
    """
    env.filters["to_yaml"] = to_yaml
    env.filters["to_json"] = to_json
    env.filters["b64encode"] = b64encode
    env.filters["b64decode"] = b64decode
    env.filters["quote"] = quote
    env.filters["indent_block"] = indent_block
    env.filters["required"] = required

    # Aliases for convenience
    env.filters["toyaml"] = to_yaml
    env.filters["b64enc"] = b64encode
    env.filters["b64dec"] = b64decode

    env.globals["fail"] = fail
