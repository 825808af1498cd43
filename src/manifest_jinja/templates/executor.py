"""Rendering of compiled template sets into manifest objects."""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from jinja2 import Template, UndefinedError
from jinja2.exceptions import SecurityError

from ..errors import DecodeError, TemplateExecutionError
from .decoder import Decoder, YamlDecoder
from .loader import CompiledTemplates

logger = logging.getLogger(__name__)


def render_template_text(
    template: Template, name: str, values: Mapping[str, Any], path: str
) -> str:
    """Render a single compiled template to text.

    Raises:
        TemplateExecutionError: If rendering fails for any reason
    """
    try:
        return template.render(values)
    except UndefinedError as e:
        raise TemplateExecutionError(
            f"failed to execute template (path: {path}, template: {name}): "
            f"undefined value: {e.message}",
            path=path,
            template=name,
        ) from e
    except SecurityError as e:
        raise TemplateExecutionError(
            f"failed to execute template (path: {path}, template: {name}): "
            f"unsafe operation: {e}",
            path=path,
            template=name,
        ) from e
    except Exception as e:
        raise TemplateExecutionError(
            f"failed to execute template (path: {path}, template: {name}): {e}",
            path=path,
            template=name,
        ) from e


def render_by_template(
    compiled: CompiledTemplates,
    values: Mapping[str, Any],
    path: str,
    decoder: Optional[Decoder] = None,
) -> List[Tuple[str, List[Dict[str, Any]]]]:
    """Render every directly executable template and decode the output.

    Args:
        compiled: Compiled templates of one source
        values: Merged values to render against
        path: The source's glob path, used in error messages
        decoder: Decoder for rendered text (defaults to YamlDecoder)

    Returns:
        (template name, decoded objects) pairs in sorted template name order

    Raises:
        TemplateExecutionError: If a template fails to render
        DecodeError: If rendered text is not valid
    """
    decoder = decoder or YamlDecoder()
    results: List[Tuple[str, List[Dict[str, Any]]]] = []

    for name, template in compiled.templates:
        text = render_template_text(template, name, values, path)

        try:
            decoded = decoder.decode(text)
        except Exception as e:
            raise DecodeError(
                f"failed to decode rendered template "
                f"(path: {path}, template: {name}): {e}",
                path=path,
                template=name,
            ) from e

        logger.debug(f"Rendered {len(decoded)} object(s) from {name} (path: {path})")
        results.append((name, decoded))

    return results


def render_templates(
    compiled: CompiledTemplates,
    values: Mapping[str, Any],
    path: str,
    decoder: Optional[Decoder] = None,
) -> List[Dict[str, Any]]:
    """Render a compiled template set into a flat list of objects.

    Objects are grouped by template, in document order within each template.
    """
    return [
        obj
        for _, objects in render_by_template(compiled, values, path, decoder)
        for obj in objects
    ]
