"""Values functions for template sources."""

import logging
import os
import re
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union

import yaml

from ..context import RenderContext

logger = logging.getLogger(__name__)

ValuesFunc = Callable[[RenderContext], Dict[str, Any]]

# ${VAR}, ${VAR:-default}, ${VAR:default}, ${VAR:?message}
_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?:(:\?|:-|:)([^}]*))?\}")


class EnvironmentSubstitutionError(Exception):
    """Exception raised when environment variable substitution fails."""

    pass


def static_values(values: Mapping[str, Any]) -> ValuesFunc:
    """Return a values function that always returns the given values.

    The mapping is returned as-is on every call; the renderer never
    mutates source values, so sharing it across calls is safe.
    """
    stored = dict(values)

    def _values(_ctx: RenderContext) -> Dict[str, Any]:
        return stored

    return _values


def file_values(
    file_path: Union[str, Path],
    env_substitution: bool = True,
    environ: Optional[Mapping[str, str]] = None,
) -> ValuesFunc:
    """Return a values function that reads a YAML values file on every call.

    Args:
        file_path: Path to a YAML file with a mapping at the root
        env_substitution: Whether to substitute ${VAR} references in strings
        environ: Environment to substitute from (defaults to os.environ)

    Returns:
        Values function suitable for ``Source.values``
    """
    path = Path(file_path)

    def _values(ctx: RenderContext) -> Dict[str, Any]:
        ctx.raise_if_done()
        return load_values_file(
            path, env_substitution=env_substitution, environ=environ
        )

    return _values


def load_values_file(
    file_path: Union[str, Path],
    env_substitution: bool = True,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Load a YAML values file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If the YAML is invalid
        ValueError: If the root of the document is not a mapping
        EnvironmentSubstitutionError: If a required variable is not set
    """
    path = Path(file_path)

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Values file {path} must contain a mapping at the root level, "
            f"got {type(data).__name__}"
        )

    logger.debug(f"Loaded {len(data)} top-level values from {path}")

    if env_substitution:
        data = substitute_environment_variables(data, environ=environ)

    return data


def substitute_environment_variables(
    value: Any, environ: Optional[Mapping[str, str]] = None
) -> Any:
    """Substitute environment variable references inside string leaves.

    Supported forms:
    - ${VAR} - Required variable, raises if not set
    - ${VAR:-default} / ${VAR:default} - Falls back to default
    - ${VAR:?message} - Required, raises with the given message

    Args:
        value: Value tree to process
        environ: Environment mapping (defaults to os.environ)

    Returns:
        New value tree with references substituted
    """
    env = os.environ if environ is None else environ

    if isinstance(value, str):
        return _substitute_in_string(value, env)
    elif isinstance(value, dict):
        return {k: substitute_environment_variables(v, env) for k, v in value.items()}
    elif isinstance(value, list):
        return [substitute_environment_variables(item, env) for item in value]
    return value


def _substitute_in_string(text: str, env: Mapping[str, str]) -> str:
    if "${" not in text:
        return text

    def replace_var(match: "re.Match[str]") -> str:
        var_name, modifier, argument = match.group(1), match.group(2), match.group(3)

        env_value = env.get(var_name)
        if env_value is not None:
            return env_value

        if modifier is None:
            raise EnvironmentSubstitutionError(
                f"Required environment variable '{var_name}' is not set"
            )
        if modifier == ":?":
            raise EnvironmentSubstitutionError(
                argument or f"Environment variable '{var_name}' is required"
            )
        return argument

    return _ENV_PATTERN.sub(replace_var, text)
