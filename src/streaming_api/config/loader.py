"""Client config loading: built-in defaults, a YAML file and explicit overrides.

String values may reference the environment as ``${VAR}`` or
``${VAR:-default}``; they are resolved after each layer is read, before
validation.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from streaming_api.config.defaults import load_defaults, merge_configs
from streaming_api.config.models import ClientConfig

# ${NAME} or ${NAME:-fallback}; "\}" escapes a brace inside the fallback.
_PLACEHOLDER = re.compile(r"\$\{([^}:]+)(?::-((?:[^}\\]|\\.)*))?}")


def resolve_env_vars(data: Any, where: str = "") -> Any:
    """Substitute environment placeholders in every string of *data*.

    ``where`` is the dotted key path used in error messages.
    """
    if isinstance(data, Mapping):
        return {
            key: resolve_env_vars(value, f"{where}.{key}" if where else str(key))
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [resolve_env_vars(item, f"{where}[{i}]") for i, item in enumerate(data)]
    if not isinstance(data, str):
        return data

    def _lookup(match: re.Match[str]) -> str:
        name, fallback = match.group(1), match.group(2)
        if name in os.environ:
            return os.environ[name]
        if fallback is None:
            location = f" (at {where})" if where else ""
            msg = (
                f"Environment variable '{name}' is not set "
                f"and has no default{location}"
            )
            raise ValueError(msg)
        return fallback.replace("\\}", "}")

    return _PLACEHOLDER.sub(_lookup, data)


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Read a YAML (or JSON) mapping from *path* with placeholders resolved."""
    p = Path(path)
    if not p.is_file():
        msg = f"Config file not found: {p}"
        raise FileNotFoundError(msg)
    try:
        data = yaml.safe_load(p.read_text())
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        where = f" at line {mark.line + 1}, column {mark.column + 1}" if mark else ""
        msg = f"Failed to parse YAML in {p}{where}: {exc}"
        raise ValueError(msg) from exc
    if not isinstance(data, dict):
        msg = f"Expected a YAML mapping at top level in {p}, got {type(data).__name__}"
        raise TypeError(msg)
    return resolve_env_vars(data)  # type: ignore[no-any-return]


def load_client_config(
    path: str | Path | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
) -> ClientConfig:
    """Build a :class:`ClientConfig`.

    Layers, lowest precedence first: ``defaults/client.yaml``, the file at
    *path* (if given), then *overrides* (e.g. command-line options).
    """
    layers = [resolve_env_vars(load_defaults("client"))]
    if path is not None:
        layers.append(load_yaml(path))
    merged = merge_configs(*layers, overrides)
    try:
        return ClientConfig.model_validate(merged)
    except ValidationError as exc:
        source = path or "built-in defaults"
        msg = f"Invalid client config ({source}):\n{exc}"
        raise ValueError(msg) from exc
