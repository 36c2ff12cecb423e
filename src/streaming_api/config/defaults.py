"""Built-in client defaults and layered merging."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

DEFAULTS_DIR = Path(__file__).parent / "defaults"


def load_defaults(name: str = "client") -> dict[str, Any]:
    """Read ``defaults/<name>.yaml``.  ``${VAR}`` placeholders are left as-is."""
    path = DEFAULTS_DIR / f"{name}.yaml"
    if not path.is_file():
        msg = f"Defaults file '{name}' not found at {path}"
        raise FileNotFoundError(msg)
    return yaml.safe_load(path.read_text()) or {}


def merge_configs(
    base: Mapping[str, Any], *layers: Mapping[str, Any] | None
) -> dict[str, Any]:
    """Deep-merge each layer over *base*, left to right, without mutating inputs.

    Nested mappings are merged key by key; any other value (``None`` included)
    replaces what was there.  ``None`` layers are skipped.
    """
    merged = dict(base)
    for layer in layers:
        if layer is None:
            continue
        for key, value in layer.items():
            current = merged.get(key)
            if isinstance(current, Mapping) and isinstance(value, Mapping):
                merged[key] = merge_configs(current, value)
            else:
                merged[key] = value
    return merged
