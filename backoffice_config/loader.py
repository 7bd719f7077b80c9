"""
Configuration Loader (``backoffice_config.loader``).

Responsibility
--------------
Reads a YAML settings file and parses it into an ``EngineConfig``.
Values missing from the file fall back to the packaged defaults.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key or non-mapping document  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from backoffice_config.schema import EngineConfig

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

_KNOWN_KEYS = frozenset(f.name for f in fields(EngineConfig))


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML mapping; an empty file yields an empty dict."""
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")
    return data


def parse_engine_config(data: dict[str, Any]) -> EngineConfig:
    """Build an EngineConfig from a flat mapping of settings."""
    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
    values = dict(data)
    if "default_document_kind" in values:
        values["default_document_kind"] = str(values["default_document_kind"]).lower()
    return EngineConfig(**values)


def load_config(path: Path | None = None) -> EngineConfig:
    """Packaged defaults, overlaid with ``path`` when given."""
    data = load_yaml(DEFAULTS_PATH)
    if path is not None:
        data.update(load_yaml(Path(path)))
    return parse_engine_config(data)


def compute_checksum(config: EngineConfig) -> str:
    """Deterministic SHA-256 of the effective settings."""
    canonical = json.dumps(
        {f.name: getattr(config, f.name) for f in fields(config)},
        sort_keys=True,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
