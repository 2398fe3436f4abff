"""
Configuration Loader (``coop_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into a
``CooperativeConfig``.  Runtime callers go through
``coop_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Unknown keys or invalid values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any

import yaml

from coop_config.schema import CooperativeConfig

_KNOWN_KEYS = frozenset(f.name for f in fields(CooperativeConfig))


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_config(data: dict[str, Any]) -> CooperativeConfig:
    """Parse a CooperativeConfig from a dict; ``entity_name`` is required."""
    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
    values = dict(data)
    values["entity_name"] = data["entity_name"]
    if "initial_cash" in values:
        if isinstance(values["initial_cash"], float):
            raise ValueError("initial_cash must be quoted in YAML to stay exact")
        values["initial_cash"] = str(values["initial_cash"])
    return CooperativeConfig(**values)


def load_config(path: Path | str) -> CooperativeConfig:
    """Load and parse one configuration file."""
    return parse_config(load_yaml_file(Path(path)))


def compute_checksum(config: CooperativeConfig) -> str:
    """Deterministic SHA-256 over the config's canonical JSON form."""
    canonical = json.dumps(asdict(config), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
