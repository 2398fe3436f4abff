"""
coop_config -- single public entrypoint for deployment configuration.

Responsibility:
    Provides the way to obtain configuration at runtime through
    ``get_active_config()``.  Other components receive the resulting
    ``CooperativeConfig`` (or settings derived from it) and never read
    configuration files themselves.

Architecture position:
    Configuration -- sits above ``coop_kernel`` and below ``coop_modules``.
    The kernel MUST NEVER import from ``coop_config``.

Failure modes:
    - ``FileNotFoundError`` -- the requested file does not exist.
    - ``ValueError`` -- unknown keys or invalid values.
"""

from __future__ import annotations

import logging
from pathlib import Path

from coop_config.loader import compute_checksum, load_config, parse_config
from coop_config.schema import CooperativeConfig

_logger = logging.getLogger("coop_kernel.config")

# Bundled configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"
_DEFAULT_CONFIG_FILE = _DEFAULT_CONFIG_DIR / "default.yaml"


def get_active_config(path: Path | str | None = None) -> CooperativeConfig:
    """
    Load the active configuration.

    Args:
        path: YAML file to load.  Defaults to the bundled
            ``coop_config/sets/default.yaml``.

    Returns:
        A validated, frozen CooperativeConfig.  A ``COOP_CONFIG_TRACE``
        log entry records which configuration was loaded.
    """
    config_path = Path(path) if path is not None else _DEFAULT_CONFIG_FILE
    config = load_config(config_path)

    _logger.info(
        "COOP_CONFIG_TRACE",
        extra={
            "trace_type": "COOP_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": compute_checksum(config),
            "entity_name": config.entity_name,
            "currency": config.currency,
        },
    )
    return config


__all__ = [
    "CooperativeConfig",
    "compute_checksum",
    "get_active_config",
    "load_config",
    "parse_config",
]
