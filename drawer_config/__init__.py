"""
drawer_config -- single public entrypoint for drawer configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads the configuration
    file or the ``DRAWER_CONFIG_PATH`` environment variable.

Architecture position:
    Sits above ``drawer_kernel`` and below ``drawer_services``.  The kernel
    MUST NEVER import from ``drawer_config``; the facade translates the
    config into constructor arguments of kernel services.

Failure modes:
    - ``FileNotFoundError`` -- the configured file does not exist.
    - ``ValueError`` -- invalid values in the file.
    - ``yaml.YAMLError`` -- the file is not valid YAML.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``drawer_config_loaded`` log entry with the config id, version and
    checksum, tying each closing back to the configuration in force.
"""

from __future__ import annotations

import os
from pathlib import Path

from drawer_config.loader import load_drawer_config
from drawer_config.schema import DrawerConfig, PersistenceSettings
from drawer_kernel.logging_config import get_logger

_logger = get_logger("config")

CONFIG_PATH_ENV = "DRAWER_CONFIG_PATH"

_DEFAULT_CONFIG_FILE = Path(__file__).parent / "defaults" / "drawer.yaml"


def resolve_config_path(path: Path | str | None = None) -> Path:
    """Explicit path, else $DRAWER_CONFIG_PATH, else the packaged default."""
    if path is not None:
        return Path(path)
    env_path = os.environ.get(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path)
    return _DEFAULT_CONFIG_FILE


def get_active_config(path: Path | str | None = None) -> DrawerConfig:
    """The ONLY public configuration entrypoint.

    Args:
        path: Override path to the YAML file.

    Returns:
        Frozen DrawerConfig.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If validation fails.
    """
    config_path = resolve_config_path(path)
    config = load_drawer_config(config_path)

    _logger.info(
        "drawer_config_loaded",
        extra={
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "config_path": str(config_path),
            "session_scope": config.session_scope,
            "currency": config.currency,
        },
    )
    return config


__all__ = [
    "CONFIG_PATH_ENV",
    "DrawerConfig",
    "PersistenceSettings",
    "get_active_config",
    "resolve_config_path",
]
