"""Remote runtime configuration lookup.

The hosting platform publishes operator-managed key/value configuration either
inline through the ``CLOUD_RUNTIME_CONFIG`` variable or, for local emulation,
as a ``.runtimeconfig.json`` file. Both hold nested JSON such as::

    {"google": {"client_id": "...", "client_secret": "..."}}
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog

from src.meet.config import Settings, get_settings
from src.meet.core.errors import ConfigurationError

logger = structlog.get_logger(__name__)


def load_runtime_config(settings: Settings | None = None) -> dict[str, Any]:
    """Return the runtime config as a dict, or {} when none is published.

    Raises:
        ConfigurationError: If the published config is not a JSON object.
    """
    settings = settings or get_settings()

    if settings.CLOUD_RUNTIME_CONFIG:
        raw = settings.CLOUD_RUNTIME_CONFIG
        source = "CLOUD_RUNTIME_CONFIG"
    else:
        path = Path(settings.RUNTIME_CONFIG_PATH)
        if not path.is_file():
            return {}
        raw = path.read_text(encoding="utf-8")
        source = str(path)

    try:
        config = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid runtime config in {source}: {exc.msg}") from exc

    if not isinstance(config, dict):
        raise ConfigurationError(f"Runtime config in {source} must be a JSON object")

    logger.debug("runtime_config_loaded", source=source, sections=sorted(config))
    return config


def get_config_value(config: dict[str, Any], dotted_key: str) -> Any:
    """Look up ``section.key`` in a nested runtime config, None if absent."""
    node: Any = config
    for part in dotted_key.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node
