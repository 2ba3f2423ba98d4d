"""
CLI-side settings: where the control plane is reached and how output looks.

Populated from the global options of the portmap command.
"""

import os

from portmap.utils.logger import get_logger

logger = get_logger(__name__)


def env_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back on bad values."""
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring {name}={value!r}: not an integer, using {default}")
        return default


MGMT_HOST: str = os.environ.get("PORTMAP_HOST", "127.0.0.1")
MGMT_PORT: int = env_int("PORTMAP_PORT", 8181)
REQUEST_TIMEOUT: float = 10.0
