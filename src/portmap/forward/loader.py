"""
Static bindings file.

Startup seeding from a text file with one "<port> <target>" entry per line,
for example:

    # port  target
    7071    172.22.0.226:7070
    8989    172.22.0.23:8989

Bindings created this way behave exactly like ones made through the control
plane; nothing is ever written back to the file.
"""

import os

from portmap.forward.registry import BindError, BindingRegistry
from portmap.utils.address import parse_target
from portmap.utils.logger import get_logger

logger = get_logger(__name__)


def parse_bindings(lines) -> list[tuple[int, str]]:
    """
    Parse "<port> <target>" lines.

    Blank lines and "#" comments are ignored; malformed lines are skipped
    with a warning.
    """
    entries = []
    for lineno, raw in enumerate(lines, start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue

        parts = line.split()
        if len(parts) != 2:
            logger.warning(f"Line {lineno}: expected '<port> <target>', skipping")
            continue

        port_str, target = parts
        try:
            port = int(port_str)
            if not 0 < port < 65536:
                raise ValueError(f"port {port} out of range")
            parse_target(target)
        except ValueError as e:
            logger.warning(f"Line {lineno}: {e}, skipping")
            continue

        entries.append((port, target))
    return entries


def read_bindings_file(path: str) -> list[tuple[int, str]]:
    """Read and parse a bindings file."""
    with open(path, encoding="utf-8") as f:
        return parse_bindings(f)


async def load_bindings_file(registry: BindingRegistry, path: str) -> int:
    """
    Bind every entry of a bindings file.

    A port that cannot be opened is logged and skipped; the remaining
    entries are still bound.

    Returns:
        Number of entries bound.
    """
    if not os.path.isfile(path):
        logger.error(f"Bindings file '{path}' not found")
        return 0

    bound = 0
    for port, target in read_bindings_file(path):
        logger.info(f"{port}--{target}")
        try:
            await registry.bind(port, target)
        except BindError as e:
            logger.error(f"Skipping entry for port {port}: {e}")
            continue
        bound += 1

    logger.info(f"Loaded {bound} binding(s) from {path}")
    return bound
