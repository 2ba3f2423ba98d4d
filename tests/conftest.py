"""Shared test fixtures for portmap.

Async scenarios are driven with asyncio.run() inside plain test functions,
so listeners, relays and the control plane all share one event loop per
test.
"""

import asyncio
import dataclasses
import socket

import pytest
from loguru import logger

from portmap.config import config


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


async def _exchange(port: int, payload: bytes, timeout: float = 5.0) -> bytes:
    """Connect to 127.0.0.1:port, send payload, return the first reply."""
    reader, writer = await asyncio.open_connection("127.0.0.1", port)
    try:
        writer.write(payload)
        await writer.drain()
        return await asyncio.wait_for(reader.read(1024), timeout=timeout)
    finally:
        writer.close()


@pytest.fixture
def free_port():
    """Callable returning an unused local TCP port."""
    return _free_port


@pytest.fixture
def exchange():
    """Async callable: send bytes to a local port and return the reply."""
    return _exchange


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during the test."""
    messages: list[str] = []
    sink_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(sink_id)


@pytest.fixture
def restore_config():
    """Undo changes made to the global config."""
    saved = dataclasses.replace(config)
    yield config
    for f in dataclasses.fields(config):
        setattr(config, f.name, getattr(saved, f.name))
