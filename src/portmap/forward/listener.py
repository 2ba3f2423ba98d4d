"""
Per-port listener.

Each active binding owns one PortListener: an asyncio server accepting on
the binding's port. For every inbound connection the listener dials the
binding's current target and starts one relay task per direction. Closing
the listener is the only way its accept loop ends.
"""

import asyncio
from typing import TYPE_CHECKING

from portmap.forward.relay import (
    RECV_BUF_LEN,
    TAG_DOWNSTREAM,
    TAG_UPSTREAM,
    close_writer,
    relay,
)
from portmap.utils.address import parse_target
from portmap.utils.logger import get_logger

if TYPE_CHECKING:
    from portmap.forward.registry import PortBinding

logger = get_logger(__name__)


class PortListener:
    """Accept loop for a single port binding."""

    def __init__(
        self,
        binding: "PortBinding",
        host: str = "0.0.0.0",
        show_data: bool = False,
        buffer_size: int = RECV_BUF_LEN,
        dial_timeout: float | None = None,
    ):
        """
        Initialize the listener.

        Args:
            binding: Binding whose target is read on every accept.
            host: Local address to listen on.
            show_data: Log relayed payloads.
            buffer_size: Relay read size.
            dial_timeout: Upstream connect timeout (None for OS default).
        """
        self.binding = binding
        self.host = host
        self.show_data = show_data
        self.buffer_size = buffer_size
        self.dial_timeout = dial_timeout
        self._server: asyncio.Server | None = None
        self._closed = False
        self._relay_tasks: set[asyncio.Task] = set()

    @property
    def port(self) -> int:
        return self.binding.listen_port

    @property
    def is_serving(self) -> bool:
        return self._server is not None and not self._closed

    async def start(self):
        """
        Open the listening socket and begin accepting.

        Raises:
            OSError: If the port cannot be bound (e.g. already in use).
        """
        self._server = await asyncio.start_server(
            self._handle_connection, self.host, self.port
        )
        addrs = ", ".join(str(sock.getsockname()) for sock in self._server.sockets)
        logger.info(f"[Port {self.port}] Listening on {addrs}")

    def close(self):
        """Stop accepting. In-flight relays are left to finish on their own."""
        if self._closed:
            return
        self._closed = True
        if self._server is not None:
            self._server.close()
        logger.info(f"[Port {self.port}] Listener closed")

    async def _handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ):
        """Dial the current target and relay both directions."""
        client_addr = writer.get_extra_info("peername")
        target = self.binding.target_address
        log_prefix = f"[Port {self.port} {client_addr}]"

        try:
            target_host, target_port = parse_target(target)
            upstream_reader, upstream_writer = await asyncio.wait_for(
                asyncio.open_connection(target_host, target_port),
                timeout=self.dial_timeout,
            )
        except (OSError, ValueError, asyncio.TimeoutError) as e:
            logger.warning(f"{log_prefix} Connect to target {target} failed: {e}")
            await close_writer(writer)
            return

        logger.debug(f"{log_prefix} Connected to {target}, relaying")

        tasks = [
            asyncio.create_task(
                relay(
                    reader,
                    upstream_writer,
                    writer,
                    tag=TAG_UPSTREAM,
                    show_data=self.show_data,
                    buffer_size=self.buffer_size,
                )
            ),
            asyncio.create_task(
                relay(
                    upstream_reader,
                    writer,
                    upstream_writer,
                    tag=TAG_DOWNSTREAM,
                    show_data=self.show_data,
                    buffer_size=self.buffer_size,
                )
            ),
        ]
        for task in tasks:
            self._relay_tasks.add(task)
            task.add_done_callback(self._relay_tasks.discard)

        results = await asyncio.gather(*tasks, return_exceptions=True)
        sent, received = (r if isinstance(r, int) else 0 for r in results)
        logger.debug(
            f"{log_prefix} Connection finished ({sent}b up, {received}b down)"
        )
