"""
Binding registry.

The registry is the single source of truth for which ports are forwarded.
All inserts, updates, removals and listings are serialised by one asyncio
lock. The lock is never held across dialing, relaying or name resolution:
the listen host is resolved to a numeric address before the lock is taken,
so the listening socket opened under the lock is a purely local bind. That
keeps two concurrent first-binds of a port from both succeeding.
"""

import asyncio
import datetime
import ipaddress
import socket
from dataclasses import dataclass, field

from portmap.config import PortmapConfig
from portmap.forward.listener import PortListener
from portmap.forward.relay import RECV_BUF_LEN
from portmap.models.enums import BindStatus
from portmap.models.responses import BindingSummary
from portmap.utils.logger import get_logger

logger = get_logger(__name__)


class BindError(Exception):
    """A listening socket could not be opened for the requested port."""

    def __init__(self, port: int, cause: BaseException):
        super().__init__(f"cannot listen on port {port}: {cause}")
        self.port = port
        self.cause = cause


# =============================================================================
# Port Binding
# =============================================================================


@dataclass
class PortBinding:
    """A single forwarding rule."""

    listen_port: int
    target_address: str
    last_active: datetime.datetime = field(default_factory=datetime.datetime.now)
    listener: PortListener | None = None

    @property
    def running(self) -> bool:
        # Listener state is the only termination signal
        return self.listener is not None and self.listener.is_serving

    def deactivate(self):
        if self.listener is not None:
            self.listener.close()

    def summary(self) -> BindingSummary:
        return BindingSummary(
            port=self.listen_port,
            target=self.target_address,
            last_active=self.last_active,
        )

    def __str__(self) -> str:
        return f"{self.listen_port} => {self.target_address}  {self.last_active}"


# =============================================================================
# Registry
# =============================================================================


class BindingRegistry:
    """
    In-memory mapping from listen port to PortBinding.

    Each binding's listener is started on first bind and closed on unbind.
    """

    def __init__(
        self,
        listen_ip: str = "0.0.0.0",
        show_data: bool = False,
        buffer_size: int = RECV_BUF_LEN,
        dial_timeout: float | None = None,
    ):
        self.listen_ip = listen_ip
        self.show_data = show_data
        self.buffer_size = buffer_size
        self.dial_timeout = dial_timeout
        self._bindings: dict[int, PortBinding] = {}
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, cfg: PortmapConfig) -> "BindingRegistry":
        return cls(
            listen_ip=cfg.LISTEN_IP,
            show_data=cfg.SHOW_DATA,
            buffer_size=cfg.RELAY_BUFFER_SIZE,
            dial_timeout=cfg.get_dial_timeout(),
        )

    async def bind(self, port: int, target: str) -> BindStatus:
        """
        Create or update the binding for a port.

        The target is not checked for reachability; a bad target only shows
        up when a connection arrives and the dial fails.

        Args:
            port: Local port to listen on.
            target: Upstream "host:port".

        Returns:
            BindStatus.CREATED for a new binding, BindStatus.UPDATED when the
            port was already bound (its listener is left untouched).

        Raises:
            ValueError: If the port is out of range.
            BindError: If the listening socket cannot be opened.
        """
        if not 0 < port < 65536:
            raise ValueError(f"Port {port} out of range")

        listen_host = await self._resolve_listen_host(port)

        async with self._lock:
            binding = self._bindings.get(port)
            if binding is not None:
                binding.target_address = target
                binding.last_active = datetime.datetime.now()
                logger.info(f"Rebound {port} to {target}")
                return BindStatus.UPDATED

            binding = PortBinding(listen_port=port, target_address=target)
            listener = PortListener(
                binding,
                host=listen_host,
                show_data=self.show_data,
                buffer_size=self.buffer_size,
                dial_timeout=self.dial_timeout,
            )
            try:
                await listener.start()
            except OSError as e:
                logger.error(f"Error listening on port {port}: {e}")
                raise BindError(port, e) from e

            binding.listener = listener
            self._bindings[port] = binding

        logger.info(f"New binding: {binding}")
        return BindStatus.CREATED

    async def _resolve_listen_host(self, port: int) -> str:
        """
        Turn the listen host into a numeric address.

        Hostnames are looked up here, outside the registry lock, so a slow
        resolver never stalls other bind, unbind or list calls.

        Raises:
            BindError: If the host cannot be resolved.
        """
        if not self.listen_ip:
            return self.listen_ip
        try:
            ipaddress.ip_address(self.listen_ip)
            return self.listen_ip
        except ValueError:
            pass

        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(
                self.listen_ip,
                port,
                type=socket.SOCK_STREAM,
                flags=socket.AI_PASSIVE,
            )
        except OSError as e:
            logger.error(f"Cannot resolve listen host '{self.listen_ip}': {e}")
            raise BindError(port, e) from e
        return infos[0][4][0]

    async def unbind(self, port: int) -> bool:
        """
        Remove the binding for a port and close its listener.

        Connections already being relayed are not interrupted.

        Returns:
            True if the port was bound, False if it was not found.
        """
        async with self._lock:
            binding = self._bindings.pop(port, None)
            if binding is None:
                return False
            binding.deactivate()

        logger.info(f"Unbound port {port} (was => {binding.target_address})")
        return True

    async def list(self) -> list[BindingSummary]:
        """Snapshot of all active bindings, in no particular order."""
        async with self._lock:
            return [binding.summary() for binding in self._bindings.values()]

    async def get(self, port: int) -> BindingSummary | None:
        async with self._lock:
            binding = self._bindings.get(port)
            return binding.summary() if binding else None

    async def close_all(self) -> int:
        """Unbind every port. Returns the number of bindings removed."""
        async with self._lock:
            bindings = list(self._bindings.values())
            self._bindings.clear()
            for binding in bindings:
                binding.deactivate()

        if bindings:
            logger.info(f"Closed {len(bindings)} binding(s)")
        return len(bindings)
