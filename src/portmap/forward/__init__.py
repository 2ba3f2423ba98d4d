"""
Data plane: per-port listeners, byte relays and the binding registry.
"""

from portmap.forward.listener import PortListener
from portmap.forward.registry import BindError, BindingRegistry, PortBinding
from portmap.forward.relay import relay

__all__ = [
    "BindError",
    "BindingRegistry",
    "PortBinding",
    "PortListener",
    "relay",
]
