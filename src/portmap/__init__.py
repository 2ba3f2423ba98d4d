"""
portmap: dynamic TCP port forwarding with a runtime control plane.
"""

__version__ = "0.1.0"
