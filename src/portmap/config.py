"""
Service configuration for portmap.

This module defines the configuration dataclass for the forwarding service.
Values are fixed for the process lifetime: the CLI (or an embedding program)
updates the global instance before the service starts.

Usage:
    from portmap.config import config

    config.MANAGEMENT_PORT = 9000
    config.SHOW_DATA = True
"""

from dataclasses import dataclass

from portmap.models.enums import LogLevel


# =============================================================================
# Configuration Dataclass
# =============================================================================


@dataclass
class PortmapConfig:
    """
    Forwarding service configuration.

    Attributes:
        BIND_IP: IP address the control-plane HTTP server binds to.
        MANAGEMENT_PORT: Control-plane HTTP port.
        LISTEN_IP: IP address forwarded ports listen on.
        SHOW_DATA: Log every relayed payload.
        LOG_LEVEL: Logging verbosity level.
    """

    # -------------------------------------------------------------------------
    # Network Configuration
    # -------------------------------------------------------------------------

    BIND_IP: str = "0.0.0.0"
    MANAGEMENT_PORT: int = 8181
    LISTEN_IP: str = "0.0.0.0"

    # -------------------------------------------------------------------------
    # Relay Configuration
    # -------------------------------------------------------------------------

    SHOW_DATA: bool = False
    RELAY_BUFFER_SIZE: int = 1024

    # Seconds to wait for the upstream connect; 0 leaves it to the OS
    DIAL_TIMEOUT: float = 0

    # -------------------------------------------------------------------------
    # Control Plane Policy
    # -------------------------------------------------------------------------

    # When a bind request omits target_addr, route to the caller's observed
    # IP at local_port. Disable to require an explicit target.
    ALLOW_DERIVED_TARGET: bool = True

    # Optional "<port> <target>" file bound at startup
    BINDINGS_FILE: str = ""

    # -------------------------------------------------------------------------
    # Logging Configuration
    # -------------------------------------------------------------------------

    LOG_LEVEL: LogLevel = LogLevel.INFO
    LOG_FILE: str = ""

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def get_dial_timeout(self) -> float | None:
        """
        Get the upstream connect timeout.

        Returns:
            Timeout in seconds, or None to rely on the OS default.
        """
        return self.DIAL_TIMEOUT if self.DIAL_TIMEOUT > 0 else None

    def get_management_url(self) -> str:
        """
        Get the control-plane URL as seen from the local machine.

        Returns:
            URL string like "http://127.0.0.1:8181"
        """
        host = "127.0.0.1" if self.BIND_IP == "0.0.0.0" else self.BIND_IP
        return f"http://{host}:{self.MANAGEMENT_PORT}"


# =============================================================================
# Global Instance
# =============================================================================

# Global config instance - modify before service startup
config = PortmapConfig()
