"""Helpers for host:port target addresses."""


def parse_target(target: str) -> tuple[str, int]:
    """
    Split a "host:port" address.

    IPv6 hosts may be bracketed ("[::1]:8080").

    Raises:
        ValueError: If the address has no host, no port, or a port
            outside 1-65535.
    """
    host, sep, port_str = target.strip().rpartition(":")
    if not sep or not host:
        raise ValueError(f"Invalid target address '{target}', expected host:port")

    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]

    try:
        port = int(port_str)
    except ValueError:
        raise ValueError(f"Invalid port in target address '{target}'") from None

    if not 0 < port < 65536:
        raise ValueError(f"Port out of range in target address '{target}'")

    return host, port


def format_target(host: str, port: int | str) -> str:
    """Join host and port, bracketing IPv6 hosts."""
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    return f"{host}:{port}"
