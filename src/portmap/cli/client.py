"""
API client for CLI commands.

Provides functions to drive a running portmap service over its control
plane. Returns structured data instead of printing.
"""

import httpx

from portmap.cli import config as cli_config
from portmap.utils.logger import get_logger

logger = get_logger(__name__)


class APIError(Exception):
    """API request error with status code and detail."""

    def __init__(
        self, message: str, status_code: int | None = None, detail: str | None = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


def _get_mgmt_url() -> str:
    """Get the control-plane URL from config."""
    return f"http://{cli_config.MGMT_HOST}:{cli_config.MGMT_PORT}"


def _handle_http_error(e: httpx.HTTPStatusError, context: str = "request") -> None:
    """Turn a failed control-plane response into an APIError."""
    status = e.response.status_code
    detail = e.response.text.strip()
    # Plain-text failures look like "failed, [reason]"
    if detail.startswith("failed, [") and detail.endswith("]"):
        detail = detail[len("failed, [") : -1]

    logger.error(f"HTTP {status} on {context}: {detail}")
    raise APIError(f"HTTP {status}: {detail}", status_code=status, detail=detail)


def _get(path: str, params: dict | None = None, context: str = "request") -> httpx.Response:
    url = f"{_get_mgmt_url()}{path}"
    try:
        response = httpx.get(url, params=params, timeout=cli_config.REQUEST_TIMEOUT)
        response.raise_for_status()
        return response
    except httpx.HTTPStatusError as e:
        _handle_http_error(e, context)
    except httpx.RequestError as e:
        logger.error(f"Request error: {e}")
        raise APIError(f"Network error: {e}")


# =============================================================================
# Binding Operations
# =============================================================================


def bind(
    port: int, target_addr: str | None = None, local_port: int | None = None
) -> str:
    """Create or update a forward. Returns the service's status line."""
    params: dict = {"port": port}
    if target_addr:
        params["target_addr"] = target_addr
    if local_port is not None:
        params["local_port"] = local_port
    return _get("/bind", params, context=f"bind {port}").text.strip()


def unbind(port: int) -> str:
    """Remove a forward. Raises APIError (404) when the port is not bound."""
    return _get("/unbind", {"port": port}, context=f"unbind {port}").text.strip()


def list_bindings() -> list[dict]:
    """Get all active bindings."""
    response = _get("/api/bindings", context="list bindings")
    return response.json().get("bindings", [])
