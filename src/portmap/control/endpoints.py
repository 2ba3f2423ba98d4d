"""
Control-Plane Endpoints.

Bind, unbind and list port forwards at runtime. Responses are plain text
status lines so the service can be driven with curl:

    curl "http://127.0.0.1:8181/bind?target_addr=172.22.0.226:7070&port=7071"
    curl "http://127.0.0.1:8181/unbind?port=7071"
    curl "http://127.0.0.1:8181/list"
"""

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse

from portmap.config import PortmapConfig
from portmap.forward.registry import BindError, BindingRegistry
from portmap.models.responses import BindingList
from portmap.utils.address import format_target, parse_target
from portmap.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


def get_registry(request: Request) -> BindingRegistry:
    return request.app.state.registry


def get_config(request: Request) -> PortmapConfig:
    return request.app.state.config


def _failed(reason: str, status_code: int) -> PlainTextResponse:
    return PlainTextResponse(f"failed, [{reason}]\n", status_code=status_code)


def _resolve_target(
    request: Request,
    cfg: PortmapConfig,
    target_addr: str | None,
    local_port: str | None,
) -> str:
    """
    Work out the upstream address for a bind request.

    An explicit target_addr wins. Otherwise the caller's observed IP is
    combined with local_port, if that policy is enabled.

    Raises:
        ValueError: With a client-facing reason.
    """
    if target_addr:
        parse_target(target_addr)
        return target_addr

    if not cfg.ALLOW_DERIVED_TARGET:
        raise ValueError("target_addr required")
    if not local_port:
        raise ValueError("target_addr or local_port required")
    if request.client is None:
        raise ValueError("caller address unknown")

    target = format_target(request.client.host, local_port)
    parse_target(target)
    return target


# =============================================================================
# Binding Operations
# =============================================================================


@router.get("/bind", response_class=PlainTextResponse)
async def bind_port(
    request: Request,
    port: int = Query(..., ge=1, le=65535, description="Local port to listen on"),
    target_addr: str | None = Query(None, description="Upstream host:port"),
    local_port: str | None = Query(
        None, description="Upstream port on the caller's host"
    ),
    registry: BindingRegistry = Depends(get_registry),
    cfg: PortmapConfig = Depends(get_config),
):
    """
    Create or update the forward for a port.

    Rebinding a bound port replaces its target for new connections only.
    """
    try:
        target = _resolve_target(request, cfg, target_addr, local_port)
    except ValueError as e:
        logger.warning(f"Rejected bind for port {port}: {e}")
        return _failed(str(e), 400)

    try:
        status = await registry.bind(port, target)
    except BindError as e:
        return _failed(str(e), 409)

    logger.debug(f"bind {port} to {target}: {status.value}")
    return "ok\n"


@router.get("/unbind", response_class=PlainTextResponse)
async def unbind_port(
    port: int = Query(..., description="Local port to release"),
    registry: BindingRegistry = Depends(get_registry),
):
    """Remove the forward for a port and close its listener."""
    if await registry.unbind(port):
        return "ok\n"
    return _failed("not found", 404)


@router.get("/list", response_class=PlainTextResponse)
async def list_bindings(registry: BindingRegistry = Depends(get_registry)):
    """One line per active binding."""
    bindings = await registry.list()
    return "".join(f"{b.to_line()}\n" for b in bindings)


@router.get("/api/bindings", response_model=BindingList)
async def list_bindings_json(registry: BindingRegistry = Depends(get_registry)):
    """Active bindings as JSON."""
    bindings = await registry.list()
    return BindingList(bindings=bindings, count=len(bindings))
