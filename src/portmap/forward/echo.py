"""TCP echo server for exercising forwards."""

import asyncio

from portmap.forward.relay import RECV_BUF_LEN, close_writer
from portmap.utils.logger import get_logger

logger = get_logger(__name__)


async def handle_echo(reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
    """Send every chunk back to the peer until it disconnects."""
    peer = writer.get_extra_info("peername")
    logger.debug(f"[Echo {peer}] New connection.")
    try:
        while True:
            data = await reader.read(RECV_BUF_LEN)
            if not data:
                break
            writer.write(data)
            await writer.drain()
    except OSError as e:
        logger.debug(f"[Echo {peer}] Connection error: {e}")
    finally:
        await close_writer(writer)
        logger.debug(f"[Echo {peer}] Closed.")


async def start_echo_server(host: str = "127.0.0.1", port: int = 0) -> asyncio.Server:
    """Start an echo server; port 0 picks a free port."""
    server = await asyncio.start_server(handle_echo, host, port)
    addrs = ", ".join(str(sock.getsockname()) for sock in server.sockets)
    logger.info(f"Echo server started on {addrs}")
    return server


async def serve_echo(host: str, port: int):
    """Run an echo server until cancelled."""
    server = await start_echo_server(host, port)
    async with server:
        await server.serve_forever()
