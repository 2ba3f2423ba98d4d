"""Unidirectional byte relay between two connected streams."""

import asyncio

from portmap.utils.logger import get_logger

logger = get_logger(__name__)

RECV_BUF_LEN = 1024

# Direction tags used when relayed payloads are logged
TAG_UPSTREAM = "<<"
TAG_DOWNSTREAM = ">>"


async def close_writer(writer: asyncio.StreamWriter):
    """Close a stream once; later calls are no-ops."""
    if writer.is_closing():
        return
    writer.close()
    try:
        await asyncio.wait_for(writer.wait_closed(), timeout=1.0)
    except (OSError, asyncio.TimeoutError):
        pass


async def relay(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    source_writer: asyncio.StreamWriter,
    tag: str = "",
    show_data: bool = False,
    buffer_size: int = RECV_BUF_LEN,
) -> int:
    """
    Pipe data from reader to writer until EOF or error.

    When the loop ends for any reason both the destination (writer) and the
    source connection (source_writer, the writer half of reader's socket)
    are closed, so the paired relay running the other direction unwinds too.

    Args:
        reader: Source stream.
        writer: Destination stream.
        source_writer: Writer half of the source connection.
        tag: Direction tag for payload logging.
        show_data: Log every chunk that passes through.
        buffer_size: Maximum bytes per read.

    Returns:
        Number of bytes relayed.
    """
    total = 0
    try:
        while True:
            try:
                data = await reader.read(buffer_size)
            except OSError as e:
                logger.debug(f"{tag} read failed: {e}")
                break
            if not data:
                break

            if show_data:
                logger.info(f"{tag} [{data.decode(errors='replace')}]")

            try:
                writer.write(data)
                await writer.drain()
            except OSError as e:
                logger.debug(f"{tag} write failed: {e}")
                break
            total += len(data)
    finally:
        await close_writer(source_writer)
        await close_writer(writer)

    return total
