"""Chunked, throttled writes over the printer characteristic."""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Iterator

from blereceipt.config import THROTTLE_EVERY_N

log = logging.getLogger(__name__)


def iter_chunks(buffer: bytes, chunk_size: int) -> Iterator[bytes]:
    """Consecutive slices of at most ``chunk_size`` bytes, in order."""
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    for offset in range(0, len(buffer), chunk_size):
        yield bytes(buffer[offset:offset + chunk_size])


class ChunkedWriter:
    """Writes a buffer as sequential chunks through ``write``.

    Each chunk write is awaited before the next is issued; many printer
    firmwares drop BLE writes that arrive out of order. A pause of
    ``delay`` seconds follows every ``throttle_every``-th chunk while more
    chunks remain, so the printer's input buffer is not overrun.
    """

    def __init__(self, write: Callable[[bytes], Awaitable[None]], sleep: Callable = asyncio.sleep):
        self._write = write
        self._sleep = sleep
        self._lock = asyncio.Lock()

    async def write(self, buffer: bytes, chunk_size: int,
                    throttle_every: int = THROTTLE_EVERY_N, delay: float = 0.01) -> bool:
        chunks = list(iter_chunks(buffer, chunk_size))
        total = len(chunks)
        async with self._lock:
            start = time.monotonic()
            for index, chunk in enumerate(chunks, start=1):
                try:
                    await self._write(chunk)
                except Exception as e:
                    log.warning("Write of chunk %d/%d failed: %s", index, total, e)
                    return False
                if throttle_every > 0 and index % throttle_every == 0 and index < total:
                    await self._sleep(delay)
            elapsed = time.monotonic() - start
            if total and elapsed > 0:
                log.debug("Sent %d bytes in %d chunk(s), %.1f KB/s",
                          len(buffer), total, len(buffer) / 1024.0 / elapsed)
        return True
