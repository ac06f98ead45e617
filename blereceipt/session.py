"""Print orchestration: formatting commands, text lines, feed and cut."""

import asyncio
import logging
from typing import Callable, Iterable

from blereceipt import commands
from blereceipt.config import DEFAULT_TIMING, THROTTLE_EVERY_N, Timing
from blereceipt.connection import ConnectionManager
from blereceipt.errors import TransportWriteFailure
from blereceipt.models import PrintJob
from blereceipt.writer import ChunkedWriter

log = logging.getLogger(__name__)

FEED_LINES_BEFORE_CUT = 3


class PrintSession:
    """Runs print jobs over a ready connection, one at a time."""

    def __init__(self, connection: ConnectionManager, timing: Timing = DEFAULT_TIMING,
                 sleep: Callable = asyncio.sleep):
        self._connection = connection
        self._timing = timing
        self._sleep = sleep
        self._writer = ChunkedWriter(connection.write, sleep=sleep)
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    async def print_formatted_text(self, lines: Iterable[str], font_size: int = 12,
                                   center_align: bool = True, is_body: bool = True) -> bool:
        """Print ``lines``; with ``is_body`` False the paper is not fed or cut,
        so a following body continues the same receipt."""
        return await self.print_job(PrintJob(list(lines), font_size, center_align, is_body))

    async def print_job(self, job: PrintJob) -> bool:
        if self._busy:
            log.warning("A print job is already in progress, rejecting new job")
            return False
        if not self._connection.is_ready:
            log.warning("Printer is not connected")
            return False
        self._busy = True
        try:
            return await self._run(job)
        except Exception as e:
            log.warning("Print job failed: %s", e)
            return False
        finally:
            self._busy = False

    async def _send(self, data: bytes) -> None:
        if not await self._writer.write(data, self._connection.parameters.chunk_size):
            raise TransportWriteFailure(f"Command {data[:3].hex()} was not delivered")

    async def _run(self, job: PrintJob) -> bool:
        timing = self._timing
        chunk_size = self._connection.parameters.chunk_size

        await self._send(commands.initialize())
        await self._sleep(timing.init_settle)

        await self._send(commands.center_align() if job.center_align else commands.left_align())
        await self._sleep(timing.command_settle)

        await self._send(commands.set_font_size_for_point_size(job.font_size))
        await self._sleep(timing.command_settle)

        for number, line in enumerate(job.lines, start=1):
            if not line:
                continue
            ok = await self._writer.write(commands.text_line(line), chunk_size,
                                          THROTTLE_EVERY_N, timing.throttle_delay)
            if not ok:
                log.warning("Line %d could not be sent, aborting job", number)
                return False
            await self._sleep(timing.line_settle)

        if job.is_body:
            await self._sleep(timing.cut_settle)
            await self._send(commands.feed_lines(FEED_LINES_BEFORE_CUT))
            await self._sleep(timing.cut_settle)
            await self._send(commands.full_cut())
            await self._sleep(timing.cut_settle)
        return True
