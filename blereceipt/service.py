"""Printer service used by the rest of the application.

Callers hand over already formatted lines and get a boolean back.
Connection failures are also reported once through the injected
``Notifier``; nothing here touches a UI directly.
"""

import asyncio
import logging
import sys
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from blereceipt.config import DEFAULT_TIMING, SCAN_TIMEOUT, Timing
from blereceipt.connection import ConnectionManager
from blereceipt.errors import BluetoothUnavailable, ConnectExhausted
from blereceipt.session import PrintSession
from blereceipt.transport import Transport

log = logging.getLogger(__name__)


class Notifier(ABC):
    """Alert surface owned by the caller."""

    @abstractmethod
    async def alert(self, title: str, message: str) -> None:
        ...


class ConsoleNotifier(Notifier):
    def __init__(self, stream=None):
        self.stream = stream or sys.stderr

    async def alert(self, title: str, message: str) -> None:
        print(f"{title}: {message}", file=self.stream, flush=True)


class BluetoothPrinterService:
    def __init__(self, transport: Transport, notifier: Optional[Notifier] = None,
                 timing: Timing = DEFAULT_TIMING, sleep: Callable = asyncio.sleep,
                 scan_timeout: float = SCAN_TIMEOUT):
        self.connection = ConnectionManager(transport, timing=timing, sleep=sleep,
                                            scan_timeout=scan_timeout)
        self.session = PrintSession(self.connection, timing=timing, sleep=sleep)
        self._notifier = notifier

    async def get_paired_devices(self) -> List[str]:
        return await self.connection.discovery.paired_names()

    async def scan_devices(self) -> List[str]:
        try:
            devices = await self.connection.discovery.scan()
        except Exception as e:
            log.warning("Scan failed: %s", e)
            return []
        return [d.name for d in devices if d.name]

    async def connect(self, device_name: str) -> bool:
        if await self.connection.connect(device_name):
            return True
        error = self.connection.last_error
        if isinstance(error, BluetoothUnavailable):
            await self._alert("Error", str(error))
        elif isinstance(error, ConnectExhausted):
            await self._alert("Connection Failed", str(error))
        return False

    async def print_formatted_text(self, lines: List[str], font_size: int = 12,
                                   center_align: bool = True, is_body: bool = True) -> bool:
        return await self.session.print_formatted_text(lines, font_size, center_align, is_body)

    async def disconnect(self) -> bool:
        return await self.connection.disconnect()

    async def _alert(self, title: str, message: str) -> None:
        if self._notifier is None:
            return
        try:
            await self._notifier.alert(title, message)
        except Exception as e:
            log.warning("Could not deliver alert '%s': %s", title, e)
