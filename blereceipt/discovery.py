"""Find a printer by name: paired devices first, then a time-boxed scan."""

import asyncio
import logging
from contextlib import aclosing
from typing import List, Optional

from blereceipt.config import SCAN_TIMEOUT, UNKNOWN_DEVICE_NAME
from blereceipt.models import DeviceDescriptor
from blereceipt.transport import Transport

log = logging.getLogger(__name__)


class DeviceDiscovery:
    def __init__(self, transport: Transport, scan_timeout: float = SCAN_TIMEOUT):
        self._transport = transport
        self.scan_timeout = scan_timeout

    async def list_paired(self) -> List[DeviceDescriptor]:
        return list(await self._transport.list_paired())

    async def paired_names(self) -> List[str]:
        """Human names of the paired devices. Transport errors give an empty list."""
        try:
            devices = await self.list_paired()
        except Exception as e:
            log.warning("Could not list paired devices: %s", e)
            return []
        return [d.name or UNKNOWN_DEVICE_NAME for d in devices]

    async def find(self, name: str) -> Optional[DeviceDescriptor]:
        """Return the device called ``name``, or None if it is neither paired nor seen in time."""
        for device in await self.list_paired():
            if device.name == name:
                log.info("Found paired device '%s' (%s)", name, device.handle)
                return device

        log.info("'%s' is not paired, scanning for %.1fs...", name, self.scan_timeout)
        try:
            device = await asyncio.wait_for(self._scan_for(name), timeout=self.scan_timeout)
        except asyncio.TimeoutError:
            device = None
        if device is None:
            log.info("No device named '%s' found", name)
        else:
            log.info("Found device '%s' (%s)", name, device.handle)
        return device

    async def _scan_for(self, name: str) -> Optional[DeviceDescriptor]:
        async with aclosing(self._transport.scan(self.scan_timeout)) as devices:
            async for device in devices:
                if device.name == name:
                    return device
        return None

    async def scan(self) -> List[DeviceDescriptor]:
        """Every device seen during one full scan window."""
        seen: List[DeviceDescriptor] = []

        async def _collect():
            async with aclosing(self._transport.scan(self.scan_timeout)) as devices:
                async for device in devices:
                    if device not in seen:
                        seen.append(device)

        try:
            await asyncio.wait_for(_collect(), timeout=self.scan_timeout)
        except asyncio.TimeoutError:
            pass
        return seen
