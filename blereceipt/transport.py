"""Transport seam between the printer logic and the BLE stack.

``Transport`` is the only thing the connection, discovery and printing
code talks to. ``BleakTransport`` implements it with bleak; tests use an
in-memory fake.
"""

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from typing import AsyncIterator, Dict, List, Optional

from bleak import BleakClient, BleakScanner
from bleak.backends.device import BLEDevice
from bleak.exc import BleakBluetoothNotAvailableError, BleakError

from blereceipt.config import CONNECT_TIMEOUT
from blereceipt.errors import (
    BluetoothUnavailable,
    NegotiationFailure,
    TransportError,
    TransportWriteFailure,
)
from blereceipt.models import CharacteristicInfo, DeviceDescriptor, DeviceState, ServiceInfo

log = logging.getLogger(__name__)

# Errors bleak (and the OS below it) raise for link-level trouble
BLE_ERRORS = (BleakError, asyncio.TimeoutError, OSError)

_ERROR_CODE_RE = re.compile(r"(?:status|code|error)\D{0,3}(\d+)", re.IGNORECASE)


def error_code(exc: BaseException) -> Optional[int]:
    """Best-effort numeric platform code carried by an exception."""
    code = getattr(exc, "code", None)
    if isinstance(code, int):
        return code
    match = _ERROR_CODE_RE.search(str(exc))
    return int(match.group(1)) if match else None


def wrap_error(exc: BaseException, cls=TransportError) -> TransportError:
    return cls(str(exc) or type(exc).__name__, code=error_code(exc))


class Transport(ABC):
    """Narrow BLE capability interface, one active device at a time."""

    async def is_available(self) -> bool:
        return True

    @abstractmethod
    async def list_paired(self) -> List[DeviceDescriptor]:
        ...

    @abstractmethod
    def scan(self, timeout: float) -> AsyncIterator[DeviceDescriptor]:
        """Async generator yielding each device seen, then completing after ``timeout`` seconds."""

    @abstractmethod
    async def connect(self, device: DeviceDescriptor) -> None:
        ...

    def device_state(self, device: DeviceDescriptor) -> DeviceState:
        return device.connection_state

    @abstractmethod
    async def get_services(self) -> List[ServiceInfo]:
        ...

    async def request_mtu(self, mtu: int) -> int:
        """Ask for a larger MTU and return the one in effect."""
        raise NegotiationFailure("MTU negotiation not supported on this platform")

    @abstractmethod
    async def write(self, characteristic_uuid: str, data: bytes, response: bool) -> None:
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        ...


class BleakTransport(Transport):
    """Transport on top of bleak.

    bleak has no portable query for bonded devices, so the "paired" set is
    the devices registered up front (address -> name) plus everything seen
    by earlier scans in this process.
    """

    def __init__(self, known_devices: Optional[Dict[str, Optional[str]]] = None,
                 connect_timeout: float = CONNECT_TIMEOUT):
        self.connect_timeout = connect_timeout
        self._known: Dict[str, DeviceDescriptor] = {}
        self._ble_devices: Dict[str, BLEDevice] = {}
        self._client: Optional[BleakClient] = None
        self._device: Optional[DeviceDescriptor] = None
        for address, name in (known_devices or {}).items():
            self._known[address] = DeviceDescriptor(name=name, handle=address)

    def _remember(self, dev: BLEDevice, local_name: Optional[str] = None) -> DeviceDescriptor:
        self._ble_devices[dev.address] = dev
        name = local_name or getattr(dev, "name", None)
        descriptor = self._known.get(dev.address)
        if descriptor is None:
            descriptor = DeviceDescriptor(name=name, handle=dev.address)
            self._known[dev.address] = descriptor
        elif name and not descriptor.name:
            descriptor.name = name
        return descriptor

    # --- Discovery ---
    async def is_available(self) -> bool:
        try:
            async with BleakScanner():
                pass
        except BleakBluetoothNotAvailableError as e:
            log.warning("Bluetooth adapter not available: %s", e)
            return False
        return True

    async def list_paired(self) -> List[DeviceDescriptor]:
        return list(self._known.values())

    async def scan(self, timeout: float) -> AsyncIterator[DeviceDescriptor]:
        found: asyncio.Queue = asyncio.Queue()
        reported: Dict[str, Optional[str]] = {}

        def _on_detect(dev: BLEDevice, adv_data) -> None:
            # The name often only arrives in a later scan response
            descriptor = self._remember(dev, getattr(adv_data, "local_name", None))
            if dev.address in reported and (reported[dev.address] or not descriptor.name):
                return
            reported[dev.address] = descriptor.name
            found.put_nowait(descriptor)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        try:
            async with BleakScanner(detection_callback=_on_detect):
                while True:
                    remaining = deadline - loop.time()
                    if remaining <= 0:
                        return
                    try:
                        device = await asyncio.wait_for(found.get(), timeout=remaining)
                    except asyncio.TimeoutError:
                        return
                    yield device
        except BleakBluetoothNotAvailableError as e:
            raise BluetoothUnavailable(str(e)) from e
        except BleakError as e:
            raise wrap_error(e) from e

    # --- Connection ---
    def _on_disconnected(self, client: BleakClient) -> None:
        if self._device is not None:
            log.info("Link to %s dropped", self._device.handle)
            self._device.connection_state = DeviceState.DISCONNECTED

    async def _drop_client(self) -> None:
        client, self._client = self._client, None
        if client is None:
            return
        try:
            await client.disconnect()
        except BLE_ERRORS as e:
            log.debug("Discarding previous client failed: %s", e)

    async def connect(self, device: DeviceDescriptor) -> None:
        await self._drop_client()
        target = self._ble_devices.get(device.handle, device.handle)
        self._device = device
        self._client = BleakClient(target, disconnected_callback=self._on_disconnected,
                                   timeout=self.connect_timeout)
        device.connection_state = DeviceState.CONNECTING
        try:
            await self._client.connect()
        except BLE_ERRORS as e:
            device.connection_state = DeviceState.DISCONNECTED
            raise wrap_error(e) from e
        device.connection_state = (DeviceState.CONNECTED if self._client.is_connected
                                   else DeviceState.DISCONNECTED)

    def device_state(self, device: DeviceDescriptor) -> DeviceState:
        if device is self._device and self._client is not None and not self._client.is_connected:
            if device.connection_state is DeviceState.CONNECTED:
                device.connection_state = DeviceState.DISCONNECTED
        return device.connection_state

    def _require_client(self) -> BleakClient:
        if self._client is None or not self._client.is_connected:
            raise TransportError("Not connected")
        return self._client

    async def get_services(self) -> List[ServiceInfo]:
        client = self._require_client()
        return [
            ServiceInfo(
                uuid=service.uuid,
                characteristics=tuple(
                    CharacteristicInfo(uuid=char.uuid, properties=tuple(char.properties))
                    for char in service.characteristics
                ),
            )
            for service in client.services
        ]

    async def request_mtu(self, mtu: int) -> int:
        # The platform negotiates the MTU during connect; bleak only reports it.
        client = self._require_client()
        return client.mtu_size

    async def write(self, characteristic_uuid: str, data: bytes, response: bool) -> None:
        try:
            client = self._require_client()
            # Unacknowledged writes cannot exceed one ATT payload; long writes need a response
            if not response and len(data) > client.mtu_size - 3:
                response = True
            await client.write_gatt_char(characteristic_uuid, data, response=response)
        except TransportError as e:
            raise TransportWriteFailure(str(e), code=e.code) from e
        except BLE_ERRORS as e:
            raise wrap_error(e, TransportWriteFailure) from e

    async def disconnect(self) -> None:
        client, device = self._client, self._device
        self._client = None
        self._device = None
        if device is not None:
            device.connection_state = DeviceState.DISCONNECTED
        if client is None:
            return
        try:
            await client.disconnect()
        except BLE_ERRORS as e:
            raise wrap_error(e) from e
