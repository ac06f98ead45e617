"""Connection state machine for the receipt printer link.

Disconnected -> Scanning -> Connecting -> Connected -> ServiceResolved -> Ready,
with a single rollback edge back to Disconnected from any state.
"""

import asyncio
import logging
import re
from typing import Callable, Iterable, List, Optional

from blereceipt.config import (
    BLUETOOTH_OFF_MESSAGE,
    CONNECT_FAILED_PREFIX,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_TIMING,
    LINK_LAYER_ERROR_CODES,
    MAX_CHUNK_SIZE,
    MAX_CONNECT_ATTEMPTS,
    MTU_OVERHEAD,
    OUT_OF_RANGE_HINT,
    PAIRING_CACHE_HINT,
    PRINTER_SERVICE_UUID,
    REQUESTED_MTU,
    SCAN_TIMEOUT,
    WRITE_CHARACTERISTIC_UUID,
    Timing,
)
from blereceipt.discovery import DeviceDiscovery
from blereceipt.errors import (
    BluetoothUnavailable,
    ConnectExhausted,
    DiscoveryEmpty,
    InvalidTransition,
    PrinterError,
    ServiceOrCharacteristicMissing,
    TransportError,
    TransportWriteFailure,
)
from blereceipt.models import (
    CharacteristicInfo,
    ConnectionState,
    DeviceDescriptor,
    DeviceState,
    NegotiatedParameters,
    ServiceInfo,
)
from blereceipt.transport import Transport

log = logging.getLogger(__name__)


# --- Failure classification ---
def is_link_layer_error(error: Optional[BaseException],
                        codes: Iterable[int] = LINK_LAYER_ERROR_CODES) -> bool:
    """True if the error carries one of the known pairing-cache error codes."""
    if error is None:
        return False
    codes = tuple(codes)
    if getattr(error, "code", None) in codes:
        return True
    message = str(error)
    return any(re.search(rf"\b{code}\b", message) for code in codes)


def classify_connect_failure(error: Optional[BaseException]) -> str:
    """User-facing text for an exhausted connect. Only picks a string."""
    if is_link_layer_error(error):
        return CONNECT_FAILED_PREFIX + PAIRING_CACHE_HINT
    return CONNECT_FAILED_PREFIX + OUT_OF_RANGE_HINT


def chunk_size_for_mtu(mtu: int) -> int:
    """Chunk size for a granted MTU; MTUs no better than the default keep it.

    The 180 byte floor is intentional: on a small MTU the transport sends
    oversized chunks as acknowledged long writes (see BleakTransport.write).
    """
    payload = int(mtu) - MTU_OVERHEAD
    if payload <= DEFAULT_CHUNK_SIZE:
        return DEFAULT_CHUNK_SIZE
    return min(payload, MAX_CHUNK_SIZE)


def _same_uuid(a: str, b: str) -> bool:
    return (a or "").lower() == (b or "").lower()


def select_service(services: List[ServiceInfo]) -> Optional[ServiceInfo]:
    for service in services:
        if _same_uuid(service.uuid, PRINTER_SERVICE_UUID):
            return service
    # Non-conforming printers: fall back to the first service offered
    return services[0] if services else None


def select_characteristic(service: ServiceInfo) -> Optional[CharacteristicInfo]:
    for char in service.characteristics:
        if _same_uuid(char.uuid, WRITE_CHARACTERISTIC_UUID):
            return char
    for char in service.characteristics:
        if char.can_write:
            return char
    return None


class ConnectionManager:
    """Owns the single active printer connection and its negotiated parameters."""

    def __init__(self, transport: Transport, timing: Timing = DEFAULT_TIMING,
                 sleep: Callable = asyncio.sleep, scan_timeout: float = SCAN_TIMEOUT,
                 max_attempts: int = MAX_CONNECT_ATTEMPTS,
                 classifier: Callable[[Optional[BaseException]], str] = classify_connect_failure):
        self._transport = transport
        self._timing = timing
        self._sleep = sleep
        self._classifier = classifier
        self.max_attempts = max(1, max_attempts)
        self.discovery = DeviceDiscovery(transport, scan_timeout=scan_timeout)
        self._state = ConnectionState.DISCONNECTED
        self._device: Optional[DeviceDescriptor] = None
        self._characteristic: Optional[CharacteristicInfo] = None
        self._parameters = NegotiatedParameters()
        self.last_error: Optional[PrinterError] = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def device(self) -> Optional[DeviceDescriptor]:
        return self._device

    @property
    def characteristic(self) -> Optional[CharacteristicInfo]:
        return self._characteristic

    @property
    def parameters(self) -> NegotiatedParameters:
        return self._parameters

    @property
    def is_ready(self) -> bool:
        return self._state is ConnectionState.READY and self._characteristic is not None

    def _transition(self, new_state: ConnectionState) -> None:
        if new_state is not ConnectionState.DISCONNECTED and new_state != self._state + 1:
            raise InvalidTransition(f"{self._state.name} -> {new_state.name}")
        log.debug("State %s -> %s", self._state.name, new_state.name)
        self._state = new_state

    # --- Public operations ---
    async def connect(self, device_name: str) -> bool:
        """Discover, connect and negotiate. Never raises; see ``last_error`` on failure."""
        self.last_error = None
        connected = False
        try:
            await self._connect(device_name)
            connected = True
        except PrinterError as e:
            self.last_error = e
            log.warning("Connect to '%s' failed: %s", device_name, e)
        except Exception as e:
            self.last_error = ConnectExhausted(self._classifier(e))
            log.exception("Unexpected error connecting to '%s'", device_name)
        finally:
            if not connected:
                await self.disconnect()
        return connected

    async def disconnect(self) -> bool:
        """Release the connection. Safe from any state, any number of times."""
        device = self._device
        self._device = None
        self._characteristic = None
        self._parameters = NegotiatedParameters()
        self._transition(ConnectionState.DISCONNECTED)
        if device is None:
            return True
        try:
            await self._transport.disconnect()
        except Exception as e:
            log.warning("Error while disconnecting from %s: %s", device.handle, e)
            return False
        log.info("Disconnected from %s", device.display_name or device.handle)
        return True

    async def write(self, data: bytes) -> None:
        """Single write to the resolved characteristic using the negotiated mode."""
        if not self.is_ready:
            raise TransportWriteFailure("No printer connection")
        await self._transport.write(self._characteristic.uuid, data,
                                    response=not self._parameters.write_without_response)

    # --- Steps ---
    async def _connect(self, device_name: str) -> None:
        if self._device is not None or self._state is not ConnectionState.DISCONNECTED:
            await self.disconnect()

        if not await self._transport.is_available():
            raise BluetoothUnavailable(BLUETOOTH_OFF_MESSAGE)

        self._transition(ConnectionState.SCANNING)
        try:
            device = await self.discovery.find(device_name)
        except TransportError as e:
            raise ConnectExhausted(self._classifier(e)) from e
        if device is None:
            raise DiscoveryEmpty(f"No device named '{device_name}' is paired or in range")
        self._device = device

        if self._transport.device_state(device) is DeviceState.CONNECTED:
            log.info("%s is still connected from an earlier session, resetting link", device_name)
            await self._force_disconnect()

        self._transition(ConnectionState.CONNECTING)
        await self._connect_with_retry(device)
        self._transition(ConnectionState.CONNECTED)

        self._characteristic = await self._resolve_characteristic()
        self._transition(ConnectionState.SERVICE_RESOLVED)

        self._parameters = await self._negotiate()
        self._transition(ConnectionState.READY)
        log.info("Printer '%s' ready (chunk size %d, write without response: %s)",
                 device_name, self._parameters.chunk_size, self._parameters.write_without_response)

    async def _force_disconnect(self) -> None:
        try:
            await self._transport.disconnect()
        except TransportError as e:
            log.debug("Forced disconnect failed: %s", e)
        await self._sleep(self._timing.disconnect_settle)

    async def _connect_with_retry(self, device: DeviceDescriptor) -> None:
        last_error: Optional[TransportError] = None
        for attempt in range(1, self.max_attempts + 1):
            log.info("Connecting to %s (attempt %d/%d)...", device.display_name or device.handle,
                     attempt, self.max_attempts)
            try:
                await self._transport.connect(device)
                await self._sleep(self._timing.connect_settle)
                if self._transport.device_state(device) is DeviceState.CONNECTED:
                    return
                log.warning("Connect call returned but the link is not up")
            except TransportError as e:
                last_error = e
                log.warning("Connect attempt %d failed: %s", attempt, e)
                if attempt < self.max_attempts:
                    if self._transport.device_state(device) is not DeviceState.DISCONNECTED:
                        await self._force_disconnect()
                    await self._sleep(self._timing.retry_delay)
        raise ConnectExhausted(self._classifier(last_error))

    async def _resolve_characteristic(self) -> CharacteristicInfo:
        service = select_service(await self._transport.get_services())
        if service is None:
            raise ServiceOrCharacteristicMissing(CONNECT_FAILED_PREFIX + OUT_OF_RANGE_HINT)
        if not _same_uuid(service.uuid, PRINTER_SERVICE_UUID):
            log.info("Printer service missing, falling back to %s", service.uuid)
        char = select_characteristic(service)
        if char is None:
            raise ServiceOrCharacteristicMissing(CONNECT_FAILED_PREFIX + OUT_OF_RANGE_HINT)
        log.debug("Using characteristic %s %s", char.uuid, list(char.properties))
        return char

    async def _negotiate(self) -> NegotiatedParameters:
        without_response = self._characteristic.can_write_without_response
        chunk_size = DEFAULT_CHUNK_SIZE
        try:
            mtu = await self._transport.request_mtu(REQUESTED_MTU)
            chunk_size = chunk_size_for_mtu(mtu)
            log.debug("MTU %s -> chunk size %d", mtu, chunk_size)
        except Exception as e:
            log.debug("MTU negotiation failed, keeping %d byte chunks: %s", DEFAULT_CHUNK_SIZE, e)
        return NegotiatedParameters(chunk_size=chunk_size, write_without_response=without_response)
