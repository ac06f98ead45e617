import asyncio

import pytest

from blereceipt.config import PRINTER_SERVICE_UUID, WRITE_CHARACTERISTIC_UUID
from blereceipt.errors import TransportError, TransportWriteFailure
from blereceipt.models import CharacteristicInfo, DeviceDescriptor, DeviceState, ServiceInfo
from blereceipt.transport import Transport

PRINTER_NAME = "BlueTooth Printer"


def printer_service(properties=("write", "write-without-response")):
    return ServiceInfo(
        uuid=PRINTER_SERVICE_UUID,
        characteristics=(
            CharacteristicInfo(uuid="00002af0-0000-1000-8000-00805f9b34fb", properties=("notify",)),
            CharacteristicInfo(uuid=WRITE_CHARACTERISTIC_UUID, properties=tuple(properties)),
        ),
    )


class FakeTransport(Transport):
    """In-memory transport recording every call."""

    def __init__(self, paired=(), advertised=(), services=None, mtu=None, available=True,
                 connect_errors=(), partial_connect=False, fail_on=None):
        self.paired = list(paired)
        self.advertised = list(advertised)
        self.services = [printer_service()] if services is None else services
        self.mtu = mtu
        self.available = available
        self.connect_errors = list(connect_errors)
        self.partial_connect = partial_connect
        self.fail_on = fail_on
        self.calls = []
        self.writes = []
        self.responses = []
        self.connect_attempts = 0
        self.mtu_requests = 0
        self._device = None

    async def is_available(self):
        return self.available

    async def list_paired(self):
        self.calls.append("list_paired")
        return list(self.paired)

    async def scan(self, timeout):
        self.calls.append("scan")
        for device in self.advertised:
            yield device

    async def connect(self, device):
        self.calls.append("connect")
        self.connect_attempts += 1
        self._device = device
        if self.connect_errors:
            error = self.connect_errors.pop(0)
            if error is not None:
                device.connection_state = (DeviceState.CONNECTING if self.partial_connect
                                           else DeviceState.DISCONNECTED)
                raise error
        device.connection_state = DeviceState.CONNECTED

    async def get_services(self):
        self.calls.append("get_services")
        return list(self.services)

    async def request_mtu(self, mtu):
        self.mtu_requests += 1
        if isinstance(self.mtu, Exception):
            raise self.mtu
        if self.mtu is None:
            return await super().request_mtu(mtu)
        return self.mtu

    async def write(self, characteristic_uuid, data, response):
        if self.fail_on is not None and self.fail_on(bytes(data)):
            raise TransportWriteFailure("write failed")
        self.writes.append(bytes(data))
        self.responses.append(response)

    async def disconnect(self):
        self.calls.append("disconnect")
        if self._device is not None:
            self._device.connection_state = DeviceState.DISCONNECTED
            self._device = None


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


class ScanFailureTransport(FakeTransport):
    """Transport whose scan dies with a BLE error before reporting anything."""

    def __init__(self, error, **kwargs):
        super().__init__(**kwargs)
        self.scan_error = error

    async def scan(self, timeout):
        self.calls.append("scan")
        raise self.scan_error
        yield


def printer(name=PRINTER_NAME, handle="AA:BB:CC:DD:EE:FF"):
    return DeviceDescriptor(name=name, handle=handle)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def run():
    return asyncio.run


@pytest.fixture
def link_error():
    return TransportError("GATT error status=133", code=133)
