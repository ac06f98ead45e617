"""Receipt printing over Bluetooth LE with ESC/POS."""

from blereceipt.connection import ConnectionManager
from blereceipt.models import ConnectionState, DeviceDescriptor, NegotiatedParameters, PrintJob
from blereceipt.service import BluetoothPrinterService, ConsoleNotifier, Notifier
from blereceipt.session import PrintSession
from blereceipt.transport import BleakTransport, Transport
from blereceipt.writer import ChunkedWriter

__version__ = "0.1.0"

__all__ = [
    "BleakTransport",
    "BluetoothPrinterService",
    "ChunkedWriter",
    "ConnectionManager",
    "ConnectionState",
    "ConsoleNotifier",
    "DeviceDescriptor",
    "NegotiatedParameters",
    "Notifier",
    "PrintJob",
    "PrintSession",
    "Transport",
]
