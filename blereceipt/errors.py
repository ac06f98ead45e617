"""Exceptions raised inside the printer subsystem.

None of these escape the public operations: ``connect``,
``print_formatted_text`` and ``disconnect`` turn them into booleans.
"""

from typing import Optional


class PrinterError(Exception):
    """Base exception for printer operations."""


class BluetoothUnavailable(PrinterError):
    """The Bluetooth adapter is off or missing."""


class DiscoveryEmpty(PrinterError):
    """The requested device is neither paired nor advertising."""


class ConnectExhausted(PrinterError):
    """Every connect attempt failed. ``str(exc)`` is the user-facing message."""


class ServiceOrCharacteristicMissing(ConnectExhausted):
    """No usable service or writable characteristic, even after fallback."""


class TransportError(PrinterError):
    """Failure reported by the underlying transport."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class TransportWriteFailure(TransportError):
    """A single write to the printer characteristic failed."""


class NegotiationFailure(PrinterError):
    """MTU or write-mode negotiation failed; defaults are kept."""


class InvalidTransition(PrinterError):
    """The connection state machine was driven out of order."""
