"""Constants and timing defaults for the BLE receipt printer link."""

from dataclasses import dataclass

# --- BLE identifiers ---
PRINTER_SERVICE_UUID = "000018f0-0000-1000-8000-00805f9b34fb"
WRITE_CHARACTERISTIC_UUID = "00002af1-0000-1000-8000-00805f9b34fb"

# --- Transfer parameters ---
DEFAULT_CHUNK_SIZE = 180  # Safe on most printers without MTU negotiation
MAX_CHUNK_SIZE = 480
MTU_OVERHEAD = 32         # 512 MTU -> 480 byte chunks
REQUESTED_MTU = 512
THROTTLE_EVERY_N = 5      # Chunks between throttle pauses

# --- Retry / discovery ---
MAX_CONNECT_ATTEMPTS = 3
SCAN_TIMEOUT = 10.0       # Seconds
CONNECT_TIMEOUT = 20.0    # Seconds, per platform connect call

# Platform error codes that point at a stale pairing cache (GATT 133 on Android stacks)
LINK_LAYER_ERROR_CODES = (133,)

# --- Alert texts ---
BLUETOOTH_OFF_MESSAGE = "Bluetooth is turned off"
CONNECT_FAILED_PREFIX = "Could not connect to printer. "
PAIRING_CACHE_HINT = (
    "Please try:\n"
    "1. Turn the printer off and on\n"
    "2. If that doesn't work, forget and re-pair the device in Bluetooth settings\n"
    "3. Restart your phone if the issue persists"
)
OUT_OF_RANGE_HINT = "Please ensure the printer is turned on and in range, then try again."
UNKNOWN_DEVICE_NAME = "Unknown Device"


@dataclass(frozen=True)
class Timing:
    """Every settle / throttle delay of the link, in seconds."""
    connect_settle: float = 0.3
    disconnect_settle: float = 1.0
    retry_delay: float = 2.5
    init_settle: float = 0.05
    command_settle: float = 0.02
    line_settle: float = 0.01
    cut_settle: float = 0.05
    throttle_delay: float = 0.01

    @classmethod
    def zero(cls) -> "Timing":
        return cls(0, 0, 0, 0, 0, 0, 0, 0)


DEFAULT_TIMING = Timing()
