"""Data records shared by discovery, connection and printing."""

import enum
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from blereceipt.config import DEFAULT_CHUNK_SIZE


class DeviceState(enum.Enum):
    """Link state of a single device as reported by the platform."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ConnectionState(enum.IntEnum):
    """ConnectionManager state machine. Values give the only forward order."""
    DISCONNECTED = 0
    SCANNING = 1
    CONNECTING = 2
    CONNECTED = 3
    SERVICE_RESOLVED = 4
    READY = 5


@dataclass(eq=False)
class DeviceDescriptor:
    """A discovered device. Identity is the platform handle, never the name."""
    name: Optional[str]
    handle: Any
    connection_state: DeviceState = DeviceState.DISCONNECTED

    @property
    def display_name(self) -> str:
        return self.name or ""

    def __eq__(self, other):
        if not isinstance(other, DeviceDescriptor):
            return NotImplemented
        return self.handle == other.handle

    def __hash__(self):
        return hash(self.handle)


@dataclass(frozen=True)
class CharacteristicInfo:
    uuid: str
    properties: Tuple[str, ...] = ()

    @property
    def can_write(self) -> bool:
        return "write" in self.properties or self.can_write_without_response

    @property
    def can_write_without_response(self) -> bool:
        return "write-without-response" in self.properties


@dataclass(frozen=True)
class ServiceInfo:
    uuid: str
    characteristics: Tuple[CharacteristicInfo, ...] = ()


@dataclass(frozen=True)
class NegotiatedParameters:
    """Transfer parameters, computed once per connection."""
    chunk_size: int = DEFAULT_CHUNK_SIZE
    write_without_response: bool = False


@dataclass
class PrintJob:
    lines: List[str] = field(default_factory=list)
    font_size: int = 12
    center_align: bool = True
    is_body: bool = True
