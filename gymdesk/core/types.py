"""Core types and enums."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


class ConnectionState(Enum):
    """Reachability of the backing store as published by the monitor."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"
    TESTING = "testing"

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class ConnectionTestResult:
    """Outcome of one complete connection test (all retry attempts included)."""

    success: bool
    error: Optional[str] = None
    timestamp: datetime = EPOCH
    response_time_ms: Optional[int] = None

    @property
    def tested(self) -> bool:
        """False for the placeholder result published before any test ran."""
        return self.timestamp > EPOCH

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "error": self.error,
            "timestamp": self.timestamp.isoformat(),
            "response_time_ms": self.response_time_ms,
        }


@dataclass
class StoreResult:
    """Single result shape for every data operation, online or offline."""

    data: Optional[list] = None
    error: Optional[str] = None
    code: Optional[str] = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def first(self) -> Optional[dict]:
        """First returned row, if any."""
        return self.data[0] if self.data else None
