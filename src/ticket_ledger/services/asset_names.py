"""Asset name allocation within the ledger's 32-byte limit."""

import string
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from ticket_ledger.domain.assets import MAX_ASSET_NAME_BYTES

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def _fits(name: str, limit: int) -> bool:
    return len(name.encode("utf-8")) <= limit


@dataclass
class AssetNameAllocator:
    """Builds `<prefix>-<seat>-<nonce>` names, shrinking the seat part to fit.

    The nonce comes from a nanosecond clock and is forced to increase
    monotonically, so two allocations in one process never collide even for
    the same seat.
    """

    prefix: str = "Ticket"
    max_bytes: int = MAX_ASSET_NAME_BYTES
    clock: Callable[[], int] = time.time_ns
    _last_tick: int = field(default=0, repr=False)

    def allocate(self, seat_id: str) -> str:
        """Return a hex-encoded, unique asset name for the seat."""
        return self.allocate_name(seat_id).encode("utf-8").hex()

    def allocate_name(self, seat_id: str) -> str:
        """Return the readable asset name for the seat."""
        nonce = self._next_nonce()
        seat = seat_id.strip()
        while seat:
            candidate = f"{self.prefix}-{seat}-{nonce}"
            if _fits(candidate, self.max_bytes):
                return candidate
            seat = seat[:-1].rstrip("-")

        prefix = self.prefix
        while prefix:
            candidate = f"{prefix}-{nonce}"
            if _fits(candidate, self.max_bytes):
                return candidate
            prefix = prefix[:-1]
        return nonce

    def _next_nonce(self) -> str:
        tick = max(self.clock(), self._last_tick + 1)
        self._last_tick = tick
        return _to_base36(tick)
