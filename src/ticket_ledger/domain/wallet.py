"""Domain models for wallet sessions."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel

REQUIRED_CAPABILITIES = (
    "get_network_id",
    "get_utxos",
    "get_balance",
    "get_used_addresses",
    "sign_tx",
    "submit_tx",
)


class SessionState(str, Enum):
    """Wallet session state machine states."""

    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    AUTO_RECONNECTING = "AUTO_RECONNECTING"
    CONNECTED = "CONNECTED"


@dataclass(frozen=True)
class WalletSession:
    """Live signing session; ``capability`` is valid only in this process."""

    provider_id: str
    capability: object
    address: str | None
    connected_at: datetime


class SessionHint(BaseModel):
    """Reconnect hint persisted across restarts."""

    provider_id: str | None = None
    auto_reconnect_allowed: bool = False
