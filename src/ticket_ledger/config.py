"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    blockfrost_project_id: str
    blockfrost_base_url: str = "https://cardano-preprod.blockfrost.io/api/v0"
    cardano_network: str = "preprod"
    pinata_api_key: str
    pinata_api_secret: str
    pinata_base_url: str = "https://api.pinata.cloud"
    wallet_provider_preference: str = "lace,eternl,nami"
    wallet_signing_keys: str | None = None
    session_hint_path: str = ".wallet_session.json"
    ticket_name_prefix: str = "Ticket"
    resale_ceiling_ratio: float = 1.1
    min_output_lovelace: int = 2_000_000
    ledger_timeout_seconds: float = 15
    ledger_retry_attempts: int = 2
    ledger_retry_delay_seconds: float = 0.5
    confirmation_timeout_seconds: float = 180
    confirmation_poll_seconds: float = 5
    registry_retry_attempts: int = 3
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_provider_preference(raw: str | None) -> list[str]:
    """Parse the ordered wallet provider allow-list."""
    if raw is None:
        return []
    preference: list[str] = []
    for chunk in raw.split(","):
        value = chunk.strip().lower()
        if value and value not in preference:
            preference.append(value)
    return preference


def parse_signing_keys(raw: str | None) -> dict[str, str]:
    """Parse `provider=path` pairs for signing-key wallets."""
    if raw is None:
        return {}
    keys: dict[str, str] = {}
    for chunk in raw.split(","):
        provider_id, sep, path = chunk.partition("=")
        if not sep or not provider_id.strip() or not path.strip():
            continue
        keys[provider_id.strip().lower()] = path.strip()
    return keys
