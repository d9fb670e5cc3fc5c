import os

from pathlib import Path
from typing import Any, List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Pick up the RPC endpoint from the frontend-style variable when unset."""

        super().model_post_init(__context)

        if not self.rpc_url:
            fallback = os.getenv("VITE_RPC_URL")
            if fallback:
                object.__setattr__(self, "rpc_url", fallback)

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # Ledger connection
    rpc_url: str = Field(
        default="",
        description="JSON-RPC endpoint of the ledger",
        validation_alias=AliasChoices("rpc_url", "RPC_URL", "COVAULT_RPC_URL"),
    )
    chain_id: int = Field(default=9000, description="Chain ID used when signing submissions")
    request_timeout_seconds: int = Field(default=30, description="HTTP timeout for a single RPC request")

    # Contract addresses
    social_recovery_module_address: str = Field(
        default="",
        description="Address of the social recovery module contract",
    )
    daily_limit_module_address: str = Field(
        default="",
        description="Address of the daily limit module contract",
    )
    whitelist_module_address: str = Field(
        default="",
        description="Address of the whitelist module contract",
    )
    known_module_addresses: List[str] = Field(
        default_factory=list,
        description="Capability module addresses checked when building a wallet config snapshot",
    )

    # Event log reconciliation
    log_window_blocks: int = Field(
        default=5000,
        ge=1,
        description="Number of most recent blocks scanned for wallet events",
    )
    log_fallback_window_blocks: int = Field(
        default=2000,
        ge=1,
        description="Smaller window retried once when the ledger rejects the primary one",
    )

    # Confirmation waits
    confirmation_timeout_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Max seconds to wait for a submission receipt",
    )
    confirmation_poll_interval_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Seconds between receipt polls",
    )

    @property
    def has_rpc_url(self) -> bool:
        return bool(self.rpc_url)

    @property
    def has_recovery_module(self) -> bool:
        return bool(self.social_recovery_module_address)

    def candidate_modules(self) -> List[str]:
        """Modules worth checking for a wallet, configured modules first, no duplicates."""
        seen = set()
        modules: List[str] = []
        for address in [
            self.social_recovery_module_address,
            self.daily_limit_module_address,
            self.whitelist_module_address,
            *self.known_module_addresses,
        ]:
            if not address:
                continue
            key = address.lower()
            if key in seen:
                continue
            seen.add(key)
            modules.append(address)
        return modules


# Global settings instance
settings = Settings()
