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
        """Normalise the configured chain id to lowercase hex."""

        super().model_post_init(__context)

        if self.default_chain_id:
            object.__setattr__(self, "default_chain_id", self.default_chain_id.strip().lower())

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    cors_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed to call the wallet API (JSON list in env)",
    )

    # Signing provider
    provider_rpc_url: str = Field(
        default="",
        description="JSON-RPC endpoint of the signing provider bridge (empty = no provider installed)",
        validation_alias=AliasChoices("provider_rpc_url", "WALLET_PROVIDER_URL"),
    )
    provider_request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single provider request",
    )
    provider_poll_interval_seconds: float = Field(
        default=4.0,
        gt=0,
        description="Interval between account/chain polls used to emit provider events",
    )

    # Session
    session_store_path: Path = Field(
        default=BASE_DIR / "data" / "session.json",
        description="File used to persist the connected account and chain",
    )
    auto_reconnect: bool = Field(
        default=True,
        description="Restore a previously authorized session on startup",
    )
    status_ttl_seconds: float = Field(
        default=7.0,
        gt=0,
        description="Seconds a transient status message stays visible",
    )
    event_queue_size: int = Field(
        default=64,
        ge=1,
        description="Maximum number of queued provider events",
    )

    # Display
    balance_display_decimals: int = Field(
        default=6,
        ge=0,
        le=18,
        description="Fractional digits kept (rounded down) when displaying balances",
    )
    default_chain_id: str = Field(
        default="0x1",
        description="Network preselected in network pickers before a session exists",
    )

    @property
    def has_provider(self) -> bool:
        return bool(self.provider_rpc_url)


# Global settings instance
settings = Settings()
