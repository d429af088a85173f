"""
Application settings with YAML file and environment variable support.

Uses Pydantic Settings for type-safe configuration. Values are read from
a YAML file (``config.yaml`` by default) and can be overridden by
environment variables, e.g. ``BYBIT__API_KEY`` overrides ``bybit.api_key``.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from crossarb.config.constants import (
    APEX_REST_URL,
    APEX_WS_URL,
    BYBIT_DEFAULT_RECV_WINDOW_MS,
    BYBIT_REST_URL,
    BYBIT_WS_URL,
    DEFAULT_CHECK_INTERVAL_MS,
    DEFAULT_MAX_CONSECUTIVE_LOSSES,
    DEFAULT_MAX_DAILY_LOSS,
    DEFAULT_MAX_POSITION,
    DEFAULT_MIN_BALANCE,
    DEFAULT_MIN_SPREAD,
    DEFAULT_ORDER_SIZE,
    DEFAULT_PRICE_PRECISION,
    DEFAULT_SIZE_PRECISION,
    DEFAULT_STOP_LOSS,
    DEFAULT_TAKE_PROFIT,
    MARKET_DATA_READY_TIMEOUT,
    STATUS_REPORT_INTERVAL,
)


DEFAULT_CONFIG_FILE = Path("config.yaml")


# =============================================================================
# Venue Credentials
# =============================================================================


class ApexSettings(BaseModel):
    """Apex Pro REST/WebSocket configuration (home venue)."""

    base_url: str = APEX_REST_URL
    ws_url: str = APEX_WS_URL
    api_key: SecretStr
    api_secret: SecretStr
    passphrase: SecretStr

    @field_validator("api_key", "api_secret", "passphrase", mode="after")
    @classmethod
    def validate_credentials(cls, v: SecretStr) -> SecretStr:
        """Ensure credentials are not empty."""
        if not v.get_secret_value():
            raise ValueError("Credential cannot be empty")
        return v


class BybitSettings(BaseModel):
    """Bybit REST/WebSocket configuration (hedge venue)."""

    base_url: str = BYBIT_REST_URL
    ws_url: str = BYBIT_WS_URL
    api_key: SecretStr
    api_secret: SecretStr
    recv_window_ms: int = Field(default=BYBIT_DEFAULT_RECV_WINDOW_MS, ge=1000, le=60000)

    @field_validator("api_key", "api_secret", mode="after")
    @classmethod
    def validate_credentials(cls, v: SecretStr) -> SecretStr:
        """Ensure credentials are not empty."""
        if not v.get_secret_value():
            raise ValueError("Credential cannot be empty")
        return v


# =============================================================================
# Strategy & Risk
# =============================================================================


class StrategySettings(BaseModel):
    """Spread strategy parameters."""

    min_spread: float = Field(
        default=DEFAULT_MIN_SPREAD,
        gt=0.0,
        description="Minimum cross-venue spread (quote currency) that triggers a trade",
    )
    order_size: float = Field(
        default=DEFAULT_ORDER_SIZE,
        gt=0.0,
        description="Size of each leg in contracts",
    )
    max_position: float = Field(
        default=DEFAULT_MAX_POSITION,
        gt=0.0,
        description="Maximum absolute net position in contracts",
    )
    check_interval_ms: int = Field(
        default=DEFAULT_CHECK_INTERVAL_MS,
        ge=10,
        le=60_000,
        description="Decision loop tick interval in milliseconds",
    )
    take_profit: float = Field(
        default=DEFAULT_TAKE_PROFIT,
        gt=0.0,
        description="Cumulative PnL at which the engine stops itself",
    )
    stop_loss: float = Field(
        default=DEFAULT_STOP_LOSS,
        gt=0.0,
        description="Cumulative loss at which the engine stops itself",
    )
    price_precision: int = Field(default=DEFAULT_PRICE_PRECISION, ge=0, le=10)
    size_precision: int = Field(default=DEFAULT_SIZE_PRECISION, ge=0, le=10)
    hedge_mode: bool = Field(
        default=True,
        description="Send the offsetting leg on the hedge venue",
    )
    status_interval_s: float = Field(default=STATUS_REPORT_INTERVAL, gt=0.0)
    ready_timeout_s: float = Field(default=MARKET_DATA_READY_TIMEOUT, gt=0.0)

    @model_validator(mode="after")
    def validate_position_cap(self) -> "StrategySettings":
        """A position cap below one order would never allow a trade."""
        if self.max_position < self.order_size:
            raise ValueError(
                f"max_position ({self.max_position}) must be >= order_size ({self.order_size})"
            )
        return self

    @property
    def check_interval(self) -> float:
        """Tick interval in seconds."""
        return self.check_interval_ms / 1000.0


class RiskSettings(BaseModel):
    """Circuit breaker limits."""

    max_daily_loss: float = Field(default=DEFAULT_MAX_DAILY_LOSS, ge=0.0)
    max_consecutive_losses: int = Field(default=DEFAULT_MAX_CONSECUTIVE_LOSSES, ge=1)
    min_balance: float = Field(default=DEFAULT_MIN_BALANCE, ge=0.0)


# =============================================================================
# Application Settings
# =============================================================================


class Settings(BaseSettings):
    """
    Application settings.

    Loaded from (highest priority first) constructor arguments, environment
    variables, ``.env``, the YAML config file and finally the defaults.
    Sensitive values use SecretStr for safe handling.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        yaml_file=DEFAULT_CONFIG_FILE,
        case_sensitive=False,
        extra="ignore",
    )

    apex: ApexSettings
    bybit: BybitSettings

    apex_symbol: str = Field(default="BTC-USDC", min_length=1)
    bybit_symbol: str = Field(default="BTCUSDT", min_length=1)

    strategy: StrategySettings = Field(default_factory=StrategySettings)
    risk: RiskSettings = Field(default_factory=RiskSettings)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_file: Path | None = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Environment variables take precedence over the YAML file."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def load_settings(config_file: Path | str | None = None) -> Settings:
    """
    Load settings from a specific YAML file.

    Args:
        config_file: Path to the YAML file, or None for ``config.yaml``.

    Returns:
        Validated settings.
    """
    if config_file is None:
        return Settings()  # type: ignore[call-arg]

    class FileSettings(Settings):
        model_config = SettingsConfigDict(yaml_file=Path(config_file))

    return FileSettings()  # type: ignore[call-arg]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded only once.
    Clear cache with `get_settings.cache_clear()` if needed.
    """
    return load_settings()
