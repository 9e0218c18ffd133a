"""
Configuration Management for Statement Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

All tunables of the core live here: history bounds, default currency
format, limit alert threshold and the value-range filter mode. Components
receive the values through their constructors and fall back to these
settings when none are given.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from statement_ledger.models.ledger import CurrencyFormat, ValueRangeMode


class LedgerSettings(BaseSettings):
    """
    Ledger core settings.

    Loads configuration from ``LEDGER_*`` environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Parsing
    default_currency_format: CurrencyFormat = Field(
        default=CurrencyFormat.PT_BR,
        description="Currency format used when the caller does not choose one"
    )

    # History bounds
    history_max_size: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Maximum snapshots kept on each undo/redo stack"
    )
    import_history_max_size: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Maximum import batches remembered"
    )
    recent_imports_limit: int = Field(
        default=10,
        ge=1,
        description="Default number of batches returned by recent()"
    )

    # Limits
    default_alert_percent: int = Field(
        default=80,
        ge=0,
        le=100,
        description="Alert threshold used when a limit does not set one"
    )

    # Filters
    value_range_mode: ValueRangeMode = Field(
        default=ValueRangeMode.SIGNED,
        description="Whether value filters compare signed amounts or magnitudes"
    )

    @field_validator('default_currency_format', mode='before')
    @classmethod
    def normalize_currency_format(cls, v):
        """Accept 'pt_br' / 'EN-US' style spellings from the environment."""
        if isinstance(v, str):
            cleaned = v.strip().replace("_", "-")
            for fmt in CurrencyFormat:
                if fmt.value.lower() == cleaned.lower():
                    return fmt
        return v


@lru_cache()
def get_settings() -> LedgerSettings:
    """
    Get ledger settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return LedgerSettings()
