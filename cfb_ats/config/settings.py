"""
Runtime settings for cfb-ats.

Values come from the environment (prefixed per section, e.g. ATS_PUSH_THRESHOLD
or CFBD_API_KEY) or from a local .env file.
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_MEDIUM_SPREAD_MAX,
    DEFAULT_NOTABLE_LIMIT,
    DEFAULT_NOTABLE_MARGIN,
    DEFAULT_PROVIDER_PRIORITY,
    DEFAULT_PUSH_THRESHOLD,
    DEFAULT_SMALL_SPREAD_MAX,
    DEFAULT_STAKE,
    STANDARD_SPREAD_ODDS,
)


class ATSSettings(BaseSettings):
    """Settings for against-the-spread classification and aggregation."""

    model_config = SettingsConfigDict(env_prefix="ATS_")

    push_threshold: float = Field(
        default=DEFAULT_PUSH_THRESHOLD,
        description="ATS margins with absolute value below this are pushes",
    )
    stake: float = Field(
        default=DEFAULT_STAKE,
        description="Flat stake per game for ROI calculations",
    )
    standard_odds: int = Field(
        default=STANDARD_SPREAD_ODDS,
        description="American odds used to price a winning spread bet",
    )
    preferred_providers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PROVIDER_PRIORITY),
        description="Sportsbooks in order of preference when a game has several lines",
    )
    small_spread_max: float = Field(
        default=DEFAULT_SMALL_SPREAD_MAX,
        description="Largest |spread| counted as a small spread",
    )
    medium_spread_max: float = Field(
        default=DEFAULT_MEDIUM_SPREAD_MAX,
        description="Largest |spread| counted as a medium spread",
    )
    notable_margin: float = Field(
        default=DEFAULT_NOTABLE_MARGIN,
        description="ATS margin beyond which a game is listed as a best cover / worst beat",
    )
    notable_limit: int = Field(
        default=DEFAULT_NOTABLE_LIMIT,
        description="Number of best covers and worst beats to keep",
    )

    @field_validator("push_threshold", "stake", "small_spread_max", "notable_margin")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("standard_odds")
    @classmethod
    def validate_american_odds(cls, v: int) -> int:
        if -100 < v < 100:
            raise ValueError("American odds must be <= -100 or >= 100")
        return v

    @model_validator(mode="after")
    def validate_tiers(self) -> "ATSSettings":
        if self.medium_spread_max <= self.small_spread_max:
            raise ValueError("medium_spread_max must be greater than small_spread_max")
        return self


class ArbitrageSettings(BaseSettings):
    """Thresholds and bankroll for the moneyline arbitrage scan."""

    model_config = SettingsConfigDict(env_prefix="ARB_")

    min_profit_percent: float = Field(
        default=0.0,
        description="Minimum profit percentage to flag an arbitrage opportunity",
    )
    default_bankroll: float = Field(
        default=100.0,
        description="Total stake split across both sides when none is given",
    )
    excluded_providers: list[str] = Field(
        default_factory=list,
        description="Sportsbooks to exclude from arbitrage scanning",
    )

    @field_validator("min_profit_percent")
    @classmethod
    def validate_min_profit(cls, v: float) -> float:
        if v < 0:
            raise ValueError("min_profit_percent cannot be negative")
        return v


class CFBDSettings(BaseSettings):
    """Settings for the College Football Data API."""

    model_config = SettingsConfigDict(env_prefix="CFBD_")

    api_key: str = Field(
        default="",
        description="API key from collegefootballdata.com",
    )
    base_url: str = Field(
        default="https://api.collegefootballdata.com",
        description="Base URL for the REST API",
    )
    graphql_url: str = Field(
        default="https://graphql.collegefootballdata.com/v1/graphql",
        description="GraphQL endpoint",
    )
    timeout_seconds: float = Field(default=30.0)
    max_concurrent_requests: int = Field(default=4)


class Settings(BaseSettings):
    """Top-level settings; each section can also be set via SECTION__FIELD."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)
    debug: bool = Field(default=False)

    ats: ATSSettings = Field(default_factory=ATSSettings)
    arbitrage: ArbitrageSettings = Field(default_factory=ArbitrageSettings)
    cfbd: CFBDSettings = Field(default_factory=CFBDSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()


@lru_cache
def get_settings() -> Settings:
    """Settings are read once per process; tests call ``cache_clear()``."""
    return Settings()
