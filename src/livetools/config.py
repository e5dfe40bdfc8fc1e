"""Configuration system using pydantic-settings with environment variable loading."""

from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

FallbackPolicy = Literal["fail", "synthesize"]


class HttpSettings(BaseSettings):
    """Outbound HTTP behaviour shared by every provider adapter."""

    model_config = SettingsConfigDict(env_prefix="HTTP_")

    timeout_seconds: float = 8.0
    rates_timeout_seconds: float = 6.0
    enrichment_timeout_seconds: float = 5.0  # Yahoo quote-summary side call
    user_agent: str = "Mozilla/5.0 (compatible; LiveTools/1.0)"


class CurrencySettings(BaseSettings):
    """Exchange rate chain: parallel providers reconciled by median."""

    model_config = SettingsConfigDict(env_prefix="CURRENCY_")

    default_base: str = "USD"
    providers: list[str] = [
        "frankfurter",
        "exchangerate_host",
        "open_er_api",
        "exchangerate_api",
    ]
    display_codes: list[str] = [
        "USD", "MXN", "GBP", "EUR", "JPY", "CAD", "AUD", "CHF", "CNY", "INR",
        "BRL", "KRW", "SGD", "HKD", "NOK", "SEK", "DKK", "PLN", "CZK", "HUF",
    ]
    fallback_policy: FallbackPolicy = "fail"


class EtfSettings(BaseSettings):
    """ETF quote chain: sequential providers with synthetic fallback."""

    model_config = SettingsConfigDict(env_prefix="ETF_")

    default_symbols: list[str] = ["VTI", "QQQ", "ITA", "SCHD", "VXUS"]
    providers: list[str] = ["yahoo", "alpha_vantage", "fmp"]
    history_days: int = 30
    fallback_policy: FallbackPolicy = "synthesize"
    alpha_vantage_key: SecretStr = SecretStr("demo")
    fmp_key: SecretStr = SecretStr("demo")
    max_symbols: int = 25


class NewsSettings(BaseSettings):
    """RSS news aggregation settings."""

    model_config = SettingsConfigDict(env_prefix="NEWS_")

    items_per_source: int = 6
    max_articles: int = 150
    fallback_policy: FallbackPolicy = "fail"


class ServerSettings(BaseSettings):
    """HTTP server configuration."""

    model_config = SettingsConfigDict(env_prefix="SERVER_")

    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: list[str] = ["*"]


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    http: HttpSettings = HttpSettings()
    currency: CurrencySettings = CurrencySettings()
    etf: EtfSettings = EtfSettings()
    news: NewsSettings = NewsSettings()
    server: ServerSettings = ServerSettings()
