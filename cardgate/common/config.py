"""Central environment-driven settings for the card gateway.

The process loads this once at startup. Gateway behavior (charge type, saved
cards, test mode, API keys) is controlled by environment variables.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class CommonSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "cardgate"
    log_level: str = "INFO"
    database_dsn: str
    redis_url: str = "redis://redis:6379/0"
    api_key: str
    store_url: str = "http://localhost:8000"
    otel_exporter_otlp_endpoint: str | None = "http://otel-collector:4318/v1/traces"

    enabled: bool = True
    title: str = "Credit Card Payment"
    description: str = ""
    method_title: str = "Stripe"
    charge_type: Literal["capture", "authorize"] = "capture"
    additional_fields: bool = False
    saved_cards: bool = True
    testmode: bool = False
    test_secret_key: str = ""
    test_publishable_key: str = ""
    live_secret_key: str = ""
    live_publishable_key: str = ""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = CommonSettings()
