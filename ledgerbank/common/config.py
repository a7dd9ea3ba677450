"""Central environment-driven settings for the ledger service.

The process loads this once at startup. Behavior is controlled by environment
variables (see `.env.example`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class CommonSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "ledger"
    log_level: str = "INFO"
    database_dsn: str
    api_key: str
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"
    tracing_enabled: bool = True
    append_conflict_retries: int = 3
    schema_bootstrap_retries: int = 20
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = CommonSettings()
