from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    environment: str = "dev"
    api_base_url: str = "http://localhost:8000"
    admin_api_key: str | None = None
    api_key_header: str = "X-API-Key"
    moderation_secret: str | None = None
    request_timeout_seconds: float = 300.0
    tick_seconds: float = 5.0
    moderation_interval_seconds: float = 900.0
    expiry_interval_seconds: float = 3600.0
    max_backoff_seconds: float = 300.0
    otel_enabled: bool = True
    otel_service_name: str = "localboard-worker"
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None
    otel_trace_sample_ratio: float = 1.0

    model_config = SettingsConfigDict(env_prefix="LB_WORKER_", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
