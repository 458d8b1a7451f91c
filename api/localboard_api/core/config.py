from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "localboard-api"
    environment: str = "dev"
    api_key_header: str = "X-API-Key"
    delete_auth_header: str = "x-delete-auth"
    admin_api_keys: str | None = None
    moderation_secret: str | None = None
    database_url: str | None = None
    database_pool_min_size: int = 1
    database_pool_max_size: int = 10
    service_default_ttl_days: int = 21
    anthropic_api_key: str | None = None
    classifier_model: str = "claude-3-5-haiku-latest"
    classifier_timeout_seconds: float = 30.0
    classifier_max_tokens: int = 300
    resend_api_key: str | None = None
    mail_api_url: str = "https://api.resend.com/emails"
    mail_from: str = '"The Local Board" <noreply@thelocalboard.city>'
    mail_reply_to: str = "support@thelocalboard.city"
    support_email: str = "support@thelocalboard.city"
    mail_dev_recipient: str = "receiver@example.com"
    mail_timeout_seconds: float = 10.0
    storage_backend: Literal["auto", "local", "hosted"] = "auto"
    upload_dir: str = "uploads"
    upload_url_prefix: str = "/uploads"
    blob_read_write_token: str | None = None
    blob_api_url: str = "https://blob.vercel-storage.com"
    blob_timeout_seconds: float = 30.0
    public_base_url: str = "http://localhost:8000"
    otel_enabled: bool = True
    otel_service_name: str = "localboard-api"
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None
    otel_trace_sample_ratio: float = 1.0

    model_config = SettingsConfigDict(env_prefix="LB_", extra="ignore")

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"prod", "production"}

    @property
    def admin_keys(self) -> list[str]:
        if not self.admin_api_keys:
            return []
        return [chunk.strip() for chunk in self.admin_api_keys.split(",") if chunk.strip()]

    @property
    def resolved_storage_backend(self) -> str:
        if self.storage_backend != "auto":
            return self.storage_backend
        return "hosted" if self.blob_read_write_token else "local"


@lru_cache
def get_settings() -> Settings:
    return Settings()
