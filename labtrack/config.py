from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:3000"
    max_upload_size_mb: int = 20

    # Extraction
    ocr_min_text_length: int = 100
    ocr_provider: str = "simulated"
    llama_cloud_api_key: str | None = None
    remote_extractor_url: str | None = None
    remote_extractor_timeout_seconds: float = 60.0
    catalog_fuzzy_threshold: int = 85

    # History merge
    history_limit: int = Field(default=6, ge=1)
    overwrite_missing_fields: bool = False
    derive_trend: bool = False


settings = Settings()
