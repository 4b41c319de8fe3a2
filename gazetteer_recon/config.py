"""Service settings loaded from environment variables prefixed with RECON_."""

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATASET_PATH = Path(__file__).parent.parent / "data" / "canadacities.csv"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RECON_",
        case_sensitive=False,
        extra="ignore",
    )

    #service identity, shown in the manifest
    service_name: str = "Canadian Cities Reconciliation Service"
    base_url: str = Field(
        default="http://localhost:3000",
        description="Public base URL used for identifier, schema and view links",
    )

    #server
    host: str = "127.0.0.1"
    port: int = 3000
    cors_origins: List[str] = ["*"]

    #dataset
    dataset_path: Path = DEFAULT_DATASET_PATH
    load_default_dataset: bool = True
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, gt=0)

    #logging
    log_level: str = "INFO"
    log_colours: bool = True

    @property
    def identifier_space(self) -> str:
        return f"{self.base_url.rstrip('/')}/entities/"

    @property
    def schema_space(self) -> str:
        return f"{self.base_url.rstrip('/')}/schema/"

    @property
    def view_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/entities/{{{{id}}}}"


@lru_cache
def get_settings() -> Settings:
    return Settings()
