from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Apollo.io people search
    apollo_api_key: Optional[str] = None
    apollo_base_url: str = "https://api.apollo.io/v1"
    http_timeout_seconds: float = 30.0

    # Groq / likely-title intelligence
    groq_api_key: Optional[str] = None
    groq_model: str = "llama-3.3-70b-versatile"

    # Target acquisition tuning (cost / recall trade-offs, not correctness)
    acquisition_seniorities: list[str] = [
        "owner", "founder", "c_suite", "partner", "vp", "head", "director",
    ]
    acquisition_person_search_max_pages: int = 1
    acquisition_role_search_max_pages: int = 1
    acquisition_per_page: int = 10
    acquisition_max_enrichment_calls: Optional[int] = None

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
