from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./teamshelf.db"
    sql_echo: bool = False

    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    # Экспорт PDF выполняется в дочернем процессе с таймаутом
    export_timeout_seconds: float = 30.0

    # Импорт ZIP-архивов BookStack
    import_max_bytes: int = 50 * 1024 * 1024

    # Плагин суммаризации
    scraper_timeout_seconds: float = 30.0
    scraper_max_content_length: int = 50000
    summarizer_chunk_size: int = 15000
    summarizer_max_chunks: int = 10
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4.1-mini"
    openai_base_url: Optional[str] = None

    model_config = {"env_file": ".env", "extra": "ignore"}

    @field_validator("database_url")
    @classmethod
    def use_async_driver(cls, v: str) -> str:
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
