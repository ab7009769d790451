from functools import lru_cache

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "finbalance"
    database_url: str = "postgresql+asyncpg://postgres:postgres@db:5432/finbalance"
    timezone: str = "America/Sao_Paulo"
    product_name: str = "FinBalance AI"
    evolution_timeout: float = 15.0
    auto_run_migrations: bool = True

    @field_validator("timezone", mode="before")
    @classmethod
    def default_timezone(cls, v: str | None) -> str:
        """Treat an empty TIMEZONE env var as the default zone."""
        if v is None or v == "":
            return "America/Sao_Paulo"
        return v

    def get_sync_database_url(self) -> str:
        """Return a synchronous driver URL for Alembic/CLI usage."""

        if "+asyncpg" in self.database_url:
            return self.database_url.replace("+asyncpg", "+psycopg")
        if "+aiosqlite" in self.database_url:
            return self.database_url.replace("+aiosqlite", "")
        return self.database_url


class AppConfig(BaseModel):
    version: str = "0.1.0"
    description: str = (
        "FinBalance backend: registro de gastos e ganhos via WhatsApp e consultas financeiras."
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
