"""Configuration management for the assembly voting engine."""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = Field(default="Assembly Vote Engine")
    version: str = Field(default="0.1.0")
    docs_url: str | None = Field(default="/docs")
    redoc_url: str | None = Field(default="/redoc")
    openapi_url: str = Field(default="/openapi.json")

    database_url: str = Field(default="sqlite+pysqlite:///./assembly.db")

    proxy_max_per_receiver: int = Field(default=99, ge=1)
    majority_present_base: Literal["expressed", "attendance"] = Field(default="expressed")

    event_sink: Literal["memory", "kafka"] = Field(default="memory")
    memory_event_buffer: int = Field(default=1000, ge=1)
    kafka_bootstrap_servers: str = Field(default="kafka:9092")
    vote_events_topic: str = Field(default="assembly-vote-events")

    enable_metrics: bool = Field(default=True)
    enable_tracing: bool = Field(default=False)
    otel_exporter_endpoint: str | None = Field(default=None)

    default_tenant_id: str = Field(default="tenant-demo")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


__all__ = ["Settings", "get_settings"]
