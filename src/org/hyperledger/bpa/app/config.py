"""
Configuration Module for the partner resolver service

Settings are loaded from environment variables through Pydantic, with defaults
suitable for local development. Shared resources built at startup (database
engine, HTTP session, Redis client, the resolver itself) are stored on the
aiohttp application under the typed AppKeys defined here.
"""

import asyncio
import logging
from typing import Final, Optional
from aiohttp import ClientSession, web
from pydantic import AliasChoices, Field, PostgresDsn, RedisDsn, field_validator
from pydantic_settings import BaseSettings
from redis import asyncio as redis
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from org.hyperledger.bpa.app.metrics import MetricsClient
from org.hyperledger.bpa.app.tasks import TaskDispatcher
from org.hyperledger.bpa.model.health import HealthGauge
from org.hyperledger.bpa.model.partner import PartnerRepository
from org.hyperledger.bpa.resolve.did_resolver import (
    COMMERCIAL_REGISTER_SCHEMA,
    DidResolver,
)
from org.hyperledger.bpa.resolve.lookup import PartnerLookup

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings for the partner resolver service.

    The database connection string can be set with either PG_DSN or
    DATABASE_URL, the Redis one with REDIS_DSN or REDIS_URL.
    """

    debug: bool = False
    """
    Enable debug mode for verbose logging and HTTP request tracing.
    """

    http_port: int = Field(alias="port", default=5200)
    """
    HTTP port for the service to listen on. Set with PORT.
    """

    sentry_dsn: Optional[str] = None
    """
    Sentry DSN for error reporting. No error reporting if not set.
    """

    redis_dsn: RedisDsn = Field(
        "redis://valkey:6379/1?decode_responses=True",
        validation_alias=AliasChoices("redis_dsn", "redis_url"),
    )  # type: ignore
    """
    Redis connection string, used to publish partner events.
    """

    pg_dsn: PostgresDsn = Field(
        "postgresql+asyncpg://postgres:password@db/bpa",
        validation_alias=AliasChoices("pg_dsn", "database_url"),
    )  # type: ignore
    """
    PostgreSQL connection string of the partner store.
    """

    did_resolver_url: str = "https://resolver.dev.greenlight.bcovrin.vonx.io"
    """
    Base URL of the universal resolver used to fetch DID documents.
    """

    lookup_timeout: float = 10.0
    """
    Total timeout in seconds for every outgoing HTTP request.
    """

    webhook_channel_prefix: str = "bpa:webhook"
    """
    Prefix of the Redis channels partner events are published on.
    """

    recognized_schema_name: str = COMMERCIAL_REGISTER_SCHEMA
    """
    Schema name of proofs that carry a partner's public DID.
    """

    metrics_backend: str = "telegraf"
    """
    Metrics backend, 'telegraf' or 'none'.
    """

    statsd_host: str = Field(alias="TELEGRAF_HOST", default="telegraf")
    statsd_port: int = Field(alias="TELEGRAF_PORT", default=8125)

    health_tick_interval: float = 30.0
    """
    Seconds between health gauge decrements.
    """

    @field_validator("metrics_backend")
    @classmethod
    def validate_metrics_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("telegraf", "none"):
            raise ValueError("metrics_backend must be 'telegraf' or 'none'")
        return v

    @field_validator("lookup_timeout", "health_tick_interval")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v


# Application context keys for dependency injection
SettingsAppKey: Final = web.AppKey("settings", Settings)
DatabaseAppKey: Final = web.AppKey("database", AsyncEngine)
DatabaseSessionMakerAppKey: Final = web.AppKey(
    "database_session_maker", async_sessionmaker[AsyncSession]
)
SessionAppKey: Final = web.AppKey("http_session", ClientSession)
RedisClientAppKey: Final = web.AppKey("redis_client", redis.Redis)
HealthGaugeAppKey: Final = web.AppKey("health_gauge", HealthGauge)
MetricsClientAppKey: Final = web.AppKey("metrics_client", MetricsClient)
PartnerRepositoryAppKey: Final = web.AppKey("partner_repository", PartnerRepository)
PartnerLookupAppKey: Final = web.AppKey("partner_lookup", PartnerLookup)
DidResolverAppKey: Final = web.AppKey("did_resolver", DidResolver)
TaskDispatcherAppKey: Final = web.AppKey("task_dispatcher", TaskDispatcher)
TickHealthTaskAppKey: Final = web.AppKey("tick_health_task", asyncio.Task[None])
