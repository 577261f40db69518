import asyncio
import contextlib
import logging
from time import time
from typing import Optional
from aiohttp import web
import aiohttp
import redis.asyncio as redis
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
)
import sentry_sdk
from sentry_sdk.integrations.aiohttp import AioHttpIntegration

from org.hyperledger.bpa.app.config import (
    DatabaseAppKey,
    DatabaseSessionMakerAppKey,
    DidResolverAppKey,
    HealthGaugeAppKey,
    MetricsClientAppKey,
    PartnerLookupAppKey,
    PartnerRepositoryAppKey,
    RedisClientAppKey,
    SessionAppKey,
    Settings,
    SettingsAppKey,
    TaskDispatcherAppKey,
    TickHealthTaskAppKey,
)
from org.hyperledger.bpa.app.handlers.events import (
    handle_connection_established,
    handle_proof_received,
)
from org.hyperledger.bpa.app.handlers.internal import (
    handle_internal_alive,
    handle_internal_lookup,
    handle_internal_ready,
)
from org.hyperledger.bpa.app.metrics import TelegrafCompatibilityClient, create_metrics_client
from org.hyperledger.bpa.app.tasks import TaskDispatcher, tick_health_task
from org.hyperledger.bpa.model.health import HealthGauge
from org.hyperledger.bpa.model.partner import PartnerRepository
from org.hyperledger.bpa.notify import RedisNotificationSink
from org.hyperledger.bpa.resolve.did_document import DidDocumentClient
from org.hyperledger.bpa.resolve.did_resolver import DidResolver
from org.hyperledger.bpa.resolve.lookup import PartnerLookup

logger = logging.getLogger(__name__)


async def background_tasks(app):
    logger.info("Starting up")
    settings: Settings = app[SettingsAppKey]

    engine = create_async_engine(str(settings.pg_dsn))
    app[DatabaseAppKey] = engine
    database_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    app[DatabaseSessionMakerAppKey] = database_session_maker

    trace_config = aiohttp.TraceConfig()

    if settings.debug:

        async def on_request_start(
            session, trace_config_ctx, params: aiohttp.TraceRequestStartParams
        ):
            logging.info("Starting request: %s", params)

        async def on_request_end(session, trace_config_ctx, params):
            logging.info("Ending request: %s", params)

        trace_config.on_request_start.append(on_request_start)
        trace_config.on_request_end.append(on_request_end)

    http_session = aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=settings.lookup_timeout),
        trace_configs=[trace_config],
    )
    app[SessionAppKey] = http_session

    redis_client = redis.Redis.from_url(str(settings.redis_dsn))
    app[RedisClientAppKey] = redis_client

    metrics_client = create_metrics_client(
        settings.metrics_backend,
        host=settings.statsd_host,
        port=settings.statsd_port,
        debug=settings.debug,
    )
    if isinstance(metrics_client, TelegrafCompatibilityClient):
        await metrics_client.connect()
    app[MetricsClientAppKey] = metrics_client

    partner_repository = PartnerRepository(database_session_maker)
    did_document_client = DidDocumentClient(http_session, settings.did_resolver_url)
    partner_lookup = PartnerLookup(http_session, did_document_client)
    app[PartnerRepositoryAppKey] = partner_repository
    app[PartnerLookupAppKey] = partner_lookup
    app[DidResolverAppKey] = DidResolver(
        partner_repository,
        partner_lookup,
        did_document_client,
        RedisNotificationSink(redis_client, settings.webhook_channel_prefix),
        metrics_client=metrics_client,
        health_gauge=app[HealthGaugeAppKey],
        schema_name=settings.recognized_schema_name,
    )
    app[TaskDispatcherAppKey] = TaskDispatcher(
        metrics_client, health_gauge=app[HealthGaugeAppKey]
    )

    logger.info("Startup complete")

    app[TickHealthTaskAppKey] = asyncio.create_task(
        tick_health_task(app[HealthGaugeAppKey], settings.health_tick_interval)
    )

    yield

    logger.info("Shutting down background tasks")

    await app[TaskDispatcherAppKey].shutdown()

    app[TickHealthTaskAppKey].cancel()
    with contextlib.suppress(asyncio.exceptions.CancelledError):
        await app[TickHealthTaskAppKey]

    await app[DatabaseAppKey].dispose()
    await app[SessionAppKey].close()
    await app[RedisClientAppKey].aclose()
    await app[MetricsClientAppKey].close()


@web.middleware
async def sentry_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception as e:
        sentry_sdk.capture_exception(e)
        raise e


@web.middleware
async def metrics_middleware(request: web.Request, handler):
    metrics_client = request.app[MetricsClientAppKey]
    request_method: str = request.method
    request_path = request.path

    start_time: float = time()
    response_status_code = 0

    try:
        response = await handler(request)
        response_status_code = response.status
        return response
    except web.HTTPException as e:
        response_status_code = e.status
        raise e
    except Exception as e:
        metrics_client.increment(
            "bpa.server.request.exception",
            1,
            tag_dict={
                "exception": type(e).__name__,
                "path": request_path,
                "method": request_method,
            },
        )
        raise e
    finally:
        metrics_client.timer(
            "bpa.server.request.time",
            time() - start_time,
            tag_dict={"path": request_path, "method": request_method},
        )
        metrics_client.increment(
            "bpa.server.request.count",
            1,
            tag_dict={
                "path": request_path,
                "method": request_method,
                "status": response_status_code,
            },
        )


async def start_web_server(settings: Optional[Settings] = None):

    if settings is None:
        settings = Settings()  # type: ignore
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            send_default_pii=False,
            integrations=[AioHttpIntegration()],
        )
    app = web.Application(middlewares=[metrics_middleware, sentry_middleware])

    app[SettingsAppKey] = settings
    app[HealthGaugeAppKey] = HealthGauge()

    app.add_routes(
        [
            web.get("/internal/alive", handle_internal_alive),
            web.get("/internal/ready", handle_internal_ready),
            web.get("/internal/api/lookup", handle_internal_lookup),
            web.post("/internal/api/events/proof", handle_proof_received),
            web.post(
                "/internal/api/events/connection", handle_connection_established
            ),
        ]
    )

    app.cleanup_ctx.append(background_tasks)

    return app
