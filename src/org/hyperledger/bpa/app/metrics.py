"""
Metrics for the partner resolver service.

Resolution tasks, HTTP handlers and the task dispatcher report counters,
gauges and timings through the small ``MetricsClient`` interface. Two
implementations exist:

- TelegrafCompatibilityClient: forwards to an aio-statsd TelegrafStatsdClient
- NoOpMetricsClient: discards everything, used in tests and when metrics are off

``create_metrics_client`` picks one from the configured backend name.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

from aio_statsd import TelegrafStatsdClient

logger = logging.getLogger(__name__)

Number = Union[int, float]


class MetricsClient(ABC):
    """
    Backend-independent metrics interface.

    Tags are passed as a flat dictionary and forwarded to the backend as
    metric dimensions.
    """

    @abstractmethod
    def increment(
        self, name: str, value: Number = 1, tag_dict: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Increment a counter, e.g. ``bpa.resolve.incoming.resolved``.
        """

    @abstractmethod
    def gauge(
        self, name: str, value: Number, tag_dict: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Set a point-in-time value, e.g. the number of running tasks.
        """

    @abstractmethod
    def timer(
        self, name: str, value: Number, tag_dict: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Record a duration in seconds.
        """

    @abstractmethod
    async def close(self) -> None:
        """
        Flush and release backend resources.
        """


class TelegrafCompatibilityClient(MetricsClient):
    """
    Adapter exposing a TelegrafStatsdClient through MetricsClient.
    """

    def __init__(self, telegraf_client: TelegrafStatsdClient):
        self.client = telegraf_client

    def increment(
        self, name: str, value: Number = 1, tag_dict: Optional[Dict[str, Any]] = None
    ) -> None:
        self.client.increment(name, value, tag_dict=tag_dict or {})

    def gauge(
        self, name: str, value: Number, tag_dict: Optional[Dict[str, Any]] = None
    ) -> None:
        self.client.gauge(name, value, tag_dict=tag_dict or {})

    def timer(
        self, name: str, value: Number, tag_dict: Optional[Dict[str, Any]] = None
    ) -> None:
        self.client.timer(name, value, tag_dict=tag_dict or {})

    async def connect(self) -> None:
        await self.client.connect()

    async def close(self) -> None:
        try:
            await self.client.close()
        except Exception as e:
            logger.warning("Error closing Telegraf client: %s", e)


class NoOpMetricsClient(MetricsClient):
    """
    Metrics client that records nothing.
    """

    def increment(
        self, name: str, value: Number = 1, tag_dict: Optional[Dict[str, Any]] = None
    ) -> None:
        pass

    def gauge(
        self, name: str, value: Number, tag_dict: Optional[Dict[str, Any]] = None
    ) -> None:
        pass

    def timer(
        self, name: str, value: Number, tag_dict: Optional[Dict[str, Any]] = None
    ) -> None:
        pass

    async def close(self) -> None:
        pass


def create_metrics_client(
    backend: str,
    host: str = "localhost",
    port: int = 8125,
    telegraf_client: Optional[TelegrafStatsdClient] = None,
    debug: bool = False,
) -> MetricsClient:
    """
    Create the metrics client for a backend name.

    Args:
        backend: 'telegraf' or 'none'
        host: StatsD/Telegraf host
        port: StatsD/Telegraf port
        telegraf_client: Pre-configured TelegrafStatsdClient to wrap
        debug: Enable statsd client debug output

    Raises:
        ValueError: If the backend name is unknown
    """
    backend = backend.lower()

    if backend == "telegraf":
        if telegraf_client is None:
            telegraf_client = TelegrafStatsdClient(host=host, port=port, debug=debug)
        return TelegrafCompatibilityClient(telegraf_client)

    if backend == "none":
        logger.info("Metrics collection disabled (no-op client)")
        return NoOpMetricsClient()

    raise ValueError(
        f"Invalid metrics backend: {backend}. Supported backends: 'telegraf', 'none'"
    )
