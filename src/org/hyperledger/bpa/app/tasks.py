import asyncio
import logging
from time import time
from typing import Any, Awaitable, Callable, NoReturn, Optional, Set
import sentry_sdk

from org.hyperledger.bpa.app.metrics import MetricsClient
from org.hyperledger.bpa.model.health import HealthGauge

logger = logging.getLogger(__name__)


class TaskDispatcher:
    """
    Runs resolution work as detached asyncio tasks.

    The caller of ``spawn`` never waits for the work. Every task finishes
    either successfully or with its failure logged, counted and reported.
    Strong references to running tasks are held until they complete.
    """

    def __init__(
        self,
        metrics_client: MetricsClient,
        health_gauge: Optional[HealthGauge] = None,
    ):
        self.metrics_client = metrics_client
        self.health_gauge = health_gauge
        self._tasks: Set[asyncio.Task[bool]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(
        self,
        task_type: str,
        task_func: Callable[..., Awaitable[Any]],
        *args,
        **kwargs,
    ) -> asyncio.Task[bool]:
        """
        Schedule ``task_func(*args, **kwargs)`` without awaiting it.
        """
        task = asyncio.create_task(
            self.process_task(task_type, task_func, *args, **kwargs)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self.metrics_client.gauge("bpa.task.pending", len(self._tasks))
        return task

    async def process_task(
        self,
        task_type: str,
        task_func: Callable[..., Awaitable[Any]],
        *args,
        **kwargs,
    ) -> bool:
        """
        Run a single task with timing and metrics.
        Returns True on success, False on failure.
        """
        start_time = time()

        try:
            await task_func(*args, **kwargs)
            return True
        except Exception as e:
            sentry_sdk.capture_exception(e)
            logger.exception("Error processing %s task", task_type)

            self.metrics_client.increment(
                f"bpa.task.{task_type}.exception",
                1,
                tag_dict={"exception": type(e).__name__},
            )
            if self.health_gauge is not None:
                await self.health_gauge.record_failure()
            return False
        finally:
            self.metrics_client.timer(
                f"bpa.task.{task_type}.time", time() - start_time
            )
            self.metrics_client.increment(f"bpa.task.{task_type}.count", 1)

    async def join(self) -> None:
        """
        Wait for every task spawned so far.
        """
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """
        Cancel outstanding tasks and wait for them to unwind.
        """
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


async def tick_health_task(health_gauge: HealthGauge, interval: float = 30) -> NoReturn:
    """
    Drain the health gauge by one every ``interval`` seconds.
    """

    logger.info("Starting health gauge task")

    while True:
        await health_gauge.tick()
        await asyncio.sleep(interval)
