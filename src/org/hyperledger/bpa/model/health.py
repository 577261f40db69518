import asyncio


class HealthGauge:
    """
    Rough readiness signal for the resolver service.

    Every resolution task that ends in an unexpected error (not a failed lookup, which is routine) bumps the gauge.
    A background tick drains it by one every interval. A burst of failures pushes the value above the threshold and
    the readiness probe starts failing until the failures stop and the gauge drains again.
    """

    def __init__(self, value: int = 0, health_threshold: int = 50) -> None:
        self._value = value
        self._health_threshold = health_threshold
        self._lock = asyncio.Lock()

    @property
    def value(self) -> int:
        return self._value

    async def record_failure(self, weight: int = 1) -> int:
        async with self._lock:
            self._value += int(weight)
            return self._value

    async def tick(self) -> None:
        async with self._lock:
            self._value = max(self._value - 1, 0)

    async def is_healthy(self) -> bool:
        async with self._lock:
            return self._value <= self._health_threshold
