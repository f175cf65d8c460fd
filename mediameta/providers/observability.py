"""Circuit breaker and metrics tracking for provider calls."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, DefaultDict

from mediameta.providers.errors import NotFoundError, UpstreamError
from mediameta.utils.redaction import redact_secrets

logger = logging.getLogger("mediameta.providers.observability")


class CircuitOpenError(UpstreamError):
    """Raised when a source circuit is open and calls are temporarily blocked."""


@dataclass
class CircuitBreakerState:
    """Track per-source failure streaks and cooldown windows."""
    threshold: int = 3
    base_backoff_seconds: float = 15.0
    max_backoff_seconds: float = 300.0
    failure_streak: int = 0
    open_until: float = 0.0
    current_backoff: float = field(init=False)
    opened_count: int = 0

    def __post_init__(self) -> None:
        self.current_backoff = self.base_backoff_seconds

    def can_call(self) -> bool:
        """Return True if the circuit is closed and calls are allowed."""
        return time.monotonic() >= self.open_until

    def remaining_cooldown(self) -> float:
        if self.can_call():
            return 0.0
        return self.open_until - time.monotonic()

    def record_success(self) -> None:
        self.failure_streak = 0
        self.open_until = 0.0
        self.current_backoff = self.base_backoff_seconds

    def record_failure(self) -> None:
        """Advance circuit state and open on threshold breaches."""
        self.failure_streak += 1
        if self.failure_streak < self.threshold:
            return
        self.open_until = time.monotonic() + self.current_backoff
        self.failure_streak = 0
        self.opened_count += 1
        self.current_backoff = min(self.current_backoff * 2, self.max_backoff_seconds)

    def snapshot(self) -> dict[str, Any]:
        return {
            "failure_streak": self.failure_streak,
            "open_until": self.open_until,
            "remaining_cooldown": self.remaining_cooldown(),
            "current_backoff": self.current_backoff,
            "opened_count": self.opened_count,
        }


@dataclass
class OperationMetrics:
    """Aggregated counters for a source operation."""
    started: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    last_latency_ms: float | None = None
    last_error: str | None = None


class ProviderMonitor:
    """Track provider call outcomes and enforce circuit breaking.

    Upstream failures other than ``NotFoundError`` count against a circuit.
    Any other exception, normalization assertion failures included, is a
    defect and is re-raised untouched after being logged.
    """
    def __init__(
        self,
        *,
        circuit_threshold: int = 3,
        base_backoff_seconds: float = 15.0,
        max_backoff_seconds: float = 300.0,
    ) -> None:
        self._metrics: DefaultDict[str, DefaultDict[str, OperationMetrics]] = defaultdict(
            lambda: defaultdict(OperationMetrics)
        )
        self._circuits: DefaultDict[str, CircuitBreakerState] = defaultdict(
            lambda: CircuitBreakerState(
                threshold=circuit_threshold,
                base_backoff_seconds=base_backoff_seconds,
                max_backoff_seconds=max_backoff_seconds,
            )
        )
        self._lock = asyncio.Lock()

    def allow_call(self, source: str) -> bool:
        return self._circuits[source].can_call()

    async def track(
        self,
        source: str,
        operation: str,
        func: Callable[[], Awaitable[Any]],
        *,
        context: dict[str, Any] | None = None,
    ) -> Any:
        """Execute a provider call while tracking metrics and circuit state."""
        context = context or {}
        async with self._lock:
            circuit = self._circuits[source]
            metrics = self._metrics[source][operation]
            if not circuit.can_call():
                remaining = circuit.remaining_cooldown()
                metrics.skipped += 1
                payload = {
                    "event": "provider_circuit_open",
                    "source": source,
                    "operation": operation,
                    "context": context,
                    "remaining_cooldown": remaining,
                }
                logger.warning(json.dumps(payload))
                raise CircuitOpenError(f"{source} circuit open for {remaining:.2f}s")
            metrics.started += 1

        start = time.monotonic()
        try:
            result = await func()
        except UpstreamError as exc:
            latency_ms = (time.monotonic() - start) * 1000
            error = redact_secrets(str(exc))
            async with self._lock:
                metrics = self._metrics[source][operation]
                metrics.failed += 1
                metrics.last_latency_ms = latency_ms
                metrics.last_error = error
                if not isinstance(exc, NotFoundError):
                    self._circuits[source].record_failure()
                payload = {
                    "event": "provider_failure",
                    "source": source,
                    "operation": operation,
                    "error_type": type(exc).__name__,
                    "error": error,
                    "latency_ms": round(latency_ms, 2),
                    "context": context,
                    "circuit": self._circuits[source].snapshot(),
                }
            logger.warning(json.dumps(payload))
            raise
        except Exception as exc:
            async with self._lock:
                self._metrics[source][operation].failed += 1
            logger.error(
                json.dumps(
                    {
                        "event": "provider_defect",
                        "source": source,
                        "operation": operation,
                        "error_type": type(exc).__name__,
                        "error": redact_secrets(str(exc)),
                        "context": context,
                    }
                )
            )
            raise

        latency_ms = (time.monotonic() - start) * 1000
        async with self._lock:
            metrics = self._metrics[source][operation]
            metrics.succeeded += 1
            metrics.last_latency_ms = latency_ms
            metrics.last_error = None
            self._circuits[source].record_success()
            payload = {
                "event": "provider_success",
                "source": source,
                "operation": operation,
                "latency_ms": round(latency_ms, 2),
                "context": context,
                "circuit": self._circuits[source].snapshot(),
            }
        logger.info(json.dumps(payload))
        return result

    async def snapshot(self) -> dict[str, Any]:
        """Return a snapshot of all tracked source metrics."""
        async with self._lock:
            snap: dict[str, Any] = {}
            for source, operations in self._metrics.items():
                snap[source] = {
                    "circuit": self._circuits[source].snapshot(),
                    "operations": {
                        name: {
                            "started": metrics.started,
                            "succeeded": metrics.succeeded,
                            "failed": metrics.failed,
                            "skipped": metrics.skipped,
                            "last_latency_ms": metrics.last_latency_ms,
                            "last_error": metrics.last_error,
                        }
                        for name, metrics in operations.items()
                    },
                }
            return snap
