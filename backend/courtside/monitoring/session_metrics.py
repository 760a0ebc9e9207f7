# backend/courtside/monitoring/session_metrics.py
"""
Session metrics hook.

Counters keyed by (owner, month, day) for sessions created, completed and
cancelled. Callers invoke the hook after their transaction commits; a
failing backend is logged and never reaches the caller.

Prometheus only sees the service type and metric. The owner and period key
goes to a pluggable backend; the default one keeps a bounded number of keys
in process.
"""

from collections import OrderedDict
from datetime import date
import logging
from threading import Lock
from typing import Callable, Optional, Tuple

from ..core.config import settings
from ..core.enums import ServiceType, SessionMetric
from .prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

IncrementBackend = Callable[[str, str, str, str, str, int], None]
CounterKey = Tuple[str, str, str, str, str]


class BoundedCounterStore:
    """
    In-process counters for the most recently touched ``max_keys`` keys.

    Keys are (service_type, owner_id, month, day, metric). When full, the
    least recently touched key is evicted.
    """

    def __init__(self, max_keys: Optional[int] = None):
        self.max_keys = max_keys or settings.session_metrics_max_keys
        self._counts: "OrderedDict[CounterKey, int]" = OrderedDict()
        self._lock = Lock()

    def __call__(
        self, service_type: str, owner_id: str, month: str, day: str, metric: str, amount: int
    ) -> None:
        key = (service_type, owner_id, month, day, metric)
        with self._lock:
            self._counts[key] = self._counts.pop(key, 0) + amount
            while len(self._counts) > self.max_keys:
                evicted, count = self._counts.popitem(last=False)
                logger.debug("Evicted session counter %s=%d", evicted, count)

    def get(self, service_type: str, owner_id: str, on_date: date, metric: str) -> int:
        key = (service_type, owner_id, on_date.strftime("%Y-%m"), on_date.isoformat(), metric)
        with self._lock:
            return self._counts.get(key, 0)

    def __len__(self) -> int:
        return len(self._counts)


class SessionMetricsHook:
    """Fire-and-forget counter increments for session lifecycle events."""

    def __init__(self, backend: Optional[IncrementBackend] = None):
        self._backend = backend or BoundedCounterStore()

    def increment(
        self,
        service_type: ServiceType,
        owner_id: str,
        metric: SessionMetric,
        on_date: date,
        amount: int = 1,
    ) -> bool:
        """Record ``amount`` events; returns False if the backend failed."""
        try:
            service_type_value = ServiceType(service_type).value
            metric_value = SessionMetric(metric).value
            prometheus_metrics.inc_session_event(service_type_value, metric_value, amount)
            self._backend(
                service_type_value,
                str(owner_id),
                on_date.strftime("%Y-%m"),
                on_date.isoformat(),
                metric_value,
                amount,
            )
            return True
        except Exception as exc:
            logger.warning(
                "Session metric increment failed",
                extra={
                    "service_type": str(service_type),
                    "owner_id": owner_id,
                    "metric": str(metric),
                    "error": str(exc),
                },
            )
            return False

    def session_created(self, service_type: ServiceType, owner_id: str, on_date: date) -> bool:
        return self.increment(service_type, owner_id, SessionMetric.TOTAL_SESSIONS, on_date)

    def session_completed(self, service_type: ServiceType, owner_id: str, on_date: date) -> bool:
        return self.increment(service_type, owner_id, SessionMetric.COMPLETED_SESSIONS, on_date)

    def session_cancelled(self, service_type: ServiceType, owner_id: str, on_date: date) -> bool:
        return self.increment(service_type, owner_id, SessionMetric.CANCELLED_SESSIONS, on_date)


session_metrics = SessionMetricsHook()
