"""Health checks for the key-value store and the record store."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable

from app.adapters.kv_store.base import AbstractKeyValueStore
from app.adapters.records.base import AbstractRecordStore
from app.core.errors import AppError, StoreUnavailableError
from app.schemas.admin import HealthReport, ServiceCheck

logger = logging.getLogger(__name__)

HEALTH_CHECK_KEY = "health-check"
HEALTH_CHECK_VALUE = "ok"
HEALTH_CHECK_TTL = 10


class HealthService:
    def __init__(
        self,
        store: AbstractKeyValueStore,
        records: AbstractRecordStore,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._records = records
        self._clock = clock

    def ping_store(self) -> None:
        """Write a sentinel key, read it back and delete it.

        Raises:
            StoreUnavailableError: If any round trip fails or the echo mismatches.
        """
        self._store.set(HEALTH_CHECK_KEY, HEALTH_CHECK_VALUE, HEALTH_CHECK_TTL)
        echoed = self._store.get(HEALTH_CHECK_KEY)
        if echoed != HEALTH_CHECK_VALUE:
            raise StoreUnavailableError(
                code="store_health_check_failed",
                message="Key-value store health check failed",
            )
        self._store.delete(HEALTH_CHECK_KEY)

    def _run(self, name: str, check: Callable[[], object]) -> ServiceCheck:
        try:
            check()
        except AppError as exc:
            logger.warning("health.check_failed", extra={"service": name, "error_code": exc.code})
            return ServiceCheck(status="unhealthy", message=exc.message)
        except Exception as exc:  # noqa: BLE001 - any check failure is reported, not raised
            logger.warning(
                "health.check_failed",
                extra={"service": name, "error_type": type(exc).__name__},
            )
            return ServiceCheck(status="unhealthy", message="Connection failed")
        return ServiceCheck(status="healthy", message="Connected")

    def check(self) -> HealthReport:
        services = {
            "database": self._run("database", self._records.ping),
            "store": self._run("store", self.ping_store),
        }
        healthy = all(check.status == "healthy" for check in services.values())
        return HealthReport(
            status="healthy" if healthy else "unhealthy",
            timestamp=datetime.fromtimestamp(self._clock(), tz=timezone.utc),
            services=services,
        )
