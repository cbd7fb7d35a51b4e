"""
Catalog Service health aggregation.

Checks return a dict with at least a ``status`` of ``healthy``, ``degraded``
or ``unhealthy``. A check may be a plain function or a coroutine function. A
check that raises counts as unhealthy. The overall status is the worst one
reported, so a degraded Kafka link never marks the catalog as down.
"""

import inspect
import time
from typing import Any, Awaitable, Callable, Dict, Union

CheckResult = Dict[str, Any]
Check = Callable[[], Union[CheckResult, Awaitable[CheckResult]]]

_SEVERITY = {"healthy": 0, "degraded": 1, "unhealthy": 2}


class CatalogServiceHealthChecker:
    def __init__(self, service_name: str = "catalog_service", version: str = "1.0.0") -> None:
        self.service_name = service_name
        self.version = version
        self.checks: Dict[str, Check] = {}
        self.start_time = time.time()

    def add_check(self, name: str, check: Check) -> None:
        self.checks[name] = check

    async def _run_check(self, check: Check) -> CheckResult:
        started = time.perf_counter()
        try:
            result = check()
            if inspect.isawaitable(result):
                result = await result
            result = dict(result)
        except Exception as e:
            result = {"status": "unhealthy", "error": str(e)}
        result["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
        return result

    async def run_checks(self) -> Dict[str, Any]:
        started = time.perf_counter()
        checks = {name: await self._run_check(check) for name, check in self.checks.items()}

        worst = max(
            (_SEVERITY.get(check.get("status"), 2) for check in checks.values()),
            default=0,
        )
        status = next(name for name, level in _SEVERITY.items() if level == worst)

        return {
            "service": self.service_name,
            "version": self.version,
            "status": status,
            "checks": checks,
            "total_duration_ms": round((time.perf_counter() - started) * 1000, 2),
            "uptime_seconds": round(time.time() - self.start_time, 2),
            "timestamp": time.time(),
        }
