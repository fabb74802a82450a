"""``GET /health/`` for load balancers and the deploy smoke test.

The database is required for every request, so losing it is ``down``. The
cache (throttle counters) and the realtime queue only affect part of the
service, so losing either is ``degraded``.
"""

from __future__ import annotations

import uuid
from typing import Any

import redis
from django.conf import settings
from django.core.cache import cache
from django.db import connection
from django.db import transaction
from django.http import JsonResponse

REQUIRED = ("database",)
PING_TIMEOUT = 0.5


def _failed(exc: Exception) -> dict[str, Any]:
    return {"ok": False, "error": str(exc)}


def check_database() -> dict[str, Any]:
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1;")
            cursor.fetchone()
    except Exception as exc:  # noqa: BLE001
        return _failed(exc)
    return {"ok": True, "vendor": connection.vendor}


def check_cache() -> dict[str, Any]:
    key = f"health:{uuid.uuid4().hex}"
    try:
        cache.set(key, "1", timeout=5)
        hit = cache.get(key) == "1"
        cache.delete(key)
    except Exception as exc:  # noqa: BLE001
        return _failed(exc)
    if not hit:
        return {"ok": False, "error": "cache did not return the written value"}
    return {"ok": True}


def check_realtime() -> dict[str, Any]:
    """Socket.IO fan-out: in-process, or through the Redis message queue."""
    info: dict[str, Any] = {"path": f"/{settings.SOCKETIO_PATH.strip('/')}/"}
    url = getattr(settings, "SOCKETIO_MESSAGE_QUEUE", "")
    if not url:
        # Single worker; events never leave the process.
        return {"ok": True, "manager": "in-process", **info}
    info["manager"] = "redis"
    try:
        redis.Redis.from_url(
            url,
            socket_timeout=PING_TIMEOUT,
            socket_connect_timeout=PING_TIMEOUT,
        ).ping()
    except Exception as exc:  # noqa: BLE001
        return {**_failed(exc), **info}
    return {"ok": True, **info}


CHECKS = {
    "database": check_database,
    "cache": check_cache,
    "realtime": check_realtime,
}


def overall_status(components: dict[str, dict[str, Any]]) -> str:
    if any(not components[name]["ok"] for name in REQUIRED):
        return "down"
    if all(component["ok"] for component in components.values()):
        return "ok"
    return "degraded"


@transaction.non_atomic_requests
def health(request):
    components = {name: check() for name, check in CHECKS.items()}
    status = overall_status(components)
    return JsonResponse(
        {"status": status, "components": components},
        status=200 if status == "ok" else 503,
    )
