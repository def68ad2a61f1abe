"""
Per-slot mutual exclusion for booking creation.

Every check-then-insert for a booking key runs while holding the key's lock.
The in-process lock is always taken; when ``booking_lock_redis_url`` is set a
Redis ``SET NX EX`` lock is layered on top so several API processes serialize
on the same key as well. The partial unique index on ``bookings`` remains the
final guard.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
import threading
import time
from typing import Dict, Iterator, Optional
import uuid

from redis import Redis

from .config import settings
from .metrics import prometheus_metrics

logger = logging.getLogger(__name__)

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_LOCK = threading.Lock()

_REDIS_POLL_INTERVAL_S = 0.05


class _LocalLockTable:
    """Refcounted table of threading locks keyed by slot key."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, list] = {}

    def acquire(self, key: str, timeout_s: float) -> bool:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        acquired = entry[0].acquire(timeout=timeout_s)
        if not acquired:
            self._drop(key)
        return acquired

    def release(self, key: str) -> None:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                return
            entry[0].release()
        self._drop(key)

    def _drop(self, key: str) -> None:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                return
            entry[1] -= 1
            if entry[1] <= 0:
                del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


_LOCAL_LOCKS = _LocalLockTable()


def _lock_key(slot_key: str) -> str:
    return f"booking-slot:{slot_key}:mutex"


def _namespaced_key(key: str) -> str:
    return f"{settings.booking_lock_namespace}:lock:{key}"


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS
    if not settings.booking_lock_redis_url:
        return None
    if _SYNC_REDIS is not None:
        return _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None:
            return _SYNC_REDIS
        try:
            client = Redis.from_url(
                settings.booking_lock_redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            client.ping()
        except Exception as exc:
            logger.warning("slot_lock_redis_unavailable: %s", exc)
            return None
        _SYNC_REDIS = client
        return _SYNC_REDIS


def reset_sync_redis() -> None:
    """Forget the cached Redis client (tests and reconfiguration)."""
    global _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        _SYNC_REDIS = None


def _acquire_redis(client: Redis, slot_key: str, token: str, deadline: float) -> bool:
    key = _namespaced_key(_lock_key(slot_key))
    while True:
        if client.set(key, token, nx=True, ex=settings.booking_lock_ttl_s):
            return True
        if time.monotonic() >= deadline:
            return False
        time.sleep(_REDIS_POLL_INTERVAL_S)


def _release_redis(client: Redis, slot_key: str, token: str) -> None:
    key = _namespaced_key(_lock_key(slot_key))
    try:
        if client.get(key) == token:
            client.delete(key)
            prometheus_metrics.record_slot_lock("release", "success")
        else:
            prometheus_metrics.record_slot_lock("release", "not_owner")
    except Exception as exc:
        prometheus_metrics.record_slot_lock("release", "error")
        logger.warning(
            "slot_lock_redis_release_failed",
            extra={"slot_key": slot_key, "error": str(exc), "error_type": type(exc).__name__},
        )


@contextmanager
def slot_lock(slot_key: str, timeout_s: float) -> Iterator[bool]:
    """
    Hold the lock for ``slot_key`` for the duration of the block.

    Yields False when the lock could not be taken within ``timeout_s``; the
    caller decides how to surface that.
    """
    deadline = time.monotonic() + timeout_s
    if not _LOCAL_LOCKS.acquire(slot_key, timeout_s):
        prometheus_metrics.record_slot_lock("acquire", "timeout")
        yield False
        return

    client = _get_sync_redis()
    token = uuid.uuid4().hex
    redis_held = False
    try:
        if client is not None:
            try:
                redis_held = _acquire_redis(client, slot_key, token, deadline)
            except Exception as exc:
                # Redis outage degrades to process-local locking
                prometheus_metrics.record_slot_lock("acquire", "redis_error")
                logger.warning(
                    "slot_lock_redis_acquire_failed",
                    extra={
                        "slot_key": slot_key,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )
            else:
                if not redis_held:
                    prometheus_metrics.record_slot_lock("acquire", "timeout")
                    yield False
                    return
        prometheus_metrics.record_slot_lock("acquire", "success")
        yield True
    finally:
        if redis_held and client is not None:
            _release_redis(client, slot_key, token)
        _LOCAL_LOCKS.release(slot_key)


def active_local_locks() -> int:
    """Number of slot keys currently tracked in this process."""
    return len(_LOCAL_LOCKS)
