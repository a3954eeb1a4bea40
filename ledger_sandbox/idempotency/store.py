"""
Idempotency Store — at-most-one producer execution per key.

Keys are scoped by (tenant_id, operation): the same key sent by two tenants,
or for two different operations, names two independent records.
Records live for the process lifetime; nothing is evicted or expired.
A record's result is written once and never replaced; replays only bump
replay_count.
"""

import copy
import logging
import threading
from collections import Counter
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

from ledger_sandbox.models.idempotency import IdempotencyRecord

logger = logging.getLogger(__name__)

ScopedKey = Tuple[Optional[str], str, str]     # tenant_id, operation, key


def _scope(key: str, operation: str, tenant_id: Optional[str]) -> ScopedKey:
    return (tenant_id, operation, key)


class IdempotencyStore:
    """
    In-memory (tenant, operation, key) → result map.

    A store-level lock guards the maps; a per-key lock serialises producers
    so concurrent callers sharing a scoped key never run two of them.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.utcnow):
        self._clock = clock
        self._records: Dict[ScopedKey, IdempotencyRecord] = {}
        self._key_locks: Dict[ScopedKey, threading.Lock] = {}
        self._lock = threading.Lock()

    def get_or_create(
        self,
        key: str,
        producer: Callable[[], Any],
        operation: str = "",
        tenant_id: Optional[str] = None,
    ) -> Tuple[Any, bool]:
        """
        Return (result, was_cached).

        The first call for a scoped key runs producer() and stores its result.
        Later calls return a copy of that result whatever the caller passed.
        If producer() raises, nothing is stored and the exception propagates.
        """
        scoped = _scope(key, operation, tenant_id)
        with self._lock:
            key_lock = self._key_locks.setdefault(scoped, threading.Lock())

        with key_lock:
            with self._lock:
                record = self._records.get(scoped)
                if record is not None:
                    record.replay_count += 1
                    logger.info(
                        "Replayed idempotency key %s (%s, tenant %s), replay #%d",
                        key, record.operation, tenant_id, record.replay_count,
                    )
                    return copy.deepcopy(record.result), True

            result = producer()

            with self._lock:
                self._records[scoped] = IdempotencyRecord(
                    key=key,
                    operation=operation,
                    tenant_id=tenant_id,
                    result=copy.deepcopy(result),
                    created_at=self._clock(),
                )
            logger.info(
                "Stored idempotency key %s for %s (tenant %s)",
                key, operation or "operation", tenant_id,
            )
            return result, False

    def get_record(
        self, key: str, operation: str = "", tenant_id: Optional[str] = None
    ) -> Optional[IdempotencyRecord]:
        with self._lock:
            record = self._records.get(_scope(key, operation, tenant_id))
            return record.model_copy(deep=True) if record else None

    def stats(self, tenant_id: Optional[str] = None) -> dict:
        """Entry counts, optionally for one tenant, grouped by operation."""
        with self._lock:
            records = [
                r for r in self._records.values()
                if tenant_id is None or r.tenant_id == tenant_id
            ]
        by_operation = Counter(r.operation for r in records)
        return {"total_entries": len(records), "by_operation": dict(by_operation)}

    def clear_tenant(self, tenant_id: str) -> int:
        """Forget every record of one tenant. Returns how many were dropped."""
        with self._lock:
            scoped_keys = [s for s in self._records if s[0] == tenant_id]
            for scoped in scoped_keys:
                del self._records[scoped]
        return len(scoped_keys)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._key_locks.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
