"""Replay harness: send the same create request several times under one key."""

import time
from typing import Callable, List, Optional
from uuid import uuid4

from ledger_sandbox.errors import InvalidRequestError
from ledger_sandbox.idempotency.store import IdempotencyStore
from ledger_sandbox.models.idempotency import ReplayAttempt, ReplayReport, ReplaySummary

REPLAY_OPERATIONS = ("create_invoice", "create_contact", "create_payment")
MAX_REPLAY_COUNT = 10


def generate_result_id(operation: str) -> str:
    prefix = operation.replace("create_", "")
    return f"{prefix}-{uuid4().hex[:8]}"


def replay_idempotency(
    store: IdempotencyStore,
    tenant_id: str,
    operation: str,
    idempotency_key: Optional[str] = None,
    replay_count: int = 3,
    max_replay_count: int = MAX_REPLAY_COUNT,
    result_id_factory: Optional[Callable[[str], str]] = None,
) -> ReplayReport:
    """
    Replay one create operation replay_count times through the store.

    Raises ValueError for an unknown operation or a replay_count outside
    1..max_replay_count, and InvalidRequestError when the key already holds
    a result written by something other than this harness.
    """
    if operation not in REPLAY_OPERATIONS:
        raise ValueError(
            f"Unsupported operation '{operation}'. Expected one of: {', '.join(REPLAY_OPERATIONS)}"
        )
    if replay_count < 1 or replay_count > max_replay_count:
        raise ValueError(f"replay_count must be between 1 and {max_replay_count}, got {replay_count}")

    key = idempotency_key or f"idem-{uuid4()}"
    make_id = result_id_factory or generate_result_id

    attempts: List[ReplayAttempt] = []
    result_ids: List[str] = []
    for attempt in range(1, replay_count + 1):
        started = time.monotonic()
        result, was_cached = store.get_or_create(
            key,
            lambda: {"result_id": make_id(operation)},
            operation=operation,
            tenant_id=tenant_id,
        )
        if not isinstance(result, dict) or "result_id" not in result:
            raise InvalidRequestError(
                f"Idempotency key '{key}' is already bound to a result that was not "
                f"produced by a {operation} replay",
                details={"idempotency_key": key, "operation": operation},
            )
        result_id = result["result_id"]
        if result_id not in result_ids:
            result_ids.append(result_id)
        attempts.append(
            ReplayAttempt(
                attempt=attempt,
                idempotency_key=key,
                result_id=result_id,
                was_cached=was_cached,
                response_time_ms=(time.monotonic() - started) * 1000,
            )
        )

    cached = sum(1 for a in attempts if a.was_cached)
    return ReplayReport(
        tenant_id=tenant_id,
        operation=operation,
        idempotency_key=key,
        replay_count=replay_count,
        attempts=attempts,
        idempotency_maintained=len(result_ids) == 1,
        unique_result_ids=result_ids,
        summary=ReplaySummary(
            total_attempts=replay_count,
            cached_responses=cached,
            new_creations=replay_count - cached,
        ),
    )
