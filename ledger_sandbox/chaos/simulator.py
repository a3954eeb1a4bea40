"""
Chaos Simulator — per-tenant fault injection for resilience testing.

Holds at most one active fault condition per tenant. Every mutating
operation consults check() (or ensure_healthy()) before doing any work.
Expiry is lazy: a condition past its expires_at is dropped on the next
check rather than by a background sweep.
"""

import logging
import random
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from ledger_sandbox.errors import SimulatedFaultError
from ledger_sandbox.models.chaos import (
    ChaosCondition,
    FaultDecision,
    PreviousSimulation,
    SimulationState,
    SimulationStatus,
)
from ledger_sandbox.models.config import SandboxConfig

logger = logging.getLogger(__name__)

RATE_LIMIT_RETRY_AFTER = 60
SERVER_ERROR_CODES = [500, 502, 503]

_FIXED_FAULTS = {
    ChaosCondition.RATE_LIMIT: (
        429, "Rate limit exceeded. Xero allows 60 requests per minute per tenant."
    ),
    ChaosCondition.TIMEOUT: (408, "Request timeout. The server took too long to respond."),
    ChaosCondition.TOKEN_EXPIRED: (401, "OAuth token has expired. Re-authentication required."),
}


class ChaosSimulator:
    """
    Injectable fault-injection state. One instance per sandbox; tests build
    their own with a fixed clock and a seeded rng.
    """

    def __init__(
        self,
        config: Optional[SandboxConfig] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
        rng: Optional[random.Random] = None,
    ):
        self.config = config or SandboxConfig()
        self._clock = clock
        self._rng = rng or random.Random()
        self._simulations: Dict[str, SimulationState] = {}
        self._request_counts: Dict[str, int] = {}
        self._lock = threading.Lock()

    def activate(
        self,
        tenant_id: str,
        condition: ChaosCondition,
        duration_seconds: int,
        failure_rate: float = 1.0,
    ) -> SimulationStatus:
        """
        Install, replace or clear (duration_seconds == 0) the tenant's condition.

        Raises ValueError for a duration outside 0..max_simulation_seconds or a
        failure_rate outside 0..1.
        """
        condition = ChaosCondition(condition)
        if duration_seconds < 0 or duration_seconds > self.config.max_simulation_seconds:
            raise ValueError(
                f"duration_seconds must be between 0 and "
                f"{self.config.max_simulation_seconds}, got {duration_seconds}"
            )
        if failure_rate < 0.0 or failure_rate > 1.0:
            raise ValueError(f"failure_rate must be between 0.0 and 1.0, got {failure_rate}")

        now = self._clock()
        with self._lock:
            existing = self._live_simulation(tenant_id, now)
            previous = (
                PreviousSimulation(condition=existing.condition, request_count=existing.request_count)
                if existing
                else None
            )

            if duration_seconds == 0:
                self._simulations.pop(tenant_id, None)
                if existing:
                    logger.info(
                        "Cleared %s simulation for tenant %s after %d request(s)",
                        existing.condition.value, tenant_id, existing.request_count,
                    )
                return SimulationStatus(
                    tenant_id=tenant_id,
                    condition=condition,
                    duration_seconds=0,
                    failure_rate=failure_rate,
                    expires_at=now,
                    status="cleared",
                    previous_simulation=previous,
                )

            state = SimulationState(
                tenant_id=tenant_id,
                condition=condition,
                expires_at=now + timedelta(seconds=duration_seconds),
                failure_rate=failure_rate if condition == ChaosCondition.INTERMITTENT else 1.0,
            )
            self._simulations[tenant_id] = state

        logger.info(
            "Activated %s simulation for tenant %s for %ds (failure_rate=%.2f)",
            condition.value, tenant_id, duration_seconds, state.failure_rate,
        )
        return SimulationStatus(
            tenant_id=tenant_id,
            condition=condition,
            duration_seconds=duration_seconds,
            failure_rate=state.failure_rate,
            expires_at=state.expires_at,
            status="active",
            previous_simulation=previous,
        )

    def clear(self, tenant_id: str) -> Optional[PreviousSimulation]:
        """Drop the tenant's condition, returning it if one was live."""
        with self._lock:
            existing = self._live_simulation(tenant_id, self._clock())
            self._simulations.pop(tenant_id, None)
        if existing is None:
            return None
        return PreviousSimulation(condition=existing.condition, request_count=existing.request_count)

    def get_active(self, tenant_id: str) -> Optional[SimulationState]:
        """A copy of the tenant's live condition, or None."""
        with self._lock:
            state = self._live_simulation(tenant_id, self._clock())
            return state.model_copy() if state else None

    def request_count(self, tenant_id: str) -> int:
        """Checks performed for the tenant, active condition or not."""
        with self._lock:
            return self._request_counts.get(tenant_id, 0)

    def check(self, tenant_id: str) -> FaultDecision:
        """Decide whether the current call should fail."""
        with self._lock:
            count = self._request_counts.get(tenant_id, 0) + 1
            self._request_counts[tenant_id] = count

            state = self._live_simulation(tenant_id, self._clock())
            if state is None:
                return FaultDecision(tenant_id=tenant_id, should_fail=False, request_count=count)

            state.request_count += 1
            condition = state.condition
            if condition in _FIXED_FAULTS:
                status_code, message = _FIXED_FAULTS[condition]
            elif condition == ChaosCondition.SERVER_ERROR:
                status_code = self._rng.choice(SERVER_ERROR_CODES)
                message = f"Server error ({status_code}). Xero is experiencing issues."
            elif self._rng.random() < state.failure_rate:
                status_code = 503
                message = "Intermittent failure. Service temporarily unavailable."
            else:
                return FaultDecision(tenant_id=tenant_id, should_fail=False, request_count=count)

        return FaultDecision(
            tenant_id=tenant_id,
            should_fail=True,
            error_kind=condition,
            status_code=status_code,
            message=message,
            retry_after=RATE_LIMIT_RETRY_AFTER if condition == ChaosCondition.RATE_LIMIT else None,
            request_count=count,
        )

    def ensure_healthy(self, tenant_id: str) -> FaultDecision:
        """check(), raising SimulatedFaultError when the call should fail."""
        decision = self.check(tenant_id)
        if decision.should_fail:
            logger.warning(
                "Injected %s fault (%s) for tenant %s",
                decision.error_kind.value, decision.status_code, tenant_id,
            )
            raise SimulatedFaultError(decision)
        return decision

    def _live_simulation(self, tenant_id: str, now: datetime) -> Optional[SimulationState]:
        # Caller holds the lock.
        state = self._simulations.get(tenant_id)
        if state is None:
            return None
        if now > state.expires_at:
            del self._simulations[tenant_id]
            logger.info("%s simulation for tenant %s expired", state.condition.value, tenant_id)
            return None
        return state
