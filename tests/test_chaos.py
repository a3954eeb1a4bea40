"""Tests for the Chaos Simulator."""

import random

import pytest

from ledger_sandbox.chaos.simulator import SERVER_ERROR_CODES, ChaosSimulator
from ledger_sandbox.errors import SimulatedFaultError
from ledger_sandbox.models.chaos import ChaosCondition


@pytest.fixture
def chaos(clock):
    return ChaosSimulator(clock=clock, rng=random.Random(7))


class TestFixedConditions:
    @pytest.mark.parametrize(
        "condition,status_code",
        [
            (ChaosCondition.RATE_LIMIT, 429),
            (ChaosCondition.TIMEOUT, 408),
            (ChaosCondition.TOKEN_EXPIRED, 401),
        ],
    )
    def test_every_call_fails_with_status(self, chaos, condition, status_code):
        chaos.activate("t1", condition, 60)
        for _ in range(3):
            decision = chaos.check("t1")
            assert decision.should_fail is True
            assert decision.status_code == status_code
            assert decision.error_kind == condition

    def test_rate_limit_sets_retry_after(self, chaos):
        chaos.activate("t1", ChaosCondition.RATE_LIMIT, 60)
        decision = chaos.check("t1")
        assert decision.retry_after == 60
        assert "Rate limit exceeded" in decision.message

    def test_timeout_has_no_retry_after(self, chaos):
        chaos.activate("t1", ChaosCondition.TIMEOUT, 60)
        assert chaos.check("t1").retry_after is None

    def test_server_error_picks_5xx(self, chaos):
        chaos.activate("t1", ChaosCondition.SERVER_ERROR, 60)
        codes = {chaos.check("t1").status_code for _ in range(30)}
        assert codes <= set(SERVER_ERROR_CODES)
        assert len(codes) > 1

    def test_no_simulation_passes(self, chaos):
        decision = chaos.check("t1")
        assert decision.should_fail is False
        assert decision.status_code is None


class TestIntermittent:
    def test_half_rate_mixes_outcomes(self, chaos):
        chaos.activate("t1", ChaosCondition.INTERMITTENT, 60, failure_rate=0.5)
        outcomes = [chaos.check("t1").should_fail for _ in range(50)]
        assert any(outcomes)
        assert not all(outcomes)

    def test_failures_are_503(self, chaos):
        chaos.activate("t1", ChaosCondition.INTERMITTENT, 60, failure_rate=0.5)
        failures = [d for d in (chaos.check("t1") for _ in range(50)) if d.should_fail]
        assert all(d.status_code == 503 for d in failures)

    def test_zero_rate_never_fails(self, chaos):
        chaos.activate("t1", ChaosCondition.INTERMITTENT, 60, failure_rate=0.0)
        assert not any(chaos.check("t1").should_fail for _ in range(20))

    def test_full_rate_always_fails(self, chaos):
        chaos.activate("t1", ChaosCondition.INTERMITTENT, 60, failure_rate=1.0)
        assert all(chaos.check("t1").should_fail for _ in range(20))

    def test_rate_forced_to_one_for_other_conditions(self, chaos):
        status = chaos.activate("t1", ChaosCondition.TIMEOUT, 60, failure_rate=0.2)
        assert status.failure_rate == 1.0
        assert chaos.get_active("t1").failure_rate == 1.0


class TestActivation:
    def test_activation_status(self, chaos, clock):
        status = chaos.activate("t1", ChaosCondition.RATE_LIMIT, 120)
        assert status.status == "active"
        assert status.duration_seconds == 120
        assert (status.expires_at - clock()).total_seconds() == 120
        assert status.previous_simulation is None

    def test_replace_reports_previous(self, chaos):
        chaos.activate("t1", ChaosCondition.RATE_LIMIT, 60)
        chaos.check("t1")
        chaos.check("t1")
        status = chaos.activate("t1", ChaosCondition.TIMEOUT, 60)

        assert status.previous_simulation.condition == ChaosCondition.RATE_LIMIT
        assert status.previous_simulation.request_count == 2
        assert chaos.check("t1").status_code == 408

    def test_zero_duration_clears(self, chaos):
        chaos.activate("t1", ChaosCondition.RATE_LIMIT, 60)
        chaos.check("t1")
        status = chaos.activate("t1", ChaosCondition.RATE_LIMIT, 0)

        assert status.status == "cleared"
        assert status.previous_simulation.request_count == 1
        assert chaos.get_active("t1") is None
        assert chaos.check("t1").should_fail is False

    def test_clear(self, chaos):
        chaos.activate("t1", ChaosCondition.TOKEN_EXPIRED, 60)
        previous = chaos.clear("t1")
        assert previous.condition == ChaosCondition.TOKEN_EXPIRED
        assert chaos.clear("t1") is None

    def test_accepts_condition_string(self, chaos):
        status = chaos.activate("t1", "TIMEOUT", 60)
        assert status.condition == ChaosCondition.TIMEOUT

    @pytest.mark.parametrize("duration", [-1, 301])
    def test_rejects_duration_out_of_range(self, chaos, duration):
        with pytest.raises(ValueError):
            chaos.activate("t1", ChaosCondition.RATE_LIMIT, duration)

    @pytest.mark.parametrize("rate", [-0.1, 1.5])
    def test_rejects_failure_rate_out_of_range(self, chaos, rate):
        with pytest.raises(ValueError):
            chaos.activate("t1", ChaosCondition.INTERMITTENT, 60, failure_rate=rate)

    def test_unknown_condition(self, chaos):
        with pytest.raises(ValueError):
            chaos.activate("t1", "EARTHQUAKE", 60)

    def test_tenants_are_isolated(self, chaos):
        chaos.activate("t1", ChaosCondition.RATE_LIMIT, 60)
        assert chaos.check("t1").should_fail is True
        assert chaos.check("t2").should_fail is False


class TestExpiry:
    def test_active_until_expires_at(self, chaos, clock):
        chaos.activate("t1", ChaosCondition.RATE_LIMIT, 60)
        clock.advance(60)
        assert chaos.check("t1").should_fail is True

    def test_expired_after_expires_at(self, chaos, clock):
        chaos.activate("t1", ChaosCondition.RATE_LIMIT, 60)
        clock.advance(61)
        assert chaos.check("t1").should_fail is False
        assert chaos.get_active("t1") is None

    def test_expired_simulation_is_not_previous(self, chaos, clock):
        chaos.activate("t1", ChaosCondition.RATE_LIMIT, 60)
        clock.advance(61)
        status = chaos.activate("t1", ChaosCondition.TIMEOUT, 60)
        assert status.previous_simulation is None


class TestCounters:
    def test_request_count_runs_without_simulation(self, chaos):
        for _ in range(3):
            chaos.check("t1")
        assert chaos.request_count("t1") == 3
        assert chaos.check("t1").request_count == 4

    def test_simulation_counts_its_own_requests(self, chaos):
        chaos.check("t1")
        chaos.activate("t1", ChaosCondition.RATE_LIMIT, 60)
        chaos.check("t1")
        assert chaos.get_active("t1").request_count == 1
        assert chaos.request_count("t1") == 2


class TestEnsureHealthy:
    def test_raises_simulated_fault(self, chaos):
        chaos.activate("t1", ChaosCondition.RATE_LIMIT, 60)
        with pytest.raises(SimulatedFaultError) as exc_info:
            chaos.ensure_healthy("t1")

        failure = exc_info.value.to_failure()
        assert failure.kind == "simulated_fault"
        assert failure.recoverable is True
        assert failure.details["status_code"] == 429
        assert failure.details["retry_after"] == 60
        assert failure.recovery.next_call.name == "simulate_fault"
        assert failure.recovery.next_call.arguments["duration_seconds"] == 0

    def test_recovers_after_clear(self, chaos):
        chaos.activate("t1", ChaosCondition.TOKEN_EXPIRED, 60)
        with pytest.raises(SimulatedFaultError):
            chaos.ensure_healthy("t1")
        chaos.clear("t1")
        assert chaos.ensure_healthy("t1").should_fail is False
