"""Sandbox configuration and environment-driven settings."""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class SandboxConfig(BaseModel):
    """Configuration for the sandbox components."""

    max_simulation_seconds: int = 300
    default_simulation_seconds: int = 60
    payment_due_days: int = 30
    max_replay_count: int = Field(ge=1, default=10)


class SandboxSettings(BaseSettings):
    """Environment-driven settings (LEDGER_SANDBOX_* variables or .env)."""

    log_level: str = "INFO"
    max_simulation_seconds: int = 300
    default_simulation_seconds: int = 60
    payment_due_days: int = 30
    max_replay_count: int = 10

    model_config = {"env_prefix": "LEDGER_SANDBOX_", "env_file": ".env", "extra": "ignore"}

    def to_config(self) -> SandboxConfig:
        return SandboxConfig(
            max_simulation_seconds=self.max_simulation_seconds,
            default_simulation_seconds=self.default_simulation_seconds,
            payment_due_days=self.payment_due_days,
            max_replay_count=self.max_replay_count,
        )
