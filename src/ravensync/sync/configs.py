"""Sync configuration models.

See Also:
    [SyncOrchestrator][ravensync.sync.orchestrator.SyncOrchestrator]: The
        coordinator that consumes these configurations.
    [load_yaml()][ravensync.core.yaml.load_yaml]: Loads the raw dictionary
        validated by [SyncConfig][ravensync.sync.configs.SyncConfig].
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from ravensync.core.metrics import MetricsConfig
from ravensync.utils.keys import KeysConfig


class SchedulerConfig(BaseModel):
    """Poll cadence of the [PollScheduler][ravensync.sync.scheduler.PollScheduler].

    Note:
        The first ``listen`` after the relay client becomes ready uses the
        short ``initial_delay`` so the initial sync resolves quickly; every
        later one waits ``steady_delay`` to limit relay load.
    """

    initial_delay: float = Field(
        default=0.5,
        ge=0.0,
        le=60.0,
        description="Seconds before the first listen after readiness",
    )
    steady_delay: float = Field(
        default=10.0,
        ge=0.1,
        le=3600.0,
        description="Seconds between subsequent listen calls",
    )

    @model_validator(mode="after")
    def _check_delays(self) -> SchedulerConfig:
        if self.initial_delay > self.steady_delay:
            raise ValueError(
                f"initial_delay ({self.initial_delay}) must not exceed "
                f"steady_delay ({self.steady_delay})"
            )
        return self


class LoggingConfig(BaseModel):
    """Output format of the sync components' structured loggers."""

    json_output: bool = Field(default=False, description="Emit JSON instead of key=value")
    max_value_length: int = Field(
        default=1000, ge=16, description="Truncate logged values beyond this length"
    )


class SyncConfig(BaseModel):
    """Top-level configuration for a [SyncOrchestrator][ravensync.sync.orchestrator.SyncOrchestrator].

    Attributes:
        scheduler: Poll cadence.
        logging: Logger output format.
        metrics: Prometheus recording and endpoint.
        keys: Optional key pair of the local user, loaded from the
            environment. Provides the local public key when none is passed
            to the orchestrator explicitly.
    """

    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    keys: KeysConfig | None = Field(default=None, description="Local user key pair")
