"""
Configuration management for healsim.

Uses pydantic-settings so every simulation constant can be overridden
through HEALSIM_* environment variables or a local .env file.
"""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SimulatorSettings(BaseSettings):
    """Tunable constants of the simulated system."""

    model_config = SettingsConfigDict(
        env_prefix="HEALSIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Entity pools
    process_count: int = Field(default=6, ge=0, le=100, description="Processes created at start")
    pid_base: int = Field(default=1001, ge=1, description="First PID assigned")

    # Background drift
    drift_interval: float = Field(
        default=2.0,
        ge=0.1,
        description="Seconds between drift ticks",
    )

    # Log buffer
    log_capacity: int = Field(default=100, ge=1, description="Log entries retained")
    log_view_limit: int = Field(default=50, ge=1, description="Log entries returned per read")

    # Metric bounds
    cpu_floor: float = Field(
        default=0.0,
        ge=0.0,
        le=0.0,
        description="Lowest cpu after clamping; crashed processes report 0",
    )
    cpu_ceiling: float = Field(default=99.0, le=100.0)
    drift_cpu_floor: float = Field(
        default=0.5,
        ge=0.0,
        description="Lowest cpu a running process drifts down to",
    )
    memory_floor: float = Field(default=10.0, gt=0.0)
    memory_ceiling: float = Field(default=900.0)
    memory_scale: float = Field(
        default=10.0,
        gt=0.0,
        description="Divisor turning mean memory (MB) into a percentage",
    )

    # Faults
    freeze_backdate: float = Field(
        default=60.0,
        ge=0.0,
        description="Seconds a frozen process heartbeat is moved into the past",
    )

    # Logging / dashboard
    log_level: str = Field(default="INFO", description="Logging level")
    refresh_interval: float = Field(default=0.5, gt=0.0, description="Dashboard refresh rate")

    @model_validator(mode="after")
    def _check_bounds(self) -> "SimulatorSettings":
        if self.cpu_floor >= self.cpu_ceiling:
            raise ValueError("cpu_floor must be below cpu_ceiling")
        if not self.cpu_floor <= self.drift_cpu_floor < self.cpu_ceiling:
            raise ValueError("drift_cpu_floor must lie within [cpu_floor, cpu_ceiling)")
        if self.memory_floor >= self.memory_ceiling:
            raise ValueError("memory_floor must be below memory_ceiling")
        if self.log_view_limit > self.log_capacity:
            raise ValueError("log_view_limit cannot exceed log_capacity")
        return self


@lru_cache
def get_settings() -> SimulatorSettings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure single instance throughout application.
    """
    return SimulatorSettings()
