"""Configuration for sparse Bayesian network estimation."""

from pydantic import Field, field_validator
from pydantic_settings import SettingsConfigDict

from .base import BaseConfiguration, Environment


class SparsebnConfig(BaseConfiguration):
    """Library-wide defaults for DAG estimation.

    Every field can be overridden through a ``SPARSEBN_``-prefixed environment
    variable, e.g. ``SPARSEBN_EDGE_THRESHOLD_MULTIPLIER=5``.
    """

    model_config = SettingsConfigDict(
        env_prefix="SPARSEBN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Stopping rule for the solution path
    edge_threshold_multiplier: float = Field(
        default=10.0,
        description="Stop the solution path once an estimate has more than this many edges per variable",
    )

    # Coordinate descent sweeps per lambda
    max_iters_per_variable: int = Field(
        default=3, description="Sweeps allowed per variable when max_iters is not given"
    )
    min_max_iters: int = Field(
        default=10, description="Lower bound on the default number of sweeps"
    )

    # Logging
    log_level: str | None = Field(
        default=None,
        description="Explicit log level; derived from the environment when unset",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str | None) -> str | None:
        if v is None:
            return v
        allowed = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}")
        return v.upper()

    def validate_configuration(self) -> list[str]:
        """Validate sparsebn specific configuration."""
        issues = super().validate_configuration()

        if self.edge_threshold_multiplier <= 0:
            issues.append("edge_threshold_multiplier must be positive")
        if self.max_iters_per_variable < 1:
            issues.append("max_iters_per_variable must be at least 1")
        if self.min_max_iters < 1:
            issues.append("min_max_iters must be at least 1")

        if (
            self.environment == Environment.PRODUCTION
            and self.log_level == "DEBUG"
        ):
            issues.append("DEBUG logging is not recommended in production")

        return issues
