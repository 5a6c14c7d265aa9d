"""
Engine configuration.

``GeneticConfig`` is the immutable knob set handed to the engine; ``Settings``
loads the same knobs from ``ENERGY_SCHEDULER_*`` environment variables.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class FitnessWeights:
    energy: float = 0.40
    complexity: float = 0.25
    distribution: float = 0.15
    deadline: float = 0.20

    def __post_init__(self) -> None:
        for weight in fields(self):
            if getattr(self, weight.name) < 0:
                raise ConfigurationError(
                    f"Fitness weight '{weight.name}' must not be negative", weight.name
                )


@dataclass(frozen=True)
class GeneticConfig:
    population_size: int = 50
    crossover_rate: float = 0.8
    mutation_rate: float = 0.1
    elitism_count: int = 5
    generations: int = 100
    tournament_size: int = 3
    default_session_hours: float = 2.0
    min_slot_hours: float = 1.0
    mutation_shift_hours: float = 3.0
    mutation_duration_minutes: float = 30.0
    min_session_hours: float = 1.0
    max_workers: int = 4
    max_time_in_seconds: float | None = None
    random_seed: int | None = None
    weights: FitnessWeights = field(default_factory=FitnessWeights)

    def __post_init__(self) -> None:
        if self.population_size < 1:
            raise ConfigurationError("population_size must be at least 1", "population_size")
        if not 0 <= self.elitism_count <= self.population_size:
            raise ConfigurationError(
                "elitism_count must be between 0 and population_size", "elitism_count"
            )
        if self.tournament_size < 1:
            raise ConfigurationError("tournament_size must be at least 1", "tournament_size")
        if self.generations < 0:
            raise ConfigurationError("generations must not be negative", "generations")
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1", "max_workers")
        for name in ("crossover_rate", "mutation_rate"):
            if not 0.0 <= getattr(self, name) <= 1.0:
                raise ConfigurationError(f"{name} must be within [0, 1]", name)
        for name in ("default_session_hours", "min_slot_hours", "min_session_hours"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive", name)
        for name in ("mutation_shift_hours", "mutation_duration_minutes"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must not be negative", name)
        if self.max_time_in_seconds is not None and self.max_time_in_seconds <= 0:
            raise ConfigurationError(
                "max_time_in_seconds must be positive", "max_time_in_seconds"
            )

    def with_overrides(self, **changes: Any) -> GeneticConfig:
        """Validated copy with ``changes`` applied; ``None`` values are ignored.

        A ``weights`` mapping updates the current weights key by key.
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")
        applied = {key: value for key, value in changes.items() if value is not None}
        try:
            if isinstance(applied.get("weights"), dict):
                applied["weights"] = replace(self.weights, **applied["weights"])
            return replace(self, **applied)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration override: {e}") from e


class Settings(BaseSettings):
    """Engine settings loaded from the environment"""

    population_size: int = Field(default=50, ge=1, description="Candidates per generation")
    crossover_rate: float = Field(default=0.8, ge=0.0, le=1.0)
    mutation_rate: float = Field(default=0.1, ge=0.0, le=1.0)
    elitism_count: int = Field(default=5, ge=0, description="Candidates carried unchanged")
    generations: int = Field(default=100, ge=0)
    tournament_size: int = Field(default=3, ge=1)
    default_session_hours: float = Field(default=2.0, gt=0)
    min_slot_hours: float = Field(default=1.0, gt=0)
    mutation_shift_hours: float = Field(default=3.0, ge=0)
    mutation_duration_minutes: float = Field(default=30.0, ge=0)
    min_session_hours: float = Field(default=1.0, gt=0)
    max_workers: int = Field(default=4, ge=1, description="Evaluation worker threads")
    max_time_in_seconds: float | None = Field(
        default=None, description="Stop after the current generation once exceeded"
    )
    random_seed: int | None = Field(default=None)
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Accept standard logging level names only"""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("max_time_in_seconds")
    @classmethod
    def validate_time_limit(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("max_time_in_seconds must be positive")
        return v

    def to_genetic_config(self) -> GeneticConfig:
        return GeneticConfig(
            population_size=self.population_size,
            crossover_rate=self.crossover_rate,
            mutation_rate=self.mutation_rate,
            elitism_count=min(self.elitism_count, self.population_size),
            generations=self.generations,
            tournament_size=self.tournament_size,
            default_session_hours=self.default_session_hours,
            min_slot_hours=self.min_slot_hours,
            mutation_shift_hours=self.mutation_shift_hours,
            mutation_duration_minutes=self.mutation_duration_minutes,
            min_session_hours=self.min_session_hours,
            max_workers=self.max_workers,
            max_time_in_seconds=self.max_time_in_seconds,
            random_seed=self.random_seed,
        )

    model_config = SettingsConfigDict(
        env_prefix="ENERGY_SCHEDULER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
