"""Generation settings for tileweave.

The solver only needs the grid size, the collapse factor and a label map;
everything else here feeds the label distribution and the retry driver.
Settings are validated once, up front, and any problem surfaces as a
ConfigurationError.
"""

from __future__ import annotations

import os
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .core.errors import ConfigurationError

ENV_PREFIX = "TILEWEAVE_"


class DistributionMethod(str, Enum):
    """How fixed labels are spread over the grid."""

    GROWING_REGIONS = "growing_regions"
    HORIZONTAL = "horizontal"
    RADIAL = "radial"
    PERLIN_NOISE = "perlin_noise"

    @classmethod
    def parse(cls, value: object) -> DistributionMethod:
        """Accept a member, its value, its name, CamelCase ("GrowingRegions") or an index 0-3.

        Raises:
            ConfigurationError: If the value names no distribution method
        """
        if isinstance(value, cls):
            return value

        members = list(cls)
        if isinstance(value, int) and not isinstance(value, bool):
            if 0 <= value < len(members):
                return members[value]
        elif isinstance(value, str):
            text = value.strip()
            if text.isdecimal() and int(text) < len(members):
                return members[int(text)]
            if text.upper() in cls.__members__:
                return cls[text.upper()]
            snake = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", text).lower().replace("-", "_").replace(" ", "_")
            for member in members:
                if member.value == snake:
                    return member

        choices = ", ".join(m.value for m in members)
        raise ConfigurationError(
            f"Unknown distribution method {value!r} (expected one of: {choices})",
            field="distribution",
        )


class GenerationConfig(BaseModel):
    """Settings consumed by the solver at (re)start.

    Immutable: use with_updates() to derive a changed copy.
    """

    model_config = ConfigDict(frozen=True)

    width: int = Field(default=20, gt=0)
    height: int = Field(default=20, gt=0)
    collapse_factor: int = Field(default=10, ge=1)
    distribution: DistributionMethod = DistributionMethod.GROWING_REGIONS
    min_value: int = 1
    max_value: int = 5
    seed: int | None = None

    # Driver settings
    max_retries: int = Field(default=5, ge=1)
    max_ticks: int | None = Field(default=None, gt=0)

    @field_validator("distribution", mode="before")
    @classmethod
    def _parse_distribution(cls, value: Any) -> DistributionMethod:
        return DistributionMethod.parse(value)

    @model_validator(mode="after")
    def _check_value_range(self) -> GenerationConfig:
        if self.min_value > self.max_value:
            raise ValueError(
                f"min_value ({self.min_value}) must not exceed max_value ({self.max_value})"
            )
        return self

    @classmethod
    def create(cls, **values: Any) -> GenerationConfig:
        """Validate settings, reporting the first problem as a ConfigurationError."""
        try:
            return cls(**values)
        except ValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error["loc"]) or None
            location = f"{field}: " if field else ""
            raise ConfigurationError(f"Invalid configuration: {location}{error['msg']}", field=field) from e

    @classmethod
    def from_env(cls, **overrides: Any) -> GenerationConfig:
        """Build settings from TILEWEAVE_* environment variables, then apply overrides.

        e.g. TILEWEAVE_WIDTH=30, TILEWEAVE_DISTRIBUTION=radial
        """
        values: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw.strip() != "":
                values[name] = raw.strip()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.create(**values)

    def with_updates(self, **changes: Any) -> GenerationConfig:
        """Return a validated copy with some settings changed."""
        return type(self).create(**{**self.model_dump(), **changes})
