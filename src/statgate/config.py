"""Configuration dataclasses for the test-selection engine."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Optional, Dict, Any

from statgate.errors import InvalidParameterError, InvalidShapeError

logger = logging.getLogger(__name__)


class Alternative(str, Enum):
    """Direction of the alternative hypothesis."""

    TWO_SIDED = "two-sided"
    LESS = "less"
    GREATER = "greater"

    @classmethod
    def parse(cls, value: Any) -> Alternative:
        """Coerce a string (or Alternative) into an Alternative."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = [a.value for a in cls]
            raise InvalidParameterError(
                f"alternative must be one of {valid}, got {value!r}"
            ) from None


class TestShape(str, Enum):
    """Layout of the compared samples."""

    __test__ = False  # not a pytest class

    ONE_SAMPLE = "one_sample"
    TWO_SAMPLE = "two_sample"
    PAIRED = "paired"
    MULTI_GROUP = "multi_group"

    @classmethod
    def parse(cls, value: Any) -> TestShape:
        """Coerce a string (or TestShape) into a TestShape."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower().replace("-", "_"))
        except ValueError:
            valid = [s.value for s in cls]
            raise InvalidShapeError(f"shape must be one of {valid}, got {value!r}") from None

    @property
    def n_groups(self) -> Optional[int]:
        """Exact number of groups the shape needs (None = three or more)."""
        return {
            TestShape.ONE_SAMPLE: 1,
            TestShape.TWO_SAMPLE: 2,
            TestShape.PAIRED: 2,
        }.get(self)


@dataclass(frozen=True)
class AnalysisConfig:
    """Parameters for a single analysis.

    Attributes:
        mu: Hypothesized mean (or location) for one-sample tests
        alternative: "two-sided", "less" or "greater"
        alpha: Significance threshold for the normality gate, the omnibus
            test and the post-hoc comparisons (default: 0.05)
        conf_level: Confidence level for t-test intervals (default: 0.95)
        paired: Whether two samples are paired observations
        shape: Optional explicit test shape; derived from the input form if None
    """

    mu: float = 0.0
    alternative: Alternative = Alternative.TWO_SIDED
    alpha: float = 0.05
    conf_level: float = 0.95
    paired: bool = False
    shape: Optional[TestShape] = None

    def __post_init__(self):
        """Validate and normalise parameters."""
        object.__setattr__(self, "alternative", Alternative.parse(self.alternative))
        if self.shape is not None:
            object.__setattr__(self, "shape", TestShape.parse(self.shape))

        for name in ("alpha", "conf_level"):
            value = getattr(self, name)
            if not _is_real(value) or not 0.0 < float(value) < 1.0:
                raise InvalidParameterError(f"{name} must be in (0, 1), got {value!r}")
            object.__setattr__(self, name, float(value))

        if not _is_real(self.mu) or not math.isfinite(float(self.mu)):
            raise InvalidParameterError(f"mu must be a finite number, got {self.mu!r}")
        object.__setattr__(self, "mu", float(self.mu))
        object.__setattr__(self, "paired", bool(self.paired))

        if self.paired and self.shape not in (None, TestShape.PAIRED):
            raise InvalidParameterError(
                f"paired=True conflicts with explicit shape '{self.shape.value}'"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dict with enums as strings."""
        d = asdict(self)
        d["alternative"] = self.alternative.value
        d["shape"] = self.shape.value if self.shape else None
        return d


def _is_real(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    try:
        float(value)
    except (TypeError, ValueError):
        return False
    return True
