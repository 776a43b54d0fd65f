"""
Temporal weighting and representative-period indexing.

Representative periods are blocks of ``H`` consecutive hours that are not
chronologically adjacent to each other. Time steps are numbered 1..N and laid
out period after period, so period ``p`` (0-based) covers steps
``p*H + 1 .. (p+1)*H``. Time-coupling constraints link a period's first step
back to its own last step instead of to the previous period.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .catalog import PeriodStructure
from .exceptions import PeriodError

logger = logging.getLogger(__name__)

HOURS_PER_YEAR = 8760.0


@dataclass(frozen=True)
class TemporalIndex:
    """
    Time steps, their annualisation weights and the start/interior partition.

    Attributes
    ----------
    hours_per_period : int
        Length H of every representative period
    steps : tuple of int
        Time steps 1..N
    weights : dict
        time step -> annualisation multiplier (period weight / H)
    starts : tuple of int
        First step of each period (1, 1+H, 1+2H, ...)
    interiors : tuple of int
        All remaining steps
    """
    hours_per_period: int
    steps: Tuple[int, ...]
    weights: Dict[int, float]
    starts: Tuple[int, ...]
    interiors: Tuple[int, ...]

    @classmethod
    def from_periods(cls, periods: PeriodStructure) -> "TemporalIndex":
        """Validate the period structure and derive weights and partitions."""
        hours = periods.hours_per_period
        if periods.period_lengths is not None and len(set(periods.period_lengths)) > 1:
            raise PeriodError(
                f"Heterogeneous representative period lengths {sorted(set(periods.period_lengths))} "
                f"are not supported"
            )
        if hours < 2:
            raise PeriodError(f"Hours per period must be at least 2, got {hours}")
        if periods.n_steps <= 0 or periods.n_steps % hours != 0:
            raise PeriodError(
                f"Time step count {periods.n_steps} is not a positive multiple of "
                f"hours per period {hours}"
            )
        n_periods = periods.n_steps // hours
        if len(periods.weights) != n_periods:
            raise PeriodError(
                f"Expected {n_periods} period weights for {periods.n_steps} steps, "
                f"got {len(periods.weights)}"
            )
        bad = [w for w in periods.weights if not w > 0]
        if bad:
            raise PeriodError(f"Period weights must be positive, got {bad}")

        steps = tuple(range(1, periods.n_steps + 1))
        weights = {t: periods.weights[(t - 1) // hours] / hours for t in steps}
        starts = tuple(range(1, periods.n_steps + 1, hours))
        start_set = set(starts)
        interiors = tuple(t for t in steps if t not in start_set)
        return cls(
            hours_per_period=hours,
            steps=steps,
            weights=weights,
            starts=starts,
            interiors=interiors,
        )

    @property
    def n_periods(self) -> int:
        return len(self.starts)

    def previous(self, t: int) -> int:
        """Step that precedes ``t`` within its own period, wrapping at the start."""
        if (t - 1) % self.hours_per_period == 0:
            return t + self.hours_per_period - 1
        return t - 1

    def period_of(self, t: int) -> int:
        """1-based representative period containing step ``t``."""
        return (t - 1) // self.hours_per_period + 1

    def period_steps(self, period: int) -> List[int]:
        first = (period - 1) * self.hours_per_period + 1
        return list(range(first, first + self.hours_per_period))

    @property
    def represented_hours(self) -> float:
        """Total horizon hours the sampled steps stand for."""
        return sum(self.weights.values())

    def check_annualization(self, horizon_hours: float = HOURS_PER_YEAR,
                            rtol: float = 0.01, strict: bool = False) -> bool:
        """
        Compare represented hours with the planning horizon.

        Returns True when they agree within ``rtol``. Otherwise logs a warning,
        or raises ``PeriodError`` if ``strict`` is set.
        """
        represented = self.represented_hours
        if abs(represented - horizon_hours) <= rtol * horizon_hours:
            return True
        msg = (f"Period weights represent {represented:,.1f} h, "
               f"planning horizon is {horizon_hours:,.1f} h")
        if strict:
            raise PeriodError(msg)
        logger.warning("%s; operational costs will not annualise consistently", msg)
        return False
