"""
core.py — feline treatment simulation core (virus / bacteria decay + assessment)

Two pure units, both free of I/O:

  - Simulator: day-stepped decay of a "virus" and a "bacteria" load driven by
    uniform draws and fixed coefficients (stress, nutrition, age factor).
  - Scorer: threshold lookup on the final two loads → success rate, estimated
    recovery days, categorical comment.

**Scope of this core:**
  - virus_type is carried through for presentation only; it does NOT enter the
    numeric update.
  - The random source is injected. Pass a numpy Generator, an integer seed, or
    None (fresh generator per call). Anything with ``uniform(low, high)`` works,
    which is how the tests replay exact trajectories.
  - No input validation happens here. TreatmentParameters.validate() exists for
    callers (YAML loader, CLI) that want bounds enforced.
  - The trajectory rounds each day to 2 decimals; the Scorer is fed the last
    rounded entry. The unrounded running values are kept on the result as
    raw_final_*.

Monte-Carlo repetition lives in ensemble.py; presentation payloads in report.py.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Dict, List, Tuple, Union

import numpy as np

from .errors import InvalidParameter

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
#  Enumerations
# ---------------------------------------------------------------------------

class VirusType(str, Enum):
    FIP = "FIP"
    FIV = "FIV"
    FELV = "FeLV"
    FHV1 = "FHV-1"
    FCV = "FCV"
    FPV = "FPV"

    @classmethod
    def parse(cls, value: Union[str, "VirusType"]) -> "VirusType":
        """Accept an enum member or its display name ("FHV-1", "FeLV", ...)."""
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value.lower() == str(value).strip().lower():
                return member
        raise InvalidParameter(f"unknown virus type: {value!r}")


class AgeClass(str, Enum):
    KITTEN = "kitten"
    ADULT = "adult"
    SENIOR = "senior"

    @property
    def factor(self) -> float:
        return AGE_FACTORS[self]

    @classmethod
    def parse(cls, value: Union[str, "AgeClass"]) -> "AgeClass":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidParameter(f"unknown age class: {value!r}") from None


# Non-adult cats clear both loads faster.
AGE_FACTORS: Dict[AgeClass, float] = {
    AgeClass.KITTEN: 1.2,
    AgeClass.ADULT: 1.0,
    AgeClass.SENIOR: 1.3,
}


# ---------------------------------------------------------------------------
#  Model constants
# ---------------------------------------------------------------------------

INITIAL_VIRUS_LOAD = 100.0
INITIAL_BACTERIA_LOAD = 80.0

VIRUS_DRAW_HIGH = 5.0      # uniform(0, 5) per day
BACTERIA_DRAW_HIGH = 4.0   # uniform(0, 4) per day
STRESS_WEIGHT = 2.0
NUTRITION_WEIGHT = 2.0

LEVEL_MIN, LEVEL_MAX = 0, 100
DURATION_MIN, DURATION_MAX = 1, 100

COMMENT_HIGHLY_SUCCESSFUL = "treatment highly successful"
COMMENT_FOLLOW_UP = "treatment effective but follow-up may be required"
COMMENT_INSUFFICIENT = "treatment insufficient, alternative may be required"

HIGH_SUCCESS_THRESHOLD = 80.0
EFFECTIVE_THRESHOLD = 50.0


# ---------------------------------------------------------------------------
#  Value records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TreatmentParameters:
    """
    Inputs of one simulation run.

      virus_type      : informational only (sphere colour in the report)
      stress_level    : 0–100, scaled to stressFactor = stress / 100
      nutrition_level : 0–100, scaled to nutritionFactor = (100 - nutrition) / 100
      age_class       : selects the age factor (kitten 1.2, adult 1.0, senior 1.3)
      duration_days   : number of simulated days; the UI bounds it to 1–100

    Defaults mirror the initial state of the treatment form.
    """

    virus_type: VirusType = VirusType.FIP
    stress_level: int = 40
    nutrition_level: int = 70
    age_class: AgeClass = AgeClass.ADULT
    duration_days: int = 30

    @property
    def stress_factor(self) -> float:
        return self.stress_level / 100

    @property
    def nutrition_factor(self) -> float:
        return (100 - self.nutrition_level) / 100

    @property
    def age_factor(self) -> float:
        return AGE_FACTORS[self.age_class]

    def validate(self) -> "TreatmentParameters":
        """
        Enforce the bounds the form widgets impose. simulate() never calls this;
        it is meant for callers that accept untrusted input.
        """
        for name in ("stress_level", "nutrition_level"):
            value = getattr(self, name)
            if not LEVEL_MIN <= value <= LEVEL_MAX:
                raise InvalidParameter(f"{name} must be in [{LEVEL_MIN}, {LEVEL_MAX}], got {value}")
        if not DURATION_MIN <= self.duration_days <= DURATION_MAX:
            raise InvalidParameter(
                f"duration_days must be in [{DURATION_MIN}, {DURATION_MAX}], got {self.duration_days}"
            )
        if not isinstance(self.virus_type, VirusType):
            raise InvalidParameter(f"virus_type must be a VirusType, got {self.virus_type!r}")
        if not isinstance(self.age_class, AgeClass):
            raise InvalidParameter(f"age_class must be an AgeClass, got {self.age_class!r}")
        return self


@dataclass(frozen=True)
class DailyObservation:
    day: int
    virus_load: float
    bacteria_load: float


@dataclass
class SimulationResult:
    """
    Chronological trajectory plus final values.

    final_virus_load / final_bacteria_load are the last *rounded* entries and are
    what the Scorer consumes. raw_final_* hold the unrounded running values.
    """

    observations: List[DailyObservation] = field(default_factory=list)
    final_virus_load: float = INITIAL_VIRUS_LOAD
    final_bacteria_load: float = INITIAL_BACTERIA_LOAD
    raw_final_virus_load: float = INITIAL_VIRUS_LOAD
    raw_final_bacteria_load: float = INITIAL_BACTERIA_LOAD

    def __len__(self) -> int:
        return len(self.observations)

    @property
    def days(self) -> np.ndarray:
        return np.array([o.day for o in self.observations], dtype=int)

    @property
    def virus_loads(self) -> np.ndarray:
        return np.array([o.virus_load for o in self.observations], dtype=float)

    @property
    def bacteria_loads(self) -> np.ndarray:
        return np.array([o.bacteria_load for o in self.observations], dtype=float)

    def as_array(self) -> np.ndarray:
        """(n_days, 3) array of [day, virus, bacteria]."""
        if not self.observations:
            return np.empty((0, 3), dtype=float)
        return np.column_stack([self.days, self.virus_loads, self.bacteria_loads]).astype(float)


@dataclass(frozen=True)
class Assessment:
    success_rate: float
    estimated_recovery_days: int
    comment: str

    @property
    def success_rate_text(self) -> str:
        return f"{self.success_rate:.1f}"


# ---------------------------------------------------------------------------
#  Helpers
# ---------------------------------------------------------------------------

RandomSource = Union[None, int, np.random.Generator, np.random.SeedSequence]


def _resolve_rng(rng):
    """Generators and anything with uniform() pass through; seeds build a new Generator."""
    if rng is None or isinstance(rng, (int, np.integer, np.random.SeedSequence)):
        return np.random.default_rng(rng)
    if not hasattr(rng, "uniform"):
        raise TypeError(f"random source must provide uniform(low, high), got {type(rng).__name__}")
    return rng


def round_half_up(x: float) -> int:
    """Nearest integer, ties toward +inf."""
    return int(math.floor(x + 0.5))


def round_places(x: float, places: int) -> float:
    """Round the exact binary value of x to 'places' decimals, ties away from zero."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(float(x)).quantize(quantum, rounding=ROUND_HALF_UP))


def _step(
    virus: float,
    bacteria: float,
    params: TreatmentParameters,
    rng,
) -> Tuple[float, float]:
    virus -= rng.uniform(0.0, VIRUS_DRAW_HIGH) - params.stress_factor * STRESS_WEIGHT + params.age_factor
    bacteria -= (
        rng.uniform(0.0, BACTERIA_DRAW_HIGH) - params.nutrition_factor * NUTRITION_WEIGHT + params.age_factor
    )
    return max(0.0, float(virus)), max(0.0, float(bacteria))


# ---------------------------------------------------------------------------
#  Simulator
# ---------------------------------------------------------------------------

def simulate(params: TreatmentParameters, rng: RandomSource = None) -> SimulationResult:
    """
    Run the day-stepped decay for params.duration_days days.

    Each day draws uniform(0, 5) for the virus and then uniform(0, 4) for the
    bacteria, subtracts (draw - weighted factor + age factor) and floors at zero.
    Reaching zero does not end the run.
    """
    rng = _resolve_rng(rng)

    virus = INITIAL_VIRUS_LOAD
    bacteria = INITIAL_BACTERIA_LOAD
    observations: List[DailyObservation] = []

    for day in range(1, params.duration_days + 1):
        virus, bacteria = _step(virus, bacteria, params, rng)
        observations.append(DailyObservation(day, round_places(virus, 2), round_places(bacteria, 2)))
    assert len(observations) == max(params.duration_days, 0)

    if observations:
        final_virus = observations[-1].virus_load
        final_bacteria = observations[-1].bacteria_load
    else:
        final_virus, final_bacteria = round_places(virus, 2), round_places(bacteria, 2)

    logger.debug(
        "simulated %d days (%s, %s): final virus=%.2f bacteria=%.2f",
        len(observations),
        getattr(params.virus_type, "value", params.virus_type),
        getattr(params.age_class, "value", params.age_class),
        final_virus,
        final_bacteria,
    )

    return SimulationResult(
        observations=observations,
        final_virus_load=final_virus,
        final_bacteria_load=final_bacteria,
        raw_final_virus_load=virus,
        raw_final_bacteria_load=bacteria,
    )


# ---------------------------------------------------------------------------
#  Scorer
# ---------------------------------------------------------------------------

def score(final_virus_load: float, final_bacteria_load: float) -> Assessment:
    """
    successRate           = max(0, 100 - (v + b) / 2)
    estimatedRecoveryDays = round_half_up((v + b) / 4)

    Comment brackets use strict '>' on the unrounded rate, so exactly 80 or 50
    falls into the lower bracket.
    """
    total = final_virus_load + final_bacteria_load
    rate = max(0.0, 100.0 - total / 2)

    if rate > HIGH_SUCCESS_THRESHOLD:
        comment = COMMENT_HIGHLY_SUCCESSFUL
    elif rate > EFFECTIVE_THRESHOLD:
        comment = COMMENT_FOLLOW_UP
    else:
        comment = COMMENT_INSUFFICIENT

    return Assessment(
        success_rate=round_places(rate, 1),
        estimated_recovery_days=round_half_up(total / 4),
        comment=comment,
    )


def assess(result: SimulationResult) -> Assessment:
    return score(result.final_virus_load, result.final_bacteria_load)


def run(params: TreatmentParameters, rng: RandomSource = None) -> Tuple[SimulationResult, Assessment]:
    """Simulate then score; what the form's 'start' button does."""
    result = simulate(params, rng)
    return result, assess(result)
