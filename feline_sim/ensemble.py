"""
ensemble.py — Monte-Carlo repetition of the treatment simulator.

One SeedSequence is spawned into independent child generators, one per trial,
so an ensemble is reproducible from a single seed and no generator is shared
between trials.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Tuple

import numpy as np
from scipy import stats

from .core import (
    COMMENT_FOLLOW_UP,
    COMMENT_HIGHLY_SUCCESSFUL,
    COMMENT_INSUFFICIENT,
    AgeClass,
    TreatmentParameters,
    score,
    simulate,
)
from .errors import InvalidParameter

logger = logging.getLogger(__name__)

CONFIDENCE_LEVEL = 0.95


@dataclass(frozen=True)
class LoadStatistics:
    mean: float
    std: float
    ci_low: float
    ci_high: float

    @classmethod
    def from_samples(cls, samples: np.ndarray, confidence: float = CONFIDENCE_LEVEL) -> "LoadStatistics":
        samples = np.asarray(samples, dtype=float)
        mean = float(np.mean(samples))
        if samples.size < 2:
            return cls(mean=mean, std=0.0, ci_low=mean, ci_high=mean)

        std = float(np.std(samples, ddof=1))
        sem = std / np.sqrt(samples.size)
        if sem == 0.0:
            return cls(mean=mean, std=std, ci_low=mean, ci_high=mean)

        low, high = stats.t.interval(confidence, df=samples.size - 1, loc=mean, scale=sem)
        return cls(mean=mean, std=std, ci_low=float(low), ci_high=float(high))

    def to_dict(self) -> Dict[str, float]:
        return {"mean": self.mean, "std": self.std, "ci_low": self.ci_low, "ci_high": self.ci_high}


@dataclass
class EnsembleSummary:
    """
    Aggregate of n_trials independent runs with identical parameters.

    comment_shares maps each of the three assessment comments to the fraction of
    trials that received it (all three keys are always present).
    """

    params: TreatmentParameters
    n_trials: int
    virus: LoadStatistics
    bacteria: LoadStatistics
    total: LoadStatistics
    mean_success_rate: float
    comment_shares: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {
            "virus_type": self.params.virus_type.value,
            "age_class": self.params.age_class.value,
            "n_trials": self.n_trials,
            "final_virus_load": self.virus.to_dict(),
            "final_bacteria_load": self.bacteria.to_dict(),
            "final_total_load": self.total.to_dict(),
            "mean_success_rate": self.mean_success_rate,
            "comment_shares": dict(self.comment_shares),
        }


def _final_loads(params: TreatmentParameters, n_trials: int, seed) -> Tuple[np.ndarray, np.ndarray]:
    children = np.random.SeedSequence(seed).spawn(n_trials)
    finals = np.empty((n_trials, 2), dtype=float)
    for i, child in enumerate(children):
        result = simulate(params, np.random.default_rng(child))
        finals[i] = (result.final_virus_load, result.final_bacteria_load)
    assert (finals >= 0.0).all()
    return finals[:, 0], finals[:, 1]


def run_ensemble(
    params: TreatmentParameters,
    n_trials: int,
    seed: Optional[int] = None,
) -> EnsembleSummary:
    """Repeat simulate() n_trials times and summarise the final loads and assessments."""
    if n_trials < 1:
        raise InvalidParameter(f"n_trials must be >= 1, got {n_trials}")

    virus, bacteria = _final_loads(params, n_trials, seed)

    assessments = [score(v, b) for v, b in zip(virus, bacteria)]
    counts = Counter(a.comment for a in assessments)
    shares = {
        comment: counts.get(comment, 0) / n_trials
        for comment in (COMMENT_HIGHLY_SUCCESSFUL, COMMENT_FOLLOW_UP, COMMENT_INSUFFICIENT)
    }

    summary = EnsembleSummary(
        params=params,
        n_trials=n_trials,
        virus=LoadStatistics.from_samples(virus),
        bacteria=LoadStatistics.from_samples(bacteria),
        total=LoadStatistics.from_samples(virus + bacteria),
        mean_success_rate=float(np.mean(np.maximum(0.0, 100.0 - (virus + bacteria) / 2))),
        comment_shares=shares,
    )
    logger.debug(
        "ensemble of %d trials (%s): mean total load %.2f",
        n_trials,
        params.age_class.value,
        summary.total.mean,
    )
    return summary


def compare_age_classes(
    params: TreatmentParameters,
    n_trials: int,
    seed: Optional[int] = None,
) -> Dict[AgeClass, EnsembleSummary]:
    """
    Run the same ensemble for every age class; only age_class differs.

    Every class is driven by the same seed, so the comparison isolates the age
    factor from sampling noise.
    """
    return {
        age: run_ensemble(replace(params, age_class=age), n_trials, seed)
        for age in AgeClass
    }
