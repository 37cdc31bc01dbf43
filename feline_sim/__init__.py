"""
Feline virus / bacteria treatment simulation core.

This package exposes the main model types and functions from `core.py` for convenience.
"""

from .core import (
    AgeClass,
    Assessment,
    DailyObservation,
    SimulationResult,
    TreatmentParameters,
    VirusType,
    assess,
    run,
    score,
    simulate,
)
from .ensemble import EnsembleSummary, compare_age_classes, run_ensemble
from .errors import InvalidParameter

__version__ = "0.1.0"
