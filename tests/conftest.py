from typing import List, Sequence, Tuple

import pytest

from feline_sim.core import BACTERIA_DRAW_HIGH, VIRUS_DRAW_HIGH, TreatmentParameters


class ScriptedRandom:
    """Random source replaying fixed draws; virus and bacteria draws are told apart by their upper bound."""

    def __init__(self, virus_draws: Sequence[float], bacteria_draws: Sequence[float]):
        self._draws = {
            VIRUS_DRAW_HIGH: list(virus_draws),
            BACTERIA_DRAW_HIGH: list(bacteria_draws),
        }
        self.calls: List[Tuple[float, float]] = []

    def uniform(self, low: float, high: float) -> float:
        self.calls.append((low, high))
        value = self._draws[high].pop(0)
        assert low <= value < high
        return value


@pytest.fixture
def scripted():
    return ScriptedRandom


@pytest.fixture
def default_params():
    return TreatmentParameters()
