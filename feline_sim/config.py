"""
YAML configuration for treatment runs.

Expected layout (every key optional):

    treatment:
      virus_type: FIP
      stress_level: 40
      nutrition_level: 70
      age_class: adult
      duration_days: 30
    run:
      seed: 1234
      trials: 500

Missing treatment keys take the TreatmentParameters defaults. Loaded parameters
are validated against the form bounds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from .core import AgeClass, TreatmentParameters, VirusType
from .errors import InvalidParameter

logger = logging.getLogger(__name__)

_INT_FIELDS = ("stress_level", "nutrition_level", "duration_days")


@dataclass(frozen=True)
class RunSettings:
    seed: Optional[int] = None
    trials: Optional[int] = None

    def validate(self) -> "RunSettings":
        if self.trials is not None and self.trials < 1:
            raise InvalidParameter(f"trials must be >= 1, got {self.trials}")
        return self


@dataclass(frozen=True)
class RunConfig:
    treatment: TreatmentParameters
    run: RunSettings


def _as_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidParameter(f"{name} must be an integer, got {value!r}")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise InvalidParameter(f"{name} must be an integer, got {value!r}")


def build_parameters(cfg: Optional[Mapping[str, Any]]) -> TreatmentParameters:
    """Build validated TreatmentParameters from a plain mapping (the 'treatment' block)."""
    cfg = dict(cfg or {})
    known = {f.name for f in fields(TreatmentParameters)}
    unknown = sorted(set(cfg) - known)
    if unknown:
        raise InvalidParameter(f"unknown treatment keys: {', '.join(unknown)}")

    kwargs: dict = {}
    if "virus_type" in cfg:
        kwargs["virus_type"] = VirusType.parse(cfg["virus_type"])
    if "age_class" in cfg:
        kwargs["age_class"] = AgeClass.parse(cfg["age_class"])
    for name in _INT_FIELDS:
        if name in cfg:
            kwargs[name] = _as_int(name, cfg[name])

    return TreatmentParameters(**kwargs).validate()


def build_run_settings(cfg: Optional[Mapping[str, Any]]) -> RunSettings:
    cfg = dict(cfg or {})
    seed = cfg.get("seed")
    trials = cfg.get("trials")
    return RunSettings(
        seed=None if seed is None else _as_int("seed", seed),
        trials=None if trials is None else _as_int("trials", trials),
    ).validate()


def load_config(path: Union[str, Path]) -> RunConfig:
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        try:
            cfg = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise InvalidParameter(f"{path}: not valid YAML ({exc})") from exc

    if cfg is None:
        cfg = {}
    if not isinstance(cfg, Mapping):
        raise InvalidParameter(f"{path}: top level must be a mapping")

    for section in ("treatment", "run"):
        if cfg.get(section) is not None and not isinstance(cfg[section], Mapping):
            raise InvalidParameter(f"{path}: '{section}' must be a mapping")

    config = RunConfig(
        treatment=build_parameters(cfg.get("treatment")),
        run=build_run_settings(cfg.get("run")),
    )
    logger.debug("loaded %s: %s", path, config)
    return config


def load_parameters(path: Union[str, Path]) -> TreatmentParameters:
    return load_config(path).treatment
