import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

import numpy as np

from .config import RunConfig, RunSettings, build_parameters, load_config
from .core import run
from .ensemble import run_ensemble
from .errors import InvalidParameter
from .report import build_report

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the feline virus/bacteria treatment simulation.")
    parser.add_argument("--params", type=str, default=None, help="Path to treatment YAML")
    parser.add_argument("--virus", type=str, default=None, help="Virus type (FIP, FIV, FeLV, FHV-1, FCV, FPV)")
    parser.add_argument("--age", type=str, default=None, help="Age class (kitten, adult, senior)")
    parser.add_argument("--stress", type=int, default=None, help="Stress level 0-100")
    parser.add_argument("--nutrition", type=int, default=None, help="Nutrition level 0-100")
    parser.add_argument("--days", type=int, default=None, help="Simulation length in days (1-100)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the random source")
    parser.add_argument("--trials", type=int, default=None, help="Also run a Monte-Carlo ensemble of N trials")
    parser.add_argument("--outdir", type=str, default="outputs", help="Output directory")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default="INFO",
        choices=LOG_LEVELS,
        help="Logging level",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> RunConfig:
    """YAML first (if given), then command-line overrides on top."""
    if args.params:
        base = load_config(args.params)
    else:
        base = RunConfig(treatment=build_parameters({}), run=RunSettings())

    treatment = {
        "virus_type": base.treatment.virus_type,
        "stress_level": base.treatment.stress_level,
        "nutrition_level": base.treatment.nutrition_level,
        "age_class": base.treatment.age_class,
        "duration_days": base.treatment.duration_days,
    }
    overrides = {
        "virus_type": args.virus,
        "age_class": args.age,
        "stress_level": args.stress,
        "nutrition_level": args.nutrition,
        "duration_days": args.days,
    }
    treatment.update({k: v for k, v in overrides.items() if v is not None})

    return RunConfig(
        treatment=build_parameters(treatment),
        run=RunSettings(
            seed=args.seed if args.seed is not None else base.run.seed,
            trials=args.trials if args.trials is not None else base.run.trials,
        ).validate(),
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    try:
        config = resolve_config(args)
    except InvalidParameter as exc:
        logger.error("invalid parameters: %s", exc)
        return 2

    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    params = config.treatment
    logger.info(
        "simulating %s, %s cat, %d days (stress=%d, nutrition=%d)",
        params.virus_type.value,
        params.age_class.value,
        params.duration_days,
        params.stress_level,
        params.nutrition_level,
    )
    result, assessment = run(params, config.run.seed)
    report = build_report(params, result, assessment)

    # Save outputs
    np.savetxt(
        outdir / "trajectory.csv",
        result.as_array(),
        delimiter=",",
        header="day,virus,bacteria",
        comments="",
        fmt=("%d", "%.2f", "%.2f"),
    )
    with (outdir / "report.json").open("w", encoding="utf-8") as f:
        json.dump(report, f, indent=2)

    if config.run.trials is not None:
        summary = run_ensemble(params, config.run.trials, config.run.seed)
        with (outdir / "ensemble.json").open("w", encoding="utf-8") as f:
            json.dump(summary.to_dict(), f, indent=2)
        logger.info("ensemble of %d trials written to %s", summary.n_trials, outdir / "ensemble.json")

    logger.info("outputs written to %s", outdir)
    print("\n".join(report["summary"]))
    print(json.dumps({k: v for k, v in report.items() if k != "series"}, indent=2))
    return 0
