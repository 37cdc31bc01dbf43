"""
Presentation payloads for an external renderer.

Nothing here draws; these are the plain values the treatment page feeds to its
3D view, its line chart and its recommendation panel.
"""

from __future__ import annotations

from typing import Dict, List

from .core import Assessment, SimulationResult, TreatmentParameters, VirusType

SPHERE_COLOR_FIP = "red"
SPHERE_COLOR_DEFAULT = "orange"


def sphere_color(virus_type: VirusType) -> str:
    return SPHERE_COLOR_FIP if VirusType.parse(virus_type) is VirusType.FIP else SPHERE_COLOR_DEFAULT


def chart_series(result: SimulationResult) -> List[Dict[str, float]]:
    """One record per day, keyed the way the line chart reads them."""
    return [
        {"day": o.day, "virus": o.virus_load, "bacteria": o.bacteria_load}
        for o in result.observations
    ]


def format_assessment(assessment: Assessment) -> List[str]:
    return [
        f"Treatment success rate: %{assessment.success_rate_text}",
        f"Estimated recovery time: {assessment.estimated_recovery_days} days",
        f"Comment: {assessment.comment}",
    ]


def build_report(
    params: TreatmentParameters,
    result: SimulationResult,
    assessment: Assessment,
) -> Dict[str, object]:
    return {
        "parameters": {
            "virus_type": params.virus_type.value,
            "stress_level": params.stress_level,
            "nutrition_level": params.nutrition_level,
            "age_class": params.age_class.value,
            "duration_days": params.duration_days,
        },
        "sphere_color": sphere_color(params.virus_type),
        "final": {
            "virus_load": result.final_virus_load,
            "bacteria_load": result.final_bacteria_load,
        },
        "assessment": {
            "success_rate": assessment.success_rate_text,
            "estimated_recovery_days": assessment.estimated_recovery_days,
            "comment": assessment.comment,
        },
        "summary": format_assessment(assessment),
        "series": chart_series(result),
    }
