"""
Human-readable summaries of engine results.

Plain text blocks the CLI prints and sales engineers can paste into a
quote note.
"""

from typing import List

from .models import (
    EffectiveMinPulleyDiameters, BeltCatalogItem, PulleySelectionResult,
    PulleyFilterCriteria, GearmotorSelectionResult, TrackingRecommendationOutput,
    BeltCompatibilityIssue, Station, as_enum
)

RULE = "-" * 70
HEAVY_RULE = "=" * 70


def _fmt_in(value) -> str:
    return f'{value:g}"' if value is not None else "-"


def format_belt_minimums(belt: BeltCatalogItem, effective: EffectiveMinPulleyDiameters) -> str:
    lines = [f"Belt {belt.catalog_key}: {belt.display_name}", RULE]
    lines.append(f"  Min pulley dia (no V-guide):   {_fmt_in(effective.no_vguide)}")
    lines.append(f"  Min pulley dia (with V-guide): {_fmt_in(effective.with_vguide)}")
    lines.append(f"  Source: {effective.source}")

    if effective.banding.supported:
        lines.append("  Head tension banding: supported")
        if effective.banding.min_no_vguide is not None:
            lines.append(f"    Banded min (no V-guide):   {_fmt_in(effective.banding.min_no_vguide)}")
        if effective.banding.min_with_vguide is not None:
            lines.append(f"    Banded min (with V-guide): {_fmt_in(effective.banding.min_with_vguide)}")
    else:
        lines.append("  Head tension banding: not supported")

    if effective.cleat_method is not None:
        lines.append(f"  Cleat method: {effective.cleat_method.value}")

    return "\n".join(lines)


def format_compatibility_issues(issues: List[BeltCompatibilityIssue]) -> str:
    if not issues:
        return "  No belt compatibility issues."
    lines = []
    for issue in issues:
        lines.append(f"  [{issue.severity.value.upper()}] {issue.code}: {issue.message}")
        if issue.detail:
            lines.append(f"      {issue.detail}")
    return "\n".join(lines)


def format_pulley_result(result: PulleySelectionResult) -> str:
    """One candidate with its issues."""
    pulley = result.pulley
    status = "REJECTED" if result.has_errors else "OK"
    flags = []
    if pulley.is_preferred:
        flags.append("preferred")
    if pulley.is_lagged:
        flags.append("lagged")
    suffix = f" ({', '.join(flags)})" if flags else ""

    lines = [f"  [{status}] {pulley.catalog_key} - {pulley.display_name}{suffix}"]
    lines.append(f"      Effective dia {_fmt_in(result.effective_diameter_in)}, "
                 f"face {_fmt_in(pulley.face_width_min_in)}-{_fmt_in(pulley.face_width_max_in)}, "
                 f"{pulley.construction.value}")
    for issue in result.issues:
        lines.append(f"      {issue.severity.value.upper()}: {issue.code} - {issue.message}")
    return "\n".join(lines)


def format_pulley_report(criteria: PulleyFilterCriteria,
                         results: List[PulleySelectionResult]) -> str:
    compatible = sum(1 for r in results if not r.has_errors)

    lines = [HEAVY_RULE]
    station = as_enum(Station, criteria.station)
    lines.append(f"PULLEY SELECTION - {station.label if station else criteria.station}")
    lines.append(HEAVY_RULE)
    lines.append(f"Required face width: {_fmt_in(criteria.face_width_required_in)}")
    if criteria.min_diameter_in:
        lines.append(f"Belt minimum diameter: {_fmt_in(criteria.min_diameter_in)}")
    if criteria.belt_speed_fpm:
        lines.append(f"Belt speed: {criteria.belt_speed_fpm:g} fpm")
    lines.append(f"Candidates: {len(results)}, compatible: {compatible}")
    lines.append(RULE)

    for result in results:
        lines.append(format_pulley_result(result))

    if compatible == 0:
        lines.append("")
        lines.append("  No compatible pulley. Review face width or belt minimum diameter.")

    return "\n".join(lines)


def format_gearmotor_report(result: GearmotorSelectionResult, limit: int = 5) -> str:
    inputs = result.inputs
    lines = [HEAVY_RULE, "GEARMOTOR SELECTION", HEAVY_RULE]
    lines.append(f"Required: {inputs.required_output_rpm:g} RPM, "
                 f"{inputs.required_output_torque_lb_in:g} lb-in @ SF {inputs.chosen_service_factor:g}")

    if not result.candidates:
        lines.append(RULE)
        lines.append(f"  {result.message}")
        return "\n".join(lines)

    lines.append(f"Series: {result.selected_series} ({len(result.candidates)} qualifying)")
    lines.append(RULE)
    for rank, c in enumerate(result.candidates[:limit], 1):
        lines.append(f"  {rank}. {c.series_code} {c.part_number} - {c.motor_hp:g} HP, "
                     f"{c.output_rpm:g} RPM, {c.output_torque_lb_in:g} lb-in")
        lines.append(f"      Adjusted capacity {c.adjusted_capacity:.0f} lb-in "
                     f"(+{c.margin_pct}% margin), speed off by {c.speed_delta_pct:.1f}%")
    if len(result.candidates) > limit:
        lines.append(f"  ... {len(result.candidates) - limit} more")
    return "\n".join(lines)


def format_tracking_report(output: TrackingRecommendationOutput) -> str:
    lines = [HEAVY_RULE, "BELT TRACKING RECOMMENDATION", HEAVY_RULE]
    lines.append(f"L/W ratio: {output.lw_ratio:g} ({output.lw_band.value})")
    lines.append(f"Disturbances: {output.disturbance_count} "
                 f"(severity {output.severity_raw.value}, "
                 f"adjusted {output.severity_modified.value})")
    lines.append(f"Recommended: {output.mode_recommended.display_name}")
    if output.is_override:
        lines.append(f"  (user preference; system recommendation "
                     f"{output.computed_mode.display_name})")
    lines.append(f"Rationale: {output.rationale}")
    if output.note:
        lines.append(f"NOTE: {output.note}")
    return "\n".join(lines)
