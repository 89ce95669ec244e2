"""
Belt tracking recommendation.

Guidance only: recommends a tracking method and explains why, never
blocks. Uses the length/width ratio band, the disturbance severity and
two modifiers to look up a mode, then honours an explicit user
preference.

Tracking modes:
- Crowned: crowned pulleys (default tracking method)
- Hybrid: crowned pulleys + V-guide
- V-guided: flat pulleys + V-guide
"""

import logging
import math
from typing import Optional, Tuple, Union

from .config import EngineSettings, default_settings
from .models import (
    TrackingRecommendationInput, TrackingRecommendationOutput,
    ApplicationClass, BeltConstruction, TrackingPreference, TrackingMode,
    LwBand, DisturbanceSeverity, as_enum
)

logger = logging.getLogger(__name__)


STIFF_BELT_CONSTRUCTIONS = (
    BeltConstruction.STEEL_CORD_OR_VERY_STIFF,
    BeltConstruction.PROFILED_SIDEWALL_OR_HIGH_CLEAT,
)

# (band, severity) -> (mode, with_note)
RECOMMENDATION_MATRIX = {
    (LwBand.LOW, DisturbanceSeverity.MINIMAL): (TrackingMode.CROWNED, False),
    (LwBand.LOW, DisturbanceSeverity.MODERATE): (TrackingMode.CROWNED, True),
    (LwBand.LOW, DisturbanceSeverity.SIGNIFICANT): (TrackingMode.HYBRID, False),
    (LwBand.MEDIUM, DisturbanceSeverity.MINIMAL): (TrackingMode.CROWNED, True),
    (LwBand.MEDIUM, DisturbanceSeverity.MODERATE): (TrackingMode.HYBRID, False),
    (LwBand.MEDIUM, DisturbanceSeverity.SIGNIFICANT): (TrackingMode.V_GUIDED, False),
    (LwBand.HIGH, DisturbanceSeverity.MINIMAL): (TrackingMode.HYBRID, False),
    (LwBand.HIGH, DisturbanceSeverity.MODERATE): (TrackingMode.V_GUIDED, False),
    (LwBand.HIGH, DisturbanceSeverity.SIGNIFICANT): (TrackingMode.V_GUIDED, False),
}

PREFERENCE_MODES = {
    TrackingPreference.PREFER_CROWNED: TrackingMode.CROWNED,
    TrackingPreference.PREFER_HYBRID: TrackingMode.HYBRID,
    TrackingPreference.PREFER_V_GUIDED: TrackingMode.V_GUIDED,
}

MARGIN_NOTE = "Conditions may reduce tracking margin. Consider Hybrid if issues appear in service."
CONFLICT_NOTE = ("Selected mode provides less tracking control than recommended. "
                 "Tracking margin may be reduced.")

BAND_TEXT = {
    LwBand.LOW: "favorable",
    LwBand.MEDIUM: "moderate",
    LwBand.HIGH: "high",
}


def calculate_lw_ratio(length_in: float, width_in: Optional[float]) -> float:
    """Length/width rounded half-up to 0.1; no usable width means infinite."""
    if not width_in or width_in <= 0:
        return math.inf
    # half-up on the scaled value; round() takes 5.05 down to 5.0
    return math.floor(length_in / width_in * 10 + 0.5) / 10


def calculate_lw_band(ratio: float, settings: EngineSettings = default_settings) -> LwBand:
    if ratio <= settings.lw_band_low_max:
        return LwBand.LOW
    if ratio <= settings.lw_band_medium_max:
        return LwBand.MEDIUM
    return LwBand.HIGH


def count_disturbances(data: TrackingRecommendationInput) -> int:
    return sum(1 for flag in (
        data.reversing_operation,
        data.disturbance_side_loading,
        data.disturbance_load_variability,
        data.disturbance_environment,
        data.disturbance_installation_risk,
    ) if flag)


def calculate_raw_severity(data: TrackingRecommendationInput,
                           settings: EngineSettings = default_settings) -> DisturbanceSeverity:
    """
    significant: count >= 3, or reversing together with side loading
    moderate:    at least one disturbance
    minimal:     none
    """
    if data.reversing_operation and data.disturbance_side_loading:
        return DisturbanceSeverity.SIGNIFICANT

    count = count_disturbances(data)
    if count >= settings.significant_disturbance_count:
        return DisturbanceSeverity.SIGNIFICANT
    if count >= 1:
        return DisturbanceSeverity.MODERATE
    return DisturbanceSeverity.MINIMAL


def apply_modifiers(raw: DisturbanceSeverity,
                    application_class: Union[ApplicationClass, str, None] = None,
                    belt_construction: Union[BeltConstruction, str, None] = None) -> DisturbanceSeverity:
    """Bulk handling and stiff/profiled belts each nudge severity one step worse."""
    modified = raw
    if as_enum(ApplicationClass, application_class) == ApplicationClass.BULK_HANDLING:
        modified = modified.next()
    if as_enum(BeltConstruction, belt_construction) in STIFF_BELT_CONSTRUCTIONS:
        modified = modified.next()
    return modified


def get_recommended_mode_from_matrix(band: LwBand,
                                     severity: DisturbanceSeverity) -> Tuple[TrackingMode, bool]:
    """Returns (mode, with_note)."""
    return RECOMMENDATION_MATRIX[(band, severity)]


def preference_to_mode(preference: Union[TrackingPreference, str, None]) -> Optional[TrackingMode]:
    """Explicit preference -> mode; auto, missing or unknown -> None."""
    return PREFERENCE_MODES.get(as_enum(TrackingPreference, preference))


def build_rationale(band: LwBand, severity: DisturbanceSeverity, mode: TrackingMode,
                    computed_mode: Optional[TrackingMode] = None) -> str:
    if computed_mode is not None and computed_mode != mode:
        return (f"User preference applied. {mode.display_name} selected. "
                f"System would recommend {computed_mode.display_name} for these conditions.")

    band_text = BAND_TEXT[band]
    if mode == TrackingMode.CROWNED:
        if severity == DisturbanceSeverity.MINIMAL:
            return (f"Crowned pulleys are appropriate. L/W ratio is {band_text} "
                    "and disturbance factors are minimal.")
        return ("Crowned pulleys are appropriate for this geometry. "
                "Selected conditions may reduce tracking margin.")
    if mode == TrackingMode.HYBRID:
        return ("Hybrid adds tracking margin by combining crowned pulleys with a V-guide. "
                f"Recommended given {band_text} L/W ratio and selected conditions.")
    return ("V-guided provides positive belt constraint. Recommended when geometry "
            "and conditions increase tracking sensitivity.")


def build_note(with_note: bool, mode: TrackingMode,
               computed_mode: Optional[TrackingMode] = None) -> Optional[str]:
    """Override conflicts take priority over the matrix advisory."""
    if computed_mode is not None and computed_mode != mode:
        if mode.strength < computed_mode.strength:
            return CONFLICT_NOTE
        return None
    if with_note:
        return MARGIN_NOTE
    return None


def calculate_tracking_recommendation(data: TrackingRecommendationInput,
                                      settings: EngineSettings = default_settings
                                      ) -> TrackingRecommendationOutput:
    """Recommend a belt tracking method for the given geometry and conditions."""
    lw_ratio = calculate_lw_ratio(data.conveyor_length_cc_in, data.belt_width_in)
    lw_band = calculate_lw_band(lw_ratio, settings)

    disturbance_count = count_disturbances(data)
    raw = calculate_raw_severity(data, settings)
    modified = apply_modifiers(raw, data.application_class, data.belt_construction)

    computed_mode, with_note = get_recommended_mode_from_matrix(lw_band, modified)

    preferred_mode = preference_to_mode(data.tracking_preference)
    is_override = preferred_mode is not None
    final_mode = preferred_mode if is_override else computed_mode
    conflict_reference = computed_mode if is_override else None

    logger.debug("Tracking: L/W %.1f (%s), severity %s->%s, matrix %s, final %s",
                 lw_ratio, lw_band.value, raw.value, modified.value,
                 computed_mode.value, final_mode.value)

    return TrackingRecommendationOutput(
        lw_ratio=lw_ratio,
        lw_band=lw_band,
        disturbance_count=disturbance_count,
        severity_raw=raw,
        severity_modified=modified,
        mode_recommended=final_mode,
        rationale=build_rationale(lw_band, modified, final_mode, conflict_reference),
        note=build_note(with_note, final_mode, conflict_reference),
        with_note=with_note,
        is_override=is_override,
        computed_mode=computed_mode,
    )
