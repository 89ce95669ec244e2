"""
Belt minimum pulley diameter resolution and material profile validation.

A belt carries two legacy flat columns for its minimum pulley diameter
(with and without a V-guide) and may carry a richer material profile.
Each diameter is resolved on its own: the profile value wins when it
defines that field, otherwise the legacy column is used.
"""

import logging
import math
from collections.abc import Mapping
from typing import Any, List, Optional

from .config import EngineSettings, default_settings
from .models import (
    BeltCatalogItem, MaterialProfile, EffectiveMinPulleyDiameters,
    BandingInfo, BeltCompatibilityIssue, CleatMethod, IssueSeverity,
    ValidationResult, SOURCE_CATALOG, SOURCE_MATERIAL_PROFILE
)

logger = logging.getLogger(__name__)


# Issue codes for belt compatibility
BELT_TEMP_EXCEEDED = "BELT_TEMP_EXCEEDED"
BELT_TEMP_NEAR_MAX = "BELT_TEMP_NEAR_MAX"
BELT_TEMP_BELOW_MIN = "BELT_TEMP_BELOW_MIN"
BELT_TEMP_RATING_MISSING = "BELT_TEMP_RATING_MISSING"
BELT_OIL_INCOMPATIBLE = "BELT_OIL_INCOMPATIBLE"
BELT_FLUID_TYPE_UNKNOWN = "BELT_FLUID_TYPE_UNKNOWN"

PROFILE_DIAMETER_FIELDS = ('min_dia_no_vguide_in', 'min_dia_with_vguide_in')
BANDING_DIAMETER_FIELDS = ('banding_min_dia_no_vguide_in', 'banding_min_dia_with_vguide_in')
PROFILE_STRING_FIELDS = ('construction', 'notes', 'source_ref')

# PVC hot-welded cleat spacing (in) -> min pulley diameter multiplier
CLEAT_SPACING_MULTIPLIERS = {
    12: 1.0,
    8: 1.15,
    6: 1.25,
    4: 1.35,
}


def _coalesce(preferred: Optional[float], fallback: float) -> float:
    return preferred if preferred is not None else fallback


def get_effective_min_pulley_diameters(belt: BeltCatalogItem) -> EffectiveMinPulleyDiameters:
    """
    Resolve the effective minimum pulley diameters for a belt.

    Precedence, per field:
    1. material_profile.min_dia_* when the profile defines it
    2. the legacy min_pulley_dia_* column
    """
    profile = belt.material_profile

    profile_no_vguide = profile.min_dia_no_vguide_in if profile else None
    profile_with_vguide = profile.min_dia_with_vguide_in if profile else None

    no_vguide = _coalesce(profile_no_vguide, belt.min_pulley_dia_no_vguide_in)
    with_vguide = _coalesce(profile_with_vguide, belt.min_pulley_dia_with_vguide_in)

    if profile_no_vguide is not None or profile_with_vguide is not None:
        source = SOURCE_MATERIAL_PROFILE
    else:
        source = SOURCE_CATALOG

    if profile is not None and profile.supports_banding is True:
        banding = BandingInfo(
            supported=True,
            min_no_vguide=profile.banding_min_dia_no_vguide_in,
            min_with_vguide=profile.banding_min_dia_with_vguide_in,
        )
    else:
        banding = BandingInfo(supported=False)

    return EffectiveMinPulleyDiameters(
        no_vguide=no_vguide,
        with_vguide=with_vguide,
        source=source,
        banding=banding,
        cleat_method=profile.cleat_method if profile else None,
    )


def _is_real_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _check_diameter_field(name: str, value: Any, limit: float, errors: List[str]):
    if value is None:
        return
    if not _is_real_number(value):
        errors.append(f"{name} must be a number")
    elif value < 0:
        errors.append(f"{name} must be >= 0")
    elif value > limit:
        errors.append(f"{name} must be <= {limit:g} inches")


def validate_material_profile(profile: Any,
                              settings: EngineSettings = default_settings) -> ValidationResult:
    """
    Validate material profile data.

    Accepts a MaterialProfile, a raw mapping (admin form / catalog column)
    or None. None is valid because the profile is optional. Every
    violation is reported.
    """
    if profile is None:
        return ValidationResult()

    if isinstance(profile, MaterialProfile):
        data = profile.to_dict()
    elif isinstance(profile, Mapping):
        data = profile
    else:
        return ValidationResult(["Material profile must be an object"])

    errors: List[str] = []
    limit = settings.max_profile_diameter_in

    family = data.get('material_family')
    if not isinstance(family, str) or not family.strip():
        errors.append("material_family is required and must be a non-empty string")

    for name in PROFILE_DIAMETER_FIELDS:
        _check_diameter_field(name, data.get(name), limit, errors)

    for name in PROFILE_STRING_FIELDS:
        value = data.get(name)
        if value is not None and not isinstance(value, str):
            errors.append(f"{name} must be a string")

    supports_banding = data.get('supports_banding')
    if supports_banding is not None and not isinstance(supports_banding, bool):
        errors.append("supports_banding must be a boolean")

    for name in BANDING_DIAMETER_FIELDS:
        _check_diameter_field(name, data.get(name), limit, errors)

    has_banding_mins = any(data.get(name) is not None for name in BANDING_DIAMETER_FIELDS)
    if has_banding_mins and supports_banding is not True:
        errors.append("banding_min_dia_* fields require supports_banding to be true")

    cleat_method = data.get('cleat_method')
    if cleat_method is not None:
        valid = [m.value for m in CleatMethod]
        if cleat_method not in valid:
            errors.append(f"cleat_method must be one of: {', '.join(valid)}")

    return ValidationResult(errors)


def get_cleat_spacing_multiplier(spacing_in: float) -> float:
    """
    Multiplier on the base minimum pulley diameter for hot-welded cleats.
    Interpolates linearly between the tabulated spacings.
    """
    if spacing_in >= 12:
        return 1.0
    if spacing_in <= 4:
        return 1.35

    breakpoints = sorted(CLEAT_SPACING_MULTIPLIERS)
    for low, high in zip(breakpoints, breakpoints[1:]):
        if low <= spacing_in < high:
            t = (spacing_in - low) / (high - low)
            low_mult = CLEAT_SPACING_MULTIPLIERS[low]
            high_mult = CLEAT_SPACING_MULTIPLIERS[high]
            return low_mult + t * (high_mult - low_mult)

    return 1.0


def round_up_to_increment(value: float, increment: float) -> float:
    """Round a value UP to the nearest increment (e.g. 0.25")."""
    return math.ceil(value / increment) * increment


def required_min_pulley_diameter(belt: BeltCatalogItem, v_guided: bool,
                                 cleats_enabled: bool = False,
                                 cleat_spacing_in: Optional[float] = None,
                                 banded: bool = False,
                                 settings: EngineSettings = default_settings) -> float:
    """
    Minimum pulley diameter this belt needs for one tracking configuration.

    This is the value a caller passes as PulleyFilterCriteria.min_diameter_in.
    Hot-welded cleats raise the minimum by the spacing multiplier, rounded
    up to the next quarter inch.
    """
    effective = get_effective_min_pulley_diameters(belt)
    base = effective.for_tracking(v_guided, banded)

    if cleats_enabled and effective.cleat_method == CleatMethod.HOT_WELDED:
        spacing = cleat_spacing_in if cleat_spacing_in is not None else settings.default_cleat_spacing_in
        multiplier = get_cleat_spacing_multiplier(spacing)
        required = round_up_to_increment(base * multiplier, settings.cleat_rounding_increment_in)
        logger.debug("Belt %s: hot-welded cleats at %s in -> x%.3f, min %.2f in",
                     belt.catalog_key, spacing, multiplier, required)
        return required

    return base


def to_fahrenheit(value: float, unit: str) -> float:
    if unit.upper() in ('C', 'CELSIUS'):
        return value * 9 / 5 + 32
    return value


def check_belt_compatibility(belt: BeltCatalogItem,
                             part_temp: Optional[float] = None,
                             temp_unit: str = "F",
                             fluids_on_material: Optional[str] = None,
                             fluid_type: Optional[str] = None,
                             settings: EngineSettings = default_settings) -> List[BeltCompatibilityIssue]:
    """
    Check a belt against part temperature and fluids on the material.

    fluids_on_material is "YES", "NO" or "UNKNOWN"; fluid_type is one of
    WATER, COOLANT, OIL, MIXED, OTHER, UNKNOWN. Only OIL or MIXED trigger
    the oil-resistance check.
    """
    issues: List[BeltCompatibilityIssue] = []

    if part_temp is not None:
        part_f = to_fahrenheit(part_temp, temp_unit)
        if belt.temp_max_f is None and belt.temp_min_f is None:
            issues.append(BeltCompatibilityIssue(
                code=BELT_TEMP_RATING_MISSING,
                message="Selected belt has no temperature rating set. "
                        "Temperature suitability cannot be verified.",
                severity=IssueSeverity.WARNING,
                detail="Contact admin to set belt temperature limits.",
            ))
        else:
            if belt.temp_max_f is not None:
                detail = f"Part: {round(part_f)}°F, Belt max: {belt.temp_max_f:g}°F"
                if part_f > belt.temp_max_f:
                    issues.append(BeltCompatibilityIssue(
                        code=BELT_TEMP_EXCEEDED,
                        message="Part temperature exceeds the maximum rating of the selected belt.",
                        severity=IssueSeverity.ERROR,
                        detail=detail,
                    ))
                elif part_f >= belt.temp_max_f - settings.temp_warning_margin_f:
                    issues.append(BeltCompatibilityIssue(
                        code=BELT_TEMP_NEAR_MAX,
                        message="Part temperature is close to the belt's maximum rating. "
                                "Expect accelerated wear.",
                        severity=IssueSeverity.WARNING,
                        detail=detail,
                    ))
            if belt.temp_min_f is not None and part_f < belt.temp_min_f:
                issues.append(BeltCompatibilityIssue(
                    code=BELT_TEMP_BELOW_MIN,
                    message="Part temperature is below the belt's minimum rating. "
                            "Belt stiffness and tracking may be affected.",
                    severity=IssueSeverity.WARNING,
                    detail=f"Part: {round(part_f)}°F, Belt min: {belt.temp_min_f:g}°F",
                ))

    if (fluids_on_material or '').upper() == 'YES':
        kind = (fluid_type or '').upper()
        if kind in ('OIL', 'MIXED'):
            if not belt.oil_resistant:
                issues.append(BeltCompatibilityIssue(
                    code=BELT_OIL_INCOMPATIBLE,
                    message="Oil is present on material, but the selected belt is not oil resistant.",
                    severity=IssueSeverity.ERROR,
                ))
        elif kind in ('', 'UNKNOWN', 'OTHER'):
            issues.append(BeltCompatibilityIssue(
                code=BELT_FLUID_TYPE_UNKNOWN,
                message="Fluid is present but type is not specified. "
                        "If oil is present, an oil-resistant belt may be required.",
                severity=IssueSeverity.WARNING,
                section="application",
            ))

    return issues
