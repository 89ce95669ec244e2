"""
Pulley compatibility filtering and selection.

Returns every candidate with its issues rather than hard-filtering, so
the caller can show why a pulley was rejected. Errors block selection,
warnings are shown but allowed.

CRITICAL: internal bearing pulleys are tail only. The constraint is
checked from the shaft arrangement itself, never from the stored
station flags.
"""

import logging
import math
from collections.abc import Mapping
from typing import Any, List, Optional

from .belts import _is_real_number
from .config import EngineSettings, default_settings
from .models import (
    PulleyCatalogItem, PulleyFilterCriteria, PulleyIssue, PulleySelectionResult,
    ShaftArrangement, Station, PulleyConstruction, IssueSeverity, ValidationResult,
    as_enum
)

logger = logging.getLogger(__name__)


# Issue codes
INTERNAL_BEARINGS_TAIL_ONLY = "INTERNAL_BEARINGS_TAIL_ONLY"
STATION_INCOMPATIBLE = "STATION_INCOMPATIBLE"
FACE_WIDTH_EXCEEDED = "FACE_WIDTH_EXCEEDED"
FACE_WIDTH_BELOW_MIN = "FACE_WIDTH_BELOW_MIN"
DIAMETER_TOO_SMALL = "DIAMETER_TOO_SMALL"
SPEED_LIMIT_EXCEEDED = "SPEED_LIMIT_EXCEEDED"
LAGGING_RECOMMENDED = "LAGGING_RECOMMENDED"
CROWN_RECOMMENDED = "CROWN_RECOMMENDED"

STATION_FLAGS = {
    Station.HEAD_DRIVE: 'allow_head_drive',
    Station.TAIL: 'allow_tail',
    Station.SNUB: 'allow_snub',
    Station.BEND: 'allow_bend',
    Station.TAKEUP: 'allow_takeup',
}


def get_effective_diameter(pulley: PulleyCatalogItem,
                           settings: EngineSettings = default_settings) -> float:
    """Shell diameter plus lagging on both sides."""
    if pulley.is_lagged and pulley.lagging_thickness_in:
        return pulley.diameter_in + pulley.lagging_thickness_in * settings.lagging_sides
    return pulley.diameter_in


def has_internal_bearings(pulley: PulleyCatalogItem) -> bool:
    return pulley.shaft_arrangement == ShaftArrangement.INTERNAL_BEARINGS


def is_station_compatible(pulley: PulleyCatalogItem, station: Station) -> bool:
    """Stored eligibility flag for a station; unknown stations are refused."""
    flag = STATION_FLAGS.get(station)
    if flag is None:
        return False
    return bool(getattr(pulley, flag))


def _station_label(station: Optional[Station], raw: Any) -> str:
    return station.label if station is not None else str(raw)


def _check_pulley(pulley: PulleyCatalogItem, criteria: PulleyFilterCriteria,
                  station: Optional[Station], effective_dia: float) -> List[PulleyIssue]:
    issues = []

    # Guard first: do not trust the flags for internal bearings.
    # An unknown station is never the tail.
    if has_internal_bearings(pulley) and station != Station.TAIL:
        issues.append(PulleyIssue(
            code=INTERNAL_BEARINGS_TAIL_ONLY,
            severity=IssueSeverity.ERROR,
            message="Internal bearing pulleys can only be used at tail position",
            field='shaft_arrangement',
        ))

    if not is_station_compatible(pulley, station):
        issues.append(PulleyIssue(
            code=STATION_INCOMPATIBLE,
            severity=IssueSeverity.ERROR,
            message=f"Pulley not allowed at {_station_label(station, criteria.station)} position",
            field='station',
        ))

    required_width = criteria.face_width_required_in
    if required_width > pulley.face_width_max_in:
        issues.append(PulleyIssue(
            code=FACE_WIDTH_EXCEEDED,
            severity=IssueSeverity.ERROR,
            message=f'Required face width {required_width:g}" exceeds pulley max '
                    f'{pulley.face_width_max_in:g}"',
            field='face_width_max_in',
        ))

    if pulley.face_width_min_in and required_width < pulley.face_width_min_in:
        issues.append(PulleyIssue(
            code=FACE_WIDTH_BELOW_MIN,
            severity=IssueSeverity.ERROR,
            message=f'Required face width {required_width:g}" is below pulley min '
                    f'{pulley.face_width_min_in:g}"',
            field='face_width_min_in',
        ))

    if criteria.min_diameter_in and effective_dia < criteria.min_diameter_in:
        issues.append(PulleyIssue(
            code=DIAMETER_TOO_SMALL,
            severity=IssueSeverity.ERROR,
            message=f'Effective diameter {effective_dia:g}" is below belt minimum '
                    f'{criteria.min_diameter_in:g}"',
            field='diameter_in',
        ))

    # B105.1 speed limit is advisory
    if (criteria.belt_speed_fpm and pulley.max_belt_speed_fpm
            and criteria.belt_speed_fpm > pulley.max_belt_speed_fpm):
        issues.append(PulleyIssue(
            code=SPEED_LIMIT_EXCEEDED,
            severity=IssueSeverity.WARNING,
            message=f"Belt speed {criteria.belt_speed_fpm:g} fpm exceeds pulley limit "
                    f"{pulley.max_belt_speed_fpm:g} fpm (B105.1)",
            field='max_belt_speed_fpm',
        ))

    if criteria.require_lagged and not pulley.is_lagged:
        issues.append(PulleyIssue(
            code=LAGGING_RECOMMENDED,
            severity=IssueSeverity.WARNING,
            message="Lagged pulley recommended for this application",
            field='is_lagged',
        ))

    if criteria.require_crown and pulley.crown_height_in <= 0:
        issues.append(PulleyIssue(
            code=CROWN_RECOMMENDED,
            severity=IssueSeverity.WARNING,
            message="Crowned pulley recommended for belt tracking",
            field='crown_height_in',
        ))

    return issues


def _matches_exact_filters(pulley: PulleyCatalogItem, criteria: PulleyFilterCriteria,
                           effective_dia: float) -> bool:
    if criteria.diameter_in is not None and not math.isclose(
            effective_dia, criteria.diameter_in, abs_tol=1e-9):
        return False
    if criteria.construction is not None:
        if pulley.construction != as_enum(PulleyConstruction, criteria.construction):
            return False
    return True


def _sort_key(result: PulleySelectionResult):
    # Error-free first, then preferred, then smallest effective diameter
    return (result.has_errors, not result.pulley.is_preferred, result.effective_diameter_in)


def filter_pulleys(pulleys: List[PulleyCatalogItem],
                   criteria: PulleyFilterCriteria,
                   settings: EngineSettings = default_settings) -> List[PulleySelectionResult]:
    """
    Evaluate every active pulley against the criteria.

    All checks run for every candidate. Candidates failing an exact
    diameter or construction filter are left out of the list entirely.
    The ordering is stable for identical inputs.
    """
    results = []
    station = as_enum(Station, criteria.station)

    for pulley in pulleys:
        if not pulley.is_active:
            continue

        effective_dia = get_effective_diameter(pulley, settings)
        if not _matches_exact_filters(pulley, criteria, effective_dia):
            continue

        issues = _check_pulley(pulley, criteria, station, effective_dia)
        results.append(PulleySelectionResult(
            pulley=pulley,
            effective_diameter_in=effective_dia,
            issues=issues,
        ))

    ranked = sorted(results, key=_sort_key)
    logger.debug("Filtered %d pulleys for %s at %s in face: %d without errors",
                 len(ranked), _station_label(station, criteria.station),
                 criteria.face_width_required_in,
                 sum(1 for r in ranked if not r.has_errors))
    return ranked


def get_compatible_pulleys(pulleys: List[PulleyCatalogItem],
                           criteria: PulleyFilterCriteria,
                           settings: EngineSettings = default_settings) -> List[PulleyCatalogItem]:
    """Pulleys with no error-severity issue; warnings are allowed."""
    return [r.pulley for r in filter_pulleys(pulleys, criteria, settings) if not r.has_errors]


def select_best_pulley(pulleys: List[PulleyCatalogItem],
                       criteria: PulleyFilterCriteria,
                       settings: EngineSettings = default_settings) -> Optional[PulleySelectionResult]:
    """Preferred, smallest valid pulley, or None when nothing qualifies."""
    for result in filter_pulleys(pulleys, criteria, settings):
        if not result.has_errors:
            return result
    return None


def _field(pulley: Any, name: str, default: Any = None) -> Any:
    if isinstance(pulley, Mapping):
        return pulley.get(name, default)
    return getattr(pulley, name, default)


def _check_positive(label: str, value: Any, errors: List[str]) -> bool:
    if value is not None and not _is_real_number(value):
        errors.append(f"{label} must be a number")
        return False
    if not value or value <= 0:
        errors.append(f"{label} must be positive")
        return False
    return True


def validate_pulley_catalog_item(pulley: Any) -> ValidationResult:
    """
    Validate a pulley catalog item for admin save.

    Accepts a PulleyCatalogItem or a partial mapping from an edit form.
    """
    errors: List[str] = []

    catalog_key = _field(pulley, 'catalog_key')
    display_name = _field(pulley, 'display_name')
    diameter = _field(pulley, 'diameter_in')
    face_max = _field(pulley, 'face_width_max_in')
    face_min = _field(pulley, 'face_width_min_in')

    if not catalog_key or not str(catalog_key).strip():
        errors.append("Catalog key is required")
    if not display_name or not str(display_name).strip():
        errors.append("Display name is required")
    _check_positive("Diameter", diameter, errors)
    face_max_ok = _check_positive("Face width max", face_max, errors)

    if face_min is not None:
        if not _is_real_number(face_min):
            errors.append("Face width min must be a number")
        elif face_max_ok and face_min > face_max:
            errors.append("Face width min cannot exceed max")

    arrangement = _field(pulley, 'shaft_arrangement')
    if isinstance(arrangement, ShaftArrangement):
        arrangement = arrangement.value
    if arrangement == ShaftArrangement.INTERNAL_BEARINGS.value:
        if _field(pulley, 'allow_head_drive'):
            errors.append("Internal bearing pulleys cannot be used as head/drive")
        if _field(pulley, 'allow_snub'):
            errors.append("Internal bearing pulleys cannot be used as snub")
        if _field(pulley, 'allow_bend'):
            errors.append("Internal bearing pulleys cannot be used as bend")
        if _field(pulley, 'allow_takeup'):
            errors.append("Internal bearing pulleys cannot be used as takeup")
        if _field(pulley, 'allow_tail') is False:
            errors.append("Internal bearing pulleys must allow tail position")

    if _field(pulley, 'is_lagged'):
        thickness = _field(pulley, 'lagging_thickness_in')
        if thickness is None:
            errors.append("Lagging thickness required when lagged")
        elif not _is_real_number(thickness):
            errors.append("Lagging thickness must be a number")
        elif thickness < 0:
            errors.append("Lagging thickness must be non-negative")

    crown = _field(pulley, 'crown_height_in')
    if crown is not None:
        if not _is_real_number(crown):
            errors.append("Crown height must be a number")
        elif crown < 0:
            errors.append("Crown height must be non-negative")

    return ValidationResult(errors)
