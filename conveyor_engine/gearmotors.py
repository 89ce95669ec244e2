"""
Gearmotor selection from vendor performance data.

Series policy: the primary series (FLEXBLOC) is searched first and the
fallback series (MINICASE) only when the primary yields nothing. One
result set never mixes series.

Ranking, ascending:
1. Smallest oversize ratio (adjusted_capacity / required torque)
2. Closest speed match
3. Smallest motor HP
"""

import logging
import re
from collections import defaultdict
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from .config import EngineSettings, default_settings
from .models import (
    GearmotorCandidate, GearmotorSelectionInputs, GearmotorSelectionResult,
    ParsedModelType, ValidationResult
)

logger = logging.getLogger(__name__)


class GearmotorInputError(ValueError):
    """Selection inputs violate the caller contract."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


MODEL_TYPE_PATTERN = re.compile(r'SK\s*(\d)?SI(\d+)\s*-\s*(\w+)\s*-\s*(\S+)', re.IGNORECASE)
MODEL_TYPE_ALT_PATTERN = re.compile(r'(\d)?SI(\d+).*?-\s*(\w+)\s*-\s*(\S+)', re.IGNORECASE)
REAL_PART_NUMBER_PATTERN = re.compile(r'^[36]\d{7}$')


def validate_selection_inputs(inputs: GearmotorSelectionInputs) -> ValidationResult:
    """Caller-contract checks. A chosen SF below 1.0 is allowed."""
    errors = []
    if inputs.required_output_rpm <= 0:
        errors.append("Required output RPM must be greater than 0")
    if inputs.required_output_torque_lb_in <= 0:
        errors.append("Required output torque must be greater than 0")
    if inputs.chosen_service_factor <= 0:
        errors.append("Service factor must be greater than 0")
    if inputs.speed_tolerance_pct is not None and inputs.speed_tolerance_pct < 0:
        errors.append("Speed tolerance must be >= 0")
    return ValidationResult(errors)


def calculate_adjusted_capacity(candidate: GearmotorCandidate,
                                chosen_service_factor: float) -> float:
    """
    Catalog torque normalized to the chosen service factor.

    A vendor that rates conservatively (higher catalog SF) leaves more
    usable capacity; a higher chosen SF leaves less.
    """
    catalog_sf = candidate.service_factor_catalog or 1.0
    return candidate.output_torque_lb_in * (catalog_sf / chosen_service_factor)


def speed_window(inputs: GearmotorSelectionInputs,
                 settings: EngineSettings = default_settings):
    """Inclusive (min_rpm, max_rpm) tolerance window."""
    tolerance_pct = inputs.speed_tolerance_pct
    if tolerance_pct is None:
        tolerance_pct = settings.speed_tolerance_pct
    spread = inputs.required_output_rpm * (tolerance_pct / 100)
    return inputs.required_output_rpm - spread, inputs.required_output_rpm + spread


def evaluate_candidates(pool: Iterable[GearmotorCandidate],
                        inputs: GearmotorSelectionInputs,
                        settings: EngineSettings = default_settings) -> List[GearmotorCandidate]:
    """
    Apply the speed and capacity filters to one pool.
    Returns copies carrying the derived fields; the pool is untouched.
    """
    min_rpm, max_rpm = speed_window(inputs, settings)
    required_rpm = inputs.required_output_rpm
    required_torque = inputs.required_output_torque_lb_in

    survivors = []
    for candidate in pool:
        if not (min_rpm <= candidate.output_rpm <= max_rpm):
            continue

        adjusted = calculate_adjusted_capacity(candidate, inputs.chosen_service_factor)
        if adjusted < required_torque:
            continue

        speed_delta = abs(candidate.output_rpm - required_rpm)
        survivors.append(replace(
            candidate,
            adjusted_capacity=adjusted,
            oversize_ratio=adjusted / required_torque,
            speed_delta=speed_delta,
            speed_delta_pct=speed_delta / required_rpm * 100,
        ))

    return survivors


class _RankKey:
    """Three-key comparison with float tolerance on the first two keys."""

    __slots__ = ('candidate', 'settings')

    def __init__(self, candidate: GearmotorCandidate, settings: EngineSettings):
        self.candidate = candidate
        self.settings = settings

    def _compare(self, other: '_RankKey') -> float:
        a, b = self.candidate, other.candidate
        oversize_diff = a.oversize_ratio - b.oversize_ratio
        if abs(oversize_diff) > self.settings.oversize_epsilon:
            return oversize_diff
        speed_diff = a.speed_delta - b.speed_delta
        if abs(speed_diff) > self.settings.speed_delta_epsilon:
            return speed_diff
        return a.motor_hp - b.motor_hp

    def __lt__(self, other: '_RankKey') -> bool:
        return self._compare(other) < 0


def rank_candidates(candidates: List[GearmotorCandidate],
                    settings: EngineSettings = default_settings) -> List[GearmotorCandidate]:
    """Stable ascending sort; full ties keep their input order."""
    return sorted(candidates, key=lambda c: _RankKey(c, settings))


def select_gearmotor(primary: Iterable[GearmotorCandidate],
                     fallback: Iterable[GearmotorCandidate],
                     inputs: GearmotorSelectionInputs,
                     settings: EngineSettings = default_settings) -> GearmotorSelectionResult:
    """
    Select gearmotor candidates for the required output.

    Raises GearmotorInputError for invalid inputs. Finding nothing is a
    normal outcome: the result is empty with an explanatory message.
    """
    validation = validate_selection_inputs(inputs)
    if not validation.is_valid:
        raise GearmotorInputError(validation.errors)

    for pool in (primary, fallback):
        pool = list(pool)
        survivors = evaluate_candidates(pool, inputs, settings)
        if survivors:
            ranked = rank_candidates(survivors, settings)
            series = ranked[0].series
            logger.debug("Gearmotor selection: %d of %d %s points qualify, best %s",
                         len(ranked), len(pool), series, ranked[0].part_number)
            return GearmotorSelectionResult(
                candidates=ranked,
                selected_series=series,
                inputs=inputs,
            )
        logger.debug("Gearmotor selection: no qualifying points in pool of %d", len(pool))

    return GearmotorSelectionResult(
        candidates=[],
        selected_series=None,
        inputs=inputs,
        message=(
            f"No gearmotor found matching requirements: {inputs.required_output_rpm:g} RPM, "
            f"{inputs.required_output_torque_lb_in:g} lb-in @ SF {inputs.chosen_service_factor:g}. "
            "Try adjusting the service factor or speed tolerance."
        ),
    )


def split_by_series(candidates: Iterable[GearmotorCandidate]) -> Dict[str, List[GearmotorCandidate]]:
    """Group a mixed vendor pool by series, keeping catalog order."""
    grouped: Dict[str, List[GearmotorCandidate]] = defaultdict(list)
    for candidate in candidates:
        grouped[candidate.series.upper()].append(candidate)
    return dict(grouped)


def select_from_catalog(candidates: Iterable[GearmotorCandidate],
                        inputs: GearmotorSelectionInputs,
                        settings: EngineSettings = default_settings) -> GearmotorSelectionResult:
    """Run the primary-then-fallback policy over a mixed catalog pool."""
    grouped = split_by_series(candidates)
    return select_gearmotor(
        grouped.get(settings.primary_series.upper(), []),
        grouped.get(settings.fallback_series.upper(), []),
        inputs,
        settings,
    )


def get_series_code(size_code: str, part_number: str,
                    settings: EngineSettings = default_settings) -> str:
    """
    Display code such as "SI63".

    Uses the numeric size code when there is one, then a prefixed code at
    the start of the part number ("SI63-GU-003"), then the raw size code.
    """
    numeric = re.match(r'\s*(\d+)', size_code or '')
    if numeric:
        return f"{settings.series_prefix}{int(numeric.group(1))}"

    prefixed = re.match(rf'^({re.escape(settings.series_prefix)}\d+)', part_number or '')
    if prefixed:
        return prefixed.group(1)

    return size_code


def parse_model_type(model_type: Optional[str]) -> Optional[ParsedModelType]:
    """
    Parse a vendor model string, e.g. "SK 1SI31 - 56C - 63S/4".
    A missing stage number means one stage.
    """
    if not model_type:
        return None

    normalized = re.sub(r'\s+', ' ', model_type).strip()
    match = MODEL_TYPE_PATTERN.search(normalized) or MODEL_TYPE_ALT_PATTERN.search(normalized)
    if not match:
        return None

    stages, size, adapter, frame = match.groups()
    return ParsedModelType(
        worm_stages=int(stages or '1'),
        gear_unit_size=f"SI{size}",
        size_code=size,
        adapter_code=adapter,
        motor_frame=frame,
    )


def is_real_part_number(part_number: Optional[str]) -> bool:
    """Orderable vendor part numbers are 8 digits starting with 3 or 6."""
    if not part_number:
        return False
    return bool(REAL_PART_NUMBER_PATTERN.match(part_number))
