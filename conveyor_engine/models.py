"""
Core data models for the Conveyor Engineering Catalog Decision Engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any


class Station(Enum):
    """Functional position of a pulley in the conveyor loop."""
    HEAD_DRIVE = "head_drive"
    TAIL = "tail"
    SNUB = "snub"
    BEND = "bend"
    TAKEUP = "takeup"

    @property
    def label(self) -> str:
        return STATION_LABELS[self]


STATION_LABELS = {
    Station.HEAD_DRIVE: "Head/Drive",
    Station.TAIL: "Tail",
    Station.SNUB: "Snub",
    Station.BEND: "Bend",
    Station.TAKEUP: "Take-Up",
}


class ShaftArrangement(Enum):
    """How the pulley interfaces with its shaft and bearings."""
    THROUGH_SHAFT_EXTERNAL_BEARINGS = "THROUGH_SHAFT_EXTERNAL_BEARINGS"
    STUB_SHAFT_EXTERNAL_BEARINGS = "STUB_SHAFT_EXTERNAL_BEARINGS"
    INTERNAL_BEARINGS = "INTERNAL_BEARINGS"  # tail only


class PulleyConstruction(Enum):
    DRUM = "DRUM"
    WING = "WING"          # self-cleaning
    SPIRAL = "SPIRAL"
    MAGNETIC = "MAGNETIC"


class IssueSeverity(Enum):
    """Errors block a selection, warnings are advisory."""
    ERROR = "error"
    WARNING = "warning"


class CleatMethod(Enum):
    """Cleat attachment method for a belt material."""
    HOT_WELDED = "hot_welded"   # needs the spacing multiplier
    MOLDED = "molded"
    MECHANICAL = "mechanical"


# =============================================================================
# Belts
# =============================================================================

@dataclass(frozen=True)
class MaterialProfile:
    """
    Optional structured material data attached to a belt.

    When a min_dia field is present it overrides the matching legacy
    column on the belt; absent fields fall through to the legacy value.
    """
    material_family: str
    min_dia_no_vguide_in: Optional[float] = None
    min_dia_with_vguide_in: Optional[float] = None

    # Head tension banding; the banding minimums require supports_banding
    supports_banding: Optional[bool] = None
    banding_min_dia_no_vguide_in: Optional[float] = None
    banding_min_dia_with_vguide_in: Optional[float] = None

    construction: Optional[str] = None
    notes: Optional[str] = None
    source_ref: Optional[str] = None
    cleat_method: Optional[CleatMethod] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MaterialProfile':
        """Build a profile from a mapping (catalog column or admin form)."""
        cleat = data.get('cleat_method')
        return cls(
            material_family=str(data.get('material_family') or ''),
            min_dia_no_vguide_in=data.get('min_dia_no_vguide_in'),
            min_dia_with_vguide_in=data.get('min_dia_with_vguide_in'),
            supports_banding=data.get('supports_banding'),
            banding_min_dia_no_vguide_in=data.get('banding_min_dia_no_vguide_in'),
            banding_min_dia_with_vguide_in=data.get('banding_min_dia_with_vguide_in'),
            construction=data.get('construction'),
            notes=data.get('notes'),
            source_ref=data.get('source_ref'),
            cleat_method=CleatMethod(cleat) if cleat else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Mapping form with absent fields omitted."""
        out: Dict[str, Any] = {}
        for name in self.__dataclass_fields__:
            value = getattr(self, name)
            if value is None:
                continue
            out[name] = value.value if isinstance(value, Enum) else value
        return out


@dataclass(frozen=True)
class BeltCatalogItem:
    """Static belt definition from the catalog."""
    catalog_key: str
    display_name: str
    material: str
    piw: float
    pil: float

    # Legacy flat columns
    min_pulley_dia_no_vguide_in: float
    min_pulley_dia_with_vguide_in: float

    thickness_in: Optional[float] = None
    manufacturer: Optional[str] = None
    material_profile: Optional[MaterialProfile] = None

    # Operating ratings
    temp_min_f: Optional[float] = None
    temp_max_f: Optional[float] = None
    oil_resistant: bool = False

    is_active: bool = True


@dataclass(frozen=True)
class BandingInfo:
    """Head tension banding support reported for a belt."""
    supported: bool = False
    min_no_vguide: Optional[float] = None
    min_with_vguide: Optional[float] = None


@dataclass(frozen=True)
class EffectiveMinPulleyDiameters:
    """Resolved minimum pulley diameters for a belt."""
    no_vguide: float
    with_vguide: float
    source: str  # "catalog" or "material_profile"
    banding: BandingInfo = field(default_factory=BandingInfo)
    cleat_method: Optional[CleatMethod] = None

    def for_tracking(self, v_guided: bool, banded: bool = False) -> float:
        """Minimum diameter for one tracking configuration."""
        if banded and self.banding.supported:
            banding_min = (self.banding.min_with_vguide if v_guided
                           else self.banding.min_no_vguide)
            if banding_min is not None:
                return banding_min
        return self.with_vguide if v_guided else self.no_vguide


SOURCE_CATALOG = "catalog"
SOURCE_MATERIAL_PROFILE = "material_profile"


@dataclass(frozen=True)
class BeltCompatibilityIssue:
    """Temperature / fluid compatibility finding for a selected belt."""
    code: str
    message: str
    severity: IssueSeverity
    detail: Optional[str] = None
    section: str = "belt"  # "belt" or "application"


# =============================================================================
# Pulleys
# =============================================================================

@dataclass(frozen=True)
class PulleyCatalogItem:
    """Represents a pulley from the catalog."""
    catalog_key: str
    display_name: str

    # Physical specs
    diameter_in: float
    face_width_max_in: float
    face_width_min_in: Optional[float] = None
    crown_height_in: float = 0.0

    construction: PulleyConstruction = PulleyConstruction.DRUM
    shaft_arrangement: ShaftArrangement = ShaftArrangement.THROUGH_SHAFT_EXTERNAL_BEARINGS

    # Lagging
    is_lagged: bool = False
    lagging_thickness_in: Optional[float] = None

    # Station eligibility
    allow_head_drive: bool = True
    allow_tail: bool = True
    allow_snub: bool = False
    allow_bend: bool = False
    allow_takeup: bool = False

    # Operating limits
    max_belt_speed_fpm: Optional[float] = None

    manufacturer: Optional[str] = None
    part_number: Optional[str] = None
    is_preferred: bool = False
    is_active: bool = True


@dataclass(frozen=True)
class PulleyFilterCriteria:
    """Requirement bundle for one pulley station."""
    station: Station
    face_width_required_in: float
    min_diameter_in: Optional[float] = None   # from the belt
    belt_speed_fpm: Optional[float] = None

    # Exact filters; non-matching pulleys are dropped from the results
    diameter_in: Optional[float] = None
    construction: Optional[PulleyConstruction] = None

    # Soft requirements, reported as warnings
    require_lagged: bool = False
    require_crown: bool = False


@dataclass(frozen=True)
class PulleyIssue:
    code: str
    severity: IssueSeverity
    message: str
    field: Optional[str] = None


@dataclass(frozen=True)
class PulleySelectionResult:
    """One filtered candidate with everything wrong with it."""
    pulley: PulleyCatalogItem
    effective_diameter_in: float
    issues: List[PulleyIssue] = field(default_factory=list)

    @property
    def errors(self) -> List[PulleyIssue]:
        return [i for i in self.issues if i.severity == IssueSeverity.ERROR]

    @property
    def warnings(self) -> List[PulleyIssue]:
        return [i for i in self.issues if i.severity == IssueSeverity.WARNING]

    @property
    def has_errors(self) -> bool:
        return any(i.severity == IssueSeverity.ERROR for i in self.issues)


# =============================================================================
# Gearmotors
# =============================================================================

@dataclass(frozen=True)
class GearmotorCandidate:
    """One vendor performance point, plus the fields the selector derives."""
    vendor: str
    series: str
    size_code: str
    part_number: str
    motor_hp: float
    output_rpm: float
    output_torque_lb_in: float
    service_factor_catalog: float

    description: str = ""
    source_ref: Optional[str] = None

    # Derived by the selector
    adjusted_capacity: float = 0.0
    oversize_ratio: float = 0.0
    speed_delta: float = 0.0
    speed_delta_pct: float = 0.0

    @property
    def series_code(self) -> str:
        from .gearmotors import get_series_code
        return get_series_code(self.size_code, self.part_number)

    @property
    def margin_pct(self) -> int:
        """Capacity margin over the requirement, in whole percent."""
        return round((self.oversize_ratio - 1) * 100)


@dataclass(frozen=True)
class GearmotorSelectionInputs:
    required_output_rpm: float
    required_output_torque_lb_in: float
    chosen_service_factor: float
    speed_tolerance_pct: Optional[float] = None  # default from settings


@dataclass
class GearmotorSelectionResult:
    """Ranked survivors and the series they came from."""
    candidates: List[GearmotorCandidate]
    selected_series: Optional[str]
    inputs: GearmotorSelectionInputs
    message: Optional[str] = None

    @property
    def best(self) -> Optional[GearmotorCandidate]:
        return self.candidates[0] if self.candidates else None


@dataclass(frozen=True)
class ParsedModelType:
    """Components of a vendor model string like 'SK 1SI31 - 56C - 63S/4'."""
    worm_stages: int
    gear_unit_size: str   # "SI31"
    size_code: str        # "31"
    adapter_code: str     # "56C"
    motor_frame: str      # "63S/4"


# =============================================================================
# Tracking
# =============================================================================

class ApplicationClass(Enum):
    UNIT_HANDLING = "unit_handling"
    BULK_HANDLING = "bulk_handling"


class BeltConstruction(Enum):
    GENERAL = "general"
    FABRIC_PLY = "fabric_ply"
    THERMOPLASTIC_PVC_PU = "thermoplastic_pvc_pu"
    RUBBER_COMPOUND = "rubber_compound"
    STEEL_CORD_OR_VERY_STIFF = "steel_cord_or_very_stiff"
    PROFILED_SIDEWALL_OR_HIGH_CLEAT = "profiled_sidewall_or_high_cleat"


class TrackingPreference(Enum):
    AUTO = "auto"
    PREFER_CROWNED = "prefer_crowned"
    PREFER_HYBRID = "prefer_hybrid"
    PREFER_V_GUIDED = "prefer_v_guided"


class TrackingMode(Enum):
    """Tracking methods, declared weakest to strongest control."""
    CROWNED = "crowned"
    HYBRID = "hybrid"           # crowned pulleys + V-guide
    V_GUIDED = "v_guided"       # flat pulleys + V-guide

    @property
    def strength(self) -> int:
        return list(TrackingMode).index(self)

    @property
    def display_name(self) -> str:
        return TRACKING_MODE_DISPLAY_NAMES[self]


TRACKING_MODE_DISPLAY_NAMES = {
    TrackingMode.CROWNED: "Crowned pulleys",
    TrackingMode.HYBRID: "Hybrid (crowned pulleys + V-guide)",
    TrackingMode.V_GUIDED: "V-guided (flat pulleys + V-guide)",
}


class LwBand(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DisturbanceSeverity(Enum):
    """Ordered severity; next() walks one step worse and stops at the top."""
    MINIMAL = "minimal"
    MODERATE = "moderate"
    SIGNIFICANT = "significant"

    def next(self) -> 'DisturbanceSeverity':
        members = list(DisturbanceSeverity)
        idx = members.index(self)
        return members[min(idx + 1, len(members) - 1)]


@dataclass(frozen=True)
class TrackingRecommendationInput:
    """Geometry and operating conditions for the tracking recommendation."""
    conveyor_length_cc_in: float
    belt_width_in: Optional[float]
    application_class: Optional[ApplicationClass] = None
    belt_construction: Optional[BeltConstruction] = None

    # Disturbance factors
    reversing_operation: bool = False
    disturbance_side_loading: bool = False         # feeds, plows, transfers
    disturbance_load_variability: bool = False
    disturbance_environment: bool = False          # dirty / wet / outdoor
    disturbance_installation_risk: bool = False    # site-built, long frames

    tracking_preference: Optional[TrackingPreference] = None


@dataclass(frozen=True)
class TrackingRecommendationOutput:
    lw_ratio: float
    lw_band: LwBand
    disturbance_count: int
    severity_raw: DisturbanceSeverity
    severity_modified: DisturbanceSeverity
    mode_recommended: TrackingMode
    rationale: str
    note: Optional[str] = None
    with_note: bool = False         # matrix cell carries an advisory
    is_override: bool = False
    computed_mode: Optional[TrackingMode] = None


# =============================================================================
# Validation
# =============================================================================

@dataclass
class ValidationResult:
    """Every violation found in one pass."""
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0


def as_enum(enum_cls, value):
    """Accept enum members or their string values; unknown strings become None."""
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None
