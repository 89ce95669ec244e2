"""
Conveyor Engineering Catalog Decision Engine

Pure decision functions that turn engineering catalog data into
selections and recommendations for belt conveyor configuration:
- Belt minimum pulley diameter resolution (legacy columns vs material profile)
- Pulley compatibility filtering per station (internal bearings are tail only)
- Gearmotor selection from vendor performance points (primary, then fallback series)
- Belt tracking recommendation (crowned / hybrid / V-guided)
"""

from .config import EngineSettings, default_settings
from .models import (
    BeltCatalogItem, MaterialProfile, EffectiveMinPulleyDiameters,
    PulleyCatalogItem, PulleyFilterCriteria, PulleySelectionResult, PulleyIssue,
    Station, ShaftArrangement, PulleyConstruction, IssueSeverity,
    GearmotorCandidate, GearmotorSelectionInputs, GearmotorSelectionResult,
    TrackingRecommendationInput, TrackingRecommendationOutput, TrackingMode,
    ValidationResult
)
from .belts import (
    get_effective_min_pulley_diameters, validate_material_profile,
    required_min_pulley_diameter, check_belt_compatibility
)
from .pulleys import (
    filter_pulleys, get_compatible_pulleys, select_best_pulley,
    validate_pulley_catalog_item
)
from .gearmotors import (
    select_gearmotor, select_from_catalog, validate_selection_inputs, GearmotorInputError
)
from .tracking import calculate_tracking_recommendation
from .catalog import EngineeringCatalog

__version__ = "1.0.0"
__all__ = [
    "EngineSettings",
    "default_settings",
    "BeltCatalogItem",
    "MaterialProfile",
    "EffectiveMinPulleyDiameters",
    "PulleyCatalogItem",
    "PulleyFilterCriteria",
    "PulleySelectionResult",
    "PulleyIssue",
    "Station",
    "ShaftArrangement",
    "PulleyConstruction",
    "IssueSeverity",
    "GearmotorCandidate",
    "GearmotorSelectionInputs",
    "GearmotorSelectionResult",
    "TrackingRecommendationInput",
    "TrackingRecommendationOutput",
    "TrackingMode",
    "ValidationResult",
    "get_effective_min_pulley_diameters",
    "validate_material_profile",
    "required_min_pulley_diameter",
    "check_belt_compatibility",
    "filter_pulleys",
    "get_compatible_pulleys",
    "select_best_pulley",
    "validate_pulley_catalog_item",
    "select_gearmotor",
    "select_from_catalog",
    "validate_selection_inputs",
    "GearmotorInputError",
    "calculate_tracking_recommendation",
    "EngineeringCatalog",
]
