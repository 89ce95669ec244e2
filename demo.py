#!/usr/bin/env python3
"""
Demonstration of the Conveyor Engineering Catalog Decision Engine.

This script walks one conveyor through the engine:
1. Resolve the belt's minimum pulley diameters
2. Filter pulleys for the drive and tail stations
3. Select a gearmotor from vendor performance points
4. Recommend a belt tracking method
"""

import sys
from pathlib import Path

# Add to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from conveyor_engine import (
    BeltCatalogItem, MaterialProfile, PulleyCatalogItem, PulleyFilterCriteria,
    GearmotorCandidate, GearmotorSelectionInputs, TrackingRecommendationInput,
    Station, ShaftArrangement, get_effective_min_pulley_diameters,
    required_min_pulley_diameter, check_belt_compatibility, filter_pulleys,
    select_from_catalog, calculate_tracking_recommendation
)
from conveyor_engine.models import ApplicationClass, BeltConstruction, CleatMethod
from conveyor_engine.report import (
    format_belt_minimums, format_compatibility_issues, format_pulley_report,
    format_gearmotor_report, format_tracking_report
)


def print_header(text):
    """Print a formatted header."""
    print("\n" + "=" * 70)
    print(text)
    print("=" * 70)


BELT = BeltCatalogItem(
    catalog_key="PVC120",
    display_name="PVC 120 General Purpose",
    material="PVC",
    piw=120,
    pil=2.4,
    min_pulley_dia_no_vguide_in=2.5,
    min_pulley_dia_with_vguide_in=4.0,
    material_profile=MaterialProfile(
        material_family="PVC",
        min_dia_no_vguide_in=3.0,
        supports_banding=True,
        banding_min_dia_no_vguide_in=4.0,
        cleat_method=CleatMethod.HOT_WELDED,
    ),
    temp_min_f=14,
    temp_max_f=176,
)

PULLEYS = [
    PulleyCatalogItem("STD_DRUM_4", "4in Standard Drum", diameter_in=4, face_width_max_in=24,
                      face_width_min_in=6, crown_height_in=0.06, max_belt_speed_fpm=400,
                      is_preferred=True),
    PulleyCatalogItem("DRUM_6_LAG", "6in Lagged Drum", diameter_in=6, face_width_max_in=36,
                      is_lagged=True, lagging_thickness_in=0.25, allow_snub=True,
                      allow_bend=True, allow_takeup=True),
    PulleyCatalogItem("IB_TAIL_3", "3in Internal Bearing Tail", diameter_in=3,
                      face_width_max_in=18, allow_head_drive=False,
                      shaft_arrangement=ShaftArrangement.INTERNAL_BEARINGS),
]

GEARMOTORS = [
    GearmotorCandidate("NORD", "FLEXBLOC", "31", "32510040", 0.25, 58, 420, 1.2),
    GearmotorCandidate("NORD", "FLEXBLOC", "40", "32510112", 0.5, 60, 720, 1.5),
    GearmotorCandidate("NORD", "FLEXBLOC", "50", "32510233", 0.75, 62, 1150, 1.4),
    GearmotorCandidate("NORD", "MINICASE", "40", "62110042", 0.5, 29, 980, 1.2),
]


def main():
    """Run the demonstration."""
    print_header("CONVEYOR ENGINEERING DECISION ENGINE - DEMONSTRATION")

    # Demo 1: Belt minimums
    print_header("DEMO 1: Belt Minimum Pulley Diameters")
    print("The material profile overrides only the fields it defines.\n")
    print(format_belt_minimums(BELT, get_effective_min_pulley_diameters(BELT)))

    print("\nCompatibility at 170F part temperature with oil on the material:")
    issues = check_belt_compatibility(BELT, part_temp=170, fluids_on_material="YES", fluid_type="OIL")
    print(format_compatibility_issues(issues))

    # Demo 2: Pulleys
    print_header("DEMO 2: Pulley Compatibility")
    min_dia = required_min_pulley_diameter(BELT, v_guided=False)
    cleated_dia = required_min_pulley_diameter(BELT, v_guided=False, cleats_enabled=True,
                                               cleat_spacing_in=6)
    print(f"Belt minimum: {min_dia:g}\" (with 6\" hot-welded cleats: {cleated_dia:g}\")")

    for station in (Station.HEAD_DRIVE, Station.TAIL):
        criteria = PulleyFilterCriteria(station=station, face_width_required_in=18,
                                        min_diameter_in=min_dia, belt_speed_fpm=450)
        print()
        print(format_pulley_report(criteria, filter_pulleys(PULLEYS, criteria)))

    # Demo 3: Gearmotor
    print_header("DEMO 3: Gearmotor Selection")
    inputs = GearmotorSelectionInputs(required_output_rpm=60, required_output_torque_lb_in=700,
                                      chosen_service_factor=1.5)
    print(format_gearmotor_report(select_from_catalog(GEARMOTORS, inputs)))

    print("\nSlow requirement only the fallback series can meet:")
    slow = GearmotorSelectionInputs(required_output_rpm=30, required_output_torque_lb_in=600,
                                    chosen_service_factor=1.0)
    print(format_gearmotor_report(select_from_catalog(GEARMOTORS, slow)))

    # Demo 4: Tracking
    print_header("DEMO 4: Belt Tracking Recommendation")
    scenarios = [
        ("Short unit-handling conveyor", TrackingRecommendationInput(60, 18)),
        ("120in x 12in, one disturbance", TrackingRecommendationInput(
            120, 12, disturbance_load_variability=True)),
        ("Reversing with side loading", TrackingRecommendationInput(
            120, 24, reversing_operation=True, disturbance_side_loading=True)),
        ("Long bulk conveyor, stiff belt", TrackingRecommendationInput(
            300, 24, application_class=ApplicationClass.BULK_HANDLING,
            belt_construction=BeltConstruction.STEEL_CORD_OR_VERY_STIFF)),
    ]
    for title, data in scenarios:
        print(f"\n{title}:")
        print(format_tracking_report(calculate_tracking_recommendation(data)))

    print_header("DEMONSTRATION COMPLETE")
    print("""
For catalog files:
  python -m conveyor_engine belt PVC120 --part-temp 170
  python -m conveyor_engine pulleys head_drive 18 --belt PVC120
  python -m conveyor_engine gearmotor 60 700 --sf 1.5
  python -m conveyor_engine tracking 120 12 --reversing
""")


if __name__ == '__main__':
    main()
