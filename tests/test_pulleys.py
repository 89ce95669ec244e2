#!/usr/bin/env python3
"""
Tests for pulley compatibility filtering and catalog validation.
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from conveyor_engine.models import (
    PulleyCatalogItem, PulleyFilterCriteria, Station, ShaftArrangement,
    PulleyConstruction, IssueSeverity
)
from conveyor_engine.pulleys import (
    filter_pulleys, get_compatible_pulleys, select_best_pulley, get_effective_diameter,
    validate_pulley_catalog_item, INTERNAL_BEARINGS_TAIL_ONLY, STATION_INCOMPATIBLE,
    FACE_WIDTH_EXCEEDED, FACE_WIDTH_BELOW_MIN, DIAMETER_TOO_SMALL, SPEED_LIMIT_EXCEEDED,
    LAGGING_RECOMMENDED, CROWN_RECOMMENDED
)

STD_DRUM_4 = PulleyCatalogItem(
    catalog_key="STD_DRUM_4",
    display_name="4in Standard Drum",
    diameter_in=4.0,
    face_width_min_in=6.0,
    face_width_max_in=24.0,
    crown_height_in=0.06,
    max_belt_speed_fpm=400,
)

LAGGED_6 = PulleyCatalogItem(
    catalog_key="DRUM_6_LAG",
    display_name="6in Lagged Drum",
    diameter_in=6.0,
    face_width_max_in=36.0,
    is_lagged=True,
    lagging_thickness_in=0.25,
    allow_snub=True,
    allow_bend=True,
    allow_takeup=True,
)

# Flags deliberately wrong: every station allowed
INTERNAL_BEARING = PulleyCatalogItem(
    catalog_key="IB_3",
    display_name="3in Internal Bearing",
    diameter_in=3.0,
    face_width_max_in=18.0,
    shaft_arrangement=ShaftArrangement.INTERNAL_BEARINGS,
    allow_head_drive=True,
    allow_tail=True,
    allow_snub=True,
    allow_bend=True,
    allow_takeup=True,
)


def codes(result):
    return [issue.code for issue in result.issues]


def result_for(results, key):
    return next(r for r in results if r.pulley.catalog_key == key)


def test_face_width_exceeded():
    """A 30in requirement exceeds STD_DRUM_4's 24in max."""
    criteria = PulleyFilterCriteria(station=Station.HEAD_DRIVE, face_width_required_in=30)
    result = filter_pulleys([STD_DRUM_4], criteria)[0]

    assert FACE_WIDTH_EXCEEDED in codes(result)
    assert result.has_errors


def test_face_width_within_range():
    """An 18in requirement fits STD_DRUM_4 with no issues."""
    criteria = PulleyFilterCriteria(station=Station.HEAD_DRIVE, face_width_required_in=18)
    result = filter_pulleys([STD_DRUM_4], criteria)[0]

    assert result.issues == []
    assert not result.has_errors


def test_face_width_below_min():
    criteria = PulleyFilterCriteria(station=Station.HEAD_DRIVE, face_width_required_in=4)
    result = filter_pulleys([STD_DRUM_4], criteria)[0]
    assert codes(result) == [FACE_WIDTH_BELOW_MIN]


def test_internal_bearings_rejected_off_tail():
    """Internal bearings are refused at every non-tail station, whatever the flags say."""
    for station in (Station.HEAD_DRIVE, Station.SNUB, Station.BEND, Station.TAKEUP):
        criteria = PulleyFilterCriteria(station=station, face_width_required_in=12)
        result = filter_pulleys([INTERNAL_BEARING], criteria)[0]

        assert INTERNAL_BEARINGS_TAIL_ONLY in codes(result), station
        assert result.has_errors
        assert get_compatible_pulleys([INTERNAL_BEARING], criteria) == []


def test_internal_bearings_allowed_at_tail():
    criteria = PulleyFilterCriteria(station=Station.TAIL, face_width_required_in=12)
    result = filter_pulleys([INTERNAL_BEARING], criteria)[0]

    assert INTERNAL_BEARINGS_TAIL_ONLY not in codes(result)
    assert not result.has_errors


def test_station_flag_disabled():
    """A pulley not flagged for a station gets a station error."""
    criteria = PulleyFilterCriteria(station=Station.SNUB, face_width_required_in=12)
    result = filter_pulleys([STD_DRUM_4], criteria)[0]

    assert codes(result) == [STATION_INCOMPATIBLE]
    assert "Snub" in result.issues[0].message


def test_lagging_counts_toward_effective_diameter():
    """Lagging adds its thickness on both sides."""
    assert get_effective_diameter(LAGGED_6) == 6.5
    assert get_effective_diameter(STD_DRUM_4) == 4.0

    ok = PulleyFilterCriteria(station=Station.HEAD_DRIVE, face_width_required_in=18,
                              min_diameter_in=6.5)
    assert not filter_pulleys([LAGGED_6], ok)[0].has_errors

    too_big = PulleyFilterCriteria(station=Station.HEAD_DRIVE, face_width_required_in=18,
                                   min_diameter_in=6.6)
    assert codes(filter_pulleys([LAGGED_6], too_big)[0]) == [DIAMETER_TOO_SMALL]


def test_speed_limit_is_warning_only():
    """Exceeding the pulley speed rating does not block selection."""
    criteria = PulleyFilterCriteria(station=Station.HEAD_DRIVE, face_width_required_in=18,
                                    belt_speed_fpm=450)
    result = filter_pulleys([STD_DRUM_4], criteria)[0]

    assert codes(result) == [SPEED_LIMIT_EXCEEDED]
    assert result.issues[0].severity == IssueSeverity.WARNING
    assert not result.has_errors
    assert get_compatible_pulleys([STD_DRUM_4], criteria) == [STD_DRUM_4]


def test_all_checks_evaluated():
    """Checks are not short-circuited."""
    criteria = PulleyFilterCriteria(station=Station.SNUB, face_width_required_in=30,
                                    min_diameter_in=10, belt_speed_fpm=500)
    result = filter_pulleys([STD_DRUM_4], criteria)[0]

    assert set(codes(result)) == {
        STATION_INCOMPATIBLE, FACE_WIDTH_EXCEEDED, DIAMETER_TOO_SMALL, SPEED_LIMIT_EXCEEDED
    }
    assert len(result.errors) == 3
    assert len(result.warnings) == 1


def test_lagging_and_crown_recommendations():
    criteria = PulleyFilterCriteria(station=Station.HEAD_DRIVE, face_width_required_in=18,
                                    require_lagged=True, require_crown=True)
    results = filter_pulleys([STD_DRUM_4, LAGGED_6], criteria)

    assert codes(result_for(results, "STD_DRUM_4")) == [LAGGING_RECOMMENDED]
    assert codes(result_for(results, "DRUM_6_LAG")) == [CROWN_RECOMMENDED]
    assert all(not r.has_errors for r in results)


def test_exact_filters_exclude_candidates():
    """Exact diameter and construction filters drop non-matching pulleys entirely."""
    wing = PulleyCatalogItem("WING_8", "8in Wing", diameter_in=8.0, face_width_max_in=36.0,
                             construction=PulleyConstruction.WING)
    pulleys = [STD_DRUM_4, LAGGED_6, wing]

    by_diameter = PulleyFilterCriteria(station=Station.HEAD_DRIVE, face_width_required_in=18,
                                       diameter_in=6.5)
    assert [r.pulley.catalog_key for r in filter_pulleys(pulleys, by_diameter)] == ["DRUM_6_LAG"]

    by_construction = PulleyFilterCriteria(station=Station.HEAD_DRIVE, face_width_required_in=18,
                                           construction=PulleyConstruction.WING)
    assert [r.pulley.catalog_key for r in filter_pulleys(pulleys, by_construction)] == ["WING_8"]


def test_inactive_pulleys_skipped():
    retired = PulleyCatalogItem("OLD_5", "Retired", diameter_in=5.0, face_width_max_in=30.0,
                                is_active=False)
    criteria = PulleyFilterCriteria(station=Station.HEAD_DRIVE, face_width_required_in=18)
    assert filter_pulleys([retired], criteria) == []


def test_ordering_valid_preferred_then_smallest():
    """Error-free before erroring, preferred before not, then smallest diameter."""
    small = PulleyCatalogItem("D5", "5in", diameter_in=5.0, face_width_max_in=30.0)
    large_preferred = PulleyCatalogItem("D8P", "8in pref", diameter_in=8.0,
                                        face_width_max_in=30.0, is_preferred=True)
    narrow = PulleyCatalogItem("D3N", "3in narrow", diameter_in=3.0, face_width_max_in=12.0,
                               is_preferred=True)
    criteria = PulleyFilterCriteria(station=Station.HEAD_DRIVE, face_width_required_in=18)

    results = filter_pulleys([narrow, small, STD_DRUM_4, large_preferred], criteria)
    assert [r.pulley.catalog_key for r in results] == ["D8P", "STD_DRUM_4", "D5", "D3N"]


def test_ordering_is_idempotent():
    """Identical inputs give identical order."""
    twin_a = PulleyCatalogItem("TWIN_A", "Twin A", diameter_in=6.0, face_width_max_in=30.0)
    twin_b = PulleyCatalogItem("TWIN_B", "Twin B", diameter_in=6.0, face_width_max_in=30.0)
    pulleys = [twin_a, STD_DRUM_4, twin_b, LAGGED_6, INTERNAL_BEARING]
    criteria = PulleyFilterCriteria(station=Station.HEAD_DRIVE, face_width_required_in=18)

    first = [r.pulley.catalog_key for r in filter_pulleys(pulleys, criteria)]
    second = [r.pulley.catalog_key for r in filter_pulleys(pulleys, criteria)]

    assert first == second
    assert first.index("TWIN_A") < first.index("TWIN_B")


def test_select_best_pulley():
    criteria = PulleyFilterCriteria(station=Station.HEAD_DRIVE, face_width_required_in=18,
                                    min_diameter_in=5.0)
    best = select_best_pulley([STD_DRUM_4, LAGGED_6], criteria)
    assert best.pulley.catalog_key == "DRUM_6_LAG"

    impossible = PulleyFilterCriteria(station=Station.HEAD_DRIVE, face_width_required_in=48)
    assert select_best_pulley([STD_DRUM_4, LAGGED_6], impossible) is None


def test_validate_catalog_item_ok():
    assert validate_pulley_catalog_item(STD_DRUM_4).is_valid


def test_validate_internal_bearing_flags():
    """Every non-tail flag on an internal bearing pulley is an error."""
    result = validate_pulley_catalog_item(INTERNAL_BEARING)

    assert result.errors == [
        "Internal bearing pulleys cannot be used as head/drive",
        "Internal bearing pulleys cannot be used as snub",
        "Internal bearing pulleys cannot be used as bend",
        "Internal bearing pulleys cannot be used as takeup",
    ]


def test_validate_partial_form_data():
    """Mapping input with several problems reports them all."""
    result = validate_pulley_catalog_item({
        'catalog_key': '',
        'display_name': 'Drum',
        'diameter_in': 0,
        'face_width_max_in': 12,
        'face_width_min_in': 14,
        'shaft_arrangement': 'INTERNAL_BEARINGS',
        'allow_tail': False,
        'is_lagged': True,
        'crown_height_in': -0.1,
    })

    assert result.errors == [
        "Catalog key is required",
        "Diameter must be positive",
        "Face width min cannot exceed max",
        "Internal bearing pulleys must allow tail position",
        "Lagging thickness required when lagged",
        "Crown height must be non-negative",
    ]


def test_validate_negative_lagging():
    result = validate_pulley_catalog_item({
        'catalog_key': 'X', 'display_name': 'X', 'diameter_in': 4, 'face_width_max_in': 12,
        'is_lagged': True, 'lagging_thickness_in': -0.25,
    })
    assert result.errors == ["Lagging thickness must be non-negative"]


def test_station_given_as_string():
    """Station values from a form are accepted; the tail guard still applies correctly."""
    at_tail = PulleyFilterCriteria(station="tail", face_width_required_in=12)
    result = filter_pulleys([INTERNAL_BEARING], at_tail)[0]
    assert result.issues == []

    at_head = PulleyFilterCriteria(station="head_drive", face_width_required_in=12)
    result = filter_pulleys([INTERNAL_BEARING], at_head)[0]
    assert codes(result) == [INTERNAL_BEARINGS_TAIL_ONLY]


def test_unknown_station_is_incompatible():
    """An unrecognised station never raises and is refused for every pulley."""
    criteria = PulleyFilterCriteria(station="idler", face_width_required_in=12)
    results = filter_pulleys([STD_DRUM_4, INTERNAL_BEARING], criteria)

    assert codes(result_for(results, "STD_DRUM_4")) == [STATION_INCOMPATIBLE]
    assert codes(result_for(results, "IB_3")) == [INTERNAL_BEARINGS_TAIL_ONLY, STATION_INCOMPATIBLE]
    assert "idler" in result_for(results, "STD_DRUM_4").issues[0].message
    assert select_best_pulley([STD_DRUM_4], criteria) is None


def test_construction_filter_given_as_string():
    criteria = PulleyFilterCriteria(station=Station.HEAD_DRIVE, face_width_required_in=18,
                                    construction="DRUM")
    assert [r.pulley.catalog_key for r in filter_pulleys([STD_DRUM_4, LAGGED_6], criteria)] == \
        ["STD_DRUM_4", "DRUM_6_LAG"]

    unknown = PulleyFilterCriteria(station=Station.HEAD_DRIVE, face_width_required_in=18,
                                   construction="HEXAGONAL")
    assert filter_pulleys([STD_DRUM_4, LAGGED_6], unknown) == []


def test_validate_non_numeric_form_values():
    """Text in numeric fields is reported, not raised."""
    result = validate_pulley_catalog_item({
        'catalog_key': 'K',
        'display_name': 'D',
        'diameter_in': 'abc',
        'face_width_max_in': '24',
    })
    assert result.errors == [
        "Diameter must be a number",
        "Face width max must be a number",
    ]

    result = validate_pulley_catalog_item({
        'catalog_key': 'K',
        'display_name': 'D',
        'diameter_in': 4,
        'face_width_max_in': 24,
        'face_width_min_in': 'six',
        'is_lagged': True,
        'lagging_thickness_in': 'thin',
        'crown_height_in': True,
    })
    assert result.errors == [
        "Face width min must be a number",
        "Lagging thickness must be a number",
        "Crown height must be a number",
    ]
