#!/usr/bin/env python3
"""
Tests for the engineering catalog loader.
"""

import csv
import json
import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from conveyor_engine.catalog import EngineeringCatalog
from conveyor_engine.belts import get_effective_min_pulley_diameters
from conveyor_engine.models import ShaftArrangement, PulleyConstruction, CleatMethod

SAMPLE_DATA = Path(__file__).parent.parent / 'conveyor_engine' / 'sample_data'

BELT_FIELDS = ['catalog_key', 'display_name', 'material', 'piw', 'pil',
               'min_pulley_dia_no_vguide_in', 'min_pulley_dia_with_vguide_in',
               'temp_max_f', 'oil_resistant', 'material_profile']

PULLEY_FIELDS = ['catalog_key', 'display_name', 'diameter_in', 'face_width_max_in',
                 'shaft_arrangement', 'allow_head_drive', 'allow_tail', 'is_lagged',
                 'lagging_thickness_in', 'is_active']


def write_csv(path, fields, rows):
    with open(path, 'w', encoding='utf-8', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=fields)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
    return str(path)


def test_load_belts_with_profile(tmp_path):
    """JSON profile columns are parsed and feed the resolver."""
    path = write_csv(tmp_path / 'belts.csv', BELT_FIELDS, [
        {'catalog_key': 'PVC120', 'display_name': 'PVC 120', 'material': 'PVC',
         'piw': '120', 'pil': '2.4', 'min_pulley_dia_no_vguide_in': '3.0',
         'min_pulley_dia_with_vguide_in': '4.0', 'temp_max_f': '176', 'oil_resistant': 'no',
         'material_profile': json.dumps({'material_family': 'PVC',
                                         'min_dia_no_vguide_in': 2.5,
                                         'cleat_method': 'hot_welded'})},
        {'catalog_key': 'PU80', 'display_name': '', 'material': 'PU',
         'piw': '80', 'pil': '1.8', 'min_pulley_dia_no_vguide_in': '2.0',
         'min_pulley_dia_with_vguide_in': '3.0', 'temp_max_f': '', 'oil_resistant': 'yes',
         'material_profile': ''},
    ])

    catalog = EngineeringCatalog()
    assert catalog.load_belts(path) == 2

    pvc = catalog.get_belt('PVC120')
    assert pvc.material_profile.cleat_method == CleatMethod.HOT_WELDED
    assert pvc.temp_max_f == 176
    effective = get_effective_min_pulley_diameters(pvc)
    assert (effective.no_vguide, effective.with_vguide) == (2.5, 4.0)

    pu = catalog.get_belt('PU80')
    assert pu.display_name == 'PU80'
    assert pu.material_profile is None
    assert pu.temp_max_f is None
    assert pu.oil_resistant is True


def test_invalid_belt_rows_skipped(tmp_path):
    """Rows with a bad profile or missing numbers are logged and dropped."""
    path = write_csv(tmp_path / 'belts.csv', BELT_FIELDS, [
        {'catalog_key': 'BAD_PROFILE', 'display_name': 'x', 'material': 'PVC',
         'piw': '120', 'pil': '2.4', 'min_pulley_dia_no_vguide_in': '3.0',
         'min_pulley_dia_with_vguide_in': '4.0',
         'material_profile': json.dumps({'material_family': 'PVC',
                                         'banding_min_dia_no_vguide_in': 4.0})},
        {'catalog_key': 'NO_PIW', 'display_name': 'x', 'material': 'PVC',
         'piw': 'n/a', 'pil': '2.4', 'min_pulley_dia_no_vguide_in': '3.0',
         'min_pulley_dia_with_vguide_in': '4.0'},
    ])

    catalog = EngineeringCatalog()
    assert catalog.load_belts(path) == 0
    assert catalog.get_belt('BAD_PROFILE') is None


def test_load_pulleys_rejects_invalid_items(tmp_path):
    """Pulley rows must pass the admin validator to be loaded."""
    path = write_csv(tmp_path / 'pulleys.csv', PULLEY_FIELDS, [
        {'catalog_key': 'STD_DRUM_4', 'display_name': '4in Drum', 'diameter_in': '4',
         'face_width_max_in': '24', 'shaft_arrangement': '', 'allow_head_drive': 'yes',
         'allow_tail': 'yes', 'is_lagged': 'no'},
        {'catalog_key': 'IB_BAD', 'display_name': 'Bad IB', 'diameter_in': '3',
         'face_width_max_in': '18', 'shaft_arrangement': 'INTERNAL_BEARINGS',
         'allow_head_drive': 'yes', 'allow_tail': 'yes'},
        {'catalog_key': 'LAG_NO_THICKNESS', 'display_name': 'Lagged', 'diameter_in': '6',
         'face_width_max_in': '30', 'allow_head_drive': 'yes', 'is_lagged': 'true'},
        {'catalog_key': 'WEIRD_SHAFT', 'display_name': 'Weird', 'diameter_in': '6',
         'face_width_max_in': '30', 'shaft_arrangement': 'FLOATING'},
    ])

    catalog = EngineeringCatalog()
    assert catalog.load_pulleys(path) == 1

    drum = catalog.get_pulley('STD_DRUM_4')
    assert drum.shaft_arrangement == ShaftArrangement.THROUGH_SHAFT_EXTERNAL_BEARINGS
    assert drum.construction == PulleyConstruction.DRUM
    assert drum.allow_head_drive is True
    assert drum.allow_snub is False
    assert drum.is_active is True
    assert catalog.get_pulley('IB_BAD') is None


def test_load_gearmotors_indexed_by_series(tmp_path):
    path = write_csv(tmp_path / 'gearmotors.csv',
                     ['series', 'size_code', 'part_number', 'motor_hp', 'output_rpm',
                      'output_torque_lb_in', 'service_factor_catalog'],
                     [
                         {'series': 'flexbloc', 'size_code': '40', 'part_number': '32510112',
                          'motor_hp': '0.5', 'output_rpm': '60', 'output_torque_lb_in': '720',
                          'service_factor_catalog': '1.5'},
                         {'series': 'MINICASE', 'size_code': '31', 'part_number': '62110015',
                          'motor_hp': '0.33', 'output_rpm': '30', 'output_torque_lb_in': '610',
                          'service_factor_catalog': ''},
                     ])

    catalog = EngineeringCatalog()
    assert catalog.load_gearmotors(path) == 2

    flexbloc = catalog.get_gearmotors_by_series('FlexBloc')
    assert len(flexbloc) == 1
    assert flexbloc[0].vendor == 'NORD'
    assert flexbloc[0].service_factor_catalog == 1.5
    assert catalog.get_gearmotors_by_series('MINICASE')[0].service_factor_catalog == 1.0
    assert catalog.get_gearmotors_by_series('UNKNOWN') == []


def test_load_excel(tmp_path):
    """Excel catalogs are read from the first worksheet."""
    import openpyxl

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.append(['Series', 'Size_Code', 'Part_Number', 'Motor_HP', 'Output_RPM',
               'Output_Torque_lb_in', 'Service_Factor_Catalog'])
    ws.append(['FLEXBLOC', '50', '32510233', 0.75, 62, 1150, 1.4])
    path = tmp_path / 'gearmotors.xlsx'
    wb.save(path)

    catalog = EngineeringCatalog()
    assert catalog.load_gearmotors(str(path)) == 1
    assert catalog.gearmotors[0].output_torque_lb_in == 1150
    assert catalog.gearmotors[0].series_code == 'SI50'


def test_missing_file_raises(tmp_path):
    catalog = EngineeringCatalog()
    with pytest.raises(FileNotFoundError):
        catalog.load_belts(str(tmp_path / 'nope.csv'))


def test_sample_data_statistics():
    """The bundled sample catalog loads cleanly."""
    catalog = EngineeringCatalog()
    catalog.load_belts(str(SAMPLE_DATA / 'belts.csv'))
    catalog.load_pulleys(str(SAMPLE_DATA / 'pulleys.csv'))
    catalog.load_gearmotors(str(SAMPLE_DATA / 'gearmotors.csv'))

    stats = catalog.get_statistics()
    assert stats['total_belts'] == 3
    assert stats['belts_with_material_profile'] == 1
    assert stats['total_pulleys'] == 5
    assert stats['internal_bearing_pulleys'] == 1
    assert stats['pulley_constructions'] == {'DRUM': 4, 'WING': 1}
    assert stats['total_gearmotor_points'] == 7
    assert stats['gearmotor_series'] == {'FLEXBLOC': 5, 'MINICASE': 2}
