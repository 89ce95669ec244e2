#!/usr/bin/env python3
"""
Command-Line Interface for the Conveyor Engineering Catalog Decision Engine.
"""

import argparse
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .belts import (
    get_effective_min_pulley_diameters, required_min_pulley_diameter,
    check_belt_compatibility
)
from .catalog import EngineeringCatalog
from .gearmotors import select_from_catalog, GearmotorInputError
from .models import (
    Station, PulleyFilterCriteria, PulleyConstruction, GearmotorSelectionInputs,
    TrackingRecommendationInput, ApplicationClass, BeltConstruction, TrackingPreference
)
from .pulleys import filter_pulleys
from .report import (
    format_belt_minimums, format_compatibility_issues, format_pulley_report,
    format_gearmotor_report, format_tracking_report
)
from .tracking import calculate_tracking_recommendation

DEFAULT_DATA_DIR = Path(__file__).parent / 'sample_data'


def configure_logging(verbose: bool = False, log_file: str = None):
    """Console logging, plus a rotating file when asked."""
    root = logging.getLogger('conveyor_engine')
    if root.handlers:
        return root
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    fmt = logging.Formatter("[%(asctime)s] %(levelname)s %(name)s - %(message)s")

    console = logging.StreamHandler()
    console.setFormatter(fmt)
    root.addHandler(console)

    if log_file:
        fh = RotatingFileHandler(log_file, maxBytes=512000, backupCount=2, encoding="utf-8")
        fh.setFormatter(fmt)
        root.addHandler(fh)
    return root


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='conveyor-engine',
        description='Conveyor engineering catalog decision engine',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Effective minimum pulley diameters for a belt
  conveyor-engine belt PVC120

  # Pulleys for the drive station of an 18" belt
  conveyor-engine pulleys head_drive 18 --belt PVC120 --speed 200

  # Gearmotor for 60 RPM at 700 lb-in with SF 1.5
  conveyor-engine gearmotor 60 700 --sf 1.5

  # Tracking recommendation for a 120" x 12" reversing conveyor
  conveyor-engine tracking 120 12 --reversing
        """
    )
    parser.add_argument('--data-dir', default=str(DEFAULT_DATA_DIR),
                        help='Directory holding belts/pulleys/gearmotors catalog files')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    parser.add_argument('--log-file', help='Also log to this file (rotating)')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    belt_parser = subparsers.add_parser('belt', help='Effective minimum pulley diameters')
    belt_parser.add_argument('belt_key', help='Belt catalog key')
    belt_parser.add_argument('--part-temp', type=float, help='Part temperature')
    belt_parser.add_argument('--temp-unit', default='F', choices=['F', 'C'])
    belt_parser.add_argument('--fluids', choices=['YES', 'NO', 'UNKNOWN'])
    belt_parser.add_argument('--fluid-type',
                             choices=['WATER', 'COOLANT', 'OIL', 'MIXED', 'OTHER', 'UNKNOWN'])

    pulley_parser = subparsers.add_parser('pulleys', help='Filter pulleys for a station')
    pulley_parser.add_argument('station', choices=[s.value for s in Station])
    pulley_parser.add_argument('face_width', type=float, help='Required face width (in)')
    pulley_parser.add_argument('--belt', help='Belt key supplying the minimum diameter')
    pulley_parser.add_argument('--v-guided', action='store_true')
    pulley_parser.add_argument('--min-diameter', type=float)
    pulley_parser.add_argument('--speed', type=float, help='Belt speed (fpm)')
    pulley_parser.add_argument('--diameter', type=float, help='Exact effective diameter')
    pulley_parser.add_argument('--construction', choices=[c.value for c in PulleyConstruction])

    gear_parser = subparsers.add_parser('gearmotor', help='Select a gearmotor')
    gear_parser.add_argument('rpm', type=float, help='Required output RPM')
    gear_parser.add_argument('torque', type=float, help='Required output torque (lb-in)')
    gear_parser.add_argument('--sf', type=float, default=1.5, help='Chosen service factor')
    gear_parser.add_argument('--tolerance', type=float, help='Speed tolerance (%%)')
    gear_parser.add_argument('--top', type=int, default=5, help='Candidates to show')

    tracking_parser = subparsers.add_parser('tracking', help='Belt tracking recommendation')
    tracking_parser.add_argument('length', type=float, help='Conveyor length C-C (in)')
    tracking_parser.add_argument('width', type=float, help='Belt width (in)')
    tracking_parser.add_argument('--application', choices=[a.value for a in ApplicationClass])
    tracking_parser.add_argument('--belt-construction', choices=[b.value for b in BeltConstruction])
    tracking_parser.add_argument('--reversing', action='store_true')
    tracking_parser.add_argument('--side-loading', action='store_true')
    tracking_parser.add_argument('--load-variability', action='store_true')
    tracking_parser.add_argument('--environment', action='store_true')
    tracking_parser.add_argument('--installation-risk', action='store_true')
    tracking_parser.add_argument('--preference', default='auto',
                                 choices=[p.value for p in TrackingPreference])

    subparsers.add_parser('stats', help='Show catalog statistics')

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging(args.verbose, args.log_file)

    try:
        if args.command == 'belt':
            run_belt(args)
        elif args.command == 'pulleys':
            run_pulleys(args)
        elif args.command == 'gearmotor':
            run_gearmotor(args)
        elif args.command == 'tracking':
            run_tracking(args)
        elif args.command == 'stats':
            run_stats(args)
    except (FileNotFoundError, KeyError, GearmotorInputError, ImportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def load_catalog(data_dir: str, *kinds) -> EngineeringCatalog:
    """Load the requested catalog files (belts, pulleys, gearmotors) from a directory."""
    catalog = EngineeringCatalog()
    loaders = {
        'belts': catalog.load_belts,
        'pulleys': catalog.load_pulleys,
        'gearmotors': catalog.load_gearmotors,
    }
    base = Path(data_dir)
    for kind in kinds:
        for suffix in ('.csv', '.xlsx'):
            path = base / f"{kind}{suffix}"
            if path.exists():
                loaders[kind](str(path))
                break
        else:
            raise FileNotFoundError(f"No {kind} catalog (csv or xlsx) in {base}")
    return catalog


def _require_belt(catalog: EngineeringCatalog, key: str):
    belt = catalog.get_belt(key)
    if belt is None:
        raise KeyError(f"Belt not found: {key}")
    return belt


def run_belt(args):
    catalog = load_catalog(args.data_dir, 'belts')
    belt = _require_belt(catalog, args.belt_key)

    print(format_belt_minimums(belt, get_effective_min_pulley_diameters(belt)))

    if args.part_temp is not None or args.fluids:
        issues = check_belt_compatibility(belt, args.part_temp, args.temp_unit,
                                          args.fluids, args.fluid_type)
        print("\nCompatibility:")
        print(format_compatibility_issues(issues))


def run_pulleys(args):
    kinds = ('pulleys', 'belts') if args.belt else ('pulleys',)
    catalog = load_catalog(args.data_dir, *kinds)

    min_diameter = args.min_diameter
    if args.belt:
        belt = _require_belt(catalog, args.belt)
        min_diameter = required_min_pulley_diameter(belt, v_guided=args.v_guided)

    criteria = PulleyFilterCriteria(
        station=Station(args.station),
        face_width_required_in=args.face_width,
        min_diameter_in=min_diameter,
        belt_speed_fpm=args.speed,
        diameter_in=args.diameter,
        construction=PulleyConstruction(args.construction) if args.construction else None,
    )
    results = filter_pulleys(catalog.pulleys, criteria)
    print(format_pulley_report(criteria, results))


def run_gearmotor(args):
    catalog = load_catalog(args.data_dir, 'gearmotors')
    inputs = GearmotorSelectionInputs(
        required_output_rpm=args.rpm,
        required_output_torque_lb_in=args.torque,
        chosen_service_factor=args.sf,
        speed_tolerance_pct=args.tolerance,
    )
    result = select_from_catalog(catalog.gearmotors, inputs)
    print(format_gearmotor_report(result, limit=args.top))


def run_tracking(args):
    data = TrackingRecommendationInput(
        conveyor_length_cc_in=args.length,
        belt_width_in=args.width,
        application_class=ApplicationClass(args.application) if args.application else None,
        belt_construction=BeltConstruction(args.belt_construction) if args.belt_construction else None,
        reversing_operation=args.reversing,
        disturbance_side_loading=args.side_loading,
        disturbance_load_variability=args.load_variability,
        disturbance_environment=args.environment,
        disturbance_installation_risk=args.installation_risk,
        tracking_preference=TrackingPreference(args.preference),
    )
    print(format_tracking_report(calculate_tracking_recommendation(data)))


def run_stats(args):
    catalog = load_catalog(args.data_dir, 'belts', 'pulleys', 'gearmotors')
    stats = catalog.get_statistics()

    print("=" * 60)
    print("CATALOG STATISTICS")
    print("=" * 60)
    print(f"\nBelts: {stats['total_belts']} "
          f"({stats['belts_with_material_profile']} with material profile)")
    print(f"Pulleys: {stats['total_pulleys']} "
          f"({stats['internal_bearing_pulleys']} internal bearing)")
    for construction, count in sorted(stats['pulley_constructions'].items()):
        print(f"  {construction}: {count}")
    print(f"Gearmotor performance points: {stats['total_gearmotor_points']}")
    for series, count in sorted(stats['gearmotor_series'].items()):
        print(f"  {series}: {count}")


if __name__ == '__main__':
    sys.exit(main())
