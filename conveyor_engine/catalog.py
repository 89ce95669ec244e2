"""
Engineering catalog loader and indexer.

Reads belts, pulleys and gearmotor performance points from CSV or Excel
files into catalog value objects. The engines never touch files; this
is the adapter the CLI and demo use to feed them.
"""

import csv
import json
import logging
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from .belts import validate_material_profile
from .models import (
    BeltCatalogItem, MaterialProfile, PulleyCatalogItem, GearmotorCandidate,
    PulleyConstruction, ShaftArrangement
)
from .pulleys import validate_pulley_catalog_item

logger = logging.getLogger(__name__)

TRUE_VALUES = ('true', 'yes', 'y', '1', 't')


class EngineeringCatalog:
    """
    Loads and indexes catalog rows for the decision engines.
    """

    def __init__(self):
        self.belts: List[BeltCatalogItem] = []
        self.pulleys: List[PulleyCatalogItem] = []
        self.gearmotors: List[GearmotorCandidate] = []
        self._belts_by_key: Dict[str, BeltCatalogItem] = {}
        self._pulleys_by_key: Dict[str, PulleyCatalogItem] = {}
        self._gearmotors_by_series: Dict[str, List[GearmotorCandidate]] = defaultdict(list)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_belts(self, filepath: str) -> int:
        """Load belts; returns the number loaded."""
        loaded = 0
        for row_num, row in self._read_rows(filepath):
            belt = self._parse_belt_row(row_num, row)
            if belt:
                self.belts.append(belt)
                loaded += 1
        self._build_indexes()
        return loaded

    def load_pulleys(self, filepath: str) -> int:
        """Load pulleys; rows failing admin validation are skipped."""
        loaded = 0
        for row_num, row in self._read_rows(filepath):
            pulley = self._parse_pulley_row(row_num, row)
            if pulley:
                self.pulleys.append(pulley)
                loaded += 1
        self._build_indexes()
        return loaded

    def load_gearmotors(self, filepath: str) -> int:
        """Load vendor performance points."""
        loaded = 0
        for row_num, row in self._read_rows(filepath):
            point = self._parse_gearmotor_row(row_num, row)
            if point:
                self.gearmotors.append(point)
                loaded += 1
        self._build_indexes()
        return loaded

    def _read_rows(self, filepath: str):
        """Yield (row_number, row_dict) from a CSV or Excel file."""
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Catalog file not found: {path}")

        if path.suffix.lower() in ('.xlsx', '.xlsm'):
            yield from self._read_excel(path)
        else:
            yield from self._read_csv(path)

    def _read_csv(self, path: Path):
        with open(path, 'r', encoding='utf-8', newline='') as f:
            reader = csv.DictReader(f)
            for row_num, row in enumerate(reader, start=2):
                yield row_num, {(k or '').strip().lower(): (v or '').strip()
                                for k, v in row.items()}

    def _read_excel(self, path: Path):
        """Read the first worksheet. Requires openpyxl."""
        try:
            import openpyxl
        except ImportError:
            raise ImportError("openpyxl is required to read Excel catalogs. "
                              "Install with: pip install openpyxl")

        wb = openpyxl.load_workbook(path, read_only=True, data_only=True)
        try:
            ws = wb.active
            rows = ws.iter_rows(values_only=True)
            header = next(rows, None)
            if header is None:
                return
            headers = [str(h or '').strip().lower() for h in header]
            for row_num, values in enumerate(rows, start=2):
                row = {}
                for i, value in enumerate(values):
                    if i < len(headers) and headers[i]:
                        row[headers[i]] = '' if value is None else str(value).strip()
                yield row_num, row
        finally:
            wb.close()

    # ------------------------------------------------------------------
    # Row parsing
    # ------------------------------------------------------------------

    def _parse_belt_row(self, row_num: int, row: Dict[str, str]) -> Optional[BeltCatalogItem]:
        """Parse a belt row; material_profile is a JSON column."""
        try:
            profile = None
            profile_text = row.get('material_profile', '')
            if profile_text:
                raw_profile = json.loads(profile_text)
                validation = validate_material_profile(raw_profile)
                if not validation.is_valid:
                    logger.warning("Row %d: belt %s has an invalid material profile: %s",
                                   row_num, row.get('catalog_key'), "; ".join(validation.errors))
                    return None
                profile = MaterialProfile.from_dict(raw_profile)

            return BeltCatalogItem(
                catalog_key=row['catalog_key'],
                display_name=row.get('display_name') or row['catalog_key'],
                material=row.get('material', ''),
                piw=float(row['piw']),
                pil=float(row['pil']),
                min_pulley_dia_no_vguide_in=float(row['min_pulley_dia_no_vguide_in']),
                min_pulley_dia_with_vguide_in=float(row['min_pulley_dia_with_vguide_in']),
                thickness_in=self._safe_float(row.get('thickness_in')),
                manufacturer=row.get('manufacturer') or None,
                material_profile=profile,
                temp_min_f=self._safe_float(row.get('temp_min_f')),
                temp_max_f=self._safe_float(row.get('temp_max_f')),
                oil_resistant=self._parse_bool(row.get('oil_resistant')),
                is_active=self._parse_bool(row.get('is_active'), default=True),
            )
        except (KeyError, ValueError, TypeError) as e:
            logger.warning("Row %d: skipping belt row: %s", row_num, e)
            return None

    def _parse_pulley_row(self, row_num: int, row: Dict[str, str]) -> Optional[PulleyCatalogItem]:
        try:
            pulley = PulleyCatalogItem(
                catalog_key=row['catalog_key'],
                display_name=row.get('display_name') or row['catalog_key'],
                diameter_in=float(row['diameter_in']),
                face_width_max_in=float(row['face_width_max_in']),
                face_width_min_in=self._safe_float(row.get('face_width_min_in')),
                crown_height_in=self._safe_float(row.get('crown_height_in')) or 0.0,
                construction=PulleyConstruction(row.get('construction') or 'DRUM'),
                shaft_arrangement=ShaftArrangement(
                    row.get('shaft_arrangement') or 'THROUGH_SHAFT_EXTERNAL_BEARINGS'),
                is_lagged=self._parse_bool(row.get('is_lagged')),
                lagging_thickness_in=self._safe_float(row.get('lagging_thickness_in')),
                allow_head_drive=self._parse_bool(row.get('allow_head_drive')),
                allow_tail=self._parse_bool(row.get('allow_tail')),
                allow_snub=self._parse_bool(row.get('allow_snub')),
                allow_bend=self._parse_bool(row.get('allow_bend')),
                allow_takeup=self._parse_bool(row.get('allow_takeup')),
                max_belt_speed_fpm=self._safe_float(row.get('max_belt_speed_fpm')),
                manufacturer=row.get('manufacturer') or None,
                part_number=row.get('part_number') or None,
                is_preferred=self._parse_bool(row.get('is_preferred')),
                is_active=self._parse_bool(row.get('is_active'), default=True),
            )
        except (KeyError, ValueError, TypeError) as e:
            logger.warning("Row %d: skipping pulley row: %s", row_num, e)
            return None

        validation = validate_pulley_catalog_item(pulley)
        if not validation.is_valid:
            logger.warning("Row %d: pulley %s rejected: %s",
                           row_num, pulley.catalog_key, "; ".join(validation.errors))
            return None
        return pulley

    def _parse_gearmotor_row(self, row_num: int, row: Dict[str, str]) -> Optional[GearmotorCandidate]:
        try:
            return GearmotorCandidate(
                vendor=row.get('vendor') or 'NORD',
                series=row['series'].upper(),
                size_code=row.get('size_code', ''),
                part_number=row.get('part_number', ''),
                motor_hp=float(row['motor_hp']),
                output_rpm=float(row['output_rpm']),
                output_torque_lb_in=float(row['output_torque_lb_in']),
                service_factor_catalog=self._safe_float(row.get('service_factor_catalog')) or 1.0,
                description=row.get('description', ''),
                source_ref=row.get('source_ref') or None,
            )
        except (KeyError, ValueError, TypeError) as e:
            logger.warning("Row %d: skipping gearmotor row: %s", row_num, e)
            return None

    def _safe_float(self, value: Any) -> Optional[float]:
        """Safely convert a value to float."""
        if value is None or value == '':
            return None
        try:
            return float(value)
        except (ValueError, TypeError):
            return None

    def _parse_bool(self, value: Any, default: bool = False) -> bool:
        if value is None or value == '':
            return default
        return str(value).strip().lower() in TRUE_VALUES

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _build_indexes(self):
        """Build lookup indexes; later rows win on duplicate keys."""
        self._belts_by_key = {b.catalog_key: b for b in self.belts}
        self._pulleys_by_key = {p.catalog_key: p for p in self.pulleys}
        self._gearmotors_by_series.clear()
        for point in self.gearmotors:
            self._gearmotors_by_series[point.series].append(point)

    def get_belt(self, catalog_key: str) -> Optional[BeltCatalogItem]:
        return self._belts_by_key.get(catalog_key)

    def get_pulley(self, catalog_key: str) -> Optional[PulleyCatalogItem]:
        return self._pulleys_by_key.get(catalog_key)

    def get_gearmotors_by_series(self, series: str) -> List[GearmotorCandidate]:
        return self._gearmotors_by_series.get(series.upper(), [])

    def get_statistics(self) -> Dict:
        """Get catalog statistics."""
        profiles = sum(1 for b in self.belts if b.material_profile is not None)
        internal = sum(1 for p in self.pulleys
                       if p.shaft_arrangement == ShaftArrangement.INTERNAL_BEARINGS)
        constructions = defaultdict(int)
        for pulley in self.pulleys:
            constructions[pulley.construction.value] += 1

        return {
            'total_belts': len(self.belts),
            'belts_with_material_profile': profiles,
            'total_pulleys': len(self.pulleys),
            'internal_bearing_pulleys': internal,
            'pulley_constructions': dict(constructions),
            'total_gearmotor_points': len(self.gearmotors),
            'gearmotor_series': {s: len(points) for s, points in self._gearmotors_by_series.items()},
        }
