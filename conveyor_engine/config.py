"""
Engineering constants for the decision engines.

Defaults reproduce the behaviour existing fixtures were built against.
Override by creating an EngineSettings instance with custom values:

    from conveyor_engine.config import EngineSettings

    loose = EngineSettings(speed_tolerance_pct=25.0)
    select_gearmotor(primary, fallback, inputs, settings=loose)
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class EngineSettings:
    """Tunable thresholds shared by the engines."""

    # === Belt minimum diameters ===
    max_profile_diameter_in: float = 60.0
    cleat_rounding_increment_in: float = 0.25
    default_cleat_spacing_in: float = 12.0

    # === Belt compatibility ===
    temp_warning_margin_f: float = 10.0

    # === Pulleys ===
    lagging_sides: int = 2  # lagging counts on both sides of the shell

    # === Gearmotors ===
    speed_tolerance_pct: float = 15.0
    oversize_epsilon: float = 0.001
    speed_delta_epsilon: float = 0.01
    primary_series: str = "FLEXBLOC"
    fallback_series: str = "MINICASE"
    series_prefix: str = "SI"

    # === Tracking ===
    lw_band_low_max: float = 5.0
    lw_band_medium_max: float = 10.0
    significant_disturbance_count: int = 3


default_settings = EngineSettings()
