"""
Unit conversions for irrigation hardware inputs.

Linear and flow conversions between imperial and SI units, plus the
precipitation (application) rate of a drip/micro-irrigation layout.
"""
import logging
import math
from enum import Enum

from vrizones.domain.errors import ConversionError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

LITERS_PER_GALLON = 3.78541
METERS_PER_INCH = 0.0254
METERS_PER_FOOT = 0.3048
MM_PER_INCH = 25.4
SECONDS_PER_MINUTE = 60

# PR (in/hr) = 231 * Q (gph) / (row spacing (in) * emitter spacing (in))
# 231 = cubic inches per US gallon
CUBIC_INCHES_PER_GALLON = 231.0

DEFAULT_IRRIGATION_EFFICIENCY = 0.95


class UnitSystem(str, Enum):
    IMPERIAL = "imperial"
    SI = "SI"


def _validate_positive(value: float, name: str = "value") -> None:
    """Raise ConversionError if *value* is not a positive finite number."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ConversionError(f"{name} must be a number, got {type(value).__name__}")
    if math.isnan(value) or math.isinf(value):
        raise ConversionError(f"{name} must be finite, got {value}")
    if value <= 0:
        raise ConversionError(f"{name} must be greater than zero, got {value}")


def _unit_system(unit) -> UnitSystem:
    if isinstance(unit, UnitSystem):
        return unit
    normalized = str(unit).strip().lower()
    for system in UnitSystem:
        if system.value.lower() == normalized:
            return system
    if normalized in ("metric",):
        return UnitSystem.SI
    raise ConversionError(f"Unknown unit system '{unit}'. Supported: imperial, SI")


# ---------------------------------------------------------------------------
# Linear
# ---------------------------------------------------------------------------

def inches_to_meters(value: float) -> float:
    return value * METERS_PER_INCH


def meters_to_inches(value: float) -> float:
    return value / METERS_PER_INCH


def feet_to_meters(value: float) -> float:
    return value * METERS_PER_FOOT


def meters_to_feet(value: float) -> float:
    return value / METERS_PER_FOOT


def inches_to_mm(value: float) -> float:
    return value * MM_PER_INCH


def mm_to_inches(value: float) -> float:
    return value / MM_PER_INCH


# ---------------------------------------------------------------------------
# Flow
# ---------------------------------------------------------------------------

def gph_to_lph(value: float) -> float:
    """Gallons per hour to liters per hour."""
    return value * LITERS_PER_GALLON


def lph_to_gph(value: float) -> float:
    return value / LITERS_PER_GALLON


def gpm_to_lps(value: float) -> float:
    """Gallons per minute to liters per second."""
    return value * LITERS_PER_GALLON / SECONDS_PER_MINUTE


def lps_to_gpm(value: float) -> float:
    return value * SECONDS_PER_MINUTE / LITERS_PER_GALLON


# ---------------------------------------------------------------------------
# Generic imperial <-> SI
# ---------------------------------------------------------------------------

def convert_flow(value: float, from_unit, to_unit) -> float:
    """Convert an emitter flow between gph (imperial) and lph (SI)."""
    source, target = _unit_system(from_unit), _unit_system(to_unit)
    if source == target:
        return value
    if source == UnitSystem.IMPERIAL:
        return gph_to_lph(value)
    return lph_to_gph(value)


def convert_distance(value: float, from_unit, to_unit) -> float:
    """Convert an emitter/row spacing between inches (imperial) and meters (SI)."""
    source, target = _unit_system(from_unit), _unit_system(to_unit)
    if source == target:
        return value
    if source == UnitSystem.IMPERIAL:
        return inches_to_meters(value)
    return meters_to_inches(value)


# ---------------------------------------------------------------------------
# Application rate
# ---------------------------------------------------------------------------

def application_rate(
    emitter_flow: float,
    emitter_spacing: float,
    dripline_distance: float,
    efficiency: float = DEFAULT_IRRIGATION_EFFICIENCY,
    flow_unit=UnitSystem.IMPERIAL,
    spacing_unit=UnitSystem.IMPERIAL,
    dripline_unit=UnitSystem.IMPERIAL,
    result_unit=UnitSystem.IMPERIAL,
) -> float:
    """
    Precipitation rate of a drip layout.

    Inputs are converted to gph and inches before applying
    PR = 231 * Q * efficiency / (row spacing * emitter spacing).

    Args:
        emitter_flow: Flow per emitter (gph or lph)
        emitter_spacing: Distance between emitters on a line (in or m)
        dripline_distance: Distance between drip lines (in or m)
        efficiency: Irrigation efficiency in (0, 1]
        flow_unit: Unit system of emitter_flow
        spacing_unit: Unit system of emitter_spacing
        dripline_unit: Unit system of dripline_distance
        result_unit: imperial for in/hr, SI for mm/hr

    Returns:
        Application rate rounded to 2 decimals
    """
    _validate_positive(emitter_flow, "emitter_flow")
    _validate_positive(emitter_spacing, "emitter_spacing")
    _validate_positive(dripline_distance, "dripline_distance")
    _validate_positive(efficiency, "efficiency")
    if efficiency > 1:
        raise ConversionError(f"efficiency must be at most 1, got {efficiency}")

    flow_gph = convert_flow(emitter_flow, flow_unit, UnitSystem.IMPERIAL)
    emitter_in = convert_distance(emitter_spacing, spacing_unit, UnitSystem.IMPERIAL)
    row_in = convert_distance(dripline_distance, dripline_unit, UnitSystem.IMPERIAL)

    rate_in_hr = CUBIC_INCHES_PER_GALLON * flow_gph * efficiency / (row_in * emitter_in)
    if _unit_system(result_unit) == UnitSystem.SI:
        result = inches_to_mm(rate_in_hr)
    else:
        result = rate_in_hr

    logger.debug(f"Application rate: {result:.2f} ({result_unit}) from Q={flow_gph:.3f}gph")
    return round(result, 2)
