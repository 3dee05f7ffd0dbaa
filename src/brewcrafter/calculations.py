"""Brewing calculators: ABV, Tinseth IBU, hydrometer correction and SRM colour."""

import math
from dataclasses import dataclass

ABV_FACTOR = 131.25
DEFAULT_CALIBRATION_TEMP_C = 20.0
UNKNOWN_COLOR_HEX = "#CCCCCC"

# Upper SRM bound -> approximate beer colour
SRM_COLORS = [
    (2, "#F3F993"),   # Pale Straw
    (3, "#F5F75C"),   # Straw
    (4, "#F6F513"),   # Pale Gold
    (6, "#EAE600"),   # Deep Gold
    (8, "#E0C000"),   # Pale Amber
    (10, "#D69A00"),  # Medium Amber
    (13, "#C07500"),  # Deep Amber
    (17, "#A65100"),  # Amber-Brown
    (22, "#8C3300"),  # Brown
    (30, "#731F00"),  # Dark Brown
    (35, "#591800"),  # Very Dark Brown
    (40, "#401000"),  # Black
]
OPAQUE_BLACK_HEX = "#030202"


@dataclass
class HopAddition:
    """A boil hop addition for IBU estimation."""

    amount_g: float
    alpha: float  # percent
    time_min: float


def calculate_abv(og: float | None, fg: float | None) -> float | None:
    """Alcohol by volume from original and final gravity, or None if not computable."""
    if og is None or fg is None:
        return None
    if not (og > fg > 0):
        return None
    return (og - fg) * ABV_FACTOR


def calculate_ibu(og: float, boil_volume_l: float, additions: list[HopAddition]) -> float | None:
    """
    Estimate bitterness with the Tinseth formula.

    Additions with a non-positive amount or alpha, or a negative time, are
    ignored. Returns None when the gravity or volume is not usable.
    """
    if og is None or boil_volume_l is None or og <= 0 or boil_volume_l <= 0:
        return None

    bigness_factor = 1.65 * math.pow(0.000125, og - 1.0)
    total = 0.0
    for hop in additions:
        if hop.amount_g <= 0 or hop.alpha <= 0 or hop.time_min < 0:
            continue
        boil_time_factor = (1.0 - math.exp(-0.04 * hop.time_min)) / 4.15
        utilization = bigness_factor * boil_time_factor
        total += (hop.alpha / 100.0) * hop.amount_g * utilization * 1000 / boil_volume_l
    return total


def _hydrometer_factor(temp_c: float) -> float:
    return (
        1.00130346
        - 0.000134722124 * temp_c
        + 0.00000204052596 * temp_c ** 2
        - 0.00000000232820948 * temp_c ** 3
    )


def correct_gravity(
    measured_sg: float,
    measured_temp_c: float,
    calibration_temp_c: float = DEFAULT_CALIBRATION_TEMP_C,
) -> float | None:
    """Correct a hydrometer reading taken away from its calibration temperature."""
    if measured_sg is None or measured_sg <= 0:
        return None
    calibration_factor = _hydrometer_factor(calibration_temp_c)
    if calibration_factor == 0:
        return None
    return measured_sg * (_hydrometer_factor(measured_temp_c) / calibration_factor)


def srm_to_hex(srm: float | None) -> str:
    """Map an SRM value to a display colour. Not a colorimetric conversion."""
    if srm is None or math.isnan(srm):
        return UNKNOWN_COLOR_HEX
    for upper, color in SRM_COLORS:
        if srm <= upper:
            return color
    return OPAQUE_BLACK_HEX
