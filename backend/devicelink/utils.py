import math

LIGHT_GAMMA = 0.6


def _round_half_up(x: float) -> int:
    # Firmware rounds .5 away from zero for positives; Python's round() is banker's.
    return math.floor(x + 0.5)


def normalize_light(raw: float, calibration_max: int = 4095) -> int:
    """Map a raw light count to a 0..100 percentage in steps of 10.

    Gamma-corrected ratio ``(raw / calibration_max) ** 0.6`` scaled to percent,
    rounded to the nearest multiple of ten and clamped to [0, 100].  This is
    the same transform the board applies, so both sides agree bit for bit.
    """

    ratio = max(0.0, float(raw)) / float(calibration_max)
    percent = math.pow(ratio, LIGHT_GAMMA) * 100.0
    light = _round_half_up(percent / 10) * 10
    return min(100, max(0, light))
