"""Plausible readings used while the device cannot be reached."""

import random

from .schemas import SensorReading

# field -> (midpoint, jitter); light is already on the normalized 0..100 scale
FALLBACK_PROFILE: dict[str, tuple[float, float]] = {
    "temperature": (25.3, 1.0),
    "humidity": (60.0, 5.0),
    "steam": (15.0, 5.0),
    "soil": (45.0, 10.0),
    "light": (70.0, 15.0),
    "water": (30.0, 20.0),
}


def synthesize(rng: random.Random | None = None) -> SensorReading:
    """Midpoint plus independent uniform jitter for every field."""

    rng = rng or random.Random()
    return SensorReading(**{
        name: mid + rng.uniform(-jitter, jitter)
        for name, (mid, jitter) in FALLBACK_PROFILE.items()
    })
