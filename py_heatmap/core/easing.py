"""
Easing and interpolation helpers.

Falloff curves are plain callables taking ``t`` (scalar or NumPy array) and
returning the eased value, so any function with that shape can be handed to a
brush.
"""

import math
from dataclasses import dataclass
from typing import Union

import numpy as np

Number = Union[float, np.ndarray]


def lerp(a: Number, b: Number, t: Number) -> Number:
    """Linear interpolation between a and b."""
    return a + (b - a) * t


def clamp(value: Number, lo: float = 0.0, hi: float = 1.0) -> Number:
    """Clamp value into [lo, hi]."""
    if isinstance(value, np.ndarray):
        return np.clip(value, lo, hi)
    return max(lo, min(hi, value))


def smoothstep(t: Number) -> Number:
    """Hermite smoothstep, 0 at t=0 and 1 at t=1 with zero slope at both ends."""
    t = clamp(t, 0.0, 1.0)
    return t * t * (3 - 2 * t)


@dataclass
class OscillatingFunction:
    """initial + magnitude * sin(2*pi*frequency*t)"""

    initial: float
    magnitude: float
    frequency: float

    def __call__(self, t: Number) -> Number:
        if isinstance(t, np.ndarray):
            return self.initial + self.magnitude * np.sin(t * self.frequency * 2 * np.pi)
        return self.initial + self.magnitude * math.sin(t * self.frequency * 2 * math.pi)


@dataclass
class DecayFunction:
    """initial + magnitude * exp(-decay*t)"""

    initial: float
    magnitude: float
    decay: float

    def __call__(self, t: Number) -> Number:
        if isinstance(t, np.ndarray):
            return self.initial + self.magnitude * np.exp(-self.decay * t)
        return self.initial + self.magnitude * math.exp(-self.decay * t)
