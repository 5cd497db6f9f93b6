"""
Core heightfield functionality.
"""

from .errors import (
    HeatmapError,
    OutOfBoundsError,
    DimensionMismatchError,
    GenerationInProgressError,
)
from .easing import lerp, clamp, smoothstep, OscillatingFunction, DecayFunction
from .grid import Grid
from .brush import Pen
from .terrain_generator import TerrainGenerator, damped_noise, constant_noise
from .color_maps import (
    GradientColorMap,
    DEFAULT_COLOR_MAP,
    GRAYSCALE,
    BUILTIN_COLOR_MAPS,
    get_color_map,
)
from .session import HeightfieldSession, generate_random, generate_uniform

__all__ = ['HeatmapError', 'OutOfBoundsError', 'DimensionMismatchError',
           'GenerationInProgressError', 'lerp', 'clamp', 'smoothstep',
           'OscillatingFunction', 'DecayFunction', 'Grid', 'Pen',
           'TerrainGenerator', 'damped_noise', 'constant_noise',
           'GradientColorMap', 'DEFAULT_COLOR_MAP', 'GRAYSCALE',
           'BUILTIN_COLOR_MAPS', 'get_color_map',
           'HeightfieldSession', 'generate_random', 'generate_uniform']
