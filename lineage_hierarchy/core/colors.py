"""Hierarchy-aware color assignment for lineages."""

import re
import math
import colorsys
import logging
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from lineage_hierarchy.core.naming import parse_lineage_name
from lineage_hierarchy.models.lineage import Prevalence, RGB

logger = logging.getLogger(__name__)

# Sentinel for absent names only; real names never come out gray
UNKNOWN_LINEAGE_COLOR: RGB = (180, 180, 180)

GRAY_STD_THRESHOLD = 25.0
ROOT_MIN_SATURATION = 0.5
ROOT_BOOSTED_SATURATION = 0.7
ROOT_PREVALENCE_CAP = 0.3
DESCENDANT_PREVALENCE_CAP = 0.2

BASE_LIGHTNESS = 0.4
MIN_LIGHTNESS = 0.25
MAX_LIGHTNESS = 0.75
DEPTH_LIGHTNESS_STEP = 0.08

ALPHA_ONLY = re.compile(r'^[A-Za-z]+$')
LEADING_DIGITS = re.compile(r'^\s*\d+')

# Curated base colors for well-known roots
BASE_COLORS: Dict[str, RGB] = {
    # Single-letter roots
    'A': (200, 40, 40),
    'B': (40, 40, 200),
    'C': (40, 160, 40),
    'D': (180, 140, 20),
    'E': (160, 40, 160),
    'F': (40, 160, 160),
    'G': (180, 70, 40),
    'H': (120, 40, 140),
    'I': (70, 130, 50),
    'J': (160, 60, 90),
    'K': (40, 100, 140),
    'L': (140, 120, 40),
    'M': (100, 40, 80),
    'N': (40, 120, 100),
    'O': (170, 70, 70),
    'P': (70, 70, 170),
    'Q': (150, 150, 40),
    'R': (90, 40, 140),
    'S': (40, 110, 70),
    'T': (140, 80, 40),
    'U': (80, 40, 120),
    'V': (100, 130, 40),
    'W': (150, 60, 100),
    'Z': (60, 120, 120),

    # Orange-red family
    'AY': (240, 100, 60),
    'AU': (235, 85, 55),
    'AZ': (245, 95, 65),
    'AT': (230, 90, 50),
    'AS': (220, 80, 45),
    'AA': (225, 85, 50),
    'AB': (215, 75, 45),
    'AC': (210, 70, 40),
    'AD': (205, 65, 35),
    'AE': (200, 60, 30),
    'AF': (195, 55, 25),
    'AG': (190, 50, 20),
    'AH': (185, 45, 15),
    'AI': (180, 40, 10),
    'AJ': (175, 35, 5),
    'AK': (170, 30, 0),
    'AL': (175, 35, 5),
    'AM': (180, 40, 10),
    'AN': (185, 45, 15),
    'AO': (190, 50, 20),
    'AP': (195, 55, 25),
    'AQ': (200, 60, 30),
    'AR': (205, 65, 35),
    'AV': (210, 70, 40),
    'AW': (215, 75, 45),
    'AX': (220, 80, 50),

    'CH': (60, 180, 100),
    'CJ': (70, 170, 90),
    'CR': (50, 190, 110),
    'DL': (200, 160, 40),
    'DR': (210, 150, 30),
    'EG': (180, 60, 180),
    'EH': (170, 50, 190),
    'EL': (190, 70, 170),
    'FL': (60, 190, 190),
    'FM': (50, 180, 200),
    'HK': (140, 60, 160),
    'HV': (130, 50, 170),
    'JN': (180, 80, 100),
    'JP': (170, 70, 110),
    'KP': (60, 120, 160),
    'KL': (50, 110, 170),

    # Omicron blues
    'BA': (70, 70, 180),
    'BB': (60, 80, 190),
    'BC': (50, 90, 200),
    'BD': (60, 100, 190),
    'BE': (70, 110, 180),
    'BF': (80, 120, 170),
    'BG': (90, 130, 160),
    'BH': (100, 140, 150),
    'BJ': (110, 150, 140),
    'BK': (120, 160, 130),
    'BL': (130, 170, 120),
    'BM': (140, 180, 110),
    'BN': (150, 190, 100),
    'BP': (140, 170, 110),
    'BQ': (130, 160, 120),
    'BR': (120, 150, 130),
    'BS': (110, 140, 140),
    'BT': (100, 130, 150),
    'BU': (90, 120, 160),
    'BV': (80, 110, 170),
    'BW': (70, 100, 180),
    'BY': (60, 90, 190),
    'BZ': (50, 80, 200),

    # Recombinant purples
    'X': (130, 60, 130),
    'XA': (140, 60, 140),
    'XB': (150, 60, 150),
    'XC': (160, 60, 160),
    'XD': (170, 60, 170),
    'XE': (180, 60, 180),
    'XF': (170, 60, 170),
    'XG': (160, 60, 160),
    'XH': (150, 60, 150),
    'XJ': (140, 60, 140),
    'XK': (130, 60, 130),
    'XL': (120, 60, 120),
    'XM': (110, 60, 110),
    'XN': (100, 60, 100),
    'XP': (110, 60, 110),
    'XQ': (120, 60, 120),
    'XR': (130, 60, 130),
    'XS': (140, 60, 140),
    'XBB': (140, 70, 170),
    'XBF': (150, 80, 180),
    'XBC': (160, 90, 190),
}

def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))

def _to_channel(value: float) -> int:
    # Round half up so channel values do not depend on banker's rounding
    return int(_clamp(math.floor(value * 255 + 0.5), 0, 255))

def rgb_to_hsl(rgb: Sequence[int]) -> Tuple[float, float, float]:
    """Convert 0-255 RGB to (hue, saturation, lightness) in [0, 1]."""
    r, g, b = (channel / 255 for channel in rgb)
    h, l, s = colorsys.rgb_to_hls(r, g, b)
    return h, s, l

def hsl_to_rgb(h: float, s: float, l: float) -> RGB:
    """Convert (hue, saturation, lightness) in [0, 1] to 0-255 RGB."""
    r, g, b = colorsys.hls_to_rgb(h, l, s)
    return _to_channel(r), _to_channel(g), _to_channel(b)

def rgb_to_hex(rgb: Sequence[int]) -> str:
    """Format an RGB triple as '#rrggbb'."""
    return '#{:02x}{:02x}{:02x}'.format(*rgb)

def is_grayish(rgb: Sequence[int], threshold: float = GRAY_STD_THRESHOLD) -> bool:
    """True when the channels are too close together to read as a hue."""
    return float(np.std(np.asarray(rgb, dtype=float))) < threshold

def _name_seed(text: str, weight: int = 37) -> int:
    return sum(ord(char) * (i + 1) * weight for i, char in enumerate(text))

def hash_color(text: str) -> RGB:
    """
    Derive a deterministic, vibrant color from a character-weighted hash.

    Args:
        text: Name to hash

    Returns:
        RGB color with high saturation and medium lightness
    """
    seed = _name_seed(text)
    h = (seed % 360) / 360
    s = 0.7 + (seed % 20) / 100
    return hsl_to_rgb(h, s, 0.5)

def root_base_color(root: str) -> RGB:
    """
    Resolve the base color for a lineage root.

    Known roots come from BASE_COLORS. Unknown multi-letter roots are a hue
    and lightness perturbation of their first letter's color, seeded by the
    remaining letters. Anything else is hashed.

    Args:
        root: Root component of a lineage name

    Returns:
        Base RGB color for the root
    """
    if root in BASE_COLORS:
        return BASE_COLORS[root]

    if len(root) > 1 and root[0] in BASE_COLORS:
        h, s, l = rgb_to_hsl(BASE_COLORS[root[0]])
        secondary_hash = _name_seed(root[1:], weight=1)
        h = ((h * 360 + (secondary_hash % 120) - 60) / 360) % 1
        s = _clamp(s + 0.2, 0.6, 0.9)
        l = _clamp(l, 0.35, 0.55)
        return hsl_to_rgb(h, s, l)

    return hash_color(root)

def _normalized_prevalence(prevalence: Optional[Prevalence], cap: float) -> Optional[float]:
    if prevalence is None or prevalence.total <= 0:
        return None
    return min(1.0, prevalence.fraction / cap)

def _root_color(base: RGB, prevalence: Optional[Prevalence]) -> RGB:
    h, s, l = rgb_to_hsl(base)
    emphasis = _normalized_prevalence(prevalence, ROOT_PREVALENCE_CAP)
    if emphasis is not None:
        s = min(1.0, s + emphasis * 0.3)
        l = max(MIN_LIGHTNESS, 0.4 - emphasis * 0.15)
    elif s >= ROOT_MIN_SATURATION:
        return base

    if s < ROOT_MIN_SATURATION:
        s = ROOT_BOOSTED_SATURATION
    return hsl_to_rgb(h, s, l)

def _descendant_color(base: RGB, segments: Sequence[str],
                      prevalence: Optional[Prevalence]) -> RGB:
    h, s, l = rgb_to_hsl(base)
    depth = len(segments) - 1
    # Same boost as the root, so muted families do not fall into the gray fallback
    if s < ROOT_MIN_SATURATION:
        s = ROOT_BOOSTED_SATURATION

    base_lightness = BASE_LIGHTNESS
    emphasis = _normalized_prevalence(prevalence, DESCENDANT_PREVALENCE_CAP)
    if emphasis is not None:
        base_lightness -= emphasis * 0.15
        s = min(0.9, s + emphasis * 0.1)

    # Deeper lineages trend lighter
    l = _clamp(base_lightness + (depth - 1) * DEPTH_LIGHTNESS_STEP, MIN_LIGHTNESS, MAX_LIGHTNESS)

    # Per-segment nudges keep siblings apart while staying near the root hue
    for segment in segments[1:]:
        match = LEADING_DIGITS.match(segment)
        if match is None:
            continue
        number = int(match.group())
        h += (number % 12) * 0.005
        if h > 1:
            h -= 1
        l = _clamp(l - 0.02 * (number % 5) / 5, MIN_LIGHTNESS, MAX_LIGHTNESS)
        s = _clamp(s + 0.005, 0.2, 0.9)

    return hsl_to_rgb(h, s, l)

def lineage_color(name: Optional[str], prevalence: Optional[Prevalence] = None) -> RGB:
    """
    Compute a stable, legible RGB color for a lineage.

    Colors are a pure function of the name and the optional prevalence:
    descendants are small perturbations of their root's color and get
    lighter with depth, while prevalent lineages are rendered darker and
    more saturated.

    Args:
        name: Lineage name
        prevalence: Optional count of the lineage (including descendants)
            relative to the whole dataset

    Returns:
        RGB triple of ints in [0, 255]
    """
    if not name or not isinstance(name, str):
        return UNKNOWN_LINEAGE_COLOR

    # Flat category values that are not lineage roots
    if '.' not in name and not ALPHA_ONLY.match(name):
        return hash_color(name)

    parsed = parse_lineage_name(name)
    base = root_base_color(parsed.root)

    if len(parsed.segments) == 1:
        color = _root_color(base, prevalence)
    else:
        color = _descendant_color(base, parsed.segments, prevalence)

    if is_grayish(color):
        logger.debug(f"Replacing near-gray color {color} for lineage {name}")
        return hash_color(name)
    return color
