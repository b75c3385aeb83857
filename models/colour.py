"""Colour space conversions for Hue lights.

Everything here is a pure function: conversions between 8-bit sRGB, hex
strings, CIE 1931 xy chromaticity and colour temperature (Kelvin/Mired), plus
gamut clamping against the triangle a Hue lamp can reproduce.

Out-of-range numbers are clamped rather than rejected and unparseable hex
returns None. The only exceptions raised are DivisionHazardError for inputs
that would divide by zero, which callers are expected to guard against.
"""

import math
import re

from models.types import ChromaticityPoint, Gamut, RgbColour

# Colour gamut for Philips Hue colour lamps
HUE_GAMUT = Gamut(
    red=ChromaticityPoint(0.675, 0.322),
    green=ChromaticityPoint(0.409, 0.518),
    blue=ChromaticityPoint(0.167, 0.04),
)

# Fallback chromaticity for pure black, which has no defined xy
BLACK_XY = ChromaticityPoint(0.5, 0.5)

# Points further than this from the gamut centroid are pulled in before projecting
MAX_CENTROID_DISTANCE = 0.5

# Slack for points that land exactly on an edge after projection
GAMUT_EPSILON = 1e-9

# Wide RGB D65 conversion matrices
RGB_TO_XYZ = (
    (0.664511, 0.154324, 0.162028),
    (0.283881, 0.668433, 0.047685),
    (0.000088, 0.072310, 0.986039),
)

XYZ_TO_RGB = (
    (1.656492, -0.354851, -0.255038),
    (-0.707196, 1.655397, 0.036152),
    (0.051713, -0.121364, 1.011530),
)

HEX_PATTERN = re.compile(r'#?([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{2})', re.IGNORECASE)


class DivisionHazardError(ValueError):
    """Raised when a conversion is called with an input that divides by zero."""


def _reciprocal_temperature(value: float) -> int:
    # 1e6 / inf tends to 0; NaN has no reciprocal and maps to 0 as well
    if not math.isfinite(value):
        return 0
    return round(1_000_000 / value)


def kelvin_to_mired(kelvin: float) -> int:
    """Convert colour temperature from Kelvin to Mired.

    Non-finite input gives 0 rather than raising.
    """
    if kelvin == 0:
        raise DivisionHazardError("Kelvin value must be non-zero")
    return _reciprocal_temperature(kelvin)


def mired_to_kelvin(mired: float) -> int:
    """Convert colour temperature from Mired to Kelvin."""
    if mired == 0:
        raise DivisionHazardError("Mired value must be non-zero")
    return _reciprocal_temperature(mired)


def _limit_channel(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return max(0.0, min(255.0, value))


def _clamp_channel(value: float) -> int:
    return round(_limit_channel(value))


def _gamma_decode(c: float) -> float:
    return c / 12.92 if c <= 0.04045 else ((c + 0.055) / 1.055) ** 2.4


def _gamma_encode(c: float) -> float:
    if c <= 0.0031308:
        return 12.92 * c
    return 1.055 * c ** (1.0 / 2.4) - 0.055


def rgb_to_xy(r: int, g: int, b: int) -> ChromaticityPoint:
    """Convert an 8-bit sRGB colour to CIE xy.

    Channels outside 0-255 are clamped first (NaN counts as 0).

    Args:
        r: Red channel (0-255)
        g: Green channel (0-255)
        b: Blue channel (0-255)

    Returns:
        ChromaticityPoint, or BLACK_XY when the colour is pure black
    """
    linear = [_gamma_decode(_limit_channel(c) / 255) for c in (r, g, b)]

    X, Y, Z = (sum(m * c for m, c in zip(row, linear)) for row in RGB_TO_XYZ)

    total = X + Y + Z
    if total == 0:
        return BLACK_XY

    return ChromaticityPoint(X / total, Y / total)


def xy_to_rgb(x: float, y: float, brightness: float = 1.0) -> RgbColour:
    """Convert CIE xy plus a brightness (0.0-1.0) to 8-bit sRGB.

    Each channel is clamped independently, so colours outside sRGB come back
    saturated rather than raising.

    Raises:
        DivisionHazardError: If y is zero
    """
    if y == 0:
        raise DivisionHazardError("y coordinate must be non-zero")

    Y = brightness
    X = (Y / y) * x
    Z = (Y / y) * (1 - x - y)

    r, g, b = (row[0] * X + row[1] * Y + row[2] * Z for row in XYZ_TO_RGB)

    return RgbColour(*(_clamp_channel(_gamma_encode(c) * 255) for c in (r, g, b)))


def _cross(p1: tuple[float, float], p2: tuple[float, float]) -> float:
    return p1[0] * p2[1] - p1[1] * p2[0]


def gamut_centroid(gamut: Gamut = HUE_GAMUT) -> ChromaticityPoint:
    """Return the centre point of a gamut triangle."""
    return ChromaticityPoint(
        (gamut.red.x + gamut.green.x + gamut.blue.x) / 3,
        (gamut.red.y + gamut.green.y + gamut.blue.y) / 3,
    )


def is_point_in_gamut(x: float, y: float, gamut: Gamut = HUE_GAMUT) -> bool:
    """Check whether (x, y) lies inside (or on the edge of) the gamut triangle."""
    v1 = (gamut.green.x - gamut.red.x, gamut.green.y - gamut.red.y)
    v2 = (gamut.blue.x - gamut.red.x, gamut.blue.y - gamut.red.y)
    q = (x - gamut.red.x, y - gamut.red.y)

    denominator = _cross(v1, v2)
    s = _cross(q, v2) / denominator
    t = _cross(v1, q) / denominator

    return s >= -GAMUT_EPSILON and t >= -GAMUT_EPSILON and s + t <= 1.0 + GAMUT_EPSILON


def _closest_point_on_segment(x: float, y: float, start: ChromaticityPoint,
                              end: ChromaticityPoint) -> ChromaticityPoint:
    dx = end.x - start.x
    dy = end.y - start.y
    t = ((x - start.x) * dx + (y - start.y) * dy) / (dx * dx + dy * dy)
    t = max(0.0, min(1.0, t))
    return ChromaticityPoint(start.x + t * dx, start.y + t * dy)


def closest_point_on_gamut(x: float, y: float, gamut: Gamut = HUE_GAMUT) -> ChromaticityPoint:
    """Clamp an xy point to the gamut triangle.

    Points inside the triangle come back unchanged. Points outside are projected
    onto the nearest edge. Points further than MAX_CENTROID_DISTANCE from the
    centroid are first pulled in along the line to the centroid so extreme
    inputs land somewhere perceptually sensible. Non-finite input returns the
    centroid.

    Args:
        x: CIE x coordinate
        y: CIE y coordinate
        gamut: Gamut triangle to clamp against (defaults to HUE_GAMUT)

    Returns:
        ChromaticityPoint guaranteed to satisfy is_point_in_gamut()
    """
    centre = gamut_centroid(gamut)
    if not (math.isfinite(x) and math.isfinite(y)):
        return centre

    if is_point_in_gamut(x, y, gamut):
        return ChromaticityPoint(x, y)

    distance_to_centre = math.hypot(x - centre.x, y - centre.y)
    if distance_to_centre > MAX_CENTROID_DISTANCE:
        t = MAX_CENTROID_DISTANCE / distance_to_centre
        x = x * t + centre.x * (1 - t)
        y = y * t + centre.y * (1 - t)
        if is_point_in_gamut(x, y, gamut):
            return ChromaticityPoint(x, y)

    edges = [
        (gamut.red, gamut.green),
        (gamut.green, gamut.blue),
        (gamut.blue, gamut.red),
    ]
    projections = [_closest_point_on_segment(x, y, start, end) for start, end in edges]
    return min(projections, key=lambda p: math.hypot(x - p.x, y - p.y))


def hex_to_rgb(value: str) -> RgbColour | None:
    """Parse '#rrggbb' or 'rrggbb' (any case). Returns None if malformed."""
    if not isinstance(value, str):
        return None
    match = HEX_PATTERN.fullmatch(value)
    if not match:
        return None
    return RgbColour(*(int(part, 16) for part in match.groups()))


def rgb_to_hex(r: float, g: float, b: float) -> str:
    """Format an RGB colour as '#rrggbb', clamping each channel to 0-255."""
    return '#{:02x}{:02x}{:02x}'.format(_clamp_channel(r), _clamp_channel(g), _clamp_channel(b))


def xy_to_hex(x: float, y: float, brightness: float = 1.0) -> str:
    """Convert CIE xy plus brightness straight to a hex swatch."""
    return rgb_to_hex(*xy_to_rgb(x, y, brightness))


def kelvin_to_hex(kelvin: float) -> str:
    """Approximate the colour of a blackbody at the given temperature.

    Uses the usual empirical curve fit (in hundreds of Kelvin). Good enough for
    UI swatches, not colorimetrically exact.
    """
    temp = kelvin / 100

    if temp <= 66:
        red = 255
        green = 99.4708025861 * math.log(temp) - 161.1195681661 if temp > 0 else 0
        if temp <= 20:
            blue = 0
        else:
            blue = 138.5177312231 * math.log(temp - 10) - 305.0447927307
    else:
        red = 329.698727446 * (temp - 60) ** -0.1332047592
        green = 288.1221695283 * (temp - 60) ** -0.0755148492
        blue = 255

    return rgb_to_hex(red, green, blue)
