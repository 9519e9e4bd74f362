"""Spherical coordinate helpers for the orbit camera.

Conventions (ISO style, with z as the polar axis):

    r     = sqrt(x^2 + y^2 + z^2)
    theta = asin(z / r)              elevation above the xy plane
    phi   = azimuth of (x, y), piecewise over the four quadrants

    x = r cos(theta) cos(phi)
    y = r cos(theta) sin(phi)
    z = r sin(theta)

phi is undefined on the z axis (x = y = 0) and is reported as NaN there;
cartesian() can substitute zero for NaN so that a degenerate angle never
reaches the camera state.
"""

import math


def spherical(x: float, y: float, z: float) -> tuple[float, float, float]:
    """Convert a Cartesian offset to (r, theta, phi).

    Args:
        x: X component.
        y: Y component.
        z: Z component.

    Returns:
        Tuple (r, theta, phi). theta is NaN when r is zero; phi is NaN when
        both x and y are zero.
    """
    r = math.sqrt(x * x + y * y + z * z)
    if r == 0.0:
        theta = math.nan
    else:
        # Rounding can push z / r marginally past 1
        theta = math.asin(max(-1.0, min(1.0, z / r)))

    if x > 0.0:
        phi = math.atan(y / x)
    elif x < 0.0 and y >= 0.0:
        phi = math.atan(y / x) + math.pi
    elif x < 0.0 and y < 0.0:
        phi = math.atan(y / x) - math.pi
    elif x == 0.0 and y > 0.0:
        phi = math.pi / 2.0
    elif x == 0.0 and y < 0.0:
        phi = -math.pi / 2.0
    else:
        phi = math.nan

    return r, theta, phi


def cartesian(r: float, theta: float, phi: float, zero_nan: bool = True) -> tuple[float, float, float]:
    """Convert (r, theta, phi) back to a Cartesian offset.

    Args:
        r: Radius.
        theta: Elevation angle in radians.
        phi: Azimuth angle in radians.
        zero_nan: If True, a NaN phi is treated as 0 and any NaN output
            component is replaced by 0.

    Returns:
        Tuple (x, y, z).
    """
    if zero_nan and math.isnan(phi):
        phi = 0.0

    x = r * math.cos(theta) * math.cos(phi)
    y = r * math.cos(theta) * math.sin(phi)
    z = r * math.sin(theta)

    if zero_nan:
        x = 0.0 if math.isnan(x) else x
        y = 0.0 if math.isnan(y) else y
        z = 0.0 if math.isnan(z) else z
    return x, y, z


def looparound(v: float, lower: float, upper: float) -> float:
    """Wrap v into the half-open interval [lower, upper).

    Values already inside the interval are returned unchanged. NaN is
    passed through.

    Raises:
        ValueError: If upper is not greater than lower.
    """
    if not upper > lower:
        raise ValueError(f"Invalid interval [{lower}, {upper})")
    if lower <= v < upper or math.isnan(v):
        return v
    span = upper - lower
    wrapped = lower + (v - lower) % span
    # Float modulo of a tiny negative offset can round up to span
    if wrapped >= upper:
        wrapped = lower
    return wrapped
