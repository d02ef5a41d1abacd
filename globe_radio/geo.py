"""Geographic coordinates to points on a sphere.

The y axis is the polar axis; latitude is measured from the equator and
longitude from the reference meridian, matching a scene graph whose "up" is
+y.
"""

from __future__ import annotations

import math
from typing import Iterable

import numpy as np


def project(latitude: float, longitude: float, radius: float = 1.0) -> tuple[float, float, float]:
    """Project degrees latitude/longitude onto a sphere of ``radius``.

    No range validation: out-of-range angles still yield a point on the sphere.
    """
    phi = math.radians(90.0 - latitude)
    theta = math.radians(longitude + 180.0)
    sin_phi = math.sin(phi)
    return (
        -(radius * sin_phi * math.cos(theta)),
        radius * math.cos(phi),
        radius * sin_phi * math.sin(theta),
    )


def project_many(
    latitudes: Iterable[float] | np.ndarray,
    longitudes: Iterable[float] | np.ndarray,
    radius: float = 1.0,
) -> np.ndarray:
    """Vectorised ``project``; returns an array shaped like the inputs plus a trailing axis of 3."""
    lat = np.asarray(latitudes, dtype=np.float64)
    lng = np.asarray(longitudes, dtype=np.float64)
    if lat.shape != lng.shape:
        raise ValueError(f"latitude/longitude shape mismatch: {lat.shape} vs {lng.shape}")

    phi = np.radians(90.0 - lat)
    theta = np.radians(lng + 180.0)
    sin_phi = np.sin(phi)
    return np.stack(
        (
            -(radius * sin_phi * np.cos(theta)),
            radius * np.cos(phi),
            radius * sin_phi * np.sin(theta),
        ),
        axis=-1,
    )
