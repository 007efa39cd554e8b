"""Distance, elevation and bearing between two GPS positions."""

from __future__ import annotations

import math
from dataclasses import dataclass

EARTH_RADIUS_M = 6371000.0


@dataclass(frozen=True)
class GpsDistance:
    """Relation between two (lat, lon, alt) points.

    Distances are in metres, the angular distance in radians,
    elevation and bearing in degrees.
    """

    dist_line: float = 0.0
    dist_circle: float = 0.0
    dist_radians: float = 0.0
    elevation: float = 0.0
    bearing: float = 0.0

    def __str__(self) -> str:
        return (
            f"dist_line: {self.dist_line:g}\n"
            f"dist_circle: {self.dist_circle:g}\n"
            f"dist_radians: {self.dist_radians:g}\n"
            f"elevation: {self.elevation:g}\n"
            f"bearing: {self.bearing:g}\n"
        )


def calc_gps_distance(
    lat1: float, lon1: float, alt1: float, lat2: float, lon2: float, alt2: float
) -> GpsDistance:
    """Compute line and great-circle distance, elevation and bearing.

    Latitudes and longitudes are in degrees, altitudes in metres. Uses
    Vincenty's formulae on a sphere for the bearing and the angle at the centre.
    """
    lat1, lon1, lat2, lon2 = map(math.radians, (lat1, lon1, lat2, lon2))

    d_lon = lon2 - lon1
    sa = math.cos(lat2) * math.sin(d_lon)
    sb = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(d_lon)
    bearing = math.atan2(sa, sb)
    aa = math.hypot(sa, sb)
    ab = math.sin(lat1) * math.sin(lat2) + math.cos(lat1) * math.cos(lat2) * math.cos(d_lon)
    angle_at_centre = math.atan2(aa, ab)
    great_circle_distance = angle_at_centre * EARTH_RADIUS_M

    # Triangle with sides (r + alt1), (r + alt2) and the straight line.
    ta = EARTH_RADIUS_M + alt1
    tb = EARTH_RADIUS_M + alt2
    ea = math.cos(angle_at_centre) * tb - ta
    eb = math.sin(angle_at_centre) * tb
    elevation = math.atan2(ea, eb)

    line_distance = math.sqrt(max(0.0, ta * ta + tb * tb - 2 * tb * ta * math.cos(angle_at_centre)))

    if bearing < 0:
        bearing += 2 * math.pi

    return GpsDistance(
        dist_line=line_distance,
        dist_circle=great_circle_distance,
        dist_radians=angle_at_centre,
        elevation=math.degrees(elevation),
        bearing=math.degrees(bearing),
    )