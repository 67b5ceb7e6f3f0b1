"""
NEO Impact Estimator - Map Utility Functions

This module provides geometric and geographic helpers that turn a parameter
snapshot into map-ready data: damage-zone rings around the impact point and
the entry heading line. It handles Earth's spherical geometry and
antimeridian crossings; drawing is left to the map collaborator.
"""

import math
from math import sin, cos, asin, radians, degrees, atan2

from neoimpact.utils import R_EARTH_KM, m_to_km, to_float

DAMAGE_BANDS = ("severe", "moderate", "light")


def normalize_bearing(angle):
    """Wrap a compass bearing into [0, 360)."""
    return ((angle % 360.0) + 360.0) % 360.0


def wrap_longitude(lon):
    """Wrap a longitude into [-180, 180)."""
    return ((lon + 180.0) % 360.0 + 360.0) % 360.0 - 180.0


def destination_point(lat_deg, lon_deg, bearing_deg, distance_km):
    """
    Great circle destination from a start point, bearing and distance.

    Uses the spherical law of cosines on a sphere of Earth's mean radius:
        lat2 = asin(sin(lat1) * cos(d/R) + cos(lat1) * sin(d/R) * cos(bearing))
        lon2 = lon1 + atan2(sin(bearing) * sin(d/R) * cos(lat1), cos(d/R) - sin(lat1) * sin(lat2))

    Args:
        lat_deg (float): Start latitude in degrees.
        lon_deg (float): Start longitude in degrees.
        bearing_deg (float): Compass bearing, North=0 clockwise.
        distance_km (float): Distance along the surface in kilometers.

    Returns:
        tuple: (latitude, longitude) of the destination, longitude wrapped
        into [-180, 180).
    """
    angular_distance = distance_km / R_EARTH_KM
    bearing = radians(bearing_deg)
    lat1 = radians(lat_deg)
    lon1 = radians(lon_deg)

    lat2 = asin(sin(lat1) * cos(angular_distance) +
                cos(lat1) * sin(angular_distance) * cos(bearing))
    lon2 = lon1 + atan2(sin(bearing) * sin(angular_distance) * cos(lat1),
                        cos(angular_distance) - sin(lat1) * sin(lat2))
    return degrees(lat2), wrap_longitude(degrees(lon2))


def create_circle_coordinates(center_lat, center_lon, radius_km, points=72):
    """
    Generates geographic coordinates for a circular damage zone.

    Args:
        center_lat (float): Latitude of the circle's center (-90 to 90).
        center_lon (float): Longitude of the circle's center.
        radius_km (float): Radius of the circle in kilometers.
        points (int, optional): Number of perimeter points (default 72, one
            every 5 degrees).

    Returns:
        list: A closed ring of [longitude, latitude] pairs; a list of two
        rings when the circle crosses the antimeridian; an empty list when
        the radius is not a positive finite number.
    """
    radius_km = to_float(radius_km)
    if not math.isfinite(radius_km) or radius_km <= 0 or points < 3:
        return []

    center_lat = max(-90.0, min(90.0, center_lat))

    coordinates = []
    for i in range(points + 1):
        lat, lon = destination_point(center_lat, center_lon, i * (360.0 / points), radius_km)
        coordinates.append([lon, lat])
    coordinates[-1] = list(coordinates[0])

    crossings = [
        i for i in range(1, len(coordinates))
        if abs(coordinates[i][0] - coordinates[i - 1][0]) > 180
    ]
    if not crossings:
        return coordinates

    # Split into an eastern and a western ring, closing both on the meridian.
    east_coords = []
    west_coords = []
    for i, (lon, lat) in enumerate(coordinates):
        if i in crossings:
            prev_lon, prev_lat = coordinates[i - 1]
            span = (180 - abs(prev_lon)) + (180 - abs(lon))
            t = (180 - abs(prev_lon)) / span if span else 0.0
            y_inter = prev_lat + t * (lat - prev_lat)
            east_coords.append([180.0, y_inter])
            west_coords.append([-180.0, y_inter])
        (east_coords if lon >= 0 else west_coords).append([lon, lat])

    rings = []
    for ring in (east_coords, west_coords):
        if len(ring) >= 3:
            if ring[0] != ring[-1]:
                ring.append(list(ring[0]))
            rings.append(ring)
    return rings


def build_damage_zones(snapshot, points=72):
    """
    GeoJSON FeatureCollection with one polygon per damage band.

    Reads ``lat``, ``lon`` and the ``R_severe``/``R_moderate``/``R_light``
    output fields (meters). Bands with no positive radius are omitted.
    """
    lat = to_float(snapshot.get("lat"))
    lon = to_float(snapshot.get("lon"))
    if not (math.isfinite(lat) and math.isfinite(lon)):
        lat, lon = 0.0, 0.0

    features = []
    for band in DAMAGE_BANDS:
        radius_m = to_float(snapshot.get(f"R_{band}"))
        coordinates = create_circle_coordinates(lat, lon, m_to_km(radius_m), points)
        if not coordinates:
            continue
        if isinstance(coordinates[0][0], list):
            geometry = {"type": "MultiPolygon", "coordinates": [[ring] for ring in coordinates]}
        else:
            geometry = {"type": "Polygon", "coordinates": [coordinates]}
        features.append({
            "type": "Feature",
            "geometry": geometry,
            "properties": {"band": band, "radius_m": radius_m},
        })
    return {"type": "FeatureCollection", "features": features}


def direction_vector(snapshot, length_km=200.0):
    """Entry heading line and horizontal speed for the direction indicator."""
    lat = to_float(snapshot.get("lat"))
    lon = to_float(snapshot.get("lon"))
    if not (math.isfinite(lat) and math.isfinite(lon)):
        lat, lon = 0.0, 0.0
    azimuth = to_float(snapshot.get("azimuth"))
    bearing = normalize_bearing(azimuth) if math.isfinite(azimuth) else 0.0

    # The body arrives travelling along the bearing, so it comes from behind.
    start = destination_point(lat, lon, normalize_bearing(bearing + 180.0), length_km)

    speed = to_float(snapshot.get("v_kms"))
    elevation = to_float(snapshot.get("elevation_angle"))
    if not math.isfinite(elevation):
        elevation = 0.0
    horizontal_speed = None
    if math.isfinite(speed) and speed > 0:
        horizontal_speed = max(0.0, speed * cos(radians(elevation)))

    return {
        "azimuth": bearing,
        "start": [start[1], start[0]],
        "end": [lon, lat],
        "horizontal_speed_kms": horizontal_speed,
    }
