"""Geospatial commands stored as sorted sets keyed by an interleaved geohash."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from memkv.errors import InvalidOperationError
from memkv.skiplist import ZSetMember
from memkv.zset_store import ZSetStore

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_MILES = 3959.0
EARTH_RADIUS_M = 6371000.0
GEOHASH_STEP = 26

_BASE32 = "0123456789bcdefghjkmnpqrstuvwxyz"
_STEP_SCALE = float(1 << GEOHASH_STEP)
_METERS_PER_MILE = 1609.34
_FEET_PER_METER = 3.28084


@dataclass(frozen=True)
class GeoPoint:
    """A named location in degrees."""

    longitude: float
    latitude: float
    member: str = ""


@dataclass(frozen=True)
class GeoRadiusResult:
    """One match of a radius query; optional parts are None unless requested."""

    member: str
    distance: float | None = None
    geohash: int | None = None
    point: GeoPoint | None = None


def geohash_encode(latitude: float, longitude: float) -> int:
    """Interleave 26 bits of longitude (even bits) and latitude (odd bits)."""
    lat_int = int((latitude + 90.0) / 180.0 * _STEP_SCALE)
    lon_int = int((longitude + 180.0) / 360.0 * _STEP_SCALE)
    hash_value = 0
    for i in range(GEOHASH_STEP):
        hash_value |= ((lon_int >> i) & 1) << (2 * i)
        hash_value |= ((lat_int >> i) & 1) << (2 * i + 1)
    return hash_value


def geohash_decode(hash_value: int) -> tuple[float, float]:
    """Return (latitude, longitude) for a 52-bit geohash."""
    lat_int = lon_int = 0
    for i in range(GEOHASH_STEP):
        lon_int |= ((hash_value >> (2 * i)) & 1) << i
        lat_int |= ((hash_value >> (2 * i + 1)) & 1) << i
    latitude = lat_int / _STEP_SCALE * 180.0 - 90.0
    longitude = lon_int / _STEP_SCALE * 360.0 - 180.0
    return latitude, longitude


def geohash_to_string(hash_value: int) -> str:
    """Eleven base32 characters for the low 55 bits of the hash."""
    chars = []
    for _ in range(11):
        chars.append(_BASE32[hash_value & 0x1F])
        hash_value >>= 5
    return "".join(reversed(chars))


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters."""
    lat1_rad, lat2_rad = math.radians(lat1), math.radians(lat2)
    d_lat = lat2_rad - lat1_rad
    d_lon = math.radians(lon2) - math.radians(lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def convert_to_meters(distance: float, unit: str) -> float:
    """Convert from m, km, mi or ft; any other unit is taken as meters."""
    if unit == "km":
        return distance * 1000.0
    if unit == "mi":
        return distance * _METERS_PER_MILE
    if unit == "ft":
        return distance / _FEET_PER_METER
    return distance


def convert_from_meters(distance: float, unit: str) -> float:
    """Convert meters to m, km, mi or ft; any other unit stays meters."""
    if unit == "km":
        return distance / 1000.0
    if unit == "mi":
        return distance / _METERS_PER_MILE
    if unit == "ft":
        return distance * _FEET_PER_METER
    return distance


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    return -90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0


def _estimate_geohash_range(radius_m: float) -> int:
    steps_per_meter = _STEP_SCALE / (40075000.0 / 2.0)
    return int(radius_m * steps_per_meter * 2.0)


class GeoStore(ZSetStore):
    """Key space with geospatial commands on top of sorted sets."""

    def _position(self, key: str, member: str) -> tuple[float, float] | None:
        score = self.zscore(key, member)
        return None if score is None else geohash_decode(int(score))

    def geoadd(self, key: str, points: Iterable[GeoPoint]) -> int:
        """Add points; return how many members were new."""
        points = list(points)
        if not all(is_valid_coordinate(p.latitude, p.longitude) for p in points):
            raise InvalidOperationError("invalid longitude or latitude")
        return self.zadd(
            key,
            [
                ZSetMember(p.member, float(geohash_encode(p.latitude, p.longitude)))
                for p in points
            ],
        )

    def geopos(self, key: str, members: Iterable[str]) -> list[GeoPoint | None]:
        result: list[GeoPoint | None] = []
        for member in members:
            position = self._position(key, member)
            if position is None:
                result.append(None)
            else:
                latitude, longitude = position
                result.append(GeoPoint(longitude, latitude, member))
        return result

    def geodist(self, key: str, member1: str, member2: str, unit: str = "m") -> float | None:
        """Distance between two members, or None if either is missing."""
        first = self._position(key, member1)
        second = self._position(key, member2)
        if first is None or second is None:
            return None
        return convert_from_meters(haversine_distance(*first, *second), unit)

    def geohash(self, key: str, members: Iterable[str]) -> list[str | None]:
        result: list[str | None] = []
        for member in members:
            score = self.zscore(key, member)
            result.append(None if score is None else geohash_to_string(int(score)))
        return result

    def georadius(
        self,
        key: str,
        longitude: float,
        latitude: float,
        radius: float,
        unit: str = "m",
        with_dist: bool = False,
        with_hash: bool = False,
        with_coord: bool = False,
        count: int = 0,
    ) -> list[GeoRadiusResult]:
        """Members within radius of a point; count > 0 limits the results."""
        if not is_valid_coordinate(latitude, longitude):
            raise InvalidOperationError("invalid longitude or latitude")
        radius_m = convert_to_meters(radius, unit)
        center = geohash_encode(latitude, longitude)
        spread = _estimate_geohash_range(radius_m)
        candidates = self.zrangebyscore(key, float(center - spread), float(center + spread))

        results: list[GeoRadiusResult] = []
        for candidate in candidates:
            hash_value = int(candidate.score)
            cand_lat, cand_lon = geohash_decode(hash_value)
            distance = haversine_distance(latitude, longitude, cand_lat, cand_lon)
            if distance > radius_m:
                continue
            results.append(
                GeoRadiusResult(
                    member=candidate.member,
                    distance=convert_from_meters(distance, unit) if with_dist else None,
                    geohash=hash_value if with_hash else None,
                    point=GeoPoint(cand_lon, cand_lat, candidate.member) if with_coord else None,
                )
            )
        if count > 0:
            results = results[:count]
        return results

    def georadiusbymember(
        self,
        key: str,
        member: str,
        radius: float,
        unit: str = "m",
        with_dist: bool = False,
        with_hash: bool = False,
        with_coord: bool = False,
        count: int = 0,
    ) -> list[GeoRadiusResult]:
        """Members within radius of an existing member; empty if it is missing."""
        position = self._position(key, member)
        if position is None:
            return []
        latitude, longitude = position
        return self.georadius(
            key, longitude, latitude, radius, unit, with_dist, with_hash, with_coord, count
        )