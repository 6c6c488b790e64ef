"""
Record Codec Module - Raw CSV row to typed event record conversion

Handles:
- Required field presence checks (id, time, latitude, longitude, mag)
- Numeric parsing with range validation for coordinates
- Optional quality fields kept absent (None) instead of zero
- Quality flags for unusual depth/magnitude values
- Tagged results: a Record or a Rejected, never an exception
"""
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional, Tuple, Union


RawRow = Dict[str, str]

REQUIRED_FIELDS = ('id', 'time', 'latitude', 'longitude', 'mag')

# Coordinate bounds reject the row, depth/magnitude bounds only flag it
MIN_LATITUDE, MAX_LATITUDE = -90.0, 90.0
MIN_LONGITUDE, MAX_LONGITUDE = -180.0, 180.0
MIN_DEPTH, MAX_DEPTH = -10.0, 1000.0
MIN_MAGNITUDE, MAX_MAGNITUDE = -5.0, 10.0


class RejectReason(Enum):
    """Why a raw row could not become a Record"""
    MISSING_FIELD = "missing_field"
    NON_NUMERIC = "non_numeric"
    OUT_OF_RANGE = "out_of_range"


@dataclass(frozen=True)
class Record:
    """Validated, immutable earthquake event"""
    id: str
    time: str
    latitude: float
    longitude: float
    depth: float
    magnitude: float
    mag_type: str = "unknown"
    place: str = "Unknown location"
    network: str = "unknown"
    status: str = "unknown"
    event_type: str = "earthquake"
    updated: str = ""

    # Optional quality fields, None means absent
    nst: Optional[int] = None
    gap: Optional[float] = None
    dmin: Optional[float] = None
    rms: Optional[float] = None
    horizontal_error: Optional[float] = None
    depth_error: Optional[float] = None
    mag_error: Optional[float] = None
    mag_nst: Optional[int] = None
    location_source: Optional[str] = None
    mag_source: Optional[str] = None

    flags: Tuple[str, ...] = ()
    updated_at: Optional[datetime] = field(default=None, compare=False, repr=False)

    @property
    def is_flagged(self) -> bool:
        return bool(self.flags)

    def to_dict(self) -> Dict[str, object]:
        """Convert to dictionary for export/details display"""
        return {
            'id': self.id,
            'time': self.time,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'depth': self.depth,
            'magnitude': self.magnitude,
            'mag_type': self.mag_type,
            'place': self.place,
            'network': self.network,
            'status': self.status,
            'event_type': self.event_type,
            'updated': self.updated,
            'nst': self.nst,
            'gap': self.gap,
            'dmin': self.dmin,
            'rms': self.rms,
            'horizontal_error': self.horizontal_error,
            'depth_error': self.depth_error,
            'mag_error': self.mag_error,
            'mag_nst': self.mag_nst,
            'location_source': self.location_source,
            'mag_source': self.mag_source,
            'flags': list(self.flags),
        }


@dataclass(frozen=True)
class Rejected:
    """A row that failed validation"""
    reason: RejectReason
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.reason.value}: {self.message}"


ParseResult = Union[Record, Rejected]


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp as emitted by the USGS feed ('Z' suffix included)"""
    if not value:
        return None

    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    # Naive timestamps are UTC in the feed, keep everything comparable
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def _parse_int(value: Optional[str]) -> Optional[int]:
    number = _parse_float(value)
    if number is None:
        return None
    return int(number)


class RecordCodec:
    """
    Converts raw CSV rows (field name -> string) into Records

    Rules:
    - Missing/blank required field -> Rejected(MISSING_FIELD)
    - Unparsable latitude/longitude/mag -> Rejected(NON_NUMERIC)
    - Latitude/longitude outside bounds -> Rejected(OUT_OF_RANGE)
    - Unparsable depth -> 0.0
    - Unparsable optional numeric -> None
    """

    def parse(self, row: RawRow) -> ParseResult:
        """
        Parse a single raw row

        Args:
            row: Mapping of header name to raw string value

        Returns:
            Record on success, Rejected otherwise
        """
        if not isinstance(row, dict):
            return Rejected(RejectReason.MISSING_FIELD, '*', "Row is not a mapping")

        values = {key: self._clean(value) for key, value in row.items() if isinstance(key, str)}

        for name in REQUIRED_FIELDS:
            if not values.get(name):
                return Rejected(RejectReason.MISSING_FIELD, name, f"Missing required field '{name}'")

        numbers = {}
        for name in ('latitude', 'longitude', 'mag'):
            number = _parse_float(values[name])
            if number is None:
                return Rejected(
                    RejectReason.NON_NUMERIC, name,
                    f"Field '{name}' is not a number: {values[name]!r}"
                )
            numbers[name] = number

        latitude = numbers['latitude']
        longitude = numbers['longitude']
        if not MIN_LATITUDE <= latitude <= MAX_LATITUDE:
            return Rejected(RejectReason.OUT_OF_RANGE, 'latitude', f"Latitude out of range: {latitude}")
        if not MIN_LONGITUDE <= longitude <= MAX_LONGITUDE:
            return Rejected(RejectReason.OUT_OF_RANGE, 'longitude', f"Longitude out of range: {longitude}")

        depth = _parse_float(values.get('depth'))
        if depth is None:
            depth = 0.0
        magnitude = numbers['mag']

        time = values['time']
        updated = values.get('updated') or time

        record = Record(
            id=values['id'],
            time=time,
            latitude=latitude,
            longitude=longitude,
            depth=depth,
            magnitude=magnitude,
            mag_type=values.get('magType') or "unknown",
            place=values.get('place') or "Unknown location",
            network=values.get('net') or "unknown",
            status=values.get('status') or "unknown",
            event_type=values.get('type') or "earthquake",
            updated=updated,
            nst=_parse_int(values.get('nst')),
            gap=_parse_float(values.get('gap')),
            dmin=_parse_float(values.get('dmin')),
            rms=_parse_float(values.get('rms')),
            horizontal_error=_parse_float(values.get('horizontalError')),
            depth_error=_parse_float(values.get('depthError')),
            mag_error=_parse_float(values.get('magError')),
            mag_nst=_parse_int(values.get('magNst')),
            location_source=values.get('locationSource') or None,
            mag_source=values.get('magSource') or None,
            flags=self.quality_flags(values, depth, magnitude),
            updated_at=parse_timestamp(updated),
        )
        return record

    def quality_flags(self, values: Dict[str, str], depth: float, magnitude: float) -> Tuple[str, ...]:
        """Collect non-fatal data quality warnings for a row"""
        flags = []
        if not MIN_DEPTH <= depth <= MAX_DEPTH:
            flags.append(f"Unusual depth value: {depth} km")
        if not MIN_MAGNITUDE <= magnitude <= MAX_MAGNITUDE:
            flags.append(f"Unusual magnitude value: {magnitude}")
        if not values.get('magType'):
            flags.append("Missing magnitude type")
        if not values.get('place'):
            flags.append("Missing place description")
        if not values.get('net'):
            flags.append("Missing network information")
        return tuple(flags)

    @staticmethod
    def _clean(value) -> str:
        if value is None:
            return ''
        if not isinstance(value, str):
            return str(value).strip()
        return value.strip()


_default_codec = RecordCodec()


def parse_row(row: RawRow) -> ParseResult:
    """Parse a row with the shared codec instance"""
    return _default_codec.parse(row)
