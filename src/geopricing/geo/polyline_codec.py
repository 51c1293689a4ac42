"""Encoded polyline codec for route geometry.

Each coordinate component is stored as a zig-zag, base-32 variable-length
integer holding the delta from the previous value, scaled by
``10 ** precision``. OSRM emits precision 6 (``polyline6``); the classic
Google format is precision 5.
"""

from collections.abc import Sequence

import polyline

from geopricing.core.exceptions import DecodeError, ValidationError
from geopricing.geo.coordinates import Coordinate

SUPPORTED_PRECISIONS = (5, 6)

# Every encoded character is a 5-bit chunk offset by 63
_MIN_CHAR = 63
_MAX_CHAR = 63 + 0x3F


def _check_precision(precision: int) -> None:
    if precision not in SUPPORTED_PRECISIONS:
        raise ValidationError(
            f"Unsupported polyline precision {precision}; expected one of {SUPPORTED_PRECISIONS}"
        )


def decode(encoded: str, precision: int = 5) -> list[Coordinate]:
    """Decode an encoded polyline into ordered coordinates.

    Raises:
        DecodeError: truncated input, characters outside the polyline
            alphabet, or values that decode outside the valid lat/lon range.
    """
    _check_precision(precision)
    if not encoded:
        return []

    for position, char in enumerate(encoded):
        if not _MIN_CHAR <= ord(char) <= _MAX_CHAR:
            raise DecodeError(
                f"Invalid polyline character {char!r} at position {position}",
                details={"position": position},
            )

    try:
        pairs = polyline.decode(encoded, precision)
    except IndexError as e:
        raise DecodeError(
            "Truncated polyline: input ends inside a coordinate",
            details={"length": len(encoded)},
        ) from e

    coordinates = []
    for index, (lat, lon) in enumerate(pairs):
        if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
            raise DecodeError(
                f"Decoded point {index} is out of range: ({lat}, {lon})",
                details={"index": index},
            )
        coordinates.append(Coordinate(latitude=lat, longitude=lon))
    return coordinates


def encode(coordinates: Sequence[Coordinate], precision: int = 5) -> str:
    """Encode coordinates; empty input encodes to an empty string."""
    _check_precision(precision)
    if not coordinates:
        return ""
    return polyline.encode([(c.latitude, c.longitude) for c in coordinates], precision)
