"""Vector codec and the SQL distance function."""

from .codec import decode, encode, format_json_floats, parse_json_floats
from .distance import DecodeCache, DistanceStats, VectorDistance

__all__ = [
    "encode",
    "decode",
    "format_json_floats",
    "parse_json_floats",
    "DecodeCache",
    "DistanceStats",
    "VectorDistance",
]
