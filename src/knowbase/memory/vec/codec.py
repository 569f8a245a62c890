"""
Vector codec
============

Binary and textual encodings for embedding vectors.

- Binary: ``8 * d`` bytes of little-endian IEEE-754 doubles, no header.
  This is the only format persisted in the ``fragments`` table.
- Text: a JSON array of numbers, used only at the provider boundary.
"""

from __future__ import annotations

import json
from typing import Iterable, List, Union

import numpy as np

from knowbase.errors import CodecError

FLOAT_WIDTH = 8
VECTOR_DTYPE = np.dtype("<f8")

Blob = Union[bytes, bytearray, memoryview]

_WHITESPACE = " \t\n\r"
_DIGITS = "0123456789"


def encode(vector: Iterable[float]) -> bytes:
    """Serialize ``vector`` to little-endian float64 bytes."""
    if not isinstance(vector, np.ndarray):
        vector = list(vector)
    return np.asarray(vector, dtype=VECTOR_DTYPE).tobytes()


def decode(blob: Blob) -> np.ndarray:
    """
    Deserialize little-endian float64 bytes.

    :raises CodecError: when ``blob`` is not binary data or its length is not
        a multiple of 8.
    """
    if blob is None:
        raise CodecError("missing vector data")
    if not isinstance(blob, (bytes, bytearray, memoryview)):
        raise CodecError(f"expected binary vector data, got {type(blob).__name__}")
    size = len(blob) if not isinstance(blob, memoryview) else blob.nbytes
    if size % FLOAT_WIDTH != 0:
        raise CodecError(f"invalid data length: {size} is not divisible by {FLOAT_WIDTH}")
    # Native-order copy so callers get a writable, aligned array.
    return np.frombuffer(blob, dtype=VECTOR_DTYPE).astype(np.float64)


def format_json_floats(vector: Iterable[float]) -> str:
    """Render ``vector`` as a JSON array string."""
    return json.dumps([float(x) for x in vector])


def parse_json_floats(text: str) -> List[float]:
    """
    Parse a JSON array of numbers without going through :mod:`json`.

    Accepts exactly what a JSON parser accepts for an array whose elements are
    all numbers; everything else raises :class:`CodecError`.
    """
    if not isinstance(text, str):
        raise CodecError(f"expected str, got {type(text).__name__}")

    start, end = 0, len(text)
    while start < end and text[start] in _WHITESPACE:
        start += 1
    while end > start and text[end - 1] in _WHITESPACE:
        end -= 1

    if end - start < 2 or text[start] != "[" or text[end - 1] != "]":
        raise CodecError("input is not a JSON array")

    result: List[float] = []
    pos = start + 1
    stop = end - 1
    expect_value = True
    first = True

    while True:
        while pos < stop and text[pos] in _WHITESPACE:
            pos += 1
        if pos >= stop:
            if expect_value and not first:
                raise CodecError("trailing comma in JSON array")
            break
        if not expect_value:
            if text[pos] != ",":
                raise CodecError(f"expected ',' at offset {pos}")
            pos += 1
            expect_value = True
            continue

        num_end = _scan_number(text, pos, stop)
        result.append(float(text[pos:num_end]))
        pos = num_end
        expect_value = False
        first = False

    return result


def _scan_number(text: str, pos: int, stop: int) -> int:
    """Return the end offset of the JSON number starting at ``pos``."""
    begin = pos
    if pos < stop and text[pos] == "-":
        pos += 1

    if pos >= stop or text[pos] not in _DIGITS:
        raise CodecError(f"invalid character in JSON array at offset {begin}")
    if text[pos] == "0":
        pos += 1
    else:
        while pos < stop and text[pos] in _DIGITS:
            pos += 1

    if pos < stop and text[pos] == ".":
        pos += 1
        if pos >= stop or text[pos] not in _DIGITS:
            raise CodecError(f"malformed number at offset {begin}")
        while pos < stop and text[pos] in _DIGITS:
            pos += 1

    if pos < stop and text[pos] in "eE":
        pos += 1
        if pos < stop and text[pos] in "+-":
            pos += 1
        if pos >= stop or text[pos] not in _DIGITS:
            raise CodecError(f"malformed exponent at offset {begin}")
        while pos < stop and text[pos] in _DIGITS:
            pos += 1

    if pos < stop and text[pos] not in _WHITESPACE and text[pos] != ",":
        raise CodecError(f"malformed number at offset {begin}")
    return pos


__all__ = [
    "FLOAT_WIDTH",
    "VECTOR_DTYPE",
    "encode",
    "decode",
    "format_json_floats",
    "parse_json_floats",
]
