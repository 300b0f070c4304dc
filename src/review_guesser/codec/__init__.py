"""
Portable seen-games format.

Encodes the seen-state as CSV for export and parses it back
for additive import on another device.
"""

from review_guesser.codec.csv_codec import (
    HEADER,
    DecodeResult,
    decode,
    decode_line,
    encode,
    export_filename,
    format_timestamp,
    merge_into,
    parse_timestamp,
)

__all__ = [
    "HEADER",
    "DecodeResult",
    "decode",
    "decode_line",
    "encode",
    "export_filename",
    "format_timestamp",
    "merge_into",
    "parse_timestamp",
]
