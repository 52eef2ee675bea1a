# SPDX-License-Identifier: MIT
"""Binary format detection from executable magic bytes."""

from __future__ import annotations

import struct
from enum import Enum
from pathlib import Path

ELF_MAGIC = b"\x7fELF"

MACHO_MAGICS = frozenset(
    [
        b"\xca\xfe\xba\xbe",  # Fat binary
        b"\xfe\xed\xfa\xce",  # 32-bit big endian
        b"\xfe\xed\xfa\xcf",  # 64-bit big endian
        b"\xce\xfa\xed\xfe",  # 32-bit little endian
        b"\xcf\xfa\xed\xfe",  # 64-bit little endian
    ]
)

MZ_MAGIC = b"MZ"
PE_SIGNATURE = b"PE\x00\x00"
# Offset of the MS-DOS stub's pointer to the PE header.
PE_OFFSET_FIELD = 0x3C
MIN_MZ_LENGTH = 0x40


class BinaryFormat(Enum):
    """Container format of executables produced by the toolchain."""

    UNKNOWN = "unknown"
    ELF = "elf"
    MACHO = "macho"
    PE = "pe"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    BinaryFormat.UNKNOWN: "unknown",
    BinaryFormat.ELF: "ELF",
    BinaryFormat.MACHO: "Mach-O",
    BinaryFormat.PE: "Portable Executable",
}


def _is_pe(data: bytes) -> bool:
    if len(data) < MIN_MZ_LENGTH or data[:2] != MZ_MAGIC:
        return False
    (header_offset,) = struct.unpack_from("<I", data, PE_OFFSET_FIELD)
    if len(data) < header_offset + 4:
        return False
    return data[header_offset : header_offset + 4] == PE_SIGNATURE


def detect_binary_format(data: bytes) -> BinaryFormat:
    """Classify raw executable bytes.

    The signatures are mutually exclusive, so the order of the checks
    only matters for speed.

    Returns:
        The detected format, or BinaryFormat.UNKNOWN.
    """
    magic = data[:4]
    if magic == ELF_MAGIC:
        return BinaryFormat.ELF
    if magic in MACHO_MAGICS:
        return BinaryFormat.MACHO
    if _is_pe(data):
        return BinaryFormat.PE
    return BinaryFormat.UNKNOWN


def detect_binary_format_file(path: Path | str) -> BinaryFormat:
    """Classify the executable at ``path``."""
    return detect_binary_format(Path(path).read_bytes())
