# SPDX-License-Identifier: MIT
"""Core types shared by ccprobe: errors and compiler flags."""

from ccprobe.core.errors import (
    BinaryFormatError,
    CompilerNotWorkingError,
    ConfigureError,
    FileRemovalError,
    LibraryNotFoundError,
    ProbeError,
    ShellDetectionError,
    ToolNotFoundError,
)
from ccprobe.core.flags import ArgumentDialect, CFlags

__all__ = [
    "ArgumentDialect",
    "BinaryFormatError",
    "CFlags",
    "CompilerNotWorkingError",
    "ConfigureError",
    "FileRemovalError",
    "LibraryNotFoundError",
    "ProbeError",
    "ShellDetectionError",
    "ToolNotFoundError",
]
