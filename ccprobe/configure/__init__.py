# SPDX-License-Identifier: MIT
"""Shell and C toolchain detection."""

from ccprobe.configure.binfmt import BinaryFormat, detect_binary_format
from ccprobe.configure.config import Configure, ProgramInfo
from ccprobe.configure.identity import CompilerFamily, CompilerIdentity
from ccprobe.configure.library import SharedLibrary
from ccprobe.configure.profile import FileExtensions, ToolchainProfile
from ccprobe.configure.shell import ShellKind, ShellProfile, detect_shell

__all__ = [
    "BinaryFormat",
    "CompilerFamily",
    "CompilerIdentity",
    "Configure",
    "FileExtensions",
    "ProgramInfo",
    "SharedLibrary",
    "ShellKind",
    "ShellProfile",
    "ToolchainProfile",
    "detect_binary_format",
    "detect_shell",
]
