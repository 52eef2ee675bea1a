# SPDX-License-Identifier: MIT
"""Versioned shared library names."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ccprobe.configure.binfmt import BinaryFormat

if TYPE_CHECKING:
    from pathlib import Path

    from ccprobe.configure.profile import ToolchainProfile


@dataclass(frozen=True)
class SharedLibrary:
    """A shared library with a full and a major version.

    Example:
        lib = SharedLibrary("foo", version="3.1.2", major_version="3")
        lib.filename(profile)                # 'libfoo.so.3.1.2' on ELF
        lib.major_version_filename(profile)  # 'libfoo.so.3'
        lib.no_version_filename(profile)     # 'libfoo.so'

    Attributes:
        name: Base name, without prefix or extension.
        version: Full version string.
        major_version: ABI version, used by Windows DLL names.
    """

    name: str
    version: str
    major_version: str

    def filename(
        self, profile: ToolchainProfile, directory: Path | str | None = None
    ) -> str:
        """Name of the real library file.

        DLLs carry only the major version; ``foo-3.dll`` stands for every
        ABI-compatible release.
        """
        if profile.binary_format is BinaryFormat.PE:
            version = self.major_version
        else:
            version = self.version
        return profile.shared_lib_filename(directory, self.name, version)

    def major_version_filename(
        self, profile: ToolchainProfile, directory: Path | str | None = None
    ) -> str:
        return profile.shared_lib_filename(directory, self.name, self.major_version)

    def no_version_filename(
        self, profile: ToolchainProfile, directory: Path | str | None = None
    ) -> str:
        return profile.shared_lib_filename(directory, self.name)

    def implib_filename(
        self, profile: ToolchainProfile, directory: Path | str | None = None
    ) -> str:
        return profile.import_lib_filename(directory, self.name, self.major_version)

    def export_filename(
        self, profile: ToolchainProfile, directory: Path | str | None = None
    ) -> str:
        return profile.export_filename(directory, self.name, self.major_version)
