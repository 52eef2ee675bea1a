# SPDX-License-Identifier: MIT
"""The toolchain profile: everything learned about the compiler.

A ToolchainProfile is assembled once, at the end of detection, and is
read-only afterward. Downstream probes use it to construct file names
and command lines that match the toolchain, e.g.:

    profile.shared_lib_filename(".", "foo", "3")
    # 'libfoo.so.3' on ELF, 'libfoo.3.dylib' on Mach-O, 'foo-3.dll' with MSVC
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ccprobe.configure.binfmt import BinaryFormat
from ccprobe.core.errors import BinaryFormatError
from ccprobe.core.flags import ArgumentDialect, CFlags

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from ccprobe.configure.identity import CompilerIdentity
    from ccprobe.configure.shell import ShellProfile


@dataclass(frozen=True)
class FileExtensions:
    """File name extensions used by a toolchain (with leading dot)."""

    executable: str
    object: str
    shared_lib: str
    static_lib: str
    import_lib: str = ""


ELF_EXTENSIONS = FileExtensions("", ".o", ".so", ".a")
MACHO_EXTENSIONS = FileExtensions("", ".o", ".dylib", ".a")
PE_GNU_EXTENSIONS = FileExtensions(".exe", ".o", ".dll", ".a", ".dll.a")
PE_MSVC_EXTENSIONS = FileExtensions(".exe", ".obj", ".dll", ".lib", ".lib")


def extensions_for(
    binary_format: BinaryFormat, identity: CompilerIdentity
) -> FileExtensions:
    """Derive file extensions from binary format and compiler identity.

    Raises:
        BinaryFormatError: If the binary format is UNKNOWN.
    """
    if binary_format is BinaryFormat.ELF:
        return ELF_EXTENSIONS
    if binary_format is BinaryFormat.MACHO:
        return MACHO_EXTENSIONS
    if binary_format is BinaryFormat.PE:
        return PE_GNU_EXTENSIONS if identity.is_gcc else PE_MSVC_EXTENSIONS
    raise BinaryFormatError("failed to detect binary format")


def _join_objects(objects: str | Iterable[str]) -> str:
    if isinstance(objects, str):
        return objects
    return " ".join(str(obj) for obj in objects)


@dataclass(frozen=True)
class ToolchainProfile:
    """Detected properties of a C toolchain.

    Attributes:
        compiler_command: The compiler command as supplied by the caller.
        base_flags: Flags passed to every compiler invocation.
        dialect: Argument dialect for rendering flags.
        binary_format: Format of produced executables.
        extensions: File name extensions.
        identity: Compiler identity macros.
        shell: The detected shell (for directory separators).
        extra_flags: Persistent flags appended to every trial compile.
        temp_flags: Flags for the duration of one probe; the probe
            must clear them when done.
    """

    compiler_command: str
    base_flags: str
    dialect: ArgumentDialect
    binary_format: BinaryFormat
    extensions: FileExtensions
    identity: CompilerIdentity
    shell: ShellProfile
    extra_flags: CFlags = field(compare=False, repr=False)
    temp_flags: CFlags = field(compare=False, repr=False)

    @property
    def is_msvc(self) -> bool:
        return self.identity.is_msvc

    def new_flags(self) -> CFlags:
        """Create an empty flag collection in this toolchain's dialect."""
        return CFlags(self.dialect)

    def _in_dir(self, directory: Path | str | None, filename: str) -> str:
        if directory is None or str(directory) == ".":
            return filename
        return f"{directory}{self.shell.dir_sep}{filename}"

    def _build_lib_filename(
        self,
        directory: Path | str | None,
        prefix: str,
        basename: str,
        version: str | None,
        ext: str,
    ) -> str:
        if version is None:
            suffix = ext
        elif self.binary_format is BinaryFormat.PE:
            suffix = f"-{version}{ext}"
        elif self.binary_format is BinaryFormat.MACHO:
            suffix = f".{version}{ext}"
        elif self.binary_format is BinaryFormat.ELF:
            suffix = f"{ext}.{version}"
        else:
            raise BinaryFormatError(
                f"unsupported binary format: {self.binary_format.value}"
            )
        return self._in_dir(directory, f"{prefix}{basename}{suffix}")

    @property
    def shared_lib_prefix(self) -> str:
        if self.is_msvc:
            return ""
        # Cygwin uses a "cyg" prefix for shared libraries.
        if self.identity.is_cygwin:
            return "cyg"
        return "lib"

    def shared_lib_filename(
        self,
        directory: Path | str | None,
        basename: str,
        version: str | None = None,
    ) -> str:
        """Shared library file name, optionally with an embedded version.

        ELF appends the version (``libfoo.so.3``), Mach-O inserts it before
        the extension (``libfoo.3.dylib``), PE joins it with a dash
        (``foo-3.dll``).
        """
        return self._build_lib_filename(
            directory,
            self.shared_lib_prefix,
            basename,
            version,
            self.extensions.shared_lib,
        )

    def import_lib_filename(
        self,
        directory: Path | str | None,
        basename: str,
        version: str | None = None,
    ) -> str:
        prefix = "" if self.is_msvc else "lib"
        return self._build_lib_filename(
            directory, prefix, basename, version, self.extensions.import_lib
        )

    def export_filename(
        self,
        directory: Path | str | None,
        basename: str,
        version: str | None = None,
    ) -> str:
        """MSVC export file (``foo-3.exp``)."""
        return self._build_lib_filename(directory, "", basename, version, ".exp")

    def static_lib_filename(self, directory: Path | str | None, basename: str) -> str:
        prefix = "" if self.is_msvc else "lib"
        return self._in_dir(directory, f"{prefix}{basename}{self.extensions.static_lib}")

    def link_command(self) -> str:
        if self.is_msvc:
            return "link"
        return self.compiler_command

    def archiver_command(self, target: str, objects: str | Iterable[str]) -> str:
        """Command line that creates a static library from objects."""
        objs = _join_objects(objects)
        if self.is_msvc:
            return f"lib /NOLOGO {objs} /OUT:{target}"
        return f"ar rcs {target} {objs}"

    def ranlib_command(self, target: str) -> str | None:
        """Command line that indexes a static library, if one is needed."""
        if self.is_msvc:
            return None
        return f"ranlib {target}"

    def to_dict(self) -> dict[str, object]:
        return {
            "compiler_command": self.compiler_command,
            "base_flags": self.base_flags,
            "dialect": self.dialect.value,
            "binary_format": self.binary_format.value,
            "extensions": {
                "executable": self.extensions.executable,
                "object": self.extensions.object,
                "shared_lib": self.extensions.shared_lib,
                "static_lib": self.extensions.static_lib,
                "import_lib": self.extensions.import_lib,
            },
            "identity": self.identity.to_dict(),
        }
