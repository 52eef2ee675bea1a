# SPDX-License-Identifier: MIT
"""Tests for ccprobe.configure.library."""

from ccprobe.configure.binfmt import BinaryFormat
from ccprobe.configure.identity import CompilerIdentity
from ccprobe.configure.library import SharedLibrary
from ccprobe.configure.profile import ToolchainProfile, extensions_for
from ccprobe.configure.shell import POSIX_SHELL, ShellKind, ShellProfile
from ccprobe.core.flags import ArgumentDialect, CFlags

LIB = SharedLibrary("foo", version="3.1.2", major_version="3")


def profile_for(binary_format, identity, shell=POSIX_SHELL):
    dialect = ArgumentDialect.MSVC if identity.is_msvc else ArgumentDialect.GNU
    return ToolchainProfile(
        compiler_command="cc",
        base_flags="",
        dialect=dialect,
        binary_format=binary_format,
        extensions=extensions_for(binary_format, identity),
        identity=identity,
        shell=shell,
        extra_flags=CFlags(dialect),
        temp_flags=CFlags(dialect),
    )


class TestSharedLibrary:
    def test_elf(self):
        profile = profile_for(BinaryFormat.ELF, CompilerIdentity(is_gcc=True))
        assert LIB.filename(profile) == "libfoo.so.3.1.2"
        assert LIB.major_version_filename(profile) == "libfoo.so.3"
        assert LIB.no_version_filename(profile) == "libfoo.so"

    def test_macho(self):
        profile = profile_for(BinaryFormat.MACHO, CompilerIdentity(is_gcc=True))
        assert LIB.filename(profile) == "libfoo.3.1.2.dylib"
        assert LIB.major_version_filename(profile) == "libfoo.3.dylib"

    def test_pe_uses_major_version_only(self):
        shell = ShellProfile(ShellKind.CMD_EXE)
        profile = profile_for(BinaryFormat.PE, CompilerIdentity(is_msvc=True), shell)
        assert LIB.filename(profile) == "foo-3.dll"
        assert LIB.implib_filename(profile) == "foo-3.lib"
        assert LIB.export_filename(profile) == "foo-3.exp"

    def test_directory(self):
        profile = profile_for(BinaryFormat.ELF, CompilerIdentity(is_gcc=True))
        assert LIB.filename(profile, "lib") == "lib/libfoo.so.3.1.2"
