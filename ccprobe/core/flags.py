# SPDX-License-Identifier: MIT
"""Compiler flag handling for ccprobe.

This module provides the argument dialects a C compiler driver may speak
and the CFlags accumulator that renders abstract requests ("write the
executable here", "link against libm") in the active dialect.

Flags like -I, -D, -l and -o take an argument that is rendered as a
separate token (e.g., ``-I path``). When de-duplicating, the flag and
its argument must be treated as a unit, which is what
deduplicate_flags() and merge_flags() do.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from ccprobe.core.errors import ConfigureError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path


class ArgumentDialect(Enum):
    """Command-line flag syntax accepted by a compiler driver."""

    POSIX = "posix"
    MSVC = "msvc"
    GNU = "gnu"
    SUN_C = "sun_c"


# Flags whose argument is rendered as the following token, per dialect.
_UNIX_SEPARATED = frozenset(
    [
        "-o",
        "-D",
        "-I",
        "-l",
        # Dependency output and linker scripts
        "-MF",
        "-MT",
        "-MQ",
        "-T",
        # Architecture (macOS universal builds, clang cross targets)
        "-arch",
        "-target",
        "--target",
        # Frameworks (macOS)
        "-F",
        "-framework",
        # Include search modifiers
        "-include",
        "-isystem",
        "-isysroot",
        "-iquote",
        "-idirafter",
        # Passthrough to the linker and friends
        "-Wl,-rpath",
        "-Xlinker",
        "-Xpreprocessor",
        "-Xassembler",
    ]
)

SEPARATED_ARG_FLAGS: dict[ArgumentDialect, frozenset[str]] = {
    ArgumentDialect.POSIX: _UNIX_SEPARATED | {"-O"},
    ArgumentDialect.GNU: _UNIX_SEPARATED,
    ArgumentDialect.SUN_C: _UNIX_SEPARATED,
    # Linker passthrough when cl.exe drives link.exe.
    ArgumentDialect.MSVC: frozenset(["/D", "/I", "/link"]),
}


def is_separated_arg_flag(
    flag: str, separated_arg_flags: frozenset[str] | None = None
) -> bool:
    """Check if a flag takes its argument as a separate token.

    Args:
        flag: The flag to check.
        separated_arg_flags: Set of flags that take separate arguments.
                           If None, no flag is treated as separated.

    Examples:
        >>> is_separated_arg_flag("-D", SEPARATED_ARG_FLAGS[ArgumentDialect.GNU])
        True
        >>> is_separated_arg_flag("-O2", SEPARATED_ARG_FLAGS[ArgumentDialect.GNU])
        False
    """
    if separated_arg_flags is None:
        return False
    return flag in separated_arg_flags


def _units(
    flags: list[str], separated_arg_flags: frozenset[str] | None
) -> list[str | tuple[str, str]]:
    """Split a token list into single flags and (flag, argument) pairs."""
    units: list[str | tuple[str, str]] = []
    i = 0
    while i < len(flags):
        flag = flags[i]
        if is_separated_arg_flag(flag, separated_arg_flags) and i + 1 < len(flags):
            units.append((flag, flags[i + 1]))
            i += 2
        else:
            units.append(flag)
            i += 1
    return units


def deduplicate_flags(
    flags: list[str], separated_arg_flags: frozenset[str] | None = None
) -> list[str]:
    """De-duplicate a list of flags, preserving flag+argument pairs.

    Order is preserved (first occurrence wins).

    Examples:
        >>> gnu = SEPARATED_ARG_FLAGS[ArgumentDialect.GNU]
        >>> deduplicate_flags(["-O2", "-Wall", "-O2"], gnu)
        ['-O2', '-Wall']
        >>> deduplicate_flags(["-l", "m", "-l", "m", "-l", "dl"], gnu)
        ['-l', 'm', '-l', 'dl']
    """
    result: list[str] = []
    merge_flags(result, flags, separated_arg_flags)
    return result


def merge_flags(
    existing: list[str],
    new: list[str],
    separated_arg_flags: frozenset[str] | None = None,
) -> None:
    """Merge new flags into existing list, avoiding duplicates.

    This modifies `existing` in place, adding flags from `new` that
    aren't already present. Flags with separate arguments are compared
    as pairs, so ``-D A -D B`` keeps both defines.
    """
    if not new:
        return

    seen = set(_units(existing, separated_arg_flags))
    for unit in _units(new, separated_arg_flags):
        if unit in seen:
            continue
        seen.add(unit)
        if isinstance(unit, tuple):
            existing.extend(unit)
        else:
            existing.append(unit)


class CFlags:
    """An ordered, de-duplicated collection of compiler arguments.

    Every method renders its request in the dialect the collection was
    created with. The same abstract request produces e.g. ``-o try``
    under GNU and ``/Fetry`` under MSVC.

    Example:
        flags = CFlags(ArgumentDialect.GNU)
        flags.add_define("NDEBUG")
        flags.add_external_lib("m")
        flags.get_string()  # '-D NDEBUG -l m'
    """

    def __init__(
        self, dialect: ArgumentDialect, flags: Iterable[str] | None = None
    ) -> None:
        self.dialect = dialect
        self._tokens = deduplicate_flags(list(flags or []), self.separated_arg_flags)

    @property
    def separated_arg_flags(self) -> frozenset[str]:
        return SEPARATED_ARG_FLAGS[self.dialect]

    @property
    def is_msvc(self) -> bool:
        return self.dialect is ArgumentDialect.MSVC

    @property
    def tokens(self) -> list[str]:
        return list(self._tokens)

    def _add(self, *tokens: str) -> None:
        merge_flags(self._tokens, list(tokens), self.separated_arg_flags)

    def append(self, other: CFlags | Iterable[str]) -> None:
        """Append another flag collection (or raw tokens)."""
        tokens = other.tokens if isinstance(other, CFlags) else list(other)
        self._add(*tokens)

    def clear(self) -> None:
        self._tokens.clear()

    def set_output_exe(self, path: Path | str) -> None:
        if self.is_msvc:
            self._add(f"/Fe{path}")
        else:
            self._add("-o", str(path))

    def set_output_obj(self, path: Path | str) -> None:
        if self.is_msvc:
            self._add("/c", f"/Fo{path}")
        else:
            self._add("-c", "-o", str(path))

    def add_define(self, name: str, value: str | None = None) -> None:
        define = name if value is None else f"{name}={value}"
        self._add("/D" if self.is_msvc else "-D", define)

    def add_include_dir(self, path: Path | str) -> None:
        self._add("/I" if self.is_msvc else "-I", str(path))

    def add_external_lib(self, name: str) -> None:
        if self.is_msvc:
            self._add(f"{name}.lib")
        else:
            self._add("-l", name)

    def set_warnings_as_errors(self) -> None:
        if self.dialect is ArgumentDialect.MSVC:
            self._add("/WX")
        elif self.dialect is ArgumentDialect.GNU:
            self._add("-Werror")
        elif self.dialect is ArgumentDialect.SUN_C:
            self._add("-errwarn=%all")
        else:
            raise ConfigureError(
                f"don't know how to set warnings as errors for {self.dialect.value}"
            )

    def enable_optimization(self) -> None:
        if self.dialect is ArgumentDialect.MSVC:
            self._add("/O2")
        elif self.dialect is ArgumentDialect.GNU:
            self._add("-O2")
        elif self.dialect is ArgumentDialect.SUN_C:
            self._add("-xO4")
        else:
            self._add("-O", "1")

    def compile_shared_library(self, *, is_pe: bool = False) -> None:
        """Request position-independent code where the dialect needs it."""
        if self.dialect is ArgumentDialect.GNU and not is_pe:
            self._add("-fPIC")
        elif self.dialect is ArgumentDialect.SUN_C:
            self._add("-KPIC")

    def get_string(self) -> str:
        return " ".join(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def __repr__(self) -> str:
        return f"CFlags({self.dialect.value}, {self._tokens!r})"
