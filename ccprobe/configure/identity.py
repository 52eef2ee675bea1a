# SPDX-License-Identifier: MIT
"""Compiler identification through macro-presence tests.

A macro-presence test compiles a snippet that hits ``#error`` unless the
macro is defined, so a successful object compile means "defined". The
facts are independent booleans, not a single answer: Clang defines
``__GNUC__`` too, and MinGW GCC defines both ``__GNUC__`` and
``__MINGW32__``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING

from ccprobe.core.flags import ArgumentDialect

if TYPE_CHECKING:
    from collections.abc import Callable

    from ccprobe.configure.compiler import TrialCompiler

logger = logging.getLogger(__name__)

HAS_MACRO_TEMPLATE = """\
#ifdef {macro}
int i;
#else
#error "nope"
#endif
"""

MACRO_EXPR_TEMPLATE = """\
#if ({expression}) {predicate}
int i;
#else
#error "nope"
#endif
"""

GCC_VERSION_EXPR = "10000 * __GNUC__ + 100 * __GNUC_MINOR__ + __GNUC_PATCHLEVEL__"

GCC_VERSION_PROGRAM = """\
#include <stdio.h>
int main() {
    printf("%d.%d.%d\\n", __GNUC__, __GNUC_MINOR__, __GNUC_PATCHLEVEL__);
    return 0;
}
"""


class CompilerFamily(Enum):
    """Single best guess at who made the compiler."""

    CLANG = "clang"
    GCC = "gcc"
    MSVC = "msvc"
    SUN_C = "sun_c"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class CompilerIdentity:
    """Independently probed compiler and platform macros."""

    is_gcc: bool = False
    is_clang: bool = False
    is_msvc: bool = False
    is_sun_c: bool = False
    is_cygwin: bool = False
    is_mingw: bool = False

    @property
    def family(self) -> CompilerFamily:
        # Clang first: it also claims to be GCC.
        if self.is_clang:
            return CompilerFamily.CLANG
        if self.is_gcc:
            return CompilerFamily.GCC
        if self.is_msvc:
            return CompilerFamily.MSVC
        if self.is_sun_c:
            return CompilerFamily.SUN_C
        return CompilerFamily.UNKNOWN

    def to_dict(self) -> dict[str, object]:
        return {
            "family": self.family.value,
            "is_gcc": self.is_gcc,
            "is_clang": self.is_clang,
            "is_msvc": self.is_msvc,
            "is_sun_c": self.is_sun_c,
            "is_cygwin": self.is_cygwin,
            "is_mingw": self.is_mingw,
        }


# Refinement of the bootstrap dialect once identity is known.
# First matching rule wins; no match leaves plain POSIX.
DIALECT_RULES: tuple[tuple[Callable[[CompilerIdentity], bool], ArgumentDialect], ...] = (
    (lambda ident: ident.is_gcc, ArgumentDialect.GNU),
    (lambda ident: ident.is_msvc, ArgumentDialect.MSVC),
    (lambda ident: ident.is_sun_c, ArgumentDialect.SUN_C),
)


def refine_dialect(identity: CompilerIdentity) -> ArgumentDialect:
    for matches, dialect in DIALECT_RULES:
        if matches(identity):
            return dialect
    return ArgumentDialect.POSIX


def has_macro(compiler: TrialCompiler, macro: str) -> bool:
    """Return True if the compiler predefines ``macro``."""
    return compiler.check_compile(HAS_MACRO_TEMPLATE.format(macro=macro))


def check_macro(compiler: TrialCompiler, expression: str, predicate: str) -> bool:
    """Return True if ``#if (expression) predicate`` holds.

    Example:
        check_macro(compiler, "_MSC_VER", ">= 1900")
    """
    code = MACRO_EXPR_TEMPLATE.format(expression=expression, predicate=predicate)
    return compiler.check_compile(code)


def check_gcc_version(compiler: TrialCompiler, predicate: str) -> bool:
    """Compare the GCC version, encoded as 10000*major + 100*minor + patch.

    Example:
        check_gcc_version(compiler, ">= 40300")  # GCC 4.3 or newer
    """
    return check_macro(compiler, GCC_VERSION_EXPR, predicate)


def check_msvc_version(compiler: TrialCompiler, predicate: str) -> bool:
    return check_macro(compiler, "_MSC_VER", predicate)


def check_sun_c_version(compiler: TrialCompiler, predicate: str) -> bool:
    return check_macro(compiler, "__SUNPRO_C", predicate)


def gcc_version(compiler: TrialCompiler) -> str | None:
    """Run a trial program that prints the GCC version (e.g. '12.2.0')."""
    output = compiler.capture_output(GCC_VERSION_PROGRAM)
    if not output:
        return None
    return output.decode("ascii", errors="replace").strip() or None


def detect_known_compilers(compiler: TrialCompiler) -> CompilerIdentity:
    identity = CompilerIdentity(
        is_gcc=has_macro(compiler, "__GNUC__"),
        is_msvc=has_macro(compiler, "_MSC_VER"),
        is_clang=has_macro(compiler, "__clang__"),
        is_sun_c=has_macro(compiler, "__SUNPRO_C"),
    )
    logger.debug("Compiler macros: %s", identity)
    return identity


def detect_platform_macros(
    compiler: TrialCompiler, identity: CompilerIdentity
) -> CompilerIdentity:
    """Add the Cygwin and MinGW facts (meaningful for PE targets only)."""
    return replace(
        identity,
        is_cygwin=has_macro(compiler, "__CYGWIN__"),
        is_mingw=has_macro(compiler, "__MINGW32__"),
    )
