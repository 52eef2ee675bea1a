# SPDX-License-Identifier: MIT
"""Configure context for ccprobe.

The Configure class is the explicit context every probe receives. It
runs the detection sequence once and then serves as read-only
configuration:

1. shell detection;
2. argument dialect bootstrap (MSVC style, then POSIX style);
3. binary format of the bootstrap executable;
4. compiler identity macros and dialect refinement;
5. file extensions (and, for PE, the Cygwin/MinGW macros).
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import subprocess
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ccprobe.configure import identity as ident
from ccprobe.configure.binfmt import BinaryFormat, detect_binary_format_file
from ccprobe.configure.compiler import (
    MSVC_JUNK_EXTENSIONS,
    TRY_BASENAME,
    TRY_SOURCE_PATH,
    TrialCompiler,
    detect_dialect,
)
from ccprobe.configure.profile import ToolchainProfile, extensions_for
from ccprobe.configure.runner import TARGET_PATH
from ccprobe.configure.shell import RunnerFactory, _default_runner, detect_shell
from ccprobe.core.errors import BinaryFormatError, ConfigureError, ToolNotFoundError
from ccprobe.core.flags import CFlags
from ccprobe.util.remove import DEFAULT_POLICY, RetryPolicy, remove

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ccprobe.configure.shell import ShellProfile

logger = logging.getLogger(__name__)

DEFAULT_COMPILERS = ("cc", "gcc", "clang", "cl")


@dataclass
class ProgramInfo:
    """Information about a found program.

    Attributes:
        path: Path to the program executable.
        version: Version string if detected.
    """

    path: Path
    version: str | None = None


class Configure:
    """Context for toolchain detection.

    Example:
        config = Configure.create("cc", "-O2", build_dir="build")
        print(config.toolchain.binary_format)
        if not config.check_link(code):
            ...
        config.clean_up()

    Attributes:
        build_dir: Work directory for trial files.
        policy: Retry policy for removing trial files.
        shell: Detected shell, None until detect_shell() ran.
        toolchain: Detected toolchain, None until detect_toolchain() ran.
    """

    def __init__(
        self,
        *,
        build_dir: Path | str = "build",
        runner_factory: RunnerFactory = _default_runner,
        policy: RetryPolicy = DEFAULT_POLICY,
    ) -> None:
        """Create a configure context.

        Args:
            build_dir: Directory trial files are written to.
            runner_factory: Creates the runner for a shell profile.
            policy: Retry policy for removing trial files.
        """
        self.build_dir = Path(build_dir)
        self.policy = policy
        self.shell: ShellProfile | None = None
        self.toolchain: ToolchainProfile | None = None
        self._runner_factory = runner_factory
        self._compiler: TrialCompiler | None = None
        self._programs: dict[str, ProgramInfo] = {}

    @classmethod
    def create(
        cls,
        compiler_command: str,
        compiler_flags: str = "",
        *,
        build_dir: Path | str = "build",
        runner_factory: RunnerFactory = _default_runner,
        policy: RetryPolicy = DEFAULT_POLICY,
    ) -> Configure:
        """Create a context and run the full detection sequence."""
        config = cls(build_dir=build_dir, runner_factory=runner_factory, policy=policy)
        config.detect_shell()
        config.detect_toolchain(compiler_command, compiler_flags)
        return config

    def detect_shell(self) -> ShellProfile:
        """Detect the shell (once).

        Raises:
            ShellDetectionError: If the shell cannot be identified.
        """
        if self.shell is None:
            self.build_dir.mkdir(parents=True, exist_ok=True)
            self.shell = detect_shell(
                self.build_dir,
                runner_factory=self._runner_factory,
                policy=self.policy,
            )
        return self.shell

    def detect_toolchain(
        self, compiler_command: str, compiler_flags: str = ""
    ) -> ToolchainProfile:
        """Probe the compiler and build the toolchain profile.

        Raises:
            ConfigureError: If the toolchain was already detected.
            CompilerNotWorkingError: If nothing compiles.
            BinaryFormatError: If the binary format is unknown.
            FileRemovalError: If a trial file cannot be cleared.
        """
        if self.toolchain is not None:
            raise ConfigureError("toolchain already detected")

        shell = self.detect_shell()
        runner = self._runner_factory(shell, self.build_dir)
        compiler = TrialCompiler(
            runner, compiler_command, compiler_flags, policy=self.policy
        )
        logger.info("Creating compiler object for %r", compiler_command)

        detect_dialect(compiler)
        exe_path = compiler.work_dir / compiler.try_exe_name
        binary_format = detect_binary_format_file(exe_path)
        compiler.discard(compiler.try_exe_name)
        if binary_format is BinaryFormat.UNKNOWN:
            raise BinaryFormatError("failed to detect binary format", exe_path)
        logger.info("Detected binary format: %s", binary_format.display_name)

        identity = ident.detect_known_compilers(compiler)
        dialect = ident.refine_dialect(identity)
        compiler.dialect = dialect
        compiler.sweep_msvc_junk = identity.is_msvc
        if binary_format is BinaryFormat.PE:
            identity = ident.detect_platform_macros(compiler, identity)
        logger.info(
            "Detected compiler: %s (%s-style arguments)",
            identity.family.value,
            dialect.value,
        )

        extensions = extensions_for(binary_format, identity)
        compiler.exe_ext = extensions.executable
        compiler.obj_ext = extensions.object
        compiler.extra_flags = CFlags(dialect)
        compiler.temp_flags = CFlags(dialect)

        self._compiler = compiler
        self.toolchain = ToolchainProfile(
            compiler_command=compiler_command,
            base_flags=compiler_flags,
            dialect=dialect,
            binary_format=binary_format,
            extensions=extensions,
            identity=identity,
            shell=shell,
            extra_flags=compiler.extra_flags,
            temp_flags=compiler.temp_flags,
        )
        return self.toolchain

    @property
    def compiler(self) -> TrialCompiler:
        if self._compiler is None:
            raise ConfigureError("toolchain has not been detected yet")
        return self._compiler

    @property
    def profile(self) -> ToolchainProfile:
        if self.toolchain is None:
            raise ConfigureError("toolchain has not been detected yet")
        return self.toolchain

    @contextmanager
    def temp_flags(self) -> Iterator[CFlags]:
        """Scope additional flags to a block of trial compiles.

        Example:
            with config.temp_flags() as flags:
                flags.add_external_lib("m")
                linked = config.check_link(code)
        """
        flags = self.profile.temp_flags
        try:
            yield flags
        finally:
            flags.clear()

    def check_compile(self, source: str) -> bool:
        """Check if source code compiles to an object file."""
        return self.compiler.check_compile(source)

    def check_link(self, source: str) -> bool:
        """Check if source code compiles and links."""
        return self.compiler.check_link(source)

    def capture_output(self, source: str) -> bytes | None:
        """Build and run source code, returning what it printed."""
        return self.compiler.capture_output(source)

    def has_macro(self, macro: str) -> bool:
        return ident.has_macro(self.compiler, macro)

    def check_macro(self, expression: str, predicate: str) -> bool:
        return ident.check_macro(self.compiler, expression, predicate)

    def gcc_version(self) -> str | None:
        if not self.profile.identity.is_gcc:
            return None
        return ident.gcc_version(self.compiler)

    def clean_up(self) -> None:
        """Remove any trial files still present in the build dir."""
        names = {TRY_SOURCE_PATH, TARGET_PATH, f"{TRY_BASENAME}.exe"}
        # cl.exe leaves these behind even when the bootstrap fails.
        names.update(f"{TRY_BASENAME}{ext}" for ext in MSVC_JUNK_EXTENSIONS)
        if self._compiler is not None:
            names.add(self._compiler.try_exe_name)
            names.add(self._compiler.try_obj_name)
        for name in sorted(names):
            path = self.build_dir / name
            if not remove(path, self.policy):
                logger.warning("Could not remove %s", path)

    def find_program(
        self,
        name: str,
        *,
        hints: list[Path | str] | None = None,
        version_flag: str | None = "--version",
        required: bool = False,
    ) -> ProgramInfo | None:
        """Locate a tool, trying ``hints`` before PATH.

        A hint may name the executable itself or a directory holding it.
        Results are remembered per name for the life of the context.

        Args:
            name: Program name (e.g., 'gcc', 'cl').
            hints: Files or directories to look in first.
            version_flag: Flag that makes the tool print a version line;
                None skips running it.
            required: Raise instead of returning None when not found.

        Raises:
            ToolNotFoundError: If required and not found.
        """
        if name in self._programs:
            return self._programs[name]

        found = self._search_hints(name, hints or [])
        if found is None:
            found = self._which(name)
        if found is None:
            if required:
                raise ToolNotFoundError(name)
            logger.debug("%s not found", name)
            return None

        version = None
        if version_flag:
            version = self._program_version(found, version_flag)
        info = ProgramInfo(path=found, version=version)
        self._programs[name] = info
        return info

    def find_compiler(
        self, candidates: tuple[str, ...] | list[str] = DEFAULT_COMPILERS
    ) -> ProgramInfo:
        """Find the first available C compiler.

        Raises:
            ToolNotFoundError: If none of the candidates is on PATH.
        """
        for name in candidates:
            # cl.exe has no version flag and prints a banner on stderr.
            version_flag = None if name == "cl" else "--version"
            info = self.find_program(name, version_flag=version_flag)
            if info is not None:
                logger.debug("Found compiler %s at %s", name, info.path)
                return info
        raise ToolNotFoundError(" or ".join(candidates))

    @staticmethod
    def _search_hints(name: str, hints: list[Path | str]) -> Path | None:
        for hint in map(Path, hints):
            if hint.is_file() and os.access(hint, os.X_OK):
                return hint
            in_dir = shutil.which(name, path=str(hint))
            if in_dir:
                return Path(in_dir)
        return None

    @staticmethod
    def _which(name: str) -> Path | None:
        result = shutil.which(name)
        return Path(result) if result else None

    @staticmethod
    def _program_version(path: Path, version_flag: str) -> str | None:
        """First non-blank line the tool prints for ``version_flag``."""
        try:
            result = subprocess.run(
                [str(path), version_flag],
                capture_output=True,
                text=True,
                timeout=5,
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            logger.debug("Could not run %s %s: %s", path, version_flag, e)
            return None
        if result.returncode != 0:
            return None
        return next(
            (line.strip() for line in result.stdout.splitlines() if line.strip()),
            None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "shell": self.shell.to_dict() if self.shell else None,
            "toolchain": self.toolchain.to_dict() if self.toolchain else None,
        }

    def save(self, path: Path | str) -> None:
        """Write the detected profiles as JSON.

        Args:
            path: Destination file.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
            f.write("\n")

    def __repr__(self) -> str:
        return (
            f"Configure(shell={self.shell!r}, toolchain={self.toolchain!r}, "
            f"build_dir={self.build_dir})"
        )
