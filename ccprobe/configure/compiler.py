# SPDX-License-Identifier: MIT
"""Trial compilation.

A trial compile writes a short throwaway source file, runs the compiler
on it and reports whether the expected artifact appeared. The artifact's
existence is the only success signal: exit statuses are not consulted,
because some compilers return 0 on misconfigured runs and some wrappers
return nonzero on success.

All trials reuse the same fixed file names inside the work directory.
Each file is cleared before a trial that depends on its absence; a
file that cannot be cleared aborts detection (FileRemovalError), since
a stale artifact would make the next trial report a false success.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from ccprobe.configure.runner import capture, run_quietly
from ccprobe.core.errors import CompilerNotWorkingError
from ccprobe.core.flags import ArgumentDialect, CFlags
from ccprobe.util.remove import DEFAULT_POLICY, RetryPolicy, remove, require_removed

if TYPE_CHECKING:
    from ccprobe.configure.runner import ProcessRunner

logger = logging.getLogger(__name__)

TRY_SOURCE_PATH = "_ccprobe_try.c"
TRY_BASENAME = "_ccprobe_try"

# Byproducts of linking with cl.exe that are not part of the result.
MSVC_JUNK_EXTENSIONS = (".obj", ".ilk", ".pdb")

MINIMAL_PROGRAM = "int main() { return 0; }\n"

# Tried in this order until one produces an executable.
BOOTSTRAP_DIALECTS: tuple[tuple[ArgumentDialect, str], ...] = (
    (ArgumentDialect.MSVC, ".obj"),
    (ArgumentDialect.POSIX, ".o"),
)


class TrialCompiler:
    """Compiles throwaway programs to observe what the compiler accepts.

    Attributes:
        runner: Runs the compiler command lines.
        command: Compiler command (e.g., 'cc', 'cl').
        base_flags: Flags passed to every invocation.
        dialect: Argument dialect used to render output flags.
        exe_ext: Extension of trial executables.
        obj_ext: Extension of trial object files.
        sweep_msvc_junk: Remove .obj/.ilk/.pdb left over by cl.exe links.
        extra_flags: Persistent additional flags (None until detection ends).
        temp_flags: Flags for the duration of one probe; the probe clears them.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        command: str,
        base_flags: str = "",
        *,
        dialect: ArgumentDialect = ArgumentDialect.POSIX,
        policy: RetryPolicy = DEFAULT_POLICY,
    ) -> None:
        self.runner = runner
        self.command = command
        self.base_flags = base_flags
        self.dialect = dialect
        self.exe_ext = ".exe"
        self.obj_ext = ".o"
        self.sweep_msvc_junk = False
        self.extra_flags: CFlags | None = None
        self.temp_flags: CFlags | None = None
        self.policy = policy

    @property
    def work_dir(self) -> Path:
        return self.runner.work_dir

    @property
    def try_exe_name(self) -> str:
        return f"{TRY_BASENAME}{self.exe_ext}"

    @property
    def try_obj_name(self) -> str:
        return f"{TRY_BASENAME}{self.obj_ext}"

    def _path(self, name: str) -> Path:
        return self.work_dir / name

    def discard(self, name: str) -> None:
        """Best-effort removal of a trial artifact."""
        if not remove(self._path(name), self.policy):
            logger.warning("Could not remove %s", self._path(name))

    def clear(self, name: str) -> None:
        require_removed(self._path(name), self.policy)

    def build_command(self, source_path: str, output_flags: CFlags) -> str:
        """Assemble a compiler command line.

        Order: command, base flags, source, extra flags, temp flags,
        output flags.
        """
        parts = [self.command, self.base_flags, source_path]
        if self.extra_flags is not None:
            parts.append(self.extra_flags.get_string())
        if self.temp_flags is not None:
            parts.append(self.temp_flags.get_string())
        parts.append(output_flags.get_string())
        return " ".join(part for part in parts if part)

    def _run(self, source_path: str, code: str, output_flags: CFlags) -> None:
        self._path(source_path).write_text(code)
        run_quietly(self.runner, self.build_command(source_path, output_flags))

    def compile_exe(self, source_path: str, exe_name: str, code: str) -> bool:
        """Attempt to compile and link an executable.

        Args:
            source_path: Source file to write, relative to the work dir.
            exe_name: Executable base name; the extension is appended.
            code: C source text.

        Returns:
            True if the executable exists after the attempt.

        Raises:
            FileRemovalError: If the source file cannot be removed afterward.
        """
        exe_file = f"{exe_name}{self.exe_ext}"
        output_flags = CFlags(self.dialect)
        output_flags.set_output_exe(exe_file)
        self._run(source_path, code, output_flags)

        if self.sweep_msvc_junk:
            for ext in MSVC_JUNK_EXTENSIONS:
                self.discard(f"{exe_name}{ext}")

        succeeded = self._path(exe_file).exists()
        self.clear(source_path)
        return succeeded

    def compile_obj(self, source_path: str, obj_name: str, code: str) -> bool:
        """Attempt to compile an object file.

        Returns:
            True if the object file exists after the attempt.

        Raises:
            FileRemovalError: If the source file cannot be removed afterward.
        """
        obj_file = f"{obj_name}{self.obj_ext}"
        output_flags = CFlags(self.dialect)
        output_flags.set_output_obj(obj_file)
        self._run(source_path, code, output_flags)

        succeeded = self._path(obj_file).exists()
        self.clear(source_path)
        return succeeded

    def check_compile(self, code: str) -> bool:
        """Return True if ``code`` compiles to an object file."""
        self.clear(self.try_obj_name)
        succeeded = self.compile_obj(TRY_SOURCE_PATH, TRY_BASENAME, code)
        self.discard(self.try_obj_name)
        return succeeded

    def check_link(self, code: str) -> bool:
        """Return True if ``code`` compiles and links to an executable."""
        self.clear(self.try_exe_name)
        succeeded = self.compile_exe(TRY_SOURCE_PATH, TRY_BASENAME, code)
        self.discard(self.try_exe_name)
        return succeeded

    def capture_output(self, code: str) -> bytes | None:
        """Build ``code`` into a program, run it and return its output.

        Returns:
            The program's combined output, or None if it didn't build.
        """
        self.clear(self.try_exe_name)
        output: bytes | None = None
        if self.compile_exe(TRY_SOURCE_PATH, TRY_BASENAME, code):
            output = capture(
                self.runner, self.try_exe_name, local=True, policy=self.policy
            )
        self.discard(self.try_exe_name)
        return output


def detect_dialect(compiler: TrialCompiler) -> ArgumentDialect:
    """Find an argument dialect under which the compiler builds anything.

    On success the compiler's ``dialect`` and ``obj_ext`` are set and the
    trial executable is left in place for binary format detection.

    Raises:
        CompilerNotWorkingError: If no dialect produces an executable.
    """
    logger.info("Trying to compile a small test file...")
    for dialect, obj_ext in BOOTSTRAP_DIALECTS:
        compiler.dialect = dialect
        compiler.clear(compiler.try_exe_name)
        if compiler.compile_exe(TRY_SOURCE_PATH, TRY_BASENAME, MINIMAL_PROGRAM):
            compiler.obj_ext = obj_ext
            logger.info("Compiler accepts %s-style arguments", dialect.value)
            return dialect
        logger.debug("No executable with %s-style arguments", dialect.value)
    raise CompilerNotWorkingError(compiler.command)
