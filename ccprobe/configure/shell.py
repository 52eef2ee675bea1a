# SPDX-License-Identifier: MIT
"""Shell detection.

Which shell ends up running our commands cannot be known from the
outside: a Python process on Windows may hand commands to cmd.exe, and
cmd.exe may in turn have an MSYS or Cygwin ``sh`` on its PATH. We find
out by running ``echo foo\\^bar`` and looking at what was printed:

- POSIX shells consume the backslash and print ``foo^bar``;
- cmd.exe consumes the caret and prints ``foo\\bar``.

On cmd.exe we also check whether ``sh -c "find . -prune"`` works. If it
does, commands are run through sh and POSIX escaping applies.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ccprobe.configure.runner import ProcessRunner, ShellRunner, capture
from ccprobe.core.errors import ShellDetectionError
from ccprobe.util.remove import DEFAULT_POLICY, RetryPolicy

logger = logging.getLogger(__name__)

ECHO_PROBE = r"echo foo\^bar"
SH_PROBE = "find . -prune"


class ShellKind(Enum):
    """Escaping convention that governs command construction."""

    POSIX = "posix"
    CMD_EXE = "cmd.exe"


@dataclass(frozen=True)
class ShellProfile:
    """Result of shell detection.

    Attributes:
        kind: Escaping convention for commands.
        run_sh_via_cmd_exe: Commands are wrapped in ``sh -c "..."`` and
            handed to cmd.exe.
    """

    kind: ShellKind
    run_sh_via_cmd_exe: bool = False

    @property
    def is_posix(self) -> bool:
        return self.kind is ShellKind.POSIX

    @property
    def dev_null(self) -> str:
        # cmd.exe parses the redirection even when sh runs the command.
        if self.is_posix and not self.run_sh_via_cmd_exe:
            return "/dev/null"
        return "nul"

    @property
    def dir_sep(self) -> str:
        return "/" if self.is_posix else "\\"

    @property
    def local_command_start(self) -> str:
        return "./" if self.is_posix else ".\\"

    def to_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind.value,
            "run_sh_via_cmd_exe": self.run_sh_via_cmd_exe,
            "dev_null": self.dev_null,
            "dir_sep": self.dir_sep,
            "local_command_start": self.local_command_start,
        }


# First guess used to run the probe itself.
POSIX_SHELL = ShellProfile(ShellKind.POSIX)
# Used to check for a POSIX sh underneath cmd.exe.
SH_VIA_CMD_EXE = ShellProfile(ShellKind.CMD_EXE, run_sh_via_cmd_exe=True)

RunnerFactory = Callable[[ShellProfile, Path], ProcessRunner]


def _default_runner(shell: ShellProfile, work_dir: Path) -> ProcessRunner:
    return ShellRunner(shell, work_dir)


def detect_shell(
    work_dir: Path | str = ".",
    *,
    runner_factory: RunnerFactory = _default_runner,
    policy: RetryPolicy = DEFAULT_POLICY,
) -> ShellProfile:
    """Classify the local shell by running probe commands.

    Args:
        work_dir: Directory for the capture file.
        runner_factory: Creates a runner for a hypothetical shell profile.
        policy: Retry policy for clearing the capture file.

    Returns:
        The detected shell profile.

    Raises:
        ShellDetectionError: If the probe output matches no known shell.
        FileRemovalError: If the capture file cannot be cleared.
    """
    work_dir = Path(work_dir)
    logger.info("Detecting shell...")

    guess = runner_factory(POSIX_SHELL, work_dir)
    output = capture(guess, ECHO_PROBE, policy=policy).rstrip()

    if output == b"foo\\bar":
        # Escape character is caret.
        logger.info("Detected cmd.exe shell")
        via_cmd = runner_factory(SH_VIA_CMD_EXE, work_dir)
        found = capture(via_cmd, SH_PROBE, policy=policy)
        if len(found) >= 2 and found[:1] == b"." and found[1:2].isspace():
            logger.info("Detected POSIX shell via cmd.exe")
            return ShellProfile(ShellKind.POSIX, run_sh_via_cmd_exe=True)
        return ShellProfile(ShellKind.CMD_EXE)

    if output == b"foo^bar":
        # Escape character is backslash.
        logger.info("Detected POSIX shell")
        return POSIX_SHELL

    raise ShellDetectionError(output)
