# SPDX-License-Identifier: MIT
"""Running shell commands with captured output.

Every probe in ccprobe ends up running a command line (a compiler, a
freshly built trial program, a shell builtin) with its combined output
sent to a file. The ProcessRunner protocol is that single capability;
ShellRunner implements it by handing the command to the system shell
with the redirection syntax of the detected ShellProfile.

When the top-level shell is cmd.exe but a POSIX ``sh`` is reachable,
commands are wrapped as ``sh -c "<escaped>"`` so that they are parsed
by sh. The escaping keeps cmd.exe from interpreting the command first:

- ``"`` and ``\\`` get a preceding backslash;
- ``%`` and ``!`` are fenced as ``"%"`` / ``"!"``: the surrounding quote
  is dropped and reopened so cmd.exe performs no variable expansion.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from ccprobe.util.remove import DEFAULT_POLICY, RetryPolicy, remove, require_removed

if TYPE_CHECKING:
    from ccprobe.configure.shell import ShellProfile

logger = logging.getLogger(__name__)

# Captured output of every probe goes here, relative to the work dir.
TARGET_PATH = "_ccprobe_target"

_SH_VIA_CMD_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "%": '"%"',
    "!": '"!"',
}


def escaped_length(command: str) -> int:
    """Length of ``command`` after escape_for_sh_via_cmd_exe().

    Each character contributes 1, 2 or 3 characters.
    """
    return sum(len(_SH_VIA_CMD_ESCAPES.get(c, c)) for c in command)


def escape_for_sh_via_cmd_exe(command: str) -> str:
    """Escape a command for ``sh -c "..."`` issued through cmd.exe."""
    return "".join(_SH_VIA_CMD_ESCAPES.get(c, c) for c in command)


def unescape_sh_via_cmd_exe(escaped: str) -> str:
    """Invert escape_for_sh_via_cmd_exe().

    Raises:
        ValueError: If ``escaped`` is not a valid escaped string.
    """
    out: list[str] = []
    i = 0
    while i < len(escaped):
        c = escaped[i]
        if c == "\\":
            if i + 1 >= len(escaped):
                raise ValueError("dangling backslash in escaped command")
            out.append(escaped[i + 1])
            i += 2
        elif c == '"':
            fenced = escaped[i + 1 : i + 3]
            if len(fenced) != 2 or fenced[0] not in "%!" or fenced[1] != '"':
                raise ValueError(f"unexpected quote at offset {i}")
            out.append(fenced[0])
            i += 3
        else:
            out.append(c)
            i += 1
    return "".join(out)


@runtime_checkable
class ProcessRunner(Protocol):
    """Protocol for synchronous run-and-capture.

    Paths passed to the run methods are relative to ``work_dir``.
    """

    @property
    def work_dir(self) -> Path: ...

    @property
    def dev_null(self) -> str: ...

    def run_redirected(self, command: str, path: str) -> int:
        """Run ``command`` with stdout and stderr sent to ``path``.

        Returns:
            The raw exit status.
        """
        ...

    def run_local_redirected(self, command: str, path: str) -> int:
        """Like run_redirected() for a program in the work dir."""
        ...


class ShellRunner:
    """Runs commands through the system shell.

    Attributes:
        shell: The shell profile governing redirection and escaping.
        work_dir: Directory commands run in.
        policy: Retry policy for cleaning up the capture file.
    """

    def __init__(
        self,
        shell: ShellProfile,
        work_dir: Path | str = ".",
        *,
        policy: RetryPolicy = DEFAULT_POLICY,
    ) -> None:
        self.shell = shell
        self._work_dir = Path(work_dir)
        self.policy = policy

    @property
    def work_dir(self) -> Path:
        return self._work_dir

    @property
    def dev_null(self) -> str:
        return self.shell.dev_null

    def format_command(self, command: str, path: str) -> str:
        """Build the full shell command line including redirection."""
        if self.shell.run_sh_via_cmd_exe:
            escaped = escape_for_sh_via_cmd_exe(command)
            return f'sh -c "{escaped}" > {path} 2>&1'
        return f"{command} > {path} 2>&1"

    def run_redirected(self, command: str, path: str) -> int:
        full_command = self.format_command(command, path)
        logger.debug("Running: %s", full_command)
        result = subprocess.run(full_command, shell=True, cwd=self._work_dir)
        return result.returncode

    def run_local_redirected(self, command: str, path: str) -> int:
        return self.run_redirected(f"{self.shell.local_command_start}{command}", path)

    def run_quietly(self, command: str) -> int:
        return run_quietly(self, command)

    def capture(self, command: str, *, local: bool = False) -> bytes:
        return capture(self, command, local=local, policy=self.policy)

    def __repr__(self) -> str:
        return f"ShellRunner({self.shell!r}, work_dir={str(self._work_dir)!r})"


def run_quietly(runner: ProcessRunner, command: str) -> int:
    """Run a command with all output discarded."""
    return runner.run_redirected(command, runner.dev_null)


def capture(
    runner: ProcessRunner,
    command: str,
    *,
    local: bool = False,
    policy: RetryPolicy = DEFAULT_POLICY,
) -> bytes:
    """Run a command and return everything it printed.

    The capture file is cleared before the run and removed afterward.

    Args:
        runner: Runner to execute the command with.
        command: Command line to run.
        local: Run a program from the work dir (adds ``./`` or ``.\\``).
        policy: Retry policy for clearing the capture file.

    Returns:
        The captured bytes (empty if the command produced no file).

    Raises:
        FileRemovalError: If a stale capture file cannot be cleared.
    """
    target = runner.work_dir / TARGET_PATH
    require_removed(target, policy)

    if local:
        runner.run_local_redirected(command, TARGET_PATH)
    else:
        runner.run_redirected(command, TARGET_PATH)

    try:
        output = target.read_bytes()
    except FileNotFoundError:
        output = b""

    if not remove(target, policy):
        logger.warning("Could not remove %s", target)
    return output
