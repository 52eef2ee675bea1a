# SPDX-License-Identifier: MIT
"""Shared fixtures: an in-process stand-in for a shell and a C compiler."""

from __future__ import annotations

import re
from pathlib import Path

import pytest

import ccprobe
from ccprobe.configure.shell import ECHO_PROBE, SH_PROBE

ELF_EXE = b"\x7fELF\x02\x01\x01" + b"\x00" * 57


class FakeCompilerRunner:
    """Runs shell probes and compiler command lines without processes.

    The fake compiler only understands the argument syntax it was
    configured with: an "msvc" compiler writes ``/Fe``/``/Fo`` outputs and
    ignores ``-o``, a "posix" compiler does the opposite. Sources using
    ``#ifdef X`` compile if X is in ``macros``; ``#if`` conditions compile
    if their text is in ``true_conditions``. A source mentioning ``sqrt``
    links only when ``libm_builtin`` is set or ``-l m`` was given, and
    never when ``libm_available`` is False.
    """

    def __init__(
        self,
        work_dir: Path,
        *,
        command: str = "cc",
        syntax: str = "posix",
        macros: frozenset[str] | set[str] = frozenset(),
        true_conditions: frozenset[str] | set[str] = frozenset(),
        exe_bytes: bytes = ELF_EXE,
        libm_builtin: bool = True,
        libm_available: bool = True,
        echo_output: bytes = b"foo^bar\n",
        sh_output: bytes | None = None,
        program_output: bytes = b"",
    ) -> None:
        self._work_dir = Path(work_dir)
        self.command = command
        self.syntax = syntax
        self.macros = set(macros)
        self.true_conditions = set(true_conditions)
        self.exe_bytes = exe_bytes
        self.libm_builtin = libm_builtin
        self.libm_available = libm_available
        self.echo_output = echo_output
        self.sh_output = sh_output
        self.program_output = program_output
        self.commands: list[str] = []
        self.local_commands: list[str] = []

    @property
    def work_dir(self) -> Path:
        return self._work_dir

    @property
    def dev_null(self) -> str:
        return "/dev/null"

    def factory(self, shell: object, work_dir: Path) -> FakeCompilerRunner:
        self._work_dir = Path(work_dir)
        return self

    def _write(self, path: str, data: bytes) -> None:
        if path != self.dev_null:
            (self._work_dir / path).write_bytes(data)

    def run_redirected(self, command: str, path: str) -> int:
        self.commands.append(command)
        if command == ECHO_PROBE:
            self._write(path, self.echo_output)
            return 0
        if command == SH_PROBE:
            if self.sh_output is None:
                self._write(path, b"'sh' is not recognized\r\n")
                return 1
            self._write(path, self.sh_output)
            return 0
        if command.split()[0] == self.command:
            return self._compile(command.split()[1:])
        self._write(path, b"command not found\n")
        return 127

    def run_local_redirected(self, command: str, path: str) -> int:
        self.local_commands.append(command)
        if not (self._work_dir / command).exists():
            return 127
        self._write(path, self.program_output)
        return 0

    def _compiles(self, code: str, args: list[str]) -> bool:
        for name in re.findall(r"#ifdef (\w+)", code):
            if name not in self.macros:
                return False
        for condition in re.findall(r"#if (.+)", code):
            if condition.strip() not in self.true_conditions:
                return False
        return True

    def _links(self, code: str, args: list[str]) -> bool:
        if "sqrt" not in code:
            return True
        if not self.libm_available:
            return False
        if self.libm_builtin:
            return True
        pairs = list(zip(args, args[1:]))
        return ("-l", "m") in pairs or "m.lib" in args

    def _compile(self, args: list[str]) -> int:
        sources = [arg for arg in args if arg.endswith(".c")]
        if len(sources) != 1:
            return 1
        code = (self._work_dir / sources[0]).read_text()
        if not self._compiles(code, args):
            return 1

        output: str | None = None
        is_obj = False
        if self.syntax == "msvc":
            for arg in args:
                if arg.startswith("/Fe"):
                    output = arg[3:]
                elif arg.startswith("/Fo"):
                    output = arg[3:]
                    is_obj = "/c" in args
        elif "-o" in args:
            output = args[args.index("-o") + 1]
            is_obj = "-c" in args
        if output is None:
            return 1

        if is_obj:
            (self._work_dir / output).write_bytes(b"\x00obj")
            return 0
        if not self._links(code, args):
            return 1
        (self._work_dir / output).write_bytes(self.exe_bytes)
        if self.syntax == "msvc":
            # cl.exe leaves the object next to the executable.
            stem = output.rsplit(".", 1)[0]
            (self._work_dir / f"{stem}.obj").write_bytes(b"\x00obj")
        return 0


@pytest.fixture
def fake_cc(tmp_path):
    """Factory for FakeCompilerRunner instances working in tmp_path."""

    def make(**kwargs) -> FakeCompilerRunner:
        return FakeCompilerRunner(tmp_path, **kwargs)

    return make


@pytest.fixture(autouse=True)
def clean_cli_vars(monkeypatch):
    """Keep command-line variables from leaking between tests."""
    # setenv first so that teardown also undoes set_vars().
    monkeypatch.setenv("CCPROBE_VARS", "")
    monkeypatch.delenv("CCPROBE_VARS")
    ccprobe._reset_vars()
    yield
    ccprobe._reset_vars()
