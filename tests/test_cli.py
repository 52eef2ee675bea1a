# SPDX-License-Identifier: MIT
"""Tests for ccprobe CLI."""

from __future__ import annotations

import json
import logging
import subprocess
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

import ccprobe
from ccprobe import cli
from ccprobe.cli import main, parse_variables, setup_logging
from ccprobe.configure.config import Configure


@pytest.fixture
def fake_configure(monkeypatch, fake_cc):
    """Make the CLI probe a fake GCC instead of the real toolchain."""
    runner = fake_cc(macros={"__GNUC__"}, program_output=b"12.2.0\n")

    def make(*, build_dir):
        return Configure(build_dir=build_dir, runner_factory=runner.factory)

    monkeypatch.setattr(cli, "Configure", make)
    return runner


class TestParseVariables:
    def test_variables_and_remaining(self):
        variables, remaining = parse_variables(["CC=clang", "target", "CFLAGS=-O2"])
        assert variables == {"CC": "clang", "CFLAGS": "-O2"}
        assert remaining == ["target"]

    def test_value_with_equals(self):
        variables, _ = parse_variables(["CFLAGS=-DX=1"])
        assert variables == {"CFLAGS": "-DX=1"}

    def test_flags_are_not_variables(self):
        variables, remaining = parse_variables(["--cc=gcc", "=x"])
        assert variables == {}
        assert remaining == ["--cc=gcc", "=x"]


class TestSetupLogging:
    @pytest.mark.parametrize(
        "verbose,debug,level",
        [
            (False, False, logging.WARNING),
            (True, False, logging.INFO),
            (False, True, logging.DEBUG),
            (True, True, logging.DEBUG),
        ],
    )
    def test_levels(self, verbose, debug, level) -> None:
        with patch("ccprobe.cli.logging.basicConfig") as basic_config:
            setup_logging(verbose=verbose, debug=debug)
        assert basic_config.call_args.kwargs["level"] == level

    def test_debug_shows_logger_names(self) -> None:
        with patch("ccprobe.cli.logging.basicConfig") as basic_config:
            setup_logging(debug=True)
        assert "%(name)s" in basic_config.call_args.kwargs["format"]


class TestGetVar:
    def test_cli_vars_take_precedence(self, monkeypatch):
        monkeypatch.setenv("CC", "gcc")
        ccprobe.set_vars({"CC": "clang"})
        assert ccprobe.get_var("CC") == "clang"

    def test_falls_back_to_environment(self, monkeypatch):
        monkeypatch.setenv("CFLAGS", "-O1")
        assert ccprobe.get_var("CFLAGS") == "-O1"

    def test_default(self, monkeypatch):
        monkeypatch.delenv("CCPROBE_TEST_UNSET", raising=False)
        assert ccprobe.get_var("CCPROBE_TEST_UNSET", "x") == "x"

    def test_reads_json_from_environment(self, monkeypatch):
        monkeypatch.setenv("CCPROBE_VARS", json.dumps({"CC": "tcc"}))
        ccprobe._reset_vars()
        assert ccprobe.get_var("CC") == "tcc"

    def test_invalid_json_ignored(self, monkeypatch):
        monkeypatch.setenv("CCPROBE_VARS", "{not json")
        monkeypatch.setenv("CC", "cc")
        ccprobe._reset_vars()
        assert ccprobe.get_var("CC") == "cc"

    def test_non_object_json_ignored(self, monkeypatch):
        monkeypatch.setenv("CCPROBE_VARS", "[1, 2]")
        monkeypatch.delenv("CC", raising=False)
        ccprobe._reset_vars()
        assert ccprobe.get_var("CC", "fallback") == "fallback"


class TestCLICommands:
    """Tests for CLI commands."""

    def test_ccprobe_help(self) -> None:
        result = subprocess.run(
            [sys.executable, "-m", "ccprobe.cli", "--help"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert "ccprobe" in result.stdout
        assert "detect" in result.stdout
        assert "shell" in result.stdout
        assert "libname" in result.stdout

    def test_ccprobe_version(self) -> None:
        result = subprocess.run(
            [sys.executable, "-m", "ccprobe.cli", "--version"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert ccprobe.__version__ in result.stdout

    def test_no_command(self, capsys) -> None:
        assert main([]) == 1

    def test_detect(self, fake_configure, tmp_path: Path, capsys) -> None:
        out = tmp_path / "toolchain.json"
        result = main(
            ["detect", "--cc", "cc", "-B", str(tmp_path / "build"), "-o", str(out)]
        )

        assert result == 0
        stdout = capsys.readouterr().out
        assert "Shell:            posix" in stdout
        assert "Binary format:    ELF" in stdout
        assert "Argument dialect: gnu" in stdout
        assert "GCC version:      12.2.0" in stdout
        assert "Math library:     (none needed)" in stdout
        data = json.loads(out.read_text())
        assert data["toolchain"]["identity"]["is_gcc"] is True
        assert list((tmp_path / "build").iterdir()) == []

    def test_detect_with_variables(self, fake_configure, tmp_path: Path, capsys):
        result = main(["detect", "-B", str(tmp_path / "build"), "CC=cc"])

        assert result == 0
        assert "Compiler:         cc" in capsys.readouterr().out
        assert ccprobe.get_var("CC") == "cc"

    def test_detect_unexpected_argument(self, fake_configure, tmp_path: Path):
        assert main(["detect", "--cc", "cc", "-B", str(tmp_path), "oops"]) == 1

    def test_detect_fatal_error(self, fake_configure, tmp_path: Path):
        assert main(["detect", "--cc", "nosuchcc", "-B", str(tmp_path)]) == 1

    def test_detect_failure_cleans_build_dir(self, monkeypatch, fake_cc, tmp_path):
        # An MSVC-style link leaves an .obj next to an unrecognized executable.
        runner = fake_cc(syntax="msvc", exe_bytes=b"#!/bin/sh\nexit 0\n")

        def make(*, build_dir):
            return Configure(build_dir=build_dir, runner_factory=runner.factory)

        monkeypatch.setattr(cli, "Configure", make)
        build = tmp_path / "build"

        assert main(["detect", "--cc", "cc", "-B", str(build)]) == 1
        assert list(build.iterdir()) == []

    def test_libname_failure_cleans_build_dir(self, monkeypatch, fake_cc, tmp_path):
        runner = fake_cc(syntax="msvc", exe_bytes=b"#!/bin/sh\nexit 0\n")

        def make(*, build_dir):
            return Configure(build_dir=build_dir, runner_factory=runner.factory)

        monkeypatch.setattr(cli, "Configure", make)
        build = tmp_path / "build"

        assert main(["libname", "foo", "--cc", "cc", "-B", str(build)]) == 1
        assert list(build.iterdir()) == []

    def test_shell(self, fake_configure, tmp_path: Path, capsys) -> None:
        assert main(["shell", "-B", str(tmp_path / "build")]) == 0
        stdout = capsys.readouterr().out
        assert "Shell:            posix" in stdout
        assert "Directory sep:    /" in stdout

    def test_libname(self, fake_configure, tmp_path: Path, capsys) -> None:
        args = ["libname", "foo", "--version", "3.1.2", "--cc", "cc"]
        assert main(args + ["-B", str(tmp_path / "build")]) == 0
        stdout = capsys.readouterr().out
        assert "Shared library:   libfoo.so.3.1.2" in stdout
        assert "Major version:    libfoo.so.3" in stdout
        assert "Unversioned:      libfoo.so" in stdout
        assert "Static library:   libfoo.a" in stdout

    def test_libname_with_dir(self, fake_configure, tmp_path: Path, capsys) -> None:
        args = ["libname", "foo", "--dir", "lib", "--cc", "cc"]
        assert main(args + ["-B", str(tmp_path / "build")]) == 0
        stdout = capsys.readouterr().out
        assert "Shared library:   lib/libfoo.so" in stdout
        assert "Static library:   lib/libfoo.a" in stdout
