# SPDX-License-Identifier: MIT
"""Tests for ccprobe.core.errors."""

from pathlib import Path

from ccprobe.core.errors import (
    BinaryFormatError,
    CompilerNotWorkingError,
    ConfigureError,
    FileRemovalError,
    LibraryNotFoundError,
    ProbeError,
    ShellDetectionError,
    ToolNotFoundError,
)


class TestProbeError:
    def test_message_only(self):
        err = ProbeError("something broke")
        assert str(err) == "something broke"
        assert err.location is None

    def test_message_with_location(self):
        err = ProbeError("bad magic", "build/_ccprobe_try")
        assert str(err) == "build/_ccprobe_try: bad magic"


class TestConfigureErrors:
    def test_all_fatal_errors_are_configure_errors(self):
        errors = [
            FileRemovalError("x"),
            CompilerNotWorkingError("cc"),
            BinaryFormatError("failed to detect binary format"),
            ShellDetectionError(b"???"),
            LibraryNotFoundError("m"),
            ToolNotFoundError("cc"),
        ]
        for err in errors:
            assert isinstance(err, ConfigureError)
            assert isinstance(err, ProbeError)

    def test_file_removal_error(self):
        err = FileRemovalError("build/_ccprobe_target")
        assert err.path == Path("build/_ccprobe_target")
        assert "failed to delete file" in str(err)
        assert "_ccprobe_target" in str(err)

    def test_compiler_not_working(self):
        err = CompilerNotWorkingError("nosuchcc")
        assert err.command == "nosuchcc"
        assert "nosuchcc" in str(err)

    def test_shell_detection_keeps_output(self):
        err = ShellDetectionError(b"foo bar")
        assert err.output == b"foo bar"
        assert "couldn't identify shell" in str(err)

    def test_library_not_found(self):
        err = LibraryNotFoundError("m")
        assert err.library == "m"
        assert "m" in str(err)

    def test_tool_not_found(self):
        err = ToolNotFoundError("cl")
        assert err.tool == "cl"
        assert str(err) == "tool not found: cl"
