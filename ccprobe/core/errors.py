# SPDX-License-Identifier: MIT
"""Custom exceptions for ccprobe.

All ccprobe exceptions inherit from ProbeError, which includes
optional location information (usually a file path) for better
error messages.

Only fatal conditions are exceptions. A probe that merely answers
"no" (a macro is not defined, a trial link fails) returns False or
None instead of raising.
"""

from __future__ import annotations

from pathlib import Path


class ProbeError(Exception):
    """Base class for all ccprobe exceptions.

    Attributes:
        message: The error message.
        location: Optional location (file path, command) the error refers to.
    """

    def __init__(
        self,
        message: str,
        location: str | Path | None = None,
    ) -> None:
        self.message = message
        self.location = location
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


class ConfigureError(ProbeError):
    """Error during toolchain or shell detection.

    Raised when detection cannot continue: the engine would otherwise
    run later trials on top of an inconsistent state.
    """


class FileRemovalError(ConfigureError):
    """A temporary file could not be deleted within the retry budget.

    Attributes:
        path: The file that could not be removed.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__("failed to delete file", str(path))


class CompilerNotWorkingError(ConfigureError):
    """The compiler produced no executable under any argument dialect.

    Attributes:
        command: The compiler command that was tried.
    """

    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(
            f"failed to compile a small test file with {command!r}"
        )


class BinaryFormatError(ConfigureError):
    """The trial executable matched no known binary format."""


class ShellDetectionError(ConfigureError):
    """The shell's escaping convention could not be identified.

    Attributes:
        output: The bytes captured from the probe command.
    """

    def __init__(self, output: bytes) -> None:
        self.output = output
        super().__init__(f"couldn't identify shell (probe printed {output!r})")


class LibraryNotFoundError(ConfigureError):
    """A required system library could not be linked.

    Attributes:
        library: Name of the library that was required.
    """

    def __init__(self, library: str) -> None:
        self.library = library
        super().__init__(f"don't know how to link against library: {library}")


class ToolNotFoundError(ConfigureError):
    """Required tool was not found.

    Attributes:
        tool: The name of the tool that was not found.
    """

    def __init__(self, tool: str) -> None:
        self.tool = tool
        super().__init__(f"tool not found: {tool}")
