# SPDX-License-Identifier: MIT
"""
ccprobe: C toolchain and shell probing.

ccprobe figures out how to drive an unknown C compiler through an unknown
command shell by compiling throwaway programs and observing what they
produce: which argument dialect the compiler speaks, which binary format
it emits, which well-known compiler it claims to be, and how shared and
static libraries are named on the target.
"""

from __future__ import annotations

import json
import logging
import os

__version__ = "0.1.0"

# Public API
from ccprobe.configure.config import Configure  # noqa: E402
from ccprobe.configure.profile import ToolchainProfile  # noqa: E402
from ccprobe.configure.shell import ShellProfile  # noqa: E402
from ccprobe.core.errors import ConfigureError, ProbeError  # noqa: E402

logger = logging.getLogger(__name__)

# KEY=value pairs from the command line, loaded lazily.
_cli_vars: dict[str, str] | None = None


def set_vars(variables: dict[str, str]) -> None:
    """Publish command-line variables to get_var().

    The variables are also exported as CCPROBE_VARS so that compiler
    wrappers started by trial compiles see them.
    """
    global _cli_vars

    os.environ["CCPROBE_VARS"] = json.dumps(variables)
    _cli_vars = dict(variables)


def _load_cli_vars() -> dict[str, str]:
    raw = os.environ.get("CCPROBE_VARS")
    if not raw:
        return {}
    try:
        return dict(json.loads(raw))
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed CCPROBE_VARS: %r", raw)
        return {}


def get_var(name: str, default: str | None = None) -> str | None:
    """Look up a KEY=value given on the command line, then the environment.

    ``ccprobe detect CC=clang`` wins over ``CC=gcc ccprobe detect``.
    Command-line variables reach child processes through CCPROBE_VARS and
    are read from there on first use.
    """
    global _cli_vars

    if _cli_vars is None:
        _cli_vars = _load_cli_vars()
    if name in _cli_vars:
        return _cli_vars[name]
    return os.environ.get(name, default)


def _reset_vars() -> None:
    """Forget cached CLI variables (used by tests)."""
    global _cli_vars

    _cli_vars = None


__all__ = [
    "__version__",
    "get_var",
    "set_vars",
    "Configure",
    "ShellProfile",
    "ToolchainProfile",
    # Errors
    "ConfigureError",
    "ProbeError",
]
