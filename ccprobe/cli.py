# SPDX-License-Identifier: MIT
"""Command-line interface for ccprobe."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING

from ccprobe.configure.config import Configure
from ccprobe.configure.library import SharedLibrary
from ccprobe.core.errors import ProbeError
from ccprobe.probes.mathlib import math_library

if TYPE_CHECKING:
    from ccprobe.configure.profile import ToolchainProfile
    from ccprobe.configure.shell import ShellProfile

logger = logging.getLogger("ccprobe")

LOG_FORMAT = "%(levelname)s: %(message)s"
DEBUG_LOG_FORMAT = "%(levelname)s: %(name)s: %(message)s"


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Show warnings by default, progress with -v, every command with --debug."""
    if debug:
        logging.basicConfig(level=logging.DEBUG, format=DEBUG_LOG_FORMAT)
    else:
        level = logging.INFO if verbose else logging.WARNING
        logging.basicConfig(level=level, format=LOG_FORMAT)


def parse_variables(args: list[str]) -> tuple[dict[str, str], list[str]]:
    """Split ``KEY=value`` words from the rest of the positional arguments.

    Options (``-x=y``) and words with an empty key (``=y``) are not
    variables and end up in the second list.
    """
    variables: dict[str, str] = {}
    remaining: list[str] = []
    for arg in args:
        key, sep, value = arg.partition("=")
        if sep and key and not arg.startswith("-"):
            variables[key] = value
        else:
            remaining.append(arg)
    return variables, remaining


def resolve_compiler(
    args: argparse.Namespace, config: Configure
) -> tuple[str, str]:
    """Pick the compiler command and flags.

    Precedence: --cc/--cflags, then CC/CFLAGS (command-line variables
    or environment), then the first compiler found on PATH.

    Raises:
        ToolNotFoundError: If no compiler was given and none is on PATH.
    """
    from ccprobe import get_var

    cc = getattr(args, "cc", None) or get_var("CC")
    if not cc:
        info = config.find_compiler()
        cc = info.path.name
        if info.version:
            logger.info("Using %s (%s)", cc, info.version)

    cflags = getattr(args, "cflags", None)
    if cflags is None:
        cflags = get_var("CFLAGS") or ""
    return cc, cflags


def _apply_variables(args: argparse.Namespace) -> bool:
    """Publish KEY=value arguments; False if anything else was given."""
    from ccprobe import set_vars

    variables, remaining = parse_variables(getattr(args, "extra", []))
    if remaining:
        logger.error("Unexpected arguments: %s", " ".join(remaining))
        return False
    if variables:
        set_vars(variables)
    return True


def _detect(args: argparse.Namespace, config: Configure) -> None:
    cc, cflags = resolve_compiler(args, config)
    config.detect_shell()
    config.detect_toolchain(cc, cflags)


def print_shell(shell: ShellProfile) -> None:
    print(f"Shell:            {shell.kind.value}")
    if shell.run_sh_via_cmd_exe:
        print("Runs sh via:      cmd.exe")
    print(f"Directory sep:    {shell.dir_sep}")
    print(f"Null device:      {shell.dev_null}")


def print_toolchain(profile: ToolchainProfile) -> None:
    ext = profile.extensions
    print(f"Compiler:         {profile.compiler_command}")
    if profile.base_flags:
        print(f"Compiler flags:   {profile.base_flags}")
    print(f"Compiler family:  {profile.identity.family.value}")
    print(f"Argument dialect: {profile.dialect.value}")
    print(f"Binary format:    {profile.binary_format.display_name}")
    print(f"Executable ext:   {ext.executable or '(none)'}")
    print(f"Object ext:       {ext.object}")
    print(f"Shared lib ext:   {ext.shared_lib}")
    print(f"Static lib ext:   {ext.static_lib}")
    if ext.import_lib:
        print(f"Import lib ext:   {ext.import_lib}")


def cmd_detect(args: argparse.Namespace) -> int:
    """Run full detection and print a summary."""
    setup_logging(args.verbose, args.debug)

    if not _apply_variables(args):
        return 1

    config = Configure(build_dir=args.build_dir)
    try:
        _detect(args, config)
        math_lib = math_library(config)
        gcc_version = config.gcc_version()
    finally:
        config.clean_up()

    print_shell(config.detect_shell())
    print_toolchain(config.profile)
    if gcc_version:
        print(f"GCC version:      {gcc_version}")
    print(f"Math library:     {math_lib or '(none needed)'}")

    if args.output:
        config.save(args.output)
        logger.info("Wrote %s", args.output)

    return 0


def cmd_shell(args: argparse.Namespace) -> int:
    """Detect the shell only."""
    setup_logging(args.verbose, args.debug)

    config = Configure(build_dir=args.build_dir)
    print_shell(config.detect_shell())
    return 0


def cmd_libname(args: argparse.Namespace) -> int:
    """Print library file names for the detected toolchain."""
    setup_logging(args.verbose, args.debug)

    config = Configure(build_dir=args.build_dir)
    try:
        _detect(args, config)
    finally:
        config.clean_up()
    profile = config.profile

    base = args.basename
    directory = args.dir
    if args.lib_version:
        major = args.lib_version.split(".")[0]
        lib = SharedLibrary(base, version=args.lib_version, major_version=major)
        print(f"Shared library:   {lib.filename(profile, directory)}")
        print(f"Major version:    {lib.major_version_filename(profile, directory)}")
        print(f"Unversioned:      {lib.no_version_filename(profile, directory)}")
        if profile.extensions.import_lib:
            print(f"Import library:   {lib.implib_filename(profile, directory)}")
        if profile.is_msvc:
            print(f"Export file:      {lib.export_filename(profile, directory)}")
    else:
        print(f"Shared library:   {profile.shared_lib_filename(directory, base)}")
        if profile.extensions.import_lib:
            print(f"Import library:   {profile.import_lib_filename(directory, base)}")
    print(f"Static library:   {profile.static_lib_filename(directory, base)}")
    return 0


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add common arguments to a parser."""
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--debug", action="store_true", help="Debug output")
    parser.add_argument(
        "-B",
        "--build-dir",
        default="build",
        help="Directory for trial files (default: build)",
    )


def add_compiler_args(parser: argparse.ArgumentParser) -> None:
    """Add arguments that select the compiler."""
    parser.add_argument("--cc", metavar="CMD", help="C compiler command (default: $CC)")
    parser.add_argument(
        "--cflags", metavar="FLAGS", help="Flags for every compile (default: $CFLAGS)"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ccprobe",
        description="Probe a C compiler and command shell.",
        epilog="Run 'ccprobe <command> --help' for command-specific help.",
    )
    from ccprobe import __version__

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # ccprobe detect
    detect_parser = subparsers.add_parser(
        "detect", help="Detect the toolchain and print a summary"
    )
    add_common_args(detect_parser)
    add_compiler_args(detect_parser)
    detect_parser.add_argument(
        "-o", "--output", metavar="FILE", help="Write a JSON report to FILE"
    )
    detect_parser.add_argument(
        "extra",
        nargs="*",
        help="Variables (KEY=value), e.g. CC=clang",
    )
    detect_parser.set_defaults(func=cmd_detect)

    # ccprobe shell
    shell_parser = subparsers.add_parser("shell", help="Detect the command shell")
    add_common_args(shell_parser)
    shell_parser.set_defaults(func=cmd_shell)

    # ccprobe libname
    libname_parser = subparsers.add_parser(
        "libname", help="Print library file names for the detected toolchain"
    )
    add_common_args(libname_parser)
    add_compiler_args(libname_parser)
    libname_parser.add_argument("basename", help="Library base name (e.g., foo)")
    libname_parser.add_argument(
        "--version",
        dest="lib_version",
        metavar="N",
        help="Library version (e.g., 3 or 3.1.2)",
    )
    libname_parser.add_argument(
        "--dir", metavar="DIR", help="Directory to prefix the names with"
    )
    libname_parser.set_defaults(func=cmd_libname)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the ccprobe CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        result: int = args.func(args)
    except ProbeError as e:
        logger.error("%s", e)
        return 1
    return result


if __name__ == "__main__":
    sys.exit(main())
