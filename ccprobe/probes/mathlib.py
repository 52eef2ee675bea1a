# SPDX-License-Identifier: MIT
"""Find out how to link against the C math library."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ccprobe.core.errors import LibraryNotFoundError

if TYPE_CHECKING:
    from ccprobe.configure.config import Configure

logger = logging.getLogger(__name__)

# Takes the address through a typedef so C++ overloads of sqrt
# don't make the reference ambiguous.
SQRT_PROGRAM = """\
#include <math.h>
typedef double (*sqrt_t)(double);
int main() { return (int)(sqrt_t)sqrt; }
"""


def math_library(config: Configure) -> str | None:
    """Return the library needed for math functions.

    Returns:
        None if the math functions link without extra libraries
        (MSVC, macOS), otherwise ``"m"``.

    Raises:
        LibraryNotFoundError: If linking fails even with ``-lm``.
    """
    if config.check_link(SQRT_PROGRAM):
        logger.debug("Math functions link without an extra library")
        return None

    with config.temp_flags() as flags:
        flags.add_external_lib("m")
        linked = config.check_link(SQRT_PROGRAM)

    if not linked:
        raise LibraryNotFoundError("m")
    logger.info("Math functions need the 'm' library")
    return "m"
