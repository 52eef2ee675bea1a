# SPDX-License-Identifier: MIT
"""Resilient file removal.

On Windows another process (typically a virus scanner, or a compiler
that has not released its handles yet) can keep a file open for a short
while after we are done with it. A single ``os.remove`` is then
unreliable, and re-creating a file with the same name can fail too.

The workaround used here: rename the file to a random name first (which
frees the original name immediately), then delete it. Both steps are
retried for a bounded amount of wall-clock time rather than a fixed
number of attempts, since the cost of one attempt is unknown.
"""

from __future__ import annotations

import logging
import os
import random
import string
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from ccprobe.core.errors import FileRemovalError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

RANDOM_SUFFIX_LENGTH = 16

_SUFFIX_ALPHABET = string.ascii_letters + string.digits


@dataclass(frozen=True)
class RetryPolicy:
    """A retry policy bounded by duration, not by attempt count.

    Attributes:
        max_duration: Seconds after which no new attempt is started.
        poll_interval: Seconds to sleep between attempts.
    """

    max_duration: float = 1.0
    poll_interval: float = 0.01

    def retry(self, attempt: Callable[[], bool]) -> bool:
        """Call ``attempt`` until it returns True or the budget runs out.

        The first attempt is always made, even with a zero budget.

        Returns:
            True if some attempt succeeded.
        """
        deadline = time.monotonic() + self.max_duration
        while True:
            if attempt():
                return True
            if time.monotonic() >= deadline:
                return False
            time.sleep(self.poll_interval)


DEFAULT_POLICY = RetryPolicy()


def _random_suffix() -> str:
    return "".join(random.choices(_SUFFIX_ALPHABET, k=RANDOM_SUFFIX_LENGTH))


def remove(path: Path | str, policy: RetryPolicy = DEFAULT_POLICY) -> bool:
    """Delete a file, tolerating transient locks held by other processes.

    Args:
        path: File to delete.
        policy: Time budget for each of the rename and delete phases.

    Returns:
        True if the file is gone (including when it never existed),
        False if deletion kept failing for the whole budget.
    """
    path = Path(path)
    renamed = path.with_name(path.name + _random_suffix())
    target = path
    missing = False

    def try_rename() -> bool:
        nonlocal target, missing
        try:
            os.rename(path, renamed)
        except FileNotFoundError:
            missing = True
            return True
        except OSError as e:
            logger.debug("Rename of %s failed, retrying: %s", path, e)
            return False
        target = renamed
        return True

    def try_delete() -> bool:
        try:
            os.remove(target)
        except FileNotFoundError:
            return True
        except OSError as e:
            logger.debug("Removal of %s failed, retrying: %s", target, e)
            return False
        return True

    # If the rename never succeeds, target stays the original name.
    policy.retry(try_rename)
    if missing:
        return True
    return policy.retry(try_delete)


def remove_and_verify(
    path: Path | str, policy: RetryPolicy = DEFAULT_POLICY
) -> bool:
    """Delete a file and check that nothing exists under its name afterward."""
    return remove(path, policy) and not os.path.lexists(path)


def require_removed(path: Path | str, policy: RetryPolicy = DEFAULT_POLICY) -> None:
    """Delete a file whose absence later trials depend on.

    Raises:
        FileRemovalError: If the file is still there after the retry budget.
    """
    if not remove_and_verify(path, policy):
        raise FileRemovalError(path)
