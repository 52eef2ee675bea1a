# SPDX-License-Identifier: MIT
"""Probes built on top of a detected Configure context."""

from ccprobe.probes.mathlib import math_library

__all__ = ["math_library"]
