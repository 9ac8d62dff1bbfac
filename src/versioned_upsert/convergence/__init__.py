"""Concurrent convergence trials: harness and verifier."""

from __future__ import annotations

from .harness import ConvergenceHarness, HarnessConfig, HarnessRun
from .verifier import ConvergenceVerifier

__all__ = [
    "ConvergenceHarness",
    "ConvergenceVerifier",
    "HarnessConfig",
    "HarnessRun",
]
