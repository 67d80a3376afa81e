"""
burstcounter — Correlation Error Hierarchy

Counting itself has no failure modes: every input is a trusted host call.
The only errors raised come from writing export artifacts.
"""

from __future__ import annotations

from pathlib import Path


class BurstCounterError(RuntimeError):
    """Base for all burstcounter errors."""


class ExportError(BurstCounterError):
    """
    A matrix artifact could not be written.

    The artifact under its final name is left untouched: either the
    previous complete file remains or no file exists.
    """

    def __init__(self, path: Path, window: int, policy: int, reason: str) -> None:
        super().__init__(f"failed to write {path} (window={window}, policy={policy}): {reason}")
        self.path = path
        self.window = window
        self.policy = policy
        self.reason = reason
