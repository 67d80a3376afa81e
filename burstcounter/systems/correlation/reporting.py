"""
burstcounter — Diagnostic Reports

Read-only printouts of the ledger, written to a text stream (stdout by
default) in the plain format operators grep for after a run.
"""

from __future__ import annotations

import sys
from typing import TextIO

from burstcounter.systems.correlation.ledger import EventLedger


def format_value(value: float) -> str:
    return f"{value:.0f}"


def print_event_names(ledger: EventLedger, out: TextIO | None = None) -> None:
    """
    recorded events: a b c
    all events count: 3
    """
    out = out or sys.stdout
    out.write("recorded events: ")
    for name in ledger.names():
        out.write(f"{name} ")
    out.write(f"\nall events count: {len(ledger)}\n")


def print_counter(ledger: EventLedger, name: str, out: TextIO | None = None) -> None:
    out = out or sys.stdout
    out.write(f"{format_value(ledger.get_value(name))}\n")


def print_all_counters(ledger: EventLedger, out: TextIO | None = None) -> None:
    out = out or sys.stdout
    for name in ledger.names():
        out.write(f"{name}: {format_value(ledger.get_value(name))}\n")
