"""
burstcounter — multi-resolution event-correlation counters.

Observes named, timestamped metric updates reported by a host simulation and
counts, for every ordered pair of event names, how often one update is
followed by another within the fixed cycle windows 16/32/64/128/256.
"""

__version__ = "0.1.0"
