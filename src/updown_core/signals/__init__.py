"""Signal detection — momentum, edge, filters and the staged generator."""

from updown_core.signals.edge import estimate_edge
from updown_core.signals.filters import FilterChain, SignalContext
from updown_core.signals.generator import SignalGenerator
from updown_core.signals.momentum import direction_matches, score_momentum

__all__ = [
    "FilterChain",
    "SignalContext",
    "SignalGenerator",
    "direction_matches",
    "estimate_edge",
    "score_momentum",
]
