"""Adjudication front ends.

Implementations of AdjudicationPort: an interactive terminal prompt and a
replay of saved directives.
"""

from pressure_sieve.adapters.adjudicators.replay import (
    ReplayAdjudicator,
    load_directives,
    save_directives,
)
from pressure_sieve.adapters.adjudicators.terminal import TerminalAdjudicator

__all__ = ["ReplayAdjudicator", "TerminalAdjudicator", "load_directives", "save_directives"]
