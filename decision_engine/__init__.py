"""
Decision Engine for Betting Lines
=================================

Edges, recommendations and signals against posted total and spread lines.
"""

from .filters import BettingLineFilters
from .signal_generator import BettingAnalysis, BettingSignalGenerator, BestBet, MarketSignal

__all__ = [
    'BettingLineFilters',
    'BettingSignalGenerator',
    'BettingAnalysis',
    'BestBet',
    'MarketSignal'
]
