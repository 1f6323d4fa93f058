"""
Error Taxonomy for the Match Analyzer
=====================================

Validation problems are raised at the boundary before any state changes.
Pipeline failures are raised by MatchAnalyzer.analyze() and chain the
original exception.
"""


class MatchAnalysisError(Exception):
    """Base class for all match analyzer errors."""

    pass


class ValidationError(MatchAnalysisError):
    """Raised when scores, team names or configuration values are invalid."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field


class AnalysisError(MatchAnalysisError):
    """Raised when the analysis pipeline fails. No partial result is stored."""

    pass
