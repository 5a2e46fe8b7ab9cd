# modules/errors.py

"""Exceptions raised to callers of the analysis orchestrator.

Misconfigured records are not exceptions: they are reported in the
``errors`` and ``warnings`` lists of each analysis.
"""


class AnalysisError(Exception):
    """Base class for failures of a whole analysis call."""


class InvalidInput(AnalysisError):
    """The domain was empty after normalization."""


class AnalysisFailed(AnalysisError):
    """Sequencing or assembly failed; no partial result is available."""


class AnalysisInProgress(AnalysisError):
    """A session already has an analysis in flight."""
