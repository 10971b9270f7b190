"""Exceptions raised by the crack analysis pipeline."""


class CrackAnalysisError(Exception):
    """Base class for crack analysis failures."""


class InvalidInput(CrackAnalysisError, ValueError):
    """Input array has an unusable shape (zero-sized, wrong rank, no channels)."""


class InvalidConfiguration(CrackAnalysisError, ValueError):
    """A configuration value is out of its allowed range."""
