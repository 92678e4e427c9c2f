"""
Exceptions raised at the file and configuration boundary.

Analysis passes never raise these; problems inside a document are reported
as Diagnostic values.
"""


class AnalysisError(Exception):
    """Base class for exoraven errors."""


class ConfigError(AnalysisError):
    """Configuration file or environment value could not be used."""


class SourceReadError(AnalysisError):
    """A script file could not be read."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read {path}: {reason}")
