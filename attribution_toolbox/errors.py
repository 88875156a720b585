"""
Errors Module
-------------
Exception types raised by the toolbox.
Precondition failures are raised before any per-row work starts.
"""
from typing import Iterable, Optional


class AnalysisError(Exception):
    """Base class for every error raised by the toolbox."""


class InvalidInputError(AnalysisError, ValueError):
    """Input data cannot be processed (e.g. a column with no present values)."""


class ConfigurationError(AnalysisError, ValueError):
    """Malformed analysis configuration or construct definitions."""


class MissingColumnError(AnalysisError, KeyError):
    """
    One or more requested columns are absent from the table schema.

    Attributes:
        columns (list): The missing column names, in request order.
        context (str): What was being validated (construct, model, ...).
    """
    def __init__(self, columns: Iterable[str], context: Optional[str] = None):
        self.columns = list(columns)
        self.context = context
        where = f" for {context}" if context else ""
        super().__init__(f"Missing column(s){where}: {self.columns}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]
