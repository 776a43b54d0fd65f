"""Exceptions raised while validating inputs and preparing a solve."""


class CEMError(Exception):
    """Base class for capacity expansion model errors."""


class SchemaError(CEMError, ValueError):
    """Input table or record is missing a field or references something undefined."""


class PeriodError(CEMError, ValueError):
    """Representative period structure cannot be indexed consistently."""


class SolverUnavailableError(CEMError, RuntimeError):
    """Configured solver plugin or executable could not be found."""
