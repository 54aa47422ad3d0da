"""Defines common errors raised from statement binding and result mapping."""


class BindingError(Exception):
    """Base exception for errors when binding values to SQL."""

    pass


class MappingError(Exception):
    """Base exception for errors related to mapping database results to return types."""

    pass


class TemplateError(BindingError):
    """Raised when parsing or rendering a template fails."""

    pass


class StatementError(BindingError):
    """Raised when a statement cannot be built from the given columns and values."""

    pass


class TooManyValuesError(MappingError):
    """Raised when the number of columns does not match the expected number for mapping."""

    pass
