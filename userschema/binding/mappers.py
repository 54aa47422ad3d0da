"""Mapper interface definition and stock implementations."""

import dataclasses
import typing
from abc import ABC, abstractmethod

from userschema.backend.base import ColumnDescriptor
from userschema.binding.errors import TooManyValuesError


class RowMapper(ABC):
    """Interface for database results mapper."""

    @abstractmethod
    def __call__(self, row: typing.Tuple, description: typing.Tuple[ColumnDescriptor, ...]):
        """Map a database row to the type this implementation maps to.

        :param row: a tuple of raw values from a database result set
        :param description: the description of the row's columns

        :returns: the row as the mapped type.
        """
        pass  # pragma: no cover


class DictRowMapper(RowMapper):
    """Implements mapping for dictionaries where keys are string and values are not cast."""

    def __call__(self, row: typing.Tuple, description: typing.Tuple[ColumnDescriptor, ...]):  # noqa: D102
        return {d.name: row[col] for col, d in enumerate(description)}


class ClassRowMapper(DictRowMapper):
    """Implements mapping for classes where rows are passed as kwargs.

    When the mapped class is a dataclass, columns that do not correspond to one of its fields are dropped, so a
    table carrying extra columns can still be mapped.
    """

    def __init__(self, mapped_class):
        """Construct a class row mapper by passing the row as named key word args to the class constructor.

        :param mapped_class: the class to map a row to
        """
        self._mapped_class = mapped_class
        self._fields = None
        if dataclasses.is_dataclass(mapped_class):
            self._fields = {f.name for f in dataclasses.fields(mapped_class) if f.init}

    def __call__(self, row: typing.Tuple, description: typing.Tuple[ColumnDescriptor, ...]):  # noqa: D102
        kwargs = super().__call__(row, description)
        if self._fields is not None:
            kwargs = {k: v for k, v in kwargs.items() if k in self._fields}
        return self._mapped_class(**kwargs)


class SingleValueRowMapper(RowMapper):
    """Implements a row mapper for a primitive type."""

    def __call__(self, row: typing.Tuple, description: typing.Tuple[ColumnDescriptor, ...]):  # noqa: D102
        if len(row) > 1:
            raise TooManyValuesError(f"Too many values, expected 1, got {len(row)}")
        return row[0]
