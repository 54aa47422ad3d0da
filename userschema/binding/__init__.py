"""Functionality related to binding values to templated SQL statements and mapping their results."""

from userschema.binding.connection import BoundConnection
from userschema.binding.statements import InsertStatement, UpdateStatement
from userschema.binding.templating import Template

__all__ = ["BoundConnection", "InsertStatement", "Template", "UpdateStatement", "errors"]
