"""
sap_b1.odata.filters - Typed $filter predicates
===============================================

Each filter compiles to one self-contained OData boolean fragment::

    >>> Equal("CardName", "O'Brien").compile()
    "CardName eq 'O''Brien'"
    >>> InSet("DocEntry", [1, 2]).compile()
    '(DocEntry eq 1 or DocEntry eq 2)'

Filters are immutable. How a filter is joined to its neighbours is
decided by the query that holds it, not by the filter itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field as dc_field
from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar, Iterable, Tuple


def escape_odata_literal(value: str) -> str:
    """
    Escape a string value for use in OData $filter expressions.

    Parameters
    ----------
    value : str
        The value to escape

    Returns
    -------
    str
        Escaped value safe for OData filters

    Examples
    --------
    >>> escape_odata_literal("O'Brien")
    "O''Brien"
    """
    return value.replace("'", "''")


def format_literal(value: Any) -> str:
    """
    Render a scalar as an OData literal.

    Strings are single-quoted with embedded quotes doubled, dates are
    quoted ISO strings, booleans and None use the OData keywords, and
    numbers are emitted verbatim.
    """
    if isinstance(value, str):
        return f"'{escape_odata_literal(value)}'"
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (date, datetime)):
        return f"'{value.isoformat()}'"
    return str(value)


# Entity keys follow the same quoting rules as filter literals.
format_key = format_literal


class Combinator(str, Enum):
    """Boolean joiner between a filter and the one before it."""
    AND = "and"
    OR = "or"


class Filter:
    """Base class for all filter predicates."""

    field: str

    def compile(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.compile()


@dataclass(frozen=True)
class _Comparison(Filter):
    field: str
    value: Any
    op: ClassVar[str] = ""

    def compile(self) -> str:
        return f"{self.field} {self.op} {format_literal(self.value)}"


@dataclass(frozen=True)
class Equal(_Comparison):
    """field is equal to value."""
    op: ClassVar[str] = "eq"


@dataclass(frozen=True)
class NotEqual(_Comparison):
    """field is NOT equal to value."""
    op: ClassVar[str] = "ne"


@dataclass(frozen=True)
class LessThan(_Comparison):
    op: ClassVar[str] = "lt"


@dataclass(frozen=True)
class LessThanOrEqual(_Comparison):
    op: ClassVar[str] = "le"


@dataclass(frozen=True)
class MoreThan(_Comparison):
    op: ClassVar[str] = "gt"


@dataclass(frozen=True)
class MoreThanOrEqual(_Comparison):
    op: ClassVar[str] = "ge"


@dataclass(frozen=True)
class _StringFunction(Filter):
    field: str
    value: Any
    func: ClassVar[str] = ""

    def compile(self) -> str:
        # Always quoted, whatever the value type
        return f"{self.func}({self.field},'{escape_odata_literal(str(self.value))}')"


@dataclass(frozen=True)
class StartsWith(_StringFunction):
    """field starts with value."""
    func: ClassVar[str] = "startswith"


@dataclass(frozen=True)
class EndsWith(_StringFunction):
    """field ends with value."""
    func: ClassVar[str] = "endswith"


@dataclass(frozen=True)
class Contains(_StringFunction):
    """field contains value."""
    func: ClassVar[str] = "contains"


@dataclass(frozen=True, init=False)
class _Membership(Filter):
    field: str
    values: Tuple[Any, ...] = dc_field(default_factory=tuple)
    op: ClassVar[str] = ""
    joiner: ClassVar[str] = ""

    def __init__(self, field: str, values: Iterable[Any]) -> None:
        object.__setattr__(self, "field", field)
        object.__setattr__(self, "values", tuple(values))

    def compile(self) -> str:
        # An empty set compiles to "()"; callers must not pass one.
        group = f" {self.joiner} ".join(
            f"{self.field} {self.op} {format_literal(v)}" for v in self.values
        )
        return f"({group})"


@dataclass(frozen=True, init=False)
class InSet(_Membership):
    """field equals any of values."""
    op: ClassVar[str] = "eq"
    joiner: ClassVar[str] = "or"


@dataclass(frozen=True, init=False)
class NotInSet(_Membership):
    """field equals none of values."""
    op: ClassVar[str] = "ne"
    joiner: ClassVar[str] = "and"
