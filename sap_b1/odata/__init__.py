"""
sap_b1.odata - Resources and queries
====================================

- Filter variants and literal escaping
- Query: fluent $select/$filter/$orderby/$top/$skip builder
- Resource: create/update/delete/action on a named resource

"""

from sap_b1.odata.filters import (
    Combinator,
    Contains,
    EndsWith,
    Equal,
    Filter,
    InSet,
    LessThan,
    LessThanOrEqual,
    MoreThan,
    MoreThanOrEqual,
    NotEqual,
    NotInSet,
    StartsWith,
    escape_odata_literal,
    format_key,
    format_literal,
)
from sap_b1.odata.query import Query
from sap_b1.odata.resource import Resource

__all__ = [
    "Combinator",
    "Contains",
    "EndsWith",
    "Equal",
    "Filter",
    "InSet",
    "LessThan",
    "LessThanOrEqual",
    "MoreThan",
    "MoreThanOrEqual",
    "NotEqual",
    "NotInSet",
    "StartsWith",
    "escape_odata_literal",
    "format_key",
    "format_literal",
    "Query",
    "Resource",
]
