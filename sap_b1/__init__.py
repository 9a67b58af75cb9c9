"""
SAP Business One Service Layer Python SDK (sap_b1)
==================================================

An asyncio client for the SAP Business One Service Layer: session-cookie
login, CRUD and actions on resources, and a fluent OData query builder.

Usage
-----
>>> from sap_b1 import B1Config, ServiceLayer
>>> from sap_b1.odata import Equal, InSet
>>>
>>> layer = await ServiceLayer.create_session(B1Config.from_env())
>>> with layer:
...     orders = layer.resource("Orders")
...     page = await (
...         orders.query_builder()
...         .select("DocEntry,CardCode,DocTotal")
...         .where(Equal("CardCode", "C20000"))
...         .or_where(InSet("DocEntry", [1, 2, 3]))
...         .limit(20)
...         .find_all()
...     )

Subpackages
-----------
- sap_b1.core: Configuration, session cookies, transport, root client
- sap_b1.odata: Filters, query builder and resource client

"""

__version__ = "0.1.0"

# Core exports - available at package root
from sap_b1.core.session import (
    B1Config,
    B1Session,
    ErrorKind,
    InvalidArgument,
    ServiceError,
    ServiceLayerError,
    ServiceLayerTransport,
    TransportError,
)
from sap_b1.core.response import Response, ResponseParseError
from sap_b1.core.connection import ServiceLayer
from sap_b1.core.callbacks import with_callbacks

# Convenience re-exports
from sap_b1.odata import Query, Resource

__all__ = [
    # Version
    "__version__",
    # Core
    "B1Config",
    "B1Session",
    "ErrorKind",
    "InvalidArgument",
    "ServiceError",
    "ServiceLayerError",
    "ServiceLayerTransport",
    "TransportError",
    "Response",
    "ResponseParseError",
    "ServiceLayer",
    "with_callbacks",
    # OData
    "Query",
    "Resource",
]
