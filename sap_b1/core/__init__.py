"""
sap_b1.core - Core connectivity and authentication
==================================================

- B1Config: Connection configuration (explicit or from B1_* env vars)
- B1Session: Session cookies returned by Login
- ServiceLayerTransport: requests-based transport run off the event loop
- Response: Completed exchange with cookie parsing and JSON decoding
- ServiceLayer: Root client (login, resources, cross-join queries)
- with_callbacks: success/error callback adapter

"""

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

__all__ = [
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
]
