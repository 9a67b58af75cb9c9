"""
sap_b1.odata.resource - Resource client
=======================================

Create, update, delete and action calls against one Service Layer
resource (entity collection).
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from sap_b1.core.session import B1Session, ServiceLayerTransport, expect_status
from sap_b1.odata.filters import format_key
from sap_b1.odata.query import Query


class Resource:
    """
    Client for a named resource such as "Orders" or "BusinessPartners".

    Parameters
    ----------
    transport : ServiceLayerTransport
        Transport used to send requests
    session : B1Session
        Session cookies to attach
    name : str
        Resource name

    Examples
    --------
    >>> orders = layer.resource("Orders")
    >>> created = await orders.create({"CardCode": "C20000", "DocumentLines": [...]})
    >>> await orders.update(created["DocEntry"], {"Comments": "rush"})
    >>> await orders.action(created["DocEntry"], "Close")
    """

    def __init__(
        self,
        transport: ServiceLayerTransport,
        session: Optional[B1Session],
        name: str,
    ) -> None:
        self.transport = transport
        self.session = session
        self.name = name

    def _entity_path(self, key: Any) -> str:
        return f"{self.name}({format_key(key)})"

    async def _execute(self, method: str, path: str, body: Optional[Any], expected: int) -> Any:
        url = self.transport.url(path)
        response = await self.transport.execute(method, url, body, session=self.session)
        return expect_status(response, expected, url)

    async def create(self, data: Dict[str, Any]) -> Any:
        """
        POST a new entity. Expects HTTP 201.

        Returns
        -------
        dict
            The created entity as returned by the service
        """
        return await self._execute("POST", self.name, data, 201)

    async def update(self, key: Any, data: Dict[str, Any]) -> Any:
        """PATCH the entity with the given key. Expects HTTP 204."""
        return await self._execute("PATCH", self._entity_path(key), data, 204)

    async def delete(self, key: Any) -> Any:
        """DELETE the entity with the given key. Expects HTTP 204."""
        return await self._execute("DELETE", self._entity_path(key), None, 204)

    async def action(self, key: Any, name: str) -> Any:
        """
        Execute a bound action, e.g. "Close" or "Cancel" on a document.
        Expects HTTP 204.
        """
        return await self._execute("POST", f"{self._entity_path(key)}/{name}", {}, 204)

    def query_builder(self) -> Query:
        """Return a new Query bound to this resource."""
        return Query(self.transport, self.session, self.name)
