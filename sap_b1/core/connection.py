"""
sap_b1.core.connection - Service Layer root client
==================================================

Logs in once and hands out resources bound to the resulting session.
"""

from __future__ import annotations

from typing import Any, Optional, TYPE_CHECKING
import logging

from sap_b1.core.session import (
    B1Config,
    B1Session,
    ServiceError,
    ServiceLayerTransport,
    expect_status,
)

if TYPE_CHECKING:
    from sap_b1.odata.resource import Resource

logger = logging.getLogger("sap_b1.connection")


class ServiceLayer:
    """
    Authenticated Service Layer client.

    Usually obtained from :meth:`create_session` rather than constructed
    directly.

    Parameters
    ----------
    cfg : B1Config
        Connection configuration
    session : B1Session
        Session cookies from a previous login
    transport : ServiceLayerTransport, optional
        Transport to reuse. A new one is built from ``cfg`` if omitted.

    Examples
    --------
    >>> cfg = B1Config.from_env()
    >>> layer = await ServiceLayer.create_session(cfg)
    >>> with layer:
    ...     orders = layer.resource("Orders")
    ...     page = await orders.query_builder().limit(10).find_all()
    """

    def __init__(
        self,
        cfg: B1Config,
        session: B1Session,
        transport: Optional[ServiceLayerTransport] = None,
    ) -> None:
        self.cfg = cfg
        self._session = session
        self.transport = transport or ServiceLayerTransport(cfg)

    @classmethod
    async def create_session(
        cls,
        cfg: B1Config,
        transport: Optional[ServiceLayerTransport] = None,
    ) -> "ServiceLayer":
        """
        Log in and return a client carrying the session cookies.

        Raises
        ------
        ServiceError
            If the service answers with anything but HTTP 200
        TransportError
            If the service could not be reached
        """
        transport = transport or ServiceLayerTransport(cfg)
        url = transport.url("Login")
        response = await transport.execute("POST", url, {
            "UserName": cfg.username,
            "Password": cfg.password,
            "CompanyDB": cfg.company,
        })
        if response.status_code != 200:
            raise ServiceError(response, url)

        session = B1Session.from_cookies(response.cookies)
        logger.info("Logged in to %s as %s (company %s)", cfg.host, cfg.username, cfg.company)
        return cls(cfg, session, transport)

    @property
    def session(self) -> B1Session:
        """The session cookies held by this client."""
        return self._session

    def resource(self, name: str) -> "Resource":
        """Return a Resource client for ``name`` (e.g. "Orders")."""
        # Import here to avoid circular imports
        from sap_b1.odata.resource import Resource
        return Resource(self.transport, self._session, name)

    async def query(self, query_option: str, query_path: str) -> Any:
        """
        Run a raw cross-join query through QueryService_PostQuery.

        Parameters
        ----------
        query_option : str
            $expand expression, without the "$expand=" prefix
        query_path : str
            Comma separated resources, without the "$crossjoin(...)" wrapper
        """
        url = self.transport.url("QueryService_PostQuery")
        response = await self.transport.execute("POST", url, {
            "QueryOption": f'"$expand={query_option}"',
            "QueryPath": f'"$crossjoin({query_path})"',
        }, session=self._session)
        return expect_status(response, 200, url)

    async def logout(self) -> None:
        """End the session on the server. Expects HTTP 204."""
        url = self.transport.url("Logout")
        response = await self.transport.execute("POST", url, {}, session=self._session)
        expect_status(response, 204, url)

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self.transport.close()

    def __enter__(self) -> "ServiceLayer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
