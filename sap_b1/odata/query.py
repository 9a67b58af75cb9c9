"""
sap_b1.odata.query - Fluent query builder
=========================================

Resource-scoped query builder that compiles select/filter/order/paging
state into a Service Layer GET request.
"""

from __future__ import annotations

from typing import Any, AsyncGenerator, Dict, List, Optional, Sequence, Tuple, Union
from urllib.parse import quote, urljoin
import logging

from sap_b1.core.session import (
    B1Session,
    InvalidArgument,
    ServiceLayerTransport,
    expect_status,
)
from sap_b1.odata.filters import Combinator, Filter, format_key

logger = logging.getLogger("sap_b1.query")

# Characters left untouched by JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_component(value: Any) -> str:
    """Percent-encode a query parameter value."""
    return quote(str(value), safe=_URI_COMPONENT_SAFE)


def _join_csv(items: Sequence[str]) -> str:
    """Join items as comma-separated values, stripping whitespace."""
    return ",".join([s.strip() for s in items if s and s.strip()])


class Query:
    """
    Query builder for a single resource.

    Configuration calls return the builder so they can be chained. A
    terminal coroutine (:meth:`count`, :meth:`find_all`, :meth:`find`,
    :meth:`iterate`) compiles the accumulated state and sends it.

    A builder holds mutable state: do not run two terminal operations on
    the same instance concurrently. Create one builder per query.

    Parameters
    ----------
    transport : ServiceLayerTransport
        Transport used to send the request
    session : B1Session
        Session cookies to attach
    resource : str
        Resource (entity collection) name, e.g. "Orders"

    Examples
    --------
    >>> q = (
    ...     layer.resource("Orders").query_builder()
    ...     .select("DocEntry,CardCode")
    ...     .where(Equal("CardCode", "C20000"))
    ...     .or_where(MoreThan("DocTotal", 1000))
    ...     .order_by("DocEntry", "desc")
    ...     .limit(20)
    ... )
    >>> orders = await q.find_all()
    """

    def __init__(
        self,
        transport: ServiceLayerTransport,
        session: Optional[B1Session],
        resource: str,
    ) -> None:
        self.transport = transport
        self.session = session
        self.resource = resource
        self._params: Dict[str, Any] = {}
        self._filters: List[Tuple[Combinator, Filter]] = []

    # ---------------- configuration ----------------

    def select(self, fields: Union[str, Sequence[str]]) -> "Query":
        """
        The entity fields to return.

        Accepts a comma separated string or a list of names. An empty value
        selects every field.
        """
        if not isinstance(fields, str):
            fields = _join_csv(fields)
        self._params["$select"] = fields or "*"
        return self

    def _add_filter(self, combinator: Combinator, flt: Any) -> "Query":
        if not isinstance(flt, Filter):
            raise InvalidArgument(
                f"The specified filter must be an instance of Filter, got {type(flt).__name__}"
            )
        self._filters.append((combinator, flt))
        return self

    def where(self, flt: Filter) -> "Query":
        """Add a filter joined to the previous one with AND."""
        return self._add_filter(Combinator.AND, flt)

    def or_where(self, flt: Filter) -> "Query":
        """Add a filter joined to the previous one with OR."""
        return self._add_filter(Combinator.OR, flt)

    def limit(self, top: int, skip: int = 0) -> "Query":
        """Fetch at most ``top`` rows after skipping ``skip`` rows."""
        self._params["$top"] = int(top)
        self._params["$skip"] = int(skip)
        return self

    def inline_count(self) -> "Query":
        """Include the count of matched entities in the result."""
        self._params["$inlinecount"] = "allpages"
        return self

    def order_by(self, field: str, direction: str = "asc") -> "Query":
        direction = direction.lower()
        if direction not in ("asc", "desc"):
            raise InvalidArgument(f"Order direction must be 'asc' or 'desc', got {direction!r}")
        self._params["$orderby"] = f"{field} {direction}"
        return self

    # ---------------- compilation ----------------

    @property
    def filters(self) -> List[Tuple[Combinator, Filter]]:
        return list(self._filters)

    def filter_expression(self) -> str:
        """The $filter text before percent-encoding."""
        return "".join(
            (f" {comb.value} " if i else "") + flt.compile()
            for i, (comb, flt) in enumerate(self._filters)
        )

    def query_string(self) -> str:
        """
        Compile the builder state into the request query string.

        Every scalar parameter is followed by "&"; the service ignores the
        trailing separator. Filter fragments are encoded one by one and
        joined with their raw combinators.
        """
        out = "".join(f"{key}={encode_component(value)}&" for key, value in self._params.items())
        if self._filters:
            out += "$filter=" + "".join(
                (f" {comb.value} " if i else "") + encode_component(flt.compile())
                for i, (comb, flt) in enumerate(self._filters)
            )
        return out

    def url(self, path: Optional[str] = None) -> str:
        return self.transport.url(path or self.resource, self.query_string())

    # ---------------- terminal operations ----------------

    async def _get(self, url: str) -> Any:
        response = await self.transport.execute("GET", url, session=self.session)
        return expect_status(response, 200, url)

    async def count(self) -> Any:
        """Return the number of entities matching the filters."""
        return await self._get(self.url(f"{self.resource}/$count"))

    async def find_all(self) -> Any:
        """Return one page of matching entities (the raw JSON payload)."""
        return await self._get(self.url())

    async def find(self, key: Any) -> Any:
        """Return the entity with the given key."""
        return await self._get(self.url(f"{self.resource}({format_key(key)})"))

    async def iterate(
        self,
        max_pages: Optional[int] = None,
    ) -> AsyncGenerator[List[Dict[str, Any]], None]:
        """
        Iterate through pages of results.

        Yields each page's ``value`` list, following ``odata.nextLink``
        until the service stops returning one.

        Parameters
        ----------
        max_pages : int, optional
            Maximum number of pages to fetch
        """
        payload = await self.find_all()
        yielded = 0
        seen = set()

        while True:
            chunk = payload.get("value") or []
            if chunk:
                yield chunk
                yielded += 1
                if max_pages is not None and yielded >= int(max_pages):
                    return

            next_link = payload.get("odata.nextLink") or payload.get("@odata.nextLink")
            if not next_link or next_link in seen:
                return
            seen.add(next_link)
            logger.debug("following next link %s", next_link)
            payload = await self._get(urljoin(self.transport.base, next_link))
