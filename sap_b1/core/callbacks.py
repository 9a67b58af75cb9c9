"""
sap_b1.core.callbacks - success/error callback adapter
======================================================

For callers that prefer callbacks over ``await``::

    with_callbacks(
        orders.query_builder().where(Equal("DocEntry", 1)).find_all(),
        lambda body: print(body["value"]),
        lambda payload, kind: print(kind.name, payload),
    )
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional
import asyncio
import logging

from sap_b1.core.session import ErrorKind, ServiceLayerError

logger = logging.getLogger("sap_b1.callbacks")

SuccessCallback = Callable[[Any], None]
ErrorCallback = Callable[[Any, ErrorKind], None]


def with_callbacks(
    awaitable: Awaitable[Any],
    success: Optional[SuccessCallback] = None,
    error: Optional[ErrorCallback] = None,
) -> "asyncio.Task[Any]":
    """
    Schedule ``awaitable`` and report its outcome to exactly one callback.

    Must be called with a running event loop. Callbacks run on that loop,
    never before this function returns.

    ``error`` receives ``(payload, kind)``: the Response for
    ``ErrorKind.SERVICE``, the underlying exception for
    ``ErrorKind.TRANSPORT``. Exceptions that are not Service Layer errors
    are left on the returned task.
    """
    task = asyncio.ensure_future(awaitable)

    def _done(t: "asyncio.Task[Any]") -> None:
        if t.cancelled():
            return
        exc = t.exception()
        if exc is None:
            if success is not None:
                success(t.result())
        elif isinstance(exc, ServiceLayerError):
            if error is not None:
                error(exc.payload, exc.kind)
        else:
            logger.error("Callback task failed: %r", exc)

    task.add_done_callback(_done)
    return task
