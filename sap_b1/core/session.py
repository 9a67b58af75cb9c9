"""
sap_b1.core.session - Service Layer HTTP Session Management
===========================================================

Low-level plumbing for the SAP Business One Service Layer:
- Error types and the transport/service error discriminator
- Connection configuration (explicit or env-driven)
- Session cookies (B1SESSION / ROUTEID)
- Async-friendly requests transport with cookie propagation
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union
import asyncio
import json
import logging
import os
import time

import requests
from dotenv import load_dotenv
from requests import Session
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from sap_b1.core.response import Response


class ErrorKind(IntEnum):
    """Discriminator passed alongside every error."""
    TRANSPORT = 1  # connection-level failure (DNS, refusal, TLS)
    SERVICE = 2    # exchange completed with an unexpected status code


class ServiceLayerError(RuntimeError):
    """
    Base class for errors surfaced by Service Layer calls.

    Attributes
    ----------
    kind : ErrorKind
        TRANSPORT or SERVICE
    payload : object
        The raw transport exception or the Response
    """

    kind: ErrorKind

    def __init__(self, message: str, payload: Any) -> None:
        super().__init__(message)
        self.payload = payload


class TransportError(ServiceLayerError):
    """Raised when the request could not be completed at all."""

    kind = ErrorKind.TRANSPORT

    def __init__(self, cause: BaseException, url: str) -> None:
        super().__init__(f"Service Layer transport error for {url}: {cause}", cause)
        self.cause = cause
        self.url = url


class ServiceError(ServiceLayerError):
    """
    Raised when the Service Layer answers with a status code other than
    the one expected for the operation.

    Attributes
    ----------
    response : Response
        The full response (status, headers, body) for inspection
    url : str
        The URL that was called
    """

    kind = ErrorKind.SERVICE

    def __init__(self, response: Response, url: str) -> None:
        snippet = (response.error_message() or "")[:1200]
        super().__init__(
            f"Service Layer error {response.status_code} for {url}: {snippet}",
            response,
        )
        self.response = response
        self.url = url

    @property
    def status(self) -> int:
        return self.response.status_code


class InvalidArgument(TypeError):
    """Local validation failure, raised before any request is sent."""


@dataclass
class B1Config:
    """
    Connection configuration for the Service Layer.

    Parameters
    ----------
    host : str
        Scheme and host name, e.g. "https://b1.example.com"
    port : int
        Service Layer port (usually 50000)
    username, password, company : str
        Login credentials and company database
    version : int
        Service Layer API version (the "v1" in /b1s/v1/)
    ca_cert : bool or str
        TLS verification: True, False, or path to a CA bundle
    timeout : float
        Request timeout in seconds
    retries : int
        urllib3 retry budget. 0 disables retries.
    backoff : float
        Backoff factor for retries
    user_agent : str
        User-Agent header value

    Examples
    --------
    >>> cfg = B1Config(
    ...     host="https://b1.example.com",
    ...     port=50000,
    ...     username="manager",
    ...     password="secret",
    ...     company="SBODEMOUS",
    ... )
    >>> cfg.base_url
    'https://b1.example.com:50000/b1s/v1/'
    """
    host: str
    port: int = 50000
    username: str = ""
    password: str = ""
    company: str = ""
    version: int = 1
    ca_cert: Union[bool, str] = True
    timeout: float = 60.0
    retries: int = 0
    backoff: float = 0.5
    user_agent: str = "SAPb1Client"

    @property
    def base_url(self) -> str:
        return f"{self.host.rstrip('/')}:{self.port}/b1s/v{self.version}/"

    def validate(self) -> None:
        """Raise ValueError if the configuration cannot be used to log in."""
        if not self.host:
            raise ValueError(
                "Missing host. Set B1_HOST environment variable or pass host parameter."
            )
        if not (self.username and self.password and self.company):
            raise ValueError(
                "Missing credentials. Set B1_USER/B1_PASS/B1_COMPANY environment "
                "variables, or pass username/password/company parameters."
            )

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None, **overrides: Any) -> "B1Config":
        """
        Build a configuration from B1_* environment variables.

        A .env file is loaded first (``env_file`` or ./.env when present).
        Keyword overrides take precedence over the environment.
        """
        env_path = Path(env_file) if env_file else Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        ca = os.environ.get("B1_CA_CERT", "true")
        if ca.lower() in ("true", "false"):
            ca_cert: Union[bool, str] = ca.lower() == "true"
        else:
            ca_cert = ca

        values: Dict[str, Any] = {
            "host": os.environ.get("B1_HOST", ""),
            "port": int(os.environ.get("B1_PORT", "50000")),
            "version": int(os.environ.get("B1_VERSION", "1")),
            "username": os.environ.get("B1_USER", ""),
            "password": os.environ.get("B1_PASS", ""),
            "company": os.environ.get("B1_COMPANY", ""),
            "ca_cert": ca_cert,
            "timeout": float(os.environ.get("B1_TIMEOUT", "60")),
            "retries": int(os.environ.get("B1_RETRIES", "0")),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})

        cfg = cls(**values)
        cfg.validate()
        return cfg


@dataclass(frozen=True)
class B1Session:
    """
    Session cookies returned by a successful login.

    Immutable; share freely between resources and queries.
    """
    b1session: str
    route_id: Optional[str] = None

    @classmethod
    def from_cookies(cls, cookies: Mapping[str, str]) -> "B1Session":
        return cls(b1session=cookies.get("B1SESSION", ""), route_id=cookies.get("ROUTEID"))

    def cookies(self) -> Dict[str, str]:
        out = {"B1SESSION": self.b1session}
        if self.route_id is not None:
            out["ROUTEID"] = self.route_id
        return out

    def cookie_header(self) -> str:
        return ";".join(f"{k}={v}" for k, v in self.cookies().items())


class ServiceLayerTransport:
    """
    requests wrapper that speaks JSON to the Service Layer.

    Each call to :meth:`execute` runs the blocking request in a worker
    thread and resolves to a :class:`Response`, or raises
    :class:`TransportError` if no response was received.

    Parameters
    ----------
    cfg : B1Config
        Connection configuration
    trace : callable, optional
        Called once per exchange with a dict of method, url, status,
        elapsed_ms and error.
    """

    def __init__(
        self,
        cfg: B1Config,
        *,
        trace: Optional[Callable[[Dict[str, Any]], None]] = None,
    ) -> None:
        self.cfg = cfg
        self.base = cfg.base_url
        self.timeout = float(cfg.timeout)
        self.verify = cfg.ca_cert
        self.trace = trace
        self.logger = logging.getLogger("sap_b1.transport")

        self.session = self._build_session()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def __enter__(self) -> "ServiceLayerTransport":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _build_session(self) -> Session:
        sess = requests.Session()
        sess.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json; charset=UTF-8",
            "User-Agent": self.cfg.user_agent,
        })

        retry = Retry(
            total=self.cfg.retries,
            backoff_factor=self.cfg.backoff,
            status_forcelist=(429, 502, 503, 504),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=20)
        sess.mount("https://", adapter)
        sess.mount("http://", adapter)
        return sess

    def url(self, path: str, query: str = "") -> str:
        url = self.base + path.lstrip("/")
        return f"{url}?{query}" if query else url

    def _headers(self, session: Optional[B1Session]) -> Dict[str, str]:
        headers = dict(self.session.headers)
        if session is not None:
            headers["Cookie"] = session.cookie_header()
        return headers

    def _send(
        self,
        method: str,
        url: str,
        body: Optional[Any],
        session: Optional[B1Session],
    ) -> Response:
        data = json.dumps(body) if body is not None else None
        t0 = time.perf_counter()
        error: Optional[BaseException] = None
        status: Optional[int] = None
        try:
            r = self.session.request(
                method=method,
                url=url,
                headers=self._headers(session),
                data=data.encode("utf-8") if data is not None else None,
                timeout=self.timeout,
                verify=self.verify,
            )
            status = r.status_code
        except requests.RequestException as exc:
            error = exc
            raise TransportError(exc, url) from exc
        finally:
            dt = round((time.perf_counter() - t0) * 1000.0, 1)
            self.logger.debug("%s %s %s %sms", method.upper(), url, status, dt)
            if self.trace is not None:
                self.trace({
                    "method": method.upper(),
                    "url": url,
                    "status": status,
                    "elapsed_ms": dt,
                    "error": error,
                })
        return Response.from_requests(r)

    async def execute(
        self,
        method: str,
        url: str,
        body: Optional[Any] = None,
        *,
        session: Optional[B1Session] = None,
    ) -> Response:
        """
        Send one request and wait for the complete response.

        Parameters
        ----------
        method : str
            HTTP method
        url : str
            Absolute URL, usually built with :meth:`url`
        body : object, optional
            JSON-serialisable request body
        session : B1Session, optional
            Cookies to attach

        Raises
        ------
        TransportError
            On any connection-level failure
        """
        return await asyncio.to_thread(self._send, method, url, body, session)


def expect_status(response: Response, expected: int, url: str) -> Any:
    """Return the decoded body if the status matches, otherwise raise ServiceError."""
    if response.status_code != expected:
        raise ServiceError(response, url)
    return response.to_json()
