"""
sap_b1.core.response - Completed HTTP exchange
==============================================
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional
import json

from requests import Response as RequestsResponse
from requests.structures import CaseInsensitiveDict


class ResponseParseError(ValueError):
    """Raised when a non-empty response body is not valid JSON."""

    def __init__(self, body: str, reason: str) -> None:
        super().__init__(f"Response body is not valid JSON ({reason}): {body[:200]}")
        self.body = body


def _parse_cookies(directives: Iterable[str]) -> Dict[str, str]:
    jar: Dict[str, str] = {}
    for directive in directives:
        first = directive.split(";", 1)[0]
        if "=" not in first:
            continue
        name, _, value = first.partition("=")
        name = name.strip()
        if name:
            jar[name] = value.strip()
    return jar


class Response:
    """
    Read-only view of a Service Layer response.

    Parameters
    ----------
    status_code : int
        HTTP status code
    headers : mapping
        Response headers. ``set-cookie`` may be a single string or a list
        of cookie directives.
    body : str
        Raw response body

    Examples
    --------
    >>> r = Response(200, {"set-cookie": ["B1SESSION=abc; Path=/"]}, "")
    >>> r.cookies
    {'B1SESSION': 'abc'}
    >>> r.to_json()
    {}
    """

    def __init__(
        self,
        status_code: int,
        headers: Optional[Mapping[str, Any]] = None,
        body: str = "",
    ) -> None:
        self._status_code = int(status_code)
        self._headers: CaseInsensitiveDict = CaseInsensitiveDict(headers or {})
        self._body = body or ""

        raw = self._headers.get("set-cookie") or []
        directives: List[str] = [raw] if isinstance(raw, str) else list(raw)
        self._cookies = _parse_cookies(directives)

    @classmethod
    def from_requests(cls, r: RequestsResponse) -> "Response":
        headers: CaseInsensitiveDict = CaseInsensitiveDict(r.headers)
        # requests folds repeated Set-Cookie headers into one string; use the raw list
        raw_headers = getattr(r.raw, "headers", None)
        if raw_headers is not None and hasattr(raw_headers, "getlist"):
            headers["set-cookie"] = list(raw_headers.getlist("Set-Cookie"))
        return cls(r.status_code, headers, r.text)

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def headers(self) -> CaseInsensitiveDict:
        return CaseInsensitiveDict(self._headers)

    @property
    def cookies(self) -> Dict[str, str]:
        return dict(self._cookies)

    @property
    def body(self) -> str:
        return self._body

    def to_json(self) -> Any:
        """
        Decode the body.

        Returns an empty dict for an empty body.

        Raises
        ------
        ResponseParseError
            If the body is non-empty and not valid JSON
        """
        if not self._body:
            return {}
        try:
            return json.loads(self._body)
        except json.JSONDecodeError as exc:
            raise ResponseParseError(self._body, exc.msg) from exc

    def error_message(self) -> str:
        """Best-effort extraction of the SAP error text from the body."""
        try:
            data = json.loads(self._body)
        except ValueError:
            return self._body
        if not isinstance(data, dict):
            return self._body
        err = data.get("error")
        if not isinstance(err, dict):
            return self._body

        code = err.get("code")
        message = None
        if isinstance(err.get("message"), dict):
            message = err["message"].get("value")
        elif isinstance(err.get("message"), str):
            message = err.get("message")

        parts = []
        if code is not None:
            parts.append(f"code={code}")
        if message:
            parts.append(f"message={message}")
        return " | ".join(parts) or self._body

    def __repr__(self) -> str:
        return f"<Response [{self._status_code}]>"
