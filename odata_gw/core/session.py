"""
odata_gw.core.session - OData HTTP Session Management
=====================================================

Low-level session handling for remote OData services with:
- Basic and Bearer token authentication
- Automatic retry with exponential backoff for idempotent reads
- Optional "trust-all" TLS mode for local testing
- Proper error extraction from OData error bodies
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union
from urllib.parse import quote
import logging
import time

import requests
from requests import Response, Session
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


class ODataUpstreamError(RuntimeError):
    """
    Exception raised when the remote OData service returns an error.

    Attributes
    ----------
    status : int
        HTTP status code from the upstream service
    body : str
        Response body (truncated for display)
    url : str
        The URL that was called
    headers : dict
        Response headers
    """

    def __init__(
        self,
        status: int,
        body: str,
        url: str,
        headers: Optional[Dict[str, str]] = None
    ):
        snippet = (body or "")[:1200]
        super().__init__(f"OData upstream error {status} for {url}: {snippet}")
        self.status = status
        self.body = body or ""
        self.url = url
        self.headers = headers or {}


@dataclass
class ODataAuth:
    """
    Authentication configuration for a remote OData service.

    Parameters
    ----------
    kind : str
        Either "basic" or "bearer"
    value : tuple or str
        For basic: (username, password) tuple
        For bearer: access token string

    Examples
    --------
    >>> auth = ODataAuth("basic", ("USER", "PASSWORD"))
    >>> auth = ODataAuth("bearer", "eyJ...")
    """
    kind: str  # "basic" | "bearer"
    value: Union[Tuple[str, str], str]  # (user, pass) or access_token


@dataclass
class ODataConfig:
    """
    Connection configuration for a single OData service.

    Parameters
    ----------
    service_url : str
        Service root URL, e.g. "https://host/sap/opu/odata/sap/API_BUSINESS_PARTNER"
    auth : ODataAuth
        Authentication configuration
    timeout : float
        Request timeout in seconds (default: 60.0)
    retries : int
        Number of retry attempts (default: 3)
    backoff : float
        Backoff factor for retries (default: 0.5)
    verify : bool or str
        SSL verification (True, False, or path to CA bundle).
        False trusts every certificate and host name; only for local testing.
    user_agent : str
        User-Agent header value

    Examples
    --------
    >>> cfg = ODataConfig(
    ...     service_url="https://services.odata.org/V4/OData/OData.svc",
    ...     auth=ODataAuth("basic", ("USER", "PASS")),
    ... )
    """
    service_url: str
    auth: ODataAuth
    timeout: float = 60.0
    retries: int = 3
    backoff: float = 0.5
    verify: Union[bool, str] = True
    user_agent: str = "odata-gw/0.1"


def encode_segment(segment: str) -> str:
    """Percent-encode a resource path segment, keeping OData key syntax."""
    return quote(segment.strip(), safe="()',=:@$*/")


class ODataSession:
    """
    Low-level HTTP session for OData v2/v4 services.

    Handles authentication, retries and error extraction for GET requests
    against one service root. Use as a context manager for automatic cleanup.

    Parameters
    ----------
    cfg : ODataConfig
        Connection configuration

    Examples
    --------
    >>> cfg = ODataConfig(...)
    >>> with ODataSession(cfg) as sess:
    ...     data = sess.get_json("Products", "$top=5")
    """

    def __init__(self, cfg: ODataConfig) -> None:
        self.cfg = cfg
        self.base = cfg.service_url.strip().rstrip("/") + "/"
        self.timeout = float(cfg.timeout)
        self.verify = cfg.verify
        self.logger = logging.getLogger("odata_gw.odata")

        if self.verify is False:
            self.logger.warning("TLS verification disabled for %s", self.base)

        self.session = self._build_session()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def __enter__(self) -> "ODataSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------------- auth/session ----------------

    def _build_session(self) -> Session:
        sess = requests.Session()

        # auth
        if self.cfg.auth.kind == "basic":
            sess.auth = self.cfg.auth.value  # type: ignore[assignment]
        elif self.cfg.auth.kind == "bearer":
            sess.headers.update({"Authorization": f"Bearer {self.cfg.auth.value}"})
        else:
            raise ValueError("auth.kind must be 'basic' or 'bearer'")

        sess.headers.update({
            "Accept": "application/json",
            "User-Agent": self.cfg.user_agent,
        })

        retry = Retry(
            total=self.cfg.retries,
            backoff_factor=self.cfg.backoff,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=frozenset({"GET", "HEAD", "OPTIONS"}),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry, pool_connections=20, pool_maxsize=50)
        sess.mount("https://", adapter)
        sess.mount("http://", adapter)
        return sess

    # ---------------- helpers ----------------

    def url_for(self, path: str, query_options: Optional[str] = None) -> str:
        """
        Build an absolute URL below the service root.

        ``query_options`` is passed through untouched, e.g.
        ``"$select=Name&$top=10"``; a leading ``?`` is optional.
        """
        url = f"{self.base}{encode_segment(path.lstrip('/'))}"
        if query_options and query_options.strip():
            q = query_options.strip()
            url += q if q.startswith("?") else f"?{q}"
        return url

    def _extract_odata_error(self, r: Response) -> str:
        try:
            data = r.json()
        except ValueError:
            return r.text
        if not isinstance(data, dict):
            return r.text
        err = data.get("error")
        if not isinstance(err, dict):
            return r.text

        code = err.get("code")
        message = None
        if isinstance(err.get("message"), dict):
            message = err["message"].get("value")
        elif isinstance(err.get("message"), str):
            message = err.get("message")

        inner = err.get("innererror") or err.get("innerError")
        txid = inner.get("transactionid") if isinstance(inner, dict) else None
        ts = inner.get("timestamp") if isinstance(inner, dict) else None

        parts = []
        if code:
            parts.append(f"code={code}")
        if message:
            parts.append(f"message={message}")
        if txid:
            parts.append(f"txid={txid}")
        if ts:
            parts.append(f"ts={ts}")
        return " | ".join(parts) or r.text

    def _raise_for_error(self, r: Response, url: str) -> None:
        if r.status_code >= 400:
            body = self._extract_odata_error(r)
            raise ODataUpstreamError(r.status_code, body, url, dict(r.headers))

    def _get(self, url: str, headers: Optional[Dict[str, str]] = None) -> Response:
        t0 = time.perf_counter()
        r = self.session.get(
            url,
            headers=headers,
            timeout=self.timeout,
            verify=self.verify,
        )
        self._raise_for_error(r, url)
        dt = (time.perf_counter() - t0) * 1000.0
        self.logger.debug("GET %s %sms", url, round(dt, 1))
        return r

    def _decode_json(self, r: Response, url: str) -> Any:
        try:
            return r.json()
        except ValueError:
            raise ODataUpstreamError(
                r.status_code,
                f"Response is not valid JSON: {r.text}",
                url,
                dict(r.headers),
            ) from None

    # ---------------- public ops ----------------

    def get_text(self, path: str, query_options: Optional[str] = None) -> str:
        """
        Execute a GET request and return the raw text response.

        Used for $metadata which returns EDMX XML.
        """
        url = self.url_for(path, query_options)
        headers = {}
        if path == "$metadata" or path.endswith("/$metadata"):
            headers["Accept"] = "application/xml"
        r = self._get(url, headers)
        return r.text

    def get_json(self, path: str, query_options: Optional[str] = None) -> Any:
        """
        Execute a GET request against a resource path.

        Parameters
        ----------
        path : str
            Entity set or resource path, e.g. "Products" or "Products(1)"
        query_options : str, optional
            Raw OData query string, e.g. "$filter=Price gt 10&$top=5"

        Returns
        -------
        Any
            Decoded JSON response (object, array or scalar)
        """
        url = self.url_for(path, query_options)
        r = self._get(url)
        return self._decode_json(r, url)

    def get_json_url(self, url: str) -> Any:
        """GET an absolute URL (e.g. a server-driven next link) and decode JSON."""
        r = self._get(url)
        return self._decode_json(r, url)
