"""
odata_gw.core.connection - High-level connection management
===========================================================

Provides a ConnectionContext for simplified SDK usage.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Optional

from odata_gw.core.session import ODataAuth, ODataConfig, ODataSession

if TYPE_CHECKING:
    from odata_gw.odata.service import ODataService


class ConnectionContext:
    """
    High-level connection manager for one remote OData service.

    Supports environment variable configuration and context manager usage.

    Parameters
    ----------
    service_url : str, optional
        OData service root URL. Falls back to ODATA_SERVICE_URL env var.
    user : str, optional
        Username for basic auth. Falls back to ODATA_USER env var.
    password : str, optional
        Password for basic auth. Falls back to ODATA_PASS env var.
    bearer_token : str, optional
        Bearer token for OAuth. Falls back to ODATA_BEARER_TOKEN env var.
    verify : bool, optional
        SSL verification. Falls back to ODATA_VERIFY_TLS env var.
    timeout : float
        Request timeout in seconds.

    Examples
    --------
    >>> conn = ConnectionContext(
    ...     service_url="https://host/sap/opu/odata/sap/API_BUSINESS_PARTNER",
    ...     user="USER",
    ...     password="PASS",
    ... )

    >>> with ConnectionContext() as conn:  # reads ODATA_* env vars
    ...     service = conn.get_service()
    ...     partners = service.read("A_BusinessPartner", "$top=10")
    """

    def __init__(
        self,
        service_url: Optional[str] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        bearer_token: Optional[str] = None,
        verify: Optional[bool] = None,
        timeout: float = 60.0,
    ) -> None:
        self._service_url = (service_url or os.environ.get("ODATA_SERVICE_URL", "")).strip()
        self._user = user or os.environ.get("ODATA_USER", "")
        self._password = password or os.environ.get("ODATA_PASS", "")
        self._bearer_token = bearer_token or os.environ.get("ODATA_BEARER_TOKEN", "")

        if verify is not None:
            self._verify = verify
        else:
            self._verify = os.environ.get("ODATA_VERIFY_TLS", "true").lower() != "false"

        self._timeout = timeout

        if not self._service_url:
            raise ValueError(
                "Missing service_url. Set ODATA_SERVICE_URL environment variable "
                "or pass service_url parameter."
            )

        if not self._bearer_token and not (self._user and self._password):
            raise ValueError(
                "Missing credentials. Set ODATA_USER/ODATA_PASS or ODATA_BEARER_TOKEN "
                "environment variables, or pass user/password or bearer_token parameters."
            )

        self._session: Optional[ODataSession] = None

    @property
    def session(self) -> ODataSession:
        """Get or create the underlying OData session."""
        if self._session is None:
            self._session = self._build_session()
        return self._session

    def _build_session(self) -> ODataSession:
        if self._bearer_token:
            auth = ODataAuth("bearer", self._bearer_token)
        else:
            auth = ODataAuth("basic", (self._user, self._password))

        cfg = ODataConfig(
            service_url=self._service_url,
            auth=auth,
            verify=self._verify,
            timeout=self._timeout,
        )
        return ODataSession(cfg)

    def close(self) -> None:
        """Close the connection."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "ConnectionContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def get_service(self) -> "ODataService":
        """Get an ODataService bound to this connection's session."""
        # Import here to avoid circular imports
        from odata_gw.odata.service import ODataService
        return ODataService(self.session)

    @property
    def service_url(self) -> str:
        """The configured service root URL."""
        return self._service_url
