"""
odata_gw.api.gateway - FastAPI OData Gateway
============================================

REST API gateway that proxies metadata and query requests to remote
OData services.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from odata_gw import __version__
from odata_gw.core.session import ODataAuth, ODataConfig, ODataSession, ODataUpstreamError
from odata_gw.odata.metadata import EntityNotFoundError, MetadataParseError
from odata_gw.odata.service import ODataService
from odata_gw.api.models import (
    ODataMetadataRequest,
    ODataQueryRequest,
    PropertyInfoModel,
)

logger = logging.getLogger("odata_gw.api")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() == "true"


class ODataGateway:
    """
    Configuration and session factory for the API gateway.

    Reads configuration from environment variables by default. Holds no
    per-request state, so one instance is shared by all requests.
    """

    def __init__(
        self,
        insecure_trust_all: Optional[bool] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        backoff: Optional[float] = None,
        max_pages: Optional[int] = None,
        api_key: Optional[str] = None,
    ):
        if insecure_trust_all is not None:
            self.insecure_trust_all = insecure_trust_all
        else:
            self.insecure_trust_all = _env_flag("ODATA_INSECURE_TRUST_ALL")

        self.timeout = timeout if timeout is not None else float(os.environ.get("ODATA_TIMEOUT", "60"))
        self.retries = retries if retries is not None else int(os.environ.get("ODATA_RETRIES", "3"))
        self.backoff = backoff if backoff is not None else float(os.environ.get("ODATA_BACKOFF", "0.5"))
        self.max_pages = max_pages if max_pages is not None else int(os.environ.get("ODATA_MAX_PAGES", "10"))
        self.api_key = api_key if api_key is not None else os.environ.get("ODATA_API_KEY", "")

    def build_session(self, url: str, username: str, password: str) -> ODataSession:
        """Create a new OData session for one upstream service."""
        cfg = ODataConfig(
            service_url=url,
            auth=ODataAuth("basic", (username, password)),
            verify=not self.insecure_trust_all,
            timeout=self.timeout,
            retries=self.retries,
            backoff=self.backoff,
        )
        return ODataSession(cfg)


# Global gateway instance (lazy init)
_gateway: Optional[ODataGateway] = None


def get_gateway() -> ODataGateway:
    """Get or create the global gateway instance."""
    global _gateway
    if _gateway is None:
        _gateway = ODataGateway()
    return _gateway


def _upstream_error(e: ODataUpstreamError) -> HTTPException:
    return HTTPException(
        status_code=502,
        detail={"upstream_status": e.status, "url": e.url, "error": str(e)}
    )


def create_app(gateway: Optional[ODataGateway] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Parameters
    ----------
    gateway : ODataGateway, optional
        Custom gateway configuration. If None, reads from environment.

    Returns
    -------
    FastAPI
        Configured FastAPI application
    """
    global _gateway

    if gateway:
        _gateway = gateway
    else:
        _gateway = ODataGateway()

    if _gateway.insecure_trust_all:
        logger.warning("ODATA_INSECURE_TRUST_ALL is enabled; upstream TLS is not verified")

    app = FastAPI(
        title="OData Gateway",
        description="""
## OData v2/v4 Gateway

Proxies requests to remote OData services.

- **Metadata** reports the required (non-nullable) fields of every entity set.
- **Query** reads an entity set and returns a plain JSON array of records,
  whatever envelope the service uses.

### Authentication
If the gateway is configured with an API key, include it in the `x-api-key` header.
        """,
        version=__version__,
        openapi_tags=[
            {
                "name": "Metadata",
                "description": "Required fields per entity set from $metadata",
            },
            {
                "name": "Generic OData",
                "description": "Generic entity set queries",
            },
        ],
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "internal_server_error", "message": str(exc)},
        )

    # -------------------------------------------------------------------------
    # Dependencies
    # -------------------------------------------------------------------------

    def require_api_key(x_api_key: Optional[str] = Header(default=None)) -> None:
        gw = get_gateway()
        if gw.api_key and x_api_key != gw.api_key:
            raise HTTPException(status_code=401, detail="Invalid API key")

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    @app.get("/health")
    def health() -> Dict[str, Any]:
        """Health check endpoint."""
        return {"ok": True, "version": __version__}

    @app.post(
        "/api/odata/metadata",
        response_model=Dict[str, List[PropertyInfoModel]],
        tags=["Metadata"],
        summary="Required fields per entity set",
    )
    def metadata(
        req: ODataMetadataRequest,
        _: None = Depends(require_api_key),
    ) -> Dict[str, List[Dict[str, Any]]]:
        """
        Fetch $metadata of the service and list the required properties of
        each entity set, or of the one named in `entitySet`.
        """
        gw = get_gateway()
        try:
            with gw.build_session(req.url, req.username, req.password) as sess:
                required = ODataService(sess).required_fields(req.entity_set)
        except MetadataParseError as e:
            raise HTTPException(status_code=400, detail={"error": str(e)})
        except EntityNotFoundError as e:
            raise HTTPException(
                status_code=404,
                detail={"error": str(e), "requested": e.requested}
            )
        except ODataUpstreamError as e:
            raise _upstream_error(e)

        logger.info("metadata %s: %d entity sets", req.url, len(required))
        return {name: [p.to_dict() for p in props] for name, props in required.items()}

    @app.post(
        "/api/odata/query",
        tags=["Generic OData"],
        summary="Execute OData Query",
        description="Read an entity set with raw query options; v2 and v4 envelopes are unwrapped.",
    )
    def query(
        req: ODataQueryRequest,
        _: None = Depends(require_api_key),
    ) -> List[Dict[str, Any]]:
        """Execute a generic OData query and return the records."""
        gw = get_gateway()
        max_pages = min(int(req.max_pages or 1), gw.max_pages)

        try:
            with gw.build_session(req.url, req.username, req.password) as sess:
                items = ODataService(sess).read_all(
                    req.entity_set,
                    req.query_options,
                    max_pages=max_pages,
                )
        except ODataUpstreamError as e:
            raise _upstream_error(e)

        logger.info("query %s/%s: %d records", req.url, req.entity_set, len(items))
        return items

    return app
