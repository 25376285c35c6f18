"""
OData Gateway (odata_gw)
========================

A small Python package and HTTP gateway for remote OData v2/v4 services:
report the required fields of every entity set from $metadata and run
generic entity set reads with uniform record lists.

Usage
-----
>>> from odata_gw import ConnectionContext
>>>
>>> with ConnectionContext() as conn:
...     service = conn.get_service()
...     required = service.required_fields("Products")
...     rows = service.read("Products", "$top=10")

Subpackages
-----------
- odata_gw.core: Session, authentication, and configuration
- odata_gw.odata: Metadata interpretation and response normalization
- odata_gw.api: FastAPI REST gateway

"""

__version__ = "0.1.0"

# Core exports - available at package root
from odata_gw.core.session import (
    ODataAuth,
    ODataConfig,
    ODataSession,
    ODataUpstreamError,
)

from odata_gw.core.connection import ConnectionContext

# Convenience re-exports
from odata_gw.odata import (
    EntityNotFoundError,
    MetadataParseError,
    ODataMetadata,
    ODataService,
    PropertyInfo,
    extract_records,
    narrow_entity_sets,
    parse_metadata,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "ODataAuth",
    "ODataConfig",
    "ODataSession",
    "ODataUpstreamError",
    "ConnectionContext",
    # OData
    "ODataService",
    "ODataMetadata",
    "PropertyInfo",
    "MetadataParseError",
    "EntityNotFoundError",
    "parse_metadata",
    "narrow_entity_sets",
    "extract_records",
]
