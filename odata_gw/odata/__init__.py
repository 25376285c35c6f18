"""
odata_gw.odata - Generic OData Service Access
=============================================

This module provides generic OData v2/v4 service access:

- parse_metadata / narrow_entity_sets: required fields per entity set
- extract_records: uniform record lists from v2/v4/bare responses
- ODataService: entity set reads with paging
- ODataMetadata: $metadata fetching

"""

from odata_gw.odata.metadata import (
    EntityNotFoundError,
    MetadataParseError,
    ODataMetadata,
    PropertyInfo,
    narrow_entity_sets,
    parse_metadata,
)
from odata_gw.odata.records import extract_records, next_link
from odata_gw.odata.service import ODataService

__all__ = [
    "ODataService",
    "ODataMetadata",
    "PropertyInfo",
    "MetadataParseError",
    "EntityNotFoundError",
    "parse_metadata",
    "narrow_entity_sets",
    "extract_records",
    "next_link",
]
