"""
odata_gw.api.models - Pydantic models for API requests/responses
================================================================
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Example defaults (public OData reference service)
# ---------------------------------------------------------------------------

EXAMPLE_SERVICE_URL = "https://services.odata.org/V2/OData/OData.svc"
EXAMPLE_ENTITY_SET = "Products"
EXAMPLE_QUERY_OPTIONS = "$select=ID,Name&$top=5"


class ODataConnectionRequest(BaseModel):
    """Connection details for one remote OData service."""

    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(
        description="OData service root URL",
        json_schema_extra={"example": EXAMPLE_SERVICE_URL}
    )
    username: str = Field(
        description="User for basic authentication",
        json_schema_extra={"example": "USER"}
    )
    password: str = Field(
        description="Password for basic authentication",
        json_schema_extra={"example": "PASSWORD"}
    )

    @field_validator("url", "username", "password")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be blank")
        return value


class ODataMetadataRequest(ODataConnectionRequest):
    """Request model for required-field metadata."""

    entity_set: Optional[str] = Field(
        default=None,
        alias="entitySet",
        description="Restrict the result to one entity set (case-insensitive)",
        json_schema_extra={"example": EXAMPLE_ENTITY_SET}
    )


class ODataQueryRequest(ODataConnectionRequest):
    """Request model for generic entity set queries."""

    entity_set: str = Field(
        alias="entitySet",
        description="Entity set name, e.g. Products",
        json_schema_extra={"example": EXAMPLE_ENTITY_SET}
    )
    query_options: Optional[str] = Field(
        default=None,
        alias="queryOptions",
        description="Raw OData query string, e.g. $select=Name&$top=10",
        json_schema_extra={"example": EXAMPLE_QUERY_OPTIONS}
    )
    max_pages: int = Field(
        default=1,
        alias="maxPages",
        description="Max pages to follow (server-driven paging)",
        ge=1,
        json_schema_extra={"example": 1}
    )

    @field_validator("entity_set")
    @classmethod
    def _entity_set_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be blank")
        return value.strip()


class PropertyInfoModel(BaseModel):
    """A required property of an entity set."""

    name: str
    type: str
    maxLength: Optional[int] = None
