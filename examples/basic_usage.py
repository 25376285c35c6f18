"""
Example: Basic OData usage with odata_gw
========================================

This example shows how to use odata_gw without the HTTP gateway.
"""

from odata_gw import ODataConfig, ODataAuth, ODataSession
from odata_gw.odata import EntityNotFoundError, ODataService


def example_required_fields():
    """List the required fields of every entity set, then of one."""

    cfg = ODataConfig(
        service_url="https://services.odata.org/V2/OData/OData.svc",
        auth=ODataAuth("basic", ("USER", "PASSWORD")),
    )

    with ODataSession(cfg) as sess:
        api = ODataService(sess)

        for entity_set, props in api.required_fields().items():
            print(entity_set, [p.name for p in props])

        try:
            print(api.required_fields("products"))
        except EntityNotFoundError as e:
            print(f"Not declared: {e.requested}")


def example_query():
    """Query an entity set; v2 and v4 envelopes come back as plain lists."""

    cfg = ODataConfig(
        service_url="https://services.odata.org/V4/OData/OData.svc",
        auth=ODataAuth("basic", ("USER", "PASSWORD")),
    )

    with ODataSession(cfg) as sess:
        api = ODataService(sess)

        items = api.read_all(
            "Products",
            "$select=ID,Name,Price&$filter=Price gt 10&$orderby=Price desc",
            max_pages=3,
        )
        print(f"Found {len(items)} products")
        print("First 2:", items[:2])


if __name__ == "__main__":
    example_required_fields()
    example_query()
