"""
odata_gw.odata.records - Response envelope normalization
========================================================

OData services wrap collections differently depending on protocol version:

- v4: ``{"value": [...]}``
- v2: ``{"d": {"results": [...]}}`` or ``{"d": [...]}``

Some endpoints answer with a bare array or a single bare entity. The helpers
here turn all of these into a plain list of record dicts.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


def _as_record(item: Any) -> Dict[str, Any]:
    if isinstance(item, dict):
        return item
    return {"value": item}


def _as_records(items: List[Any]) -> List[Dict[str, Any]]:
    return [_as_record(item) for item in items]


def extract_records(payload: Any) -> List[Dict[str, Any]]:
    """
    Extract entity records from a decoded OData JSON response.

    Parameters
    ----------
    payload : Any
        Decoded JSON (dict, list, scalar or None)

    Returns
    -------
    list of dict
        Records in response order. Unrecognized shapes yield an empty list.
        Array elements that are not objects are wrapped as ``{"value": item}``.

    Examples
    --------
    >>> extract_records({"value": [{"Id": 1}]})
    [{'Id': 1}]
    >>> extract_records({"d": {"results": [{"Id": 2}]}})
    [{'Id': 2}]
    >>> extract_records(None)
    []
    """
    if isinstance(payload, dict):
        value = payload.get("value")
        if isinstance(value, list):
            return _as_records(value)

        if "d" in payload:
            d = payload["d"]
            if isinstance(d, dict) and isinstance(d.get("results"), list):
                return _as_records(d["results"])
            if isinstance(d, list):
                return _as_records(d)

    if isinstance(payload, list):
        return _as_records(payload)

    if isinstance(payload, dict):
        return [payload]

    return []


def next_link(payload: Any) -> Optional[str]:
    """
    Server-driven paging link of a collection response, if any.

    Reads ``d.__next`` (v2) or ``@odata.nextLink`` (v4).
    """
    if not isinstance(payload, dict):
        return None
    d = payload.get("d")
    if isinstance(d, dict) and d.get("__next"):
        return str(d["__next"])
    link = payload.get("@odata.nextLink")
    return str(link) if link else None
