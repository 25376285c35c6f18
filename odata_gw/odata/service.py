"""
odata_gw.odata.service - OData Service Client
=============================================

Service-scoped read client for remote OData services.
"""

from __future__ import annotations

from typing import Any, Dict, Generator, List, Optional
from urllib.parse import urljoin

from odata_gw.core.session import ODataSession
from odata_gw.odata.metadata import MetadataMap, ODataMetadata
from odata_gw.odata.records import extract_records, next_link


class ODataService:
    """
    Service-scoped OData read client.

    Reads entity sets with raw query options, normalizes v2/v4 response
    envelopes and follows server-driven paging.

    Parameters
    ----------
    sess : ODataSession
        Active OData session bound to the service root

    Examples
    --------
    >>> with ODataSession(cfg) as sess:
    ...     api = ODataService(sess)
    ...
    ...     # Which fields must be supplied?
    ...     print(api.required_fields("Products"))
    ...
    ...     # Query with raw options
    ...     rows = api.read("Products", "$select=ID,Name&$top=5")
    """

    def __init__(self, sess: ODataSession) -> None:
        self.sess = sess
        self.meta = ODataMetadata(sess)

    # ---------------- core reads ----------------

    def read(
        self,
        entity_set: str,
        query_options: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Read a single page of results from an entity set.

        Parameters
        ----------
        entity_set : str
            Entity set name or resource path
        query_options : str, optional
            Raw OData query string, e.g. "$filter=ID eq 1&$top=10"

        Returns
        -------
        list of dict
            List of entity records
        """
        payload = self.sess.get_json(entity_set, query_options)
        return extract_records(payload)

    def iterate(
        self,
        entity_set: str,
        query_options: Optional[str] = None,
        *,
        max_pages: Optional[int] = None,
    ) -> Generator[List[Dict[str, Any]], None, None]:
        """
        Iterate through pages of results.

        Yields each page as a list of records, following ``__next`` (v2) and
        ``@odata.nextLink`` (v4) links. A link that was already visited
        stops the iteration.

        Parameters
        ----------
        entity_set : str
            Entity set name
        query_options : str, optional
            Raw OData query string for the first page
        max_pages : int, optional
            Maximum number of pages to fetch

        Yields
        ------
        list of dict
            Each page of entity records
        """
        url = self.sess.url_for(entity_set, query_options)
        seen = set()
        fetched = 0

        while url:
            if url in seen:
                return
            seen.add(url)

            p = self.sess.get_json_url(url)
            fetched += 1
            chunk = extract_records(p)
            if chunk:
                yield chunk
            # Empty pages count too; every fetch is an upstream request.
            if max_pages is not None and fetched >= int(max_pages):
                return

            link = next_link(p)
            url = urljoin(self.sess.base, link) if link else None

    def read_all(
        self,
        entity_set: str,
        query_options: Optional[str] = None,
        *,
        max_pages: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Read all pages of results into a single list.

        Parameters
        ----------
        entity_set : str
            Entity set name
        query_options : str, optional
            Raw OData query string
        max_pages : int, optional
            Maximum number of pages to fetch

        Returns
        -------
        list of dict
            All entity records across pages
        """
        out: List[Dict[str, Any]] = []
        for page in self.iterate(entity_set, query_options, max_pages=max_pages):
            out.extend(page)
        return out

    # ---------------- discovery helpers ----------------

    def required_fields(self, entity_set: Optional[str] = None) -> MetadataMap:
        """Required properties per entity set, optionally narrowed to one."""
        return self.meta.required_fields(entity_set)

    def list_entity_sets(self) -> List[str]:
        """Entity set names declared by the service."""
        return self.meta.entity_sets()
