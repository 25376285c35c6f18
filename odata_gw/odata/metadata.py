"""
odata_gw.odata.metadata - OData $metadata parsing
=================================================

Required-field extraction from EDMX documents of OData v2/v4 services.

Elements are matched by local name only, since v2 and v4 documents declare
the same structural elements under different namespace URIs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Union
import logging
import re
import xml.etree.ElementTree as ET

from odata_gw.core.session import ODataSession

logger = logging.getLogger("odata_gw.odata")

_INTEGER = re.compile(r"[+-]?[0-9]+\Z")


class MetadataParseError(ValueError):
    """Raised when a $metadata document is not well-formed XML."""


class EntityNotFoundError(LookupError):
    """
    Raised when a requested entity set is not declared in the metadata.

    Attributes
    ----------
    requested : str
        The entity set name that was asked for
    """

    def __init__(self, requested: str):
        super().__init__(f"Entity set '{requested}' not found in metadata")
        self.requested = requested


@dataclass(frozen=True)
class PropertyInfo:
    """
    A required (non-nullable) property of an entity type.

    Attributes
    ----------
    name : str
        Property name (e.g., "ProductID")
    type : str
        EDM type as declared (e.g., "Edm.Int32")
    max_length : int, optional
        Declared MaxLength, None when absent or not numeric
    """
    name: str
    type: str
    max_length: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type, "maxLength": self.max_length}


@dataclass(frozen=True)
class EntityTypeDescriptor:
    qualified_name: str
    local_name: str
    element: ET.Element


MetadataMap = Dict[str, List[PropertyInfo]]


def _strip_ns(tag: str) -> str:
    """Strip XML namespace from a tag name."""
    return tag.split("}", 1)[-1] if "}" in tag else tag


def _iter_local(root: ET.Element, name: str) -> Iterator[ET.Element]:
    for node in root.iter():
        if isinstance(node.tag, str) and _strip_ns(node.tag) == name:
            yield node


def _children_local(parent: ET.Element, name: str) -> Iterator[ET.Element]:
    for child in parent:
        if isinstance(child.tag, str) and _strip_ns(child.tag) == name:
            yield child


def _parse_max_length(raw: Optional[str]) -> Optional[int]:
    # Plain optionally-signed decimal only; "max", " 12 " and "1_000" are absent.
    if raw is None or not _INTEGER.match(raw):
        return None
    value = int(raw)
    if not -2**31 <= value < 2**31:
        return None
    return value


def _index_entity_types(root: ET.Element) -> Dict[str, EntityTypeDescriptor]:
    index: Dict[str, EntityTypeDescriptor] = {}
    for schema in _iter_local(root, "Schema"):
        namespace = schema.attrib.get("Namespace", "")
        for et in _children_local(schema, "EntityType"):
            name = et.attrib.get("Name", "")
            qualified = f"{namespace}.{name}" if namespace else name
            index[qualified] = EntityTypeDescriptor(qualified, name, et)
    return index


def _resolve_entity_type(
    index: Dict[str, EntityTypeDescriptor],
    reference: str,
) -> Optional[EntityTypeDescriptor]:
    found = index.get(reference)
    if found is not None:
        return found
    bare = reference.split(".")[-1]
    for descriptor in index.values():
        if descriptor.local_name == bare:
            return descriptor
    return None


def _required_properties(descriptor: Optional[EntityTypeDescriptor]) -> List[PropertyInfo]:
    if descriptor is None:
        return []
    props: List[PropertyInfo] = []
    # Direct properties only; BaseType inheritance is not followed.
    for prop in _children_local(descriptor.element, "Property"):
        if prop.attrib.get("Nullable", "").lower() != "false":
            continue
        props.append(PropertyInfo(
            name=prop.attrib.get("Name", ""),
            type=prop.attrib.get("Type", ""),
            max_length=_parse_max_length(prop.attrib.get("MaxLength")),
        ))
    return props


def parse_metadata(xml_text: Union[str, bytes]) -> MetadataMap:
    """
    Parse an EDMX document into required properties per entity set.

    Parameters
    ----------
    xml_text : str or bytes
        The $metadata document

    Returns
    -------
    dict
        Entity set name -> list of PropertyInfo, in document order.
        Entity sets whose type cannot be resolved map to an empty list.

    Raises
    ------
    MetadataParseError
        If the document is not well-formed XML

    Examples
    --------
    >>> meta = parse_metadata(xml_text)
    >>> [p.name for p in meta["Products"]]
    ['ID']
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise MetadataParseError(f"Failed to parse metadata XML: {e}") from e

    index = _index_entity_types(root)

    result: MetadataMap = {}
    for container in _iter_local(root, "EntityContainer"):
        for es in _children_local(container, "EntitySet"):
            es_name = es.attrib.get("Name", "")
            reference = es.attrib.get("EntityType", "")
            descriptor = _resolve_entity_type(index, reference)
            if descriptor is None:
                logger.debug("Entity type %r of set %r not found", reference, es_name)
            result[es_name] = _required_properties(descriptor)

    logger.debug("Parsed %d entity types, %d entity sets", len(index), len(result))
    return result


def narrow_entity_sets(metadata: MetadataMap, requested: Optional[str]) -> MetadataMap:
    """
    Narrow a metadata map to a single entity set.

    An exact match on the stripped name wins; otherwise the first key that
    matches case-insensitively (in map order) is used.

    Parameters
    ----------
    metadata : dict
        Result of parse_metadata
    requested : str, optional
        Entity set name; None or blank returns ``metadata`` itself

    Returns
    -------
    dict
        One-entry map with the matched key and its original property list

    Raises
    ------
    EntityNotFoundError
        If no key matches
    """
    if requested is None or not requested.strip():
        return metadata

    name = requested.strip()
    if name in metadata:
        return {name: metadata[name]}

    folded = name.casefold()
    for key, props in metadata.items():
        if key.casefold() == folded:
            return {key: props}

    raise EntityNotFoundError(name)


class ODataMetadata:
    """
    $metadata access for one OData service.

    Every call fetches the document again; nothing is cached between calls.

    Parameters
    ----------
    sess : ODataSession
        Active OData session

    Examples
    --------
    >>> meta = ODataMetadata(sess)
    >>> meta.required_fields("Products")
    {'Products': [PropertyInfo(name='ID', type='Edm.Int32', max_length=None)]}
    """

    def __init__(self, sess: ODataSession):
        self.sess = sess

    def fetch(self) -> MetadataMap:
        """Fetch and parse $metadata from the service."""
        xml_text = self.sess.get_text("$metadata")
        return parse_metadata(xml_text)

    def required_fields(self, entity_set: Optional[str] = None) -> MetadataMap:
        """
        Required fields per entity set, optionally narrowed to one set.

        Raises
        ------
        EntityNotFoundError
            If ``entity_set`` is given and not declared by the service
        """
        return narrow_entity_sets(self.fetch(), entity_set)

    def entity_sets(self) -> List[str]:
        """Entity set names in document order."""
        return list(self.fetch().keys())
