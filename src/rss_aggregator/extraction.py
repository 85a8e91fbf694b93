"""Helpers for pulling text and attribute values out of a parsed XML tree.

Absence is never an error at this layer: a missing element, child node or
attribute yields an empty string (or an empty list for the array helpers).
"""

from enum import Enum
from typing import List, Optional, Tuple
from xml.dom import minidom
from xml.dom.minidom import Document, Element, Node

CONTENT_NAMESPACE = "http://purl.org/rss/1.0/modules/content/"
DUBLIN_CORE_NAMESPACE = "http://purl.org/dc/elements/1.1/"
SYNDICATION_NAMESPACE = "http://purl.org/rss/1.0/modules/syndication/"
ATOM_NAMESPACE = "http://www.w3.org/2005/Atom"


class NodeKind(str, Enum):
    """Child node kinds an element's textual payload can be carried in."""

    TEXT = "#text"
    CDATA_SECTION = "#cdata-section"


def parse_xml(xml_text: str) -> Document:
    """Parse XML text into a namespace-aware DOM that keeps CDATA sections.

    Raises:
        xml.parsers.expat.ExpatError: If the text is not well-formed XML.
    """
    return minidom.parseString(xml_text)


def _parse_selector(selector: str) -> List[Tuple[str, str]]:
    """Split a selector into (combinator, name) steps, left to right.

    The first step's combinator is always "". Supported: local names, ``*``,
    ``:scope``, the descendant combinator and the ``>`` child combinator.
    """
    steps: List[Tuple[str, str]] = []
    combinator = ""
    for token in selector.replace(">", " > ").split():
        if token == ">":
            combinator = ">"
            continue
        steps.append((combinator if steps else "", token))
        combinator = " "
    return steps


def _matches_name(node: Node, name: str, scope: Node) -> bool:
    if name == ":scope":
        return node is scope
    if node.nodeType != Node.ELEMENT_NODE:
        return False
    return name == "*" or (node.localName or node.tagName) == name


def _matches(node: Node, steps: List[Tuple[str, str]], index: int, scope: Node) -> bool:
    combinator, name = steps[index]
    if not _matches_name(node, name, scope):
        return False
    if index == 0:
        return True
    if combinator == ">":
        parent = node.parentNode
        return parent is not None and _matches(parent, steps, index - 1, scope)
    ancestor = node.parentNode
    while ancestor is not None:
        if _matches(ancestor, steps, index - 1, scope):
            return True
        ancestor = ancestor.parentNode
    return False


def _iter_descendant_elements(parent: Node):
    for child in parent.childNodes:
        if child.nodeType == Node.ELEMENT_NODE:
            yield child
            yield from _iter_descendant_elements(child)


def select_all(parent: Optional[Node], selector: str) -> List[Element]:
    """Return all descendants of ``parent`` matching ``selector``, in document order."""
    if parent is None:
        return []
    steps = _parse_selector(selector)
    if not steps:
        return []
    last = len(steps) - 1
    return [
        element
        for element in _iter_descendant_elements(parent)
        if _matches(element, steps, last, parent)
    ]


def select_one(parent: Optional[Node], selector: str) -> Optional[Element]:
    """Return the first descendant of ``parent`` matching ``selector``."""
    matches = select_all(parent, selector)
    return matches[0] if matches else None


def text_value_of_child_node(node: Optional[Node], kind: NodeKind) -> str:
    """Value of the first immediate child of the requested kind, or ""."""
    if node is None:
        return ""
    for child in node.childNodes:
        if child.nodeName == kind:
            return child.nodeValue or ""
    return ""


def _first_namespaced(parent: Optional[Node], namespace_uri: str, local_name: str) -> Optional[Element]:
    if parent is None:
        return None
    elements = parent.getElementsByTagNameNS(namespace_uri, local_name)
    return elements[0] if elements else None


def get_element_text(parent: Optional[Node], selector: str, kind: NodeKind) -> str:
    return text_value_of_child_node(select_one(parent, selector), kind)


def get_namespaced_element_text(
    parent: Optional[Node], namespace_uri: str, local_name: str, kind: NodeKind
) -> str:
    return text_value_of_child_node(_first_namespaced(parent, namespace_uri, local_name), kind)


def get_element_array_text(parent: Optional[Node], selector: str, kind: NodeKind) -> List[str]:
    return [text_value_of_child_node(element, kind) for element in select_all(parent, selector)]


def get_namespaced_element_array_text(
    parent: Optional[Node], namespace_uri: str, local_name: str, kind: NodeKind
) -> List[str]:
    if parent is None:
        return []
    return [
        text_value_of_child_node(element, kind)
        for element in parent.getElementsByTagNameNS(namespace_uri, local_name)
    ]


def get_attribute_text(parent: Optional[Node], selector: str, attribute_name: str) -> str:
    element = select_one(parent, selector)
    if element is None or not element.hasAttribute(attribute_name):
        return ""
    return element.getAttribute(attribute_name)


def get_namespaced_attribute_text(
    parent: Optional[Node], namespace_uri: str, local_name: str, attribute_name: str
) -> str:
    element = _first_namespaced(parent, namespace_uri, local_name)
    if element is None:
        return ""
    return element.getAttribute(attribute_name)
