"""
XML helpers shared by the exchange package readers and writers.

Documents are read with namespaces stripped (every tag reduced to its
local name) so lookups work the same whether or not a producer declared
the default namespace. Documents are written pretty-printed UTF-8.
"""

from __future__ import annotations

from typing import Optional
from xml.dom import minidom
from xml.etree.ElementTree import Element, fromstring, tostring


def local_name(tag: str) -> str:
    """``{ns}item`` -> ``item``."""
    return tag.split("}", 1)[-1]


def parse_xml(data: bytes | str) -> Element:
    """
    Parse a document and strip namespaces from every element and attribute.

    Raises:
        xml.etree.ElementTree.ParseError: If the document is not well-formed
    """
    root = fromstring(data)
    for el in root.iter():
        el.tag = local_name(el.tag)
        for key in [k for k in el.attrib if k.startswith("{")]:
            el.attrib[local_name(key)] = el.attrib.pop(key)
    return root


def text_of(el: Optional[Element]) -> str:
    """Text content of an element, '' when absent."""
    if el is None or el.text is None:
        return ""
    return el.text


def child_text(el: Optional[Element], path: str) -> Optional[str]:
    """Text at ``path`` below ``el``, None when the element is missing."""
    if el is None:
        return None
    found = el.find(path)
    return None if found is None else text_of(found)


def to_pretty_xml(root: Element) -> str:
    """Serialize with an XML declaration and two-space indentation."""
    rough = tostring(root, encoding="UTF-8")
    reparsed = minidom.parseString(rough)
    return reparsed.toprettyxml(indent="  ", encoding="UTF-8").decode("utf-8")
