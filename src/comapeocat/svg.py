"""
comapeocat — SVG icon sanitation.

File: src/comapeocat/svg.py

Purpose
- Turn author-supplied SVG text into a safe, size-independent icon document.

What should be included in this file
- Hardened XML parsing (``defusedxml``): entity expansion and external references are
  refused.
- Removal of active content (scripts, foreign objects, event handler attributes,
  ``javascript:`` links), editor metadata and comments.
- Dimension removal: ``width``/``height`` on the root become a ``viewBox`` when none
  is declared.
"""

from __future__ import annotations

import re
from typing import Final
from xml.etree import ElementTree

import defusedxml.ElementTree as SafeElementTree
from defusedxml import DefusedXmlException

from comapeocat.errors import SvgInvalidError

SVG_NAMESPACE: Final[str] = "http://www.w3.org/2000/svg"
XLINK_NAMESPACE: Final[str] = "http://www.w3.org/1999/xlink"

_EDITOR_NAMESPACES: Final[frozenset[str]] = frozenset(
    {
        "http://www.inkscape.org/namespaces/inkscape",
        "http://sodipodi.sourceforge.net/DTD/sodipodi-0.dtd",
        "http://ns.adobe.com/AdobeIllustrator/10.0/",
        "http://www.bohemiancoding.com/sketch/ns",
    }
)
_REMOVED_ELEMENTS: Final[frozenset[str]] = frozenset({"script", "foreignObject", "metadata"})
_LINK_ATTRIBUTES: Final[frozenset[str]] = frozenset({"href", f"{{{XLINK_NAMESPACE}}}href"})
_NUMERIC_LENGTH: Final[re.Pattern[str]] = re.compile(r"^\s*([0-9]*\.?[0-9]+)\s*(px)?\s*$")

ElementTree.register_namespace("xlink", XLINK_NAMESPACE)


def sanitize_svg(text: str, *, icon_id: str = "<icon>") -> str:
    """Return sanitized SVG text or raise ``SvgInvalidError``."""

    try:
        root = SafeElementTree.fromstring(text)
    except (ElementTree.ParseError, DefusedXmlException) as exc:
        raise SvgInvalidError(icon_id, str(exc)) from exc

    namespace, local_name = _split_tag(root.tag)
    if local_name != "svg" or namespace not in (None, SVG_NAMESPACE):
        raise SvgInvalidError(icon_id, f"root element must be <svg>, got <{local_name}>")

    _strip_element(root)
    _remove_dimensions(root)
    _unqualify(root)
    attributes = dict(root.attrib)
    root.attrib.clear()
    root.set("xmlns", SVG_NAMESPACE)
    root.attrib.update(attributes)
    try:
        return ElementTree.tostring(root, encoding="unicode")
    except ValueError as exc:
        raise SvgInvalidError(icon_id, str(exc)) from exc


def _strip_element(element: ElementTree.Element) -> None:
    for name in list(element.attrib):
        attr_namespace, attr_local = _split_tag(name)
        value = element.attrib[name]
        if (
            attr_namespace in _EDITOR_NAMESPACES
            or attr_local.lower().startswith("on")
            or (name in _LINK_ATTRIBUTES and value.strip().lower().startswith("javascript:"))
        ):
            del element.attrib[name]

    for child in list(element):
        if not isinstance(child.tag, str):
            element.remove(child)
            continue
        child_namespace, child_local = _split_tag(child.tag)
        if child_local in _REMOVED_ELEMENTS or child_namespace in _EDITOR_NAMESPACES:
            # Keep text that followed the removed element attached to the tree.
            _preserve_tail(element, child)
            element.remove(child)
            continue
        _strip_element(child)


def _unqualify(element: ElementTree.Element) -> None:
    """Drop the SVG namespace from tags and attributes; it is declared once on the root."""

    for node in element.iter():
        namespace, local = _split_tag(node.tag)
        if namespace == SVG_NAMESPACE:
            node.tag = local
        for name in [name for name in node.attrib if name.startswith(f"{{{SVG_NAMESPACE}}}")]:
            node.attrib[_split_tag(name)[1]] = node.attrib.pop(name)


def _preserve_tail(parent: ElementTree.Element, child: ElementTree.Element) -> None:
    if not child.tail:
        return
    children = list(parent)
    index = children.index(child)
    if index == 0:
        parent.text = (parent.text or "") + child.tail
    else:
        previous = children[index - 1]
        previous.tail = (previous.tail or "") + child.tail


def _remove_dimensions(root: ElementTree.Element) -> None:
    width = root.attrib.pop("width", None)
    height = root.attrib.pop("height", None)
    if root.get("viewBox") is not None or width is None or height is None:
        return
    width_match = _NUMERIC_LENGTH.match(width)
    height_match = _NUMERIC_LENGTH.match(height)
    if width_match is None or height_match is None:
        return
    root.set("viewBox", f"0 0 {width_match.group(1)} {height_match.group(1)}")


def _split_tag(tag: str) -> tuple[str | None, str]:
    if tag.startswith("{"):
        namespace, _, local = tag[1:].partition("}")
        return namespace, local
    return None, tag


__all__ = ["SVG_NAMESPACE", "sanitize_svg"]
