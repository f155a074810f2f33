"""Document loading and typed attribute access for LXS scene documents."""

from __future__ import annotations

import math
import xml.etree.ElementTree as ElementTree
from dataclasses import dataclass, field
from pathlib import Path

from lxscene.errors import DocumentError

_TRUE_TOKENS = frozenset({"true", "1"})
_FALSE_TOKENS = frozenset({"false", "0"})


@dataclass(frozen=True)
class DocumentNode:
    """A named node with string attributes and ordered children."""

    name: str
    attributes: dict[str, str] = field(default_factory=dict)
    children: tuple[DocumentNode, ...] = ()

    def child_names(self) -> list[str]:
        return [child.name for child in self.children]

    def find(self, name: str) -> DocumentNode | None:
        """Return the first child with the given tag, or None."""
        for child in self.children:
            if child.name == name:
                return child
        return None


def _read_source_text(source: str | Path) -> str:
    """Read document content from a path or treat input as raw XML text."""
    if isinstance(source, Path):
        try:
            return source.read_text(encoding="utf-8")
        except OSError as e:
            raise DocumentError(f"Cannot read file: {e}") from e
    return source


def _convert(element: ElementTree.Element) -> DocumentNode:
    return DocumentNode(
        name=element.tag,
        attributes=dict(element.attrib),
        children=tuple(_convert(child) for child in element),
    )


def load_document(source: str | Path) -> DocumentNode:
    """Parse an XML scene document into a ``DocumentNode`` tree.

    Args:
        source: XML string or path to a scene file.

    Returns:
        The root node of the document.

    Raises:
        DocumentError: If the file cannot be read or the XML is malformed.
    """
    text = _read_source_text(source)
    try:
        root = ElementTree.fromstring(text)
    except ElementTree.ParseError as e:
        raise DocumentError(f"Invalid XML: {e}") from e
    return _convert(root)


class AttributeReader:
    """Typed accessors over node attributes.

    Every accessor returns ``None`` when the attribute is absent or its value
    cannot be parsed into the requested type.
    """

    def get_string(self, node: DocumentNode, attr: str) -> str | None:
        return node.attributes.get(attr)

    def get_float(self, node: DocumentNode, attr: str) -> float | None:
        raw = node.attributes.get(attr)
        if raw is None:
            return None
        try:
            value = float(raw)
        except ValueError:
            return None
        if math.isnan(value):
            return None
        return value

    def get_boolean(self, node: DocumentNode, attr: str) -> bool | None:
        raw = node.attributes.get(attr)
        if raw is None:
            return None
        token = raw.strip().lower()
        if token in _TRUE_TOKENS:
            return True
        if token in _FALSE_TOKENS:
            return False
        return None
